from __future__ import annotations

"""
Free-text search over record rows.

A query matches a record when it is a case-insensitive substring of any of
the fields listed for the record's kind. The empty query matches everything.
"""

from typing import Callable, Dict, Iterable, Optional

from crmlens.core.records.account_index import AccountIndex
from crmlens.core.records.models import Account, Campaign, Contact, Lead, Opportunity, Record, RecordType


FieldSource = Callable[[Record, AccountIndex], Iterable[str]]

_NO_ACCOUNTS = AccountIndex()


def country_for_contact(contact: Contact, accounts: AccountIndex) -> str:
    """
    The contact's own address country, else the country of its account.
    Contacts often have no address of their own and inherit the company's.
    """
    if contact.address_country:
        return contact.address_country
    return accounts.account_by_id(contact.account_id).country


def _account_fields(account: Account, _accounts: AccountIndex) -> Iterable[str]:
    return (
        account.name,
        account.billing_address_city,
        account.shipping_address_city,
        account.billing_address_street,
        account.shipping_address_street,
        account.email1,
        account.billing_address_country,
        account.phone_office,
        account.postal_code_for_gui,
    )


def _campaign_fields(campaign: Campaign, _accounts: AccountIndex) -> Iterable[str]:
    return (
        campaign.name,
        campaign.status,
        campaign.campaign_type,
        campaign.end_date,
        campaign.assigned_user_name,
    )


def _contact_fields(contact: Contact, accounts: AccountIndex) -> Iterable[str]:
    yield contact.assembled_name
    yield contact.organization
    yield contact.preferred_email
    yield contact.work_phone
    yield contact.mobile_phone
    yield contact.given_name
    # last: needs an index lookup
    yield country_for_contact(contact, accounts)


def _lead_fields(lead: Lead, _accounts: AccountIndex) -> Iterable[str]:
    return (
        lead.first_name,
        lead.last_name,
        lead.status,
        lead.account_name,
        lead.email1,
        lead.assigned_user_name,
    )


def _opportunity_fields(opp: Opportunity, accounts: AccountIndex) -> Iterable[str]:
    yield opp.name
    yield opp.next_step
    yield opp.sales_stage
    yield opp.assigned_user_name
    account = accounts.account_by_id(opp.account_id)
    yield account.name
    yield account.country


_FIELD_TABLES: Dict[RecordType, FieldSource] = {
    RecordType.ACCOUNT: _account_fields,
    RecordType.CAMPAIGN: _campaign_fields,
    RecordType.CONTACT: _contact_fields,
    RecordType.LEAD: _lead_fields,
    RecordType.OPPORTUNITY: _opportunity_fields,
}


def searchable_fields(record: Record, accounts: Optional[AccountIndex] = None) -> Iterable[str]:
    try:
        source = _FIELD_TABLES[record.record_type]
    except (AttributeError, KeyError, ValueError) as e:
        raise TypeError(f"not a searchable record: {type(record).__name__}") from e
    return source(record, accounts if accounts is not None else _NO_ACCOUNTS)


def matches(record: Record, query: str, accounts: Optional[AccountIndex] = None) -> bool:
    q = str(query or "")
    if not q:
        return True
    needle = q.casefold()
    # generator tables stop at the first hit, so index lookups only happen when needed
    return any(needle in (value or "").casefold() for value in searchable_fields(record, accounts))
