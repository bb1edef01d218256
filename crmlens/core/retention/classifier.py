from __future__ import annotations

"""
GDPR retention classification of contacts.

A contact is swept (deleted, or anonymized when it belongs to an account)
only when all of these hold:
- its account is not a business relationship (partner/competitor/other)
- it was not already anonymized
- it has no account, or its account had no opportunity entered in the window
- its description does not mention any of the last few years
- it was created before the window
and its email is not on the protected list.

Windows are whole 365-day years; year mentions are literal 4-digit
substrings. Both are intentional approximations; keep them.
"""

import datetime as _dt
from typing import Iterable, List, Optional, Sequence

from crmlens.core.errors import ContractViolationError
from crmlens.core.records.account_index import AccountIndex
from crmlens.core.records.dates import days_between
from crmlens.core.records.linked_items import LinkedItemsIndex
from crmlens.core.records.models import AccountSummary, Contact, Opportunity
from crmlens.core.redaction import mask_email
from crmlens.core.retention.models import Disposition, RetentionDecision, RetentionReason, SweepMode, SweepSummary
from crmlens.core.retention.protected import EMPTY_PROTECTED, ProtectedIdentifierSet


RETENTION_WINDOW_DAYS = 5 * 365
RECENT_YEARS_BACK = 5

EXEMPT_ACCOUNT_TYPES = frozenset({"Partner", "Competitor", "Other"})

ANONYMIZED_GIVEN_NAME = "Anonymized"
ANONYMIZED_FAMILY_NAME = "GDPR"


def recent_opportunity_count(opportunities: Sequence[Opportunity], today: _dt.date) -> int:
    """
    Opportunities entered less than the retention window ago. An opportunity
    without an entry date counts as recent.
    """
    n = 0
    for opp in opportunities:
        if opp.date_entered is None or days_between(opp.date_entered, today) < RETENTION_WINDOW_DAYS:
            n += 1
    return n


def description_is_old(description: str, today: _dt.date) -> bool:
    if not description:
        return True
    for year in range(today.year, today.year - RECENT_YEARS_BACK - 1, -1):
        if str(year) in description:
            return False
    return True


def created_before_window(created_at: Optional[_dt.datetime], today: _dt.date) -> bool:
    if created_at is None:
        return False
    return days_between(created_at, today) > RETENTION_WINDOW_DAYS


def is_anonymized(contact: Contact) -> bool:
    return contact.given_name == ANONYMIZED_GIVEN_NAME and contact.family_name == ANONYMIZED_FAMILY_NAME


def explain(
    contact: Contact,
    *,
    account: Optional[AccountSummary],
    opportunities: Sequence[Opportunity],
    description: str,
    created_at: Optional[_dt.datetime],
    today: _dt.date,
    protected: ProtectedIdentifierSet = EMPTY_PROTECTED,
) -> RetentionDecision:
    """
    Classify `contact` and report why.

    `account` is the summary of the contact's account (None or empty when
    the contact has none, or it is unknown); `opportunities` are the
    opportunities linked to that account.
    """
    if not contact.id:
        raise ContractViolationError("Contact without id reached the retention classifier.")

    account_type = account.account_type if account is not None else ""
    if account_type in EXEMPT_ACCOUNT_TYPES:
        return RetentionDecision(Disposition.EXEMPT, (RetentionReason.EXEMPT_ACCOUNT_TYPE,))

    if is_anonymized(contact):
        return RetentionDecision(Disposition.EXEMPT, (RetentionReason.ALREADY_ANONYMIZED,))

    has_account = bool(contact.account_id)
    recent = recent_opportunity_count(opportunities, today) if has_account else 0

    keep: List[RetentionReason] = []
    if has_account and recent > 0:
        keep.append(RetentionReason.RECENT_OPPORTUNITIES)
    if not description_is_old(description, today):
        keep.append(RetentionReason.RECENT_DESCRIPTION)
    if not created_before_window(created_at, today):
        keep.append(RetentionReason.CREATED_RECENTLY)
    if keep:
        return RetentionDecision(Disposition.EXEMPT, tuple(keep), recent_opportunities=recent)

    if has_account:
        decision = RetentionDecision(Disposition.ANONYMIZE, (RetentionReason.INACTIVE_ACCOUNT,), recent_opportunities=recent)
    else:
        decision = RetentionDecision(Disposition.DELETE, (RetentionReason.NO_ACCOUNT,))

    # never touch protected records, whatever the sweep would do
    if contact.preferred_email and contact.preferred_email in protected:
        return RetentionDecision(
            Disposition.EXEMPT,
            decision.reasons + (RetentionReason.PROTECTED_EMAIL,),
            recent_opportunities=recent,
        )
    return decision


def classify(
    contact: Contact,
    *,
    account: Optional[AccountSummary],
    opportunities: Sequence[Opportunity],
    description: str,
    created_at: Optional[_dt.datetime],
    today: _dt.date,
    protected: ProtectedIdentifierSet = EMPTY_PROTECTED,
) -> Disposition:
    return explain(
        contact,
        account=account,
        opportunities=opportunities,
        description=description,
        created_at=created_at,
        today=today,
        protected=protected,
    ).disposition


def accept(disposition: Disposition, mode: SweepMode) -> bool:
    if mode == SweepMode.FULLY_DELETE:
        return disposition == Disposition.DELETE
    if mode == SweepMode.ANONYMIZE:
        return disposition == Disposition.ANONYMIZE
    return False


class RetentionClassifier:
    """
    Binds the classifier to the indices it reads. Holds no per-contact state:
    the same contact, indices and `today` always give the same result.
    """

    def __init__(
        self,
        *,
        accounts: AccountIndex,
        linked_items: LinkedItemsIndex,
        protected: ProtectedIdentifierSet = EMPTY_PROTECTED,
        logger=None,
    ):
        self.accounts = accounts
        self.linked_items = linked_items
        self.protected = frozenset(protected)
        self.logger = logger

    def has_protected_identifiers(self) -> bool:
        return bool(self.protected)

    def explain(self, contact: Contact, *, today: _dt.date) -> RetentionDecision:
        account = self.accounts.account_by_id(contact.account_id) if contact.account_id else None
        opportunities = self.linked_items.opportunities_for_account(contact.account_id) if contact.account_id else []
        decision = explain(
            contact,
            account=account,
            opportunities=opportunities,
            description=contact.note,
            created_at=contact.date_created,
            today=today,
            protected=self.protected,
        )
        if self.logger and RetentionReason.PROTECTED_EMAIL in decision.reasons:
            against = "deletion" if RetentionReason.NO_ACCOUNT in decision.reasons else "anonymization"
            self.logger.debug(f"Protected identifier {mask_email(contact.preferred_email)} kept against {against}")
        return decision

    def classify(self, contact: Contact, *, today: _dt.date) -> Disposition:
        return self.explain(contact, today=today).disposition

    def accepts(self, contact: Contact, mode: SweepMode, *, today: _dt.date) -> bool:
        if mode == SweepMode.OFF:
            return False
        return accept(self.classify(contact, today=today), mode)

    def summarize(self, contacts: Iterable[Contact], *, today: _dt.date) -> SweepSummary:
        summary = SweepSummary()
        for c in contacts:
            summary.add(self.explain(c, today=today))
        return summary
