"""
Locally mirrored CRM records and the read-mostly indices built over them.
"""

from crmlens.core.records.account_index import AccountIndex
from crmlens.core.records.linked_items import LinkedItemsIndex
from crmlens.core.records.models import (
    Account,
    AccountSummary,
    Campaign,
    Contact,
    Lead,
    LinkedItem,
    LinkedItemType,
    Opportunity,
    Record,
    RecordType,
    parse_record,
)
from crmlens.core.records.repository import RecordRepository

__all__ = [
    "Account",
    "AccountIndex",
    "AccountSummary",
    "Campaign",
    "Contact",
    "Lead",
    "LinkedItem",
    "LinkedItemType",
    "LinkedItemsIndex",
    "Opportunity",
    "Record",
    "RecordRepository",
    "RecordType",
    "parse_record",
]
