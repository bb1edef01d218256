from __future__ import annotations

from collections import defaultdict
from typing import Dict, Generic, Iterable, List, Tuple, TypeVar

from crmlens.core.records.models import Contact, LinkedItem, LinkedItemType, Opportunity, RecordType
from crmlens.core.records.repository import RecordRepository


_Key = Tuple[LinkedItemType, str]

_R = TypeVar("_R", Opportunity, Contact)


class _Grouped(Generic[_R]):
    """
    Records grouped by account id, one entry per record id. Storing a record
    whose id is already known replaces it (moving it when its account changed).
    """

    def __init__(self) -> None:
        self.by_id: Dict[str, _R] = {}
        self.by_account: Dict[str, List[_R]] = defaultdict(list)

    def put(self, rec: _R) -> None:
        old = self.by_id.get(rec.id)
        self.by_id[rec.id] = rec
        if old is not None and old.account_id == rec.account_id:
            if rec.account_id:
                group = self.by_account[rec.account_id]
                group[:] = [rec if r.id == rec.id else r for r in group]
            return
        if old is not None:
            self._unlink(old)
        if rec.account_id:
            self.by_account[rec.account_id].append(rec)

    def drop(self, rec_id: str) -> bool:
        old = self.by_id.pop(rec_id, None)
        if old is None:
            return False
        self._unlink(old)
        return True

    def _unlink(self, rec: _R) -> None:
        group = self.by_account.get(rec.account_id)
        if not group:
            return
        group[:] = [r for r in group if r.id != rec.id]
        if not group:
            del self.by_account[rec.account_id]

    def of(self, account_id: str) -> List[_R]:
        return list(self.by_account.get(str(account_id or ""), ()))


class LinkedItemsIndex:
    """
    Aggregation of what hangs off an account or a contact:
    opportunities, contacts, notes, emails, documents.

    Lookups return ordered lists (insertion order); counts are `len(...)`.
    Opportunities and contacts are kept per id so repository updates replace
    the stored version instead of adding a second one.
    """

    def __init__(self) -> None:
        self._opps: _Grouped[Opportunity] = _Grouped()
        self._contacts: _Grouped[Contact] = _Grouped()
        self._by_account: Dict[_Key, List[LinkedItem]] = defaultdict(list)
        self._by_contact: Dict[_Key, List[LinkedItem]] = defaultdict(list)

    @classmethod
    def build(cls, repository: RecordRepository, linked_items: Iterable[LinkedItem] = ()) -> "LinkedItemsIndex":
        idx = cls()
        for opp in repository.records_of_type(RecordType.OPPORTUNITY):
            idx.add_opportunity(opp)
        for contact in repository.records_of_type(RecordType.CONTACT):
            idx.add_contact(contact)
        for item in linked_items:
            idx.add_item(item)
        return idx

    def add_opportunity(self, opp: Opportunity) -> None:
        self._opps.put(opp)

    def remove_opportunity(self, opportunity_id: str) -> bool:
        return self._opps.drop(str(opportunity_id or ""))

    def opportunity_ids(self) -> List[str]:
        return list(self._opps.by_id)

    def add_contact(self, contact: Contact) -> None:
        self._contacts.put(contact)

    def remove_contact(self, contact_id: str) -> bool:
        return self._contacts.drop(str(contact_id or ""))

    def contact_ids(self) -> List[str]:
        return list(self._contacts.by_id)

    def add_item(self, item: LinkedItem) -> None:
        if item.account_id:
            self._by_account[(item.item_type, item.account_id)].append(item)
        if item.contact_id:
            self._by_contact[(item.item_type, item.contact_id)].append(item)

    # ---- queries (never create entries) ----
    def opportunities_for_account(self, account_id: str) -> List[Opportunity]:
        return self._opps.of(account_id)

    def contacts_for_account(self, account_id: str) -> List[Contact]:
        return self._contacts.of(account_id)

    def notes_for_account(self, account_id: str) -> List[LinkedItem]:
        return self._items(self._by_account, LinkedItemType.NOTE, account_id)

    def notes_for_contact(self, contact_id: str) -> List[LinkedItem]:
        return self._items(self._by_contact, LinkedItemType.NOTE, contact_id)

    def emails_for_account(self, account_id: str) -> List[LinkedItem]:
        return self._items(self._by_account, LinkedItemType.EMAIL, account_id)

    def emails_for_contact(self, contact_id: str) -> List[LinkedItem]:
        return self._items(self._by_contact, LinkedItemType.EMAIL, contact_id)

    def documents_for_account(self, account_id: str) -> List[LinkedItem]:
        return self._items(self._by_account, LinkedItemType.DOCUMENT, account_id)

    def activity_count_for_account(self, account_id: str) -> int:
        """
        Documents + notes + emails: an account at 0 has no recorded activity
        at all, which is what a GDPR cleanup looks for.
        """
        return (
            len(self.documents_for_account(account_id))
            + len(self.notes_for_account(account_id))
            + len(self.emails_for_account(account_id))
        )

    @staticmethod
    def _items(table: Dict[_Key, List[LinkedItem]], kind: LinkedItemType, owner_id: str) -> List[LinkedItem]:
        return list(table.get((kind, str(owner_id or "")), ()))
