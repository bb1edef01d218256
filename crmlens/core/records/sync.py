from __future__ import annotations

from typing import Set

from crmlens.core.events import BaseEvent, RowRangeChanged
from crmlens.core.records.account_index import AccountIndex
from crmlens.core.records.linked_items import LinkedItemsIndex
from crmlens.core.records.models import Account, Contact, Opportunity, RecordType
from crmlens.core.records.repository import RecordRepository


class IndexSync:
    """
    Keeps the account index and the linked-items index in step with the
    repository: every account, contact or opportunity row that is inserted,
    changed or removed is pushed into the indices.

    Removal events only carry the vacated row range, so removed ids are found
    by comparing the indices against the repository's live ids.
    """

    def __init__(self, repository: RecordRepository, *, accounts: AccountIndex, linked_items: LinkedItemsIndex, logger=None):
        self.repository = repository
        self.accounts = accounts
        self.linked_items = linked_items
        self.logger = logger
        repository.rows_inserted.subscribe(self._on_rows_stored, priority=10)
        repository.rows_changed.subscribe(self._on_rows_stored, priority=10)
        repository.rows_removed.subscribe(self._on_rows_removed, priority=10)

    def close(self) -> None:
        self.repository.rows_inserted.unsubscribe(self._on_rows_stored)
        self.repository.rows_changed.unsubscribe(self._on_rows_stored)
        self.repository.rows_removed.unsubscribe(self._on_rows_removed)

    def _live_ids(self, record_type: RecordType) -> Set[str]:
        return {r.id for r in self.repository.records_of_type(record_type)}

    def _on_rows_stored(self, ev: BaseEvent) -> None:
        if not isinstance(ev, RowRangeChanged):
            return
        t = RecordType(ev.record_type)
        for row in ev.rows():
            rec = self.repository.record_at(t, row)
            if isinstance(rec, Account):
                self.accounts.upsert(rec)
            elif isinstance(rec, Opportunity):
                self.linked_items.add_opportunity(rec)
            elif isinstance(rec, Contact):
                self.linked_items.add_contact(rec)

    def _on_rows_removed(self, ev: BaseEvent) -> None:
        if not isinstance(ev, RowRangeChanged):
            return
        t = RecordType(ev.record_type)
        if t == RecordType.ACCOUNT:
            live = self._live_ids(t)
            gone = [aid for aid in self.accounts.ids() if aid not in live]
            for aid in gone:
                self.accounts.remove(aid)
        elif t == RecordType.OPPORTUNITY:
            live = self._live_ids(t)
            gone = [oid for oid in self.linked_items.opportunity_ids() if oid not in live]
            for oid in gone:
                self.linked_items.remove_opportunity(oid)
        elif t == RecordType.CONTACT:
            live = self._live_ids(t)
            gone = [cid for cid in self.linked_items.contact_ids() if cid not in live]
            for cid in gone:
                self.linked_items.remove_contact(cid)
        else:
            return
        if self.logger and gone:
            self.logger.debug(f"Dropped {len(gone)} removed {t.value} record(s) from the indices")
