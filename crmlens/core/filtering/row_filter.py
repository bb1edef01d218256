from __future__ import annotations

import datetime as _dt
from typing import Callable, Iterable, List, Optional

from crmlens.core.events import BaseEvent, Signal, SourceSubsystem
from crmlens.core.records.account_index import AccountIndex
from crmlens.core.records.models import Contact, Record, RecordType
from crmlens.core.records.repository import RecordRepository
from crmlens.core.retention.classifier import RetentionClassifier
from crmlens.core.retention.models import SweepMode
from crmlens.core.search.predicates import matches


class RecordFilter:
    """
    Row-accept decision for one record table: free-text query, plus the GDPR
    sweep for contact tables.

    With a sweep active, a contact row is shown only if the sweep would act on
    it in the selected mode and it also matches the query.
    """

    def __init__(
        self,
        record_type: RecordType,
        *,
        accounts: AccountIndex,
        classifier: Optional[RetentionClassifier] = None,
        today: Optional[Callable[[], _dt.date]] = None,
        logger=None,
    ):
        self.record_type = RecordType(record_type)
        self.accounts = accounts
        self.classifier = classifier
        self._today = today or _dt.date.today
        self.logger = logger
        self._filter = ""
        self._mode = SweepMode.OFF
        self.invalidated = Signal("filter.invalidated", logger=logger)
        # account name and country feed contact/opportunity matching
        accounts.account_modified.subscribe(self._on_account_changed)
        accounts.account_removed.subscribe(self._on_account_changed)

    def close(self) -> None:
        self.accounts.account_modified.unsubscribe(self._on_account_changed)
        self.accounts.account_removed.unsubscribe(self._on_account_changed)

    def _on_account_changed(self, ev: BaseEvent) -> None:
        if self.is_active():
            self._invalidate()

    # ---- session inputs ----
    def filter_string(self) -> str:
        return self._filter

    def set_filter_string(self, query: str) -> None:
        self._filter = str(query or "")
        self._invalidate()

    def filter_description(self) -> str:
        if self._filter:
            return f'containing "{self._filter}"'
        return ""

    def sweep_mode(self) -> SweepMode:
        return self._mode

    def set_sweep_mode(self, mode: SweepMode) -> None:
        mode = SweepMode(mode)
        if mode != SweepMode.OFF:
            if self.record_type != RecordType.CONTACT:
                raise ValueError(f"GDPR sweeps apply to contacts, not {self.record_type.value}")
            if self.classifier is None:
                raise ValueError("GDPR sweep needs a retention classifier")
        self._mode = mode
        self._invalidate()

    def has_protected_identifiers(self) -> bool:
        return self.classifier is not None and self.classifier.has_protected_identifiers()

    def is_active(self) -> bool:
        return bool(self._filter) or self._mode != SweepMode.OFF

    # ---- decisions ----
    def accepts(self, record: Record, today: Optional[_dt.date] = None) -> bool:
        if not self.is_active():
            return True
        if record.record_type != self.record_type:
            raise TypeError(f"{self.record_type.value} filter got a {record.record_type.value} record")
        if self._mode != SweepMode.OFF and isinstance(record, Contact):
            if self.classifier is None:
                raise ValueError("GDPR sweep needs a retention classifier")
            day = today if today is not None else self._today()
            if not self.classifier.accepts(record, self._mode, today=day):
                return False
        return matches(record, self._filter, self.accounts)

    def filter_rows(self, records: Iterable[Record], today: Optional[_dt.date] = None) -> List[Record]:
        """
        One filtering pass; `today` is read once for the whole pass.
        """
        day = today if today is not None else self._today()
        return [r for r in records if self.accepts(r, today=day)]

    def filter_repository(self, repository: RecordRepository, today: Optional[_dt.date] = None) -> List[Record]:
        return self.filter_rows(repository.records_of_type(self.record_type), today=today)

    def _invalidate(self) -> None:
        if self.logger:
            self.logger.debug(f"{self.record_type.value} filter now query={self._filter!r} sweep={self._mode.value}")
        self.invalidated.emit(
            BaseEvent(
                event_type="filter.invalidated",
                source_subsystem=SourceSubsystem.filter,
                payload={"record_type": self.record_type.value, "query_len": len(self._filter), "sweep_mode": self._mode.value},
            )
        )
