from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from crmlens.core.events import RowRangeChanged, Signal, SourceSubsystem
from crmlens.core.records.models import Record, RecordType


class RecordRepository:
    """
    Ordered, per-type tables of the records mirrored locally.

    Row numbers are positions in a type's table; every mutation is announced
    as one bounded, inclusive row range so listeners recompute only that range.
    """

    def __init__(self, *, logger=None):
        self.logger = logger
        self._rows: Dict[RecordType, List[Record]] = {t: [] for t in RecordType}
        self._index: Dict[RecordType, Dict[str, int]] = {t: {} for t in RecordType}
        self.rows_inserted = Signal("rows.inserted", logger=logger)
        self.rows_changed = Signal("rows.changed", logger=logger)
        self.rows_removed = Signal("rows.removed", logger=logger)

    # ---- queries ----
    def get_by_id(self, record_type: RecordType, record_id: str) -> Optional[Record]:
        t = RecordType(record_type)
        row = self._index[t].get(str(record_id or ""))
        if row is None:
            return None
        return self._rows[t][row]

    def records_of_type(self, record_type: RecordType) -> List[Record]:
        return list(self._rows[RecordType(record_type)])

    def row_count(self, record_type: RecordType) -> int:
        return len(self._rows[RecordType(record_type)])

    def record_at(self, record_type: RecordType, row: int) -> Record:
        return self._rows[RecordType(record_type)][int(row)]

    def row_of(self, record_type: RecordType, record_id: str) -> Optional[int]:
        return self._index[RecordType(record_type)].get(str(record_id or ""))

    # ---- mutations ----
    def insert(self, record: Record) -> int:
        return self.insert_many([record])[0]

    def insert_many(self, records: Iterable[Record]) -> List[int]:
        """
        Append records, grouped per type. Records whose id is already present
        replace the stored version (announced as a change, not an insert).
        """
        appended: Dict[RecordType, List[int]] = {}
        rows: List[int] = []
        for rec in records:
            t = rec.record_type
            if not rec.id:
                raise ValueError(f"{t.value} record without id")
            existing = self._index[t].get(rec.id)
            if existing is not None:
                self._rows[t][existing] = rec
                self._emit_changed(self.rows_changed, t, existing, existing)
                rows.append(existing)
                continue
            self._rows[t].append(rec)
            row = len(self._rows[t]) - 1
            self._index[t][rec.id] = row
            appended.setdefault(t, []).append(row)
            rows.append(row)
        for t, new_rows in appended.items():
            self._emit_changed(self.rows_inserted, t, min(new_rows), max(new_rows))
        return rows

    def update(self, record: Record) -> int:
        t = record.record_type
        row = self._index[t].get(record.id)
        if row is None:
            raise KeyError(f"unknown {t.value} id {record.id!r}")
        self._rows[t][row] = record
        self._emit_changed(self.rows_changed, t, row, row)
        return row

    def remove(self, record_type: RecordType, record_id: str) -> bool:
        t = RecordType(record_type)
        row = self._index[t].pop(str(record_id or ""), None)
        if row is None:
            return False
        del self._rows[t][row]
        # rows after the removed one shift up by one
        for rid, r in list(self._index[t].items()):
            if r > row:
                self._index[t][rid] = r - 1
        self._emit_changed(self.rows_removed, t, row, row)
        return True

    def clear(self) -> None:
        for t in RecordType:
            n = len(self._rows[t])
            self._rows[t] = []
            self._index[t] = {}
            if n:
                self._emit_changed(self.rows_removed, t, 0, n - 1)

    def _emit_changed(self, signal: Signal, record_type: RecordType, first: int, last: int) -> None:
        signal.emit(
            RowRangeChanged(
                event_type=signal.name,
                source_subsystem=SourceSubsystem.repository,
                record_type=record_type.value,
                first=first,
                last=last,
            )
        )
