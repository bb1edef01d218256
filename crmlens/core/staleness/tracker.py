from __future__ import annotations

import contextlib
import datetime as _dt
import time
from typing import Callable, Dict, Iterable, Iterator, Optional

from crmlens.core.events import BaseEvent, RowRangeChanged, Signal, SourceSubsystem
from crmlens.core.records.models import Opportunity, RecordType
from crmlens.core.records.repository import RecordRepository
from crmlens.core.staleness.scorer import ALL_SIGNALS, StalenessScore, StalenessSignal, score


class StalenessTracker:
    """
    Keeps staleness scores for the opportunity table in sync with the repository.

    Only rows named by a change event are recomputed. Scores are cached by
    opportunity id; rows without any signal have no entry. Recomputing emits
    `staleness.changed` for the same range; a listener that modifies the
    repository in response triggers a nested update, which is ignored while
    the outer one runs.
    """

    def __init__(
        self,
        repository: RecordRepository,
        *,
        signals: Iterable[StalenessSignal] = ALL_SIGNALS,
        today: Optional[Callable[[], _dt.date]] = None,
        logger=None,
    ):
        self.repository = repository
        self.signals = frozenset(signals)
        self._today = today or _dt.date.today
        self.logger = logger
        self._scores: Dict[str, StalenessScore] = {}
        self._updating = False
        self.changed = Signal("staleness.changed", logger=logger)

        repository.rows_inserted.subscribe(self._on_rows_changed)
        repository.rows_changed.subscribe(self._on_rows_changed)
        repository.rows_removed.subscribe(self._on_rows_removed)
        self.update_all()

    def close(self) -> None:
        self.repository.rows_inserted.unsubscribe(self._on_rows_changed)
        self.repository.rows_changed.unsubscribe(self._on_rows_changed)
        self.repository.rows_removed.unsubscribe(self._on_rows_removed)

    # ---- queries ----
    def score_for(self, opportunity_id: str) -> Optional[StalenessScore]:
        return self._scores.get(str(opportunity_id or ""))

    def scores(self) -> Dict[str, StalenessScore]:
        return dict(self._scores)

    def is_updating(self) -> bool:
        return self._updating

    # ---- recompute ----
    @contextlib.contextmanager
    def _recompute_guard(self) -> Iterator[None]:
        self._updating = True
        try:
            yield
        finally:
            self._updating = False

    def update_all(self) -> bool:
        n = self.repository.row_count(RecordType.OPPORTUNITY)
        if n == 0:
            return False
        return self.update(0, n - 1)

    def update(self, first: int, last: int) -> bool:
        """
        Recompute rows [first, last]. Returns False when nothing was done
        (nested call, no enabled signal, or empty range).
        """
        if self._updating:
            return False
        if not self.signals:
            return False
        n = self.repository.row_count(RecordType.OPPORTUNITY)
        if n == 0:
            return False
        if first < 0 or last < first or last >= n:
            raise IndexError(f"row range [{first}, {last}] outside opportunity table of {n} rows")

        with self._recompute_guard():
            started = time.perf_counter()
            today = self._today()
            for row in range(first, last + 1):
                opp = self.repository.record_at(RecordType.OPPORTUNITY, row)
                if not isinstance(opp, Opportunity):
                    continue
                sc = score(opp, today, self.signals)
                if sc.has_signal():
                    self._scores[opp.id] = sc
                else:
                    self._scores.pop(opp.id, None)
            if self.logger:
                self.logger.debug(f"Staleness recomputed rows {first}-{last} in {(time.perf_counter() - started) * 1000:.1f} ms")
            self.changed.emit(
                RowRangeChanged(
                    event_type="staleness.changed",
                    source_subsystem=SourceSubsystem.staleness,
                    record_type=RecordType.OPPORTUNITY.value,
                    first=first,
                    last=last,
                )
            )
        return True

    def prune(self) -> int:
        live = {r.id for r in self.repository.records_of_type(RecordType.OPPORTUNITY)}
        gone = [k for k in self._scores if k not in live]
        for k in gone:
            del self._scores[k]
        return len(gone)

    # ---- repository notifications ----
    def _on_rows_changed(self, ev: BaseEvent) -> None:
        if not isinstance(ev, RowRangeChanged) or ev.record_type != RecordType.OPPORTUNITY.value:
            return
        self.update(ev.first, ev.last)

    def _on_rows_removed(self, ev: BaseEvent) -> None:
        if not isinstance(ev, RowRangeChanged) or ev.record_type != RecordType.OPPORTUNITY.value:
            return
        self.prune()
