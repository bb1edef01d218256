from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional

from crmlens.core.records.dates import days_between
from crmlens.core.records.models import Opportunity


# after this many days without modification an opportunity is cold
DAYS_UNTIL_COLD = 90
# after this many days past a due date the step is heavily overdue
DAYS_UNTIL_HEAVILY_DUE = 90
# any overdue date must be clearly visible, even one day past due
MIN_OVERDUE_INTENSITY = 0.3


class Polarity(str, Enum):
    POSITIVE = "POSITIVE"  # healthy / warm
    NEGATIVE = "NEGATIVE"  # overdue / cold


class StalenessSignal(str, Enum):
    LAST_MODIFIED_DATE = "LAST_MODIFIED_DATE"
    NEXT_STEP_DATE = "NEXT_STEP_DATE"
    CLOSE_DATE = "CLOSE_DATE"


ALL_SIGNALS: FrozenSet[StalenessSignal] = frozenset(StalenessSignal)


@dataclass(frozen=True)
class Urgency:
    """
    How strongly to blend a cell towards its polarity's colour, in (0, 1].
    """

    intensity: float
    polarity: Polarity


@dataclass(frozen=True)
class StalenessScore:
    modified: Optional[Urgency] = None
    next_step: Optional[Urgency] = None
    close_date: Optional[Urgency] = None

    def has_signal(self) -> bool:
        return self.modified is not None or self.next_step is not None or self.close_date is not None

    def to_dict(self) -> Dict[str, Optional[Dict[str, object]]]:
        def one(u: Optional[Urgency]) -> Optional[Dict[str, object]]:
            return None if u is None else {"intensity": round(u.intensity, 4), "polarity": u.polarity.value}

        return {"modified": one(self.modified), "next_step": one(self.next_step), "close_date": one(self.close_date)}


def _clamp(v: int, lo: int, hi: int) -> int:
    return lo if v < lo else hi if v > hi else v


def modified_urgency(date_modified: Optional[_dt.date], today: _dt.date) -> Optional[Urgency]:
    if date_modified is None:
        return None
    d = _clamp(days_between(date_modified, today), 0, DAYS_UNTIL_COLD)
    if d == DAYS_UNTIL_COLD:
        return None
    return Urgency(abs(d - DAYS_UNTIL_COLD) / DAYS_UNTIL_COLD, Polarity.POSITIVE)


def overdue_urgency(due: Optional[_dt.date], today: _dt.date) -> Optional[Urgency]:
    if due is None:
        return None
    d = _clamp(days_between(due, today), 0, DAYS_UNTIL_HEAVILY_DUE)
    if d == 0:
        return None
    return Urgency(max(MIN_OVERDUE_INTENSITY, d / DAYS_UNTIL_HEAVILY_DUE), Polarity.NEGATIVE)


def score(opportunity: Opportunity, today: _dt.date, signals: Iterable[StalenessSignal] = ALL_SIGNALS) -> StalenessScore:
    wanted = frozenset(signals)
    return StalenessScore(
        modified=modified_urgency(opportunity.date_modified, today) if StalenessSignal.LAST_MODIFIED_DATE in wanted else None,
        next_step=overdue_urgency(opportunity.next_step_date, today) if StalenessSignal.NEXT_STEP_DATE in wanted else None,
        close_date=overdue_urgency(opportunity.date_closed, today) if StalenessSignal.CLOSE_DATE in wanted else None,
    )
