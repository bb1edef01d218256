from crmlens.core.staleness.scorer import (
    ALL_SIGNALS,
    Polarity,
    StalenessScore,
    StalenessSignal,
    Urgency,
    modified_urgency,
    overdue_urgency,
    score,
)
from crmlens.core.staleness.tracker import StalenessTracker

__all__ = [
    "ALL_SIGNALS",
    "Polarity",
    "StalenessScore",
    "StalenessSignal",
    "StalenessTracker",
    "Urgency",
    "modified_urgency",
    "overdue_urgency",
    "score",
]
