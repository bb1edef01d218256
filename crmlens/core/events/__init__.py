"""
Synchronous change notifications shared by the repository, the indices and
the views built on top of them.
"""

from crmlens.core.events.models import AccountChanged, BaseEvent, EventSeverity, RowRangeChanged, SourceSubsystem
from crmlens.core.events.signal import EventHandler, Signal

__all__ = [
    "AccountChanged",
    "BaseEvent",
    "EventHandler",
    "EventSeverity",
    "RowRangeChanged",
    "Signal",
    "SourceSubsystem",
]
