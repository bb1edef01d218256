from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from crmlens.core.events.models import BaseEvent


EventHandler = Callable[[BaseEvent], None]


@dataclass
class SignalStats:
    emitted_total: int = 0
    delivered_total: int = 0
    handler_errors_total: int = 0
    subscribers: int = 0
    per_type_emitted: Dict[str, int] = field(default_factory=dict)


@dataclass
class _Sub:
    handler: EventHandler
    priority: int


class Signal:
    """
    Synchronous in-process notification channel.

    - emit delivers to every subscriber before returning (no queue, no threads)
    - subscribers run in ascending priority, then subscription order
    - handler failures are isolated: logged, counted, remaining handlers still run
    """

    def __init__(self, name: str, *, logger=None):
        self.name = str(name)
        self.logger = logger
        self._subs: List[_Sub] = []
        self._stats = SignalStats()

    def subscribe(self, handler: EventHandler, priority: int = 50) -> None:
        if not callable(handler):
            raise ValueError("handler must be callable")
        self._subs.append(_Sub(handler=handler, priority=int(priority)))
        # stable sort keeps subscription order within a priority
        self._subs.sort(key=lambda s: s.priority)
        self._stats.subscribers = len(self._subs)

    def unsubscribe(self, handler: EventHandler) -> int:
        # == rather than `is`: bound methods are recreated on every attribute access
        keep = [s for s in self._subs if s.handler != handler]
        removed = len(self._subs) - len(keep)
        self._subs = keep
        self._stats.subscribers = len(self._subs)
        return removed

    def emit(self, ev: BaseEvent) -> int:
        """
        Returns the number of handlers that completed without raising.
        """
        self._stats.emitted_total += 1
        self._stats.per_type_emitted[ev.event_type] = int(self._stats.per_type_emitted.get(ev.event_type, 0) + 1)
        delivered = 0
        # snapshot: handlers may (un)subscribe while we deliver
        for s in list(self._subs):
            try:
                s.handler(ev)
                delivered += 1
            except Exception:  # noqa: BLE001
                self._stats.handler_errors_total += 1
                if self.logger:
                    self.logger.exception(f"Handler {getattr(s.handler, '__name__', 'handler')} failed on {self.name}:{ev.event_type}")
        self._stats.delivered_total += delivered
        return delivered

    def stats(self) -> Dict[str, Any]:
        st = self._stats
        return {
            "name": self.name,
            "emitted_total": st.emitted_total,
            "delivered_total": st.delivered_total,
            "handler_errors_total": st.handler_errors_total,
            "subscribers": st.subscribers,
            "per_type_emitted": dict(st.per_type_emitted),
        }

    def __len__(self) -> int:
        return len(self._subs)
