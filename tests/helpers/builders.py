from __future__ import annotations

import datetime as _dt
from typing import Any, Iterable, List, Optional

from crmlens.core.records.account_index import AccountIndex
from crmlens.core.records.linked_items import LinkedItemsIndex
from crmlens.core.records.models import Account, Campaign, Contact, Lead, LinkedItem, Opportunity
from crmlens.core.records.repository import RecordRepository
from crmlens.core.records.sync import IndexSync
from crmlens.core.retention.classifier import RetentionClassifier


TODAY = _dt.date(2024, 6, 1)


def days_ago(n: int, today: _dt.date = TODAY) -> _dt.datetime:
    d = today - _dt.timedelta(days=n)
    return _dt.datetime(d.year, d.month, d.day, 12, 0, 0)


def make_account(id: str = "a1", **kw: Any) -> Account:  # noqa: A002
    return Account(id=id, **kw)


def make_contact(id: str = "c1", **kw: Any) -> Contact:  # noqa: A002
    return Contact(id=id, **kw)


def make_lead(id: str = "l1", **kw: Any) -> Lead:  # noqa: A002
    return Lead(id=id, **kw)


def make_campaign(id: str = "cp1", **kw: Any) -> Campaign:  # noqa: A002
    return Campaign(id=id, **kw)


def make_opportunity(id: str = "o1", **kw: Any) -> Opportunity:  # noqa: A002
    return Opportunity(id=id, **kw)


def old_contact(id: str = "c1", **kw: Any) -> Contact:  # noqa: A002
    """
    A contact that passes every keep check on its own: created long ago,
    no description.
    """
    kw.setdefault("given_name", "Jane")
    kw.setdefault("family_name", "Doe")
    kw.setdefault("date_created", days_ago(6 * 365))
    return Contact(id=id, **kw)


class World:
    """
    Repository plus the indices built from it, as the application wires them.
    """

    def __init__(self, records: Iterable[Any] = (), linked_items: Iterable[LinkedItem] = (), protected: Iterable[str] = ()):
        self.repository = RecordRepository()
        recs = list(records)
        if recs:
            self.repository.insert_many(recs)
        self.accounts = AccountIndex()
        self.accounts.load(r for r in recs if isinstance(r, Account))
        self.linked_items = LinkedItemsIndex.build(self.repository, linked_items)
        self.sync = IndexSync(self.repository, accounts=self.accounts, linked_items=self.linked_items)
        self.classifier = RetentionClassifier(accounts=self.accounts, linked_items=self.linked_items, protected=frozenset(protected))


def build_world(*records: Any, linked_items: Optional[List[LinkedItem]] = None, protected: Iterable[str] = ()) -> World:
    return World(records, linked_items or [], protected)


class RecordingLogger:
    def __init__(self) -> None:
        self.lines: List[str] = []

    def _rec(self, level: str, msg: str) -> None:
        self.lines.append(f"{level}:{msg}")

    def debug(self, msg, *_a, **_k):  # noqa: ANN001
        self._rec("DEBUG", msg)

    def info(self, msg, *_a, **_k):  # noqa: ANN001
        self._rec("INFO", msg)

    def warning(self, msg, *_a, **_k):  # noqa: ANN001
        self._rec("WARNING", msg)

    def error(self, msg, *_a, **_k):  # noqa: ANN001
        self._rec("ERROR", msg)

    def exception(self, msg, *_a, **_k):  # noqa: ANN001
        self._rec("EXCEPTION", msg)
