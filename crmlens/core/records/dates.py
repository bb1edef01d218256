from __future__ import annotations

import datetime as _dt
from typing import Any, Optional


_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
)


def datetime_from_string(value: Any) -> Optional[_dt.datetime]:
    """
    Parse the date strings the CRM server sends (UTC, no offset).
    Empty or unparseable input yields None.
    """
    if value is None:
        return None
    if isinstance(value, _dt.datetime):
        return value
    if isinstance(value, _dt.date):
        return _dt.datetime(value.year, value.month, value.day)
    s = str(value).strip()
    if not s:
        return None
    for fmt in _FORMATS:
        try:
            return _dt.datetime.strptime(s, fmt)
        except ValueError:
            continue
    try:
        return _dt.datetime.fromisoformat(s)
    except ValueError:
        return None


def date_from_string(value: Any) -> Optional[_dt.date]:
    if isinstance(value, _dt.date) and not isinstance(value, _dt.datetime):
        return value
    dt = datetime_from_string(value)
    return dt.date() if dt is not None else None


def days_between(earlier: _dt.date, later: _dt.date) -> int:
    """
    Whole days from `earlier` to `later` (negative when `earlier` is in the future).
    """
    if isinstance(earlier, _dt.datetime):
        earlier = earlier.date()
    if isinstance(later, _dt.datetime):
        later = later.date()
    return (later - earlier).days
