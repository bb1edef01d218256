from __future__ import annotations

import pytest

from crmlens.core.records.models import RecordType, parse_record
from crmlens.core.records.repository import RecordRepository

from .helpers.builders import make_account, make_contact, make_opportunity


def _recorder(signal):
    got = []
    signal.subscribe(lambda ev: got.append((ev.record_type, ev.first, ev.last)))
    return got


def test_insert_many_emits_one_range_per_type():
    repo = RecordRepository()
    got = _recorder(repo.rows_inserted)
    repo.insert_many([make_contact("c1"), make_account("a1"), make_contact("c2")])
    assert sorted(got) == [("account", 0, 0), ("contact", 0, 1)]
    assert repo.row_count(RecordType.CONTACT) == 2
    assert repo.row_of(RecordType.CONTACT, "c2") == 1


def test_reinsert_existing_id_is_a_change():
    repo = RecordRepository()
    repo.insert(make_contact("c1", given_name="Old"))
    inserted = _recorder(repo.rows_inserted)
    changed = _recorder(repo.rows_changed)
    repo.insert(make_contact("c1", given_name="New"))
    assert inserted == []
    assert changed == [("contact", 0, 0)]
    assert repo.get_by_id(RecordType.CONTACT, "c1").given_name == "New"


def test_insert_without_id_rejected():
    repo = RecordRepository()
    with pytest.raises(ValueError):
        repo.insert(make_contact(""))


def test_update_unknown_id_raises():
    repo = RecordRepository()
    with pytest.raises(KeyError):
        repo.update(make_opportunity("nope"))


def test_remove_shifts_rows():
    repo = RecordRepository()
    repo.insert_many([make_contact("c1"), make_contact("c2"), make_contact("c3")])
    removed = _recorder(repo.rows_removed)
    assert repo.remove(RecordType.CONTACT, "c2") is True
    assert removed == [("contact", 1, 1)]
    assert repo.row_of(RecordType.CONTACT, "c3") == 1
    assert repo.record_at(RecordType.CONTACT, 1).id == "c3"
    assert repo.remove(RecordType.CONTACT, "c2") is False


def test_clear_announces_every_non_empty_table():
    repo = RecordRepository()
    repo.insert_many([make_contact("c1"), make_contact("c2"), make_account("a1")])
    removed = _recorder(repo.rows_removed)
    repo.clear()
    assert sorted(removed) == [("account", 0, 0), ("contact", 0, 1)]
    assert repo.row_count(RecordType.CONTACT) == 0


def test_parse_record_dispatches_on_kind():
    rec = parse_record({"kind": "opportunity", "id": "o1", "name": "Deal", "date_closed": "2024-01-31", "sales_stage": None})
    assert rec.record_type == RecordType.OPPORTUNITY
    assert rec.date_closed.isoformat() == "2024-01-31"
    assert rec.sales_stage == ""


def test_parse_record_unknown_kind_fails():
    with pytest.raises(Exception):
        parse_record({"kind": "meeting", "id": "m1"})


def test_records_are_immutable():
    c = make_contact("c1", given_name="Jane")
    with pytest.raises(Exception):
        c.given_name = "Joan"  # type: ignore[misc]


def test_null_strings_become_empty():
    rec = parse_record({"kind": "contact", "id": "x", "given_name": None, "note": None})
    assert rec.record_type == RecordType.CONTACT
    assert rec.given_name == ""
    assert rec.note == ""
