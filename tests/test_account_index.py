from __future__ import annotations

import pytest

from crmlens.core.records.account_index import AccountIndex
from crmlens.core.records.linked_items import LinkedItemsIndex
from crmlens.core.records.models import LinkedItem, LinkedItemType
from crmlens.core.records.repository import RecordRepository

from .helpers.builders import RecordingLogger, make_account, make_contact, make_opportunity


def test_unknown_id_yields_empty_summary():
    idx = AccountIndex()
    s = idx.account_by_id("missing")
    assert s.is_empty()
    assert s.name == "" and s.country == ""
    assert idx.account_by_id("").is_empty()


def test_load_emits_single_loaded_event():
    log = RecordingLogger()
    idx = AccountIndex(logger=log)
    loaded = []
    modified = []
    idx.initial_loading_done.subscribe(lambda ev: loaded.append(ev.payload["count"]))
    idx.account_modified.subscribe(lambda ev: modified.append(ev))
    n = idx.load([make_account("a1", name="Acme"), make_account("a2", name="Globex"), make_account("", name="No id")])
    assert n == 2
    assert loaded == [2]
    assert modified == []
    assert idx.is_loaded()
    assert "a1" in idx and len(idx) == 2


def test_summary_country_prefers_billing():
    idx = AccountIndex()
    idx.load([make_account("a1", billing_address_country="Austria", shipping_address_country="Italy"), make_account("a2", shipping_address_country="Italy")])
    assert idx.account_by_id("a1").country == "Austria"
    assert idx.account_by_id("a2").country == "Italy"


def test_upsert_reports_changed_fields():
    idx = AccountIndex()
    changes = []
    idx.account_modified.subscribe(lambda ev: changes.append((ev.account_id, list(ev.changed_fields))))
    assert idx.upsert(make_account("a1", name="Acme")) == ["name", "account_type", "country"]
    assert idx.upsert(make_account("a1", name="Acme", phone_office="123")) == []
    assert idx.upsert(make_account("a1", name="Acme GmbH")) == ["name"]
    assert changes == [("a1", ["name", "account_type", "country"]), ("a1", ["name"])]
    with pytest.raises(ValueError):
        idx.upsert(make_account(""))


def test_remove_account():
    idx = AccountIndex()
    idx.upsert(make_account("a1", name="Acme"))
    removed = []
    idx.account_removed.subscribe(lambda ev: removed.append(ev.account_id))
    assert idx.remove("a1") is True
    assert idx.remove("a1") is False
    assert removed == ["a1"]
    assert idx.account_by_id("a1").is_empty()


def test_linked_items_grouped_by_owner():
    repo = RecordRepository()
    repo.insert_many(
        [
            make_opportunity("o1", account_id="a1"),
            make_opportunity("o2", account_id="a1"),
            make_opportunity("o3"),
            make_contact("c1", account_id="a1"),
        ]
    )
    items = [
        LinkedItem(id="n1", item_type=LinkedItemType.NOTE, account_id="a1"),
        LinkedItem(id="n2", item_type=LinkedItemType.NOTE, contact_id="c1"),
        LinkedItem(id="e1", item_type="email", account_id="a1", contact_id="c1"),
        LinkedItem(id="d1", item_type="document", account_id="a1"),
    ]
    idx = LinkedItemsIndex.build(repo, items)
    assert [o.id for o in idx.opportunities_for_account("a1")] == ["o1", "o2"]
    assert [c.id for c in idx.contacts_for_account("a1")] == ["c1"]
    assert [n.id for n in idx.notes_for_account("a1")] == ["n1"]
    assert [n.id for n in idx.notes_for_contact("c1")] == ["n2"]
    assert [e.id for e in idx.emails_for_contact("c1")] == ["e1"]
    assert [e.id for e in idx.emails_for_account("a1")] == ["e1"]
    assert [d.id for d in idx.documents_for_account("a1")] == ["d1"]
    assert idx.activity_count_for_account("a1") == 3
    assert idx.activity_count_for_account("zz") == 0
    assert idx.opportunities_for_account("") == []


def test_linked_item_requires_id():
    with pytest.raises(Exception):
        LinkedItem(id="", item_type="note")
