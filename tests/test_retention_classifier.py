from __future__ import annotations

import datetime as _dt

import pytest

from crmlens.core.errors import ContractViolationError
from crmlens.core.records.models import AccountSummary, Contact
from crmlens.core.retention.classifier import (
    RETENTION_WINDOW_DAYS,
    accept,
    classify,
    created_before_window,
    description_is_old,
    explain,
    recent_opportunity_count,
)
from crmlens.core.retention.models import Disposition, RetentionReason, SweepMode

from .helpers.builders import TODAY, RecordingLogger, build_world, days_ago, make_account, make_opportunity, old_contact


def _classify(contact, *, account=None, opportunities=(), protected=frozenset(), today=TODAY):  # noqa: ANN001
    return classify(
        contact,
        account=account,
        opportunities=list(opportunities),
        description=contact.note,
        created_at=contact.date_created,
        today=today,
        protected=protected,
    )


def test_partner_account_is_exempt_even_when_old():
    c = old_contact(account_id="a1", date_created=days_ago(10 * 365))
    acc = AccountSummary(id="a1", account_type="Partner")
    assert _classify(c, account=acc) == Disposition.EXEMPT


@pytest.mark.parametrize("account_type", ["Partner", "Competitor", "Other"])
def test_business_account_types_are_exempt(account_type):
    c = old_contact(account_id="a1")
    assert _classify(c, account=AccountSummary(id="a1", account_type=account_type)) == Disposition.EXEMPT


def test_no_account_old_contact_is_deleted():
    c = old_contact(date_created=days_ago(6 * 365))
    assert _classify(c) == Disposition.DELETE


def test_inactive_account_old_contact_is_anonymized():
    c = old_contact(account_id="a1")
    acc = AccountSummary(id="a1", account_type="Customer")
    assert _classify(c, account=acc, opportunities=[]) == Disposition.ANONYMIZE


def test_recent_year_in_note_keeps_contact():
    c = old_contact(account_id="a1", note="met at the 2023 fair")
    acc = AccountSummary(id="a1", account_type="Customer")
    assert _classify(c, account=acc, today=_dt.date(2024, 6, 1)) == Disposition.EXEMPT


def test_already_anonymized_is_exempt():
    c = old_contact(given_name="Anonymized", family_name="GDPR")
    assert _classify(c) == Disposition.EXEMPT
    # both names are required
    c2 = old_contact(given_name="Anonymized", family_name="Doe")
    assert _classify(c2) == Disposition.DELETE


def test_protected_email_overrides_delete_and_anonymize():
    protected = frozenset({"jane@example.com"})
    c = old_contact(preferred_email="jane@example.com")
    assert _classify(c) == Disposition.DELETE
    assert _classify(c, protected=protected) == Disposition.EXEMPT

    c2 = old_contact(account_id="a1", preferred_email="jane@example.com")
    assert _classify(c2, account=AccountSummary(id="a1")) == Disposition.ANONYMIZE
    assert _classify(c2, account=AccountSummary(id="a1"), protected=protected) == Disposition.EXEMPT


def test_protected_match_is_exact_and_case_sensitive():
    c = old_contact(preferred_email="Jane@Example.com")
    assert _classify(c, protected=frozenset({"jane@example.com"})) == Disposition.DELETE


def test_empty_email_never_protected():
    c = old_contact(preferred_email="")
    assert _classify(c, protected=frozenset({""})) == Disposition.DELETE


def test_recent_opportunity_keeps_account_contacts():
    c = old_contact(account_id="a1")
    acc = AccountSummary(id="a1")
    recent = make_opportunity("o1", account_id="a1", date_entered=days_ago(100))
    stale = make_opportunity("o2", account_id="a1", date_entered=days_ago(6 * 365))
    assert _classify(c, account=acc, opportunities=[stale]) == Disposition.ANONYMIZE
    assert _classify(c, account=acc, opportunities=[stale, recent]) == Disposition.EXEMPT


def test_opportunity_window_boundary():
    at_window = make_opportunity("o1", date_entered=days_ago(RETENTION_WINDOW_DAYS))
    inside = make_opportunity("o2", date_entered=days_ago(RETENTION_WINDOW_DAYS - 1))
    assert recent_opportunity_count([at_window], TODAY) == 0
    assert recent_opportunity_count([inside], TODAY) == 1


def test_opportunity_without_entry_date_counts_as_recent():
    assert recent_opportunity_count([make_opportunity("o1")], TODAY) == 1


def test_created_boundary_is_strict():
    assert not created_before_window(days_ago(RETENTION_WINDOW_DAYS), TODAY)
    assert created_before_window(days_ago(RETENTION_WINDOW_DAYS + 1), TODAY)
    assert not created_before_window(None, TODAY)


def test_contact_created_recently_is_exempt():
    c = old_contact(date_created=days_ago(30))
    assert _classify(c) == Disposition.EXEMPT


def test_contact_without_created_date_is_exempt():
    c = Contact(id="c1", given_name="Jane")
    assert _classify(c) == Disposition.EXEMPT


def test_description_year_range():
    today = _dt.date(2024, 6, 1)
    assert description_is_old("", today)
    assert description_is_old("no dates here", today)
    assert not description_is_old("renewed 2024", today)
    assert not description_is_old("since 2019", today)
    assert description_is_old("since 2018", today)
    # any 4-digit substring counts
    assert not description_is_old("ticket 120215", today)


def test_empty_id_is_a_contract_violation():
    with pytest.raises(ContractViolationError) as ei:
        _classify(Contact(id="", given_name="x"))
    assert ei.value.code == "contract_violation"
    assert ei.value.recoverable is False


def test_explain_lists_all_keep_reasons():
    c = old_contact(account_id="a1", note="2024", date_created=days_ago(10))
    decision = explain(
        c,
        account=AccountSummary(id="a1"),
        opportunities=[make_opportunity("o1", account_id="a1", date_entered=days_ago(1))],
        description=c.note,
        created_at=c.date_created,
        today=TODAY,
    )
    assert decision.disposition == Disposition.EXEMPT
    assert decision.reasons == (
        RetentionReason.RECENT_OPPORTUNITIES,
        RetentionReason.RECENT_DESCRIPTION,
        RetentionReason.CREATED_RECENTLY,
    )
    assert decision.recent_opportunities == 1
    assert not decision.is_candidate


def test_explain_protected_keeps_sweep_reason():
    c = old_contact(preferred_email="p@x.example")
    decision = explain(c, account=None, opportunities=[], description="", created_at=c.date_created, today=TODAY, protected=frozenset({"p@x.example"}))
    assert decision.disposition == Disposition.EXEMPT
    assert decision.reason_labels() == [RetentionReason.NO_ACCOUNT.value, RetentionReason.PROTECTED_EMAIL.value]


def test_accept_partitions_dispositions():
    for d in Disposition:
        both = accept(d, SweepMode.FULLY_DELETE) and accept(d, SweepMode.ANONYMIZE)
        assert not both
        assert not accept(d, SweepMode.OFF)
    assert accept(Disposition.DELETE, SweepMode.FULLY_DELETE)
    assert accept(Disposition.ANONYMIZE, SweepMode.ANONYMIZE)
    assert not accept(Disposition.EXEMPT, SweepMode.FULLY_DELETE)
    assert not accept(Disposition.EXEMPT, SweepMode.ANONYMIZE)


def test_sweep_mode_parse_aliases():
    assert SweepMode.parse("off") == SweepMode.OFF
    assert SweepMode.parse("") == SweepMode.OFF
    assert SweepMode.parse("delete") == SweepMode.FULLY_DELETE
    assert SweepMode.parse("fully-delete") == SweepMode.FULLY_DELETE
    assert SweepMode.parse("anonymise") == SweepMode.ANONYMIZE
    with pytest.raises(ValueError):
        SweepMode.parse("purge")


def test_bound_classifier_reads_indices():
    world = build_world(
        make_account("a1", name="Acme", account_type="Customer"),
        make_account("a2", name="Partner Co", account_type="Partner"),
        make_opportunity("o1", account_id="a1", date_entered=days_ago(6 * 365)),
        old_contact("c1", account_id="a1"),
        old_contact("c2", account_id="a2"),
        old_contact("c3"),
    )
    repo = world.repository
    by_id = {c.id: c for c in repo.records_of_type("contact")}
    assert world.classifier.classify(by_id["c1"], today=TODAY) == Disposition.ANONYMIZE
    assert world.classifier.classify(by_id["c2"], today=TODAY) == Disposition.EXEMPT
    assert world.classifier.classify(by_id["c3"], today=TODAY) == Disposition.DELETE

    assert world.classifier.accepts(by_id["c1"], SweepMode.ANONYMIZE, today=TODAY)
    assert not world.classifier.accepts(by_id["c1"], SweepMode.FULLY_DELETE, today=TODAY)
    assert world.classifier.accepts(by_id["c3"], SweepMode.FULLY_DELETE, today=TODAY)
    assert not world.classifier.accepts(by_id["c3"], SweepMode.OFF, today=TODAY)


def test_unknown_account_id_is_anonymized_not_deleted():
    world = build_world(old_contact("c1", account_id="ghost"))
    c = world.repository.get_by_id("contact", "c1")
    assert world.classifier.classify(c, today=TODAY) == Disposition.ANONYMIZE


def test_classification_is_stable_for_same_inputs():
    world = build_world(make_account("a1"), old_contact("c1", account_id="a1"))
    c = world.repository.get_by_id("contact", "c1")
    first = world.classifier.explain(c, today=TODAY)
    for _ in range(3):
        assert world.classifier.explain(c, today=TODAY) == first


def test_protected_override_logged_with_masked_email():
    log = RecordingLogger()
    world = build_world(old_contact("c1", preferred_email="jane@example.com"), protected={"jane@example.com"})
    world.classifier.logger = log
    c = world.repository.get_by_id("contact", "c1")
    assert world.classifier.classify(c, today=TODAY) == Disposition.EXEMPT
    assert any("against deletion" in line for line in log.lines)
    assert not any("jane@" in line for line in log.lines)
    assert any("@example.com" in line for line in log.lines)


def test_summarize_counts_dispositions_and_reasons():
    world = build_world(
        make_account("a1"),
        old_contact("c1", account_id="a1"),
        old_contact("c2"),
        old_contact("c3", date_created=days_ago(5)),
    )
    summary = world.classifier.summarize(world.repository.records_of_type("contact"), today=TODAY)
    assert summary.counts == {"EXEMPT": 1, "ANONYMIZE": 1, "DELETE": 1}
    assert summary.reasons[RetentionReason.CREATED_RECENTLY.value] == 1
    assert summary.reasons[RetentionReason.NO_ACCOUNT.value] == 1
