from __future__ import annotations

import argparse
import datetime as _dt
import json
import sys
from typing import Any, Dict, List, Optional

from crmlens.core.config import ConfigFsPaths, ConfigManager
from crmlens.core.errors import CrmLensError, ValidationError
from crmlens.core.filtering import RecordFilter
from crmlens.core.logger import setup_logging
from crmlens.core.records.dates import date_from_string
from crmlens.core.records.models import Contact, Opportunity, RecordType
from crmlens.core.records.snapshot import load_snapshot
from crmlens.core.retention import RetentionClassifier, SweepMode, load_protected_identifiers
from crmlens.core.staleness import StalenessTracker


def _parse_today(value: Optional[str]) -> _dt.date:
    if not value:
        return _dt.date.today()
    day = date_from_string(value)
    if day is None:
        raise ValidationError(f"--today must be YYYY-MM-DD, got {value!r}.")
    return day


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="CRM record search, GDPR sweep and staleness report")
    ap.add_argument("--root", default=".", help="Directory holding config/ and logs/.")
    ap.add_argument("--snapshot", required=True, help="JSON record snapshot to load.")
    ap.add_argument("--type", choices=[t.value for t in RecordType], default=RecordType.CONTACT.value, help="Record table to filter.")
    ap.add_argument("--query", default="", help="Case-insensitive free-text filter.")
    ap.add_argument("--sweep", choices=["off", "delete", "anonymize"], default=None, help="GDPR sweep mode (contacts only).")
    ap.add_argument("--today", default=None, help="Reference date (YYYY-MM-DD); defaults to the local date.")
    ap.add_argument("--staleness", action="store_true", help="Attach staleness scores to opportunity rows.")
    ap.add_argument("--explain", action="store_true", help="Attach the retention decision to contact rows.")
    return ap


def run(args: argparse.Namespace, out=None) -> int:
    out = out or sys.stdout
    config = ConfigManager(fs=ConfigFsPaths(args.root), logger=None)
    cfg = config.load_all()
    logger = setup_logging(config.resolve_path(cfg.app.log_dir), cfg.app.log_level)

    today = _parse_today(args.today)
    record_type = RecordType(args.type)
    protected = load_protected_identifiers(config.resolve_path(cfg.privacy.protected_emails_path), logger=logger)
    snap = load_snapshot(args.snapshot, logger=logger)

    classifier = RetentionClassifier(accounts=snap.accounts, linked_items=snap.linked_items, protected=protected, logger=logger)
    row_filter = RecordFilter(record_type, accounts=snap.accounts, classifier=classifier, today=lambda: today, logger=logger)
    row_filter.set_filter_string(args.query)

    if args.sweep is not None:
        mode = SweepMode.parse(args.sweep)
    elif record_type == RecordType.CONTACT:
        mode = cfg.privacy.default_sweep_mode
    else:
        mode = SweepMode.OFF
    try:
        row_filter.set_sweep_mode(mode)
    except ValueError as e:
        raise ValidationError(str(e), sweep=mode.value, record_type=record_type.value) from e
    if mode != SweepMode.OFF and not row_filter.has_protected_identifiers():
        logger.warning("GDPR sweep running without a protected identifier list.")

    tracker: Optional[StalenessTracker] = None
    if args.staleness and record_type == RecordType.OPPORTUNITY:
        tracker = StalenessTracker(snap.repository, signals=cfg.views.opportunity_columns, today=lambda: today, logger=logger)

    rows = row_filter.filter_repository(snap.repository, today=today)
    for rec in rows:
        row: Dict[str, Any] = rec.model_dump(mode="json")
        if args.explain and isinstance(rec, Contact):
            decision = classifier.explain(rec, today=today)
            row["retention"] = {"disposition": decision.disposition.value, "reasons": decision.reason_labels()}
        if tracker is not None and isinstance(rec, Opportunity):
            sc = tracker.score_for(rec.id)
            row["staleness"] = sc.to_dict() if sc is not None else None
        out.write(json.dumps(row, sort_keys=True, ensure_ascii=False) + "\n")

    if tracker is not None:
        tracker.close()
    row_filter.close()
    logger.info(f"{record_type.value}: {len(rows)} of {snap.repository.row_count(record_type)} rows accepted ({row_filter.filter_description() or 'no query'}, sweep={mode.value})")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return run(args)
    except CrmLensError as e:
        print(json.dumps(e.to_dict(), sort_keys=True), file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
