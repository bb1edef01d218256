"""
GDPR sweep report over a record snapshot.

Prints how many contacts a sweep would delete, anonymize or keep, and the
reasons behind each decision. Nothing is modified.

Usage:
  python scripts/gdpr_report.py --snapshot export.json [--today 2024-06-01]
"""

from __future__ import annotations

import argparse
import datetime as _dt
import json
import sys

from crmlens.core.config import ConfigManager
from crmlens.core.config.paths import ConfigFsPaths
from crmlens.core.errors import CrmLensError
from crmlens.core.records.dates import date_from_string
from crmlens.core.records.models import Contact, RecordType
from crmlens.core.records.snapshot import load_snapshot
from crmlens.core.retention import RetentionClassifier, load_protected_identifiers


def main() -> int:
    ap = argparse.ArgumentParser(description="Count contacts a GDPR sweep would act on")
    ap.add_argument("--root", default=".")
    ap.add_argument("--snapshot", required=True)
    ap.add_argument("--today", default=None)
    args = ap.parse_args()

    today = date_from_string(args.today) if args.today else _dt.date.today()
    if today is None:
        print(f"invalid --today {args.today!r}", file=sys.stderr)
        return 2
    try:
        cm = ConfigManager(fs=ConfigFsPaths(args.root), logger=None, read_only=True)
        cfg = cm.load_all()
        protected = load_protected_identifiers(cm.resolve_path(cfg.privacy.protected_emails_path))
        snap = load_snapshot(args.snapshot)
    except CrmLensError as e:
        print(json.dumps(e.to_dict(), sort_keys=True), file=sys.stderr)
        return 2

    classifier = RetentionClassifier(accounts=snap.accounts, linked_items=snap.linked_items, protected=protected)
    contacts = [c for c in snap.repository.records_of_type(RecordType.CONTACT) if isinstance(c, Contact)]
    summary = classifier.summarize(contacts, today=today)
    print(
        json.dumps(
            {
                "today": today.isoformat(),
                "contacts": len(contacts),
                "protected_identifiers": len(protected),
                "counts": summary.counts,
                "reasons": summary.reasons,
            },
            indent=2,
            sort_keys=True,
        )
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
