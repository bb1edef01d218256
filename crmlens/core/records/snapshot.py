from __future__ import annotations

"""
JSON snapshot import for tooling and tests.

Layout:
  {
    "accounts": [...], "contacts": [...], "leads": [...],
    "campaigns": [...], "opportunities": [...],
    "linked_items": [{"id": "...", "item_type": "note", "account_id": "...", "contact_id": "..."}]
  }

This is an exchange format, not how the synchronized mirror is stored.
"""

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from crmlens.core.errors import SnapshotError
from crmlens.core.records.account_index import AccountIndex
from crmlens.core.records.linked_items import LinkedItemsIndex
from crmlens.core.records.models import Account, LinkedItem, RecordType, parse_record
from crmlens.core.records.repository import RecordRepository
from crmlens.core.records.sync import IndexSync


_SECTIONS = {
    "accounts": RecordType.ACCOUNT,
    "contacts": RecordType.CONTACT,
    "leads": RecordType.LEAD,
    "campaigns": RecordType.CAMPAIGN,
    "opportunities": RecordType.OPPORTUNITY,
}


@dataclass
class Snapshot:
    repository: RecordRepository
    accounts: AccountIndex
    linked_items: LinkedItemsIndex
    linked_item_count: int = 0
    sync: Optional[IndexSync] = None

    def counts(self) -> Dict[str, int]:
        out = {t.value: self.repository.row_count(t) for t in RecordType}
        out["linked_items"] = int(self.linked_item_count)
        return out


def snapshot_from_dict(data: Dict[str, Any], *, logger=None) -> Snapshot:
    if not isinstance(data, dict):
        raise SnapshotError("Snapshot must be a JSON object.")
    repo = RecordRepository(logger=logger)
    for section, record_type in _SECTIONS.items():
        rows = data.get(section) or []
        if not isinstance(rows, list):
            raise SnapshotError(f"Snapshot section '{section}' must be a list.", section=section)
        parsed = []
        for i, raw in enumerate(rows):
            if not isinstance(raw, dict):
                raise SnapshotError(f"Snapshot entry {section}[{i}] must be an object.", section=section, index=i)
            try:
                rec = parse_record({**raw, "kind": record_type.value})
            except PydanticValidationError as e:
                raise SnapshotError(f"Invalid entry {section}[{i}].", section=section, index=i, errors=e.error_count()) from e
            if not rec.id:
                raise SnapshotError(f"Entry {section}[{i}] has no id.", section=section, index=i)
            parsed.append(rec)
        if parsed:
            repo.insert_many(parsed)

    items: List[LinkedItem] = []
    for i, raw in enumerate(data.get("linked_items") or []):
        try:
            items.append(LinkedItem.model_validate(raw))
        except PydanticValidationError as e:
            raise SnapshotError(f"Invalid entry linked_items[{i}].", section="linked_items", index=i) from e

    accounts = AccountIndex(logger=logger)
    accounts.load(r for r in repo.records_of_type(RecordType.ACCOUNT) if isinstance(r, Account))
    linked = LinkedItemsIndex.build(repo, items)
    sync = IndexSync(repo, accounts=accounts, linked_items=linked, logger=logger)
    snap = Snapshot(repository=repo, accounts=accounts, linked_items=linked, linked_item_count=len(items), sync=sync)
    if logger:
        logger.info(f"Snapshot loaded: {snap.counts()}")
    return snap


def load_snapshot(path: str, *, logger=None) -> Snapshot:
    if not os.path.exists(path):
        raise SnapshotError("Snapshot file not found.", path=str(path))
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise SnapshotError(f"Snapshot is not valid JSON: {e.msg}", path=str(path), line=e.lineno) from e
    return snapshot_from_dict(data, logger=logger)
