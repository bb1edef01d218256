from __future__ import annotations

"""
Protected identifiers: emails that a GDPR sweep must never touch
(e.g. newsletter subscribers exported from the mailing tool).
"""

import os
from typing import FrozenSet, Iterable


ProtectedIdentifierSet = FrozenSet[str]

EMPTY_PROTECTED: ProtectedIdentifierSet = frozenset()


def protected_from_lines(lines: Iterable[str]) -> ProtectedIdentifierSet:
    """
    One identifier per line, kept exactly as written (case-sensitive);
    only the line terminator is dropped. Blank lines are ignored.
    """
    out = set()
    for line in lines:
        # strips "\r\n" as well as "\n"; empty emails are never protected
        s = str(line).rstrip("\r\n")
        if s:
            out.add(s)
    return frozenset(out)


def load_protected_identifiers(path: str, *, logger=None) -> ProtectedIdentifierSet:
    """
    A missing file disables the protection list (empty set); it is not an error.
    """
    p = str(path or "")
    if not p or not os.path.isfile(p):
        if logger:
            logger.info(f"No protected identifier list at {p or '<unset>'}; protection list disabled.")
        return EMPTY_PROTECTED
    with open(p, "r", encoding="latin-1", newline="") as f:
        ids = protected_from_lines(f)
    if logger:
        logger.info(f"Read {len(ids)} protected identifiers from {p}")
    return ids
