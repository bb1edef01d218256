from __future__ import annotations

"""
Redaction helpers for log lines and error context.

Contact data is personal data: logs carry short hashes of emails and
names, never the raw values.
"""

import hashlib
from typing import Any, Dict


REDACT_KEYS = {
    "email",
    "preferred_email",
    "email1",
    "phone",
    "work_phone",
    "mobile_phone",
    "phone_office",
    "note",
    "description",
    "password",
    "token",
}


def hash8(s: str) -> str:
    return hashlib.sha256(str(s or "").encode("utf-8", errors="ignore")).hexdigest()[:8]


def mask_email(email: str) -> str:
    """
    'jane@example.com' -> 'email:1a2b3c4d@example.com'. Domain is kept for triage.
    """
    e = str(email or "")
    if not e:
        return ""
    local, sep, domain = e.partition("@")
    if not sep:
        return f"email:{hash8(e)}"
    return f"email:{hash8(local)}@{domain}"


def redact(obj: Any) -> Any:
    if isinstance(obj, dict):
        out: Dict[str, Any] = {}
        for k, v in obj.items():
            if str(k).lower() in REDACT_KEYS:
                if isinstance(v, str) and v:
                    out[k] = f"***{hash8(v)}***"
                else:
                    out[k] = "***REDACTED***"
            else:
                out[k] = redact(v)
        return out
    if isinstance(obj, list):
        return [redact(x) for x in obj]
    return obj
