from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple


class Disposition(str, Enum):
    EXEMPT = "EXEMPT"
    ANONYMIZE = "ANONYMIZE"
    DELETE = "DELETE"


class SweepMode(str, Enum):
    """
    What the operator is sweeping for. OFF disables the GDPR filter.
    """

    OFF = "OFF"
    FULLY_DELETE = "FULLY_DELETE"
    ANONYMIZE = "ANONYMIZE"

    @classmethod
    def parse(cls, value: str) -> "SweepMode":
        v = str(value or "").strip().upper().replace("-", "_")
        aliases = {"": cls.OFF, "NONE": cls.OFF, "DELETE": cls.FULLY_DELETE, "ANONYMISE": cls.ANONYMIZE}
        if v in aliases:
            return aliases[v]
        return cls(v)


class RetentionReason(str, Enum):
    # kept
    EXEMPT_ACCOUNT_TYPE = "account type is never swept"
    ALREADY_ANONYMIZED = "already anonymized"
    RECENT_OPPORTUNITIES = "account has recent opportunities"
    RECENT_DESCRIPTION = "description mentions a recent year"
    CREATED_RECENTLY = "created recently"
    PROTECTED_EMAIL = "email is on the protected list"
    # swept
    NO_ACCOUNT = "no account"
    INACTIVE_ACCOUNT = "account has no recent opportunities"


@dataclass(frozen=True)
class RetentionDecision:
    disposition: Disposition
    reasons: Tuple[RetentionReason, ...] = ()
    recent_opportunities: int = 0

    @property
    def is_candidate(self) -> bool:
        return self.disposition != Disposition.EXEMPT

    def reason_labels(self) -> List[str]:
        return [r.value for r in self.reasons]


@dataclass
class SweepSummary:
    """
    Per-disposition tallies over a set of contacts, for reports.
    """

    counts: dict = field(default_factory=lambda: {d.value: 0 for d in Disposition})
    reasons: dict = field(default_factory=dict)

    def add(self, decision: RetentionDecision) -> None:
        self.counts[decision.disposition.value] = int(self.counts.get(decision.disposition.value, 0) + 1)
        for r in decision.reasons:
            self.reasons[r.value] = int(self.reasons.get(r.value, 0) + 1)
