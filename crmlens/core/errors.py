from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from crmlens.core.redaction import redact


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class CrmLensError(Exception):
    code: str
    user_message: str
    severity: Severity = Severity.ERROR
    recoverable: bool = True
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.code)

    def __str__(self) -> str:
        return f"{self.code}: {self.user_message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "recoverable": bool(self.recoverable),
            "context": redact(self.context or {}),
        }


class ConfigError(CrmLensError):
    def __init__(self, user_message: str = "Configuration error.", **ctx: Any):
        super().__init__("config_error", user_message, severity=Severity.CRITICAL, recoverable=False, context=ctx)


class ContractViolationError(CrmLensError):
    """
    Raised when a caller breaks a guarantee the repository relies on
    (e.g. a record without an id reaches the classifier).
    """

    def __init__(self, user_message: str = "Internal contract violated.", **ctx: Any):
        super().__init__("contract_violation", user_message, severity=Severity.CRITICAL, recoverable=False, context=ctx)


class SnapshotError(CrmLensError):
    def __init__(self, user_message: str = "Unable to load record snapshot.", **ctx: Any):
        super().__init__("snapshot_error", user_message, severity=Severity.ERROR, recoverable=True, context=ctx)


class ValidationError(CrmLensError):
    def __init__(self, user_message: str = "Invalid request.", **ctx: Any):
        super().__init__("validation_error", user_message, severity=Severity.WARN, recoverable=False, context=ctx)
