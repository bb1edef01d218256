from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from crmlens.core.retention.models import SweepMode
from crmlens.core.staleness.scorer import StalenessSignal


class AppFileConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    config_version: int = Field(default=1, ge=1)
    log_dir: str = "logs"
    log_level: str = "INFO"
    backups: Dict[str, Any] = Field(default_factory=lambda: {"max_backups_per_file": 10})

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        lv = str(v or "").strip().upper()
        if lv not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {v!r}")
        return lv


class PrivacyConfigFile(BaseModel):
    model_config = ConfigDict(extra="forbid")
    schema_version: int = Field(default=1, ge=1, le=1)
    # line-delimited list of emails a GDPR sweep must never touch
    protected_emails_path: str = "newsletter.txt"
    default_sweep_mode: SweepMode = SweepMode.OFF


class ViewsConfigFile(BaseModel):
    model_config = ConfigDict(extra="forbid")
    schema_version: int = Field(default=1, ge=1, le=1)
    # date columns shown in the opportunity table; only these get urgency colours
    opportunity_columns: List[StalenessSignal] = Field(default_factory=lambda: list(StalenessSignal))

    @field_validator("opportunity_columns")
    @classmethod
    def _dedupe(cls, v: List[StalenessSignal]) -> List[StalenessSignal]:
        out: List[StalenessSignal] = []
        for s in v:
            if s not in out:
                out.append(s)
        return out


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    app: AppFileConfig
    privacy: PrivacyConfigFile
    views: ViewsConfigFile


def default_config_files() -> Dict[str, Dict[str, Any]]:
    return {
        "app.json": AppFileConfig().model_dump(mode="json"),
        "privacy.json": PrivacyConfigFile().model_dump(mode="json"),
        "views.json": ViewsConfigFile().model_dump(mode="json"),
    }
