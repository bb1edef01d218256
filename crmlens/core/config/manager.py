from __future__ import annotations

import os
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from crmlens.core.config.io import (
    ReadResult,
    atomic_write_json,
    read_json_file,
    recover_from_corrupt,
    snapshot_last_known_good,
)
from crmlens.core.config.models import AppConfig, AppFileConfig, PrivacyConfigFile, ViewsConfigFile, default_config_files
from crmlens.core.config.paths import ConfigFsPaths
from crmlens.core.errors import ConfigError


_MODELS = {
    "app.json": AppFileConfig,
    "privacy.json": PrivacyConfigFile,
    "views.json": ViewsConfigFile,
}


class ConfigManager:
    def __init__(self, *, fs: Optional[ConfigFsPaths] = None, logger=None, read_only: bool = False):
        self.fs = fs or ConfigFsPaths(".")
        self.logger = logger
        self.read_only = read_only
        self._cfg: Optional[AppConfig] = None

    # ---------- public API ----------
    def load_all(self) -> AppConfig:
        if not self.read_only:
            os.makedirs(self.fs.config_dir, exist_ok=True)
            os.makedirs(self.fs.backups_dir, exist_ok=True)
            os.makedirs(self.fs.last_known_good_dir, exist_ok=True)

        files = self._load_raw_files()
        files = self._ensure_defaults(files)
        cfg = self._validate_all(files)
        self._cfg = cfg

        if not self.read_only:
            snapshot_last_known_good(self.fs.config_dir, self.fs.last_known_good_dir)
        return cfg

    def get(self) -> AppConfig:
        if self._cfg is None:
            raise ConfigError("Config not loaded.")
        return self._cfg

    def read_non_sensitive(self, filename: str) -> Dict[str, Any]:
        """
        Read a single config file from config/ (safe recovery applied).
        """
        path = os.path.join(self.fs.config_dir, filename)
        rr = read_json_file(path)
        if rr.ok:
            return rr.data
        if rr.error and rr.error.startswith("corrupt_json") and not self.read_only:
            data, _ = recover_from_corrupt(path, self.fs.backups_dir, self.fs.last_known_good_dir, max_backups=self._max_backups())
            return data
        return {}

    def save_non_sensitive(self, filename: str, data: Dict[str, Any]) -> None:
        """
        Atomic write + backups, then validate the whole config set.
        If validation fails, raise (the prewrite backup remains available).
        """
        if self.read_only:
            raise ConfigError("Config manager is read-only.")
        if filename not in _MODELS:
            raise ConfigError(f"Unknown config file: {filename}", filename=filename)
        if not isinstance(data, dict):
            raise ConfigError("Config data must be an object.", filename=filename)
        path = os.path.join(self.fs.config_dir, filename)
        atomic_write_json(path, data, self.fs.backups_dir, max_backups=self._max_backups())
        self.load_all()

    def resolve_path(self, path: str) -> str:
        return self.fs.resolve(path)

    # ---------- internals ----------
    def _max_backups(self) -> int:
        if self._cfg is None:
            return 10
        return int((self._cfg.app.backups or {}).get("max_backups_per_file", 10))

    def _load_raw_files(self) -> Dict[str, Dict[str, Any]]:
        out: Dict[str, Dict[str, Any]] = {}
        for name in _MODELS:
            path = os.path.join(self.fs.config_dir, name)
            rr: ReadResult = read_json_file(path)
            if rr.ok:
                out[name] = rr.data
                continue
            if rr.error == "missing":
                continue
            if self.logger:
                self.logger.warning(f"Config file {name} unreadable ({rr.error}); attempting recovery.")
            if self.read_only:
                continue
            data, recovered = recover_from_corrupt(path, self.fs.backups_dir, self.fs.last_known_good_dir, max_backups=self._max_backups())
            if recovered:
                out[name] = data
                if self.logger:
                    self.logger.warning(f"Config file {name} restored from last known good.")
        return out

    def _ensure_defaults(self, files: Dict[str, Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
        defaults = default_config_files()
        out = dict(files)
        for name, data in defaults.items():
            if name in out:
                continue
            out[name] = data
            if not self.read_only:
                atomic_write_json(os.path.join(self.fs.config_dir, name), data, self.fs.backups_dir, max_backups=10)
                if self.logger:
                    self.logger.info(f"Created default config {name}")
        return out

    def _validate_all(self, files: Dict[str, Dict[str, Any]]) -> AppConfig:
        try:
            return AppConfig(
                app=AppFileConfig.model_validate(files.get("app.json") or {}),
                privacy=PrivacyConfigFile.model_validate(files.get("privacy.json") or {}),
                views=ViewsConfigFile.model_validate(files.get("views.json") or {}),
            )
        except PydanticValidationError as e:
            raise ConfigError(f"Config validation failed: {e.error_count()} error(s).", details=str(e)) from e
