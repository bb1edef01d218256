from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ConfigFsPaths:
    root: str = "."

    @property
    def config_dir(self) -> str:
        return os.path.join(self.root, "config")

    @property
    def backups_dir(self) -> str:
        return os.path.join(self.config_dir, "backups")

    @property
    def last_known_good_dir(self) -> str:
        return os.path.join(self.backups_dir, "last_known_good")

    # Files
    @property
    def app(self) -> str:
        return os.path.join(self.config_dir, "app.json")

    @property
    def privacy(self) -> str:
        return os.path.join(self.config_dir, "privacy.json")

    @property
    def views(self) -> str:
        return os.path.join(self.config_dir, "views.json")

    def resolve(self, path: str) -> str:
        """
        Paths in config files are relative to the root unless absolute.
        """
        p = str(path or "")
        if not p or os.path.isabs(p):
            return p
        return os.path.join(self.root, p)
