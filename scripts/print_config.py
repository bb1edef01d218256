from __future__ import annotations

import argparse
import json

from crmlens.core.config import ConfigManager
from crmlens.core.config.paths import ConfigFsPaths


def main() -> int:
    ap = argparse.ArgumentParser(description="Print the validated crmlens configuration")
    ap.add_argument("--root", default=".")
    args = ap.parse_args()

    cm = ConfigManager(fs=ConfigFsPaths(args.root), logger=None, read_only=True)
    cfg = cm.load_all()
    print(json.dumps(cfg.model_dump(mode="json"), indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
