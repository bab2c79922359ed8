from __future__ import annotations

import argparse
import json

from memwatch.core.config import load_config


def main() -> None:
    ap = argparse.ArgumentParser(description="Print the resolved memwatch configuration as JSON.")
    ap.add_argument("--config", default=None, help="Path to config JSON (default: config/memwatch.json).")
    args = ap.parse_args()
    cfg = load_config(args.config)
    print(json.dumps(cfg.model_dump(mode="json"), indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
