#!/usr/bin/env python3
"""List the languages the profiler has configurations for.

Usage:
  python3 scripts/list_languages.py --language-dir /language-data
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Make this script runnable without installing the package (no PYTHONPATH required)
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from pcw_profiler.config import add_settings_args, configure_logging, settings_from_args  # noqa: E402
from pcw_profiler.languages import list_languages  # noqa: E402


def main() -> None:
    ap = argparse.ArgumentParser()
    add_settings_args(ap)
    args = ap.parse_args()

    settings = settings_from_args(args)
    configure_logging(settings)

    try:
        configs = list_languages(settings.language_dir)
    except OSError as exc:
        raise SystemExit(f"cannot list languages: {exc}")
    for c in configs:
        print(f"{c.language}\t{c.path}")


if __name__ == "__main__":
    main()
