#!/usr/bin/env python3
"""Profile one book and store the result.

Runs the same job the service runs in the background, but waits for it:
tokenize the book's contents, run the profiler, write
<project-dir>/<book dir>/profile.json.gz and replace the book's suggestions,
error patterns and type counts in the database.

Usage:
  python3 scripts/profile_book.py --book-id 7 \
    --db /data/pcw.sqlite --profiler /apps/profiler --language-dir /language-data
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from pcw_profiler.config import add_settings_args, configure_logging, settings_from_args  # noqa: E402
from pcw_profiler.errors import ProfilerError  # noqa: E402
from pcw_profiler.jobs import DONE  # noqa: E402
from pcw_profiler.service import ProfilerService  # noqa: E402


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--book-id", type=int, required=True)
    add_settings_args(ap)
    args = ap.parse_args()

    settings = settings_from_args(args)
    configure_logging(settings)

    service = ProfilerService(settings)
    try:
        job_id = service.submit(args.book_id)
    except ProfilerError as exc:
        raise SystemExit(f"cannot profile: {exc}")

    try:
        status = service.registry.wait(job_id)
    except KeyboardInterrupt:
        service.cancel(job_id)
        status = service.registry.wait(job_id)

    print(json.dumps(status.to_json() if status else {}, ensure_ascii=False, indent=2))
    if status is None or status.status != DONE:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
