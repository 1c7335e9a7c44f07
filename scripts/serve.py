#!/usr/bin/env python3
"""Serve the profiler HTTP API.

Usage:
  python3 scripts/serve.py --listen :8080 --db /data/pcw.sqlite
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

import uvicorn  # noqa: E402

from pcw_profiler.config import add_settings_args, configure_logging, settings_from_args  # noqa: E402
from pcw_profiler.service import ProfilerService  # noqa: E402
from pcw_profiler.web import create_app  # noqa: E402


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--listen", default=None, help="host:port to listen on")
    add_settings_args(ap)
    args = ap.parse_args()

    settings = settings_from_args(args)
    if args.listen:
        settings.listen = str(args.listen)
    configure_logging(settings)
    host, port = settings.host_port

    app = create_app(ProfilerService(settings))
    uvicorn.run(app, host=host, port=port, log_level="debug" if settings.debug else "info")


if __name__ == "__main__":
    main()
