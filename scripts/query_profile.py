#!/usr/bin/env python3
"""Query the stored profile of a book.

Usage:
  python3 scripts/query_profile.py --db ... suggestions --book-id 7 Teh qvick
  python3 scripts/query_profile.py --db ... patterns --book-id 7 [--ocr] [PATTERN ...]
  python3 scripts/query_profile.py --db ... suspicious --book-id 7
  python3 scripts/query_profile.py --db ... adaptive --book-id 7
  python3 scripts/query_profile.py --db ... profile --book-id 7

Prints JSON.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from pcw_profiler.config import add_settings_args, configure_logging, settings_from_args  # noqa: E402
from pcw_profiler.errors import ProfilerError  # noqa: E402
from pcw_profiler.service import ProfilerService  # noqa: E402


def run(service: ProfilerService, args: argparse.Namespace):
    if args.cmd == "suggestions":
        found = service.suggestions(args.book_id, args.tokens)
        return {k: [asdict(s) for s in v] for k, v in found.items()}
    if args.cmd == "patterns":
        found = service.patterns(args.book_id, args.patterns, ocr=bool(args.ocr))
        if not args.patterns:
            return found
        return {k: [asdict(s) for s in v] for k, v in found.items()}
    if args.cmd == "suspicious":
        return {typ: n for typ, n in service.suspicious(args.book_id)}
    if args.cmd == "adaptive":
        return service.adaptive(args.book_id)
    if args.cmd == "profile":
        return service.profile(args.book_id).to_json()
    raise SystemExit(f"Unknown command: {args.cmd}")


def main() -> None:
    ap = argparse.ArgumentParser()
    add_settings_args(ap)
    sub = ap.add_subparsers(dest="cmd", required=True)

    p_sugg = sub.add_parser("suggestions")
    p_sugg.add_argument("--book-id", type=int, required=True)
    p_sugg.add_argument("tokens", nargs="+")

    p_pat = sub.add_parser("patterns")
    p_pat.add_argument("--book-id", type=int, required=True)
    p_pat.add_argument("--ocr", action="store_true", help="OCR error patterns instead of historical patterns")
    p_pat.add_argument("patterns", nargs="*")

    p_susp = sub.add_parser("suspicious")
    p_susp.add_argument("--book-id", type=int, required=True)

    p_adapt = sub.add_parser("adaptive")
    p_adapt.add_argument("--book-id", type=int, required=True)

    p_prof = sub.add_parser("profile", help="Print the archived profile")
    p_prof.add_argument("--book-id", type=int, required=True)

    args = ap.parse_args()
    settings = settings_from_args(args)
    configure_logging(settings)

    service = ProfilerService(settings)
    try:
        out = run(service, args)
    except ProfilerError as exc:
        raise SystemExit(str(exc))
    print(json.dumps(out, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
