"""Run the external profiler executable over a token stream."""

from __future__ import annotations

import json
import logging
import subprocess
import threading
from pathlib import Path
from typing import Iterable

from .errors import EngineCancelledError, EngineError
from .languages import LanguageConfiguration
from .profile import Interpretation, parse_interpretations
from .tokens import Token

logger = logging.getLogger(__name__)


def engine_command(executable: Path, config: LanguageConfiguration) -> list[str]:
    return [
        str(executable),
        "--config",
        str(config.path),
        "--sourceFormat",
        "EXT",
        "--sourceFile",
        "/dev/stdin",
        "--jsonOutput",
        "/dev/stdout",
        "--types",
    ]


def engine_input(tokens: Iterable[Token]) -> tuple[str, int]:
    """Serialize tokens, one per line: `ocr` or `ocr<TAB>cor`."""
    lines: list[str] = []
    for t in tokens:
        # Words made only of inserted characters have nothing to profile.
        if not t.ocr:
            continue
        cor = t.engine_cor
        # A correction that splits the word is not usable as ground truth.
        if cor is None or any(ch.isspace() for ch in cor):
            lines.append(t.ocr)
        else:
            lines.append(f"{t.ocr}\t{cor}")
    return "".join(ln + "\n" for ln in lines), len(lines)


def run_profile(
    executable: Path,
    config: LanguageConfiguration,
    tokens: Iterable[Token],
    *,
    cancel: threading.Event | None = None,
    poll_interval: float = 0.2,
) -> list[Interpretation]:
    """Profile tokens with the language resources of config.

    The profiler runs once; there are no retries. If cancel is set while the
    process runs, it is killed and EngineCancelledError is raised.
    """
    data, n = engine_input(tokens)
    cmd = engine_command(executable, config)
    logger.debug("profiling %d tokens with %s (%s)", n, executable, config.language)
    if cancel is not None and cancel.is_set():
        raise EngineCancelledError("profiler cancelled before start")

    try:
        proc = subprocess.Popen(
            cmd,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
        )
    except OSError as exc:
        raise EngineError(f"cannot start profiler {executable}: {exc}") from exc

    pending: str | None = data
    while True:
        try:
            out, err = proc.communicate(input=pending, timeout=poll_interval)
            break
        except subprocess.TimeoutExpired:
            pending = None
            if cancel is not None and cancel.is_set():
                proc.kill()
                proc.communicate()
                raise EngineCancelledError("profiler cancelled") from None

    for line in (err or "").splitlines():
        if line.strip():
            logger.debug("profiler: %s", line)

    if proc.returncode != 0:
        tail = (err or "").strip().splitlines()
        msg = tail[-1] if tail else f"exit status {proc.returncode}"
        raise EngineError(f"profiler failed: {msg}")

    try:
        raw = json.loads(out or "{}")
    except json.JSONDecodeError as exc:
        raise EngineError(f"cannot parse profiler output: {exc}") from exc
    try:
        interps = parse_interpretations(raw)
    except (TypeError, ValueError, AttributeError) as exc:
        raise EngineError(f"cannot parse profiler output: {exc}") from exc
    logger.debug("profiler returned %d interpretations", len(interps))
    return interps
