from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigurationError
from .ingest import DEFAULT_CUTOFF

ENV_PREFIX = "PCW_PROFILER_"


def _env(name: str, default: str) -> str:
    raw = os.environ.get(ENV_PREFIX + name, "").strip()
    return raw or default


def _env_truthy(name: str) -> bool:
    return _env(name, "").lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Operator settings; see .env.example for the environment variables."""

    project_dir: Path = Path("/project-data")
    language_dir: Path = Path("/language-data")
    profiler: Path = Path("/apps/profiler")
    db_path: Path = Path("pcw_profiler.sqlite")
    cutoff: float = DEFAULT_CUTOFF
    listen: str = "127.0.0.1:8080"
    debug: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        raw_cutoff = _env("CUTOFF", str(DEFAULT_CUTOFF))
        try:
            cutoff = float(raw_cutoff)
        except ValueError as exc:
            raise ConfigurationError(f"invalid {ENV_PREFIX}CUTOFF: {raw_cutoff!r}") from exc
        return cls(
            project_dir=Path(_env("PROJECT_DIR", "/project-data")),
            language_dir=Path(_env("LANGUAGE_DIR", "/language-data")),
            profiler=Path(_env("EXECUTABLE", "/apps/profiler")),
            db_path=Path(_env("DB", "pcw_profiler.sqlite")),
            cutoff=cutoff,
            listen=_env("LISTEN", "127.0.0.1:8080"),
            debug=_env_truthy("DEBUG"),
        )

    @property
    def host_port(self) -> tuple[str, int]:
        host, sep, port = self.listen.rpartition(":")
        if not sep:
            host, port = self.listen, "8080"
        try:
            return host or "0.0.0.0", int(port)
        except ValueError as exc:
            raise ConfigurationError(f"invalid listen address: {self.listen!r}") from exc

    @property
    def log_level(self) -> int:
        return logging.DEBUG if self.debug else logging.INFO


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def add_settings_args(ap: argparse.ArgumentParser) -> None:
    """Flags overriding the environment settings (PCW_PROFILER_*)."""
    ap.add_argument("--project-dir", default=None, help="Base directory of the book projects")
    ap.add_argument("--language-dir", default=None, help="Directory of the profiler language configurations")
    ap.add_argument("--profiler", default=None, help="Path to the profiler executable")
    ap.add_argument("--db", default=None, help="SQLite database path")
    ap.add_argument("--cutoff", type=float, default=None, help="Minimum candidate weight to store a suggestion")
    ap.add_argument("--debug", action="store_true", help="Enable debug logging")


def settings_from_args(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    if args.project_dir:
        settings.project_dir = Path(args.project_dir)
    if args.language_dir:
        settings.language_dir = Path(args.language_dir)
    if args.profiler:
        settings.profiler = Path(args.profiler)
    if args.db:
        settings.db_path = Path(args.db)
    if args.cutoff is not None:
        settings.cutoff = float(args.cutoff)
    if args.debug:
        settings.debug = True
    return settings
