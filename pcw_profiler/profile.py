"""Profiler output: interpretations, candidates and error patterns.

The JSON keys follow the profiler's own output so that an archived profile
can be handed back to clients unchanged.
"""

from __future__ import annotations

import gzip
import json
import logging
from contextlib import suppress
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import ArchivalError, EngineError

logger = logging.getLogger(__name__)

PROFILE_FILENAME = "profile.json.gz"


@dataclass(frozen=True)
class Pattern:
    left: str
    right: str
    pos: int = 0

    @property
    def key(self) -> str:
        return f"{self.left}:{self.right}"

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> "Pattern":
        return cls(left=str(obj.get("Left", "")), right=str(obj.get("Right", "")), pos=int(obj.get("Pos", 0)))

    def to_json(self) -> dict[str, Any]:
        return {"Left": self.left, "Right": self.right, "Pos": self.pos}


@dataclass(frozen=True)
class Candidate:
    suggestion: str
    modern: str
    weight: float
    distance: int
    dictionary: str = ""
    hist_patterns: tuple[Pattern, ...] = ()
    ocr_patterns: tuple[Pattern, ...] = ()

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> "Candidate":
        return cls(
            suggestion=str(obj.get("Suggestion", "")),
            modern=str(obj.get("Modern", "")),
            weight=float(obj.get("Weight", 0.0)),
            distance=int(obj.get("Distance", 0)),
            dictionary=str(obj.get("Dict", "")),
            hist_patterns=tuple(Pattern.from_json(p) for p in obj.get("HistPatterns") or []),
            ocr_patterns=tuple(Pattern.from_json(p) for p in obj.get("OCRPatterns") or []),
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "Suggestion": self.suggestion,
            "Modern": self.modern,
            "Dict": self.dictionary,
            "HistPatterns": [p.to_json() for p in self.hist_patterns],
            "OCRPatterns": [p.to_json() for p in self.ocr_patterns],
            "Distance": self.distance,
            "Weight": self.weight,
        }


@dataclass(frozen=True)
class Interpretation:
    ocr: str
    n: int
    candidates: tuple[Candidate, ...] = ()

    @classmethod
    def from_json(cls, obj: dict[str, Any], ocr: str | None = None) -> "Interpretation":
        return cls(
            ocr=str(obj.get("OCR", ocr or "")),
            n=int(obj.get("N", 0)),
            candidates=tuple(Candidate.from_json(c) for c in obj.get("Candidates") or []),
        )

    def to_json(self) -> dict[str, Any]:
        return {"OCR": self.ocr, "N": self.n, "Candidates": [c.to_json() for c in self.candidates]}


@dataclass
class Profile:
    book_id: int
    interpretations: list[Interpretation] = field(default_factory=list)

    def to_json(self) -> dict[str, Any]:
        return {
            "bookId": self.book_id,
            "profile": {i.ocr: i.to_json() for i in self.interpretations},
        }

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> "Profile":
        return cls(book_id=int(obj.get("bookId", 0)), interpretations=parse_interpretations(obj.get("profile")))


def parse_interpretations(raw: Any) -> list[Interpretation]:
    """Parse the profiler's JSON output.

    The profiler emits an object keyed by OCR string; a plain list of
    interpretations is accepted too. Candidate order is kept as emitted.
    """
    if raw is None:
        return []
    if isinstance(raw, dict):
        return [Interpretation.from_json(v, ocr=str(k)) for k, v in raw.items() if isinstance(v, dict)]
    if isinstance(raw, list):
        return [Interpretation.from_json(v) for v in raw if isinstance(v, dict)]
    raise EngineError(f"unexpected profile type: {type(raw).__name__}")


def archive_path(project_dir: Path, book_directory: str) -> Path:
    return project_dir / book_directory / PROFILE_FILENAME


def write_archive(profile: Profile, dest: Path) -> Path:
    """Write profile as gzip compressed JSON to dest (atomically)."""
    tmp = dest.with_suffix(dest.suffix + ".tmp")
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        with gzip.open(tmp, "wt", encoding="utf-8") as out:
            json.dump(profile.to_json(), out, ensure_ascii=False)
            out.write("\n")
        tmp.replace(dest)
    except OSError as exc:
        with suppress(OSError):
            tmp.unlink()
        raise ArchivalError(f"cannot write profile {dest}: {exc}") from exc
    logger.debug("wrote profile archive %s", dest)
    return dest


def read_archive(path: Path) -> Profile:
    try:
        with gzip.open(path, "rt", encoding="utf-8") as f:
            return Profile.from_json(json.load(f))
    except (OSError, ValueError, TypeError, AttributeError) as exc:
        raise ArchivalError(f"cannot read profile {path}: {exc}") from exc
