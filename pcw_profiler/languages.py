from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .errors import LanguageNotFoundError

CONFIG_SUFFIX = ".ini"


@dataclass(frozen=True)
class LanguageConfiguration:
    language: str
    path: Path


def list_languages(directory: Path) -> list[LanguageConfiguration]:
    """List the language configurations (one <language>.ini each) in directory.

    Raises OSError if the directory cannot be read.
    """
    out = [
        LanguageConfiguration(language=p.stem, path=p)
        for p in directory.iterdir()
        if p.is_file() and p.suffix == CONFIG_SUFFIX
    ]
    out.sort(key=lambda c: c.language)
    return out


def find_language(directory: Path, language: str) -> LanguageConfiguration:
    """Exact, case-sensitive lookup of language in directory."""
    for config in list_languages(directory):
        if config.language == language:
            return config
    raise LanguageNotFoundError(language)
