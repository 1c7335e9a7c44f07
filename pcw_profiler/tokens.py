"""Split a book's character alignment rows into profiler tokens.

Rows are expected in (page, line, seq) order. The order is not checked:
the loader that selects the rows is responsible for it.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from itertools import groupby
from typing import Iterable, Iterator


@dataclass(frozen=True)
class AlignmentRow:
    """One OCR character aligned with its correction.

    cor is None while the character is unreviewed (or marked uncertain);
    an empty cor means the reviewer deleted the character.
    """

    page_id: int
    line_id: int
    seq: int
    ocr: str
    cor: str | None = None

    @property
    def corrected(self) -> bool:
        return self.cor is not None


@dataclass(frozen=True)
class Token:
    ocr: str
    cor: str
    fully_corrected: bool

    @property
    def engine_cor(self) -> str | None:
        """Correction handed to the profiler; None means ground truth is unknown."""
        return self.cor if self.fully_corrected else None


def is_boundary(row: AlignmentRow) -> bool:
    ch = row.ocr
    if not ch:
        return False
    return ch.isspace() or unicodedata.category(ch[0]).startswith("P")


def make_token(rows: list[AlignmentRow]) -> Token:
    ocr = "".join(r.ocr for r in rows)
    cor = "".join(r.cor if r.cor is not None else r.ocr for r in rows)
    # One unreviewed character invalidates the ground truth of the whole word.
    return Token(ocr=ocr, cor=cor, fully_corrected=all(r.corrected for r in rows))


def tokenize(line: Iterable[AlignmentRow]) -> Iterator[Token]:
    word: list[AlignmentRow] = []
    for row in line:
        if is_boundary(row):
            if word:
                yield make_token(word)
                word = []
            continue
        word.append(row)
    if word:
        yield make_token(word)


def iter_lines(rows: Iterable[AlignmentRow]) -> Iterator[list[AlignmentRow]]:
    for _, line in groupby(rows, key=lambda r: (r.page_id, r.line_id)):
        yield list(line)


def iter_tokens(rows: Iterable[AlignmentRow]) -> Iterator[Token]:
    for line in iter_lines(rows):
        yield from tokenize(line)
