from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Iterable

from .casing import apply_casing
from .store import iter_book_rows, reading
from .tokens import iter_tokens

SUGGESTION_COLUMNS = (
    "SELECT s.id, tt.typ AS token, st.typ AS suggestion, mt.typ AS modern, "
    "s.dict, s.weight, s.distance, s.topsuggestion, s.histpatterns, s.ocrpatterns "
    "FROM suggestions s "
    "JOIN types tt ON s.tokentypid = tt.id "
    "JOIN types st ON s.suggestiontypid = st.id "
    "JOIN types mt ON s.moderntypid = mt.id "
)


@dataclass(frozen=True)
class Suggestion:
    token: str
    suggestion: str
    modern: str
    dictionary: str
    weight: float
    distance: int
    top: bool
    hist_patterns: str
    ocr_patterns: str


def _suggestion(row: sqlite3.Row, model: str | None = None) -> Suggestion:
    token, suggestion, modern = str(row["token"]), str(row["suggestion"]), str(row["modern"])
    if model is not None:
        token = apply_casing(model, token)
        suggestion = apply_casing(model, suggestion)
        modern = apply_casing(model, modern)
    return Suggestion(
        token=token,
        suggestion=suggestion,
        modern=modern,
        dictionary=str(row["dict"]),
        weight=float(row["weight"]),
        distance=int(row["distance"]),
        top=bool(row["topsuggestion"]),
        hist_patterns=str(row["histpatterns"]),
        ocr_patterns=str(row["ocrpatterns"]),
    )


def query_suggestions(con: sqlite3.Connection, book_id: int, queries: Iterable[str]) -> dict[str, list[Suggestion]]:
    """Suggestions per query token, cased like the query."""
    out: dict[str, list[Suggestion]] = {}
    stmt = (
        SUGGESTION_COLUMNS
        + "WHERE s.bookid = ? AND tt.typ = ? "
        "ORDER BY s.topsuggestion DESC, s.weight DESC, s.id"
    )
    with reading("get suggestions"):
        for q in queries:
            rows = con.execute(stmt, (book_id, q.casefold())).fetchall()
            out[q] = [_suggestion(r, model=q) for r in rows]
    return out


def query_patterns(
    con: sqlite3.Connection,
    book_id: int,
    patterns: Iterable[str] = (),
    *,
    ocr: bool = False,
) -> dict[str, int] | dict[str, list[Suggestion]]:
    """Without patterns: {pattern: occurrences}. Otherwise the suggestions of each pattern."""
    keys = list(patterns)
    with reading("get error patterns"):
        if not keys:
            rows = con.execute(
                "SELECT pattern, COUNT(*) AS n FROM errorpatterns WHERE bookid = ? AND ocr = ? "
                "GROUP BY pattern ORDER BY n DESC, pattern",
                (book_id, int(ocr)),
            ).fetchall()
            return {str(r["pattern"]): int(r["n"]) for r in rows}

        stmt = (
            SUGGESTION_COLUMNS
            + "WHERE s.bookid = ? AND s.id IN "
            "(SELECT suggestionid FROM errorpatterns WHERE bookid = ? AND ocr = ? AND pattern = ?) "
            "ORDER BY s.id"
        )
        out: dict[str, list[Suggestion]] = {}
        for key in keys:
            rows = con.execute(stmt, (book_id, book_id, int(ocr), key)).fetchall()
            out[key] = [_suggestion(r) for r in rows]
        return out


def suspicious_tokens(con: sqlite3.Connection, book_id: int) -> list[tuple[str, int]]:
    """Tokens whose top suggestion differs from the token, with their frequency."""
    with reading("get suspicious words"):
        rows = con.execute(
            "SELECT DISTINCT t.typ, c.counts FROM suggestions s "
            "JOIN types t ON s.tokentypid = t.id "
            "JOIN typcounts c ON c.typid = s.tokentypid AND c.bookid = s.bookid "
            "WHERE s.bookid = ? AND s.topsuggestion = 1 AND s.distance > 0 "
            "ORDER BY c.counts DESC, t.typ",
            (book_id,),
        ).fetchall()
    return [(str(r[0]), int(r[1])) for r in rows]


def adaptive_tokens(con: sqlite3.Connection, book_id: int) -> list[str]:
    """Distinct case folded corrections of the fully corrected tokens, in book order."""
    seen: dict[str, None] = {}
    for token in iter_tokens(iter_book_rows(con, book_id)):
        if not token.fully_corrected:
            continue
        cor = token.cor.casefold()
        if cor and cor not in seen:
            seen[cor] = None
    return list(seen)
