from __future__ import annotations

import sqlite3

from conftest import BOOK_ID, write_line
from pcw_profiler.ingest import ingest_profile
from pcw_profiler.profile import Candidate, Interpretation, Pattern, Profile
from pcw_profiler.queries import adaptive_tokens, query_patterns, query_suggestions, suspicious_tokens
from pcw_profiler.store import Book, add_book


def _ingest(con: sqlite3.Connection, book_id: int = BOOK_ID) -> None:
    profile = Profile(
        book_id=book_id,
        interpretations=[
            Interpretation(
                ocr="vnnd",
                n=4,
                candidates=(
                    Candidate("vnd", "und", 0.6, 1, "hist", (Pattern("u", "v", 0),), (Pattern("n", "nn", 1),)),
                    Candidate("vnnd", "unnd", 0.3, 0, "hist", (Pattern("u", "v", 0),), ()),
                ),
            ),
            Interpretation(
                ocr="teh",
                n=7,
                candidates=(Candidate("the", "the", 0.9, 1, "modern", (), (Pattern("he", "eh", 1),)),),
            ),
            Interpretation(ocr="fox", n=9, candidates=(Candidate("fox", "fox", 0.99, 0, "modern"),)),
        ],
    )
    ingest_profile(con, profile)


def test_query_suggestions_applies_query_casing(con: sqlite3.Connection) -> None:
    _ingest(con)
    found = query_suggestions(con, BOOK_ID, ["Vnnd", "TEH", "missing"])

    assert found["missing"] == []
    top, other = found["Vnnd"]
    assert (top.token, top.suggestion, top.modern) == ("Vnnd", "Vnd", "Und")
    assert top.top and not other.top
    assert top.ocr_patterns == "n:nn:1"
    assert top.hist_patterns == "u:v:0"
    (teh,) = found["TEH"]
    assert (teh.token, teh.suggestion, teh.modern) == ("TEH", "THE", "THE")
    assert teh.distance == 1
    assert teh.dictionary == "modern"


def test_query_suggestions_is_scoped_to_book(con: sqlite3.Connection) -> None:
    add_book(con, Book(book_id=2, directory="book-2", lang="german"))
    _ingest(con, book_id=2)
    assert query_suggestions(con, BOOK_ID, ["teh"]) == {"teh": []}
    assert len(query_suggestions(con, 2, ["teh"])["teh"]) == 1


def test_query_patterns_tally(con: sqlite3.Connection) -> None:
    _ingest(con)
    assert query_patterns(con, BOOK_ID) == {"u:v": 2}
    assert query_patterns(con, BOOK_ID, ocr=True) == {"he:eh": 1, "n:nn": 1}


def test_query_patterns_by_key(con: sqlite3.Connection) -> None:
    _ingest(con)
    found = query_patterns(con, BOOK_ID, ["u:v", "x:y"])
    assert [s.suggestion for s in found["u:v"]] == ["vnd", "vnnd"]
    assert found["x:y"] == []
    # Patterns are looked up on the requested side only.
    assert query_patterns(con, BOOK_ID, ["u:v"], ocr=True) == {"u:v": []}


def test_suspicious_tokens(con: sqlite3.Connection) -> None:
    _ingest(con)
    assert suspicious_tokens(con, BOOK_ID) == [("teh", 7), ("vnnd", 4)]


def test_adaptive_tokens(con: sqlite3.Connection) -> None:
    write_line(con, "Teh qvick fox", "The quick fox", line=1)
    write_line(con, "the Quick brwn", "the Quick brow", line=2)
    write_line(con, "dog", None, line=3)
    assert adaptive_tokens(con, BOOK_ID) == ["the", "quick", "fox", "brow"]


def test_queries_on_unprofiled_book_are_empty(con: sqlite3.Connection) -> None:
    assert query_suggestions(con, BOOK_ID, ["teh"]) == {"teh": []}
    assert query_patterns(con, BOOK_ID) == {}
    assert suspicious_tokens(con, BOOK_ID) == []
    assert adaptive_tokens(con, BOOK_ID) == []
