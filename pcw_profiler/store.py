"""SQLite storage for books, their alignment contents and normalized profiles.

Observed layout:
- books(bookid, directory, lang, statusid)
- contents: one row per aligned character, ordered by (pageid, lineid, seq)
- types: interned surface strings (unique, case sensitive)
- typcounts / suggestions / errorpatterns: the normalized profile of a book

Table and column names are fixed here; no statement is assembled from input.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

from .errors import BookNotFoundError, StorageError
from .tokens import AlignmentRow

logger = logging.getLogger(__name__)

# Book status ordering. Statuses only ever move forward.
STATUS_EMPTY = 1
STATUS_PROFILED = 2
STATUS_EXTENDED_LEXICON = 3
STATUS_PROFILED_WITH_EL = 4
STATUS_POST_CORRECTED = 5

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS books (
  bookid INTEGER PRIMARY KEY,
  directory TEXT NOT NULL,
  lang TEXT NOT NULL,
  statusid INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS contents (
  bookid INTEGER NOT NULL REFERENCES books(bookid),
  pageid INTEGER NOT NULL,
  lineid INTEGER NOT NULL,
  seq INTEGER NOT NULL,
  ocr TEXT NOT NULL,
  cor TEXT,               -- NULL while unreviewed
  PRIMARY KEY (bookid, pageid, lineid, seq)
);

CREATE TABLE IF NOT EXISTS types (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  typ TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS typcounts (
  typid INTEGER NOT NULL REFERENCES types(id),
  bookid INTEGER NOT NULL,
  counts INTEGER NOT NULL,
  UNIQUE (typid, bookid)
);

CREATE TABLE IF NOT EXISTS suggestions (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  bookid INTEGER NOT NULL,
  tokentypid INTEGER NOT NULL REFERENCES types(id),
  suggestiontypid INTEGER NOT NULL REFERENCES types(id),
  moderntypid INTEGER NOT NULL REFERENCES types(id),
  dict TEXT NOT NULL,
  weight REAL NOT NULL,
  distance INTEGER NOT NULL,
  topsuggestion INTEGER NOT NULL,
  histpatterns TEXT NOT NULL,
  ocrpatterns TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS errorpatterns (
  suggestionid INTEGER NOT NULL REFERENCES suggestions(id),
  bookid INTEGER NOT NULL,
  pattern TEXT NOT NULL,
  ocr INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_suggestions_book_token ON suggestions(bookid, tokentypid);
CREATE INDEX IF NOT EXISTS idx_errorpatterns_book_pattern ON errorpatterns(bookid, ocr, pattern);
"""


@dataclass(frozen=True)
class Book:
    book_id: int
    directory: str
    lang: str
    status_id: int = STATUS_EMPTY


def connect(db_path: Path | str) -> sqlite3.Connection:
    try:
        con = sqlite3.connect(str(db_path), isolation_level=None)
        con.row_factory = sqlite3.Row
        con.execute("PRAGMA foreign_keys = ON;")
    except sqlite3.Error as exc:
        raise StorageError(f"cannot open database {db_path}: {exc}") from exc
    return con


def init_db(con: sqlite3.Connection) -> None:
    try:
        con.executescript(SCHEMA_SQL)
    except sqlite3.Error as exc:
        raise StorageError(f"cannot create schema: {exc}") from exc


@contextmanager
def transaction(con: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run a block in one transaction: commit on success, roll back otherwise."""
    try:
        con.execute("BEGIN")
    except sqlite3.Error as exc:
        raise StorageError(f"cannot begin transaction: {exc}") from exc
    try:
        yield con
    except sqlite3.Error as exc:
        con.rollback()
        raise StorageError(str(exc)) from exc
    except BaseException:
        con.rollback()
        raise
    try:
        con.commit()
    except sqlite3.Error as exc:
        con.rollback()
        raise StorageError(f"cannot commit transaction: {exc}") from exc


@contextmanager
def reading(what: str) -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as exc:
        raise StorageError(f"cannot {what}: {exc}") from exc


class TypeInterner:
    """Interning session for type strings, scoped to one ingestion.

    resolve() consults the session cache first, then inserts the string into
    the types table (ignoring an existing row) and reads back its id.
    """

    def __init__(self, con: sqlite3.Connection):
        self.con = con
        self.cache: dict[str, int] = {}

    def resolve(self, typ: str) -> int:
        tid = self.cache.get(typ)
        if tid is not None:
            return tid
        self.con.execute("INSERT INTO types(typ) VALUES (?) ON CONFLICT(typ) DO NOTHING", (typ,))
        row = self.con.execute("SELECT id FROM types WHERE typ = ?", (typ,)).fetchone()
        tid = int(row[0])
        self.cache[typ] = tid
        return tid


def add_book(con: sqlite3.Connection, book: Book) -> None:
    with transaction(con):
        con.execute(
            "INSERT INTO books(bookid, directory, lang, statusid) VALUES (?, ?, ?, ?)",
            (book.book_id, book.directory, book.lang, book.status_id),
        )


def add_line(
    con: sqlite3.Connection,
    book_id: int,
    page_id: int,
    line_id: int,
    chars: Iterable[tuple[str, str | None]],
) -> None:
    """Store one line as (ocr, cor) character pairs; cor None means unreviewed."""
    with transaction(con):
        con.executemany(
            "INSERT INTO contents(bookid, pageid, lineid, seq, ocr, cor) VALUES (?, ?, ?, ?, ?, ?)",
            [(book_id, page_id, line_id, seq, ocr, cor) for seq, (ocr, cor) in enumerate(chars)],
        )


def get_book(con: sqlite3.Connection, book_id: int) -> Book:
    with reading(f"select book {book_id}"):
        row = con.execute(
            "SELECT bookid, directory, lang, statusid FROM books WHERE bookid = ?", (book_id,)
        ).fetchone()
    if row is None:
        raise BookNotFoundError(book_id)
    return Book(book_id=int(row["bookid"]), directory=str(row["directory"]), lang=str(row["lang"]), status_id=int(row["statusid"]))


def iter_book_rows(con: sqlite3.Connection, book_id: int) -> Iterator[AlignmentRow]:
    """Yield the alignment rows of a book in page, line, seq order."""
    with reading(f"select lines for book ID {book_id}"):
        cur = con.execute(
            "SELECT pageid, lineid, seq, ocr, cor FROM contents WHERE bookid = ? ORDER BY pageid, lineid, seq",
            (book_id,),
        )
        for r in cur:
            yield AlignmentRow(page_id=int(r[0]), line_id=int(r[1]), seq=int(r[2]), ocr=str(r[3]), cor=r[4])


def delete_profile_rows(con: sqlite3.Connection, book_id: int) -> None:
    logger.debug("deleting profile rows of book %d", book_id)
    con.execute("DELETE FROM errorpatterns WHERE bookid = ?", (book_id,))
    con.execute("DELETE FROM suggestions WHERE bookid = ?", (book_id,))
    con.execute("DELETE FROM typcounts WHERE bookid = ?", (book_id,))


def set_status_forward(con: sqlite3.Connection, book_id: int, status_id: int) -> bool:
    """Advance a book's status to status_id unless it is already there or beyond."""
    cur = con.execute(
        "UPDATE books SET statusid = ? WHERE bookid = ? AND statusid < ?",
        (status_id, book_id, status_id),
    )
    return cur.rowcount > 0
