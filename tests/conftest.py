from __future__ import annotations

import sqlite3
import sys
from pathlib import Path

import pytest

from pcw_profiler.store import Book, add_book, add_line, connect, init_db

BOOK_ID = 1


def write_line(con: sqlite3.Connection, ocr: str, cor: str | None = None, *, page: int = 1, line: int = 1) -> None:
    """Store a line of book BOOK_ID; cor None leaves every character unreviewed."""
    cors = list(cor) if cor is not None else [None] * len(ocr)
    assert len(cors) == len(ocr)
    add_line(con, BOOK_ID, page, line, list(zip(ocr, cors)))


def write_engine(path: Path, body: str) -> Path:
    """Write an executable Python script standing in for the profiler."""
    path.write_text(f"#!{sys.executable}\n{body}", encoding="utf-8")
    path.chmod(0o755)
    return path


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "pcw.sqlite"


@pytest.fixture
def con(db_path: Path):
    con = connect(db_path)
    init_db(con)
    add_book(con, Book(book_id=BOOK_ID, directory="book-1", lang="german"))
    yield con
    con.close()
