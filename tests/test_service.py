from __future__ import annotations

import sqlite3
import threading
from pathlib import Path

import pytest

from conftest import BOOK_ID, write_line
from pcw_profiler.config import Settings
from pcw_profiler.errors import (
    BookNotFoundError,
    EngineCancelledError,
    EngineError,
    LanguageNotFoundError,
    ProfileNotFoundError,
)
from pcw_profiler.jobs import CANCELLED, DONE, FAILED
from pcw_profiler.profile import Candidate, Interpretation, read_archive
from pcw_profiler.service import ProfilerService
from pcw_profiler.store import STATUS_PROFILED, Book, add_book, get_book


def _settings(tmp_path: Path, db_path: Path) -> Settings:
    lang_dir = tmp_path / "languages"
    lang_dir.mkdir()
    (lang_dir / "german.ini").write_text("[language]\n", encoding="utf-8")
    return Settings(
        project_dir=tmp_path / "projects",
        language_dir=lang_dir,
        profiler=tmp_path / "profiler",
        db_path=db_path,
    )


class StubEngine:
    def __init__(
        self,
        interps=None,
        error: Exception | None = None,
        gate: threading.Event | None = None,
        cancel_on_return: bool = False,
    ):
        self.interps = interps or []
        self.error = error
        self.gate = gate
        self.cancel_on_return = cancel_on_return
        self.calls: list[list] = []

    def __call__(self, executable, config, tokens, *, cancel=None):
        self.calls.append([(t.ocr, t.engine_cor) for t in tokens])
        if self.gate is not None:
            while not self.gate.wait(0.01):
                if cancel is not None and cancel.is_set():
                    raise EngineCancelledError("profiler cancelled")
        if self.error is not None:
            raise self.error
        if self.cancel_on_return and cancel is not None:
            cancel.set()
        return self.interps


def test_profile_job_end_to_end(tmp_path: Path, db_path: Path, con: sqlite3.Connection) -> None:
    write_line(con, "teh", "the")
    engine = StubEngine([Interpretation("teh", 1, (Candidate("the", "the", 0.9, 1),))])
    service = ProfilerService(_settings(tmp_path, db_path), run_engine=engine)

    job_id = service.submit(BOOK_ID)
    status = service.registry.wait(job_id, timeout=10)

    assert status is not None and status.status == DONE, status
    assert engine.calls == [[("teh", "the")]]
    archive = service.profile_archive(BOOK_ID)
    assert archive == tmp_path / "projects" / "book-1" / "profile.json.gz"
    assert read_archive(archive).interpretations[0].candidates[0].suggestion == "the"
    assert get_book(con, BOOK_ID).status_id == STATUS_PROFILED
    (sugg,) = service.suggestions(BOOK_ID, ["Teh"])["Teh"]
    assert sugg.suggestion == "The"
    assert sugg.top
    assert service.suspicious(BOOK_ID) == [("teh", 1)]
    assert service.adaptive(BOOK_ID) == ["the"]


def test_submit_fails_fast_on_unknown_language(tmp_path: Path, db_path: Path, con: sqlite3.Connection) -> None:
    add_book(con, Book(book_id=2, directory="book-2", lang="German"))
    engine = StubEngine()
    service = ProfilerService(_settings(tmp_path, db_path), run_engine=engine)
    with pytest.raises(LanguageNotFoundError):
        service.submit(2)
    with pytest.raises(BookNotFoundError):
        service.submit(99)
    assert engine.calls == []


def test_engine_failure_marks_job_failed(tmp_path: Path, db_path: Path, con: sqlite3.Connection) -> None:
    write_line(con, "teh", None)
    service = ProfilerService(_settings(tmp_path, db_path), run_engine=StubEngine(error=EngineError("no lexicon")))

    status = service.registry.wait(service.submit(BOOK_ID), timeout=10)

    assert status is not None
    assert status.status == FAILED
    assert status.message == "cannot profile: no lexicon"
    with pytest.raises(ProfileNotFoundError):
        service.profile_archive(BOOK_ID)
    assert con.execute("SELECT COUNT(*) FROM suggestions").fetchone()[0] == 0


def test_archive_failure_skips_ingestion(tmp_path: Path, db_path: Path, con: sqlite3.Connection) -> None:
    settings = _settings(tmp_path, db_path)
    settings.project_dir.write_text("not a directory", encoding="utf-8")
    engine = StubEngine([Interpretation("teh", 1, (Candidate("the", "the", 0.9, 1),))])
    service = ProfilerService(settings, run_engine=engine)

    status = service.registry.wait(service.submit(BOOK_ID), timeout=10)

    assert status is not None and status.status == FAILED
    assert "cannot write profile" in status.message
    assert con.execute("SELECT COUNT(*) FROM suggestions").fetchone()[0] == 0


def test_cancel_running_job(tmp_path: Path, db_path: Path, con: sqlite3.Connection) -> None:
    gate = threading.Event()
    service = ProfilerService(_settings(tmp_path, db_path), run_engine=StubEngine(gate=gate))
    job_id = service.submit(BOOK_ID)

    assert service.cancel(job_id)
    status = service.registry.wait(job_id, timeout=10)

    assert status is not None and status.status == CANCELLED
    assert not service.cancel(job_id)


def test_one_running_job_per_book(tmp_path: Path, db_path: Path, con: sqlite3.Connection) -> None:
    gate = threading.Event()
    service = ProfilerService(_settings(tmp_path, db_path), run_engine=StubEngine(gate=gate))
    first = service.submit(BOOK_ID)
    assert service.submit(BOOK_ID) == first
    gate.set()
    assert service.registry.wait(first, timeout=10).status == DONE
    second = service.submit(BOOK_ID)
    assert second != first
    service.registry.wait(second, timeout=10)


def test_unknown_job(tmp_path: Path, db_path: Path, con: sqlite3.Connection) -> None:
    service = ProfilerService(_settings(tmp_path, db_path))
    assert service.job(12345) is None
    assert not service.cancel(12345)


def test_cancel_after_engine_returns_is_ignored(tmp_path: Path, db_path: Path, con: sqlite3.Connection) -> None:
    write_line(con, "teh", "the")
    engine = StubEngine([Interpretation("teh", 1, (Candidate("the", "the", 0.9, 1),))], cancel_on_return=True)
    service = ProfilerService(_settings(tmp_path, db_path), run_engine=engine)

    status = service.registry.wait(service.submit(BOOK_ID), timeout=10)

    assert status is not None and status.status == DONE, status
    assert service.profile_archive(BOOK_ID).is_file()
    assert [s.suggestion for s in service.suggestions(BOOK_ID, ["teh"])["teh"]] == ["the"]
    assert get_book(con, BOOK_ID).status_id == STATUS_PROFILED


def test_stored_profile_is_read_back(tmp_path: Path, db_path: Path, con: sqlite3.Connection) -> None:
    write_line(con, "teh", None)
    engine = StubEngine([Interpretation("teh", 1, (Candidate("the", "the", 0.9, 1),))])
    service = ProfilerService(_settings(tmp_path, db_path), run_engine=engine)
    with pytest.raises(ProfileNotFoundError):
        service.profile(BOOK_ID)

    service.registry.wait(service.submit(BOOK_ID), timeout=10)

    profile = service.profile(BOOK_ID)
    assert profile.book_id == BOOK_ID
    assert [i.ocr for i in profile.interpretations] == ["teh"]
