"""Profiling jobs and the read/write operations offered to clients."""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import closing, contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Iterator

from .config import Settings
from .engine import run_profile
from .errors import ProfileNotFoundError
from .ingest import IngestReport, ingest_profile
from .jobs import JobRegistry, JobStatus
from .languages import LanguageConfiguration, find_language, list_languages
from .profile import Interpretation, Profile, archive_path, read_archive, write_archive
from .queries import Suggestion, adaptive_tokens, query_patterns, query_suggestions, suspicious_tokens
from .store import Book, connect, get_book, init_db, iter_book_rows
from .tokens import Token, iter_tokens

logger = logging.getLogger(__name__)

EngineFunc = Callable[..., list[Interpretation]]


@dataclass
class ProfileJob:
    """Tokenize a book, profile it, archive the profile and ingest it."""

    settings: Settings
    book: Book
    config: LanguageConfiguration
    run_engine: EngineFunc = run_profile

    def __call__(self, cancel: threading.Event) -> IngestReport:
        with closing(connect(self.settings.db_path)) as con:
            tokens = list(self.tokens(con))
            logger.debug("book %d: %d tokens", self.book.book_id, len(tokens))
            interps = self.run_engine(self.settings.profiler, self.config, tokens, cancel=cancel)
            profile = Profile(book_id=self.book.book_id, interpretations=interps)
            # From here on the job runs to completion; cancel is not consulted.
            write_archive(profile, archive_path(self.settings.project_dir, self.book.directory))
            return ingest_profile(con, profile, cutoff=self.settings.cutoff)

    def tokens(self, con: sqlite3.Connection) -> Iterator[Token]:
        return iter_tokens(iter_book_rows(con, self.book.book_id))


class ProfilerService:
    def __init__(
        self,
        settings: Settings,
        *,
        registry: JobRegistry | None = None,
        run_engine: EngineFunc = run_profile,
    ):
        self.settings = settings
        self.registry = registry or JobRegistry()
        self.run_engine = run_engine
        with self.connection() as con:
            init_db(con)

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        with closing(connect(self.settings.db_path)) as con:
            yield con

    def languages(self) -> list[str]:
        return [c.language for c in list_languages(self.settings.language_dir)]

    def book(self, book_id: int) -> Book:
        with self.connection() as con:
            return get_book(con, book_id)

    def profile_archive(self, book_id: int) -> Path:
        book = self.book(book_id)
        path = archive_path(self.settings.project_dir, book.directory)
        if not path.is_file():
            raise ProfileNotFoundError(book_id)
        return path

    def profile(self, book_id: int) -> Profile:
        return read_archive(self.profile_archive(book_id))

    def submit(self, book_id: int) -> int:
        """Start profiling a book; returns the job id.

        An unknown book or language fails here. Everything after that is
        reported through the job status.
        """
        book = self.book(book_id)
        config = find_language(self.settings.language_dir, book.lang)
        job = ProfileJob(settings=self.settings, book=book, config=config, run_engine=self.run_engine)
        return self.registry.start(book.book_id, "profile", job)

    def suggestions(self, book_id: int, queries: Iterable[str]) -> dict[str, list[Suggestion]]:
        with self.connection() as con:
            get_book(con, book_id)
            return query_suggestions(con, book_id, queries)

    def patterns(self, book_id: int, keys: Iterable[str] = (), *, ocr: bool = False):
        with self.connection() as con:
            get_book(con, book_id)
            return query_patterns(con, book_id, keys, ocr=ocr)

    def suspicious(self, book_id: int) -> list[tuple[str, int]]:
        with self.connection() as con:
            get_book(con, book_id)
            return suspicious_tokens(con, book_id)

    def adaptive(self, book_id: int) -> list[str]:
        with self.connection() as con:
            get_book(con, book_id)
            return adaptive_tokens(con, book_id)

    def job(self, job_id: int) -> JobStatus | None:
        return self.registry.status(job_id)

    def cancel(self, job_id: int) -> bool:
        return self.registry.cancel(job_id)

    def close(self) -> None:
        self.registry.close()
