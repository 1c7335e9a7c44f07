from __future__ import annotations


class ProfilerError(Exception):
    """Base class for all errors raised by pcw_profiler."""


class ConfigurationError(ProfilerError):
    pass


class LanguageNotFoundError(ConfigurationError):
    def __init__(self, language: str):
        super().__init__(f"no such language: {language}")
        self.language = language


class BookNotFoundError(ConfigurationError):
    def __init__(self, book_id: int):
        super().__init__(f"no such book: {book_id}")
        self.book_id = book_id


class EngineError(ProfilerError):
    """The external profiler failed or produced unusable output."""


class EngineCancelledError(EngineError):
    pass


class StorageError(ProfilerError):
    pass


class ArchivalError(ProfilerError):
    pass


class ProfileNotFoundError(ProfilerError):
    def __init__(self, book_id: int):
        super().__init__(f"book {book_id} has not been profiled")
        self.book_id = book_id
