"""Profile OCR-corrected books and store the profiler's suggestions.

Pipeline: alignment rows -> tokens -> external profiler -> gzip archive +
normalized tables, queried per book with the casing of the query applied.
"""

from .casing import apply_casing
from .errors import (
    ArchivalError,
    BookNotFoundError,
    ConfigurationError,
    EngineCancelledError,
    EngineError,
    LanguageNotFoundError,
    ProfileNotFoundError,
    ProfilerError,
    StorageError,
)
from .ingest import ingest_profile
from .profile import Candidate, Interpretation, Pattern, Profile
from .tokens import AlignmentRow, Token, iter_tokens, tokenize
