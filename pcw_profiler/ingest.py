"""Normalize a profile into the relational tables of its book.

Ingestion replaces: all profile rows of the book are deleted and the new
profile inserted in the same transaction, so readers see either the old or
the new profile, never a mix.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass

from .profile import Candidate, Interpretation, Pattern, Profile
from .store import STATUS_PROFILED, TypeInterner, delete_profile_rows, set_status_forward, transaction

logger = logging.getLogger(__name__)

DEFAULT_CUTOFF = 1e-4


@dataclass
class IngestReport:
    interpretations: int = 0
    suggestions: int = 0
    patterns: int = 0
    skipped: int = 0
    status_changed: bool = False


def pattern_string(patterns: tuple[Pattern, ...]) -> str:
    return ",".join(f"{p.left}:{p.right}:{p.pos}" for p in patterns)


class ProfileIngestor:
    def __init__(self, con: sqlite3.Connection, profile: Profile, *, cutoff: float = DEFAULT_CUTOFF):
        self.con = con
        self.profile = profile
        self.cutoff = cutoff
        self.types = TypeInterner(con)
        self.report = IngestReport()

    @property
    def book_id(self) -> int:
        return self.profile.book_id

    def run(self) -> IngestReport:
        with transaction(self.con):
            delete_profile_rows(self.con, self.book_id)
            for interp in self.profile.interpretations:
                if not interp.candidates:
                    continue
                tid = self.insert_interpretation(interp)
                for i, cand in enumerate(interp.candidates):
                    if cand.weight <= self.cutoff:
                        self.report.skipped += 1
                        continue
                    self.insert_candidate(cand, tid, top=i == 0)
            self.report.status_changed = set_status_forward(self.con, self.book_id, STATUS_PROFILED)
        logger.info(
            "ingested profile of book %d: %d interpretations, %d suggestions, %d patterns (%d below cutoff)",
            self.book_id,
            self.report.interpretations,
            self.report.suggestions,
            self.report.patterns,
            self.report.skipped,
        )
        return self.report

    def insert_interpretation(self, interp: Interpretation) -> int:
        tid = self.types.resolve(interp.ocr)
        self.con.execute(
            "INSERT INTO typcounts(typid, bookid, counts) VALUES (?, ?, ?) "
            "ON CONFLICT(typid, bookid) DO UPDATE SET counts = counts + excluded.counts",
            (tid, self.book_id, interp.n),
        )
        self.report.interpretations += 1
        return tid

    def insert_candidate(self, cand: Candidate, tid: int, *, top: bool) -> None:
        sid = self.types.resolve(cand.suggestion)
        mid = self.types.resolve(cand.modern)
        cur = self.con.execute(
            "INSERT INTO suggestions"
            "(bookid, tokentypid, suggestiontypid, moderntypid, dict, weight, distance, topsuggestion, histpatterns, ocrpatterns) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                self.book_id,
                tid,
                sid,
                mid,
                cand.dictionary,
                float(cand.weight),
                int(cand.distance),
                int(top),
                pattern_string(cand.hist_patterns),
                pattern_string(cand.ocr_patterns),
            ),
        )
        suggestion_id = int(cur.lastrowid)
        self.report.suggestions += 1
        self.insert_patterns(cand.hist_patterns, suggestion_id, ocr=False)
        self.insert_patterns(cand.ocr_patterns, suggestion_id, ocr=True)

    def insert_patterns(self, patterns: tuple[Pattern, ...], suggestion_id: int, *, ocr: bool) -> None:
        if not patterns:
            return
        self.con.executemany(
            "INSERT INTO errorpatterns(suggestionid, bookid, pattern, ocr) VALUES (?, ?, ?, ?)",
            [(suggestion_id, self.book_id, p.key, int(ocr)) for p in patterns],
        )
        self.report.patterns += len(patterns)


def ingest_profile(con: sqlite3.Connection, profile: Profile, *, cutoff: float = DEFAULT_CUTOFF) -> IngestReport:
    """Replace the stored profile of profile.book_id; raises StorageError."""
    return ProfileIngestor(con, profile, cutoff=cutoff).run()
