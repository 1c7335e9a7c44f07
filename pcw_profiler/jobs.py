"""In-process registry of background profiling jobs.

Each job runs in its own thread and gets a cancellation event. At most one
job per book is running at a time: submitting a book that is already being
profiled returns the running job.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from .errors import EngineCancelledError

logger = logging.getLogger(__name__)

RUNNING = "running"
DONE = "done"
FAILED = "failed"
CANCELLED = "cancelled"

JobFunc = Callable[[threading.Event], object]


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


@dataclass
class JobStatus:
    job_id: int
    book_id: int
    name: str
    status: str = RUNNING
    message: str = ""
    started_at: str = ""
    finished_at: str | None = None

    def to_json(self) -> dict[str, Any]:
        return asdict(self)


class JobRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._jobs: dict[int, JobStatus] = {}
        self._cancel: dict[int, threading.Event] = {}
        self._threads: dict[int, threading.Thread] = {}
        self._running_by_book: dict[int, int] = {}

    def start(self, book_id: int, name: str, func: JobFunc) -> int:
        with self._lock:
            running = self._running_by_book.get(book_id)
            if running is not None:
                logger.info("book %d is already being profiled by job %d", book_id, running)
                return running
            job_id = next(self._ids)
            self._jobs[job_id] = JobStatus(job_id=job_id, book_id=book_id, name=name, started_at=_utc_now_iso())
            cancel = threading.Event()
            self._cancel[job_id] = cancel
            self._running_by_book[book_id] = job_id
            t = threading.Thread(target=self._run, args=(job_id, name, func, cancel), name=f"{name}-{job_id}", daemon=True)
            self._threads[job_id] = t
        logger.info("started job %d (%s) for book %d", job_id, name, book_id)
        t.start()
        return job_id

    def _run(self, job_id: int, name: str, func: JobFunc, cancel: threading.Event) -> None:
        status, message = DONE, ""
        try:
            func(cancel)
        except EngineCancelledError as exc:
            status, message = CANCELLED, f"cannot {name}: {exc}"
        except Exception as exc:
            logger.exception("job %d failed", job_id)
            status, message = FAILED, f"cannot {name}: {exc}"
        with self._lock:
            job = self._jobs[job_id]
            job.status = status
            job.message = message
            job.finished_at = _utc_now_iso()
            if self._running_by_book.get(job.book_id) == job_id:
                del self._running_by_book[job.book_id]
            # Only the status outlives the job.
            self._cancel.pop(job_id, None)
            self._threads.pop(job_id, None)
        logger.info("job %d finished: %s", job_id, status)

    def status(self, job_id: int) -> JobStatus | None:
        with self._lock:
            job = self._jobs.get(job_id)
            return JobStatus(**asdict(job)) if job else None

    def cancel(self, job_id: int) -> bool:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.status != RUNNING:
                return False
            self._cancel[job_id].set()
        logger.info("cancelling job %d", job_id)
        return True

    def wait(self, job_id: int, timeout: float | None = None) -> JobStatus | None:
        with self._lock:
            t = self._threads.get(job_id)
        if t is not None:
            t.join(timeout)
        return self.status(job_id)

    def close(self) -> None:
        """Cancel all running jobs and wait for them to finish."""
        with self._lock:
            running = [jid for jid, j in self._jobs.items() if j.status == RUNNING]
            for jid in running:
                self._cancel[jid].set()
            threads = [self._threads[jid] for jid in running]
        for t in threads:
            t.join()
