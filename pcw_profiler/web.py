"""HTTP routes for the profiler service."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import FileResponse

from .errors import (
    ArchivalError,
    BookNotFoundError,
    EngineError,
    LanguageNotFoundError,
    ProfileNotFoundError,
    ProfilerError,
)
from .service import ProfilerService

NOT_FOUND = (BookNotFoundError, LanguageNotFoundError, ProfileNotFoundError)


def _http_error(exc: ProfilerError) -> HTTPException:
    if isinstance(exc, NOT_FOUND):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, (EngineError, ArchivalError)):
        return HTTPException(status_code=500, detail=f"cannot profile: {exc}")
    return HTTPException(status_code=500, detail=str(exc))


def create_app(service: ProfilerService) -> FastAPI:
    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        service.close()

    app = FastAPI(title="pcw-profiler", lifespan=lifespan)
    app.state.service = service

    @app.get("/profile/languages")
    def languages() -> dict[str, Any]:
        try:
            return {"languages": service.languages()}
        except OSError as exc:
            raise HTTPException(status_code=500, detail=f"cannot list languages: {exc}") from exc

    @app.get("/profile/books/{book_id}")
    def profile(book_id: int, q: list[str] = Query(default=[])):
        try:
            if not q:
                path = service.profile_archive(book_id)
                return FileResponse(
                    path,
                    media_type="application/json",
                    headers={"Content-Encoding": "gzip"},
                )
            found = service.suggestions(book_id, q)
        except ProfilerError as exc:
            raise _http_error(exc) from exc
        return {
            "bookId": book_id,
            "suggestions": {k: [asdict(s) for s in v] for k, v in found.items()},
        }

    @app.get("/profile/books/{book_id}/patterns")
    def patterns(book_id: int, q: list[str] = Query(default=[]), ocr: bool = False) -> dict[str, Any]:
        try:
            found = service.patterns(book_id, q, ocr=ocr)
        except ProfilerError as exc:
            raise _http_error(exc) from exc
        if not q:
            return {"bookId": book_id, "ocr": ocr, "counts": found}
        return {
            "bookId": book_id,
            "ocr": ocr,
            "patterns": {k: [asdict(s) for s in v] for k, v in found.items()},
        }

    @app.get("/profile/books/{book_id}/suspicious")
    def suspicious(book_id: int) -> dict[str, Any]:
        try:
            found = service.suspicious(book_id)
        except ProfilerError as exc:
            raise _http_error(exc) from exc
        return {"bookId": book_id, "counts": {typ: n for typ, n in found}}

    @app.get("/profile/books/{book_id}/adaptive")
    def adaptive(book_id: int) -> dict[str, Any]:
        try:
            return {"bookId": book_id, "adaptiveTokens": service.adaptive(book_id)}
        except ProfilerError as exc:
            raise _http_error(exc) from exc

    @app.post("/profile/jobs/books/{book_id}")
    def submit(book_id: int) -> dict[str, Any]:
        try:
            return {"jobId": service.submit(book_id)}
        except ProfilerError as exc:
            raise _http_error(exc) from exc
        except OSError as exc:
            raise HTTPException(status_code=500, detail=f"cannot profile: {exc}") from exc

    @app.get("/profile/jobs/{job_id}")
    def job(job_id: int) -> dict[str, Any]:
        status = service.job(job_id)
        if status is None:
            raise HTTPException(status_code=404, detail=f"invalid job id: {job_id}")
        return status.to_json()

    @app.delete("/profile/jobs/{job_id}")
    def cancel(job_id: int) -> dict[str, Any]:
        if service.job(job_id) is None:
            raise HTTPException(status_code=404, detail=f"invalid job id: {job_id}")
        return {"jobId": job_id, "cancelled": service.cancel(job_id)}

    return app
