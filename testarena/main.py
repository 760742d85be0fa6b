"""
TestArena – FastAPI backend for timed bilingual mock tests.

Administrators upload a question PDF (Hindi and English pages interleaved, or a
single-language paper) plus an optional solution PDF.  The ingestion pipeline
turns them into a validated test; participants then start, submit and are
ranked against everyone else who sat the same test.

Core work happens in the pipeline/attempts modules; the routes here only move
data between HTTP and those functions and translate typed errors to status
codes.
"""

import logging
import os
from datetime import datetime
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import config
from .attempts import result_for, start_attempt, submit_attempt
from .auth import get_current_user, get_optional_user, require_admin
from .errors import (
    AttemptNotStarted,
    DuplicateSubmission,
    IngestionError,
    TestArenaError,
    TestNotFound,
    WindowViolation,
)
from .models import TestConfig, TestDefinition, utcnow
from .pipeline import ingest_bilingual, ingest_standard, reparse_answer_key, set_answer
from .ranking import rank_list
from .store import Store

logger = logging.getLogger(__name__)

# ──────────────────────────────────────────────
# App setup
# ──────────────────────────────────────────────

config.configure_logging()

app = FastAPI(title="TestArena")

_store: Optional[Store] = None


def get_store() -> Store:
    global _store
    if _store is None:
        _store = Store()
        _store.init_db()
    return _store


@app.on_event("startup")
def on_startup():
    get_store()


# ── Error mapping ─────────────────────────────────────────────────────────────

_STATUS_CODES = [
    (DuplicateSubmission, 409),
    (WindowViolation,     400),
    (AttemptNotStarted,   400),
    (TestNotFound,        404),
    (IngestionError,      422),
]


@app.exception_handler(TestArenaError)
async def testarena_error_handler(request: Request, exc: TestArenaError):
    status_code = next((code for cls, code in _STATUS_CODES if isinstance(exc, cls)), 400)
    if status_code >= 422:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content={"detail": exc.to_dict()})


# ──────────────────────────────────────────────
# Request models
# ──────────────────────────────────────────────

class SetAnswerRequest(BaseModel):
    correct_answer: str


class SubmitRequest(BaseModel):
    """answers    – {str(question_number): 'A'|'B'|'C'|'D'}; anything else is ignored
    time_taken – seconds the participant spent on the test
    """
    answers:    dict = {}
    time_taken: float = 0


# ──────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────

def _load_test(store: Store, test_id: int) -> TestDefinition:
    test = store.get_test(test_id)
    if test is None:
        raise TestNotFound(test_id)
    return test


async def _read_pdf(upload: UploadFile, field: str) -> bytes:
    if not (upload.filename or "").lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail=f"{field}: only PDF files are accepted.")
    data = await upload.read()
    if not data:
        raise HTTPException(status_code=400, detail=f"{field}: file is empty.")
    return data


def _admin_view(test: TestDefinition) -> dict:
    return {
        **test.summary(),
        "questions":         [q.model_dump(mode="json") for q in test.questions],
        "defaulted_answers": test.defaulted_answers,
    }


# ──────────────────────────────────────────────
# Admin routes
# ──────────────────────────────────────────────

@app.post("/api/admin/tests")
async def api_create_test(
    question_pdf:       UploadFile = File(...),
    solution_pdf:       Optional[UploadFile] = File(None),
    title:              str = Form(...),
    duration_minutes:   int = Form(config.DEFAULT_DURATION_MINUTES),
    negative_marking:   float = Form(config.DEFAULT_NEGATIVE_MARKING),
    total_marks:        Optional[float] = Form(None),
    marks_per_question: Optional[float] = Form(None),
    start_time:         Optional[datetime] = Form(None),
    end_time:           Optional[datetime] = Form(None),
    question_count:     Optional[int] = Form(None),
    bilingual:          bool = Form(True),
    admin: dict = Depends(require_admin),
    store: Store = Depends(get_store),
):
    """Admin only: ingest a question PDF (+ optional solution PDF) into a new test."""
    question_bytes = await _read_pdf(question_pdf, "question_pdf")
    solution_bytes = await _read_pdf(solution_pdf, "solution_pdf") if solution_pdf is not None else None

    if total_marks is None and marks_per_question is None:
        total_marks = config.DEFAULT_TOTAL_MARKS
    test_config = TestConfig(
        title=title,
        duration_minutes=duration_minutes,
        negative_marking=negative_marking,
        total_marks=total_marks,
        marks_per_question=marks_per_question,
        start_time=start_time or utcnow(),
        end_time=end_time,
        question_count=question_count,
        bilingual=bilingual,
    )

    ingest = ingest_bilingual if bilingual else ingest_standard
    result = await run_in_threadpool(ingest, question_bytes, solution_bytes, test_config)
    test = store.save_test(result.test)
    logger.info("Admin %s created test %s '%s'", admin["user_id"], test.id, test.title)

    return {
        "test":              test.summary(),
        "extraction_method": result.extraction_method,
        "defaulted_answers": test.defaulted_answers,
        "issues":            result.issue_dicts(),
    }


@app.get("/api/admin/tests/{test_id}")
async def api_admin_get_test(
    test_id: int,
    admin: dict = Depends(require_admin),
    store: Store = Depends(get_store),
):
    """Admin only: full test including answers and explanations."""
    return _admin_view(_load_test(store, test_id))


@app.post("/api/admin/tests/{test_id}/answer-key")
async def api_reparse_answer_key(
    test_id: int,
    solution_pdf: UploadFile = File(...),
    admin: dict = Depends(require_admin),
    store: Store = Depends(get_store),
):
    """Admin only: re-parse a corrected solution PDF into an existing test."""
    test = _load_test(store, test_id)
    data = await _read_pdf(solution_pdf, "solution_pdf")
    result = await run_in_threadpool(reparse_answer_key, test, data)
    test = store.save_test(result.test)
    return {
        "test":              test.summary(),
        "defaulted_answers": test.defaulted_answers,
        "issues":            result.issue_dicts(),
    }


@app.post("/api/admin/tests/{test_id}/questions/{number}/answer")
async def api_set_answer(
    test_id: int,
    number: int,
    body: SetAnswerRequest,
    admin: dict = Depends(require_admin),
    store: Store = Depends(get_store),
):
    """Admin only: set the correct answer for one question."""
    test = set_answer(_load_test(store, test_id), number, body.correct_answer)
    store.save_test(test)
    return {
        "ok":                True,
        "number":            number,
        "correct_answer":    body.correct_answer.strip().upper(),
        "defaulted_answers": test.defaulted_answers,
    }


# ──────────────────────────────────────────────
# Participant routes
# ──────────────────────────────────────────────

@app.get("/api/tests")
async def api_list_tests(
    current_user: Optional[dict] = Depends(get_optional_user),
    store: Store = Depends(get_store),
):
    now = utcnow()
    mine = store.get_user_attempts(current_user["user_id"]) if current_user else {}
    tests = []
    for test in store.list_tests():
        attempt = mine.get(test.id)
        tests.append({
            **test.summary(),
            "status":         test.status_at(now),
            "attempt_status": attempt.status if attempt else None,
        })
    return {"tests": tests}


@app.get("/api/tests/{test_id}")
async def api_get_test(
    test_id: int,
    current_user: dict = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    """Questions without answers; answers and explanations once the caller has submitted."""
    test = _load_test(store, test_id)
    now = utcnow()
    if test.status_at(now) == "Upcoming":
        raise WindowViolation(test.start_time, "start")

    attempt = store.get_attempt(current_user["user_id"], test_id)
    reviewed = attempt is not None and attempt.status == "submitted"
    questions = [
        q.model_dump(mode="json") if reviewed else q.public_dict()
        for q in test.questions
    ]
    return {
        **test.summary(),
        "status":    test.status_at(now),
        "questions": questions,
        "attempt":   attempt.model_dump(mode="json") if attempt else None,
    }


@app.post("/api/tests/{test_id}/start")
async def api_start_test(
    test_id: int,
    current_user: dict = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    test = _load_test(store, test_id)
    attempt = start_attempt(store, test, current_user["user_id"])
    return {
        "attempt_id":           attempt.id,
        "status":               attempt.status,
        "started_at":           attempt.started_at.isoformat(),
        "allowed_time_seconds": attempt.allowed_time_seconds,
    }


@app.post("/api/tests/{test_id}/submit")
async def api_submit_test(
    test_id: int,
    body: SubmitRequest,
    current_user: dict = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    """Score server-side, lock the attempt and re-rank the test."""
    test = _load_test(store, test_id)
    result = await run_in_threadpool(
        submit_attempt, store, test, current_user["user_id"], body.answers, body.time_taken,
    )
    return result.model_dump(mode="json")


@app.get("/api/tests/{test_id}/result")
async def api_get_result(
    test_id: int,
    current_user: dict = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    _load_test(store, test_id)
    attempt = store.get_attempt(current_user["user_id"], test_id)
    if attempt is None or attempt.status != "submitted":
        raise HTTPException(status_code=404, detail="No submitted attempt for this test.")
    return result_for(store, attempt).model_dump(mode="json")


@app.get("/api/tests/{test_id}/leaderboard")
async def api_leaderboard(
    test_id: int,
    limit: int = Query(50, ge=1, le=500),
    store: Store = Depends(get_store),
):
    _load_test(store, test_id)
    return {
        "test_id": test_id,
        "ranks":   [entry.model_dump(mode="json") for entry in rank_list(store, test_id, limit)],
    }


# ──────────────────────────────────────────────
# Local dev entry-point
# ──────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn

    port = int(os.environ.get("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
