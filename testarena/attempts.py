"""
attempts.py – starting and submitting a test attempt.

A participant holds at most one attempt per test.  Submission is terminal:
the first submit scores and locks the attempt, any later submit is rejected
with the original result attached.
"""

import logging
from datetime import datetime
from typing import Mapping, Optional

from .errors import AttemptNotStarted, DuplicateSubmission, WindowViolation
from .models import Attempt, SubmissionResult, TestDefinition, as_utc, utcnow
from .ranking import recalculate_ranks
from .scoring import normalize_answers, score_attempt

logger = logging.getLogger(__name__)


def check_window(test: TestDefinition, now: datetime) -> None:
    if now < test.start_time:
        raise WindowViolation(test.start_time, "start")
    if now > test.end_time:
        raise WindowViolation(test.end_time, "end")


def start_attempt(store, test: TestDefinition, user_id: int,
                  now: Optional[datetime] = None) -> Attempt:
    """Return the participant's attempt, creating it on first call."""
    now = as_utc(now) or utcnow()
    check_window(test, now)

    existing = store.get_attempt(user_id, test.id)
    if existing:
        return existing

    remaining = int((test.end_time - now).total_seconds())
    attempt = store.create_attempt(Attempt(
        user_id=user_id,
        test_id=test.id,
        started_at=now,
        allowed_time_seconds=max(0, min(test.duration_minutes * 60, remaining)),
    ))
    logger.info(
        "User %s started test %s (%ds allowed)",
        user_id, test.id, attempt.allowed_time_seconds,
    )
    return attempt


def result_for(store, attempt: Attempt) -> SubmissionResult:
    topper_score, total_attempted = store.submission_stats(attempt.test_id)
    return SubmissionResult(
        **attempt.breakdown().model_dump(),
        attempt_id=attempt.id,
        rank=attempt.rank,
        submitted_at=attempt.submitted_at,
        topper_score=topper_score,
        total_attempted=total_attempted,
    )


def submit_attempt(store, test: TestDefinition, user_id: int, answers: Optional[Mapping],
                   elapsed_seconds: float = 0, now: Optional[datetime] = None) -> SubmissionResult:
    now = as_utc(now) or utcnow()

    # A locked attempt always answers with its stored result, even after the window.
    attempt = store.get_attempt(user_id, test.id)
    if attempt is not None and attempt.status == "submitted":
        raise DuplicateSubmission(result_for(store, attempt))

    check_window(test, now)
    if attempt is None:
        raise AttemptNotStarted()

    normalized = normalize_answers(answers, test.total_questions)
    breakdown = score_attempt(test, normalized, elapsed_seconds)

    if not store.finalize_attempt(attempt.id, normalized, breakdown, now):
        # Lost a race with a concurrent submit of the same attempt.
        raise DuplicateSubmission(result_for(store, store.get_attempt(user_id, test.id)))

    recalculate_ranks(store, test.id)
    attempt = store.get_attempt(user_id, test.id)
    result = result_for(store, attempt)
    logger.info(
        "User %s submitted test %s: score %.2f, rank %s of %d",
        user_id, test.id, result.score, result.rank, result.total_attempted,
    )
    return result
