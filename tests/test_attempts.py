from datetime import datetime, timedelta, timezone

import pytest

from testarena.attempts import start_attempt, submit_attempt
from testarena.errors import AttemptNotStarted, DuplicateSubmission, WindowViolation

from .conftest import make_test

START = datetime(2026, 5, 10, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def window_test(store):
    return store.save_test(make_test(
        count=10, answer="A", start=START, end=START + timedelta(hours=3), duration_minutes=120,
    ))


def test_start_allows_full_duration_early_in_window(store, window_test):
    attempt = start_attempt(store, window_test, user_id=1, now=START + timedelta(minutes=5))
    assert attempt.status == "ongoing"
    assert attempt.allowed_time_seconds == 120 * 60


def test_start_late_in_window_gets_remaining_time(store, window_test):
    attempt = start_attempt(store, window_test, user_id=1, now=START + timedelta(hours=2, minutes=30))
    assert attempt.allowed_time_seconds == 30 * 60


def test_start_is_idempotent(store, window_test):
    first = start_attempt(store, window_test, 1, now=START + timedelta(minutes=1))
    again = start_attempt(store, window_test, 1, now=START + timedelta(minutes=20))
    assert again.id == first.id
    assert again.allowed_time_seconds == first.allowed_time_seconds


def test_start_outside_window(store, window_test):
    with pytest.raises(WindowViolation) as early:
        start_attempt(store, window_test, 1, now=START - timedelta(minutes=1))
    assert early.value.which == "start"
    assert early.value.boundary == window_test.start_time

    with pytest.raises(WindowViolation) as late:
        start_attempt(store, window_test, 1, now=START + timedelta(hours=4))
    assert late.value.which == "end"


def test_submit_without_start(store, window_test):
    with pytest.raises(AttemptNotStarted):
        submit_attempt(store, window_test, 1, {"1": "A"}, 60, now=START + timedelta(minutes=5))


def test_submit_scores_ranks_and_locks(store, window_test):
    now = START + timedelta(minutes=10)
    start_attempt(store, window_test, 1, now=now)
    start_attempt(store, window_test, 2, now=now)

    first = submit_attempt(store, window_test, 1, {"1": "A", "2": "A", "3": "B"}, 600,
                           now=now + timedelta(minutes=10))
    assert first.score == round(2 * 2 - 0.66, 2)
    assert first.correct_count == 2
    assert first.wrong_count == 1
    assert first.rank == 1
    assert first.total_attempted == 1

    second = submit_attempt(store, window_test, 2, {str(n): "A" for n in range(1, 11)}, 900,
                            now=now + timedelta(minutes=15))
    assert second.score == 20.0
    assert second.rank == 1
    assert second.topper_score == 20.0
    assert second.total_attempted == 2
    assert store.get_attempt(1, window_test.id).rank == 2

    with pytest.raises(DuplicateSubmission) as dup:
        submit_attempt(store, window_test, 1, {str(n): "A" for n in range(1, 11)}, 10,
                       now=now + timedelta(minutes=20))
    assert dup.value.result.score == first.score
    assert dup.value.result.rank == 2


def test_submit_after_end_is_rejected(store, window_test):
    start_attempt(store, window_test, 1, now=START + timedelta(minutes=1))
    with pytest.raises(WindowViolation):
        submit_attempt(store, window_test, 1, {}, 60, now=START + timedelta(hours=5))


def test_resubmit_after_window_returns_original_result(store, window_test):
    start_attempt(store, window_test, 1, now=START + timedelta(minutes=1))
    first = submit_attempt(store, window_test, 1, {"1": "A"}, 120, now=START + timedelta(minutes=10))

    with pytest.raises(DuplicateSubmission) as dup:
        submit_attempt(store, window_test, 1, {str(n): "A" for n in range(1, 11)}, 5,
                       now=START + timedelta(hours=5))
    assert dup.value.result.score == first.score
    assert dup.value.result.correct_count == 1
    assert dup.value.result.time_taken == 120
