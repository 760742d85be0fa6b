import pytest

from testarena.scoring import normalize_answers, score_attempt

from .conftest import make_test


def test_upsc_scenario():
    test = make_test(count=100, answer="A")
    answers = {n: "A" for n in range(1, 41)}
    answers.update({n: "B" for n in range(41, 51)})
    result = score_attempt(test, answers, time_taken=3600)
    assert result.score == 73.4
    assert result.correct_count == 40
    assert result.wrong_count == 10
    assert result.skipped_count == 50
    assert result.accuracy == 80.0
    assert result.time_taken == 3600


def test_all_correct_scores_total_marks():
    test = make_test(count=100, answer="C")
    result = score_attempt(test, {q.number: q.correct_answer for q in test.questions})
    assert result.score == test.total_marks == 200.0
    assert result.accuracy == 100.0


def test_nothing_attempted():
    result = score_attempt(make_test(count=10), {})
    assert result.score == 0.0
    assert result.accuracy == 0.0
    assert result.skipped_count == 10


def test_score_is_floored_at_zero():
    test = make_test(count=10, answer="A")
    result = score_attempt(test, {n: "D" for n in range(1, 11)})
    assert result.wrong_count == 10
    assert result.score == 0.0


def test_monotonic_in_correct_and_wrong_answers():
    test = make_test(count=20, answer="A")
    base = {1: "A", 2: "B", 3: "A"}
    before = score_attempt(test, base).score
    assert score_attempt(test, {**base, 4: "A"}).score > before
    assert score_attempt(test, {**base, 4: "B"}).score < before


def test_out_of_range_letter_is_unattempted():
    test = make_test(count=5, answer="A")
    answers = normalize_answers({"1": "A", "2": "E"}, test.total_questions)
    result = score_attempt(test, answers)
    assert result.correct_count == 1
    assert result.wrong_count == 0
    assert result.skipped_count == 4


def test_normalize_answers_coerces_and_drops():
    raw = {"1": "a", 2: " B ", "x": "C", "3": "E", "4": None, "999": "A", "0": "A"}
    assert normalize_answers(raw, 100) == {1: "A", 2: "B"}
    assert normalize_answers(None, 100) == {}


@pytest.mark.parametrize("score_unresolved, expected", [(True, 4.0), (False, 2.0)])
def test_defaulted_answers_can_be_excluded(score_unresolved, expected):
    test = make_test(count=5, answer="A", defaulted_answers=[2])
    result = score_attempt(test, {1: "A", 2: "A"}, score_unresolved=score_unresolved)
    assert result.score == expected


def test_negative_time_is_clamped():
    assert score_attempt(make_test(count=1), {}, time_taken=-5).time_taken == 0
