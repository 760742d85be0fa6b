"""
scoring.py – score one submitted answer map against a finalized test.

Per question:
  unattempted             →  0
  matches correct_answer  →  +marks_per_question
  anything else           →  −negative_marking

The total is floored at zero and rounded to two decimals.  Participant input
is untrusted: malformed entries are dropped and count as unattempted.
"""

import logging
from typing import Any, Mapping, Optional

from . import config
from .models import OPTION_LETTERS, ScoreBreakdown, TestDefinition

logger = logging.getLogger(__name__)


def _question_number(key: Any, total: int) -> Optional[int]:
    try:
        number = int(str(key).strip())
    except (TypeError, ValueError):
        return None
    if 1 <= number <= total:
        return number
    return None


def normalize_answers(raw: Optional[Mapping], total: int) -> dict[int, str]:
    """Coerce a client answer map to ``{question_number: letter}``."""
    answers: dict[int, str] = {}
    dropped = 0
    for key, value in (raw or {}).items():
        number = _question_number(key, total)
        letter = value.strip().upper() if isinstance(value, str) else None
        if number is None or letter not in OPTION_LETTERS:
            dropped += 1
            continue
        answers[number] = letter
    if dropped:
        logger.debug("Dropped %d malformed answer entries", dropped)
    return answers


def score_attempt(test: TestDefinition, answers: Mapping[int, str], time_taken: float = 0,
                  score_unresolved: Optional[bool] = None) -> ScoreBreakdown:
    """Score ``answers`` (already normalized) against ``test``.

    Questions whose answer was defaulted to 'A' are scored like any other
    unless ``score_unresolved`` is false, in which case they count as skipped.
    """
    if score_unresolved is None:
        score_unresolved = config.SCORE_UNRESOLVED_ANSWERS
    unresolved = set() if score_unresolved else set(test.defaulted_answers)

    marking = test.marking
    correct = wrong = skipped = 0
    for question in test.questions:
        chosen = answers.get(question.number)
        if chosen is None or question.number in unresolved:
            skipped += 1
        elif chosen == question.correct_answer:
            correct += 1
        else:
            wrong += 1

    raw_score = correct * marking.marks_per_question - wrong * marking.negative_marking
    attempted = correct + wrong
    return ScoreBreakdown(
        score=round(max(0.0, raw_score), 2),
        correct_count=correct,
        wrong_count=wrong,
        skipped_count=skipped,
        accuracy=round(correct / attempted * 100, 2) if attempted else 0.0,
        time_taken=max(0, int(time_taken or 0)),
    )
