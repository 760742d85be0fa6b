"""
merge.py – fuse per-page fragments into the final question set.

Hindi pages and English pages are parsed separately; fragments sharing a
question number become one MergedQuestion.  A side that produced no fragment
stays empty; nothing is inferred across languages.
"""

import logging
from typing import Iterable, Optional

from .errors import StructuralMismatch
from .models import (
    OPTION_LETTERS,
    BilingualText,
    MergedOption,
    MergedQuestion,
    ParsedQuestionFragment,
)
from .script import segment_scripts

logger = logging.getLogger(__name__)


def best_by_number(fragments: Iterable[ParsedQuestionFragment]) -> dict[int, ParsedQuestionFragment]:
    """One fragment per number: most filled options wins, ties keep the earliest.

    Statement lists inside a question ("1. ... 2. ...") produce extra short
    fragments with the same numbers as real questions; they never carry four
    options, so the real question survives.
    """
    best: dict[int, ParsedQuestionFragment] = {}
    for frag in fragments:
        current = best.get(frag.number)
        if current is None or frag.options.filled() > current.options.filled():
            best[frag.number] = frag
    return best


def merge_fragments(hindi: Iterable[ParsedQuestionFragment],
                    english: Iterable[ParsedQuestionFragment]) -> list[MergedQuestion]:
    hindi_by_num = best_by_number(hindi)
    english_by_num = best_by_number(english)

    merged = []
    for number in sorted(set(hindi_by_num) | set(english_by_num)):
        hi = hindi_by_num.get(number)
        en = english_by_num.get(number)
        options = [
            MergedOption(
                key=letter,
                english=(en.options.get(letter) or "") if en else "",
                hindi=(hi.options.get(letter) or "") if hi else "",
            )
            for letter in OPTION_LETTERS
        ]
        merged.append(MergedQuestion(
            number=number,
            question_text=BilingualText(
                english=en.text if en else "",
                hindi=hi.text if hi else "",
            ),
            options=options,
        ))

    logger.info(
        "Merged %d questions (%d hindi, %d english numbers)",
        len(merged), len(hindi_by_num), len(english_by_num),
    )
    return merged


def questions_from_mixed(fragments: Iterable[ParsedQuestionFragment],
                         renumber: bool = True) -> list[MergedQuestion]:
    """Single-document papers: split each fragment's text into the two scripts.

    With ``renumber`` the result is densely numbered 1..N in source order;
    otherwise the printed numbers are kept so gaps can still be detected.
    """
    best = best_by_number(fragments)
    questions = []
    for position, number in enumerate(sorted(best), start=1):
        frag = best[number]
        options = []
        for letter in OPTION_LETTERS:
            split = segment_scripts(frag.options.get(letter) or "")
            options.append(MergedOption(key=letter, english=split.english, hindi=split.hindi))
        questions.append(MergedQuestion(
            number=position if renumber else number,
            question_text=segment_scripts(frag.text),
            options=options,
        ))
    return questions


def validate_sequence(merged: list[MergedQuestion], required: int) -> list[MergedQuestion]:
    """Return questions 1..required in order, or raise StructuralMismatch."""
    by_number = {q.number: q for q in merged if 1 <= q.number <= required}
    missing = [n for n in range(1, required + 1) if n not in by_number]
    if missing:
        logger.warning(
            "Structural mismatch: %d of %d questions found, missing %s",
            len(by_number), required, missing[:20],
        )
        raise StructuralMismatch(found=len(by_number), expected=required, missing=missing)

    extra = len(merged) - len(by_number)
    if extra:
        logger.info("Ignoring %d fragments numbered outside 1..%d", extra, required)
    return [by_number[n] for n in range(1, required + 1)]


def apply_answer_key(questions: list[MergedQuestion], key: dict[int, str],
                     explanations: Optional[dict[int, str]] = None) -> list[int]:
    """Fill correct_answer by zero-based index; return numbers that fell back to 'A'."""
    explanations = explanations or {}
    defaulted = []
    for index, question in enumerate(questions):
        letter = (key.get(index) or "").upper()
        if letter not in OPTION_LETTERS:
            letter = "A"
            defaulted.append(question.number)
        question.correct_answer = letter
        question.explanation = (explanations.get(index) or "").strip()
    if defaulted:
        logger.warning(
            "Answer key missing for %d of %d questions; defaulted to 'A'",
            len(defaulted), len(questions),
        )
    return defaulted
