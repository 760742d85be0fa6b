"""
pipeline.py – PDF bytes in, validated TestDefinition out.

  question PDF ─► extract ─► classify pages ─► parse (per script) ─► merge ─► validate
  solution PDF ─► extract ─► answer key + explanations ──────────────────────┘

Question-document failures are fatal and raised.  Anything wrong with the
solution document is reported in IngestionResult.issues; the test is still
created with unresolved answers defaulted to 'A' for later correction.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

from . import config
from .answer_key import parse_solution
from .errors import AnswerKeyIncomplete, ExtractionFailed, IngestionError, TestArenaError
from .extraction import extract_document
from .merge import apply_answer_key, merge_fragments, questions_from_mixed, validate_sequence
from .models import OPTION_LETTERS, MergedQuestion, RawDocumentText, TestConfig, TestDefinition
from .question_parser import parse_document, parse_page
from .script import classify_page

logger = logging.getLogger(__name__)


@dataclass
class IngestionResult:
    test:              TestDefinition
    issues:            list[TestArenaError] = field(default_factory=list)
    extraction_method: str = "direct"

    def issue_dicts(self) -> list[dict]:
        return [issue.to_dict() for issue in self.issues]


def default_config(**overrides) -> TestConfig:
    values = {
        "duration_minutes": config.DEFAULT_DURATION_MINUTES,
        "negative_marking": config.DEFAULT_NEGATIVE_MARKING,
        "total_marks":      config.DEFAULT_TOTAL_MARKS,
    }
    values.update(overrides)
    return TestConfig(**values)


# ──────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────

def split_by_script(doc: RawDocumentText, max_number: Optional[int]):
    """Parse every page under its own script label; return (hindi, english) fragments."""
    hindi, english = [], []
    for page_num, page in enumerate(doc.pages, start=1):
        if not page.strip():
            continue
        script = classify_page(page)
        fragments = parse_page(page, script, max_number)
        logger.debug("Page %d: %s, %d fragments", page_num, script, len(fragments))
        (hindi if script == "hindi" else english).extend(fragments)
    return hindi, english


def _read_solution(solution_pdf: Optional[bytes], issues: list) -> Optional[str]:
    if not solution_pdf:
        return None
    try:
        return extract_document(solution_pdf).text
    except ExtractionFailed as exc:
        logger.warning("Solution PDF unreadable: %s", exc.message)
        issues.append(exc)
        return None


def _fuse_answers(questions: list[MergedQuestion], solution_text: Optional[str],
                  issues: list) -> tuple[dict[int, str], list[int]]:
    key, explanations = ({}, {})
    if solution_text:
        key, explanations = parse_solution(solution_text, len(questions))
    defaulted = apply_answer_key(questions, key, explanations)
    if defaulted:
        issues.append(AnswerKeyIncomplete(missing=defaulted, expected=len(questions)))
    answer_key = {i: q.correct_answer for i, q in enumerate(questions)}
    return answer_key, defaulted


def _build_definition(questions: list[MergedQuestion], test_config: TestConfig,
                      answer_key: dict[int, str], defaulted: list[int],
                      bilingual: bool) -> TestDefinition:
    start = test_config.start_time
    end = test_config.end_time or start + timedelta(minutes=test_config.duration_minutes)
    if end <= start:
        raise IngestionError("End time must be after start time.")
    return TestDefinition(
        title=test_config.title,
        questions=questions,
        answer_key=answer_key,
        marking=test_config.marking_for(len(questions)),
        duration_minutes=test_config.duration_minutes,
        start_time=start,
        end_time=end,
        defaulted_answers=defaulted,
        bilingual=bilingual,
    )


# ──────────────────────────────────────────────
# Bilingual (Hindi page / English page) papers
# ──────────────────────────────────────────────

def build_bilingual(doc: RawDocumentText, solution_text: Optional[str] = None,
                    test_config: Optional[TestConfig] = None,
                    issues: Optional[list] = None) -> IngestionResult:
    test_config = test_config or default_config()
    issues = issues if issues is not None else []
    required = test_config.question_count or config.REQUIRED_QUESTIONS

    hindi, english = split_by_script(doc, required)
    merged = merge_fragments(hindi, english)
    questions = validate_sequence(merged, required)

    answer_key, defaulted = _fuse_answers(questions, solution_text, issues)
    test = _build_definition(questions, test_config, answer_key, defaulted, bilingual=True)
    return IngestionResult(test=test, issues=issues, extraction_method=doc.method)


def ingest_bilingual(question_pdf: bytes, solution_pdf: Optional[bytes] = None,
                     test_config: Optional[TestConfig] = None) -> IngestionResult:
    doc = extract_document(question_pdf)
    issues: list[TestArenaError] = []
    solution_text = _read_solution(solution_pdf, issues)
    result = build_bilingual(doc, solution_text, test_config, issues)
    logger.info(
        "Bilingual test '%s' ingested: %d questions, %d issues",
        result.test.title, result.test.total_questions, len(result.issues),
    )
    return result


# ──────────────────────────────────────────────
# Single-document (mixed or monolingual) papers
# ──────────────────────────────────────────────

def build_standard(doc: RawDocumentText, solution_text: Optional[str] = None,
                   test_config: Optional[TestConfig] = None,
                   issues: Optional[list] = None) -> IngestionResult:
    test_config = test_config or default_config()
    issues = issues if issues is not None else []
    count = test_config.question_count

    fragments = parse_document(doc.text, max_number=count)
    if count:
        questions = validate_sequence(questions_from_mixed(fragments, renumber=False), count)
    else:
        questions = questions_from_mixed(fragments)
    if not questions:
        raise IngestionError(
            "No questions could be parsed. Check numbering (1., 2., ...) and option markers (a)(b)(c)(d)."
        )

    answer_key, defaulted = _fuse_answers(questions, solution_text, issues)
    test = _build_definition(questions, test_config, answer_key, defaulted, bilingual=False)
    return IngestionResult(test=test, issues=issues, extraction_method=doc.method)


def ingest_standard(question_pdf: bytes, solution_pdf: Optional[bytes] = None,
                    test_config: Optional[TestConfig] = None) -> IngestionResult:
    doc = extract_document(question_pdf)
    issues: list[TestArenaError] = []
    solution_text = _read_solution(solution_pdf, issues)
    result = build_standard(doc, solution_text, test_config, issues)
    logger.info(
        "Test '%s' ingested: %d questions, %d issues",
        result.test.title, result.test.total_questions, len(result.issues),
    )
    return result


# ──────────────────────────────────────────────
# Administrative correction
# ──────────────────────────────────────────────

def apply_solution_text(test: TestDefinition, solution_text: str) -> IngestionResult:
    """Re-fuse a corrected answer key into an existing test; questions are untouched."""
    questions = [q.model_copy(deep=True) for q in test.questions]
    issues: list[TestArenaError] = []
    answer_key, defaulted = _fuse_answers(questions, solution_text, issues)
    updated = test.model_copy(update={
        "questions":         questions,
        "answer_key":        answer_key,
        "defaulted_answers": defaulted,
    })
    logger.info(
        "Answer key re-parsed for test %s: %d unresolved",
        test.id, len(defaulted),
    )
    return IngestionResult(test=updated, issues=issues)


def reparse_answer_key(test: TestDefinition, solution_pdf: bytes) -> IngestionResult:
    doc = extract_document(solution_pdf)
    result = apply_solution_text(test, doc.text)
    result.extraction_method = doc.method
    return result


def set_answer(test: TestDefinition, number: int, letter: str) -> TestDefinition:
    """Manual correction of one question's answer."""
    letter = (letter or "").strip().upper()
    if letter not in OPTION_LETTERS:
        raise IngestionError(f"Answer must be one of {', '.join(OPTION_LETTERS)}.")
    index = next((i for i, q in enumerate(test.questions) if q.number == number), None)
    if index is None:
        raise IngestionError(f"Question {number} does not exist in this test.")
    questions = [q.model_copy(deep=True) for q in test.questions]
    questions[index].correct_answer = letter
    answer_key = dict(test.answer_key)
    answer_key[index] = letter
    return test.model_copy(update={
        "questions":         questions,
        "answer_key":        answer_key,
        "defaulted_answers": [n for n in test.defaulted_answers if n != number],
    })
