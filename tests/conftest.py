"""
Shared fixtures: a throwaway sqlite store and builders for synthetic papers.
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("TESTARENA_DB", os.path.join(tempfile.gettempdir(), "testarena-tests.db"))

import pytest

from testarena.extraction import PAGE_BREAK, document_from_text
from testarena.models import MarkingScheme, MergedOption, MergedQuestion, TestDefinition
from testarena.store import Store

HINDI_MARKERS = ("क", "ख", "ग", "घ")


def english_block(n: int) -> str:
    return (
        f"{n}. Which option names item number {n} in the sample list?\n"
        f"(a) Alpha {n} (b) Bravo {n}\n"
        f"(c) Charlie {n} (d) Delta {n}"
    )


def hindi_block(n: int) -> str:
    return (
        f"{n}. नमूना सूची में वस्तु संख्या {n} कौन सी है?\n"
        f"(क) पहला {n} (ख) दूसरा {n}\n"
        f"(ग) तीसरा {n} (घ) चौथा {n}"
    )


def bilingual_text(count: int = 10, per_page: int = 5, skip: tuple = ()) -> str:
    """Hindi page, English page, Hindi page, ... covering questions 1..count."""
    pages = []
    for first in range(1, count + 1, per_page):
        numbers = [n for n in range(first, min(first + per_page, count + 1)) if n not in skip]
        pages.append("\n".join(hindi_block(n) for n in numbers))
        pages.append("\n".join(english_block(n) for n in numbers))
    return PAGE_BREAK.join(pages)


def solution_text(count: int = 10, letter: str = "b") -> str:
    return "\n".join(
        f"{n}. ({letter}) Explanation: option {letter.upper()} matches item {n}."
        for n in range(1, count + 1)
    )


@pytest.fixture
def bilingual_doc():
    return document_from_text(bilingual_text())


@pytest.fixture
def store(tmp_path):
    s = Store(str(tmp_path / "testarena.db"))
    s.init_db()
    return s


def make_test(count: int = 100, answer: str = "A", marks_per_question: float = 2.0,
              negative_marking: float = 0.66, start=None, end=None, **extra) -> TestDefinition:
    start = start or datetime.now(timezone.utc) - timedelta(hours=1)
    end = end or start + timedelta(hours=3)
    questions = [
        MergedQuestion(
            number=n,
            options=[MergedOption(key=k, english=f"Option {k}{n}") for k in "ABCD"],
            correct_answer=answer,
        )
        for n in range(1, count + 1)
    ]
    return TestDefinition(
        title=extra.pop("title", "Sample test"),
        questions=questions,
        answer_key={i: answer for i in range(count)},
        marking=MarkingScheme(marks_per_question=marks_per_question,
                              negative_marking=negative_marking),
        duration_minutes=extra.pop("duration_minutes", 120),
        start_time=start,
        end_time=end,
        **extra,
    )


@pytest.fixture
def saved_test(store):
    return store.save_test(make_test(count=10))
