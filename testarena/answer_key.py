"""
answer_key.py – question-number → letter mapping from a solution document.

The layouts seen in practice are applied as a union, in this order:

  1. (b)    /  1) (b)          numbered, parenthesized letter
  1: b  /  1. b  /  1 - b      at the start of a line
  Q1: b  /  Q.1 - (b)
  1-b 2-c 3-a                  inline answer strips

Keys are zero-based question indices.  When two matches target the same index
the earlier pattern wins, then the earlier position in the text.
"""

import logging
import re
from typing import Optional

from .models import OPTION_LETTERS
from .question_parser import clean_text

logger = logging.getLogger(__name__)

MAX_EXPLANATION_CHARS = 3000
MIN_EXPLANATION_CHARS = 5

ANSWER_PATTERNS = [
    ("numbered-paren", re.compile(r"(?<!\d)(\d{1,3})\s*[.)]\s*\(\s*([A-Da-d])\s*\)")),
    ("line-start",     re.compile(r"^[ \t]*(\d{1,3})[ \t]*[:.\-][ \t]*([A-Da-d])\b", re.MULTILINE)),
    ("q-prefixed",     re.compile(r"\bQ\.?[ \t]*(\d{1,3})[ \t]*[:.\-][ \t]*\(?([A-Da-d])\)?\b", re.IGNORECASE)),
    ("inline",         re.compile(r"(?<![\d.])(\d{1,3})[ \t]*-[ \t]*([A-Da-d])\b")),
]

_EXPLANATION_LEAD_RE = re.compile(
    r"^\s*(?:Explanation|Solution|Sol|Ans(?:wer)?)\s*[:.\-]?\s*",
    re.IGNORECASE,
)


def _normalize(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _accepted_matches(text: str, expected_count: Optional[int]) -> list[tuple[int, str, re.Match]]:
    """``(index, letter, match)`` for every match that populated an index."""
    taken: dict[int, tuple[str, re.Match]] = {}
    for name, pattern in ANSWER_PATTERNS:
        added = 0
        for m in pattern.finditer(text):
            index = int(m.group(1)) - 1
            letter = m.group(2).upper()
            if index < 0 or (expected_count is not None and index >= expected_count):
                continue
            if letter not in OPTION_LETTERS or index in taken:
                continue
            taken[index] = (letter, m)
            added += 1
        if added:
            logger.debug("Answer pattern %s contributed %d entries", name, added)
    return [(index, letter, m) for index, (letter, m) in taken.items()]


def parse_answer_key(text: str, expected_count: Optional[int] = None) -> dict[int, str]:
    if not text:
        return {}
    entries = _accepted_matches(_normalize(text), expected_count)
    return {index: letter for index, letter, _ in sorted(entries, key=lambda e: e[0])}


def clean_explanation(raw: str, max_length: int = MAX_EXPLANATION_CHARS) -> str:
    text = clean_text(_EXPLANATION_LEAD_RE.sub("", raw or ""))
    return text[:max_length]


def parse_explanations(text: str, expected_count: Optional[int] = None,
                       max_length: int = MAX_EXPLANATION_CHARS) -> dict[int, str]:
    """Span after each accepted answer match up to the next one, keyed like the answer key."""
    if not text:
        return {}
    text = _normalize(text)
    anchors = sorted(_accepted_matches(text, expected_count), key=lambda e: e[2].start())
    explanations: dict[int, str] = {}
    for i, (index, _letter, m) in enumerate(anchors):
        end = anchors[i + 1][2].start() if i + 1 < len(anchors) else len(text)
        if end <= m.end():
            continue
        explanation = clean_explanation(text[m.end():end], max_length)
        if len(explanation) > MIN_EXPLANATION_CHARS:
            explanations[index] = explanation
    return explanations


def parse_solution(text: str, expected_count: Optional[int] = None) -> tuple[dict[int, str], dict[int, str]]:
    """Answer key and explanations from one solution document."""
    key = parse_answer_key(text, expected_count)
    explanations = parse_explanations(text, expected_count)
    logger.info(
        "Solution parsed: %d answers, %d explanations%s",
        len(key), len(explanations),
        f" (expected {expected_count})" if expected_count else "",
    )
    return key, explanations
