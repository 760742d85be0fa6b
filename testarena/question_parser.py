"""
question_parser.py – split page text into numbered question blocks and pull
exactly four options out of each block.

Question blocks start at a line-leading number followed by a delimiter:

  1.  1)  Q1.  Q.1)  ४.  1।  1ण्   (the last one is a Kruti Dev full stop)

Options are recovered by a priority chain of strategies; the first strategy
that yields all four of A, B, C, D wins:

  1. parenthesized letters   (a) (b) (c) (d)     case-insensitive
  2. bare letters            a) b) c) d)
  3. Devanagari glyphs       (क) (ख) (ग) (घ)  /  क) ख) ग) घ)
  4. semicolon fallback      stem; opt A; opt B; opt C; opt D

A block where no strategy succeeds is still emitted, with four empty option
slots, so the merge step always sees every question number it can.
"""

import logging
import re
from typing import Callable, NamedTuple, Optional

from .models import OPTION_LETTERS, OptionSlots, ParsedQuestionFragment

logger = logging.getLogger(__name__)

MIN_BLOCK_CHARS  = 10
MAX_OPTION_CHARS = 150

# ──────────────────────────────────────────────
# Regex patterns
# ──────────────────────────────────────────────

# Question header at a line start.  \d also matches Devanagari digits (०-९).
QUESTION_START_RE = re.compile(
    r"""
    ^[ \t]*
    (?:Q(?:ue(?:stion)?)?\.?[ \t]*)?     # optional Q / Q. / Que / Question
    (\d{1,3})
    [ \t]*
    (?:[.)]|\u0964|\u0923\u094D)      # . ) । ण्
    """,
    re.VERBOSE | re.MULTILINE | re.IGNORECASE,
)

PAREN_LETTER_RE = re.compile(r"\(\s*([A-Da-d])\s*\)")
BARE_LETTER_RE  = re.compile(r"(?<![A-Za-z0-9])([A-Da-d])\)")
DEVANAGARI_OPTION_RE = re.compile(
    r"[(\[]?([\u0915\u0916\u0917\u0918])\u094D?[)\]]"
)
DEVANAGARI_OPTION_MAP = {"\u0915": "A", "\u0916": "B", "\u0917": "C", "\u0918": "D"}

# Any option marker, used to cut an option body that swallowed the next one.
ANY_MARKER_RE = re.compile(
    r"\s[(\[]?(?:[A-Da-d]|[\u0915\u0916\u0917\u0918]\u094D?)[)\]]"
)

# Instructional tails that are not part of the question proper.
BOILERPLATE_RES = [
    re.compile(r"\s*Select the correct answer[\s\S]*$", re.IGNORECASE),
    re.compile(r"\s*Choose the correct (?:answer|option)[\s\S]*$", re.IGNORECASE),
    re.compile(r"\s*Codes?\s*:[\s\S]*$", re.IGNORECASE),
    re.compile(r"\s*\u0928\u0940\u091A\u0947 \u0926\u093F\u090F \u0917\u090F \u0915\u0942\u091F[\s\S]*$"),   # नीचे दिए गए कूट
    re.compile(r"\s*\u0938\u0939\u0940 \u0909\u0924\u094D\u0924\u0930 \u091A\u0941\u0928\u093F\u090F[\s\S]*$"),  # सही उत्तर चुनिए
    re.compile(r"\s*\u0915\u0942\u091F\s*:[\s\S]*$"),                                           # कूट :
]

# Bullets and dashes clinging to line boundaries (page furniture).
_EDGE_CHARS = r"\s\u2022\u2023\u25E6\u2043\u2219\u00B7\u30FB\u25AA\u25CF\-\u2013\u2014"
_EDGE_PREFIX_RE = re.compile(rf"^[{_EDGE_CHARS}]+")
_EDGE_SUFFIX_RE = re.compile(rf"[{_EDGE_CHARS}]+$")
_SPACES_RE      = re.compile(r"[ \t\u00A0]+")
_ALL_WS_RE      = re.compile(r"\s+")


# ──────────────────────────────────────────────
# Cleaning helpers
# ──────────────────────────────────────────────

def clean_text(text: str) -> str:
    """Collapse spaces, trim edge bullets per line, keep line breaks."""
    if not text:
        return ""
    lines = []
    for line in text.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
        line = _SPACES_RE.sub(" ", line)
        line = _EDGE_SUFFIX_RE.sub("", _EDGE_PREFIX_RE.sub("", line)).strip()
        if line:
            lines.append(line)
    return "\n".join(lines).strip()


def clean_option_text(text: str) -> str:
    """Single-line option text with edge bullets trimmed."""
    if not text:
        return ""
    text = _ALL_WS_RE.sub(" ", text)
    return _EDGE_SUFFIX_RE.sub("", _EDGE_PREFIX_RE.sub("", text)).strip()


def strip_boilerplate(stem: str) -> str:
    for pattern in BOILERPLATE_RES:
        stem = pattern.sub("", stem)
    return stem.strip()


def truncate_leaked_marker(text: str, limit: int = MAX_OPTION_CHARS) -> str:
    """Cut an implausibly long option at the first option marker inside it."""
    if len(text) <= limit:
        return text
    m = ANY_MARKER_RE.search(text)
    if m and m.start() > 0:
        return text[:m.start()].strip()
    return text


# ──────────────────────────────────────────────
# Question blocks
# ──────────────────────────────────────────────

def split_question_blocks(text: str, max_number: Optional[int] = None) -> list[tuple[int, str]]:
    """Return ``(number, body)`` for every numbered block in range.

    Headers whose number falls outside 1..max_number are not split points; they
    stay inside the preceding block.  Bodies shorter than MIN_BLOCK_CHARS are
    dropped as noise.
    """
    if not text:
        return []
    starts = []
    for m in QUESTION_START_RE.finditer(text):
        number = int(m.group(1))
        if number < 1 or (max_number is not None and number > max_number):
            continue
        starts.append((number, m))

    blocks: list[tuple[int, str]] = []
    for i, (number, m) in enumerate(starts):
        end = starts[i + 1][1].start() if i + 1 < len(starts) else len(text)
        body = text[m.end():end].strip()
        if len(body) < MIN_BLOCK_CHARS:
            continue
        blocks.append((number, body))
    return blocks


# ──────────────────────────────────────────────
# Option strategies
# ──────────────────────────────────────────────

class StrategyMatch(NamedTuple):
    name:    str
    stem:    str
    options: OptionSlots


def _ordered_markers(markers: list[tuple[str, re.Match]]) -> Optional[list[tuple[str, re.Match]]]:
    """First A, then the first B after it, and so on; None unless all four appear."""
    picked = []
    for letter, m in markers:
        if letter == OPTION_LETTERS[len(picked)]:
            picked.append((letter, m))
            if len(picked) == len(OPTION_LETTERS):
                return picked
    return None


def _slice_options(name: str, content: str, markers) -> Optional[StrategyMatch]:
    picked = _ordered_markers(markers)
    if picked is None:
        return None
    pairs = []
    for i, (letter, m) in enumerate(picked):
        end = picked[i + 1][1].start() if i + 1 < len(picked) else len(content)
        body = clean_option_text(content[m.end():end])
        pairs.append((letter, truncate_leaked_marker(body)))
    # A bare-letter match inside "(a)" leaves the opening bracket on the stem.
    stem = content[:picked[0][1].start()].rstrip().rstrip("([")
    return StrategyMatch(name, stem, OptionSlots.from_pairs(pairs))


def parenthesized_letters(content: str) -> Optional[StrategyMatch]:
    markers = [(m.group(1).upper(), m) for m in PAREN_LETTER_RE.finditer(content)]
    return _slice_options("parenthesized", content, markers)


def bare_letters(content: str) -> Optional[StrategyMatch]:
    markers = [(m.group(1).upper(), m) for m in BARE_LETTER_RE.finditer(content)]
    return _slice_options("bare", content, markers)


def devanagari_glyphs(content: str) -> Optional[StrategyMatch]:
    markers = [
        (DEVANAGARI_OPTION_MAP[m.group(1)], m)
        for m in DEVANAGARI_OPTION_RE.finditer(content)
    ]
    return _slice_options("devanagari", content, markers)


def semicolon_split(content: str) -> Optional[StrategyMatch]:
    parts = [p.strip() for p in content.split(";") if len(p.strip()) > 5]
    if len(parts) < 5:
        return None
    pairs = [
        (letter, truncate_leaked_marker(clean_option_text(parts[i + 1])))
        for i, letter in enumerate(OPTION_LETTERS)
    ]
    return StrategyMatch("semicolon", parts[0], OptionSlots.from_pairs(pairs))


OPTION_STRATEGIES: list[Callable[[str], Optional[StrategyMatch]]] = [
    parenthesized_letters,
    bare_letters,
    devanagari_glyphs,
    semicolon_split,
]


def first_success(strategies, content: str) -> Optional[StrategyMatch]:
    for strategy in strategies:
        match = strategy(content)
        if match is not None:
            return match
    return None


# ──────────────────────────────────────────────
# Public parsers
# ──────────────────────────────────────────────

def parse_block(number: int, content: str, script: str = "english") -> ParsedQuestionFragment:
    match = first_success(OPTION_STRATEGIES, content)
    if match is None:
        return ParsedQuestionFragment(
            number=number,
            text=clean_text(strip_boilerplate(content)),
            options=OptionSlots.empty(),
            script=script,
        )
    return ParsedQuestionFragment(
        number=number,
        text=clean_text(strip_boilerplate(match.stem)),
        options=match.options,
        script=script,
        strategy=match.name,
    )


def parse_page(text: str, script: str = "english", max_number: Optional[int] = None) -> list[ParsedQuestionFragment]:
    """Fragments for every question block on one page of one script."""
    fragments = [
        parse_block(number, body, script)
        for number, body in split_question_blocks(text, max_number)
    ]
    logger.debug(
        "Parsed %d %s fragments (%d with four options)",
        len(fragments), script, sum(1 for f in fragments if f.options.filled() == 4),
    )
    return fragments


def _paragraph_fallback(text: str) -> list[ParsedQuestionFragment]:
    """Unnumbered papers: treat blank-line separated paragraphs with options as questions."""
    fragments = []
    for chunk in re.split(r"\n\s*\n", text):
        chunk = chunk.strip()
        if len(chunk) < 25:
            continue
        match = first_success(OPTION_STRATEGIES[:3], chunk)
        if match is None:
            continue
        stem = clean_text(strip_boilerplate(match.stem))
        if len(stem) >= 5:
            fragments.append(ParsedQuestionFragment(
                number=len(fragments) + 1,
                text=stem,
                options=match.options,
                script="neither",
                strategy=match.name,
            ))
    return fragments


def parse_document(text: str, max_number: Optional[int] = None) -> list[ParsedQuestionFragment]:
    """Single-pass parse of a whole (possibly mixed-script) document."""
    fragments = [
        parse_block(number, body, "neither")
        for number, body in split_question_blocks(text, max_number)
    ]
    fragments = [f for f in fragments if len(f.text) >= 3 or f.options.filled()]
    if not fragments:
        fragments = _paragraph_fallback(text)
    return fragments
