"""
script.py – Devanagari / Latin script detection and segmentation.

Bilingual question papers interleave Hindi and English, sometimes inside a
single option.  segment_scripts() partitions a string's alphabetic content into
an English channel and a Hindi channel:

  * ≥ 90 % Latin letters      → whole string is English
  * ≥ 90 % Devanagari letters → whole string is Hindi
  * otherwise maximal same-script runs are collected per channel; characters
    belonging to neither script ride along with whichever run is open.
  * no letters at all ("1947", "1, 2 & 3") → both channels
    carry the text, since a bare number reads the same in either language.

The function is total (never raises) and idempotent on its own output.
"""

import re

from .models import BilingualText, ScriptSegment

DOMINANCE_RATIO  = 0.90
HINDI_PAGE_RATIO = 0.10

_DEVANAGARI_RE = re.compile(r"[\u0900-\u097F\u1CD0-\u1CFF\uA8E0-\uA8FF]")
_LATIN_RE      = re.compile(r"[A-Za-z]")
_WS_RE         = re.compile(r"\s+")


def is_devanagari(ch: str) -> bool:
    return bool(_DEVANAGARI_RE.match(ch))


def is_latin(ch: str) -> bool:
    return bool(_LATIN_RE.match(ch))


def classify_char(ch: str) -> str:
    if is_devanagari(ch):
        return "hindi"
    if is_latin(ch):
        return "english"
    return "neither"


def count_devanagari(text: str) -> int:
    if not text:
        return 0
    return len(_DEVANAGARI_RE.findall(text))


def script_counts(text: str) -> tuple[int, int]:
    """Return ``(latin, devanagari)`` letter counts."""
    if not text:
        return 0, 0
    return len(_LATIN_RE.findall(text)), count_devanagari(text)


def devanagari_ratio(text: str) -> float:
    """Fraction of alphabetic (Latin + Devanagari) characters that are Devanagari."""
    latin, dev = script_counts(text)
    total = latin + dev
    return dev / total if total else 0.0


def classify_page(text: str) -> str:
    """Label a whole page ``hindi`` if at least 10 % of its letters are Devanagari."""
    return "hindi" if devanagari_ratio(text) >= HINDI_PAGE_RATIO else "english"


def _squash(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def script_runs(text: str) -> list[ScriptSegment]:
    """Maximal single-script runs.

    Neutral characters (digits, punctuation) join the open run; any that come
    before the first letter are prefixed to the first run.  Text without a
    single letter yields no runs.
    """
    runs: list[ScriptSegment] = []
    current: list[str] = []
    current_script = None

    for ch in text or "":
        script = classify_char(ch)
        if script == "neither":
            current.append(ch)
            continue
        if current_script is None:
            current.append(ch)
            current_script = script
        elif script != current_script:
            runs.append(ScriptSegment(script=current_script, text="".join(current)))
            current = [ch]
            current_script = script
        else:
            current.append(ch)

    if current_script is not None:
        runs.append(ScriptSegment(script=current_script, text="".join(current)))
    return runs


def segment_scripts(text: str) -> BilingualText:
    if not text or not text.strip():
        return BilingualText()

    latin, dev = script_counts(text)
    total = latin + dev
    if not total:
        return BilingualText(english=text.strip(), hindi=text.strip())
    latin_ratio = latin / total
    dev_ratio = dev / total

    if latin_ratio >= DOMINANCE_RATIO:
        return BilingualText(english=text.strip(), hindi="")
    if dev_ratio >= DOMINANCE_RATIO:
        return BilingualText(english="", hindi=text.strip())

    english_parts: list[str] = []
    hindi_parts: list[str] = []
    for run in script_runs(text):
        cleaned = _squash(run.text)
        if not cleaned:
            continue
        (english_parts if run.script == "english" else hindi_parts).append(cleaned)

    english = " ".join(english_parts)
    hindi = " ".join(hindi_parts)

    # Degenerate inputs can leave the dominant script with the smaller bucket.
    if latin_ratio > dev_ratio and len(english) < len(hindi):
        return BilingualText(english=text.strip(), hindi="")
    if dev_ratio > latin_ratio and len(hindi) < len(english):
        return BilingualText(english="", hindi=text.strip())

    return BilingualText(english=english, hindi=hindi)
