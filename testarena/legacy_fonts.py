"""
legacy_fonts.py – recover Unicode Devanagari from legacy glyph-mapped Hindi fonts.

Older Hindi question papers are typeset in non-Unicode fonts (Kruti Dev and
friends) whose glyphs sit on Latin code points, so text extraction yields
strings like "Hkkjr dh jkt/kkuh" instead of "भारत की राजधानी".  Each font here
is a pure ``str -> str`` converter; recover_legacy_text() tries them in a fixed
order and keeps a conversion only when it strictly increases the number of
Devanagari characters.

Only text that already carries some Devanagari (≥ 10 % of its letters, but
not so much that it is plainly Unicode Hindi) and whose Latin words do not
read as English is ever considered, so English and English-dominant mixed
pages are never rewritten.
"""

import logging
import re
from typing import Callable, Optional

from .script import count_devanagari, devanagari_ratio

logger = logging.getLogger(__name__)

LEGACY_MIN_RATIO = 0.10
LEGACY_MAX_RATIO = 0.90

# ──────────────────────────────────────────────
# Kruti Dev 010
# ──────────────────────────────────────────────

KRUTIDEV_MAP: dict[str, str] = {
    # independent vowels
    "v‚": "ऑ", "vks": "ओ", "vkS": "औ", "vk": "आ", "v": "अ",
    "b±": "ईं", "Ã": "ई", "bZ": "ई", "b": "इ", "m": "उ", "Å": "ऊ",
    ",s": "ऐ", ",": "ए", "_": "ऋ",
    # consonants (full form, and half form + ``k`` stroke)
    "d": "क", "Dk": "क", "D": "क्",
    "[k": "ख", "[": "ख्",
    "x": "ग", "Xk": "ग", "X": "ग्",
    "Ä": "घ", "?k": "घ", "?": "घ्", "³": "ङ",
    "p": "च", "Pk": "च", "P": "च्", "N": "छ",
    "t": "ज", "Tk": "ज", "T": "ज्",
    ">": "झ", "÷": "झ्", "¥": "ञ",
    "V": "ट", "B": "ठ", "M": "ड", "<": "ढ", ".k": "ण", ".": "ण्",
    "r": "त", "Rk": "त", "R": "त्", "Fk": "थ", "F": "थ्",
    "n": "द", "/k": "ध", "/": "ध्",
    "u": "न", "Uk": "न", "U": "न्",
    "i": "प", "Ik": "प", "I": "प्", "Q": "फ", "¶": "फ्",
    "c": "ब", "Ck": "ब", "C": "ब्", "Hk": "भ", "H": "भ्",
    "e": "म", "Ek": "म", "E": "म्",
    ";": "य", "¸": "य्", "j": "र", "y": "ल", "Yk": "ल", "Y": "ल्", "G": "ळ",
    "o": "व", "Ok": "व", "O": "व्",
    "'k": "श", "'": "श्", '"k': "ष", '"': "ष्",
    "l": "स", "Lk": "स", "L": "स्", "g": "ह",
    # nukta forms
    "d+": "क़", "[+k": "ख़", "x+": "ग़", "t+": "ज़", "M+": "ड़", "<+": "ढ़",
    "Q+": "फ़", "j+": "ऱ",
    # conjuncts
    "{k": "क्ष", "{": "क्ष्", "=": "त्र", "«": "त्र्", "K": "ज्ञ", "J": "श्र",
    "Ø": "क्र", "ç": "प्र", "xz": "ग्र", "Ùk": "त्त", "Ù": "त्त्", "ä": "क्त",
    "é": "न्न", "|": "द्य", "}": "द्व", ")": "द्ध", "í": "द्द", "æ": "द्र",
    "–": "दृ", "—": "कृ", "#": "रु", ":": "रू", "ô": "क्क",
    "ê": "ट्ट", "ë": "ट्ठ", "ì": "ड्ड", "ï": "ड्ढ",
    "à": "ह्न", "á": "ह्य", "â": "हृ", "ã": "ह्म", "º": "ह्",
    # dependent vowel signs and marks
    "ks": "ो", "kS": "ौ", "k": "ा", "h": "ी", "q": "ु", "w": "ू", "`": "ृ",
    "s": "े", "S": "ै", "a": "ं", "¡": "ँ", "%": "ः", "W": "ॅ", "‚": "ॉ",
    "~": "्", "+": "़", "z": "्र", "È": "ीं", "Ó": "्य", "•": "ऽ",
    # punctuation
    "A": "।", "¼": "(", "½": ")", "&": "-", "-": ".", "^": "‘", "*": "’",
    "Þ": "“", "ß": "”", "¿": "{", "À": "}", "¾": "=", "\\": "?",
    # digits
    "å": "०", "ƒ": "१", "„": "२", "…": "३", "†": "४",
    "‡": "५", "ˆ": "६", "‰": "७", "Š": "८", "‹": "९",
}

_KRUTIDEV_RE = re.compile(
    "|".join(re.escape(k) for k in sorted(KRUTIDEV_MAP, key=len, reverse=True))
)

_CONSONANT = r"[\u0915-\u0939\u0958-\u095F]\u093C?"
_CLUSTER   = _CONSONANT + r"(?:\u094D" + _CONSONANT + r")*"
_MATRAS    = r"[\u093E-\u094C\u0901-\u0903\u0945\u0949]*"

# Kruti Dev types the short-i sign before its consonant and the reph after
# its syllable; Unicode wants the opposite order.
_SHORT_I_RE = re.compile(f"f({_CLUSTER})")
_REPH_RE    = re.compile(f"({_CLUSTER}{_MATRAS})Z")


def krutidev_to_unicode(text: str) -> str:
    mapped = _KRUTIDEV_RE.sub(lambda m: KRUTIDEV_MAP[m.group(0)], text)
    mapped = _SHORT_I_RE.sub(lambda m: m.group(1) + "ि", mapped)
    mapped = _REPH_RE.sub(lambda m: "र्" + m.group(1), mapped)
    return mapped.replace("f", "ि").replace("Z", "र्")


# ──────────────────────────────────────────────
# DV-TT Surekh style mojibake (government PDFs)
# ──────────────────────────────────────────────

DVTT_SUREKH_SEQUENCES: list[tuple[str, str]] = [
    ("ºÉiªÉàÉä´É VÉªÉiÉä", "सत्यं शिवं सुंदरं"),
    ("ÉÊ´VIkÉ àÉÆjÉÉãɪÉ", "वित्त मंत्रालय"),
    ("ºÉ®BÉEÉ®", "सरकार"),
    ("{ÉE®´É®ÉÒ", "फरवरी"),
    ("àÉÆjÉÉãɪÉ", "मंत्रालय"),
    ("ºÉiªÉàÉä´É", "सत्यं"),
    ("ÉÊ´VIkÉ", "वित्त"),
    ("£ÉÉ®iÉ", "भारत"),
    ("¤ÉVÉ]", "बजट"),
    ("ºÉÉ®", "सार"),
    ("BÉEÉ", "का"),
    ("VÉÉ®", "जार"),
]


def dvtt_surekh_to_unicode(text: str) -> str:
    for bad, good in sorted(DVTT_SUREKH_SEQUENCES, key=lambda p: -len(p[0])):
        text = text.replace(bad, good)
    return text


# Fixed trial order: the first font that improves the Devanagari count wins.
LEGACY_FONTS: list[tuple[str, Callable[[str], str]]] = [
    ("krutidev010", krutidev_to_unicode),
    ("dvtt-surekh", dvtt_surekh_to_unicode),
]


# Function words of exam English.  Kruti Dev glyph strings ("dh", "gS",
# "esa", "vkSj") almost never spell one of these, real English prose is full
# of them.
ENGLISH_MARKER_WORDS = frozenset({
    "the", "of", "and", "is", "are", "was", "were", "which", "what", "who",
    "whom", "whose", "following", "statement", "statements", "correct",
    "incorrect", "given", "below", "above", "select", "choose", "answer",
    "option", "options", "code", "codes", "consider", "only", "both",
    "neither", "nor", "none", "all", "not", "with", "from", "that", "this",
    "for", "has", "have", "been", "its", "their", "by", "as", "or", "to",
    "at", "an", "be", "it", "how", "many", "india", "indian",
})
ENGLISH_WORD_SHARE = 0.20

_LATIN_WORD_RE = re.compile(r"[A-Za-z]{2,}")


def reads_as_english(text: str) -> bool:
    """True when the Latin words of ``text`` look like English, not glyph codes."""
    words = [w.lower() for w in _LATIN_WORD_RE.findall(text or "")]
    if not words:
        return False
    hits = sum(1 for w in words if w in ENGLISH_MARKER_WORDS)
    return hits / len(words) >= ENGLISH_WORD_SHARE


def looks_legacy_encoded(text: str) -> bool:
    """Devanagari present but sparse, and the Latin letters are not English.

    A legacy-font page yields mostly Latin code points with the odd Unicode
    header, so the ratio alone cannot tell it apart from an English-dominant
    bilingual page.  The word check does.
    """
    ratio = devanagari_ratio(text)
    if not LEGACY_MIN_RATIO <= ratio < LEGACY_MAX_RATIO:
        return False
    return not reads_as_english(text)


def recover_legacy_text(text: str, fonts=None) -> tuple[str, Optional[str]]:
    """Return ``(text, font_name)``; ``font_name`` is None when nothing was applied."""
    if not text or not looks_legacy_encoded(text):
        return text, None

    baseline = count_devanagari(text)
    for name, convert in fonts or LEGACY_FONTS:
        converted = convert(text)
        if count_devanagari(converted) > baseline:
            logger.info(
                "Legacy font %s recovered %d → %d Devanagari chars",
                name, baseline, count_devanagari(converted),
            )
            return converted, name
    return text, None
