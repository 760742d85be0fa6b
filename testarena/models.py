"""
models.py – data shapes shared by the ingestion pipeline, scoring engine and API.

Ephemeral parse products (RawDocumentText, ScriptSegment, ParsedQuestionFragment)
live only for the duration of one ingestion.  TestDefinition and Attempt are the
durable records handed to the store.
"""

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

OPTION_LETTERS = ("A", "B", "C", "D")

Script           = Literal["english", "hindi", "neither"]
ExtractionMethod = Literal["direct", "optical", "font-recovered"]
TestStatus       = Literal["Upcoming", "Live", "Expired"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken to be UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


# ──────────────────────────────────────────────
# Extraction / segmentation
# ──────────────────────────────────────────────

class RawDocumentText(BaseModel):
    text:        str
    pages:       list[str]
    method:      ExtractionMethod = "direct"
    legacy_font: Optional[str]    = None

    @property
    def page_count(self) -> int:
        return len(self.pages)


class ScriptSegment(BaseModel):
    script: Script
    text:   str


class BilingualText(BaseModel):
    english: str = ""
    hindi:   str = ""


# ──────────────────────────────────────────────
# Options and questions
# ──────────────────────────────────────────────

class OptionSlots(BaseModel):
    """Exactly four option slots; ``None`` means the slot text was not recovered."""

    a: Optional[str] = None
    b: Optional[str] = None
    c: Optional[str] = None
    d: Optional[str] = None

    @classmethod
    def empty(cls) -> "OptionSlots":
        return cls(a="", b="", c="", d="")

    @classmethod
    def from_pairs(cls, pairs) -> "OptionSlots":
        """Build from ``(letter, text)`` pairs; unknown letters are ignored."""
        slots = {}
        for letter, text in pairs:
            key = str(letter).strip().lower()
            if key in ("a", "b", "c", "d") and key not in slots:
                slots[key] = text
        return cls(**slots)

    def get(self, letter: str) -> Optional[str]:
        return getattr(self, letter.lower())

    def filled(self) -> int:
        return sum(1 for letter in OPTION_LETTERS if self.get(letter))

    @property
    def is_complete(self) -> bool:
        return all(self.get(letter) is not None for letter in OPTION_LETTERS)

    def as_dict(self) -> dict[str, str]:
        return {letter: self.get(letter) or "" for letter in OPTION_LETTERS}


class ParsedQuestionFragment(BaseModel):
    number:   int
    text:     str
    options:  OptionSlots = Field(default_factory=OptionSlots.empty)
    script:   Script = "english"
    strategy: Optional[str] = None


class MergedOption(BaseModel):
    key:     str
    english: str = ""
    hindi:   str = ""


def _blank_options() -> list[MergedOption]:
    return [MergedOption(key=k) for k in OPTION_LETTERS]


class MergedQuestion(BaseModel):
    number:         int
    question_text:  BilingualText = Field(default_factory=BilingualText)
    options:        list[MergedOption] = Field(default_factory=_blank_options)
    correct_answer: str = "A"
    explanation:    str = ""

    @model_validator(mode="after")
    def four_option_slots(self):
        by_key = {o.key.upper(): o for o in self.options}
        self.options = [by_key.get(k) or MergedOption(key=k) for k in OPTION_LETTERS]
        for opt in self.options:
            opt.key = opt.key.upper()
        self.correct_answer = (self.correct_answer or "A").upper()
        if self.correct_answer not in OPTION_LETTERS:
            raise ValueError(f"correct_answer must be one of {OPTION_LETTERS}")
        return self

    def public_dict(self) -> dict:
        """Question as shown to a participant: no answer, no explanation."""
        return {
            "number":        self.number,
            "question_text": self.question_text.model_dump(),
            "options":       [o.model_dump() for o in self.options],
        }


# ──────────────────────────────────────────────
# Tests
# ──────────────────────────────────────────────

class MarkingScheme(BaseModel):
    marks_per_question: float = 2.0
    negative_marking:   float = 0.66


class TestConfig(BaseModel):
    """Administrator-supplied settings accompanying the uploaded PDFs."""

    title:              str = "Untitled test"
    duration_minutes:   int = 120
    negative_marking:   float = 0.66
    total_marks:        Optional[float] = None
    marks_per_question: Optional[float] = None
    start_time:         datetime = Field(default_factory=utcnow)
    end_time:           Optional[datetime] = None
    question_count:     Optional[int] = None
    bilingual:          bool = True

    @field_validator("start_time", "end_time")
    @classmethod
    def times_in_utc(cls, v):
        return as_utc(v)

    def marking_for(self, total_questions: int) -> MarkingScheme:
        if self.marks_per_question is not None:
            per_question = self.marks_per_question
        elif self.total_marks is not None and total_questions:
            per_question = self.total_marks / total_questions
        else:
            per_question = 2.0
        return MarkingScheme(
            marks_per_question=per_question,
            negative_marking=self.negative_marking,
        )


class TestDefinition(BaseModel):
    id:                Optional[int] = None
    title:             str
    questions:         list[MergedQuestion]
    answer_key:        dict[int, str] = Field(default_factory=dict)
    marking:           MarkingScheme = Field(default_factory=MarkingScheme)
    duration_minutes:  int = 120
    start_time:        datetime
    end_time:          datetime
    defaulted_answers: list[int] = Field(default_factory=list)
    bilingual:         bool = True
    created_at:        datetime = Field(default_factory=utcnow)

    @field_validator("start_time", "end_time", "created_at")
    @classmethod
    def times_in_utc(cls, v):
        return as_utc(v)

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def total_marks(self) -> float:
        return round(self.marking.marks_per_question * self.total_questions, 2)

    def status_at(self, now: datetime) -> TestStatus:
        if now < self.start_time:
            return "Upcoming"
        if now <= self.end_time:
            return "Live"
        return "Expired"

    def summary(self) -> dict:
        return {
            "id":               self.id,
            "title":            self.title,
            "total_questions":  self.total_questions,
            "total_marks":      self.total_marks,
            "negative_marking": self.marking.negative_marking,
            "duration_minutes": self.duration_minutes,
            "start_time":       self.start_time.isoformat(),
            "end_time":         self.end_time.isoformat(),
            "bilingual":        self.bilingual,
        }


# ──────────────────────────────────────────────
# Attempts and results
# ──────────────────────────────────────────────

class ScoreBreakdown(BaseModel):
    score:         float = 0.0
    correct_count: int = 0
    wrong_count:   int = 0
    skipped_count: int = 0
    accuracy:      float = 0.0
    time_taken:    int = 0


class Attempt(ScoreBreakdown):
    id:                   Optional[int] = None
    user_id:              int
    test_id:              int
    answers:              dict[int, str] = Field(default_factory=dict)
    status:               Literal["ongoing", "submitted"] = "ongoing"
    started_at:           datetime = Field(default_factory=utcnow)
    submitted_at:         Optional[datetime] = None
    allowed_time_seconds: int = 0
    rank:                 Optional[int] = None

    def breakdown(self) -> ScoreBreakdown:
        return ScoreBreakdown(**self.model_dump(include=set(ScoreBreakdown.model_fields)))


class SubmissionResult(ScoreBreakdown):
    attempt_id:      int
    rank:            Optional[int] = None
    submitted_at:    datetime
    topper_score:    float = 0.0
    total_attempted: int = 0


class RankEntry(BaseModel):
    rank:          int
    user_id:       int
    score:         float
    correct_count: int
    wrong_count:   int
    skipped_count: int
    accuracy:      float
    time_taken:    int
    submitted_at:  datetime
