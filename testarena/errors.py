"""
errors.py – typed failures raised (or reported) by the ingestion and scoring core.

Parsing-stage errors are local to one document.  They carry enough structure
(stage, counts, missing numbers) for an operator to fix the source PDF and
retry; the pipeline never guesses missing content.
"""

from datetime import datetime
from typing import Optional


class TestArenaError(Exception):
    """Base class for every error the core raises."""

    __test__ = False  # not a pytest test class despite the name

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": type(self).__name__, "message": self.message}


# ── Ingestion ─────────────────────────────────────────────────────────────────


class IngestionError(TestArenaError):
    stage = "ingestion"


class ExtractionFailed(IngestionError):
    stage = "extraction"

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.hint = hint or (
            "Upload a clearer scan or a PDF with selectable text."
        )

    def to_dict(self) -> dict:
        return {**super().to_dict(), "stage": self.stage, "hint": self.hint}


class StructuralMismatch(IngestionError):
    stage = "merge"

    def __init__(self, found: int, expected: int, missing: Optional[list[int]] = None):
        self.found = found
        self.expected = expected
        self.missing = sorted(missing or [])
        shortfall = expected - found
        preview = ", ".join(str(n) for n in self.missing[:20])
        if len(self.missing) > 20:
            preview += ", …"
        message = (
            f"Expected exactly {expected} questions. Found {found}"
            + (f" ({shortfall} short; missing {preview})" if self.missing else "")
            + ". Check PDF structure (alternating Hindi/English pages, "
            f"question numbers 1–{expected}, options (a)(b)(c)(d))."
        )
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            "stage":    self.stage,
            "found":    self.found,
            "expected": self.expected,
            "missing":  self.missing,
        }


class AnswerKeyIncomplete(IngestionError):
    """Non-fatal: reported alongside a created test, never raised by the pipeline."""

    stage = "answer_key"

    def __init__(self, missing: list[int], expected: int):
        self.missing = sorted(missing)
        self.expected = expected
        super().__init__(
            f"Answer key covers {expected - len(self.missing)} of {expected} questions; "
            f"{len(self.missing)} defaulted to 'A' pending correction."
        )

    def to_dict(self) -> dict:
        return {**super().to_dict(), "stage": self.stage, "missing": self.missing}


# ── Attempts ──────────────────────────────────────────────────────────────────


class AttemptError(TestArenaError):
    pass


class DuplicateSubmission(AttemptError):
    def __init__(self, result):
        super().__init__("Attempt already submitted; the original result stands.")
        self.result = result

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.result is not None:
            data["result"] = self.result.model_dump(mode="json")
        return data


class WindowViolation(AttemptError):
    def __init__(self, boundary: datetime, which: str):
        self.boundary = boundary
        self.which = which
        if which == "start":
            message = f"Test has not started yet (opens at {boundary.isoformat()})."
        else:
            message = f"Test has expired (closed at {boundary.isoformat()})."
        super().__init__(message)

    def to_dict(self) -> dict:
        return {**super().to_dict(), "boundary": self.boundary.isoformat(), "which": self.which}


class AttemptNotStarted(AttemptError):
    def __init__(self):
        super().__init__("No attempt found. Start the test first.")


class TestNotFound(TestArenaError):
    def __init__(self, test_id: int):
        super().__init__(f"Test {test_id} not found.")
        self.test_id = test_id
