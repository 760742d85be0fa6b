"""
extraction.py – PDF bytes → RawDocumentText.

  1. Direct text extraction with pdfplumber, page by page.
  2. If that yields nothing (or pdfplumber cannot read the text layer), render
     each page and run Tesseract over it.  OCR is slow and only ever runs on
     this fallback path.
  3. Each page is then offered to the legacy-font recovery step, which keeps
     a conversion only when it strictly increases the Devanagari count.

Pages are joined with form feeds in RawDocumentText.text and kept separately
in RawDocumentText.pages so that bilingual documents can be classified page by
page.
"""

import io
import logging
import math
import re

import pdfplumber
import pytesseract

from . import config
from .errors import ExtractionFailed
from .legacy_fonts import recover_legacy_text
from .models import RawDocumentText

logger = logging.getLogger(__name__)

PAGE_BREAK = "\f"

# ── Symbol-font normalization ────────────────────────────────────────────────
# Some exam PDFs use Symbol or custom math fonts whose glyph codes land in the
# private-use area.  Map the common ones back to real Unicode characters.
_SYMBOL_CHAR_MAP: dict[str, str] = {
    "\uf028": "\u221a",   # radical sign in Symbol-variant fonts
    "\uf0d6": "\u221a",   # alternative radical encoding
    "\uf0b0": "\u00b0",   # degree
    "\uf0b2": "\u00b2",   # superscript 2
    "\uf0b3": "\u00b3",   # superscript 3
    "\uf02d": "\u2212",   # minus
    "\uf0b7": "\u2022",   # bullet
    "\u00a0": " ",         # no-break space
}

_CRLF_RE = re.compile(r"\r\n?")


def normalize_text(text: str) -> str:
    """Unify line endings and map symbol-font mis-encodings."""
    if not text:
        return ""
    text = _CRLF_RE.sub("\n", text)
    return "".join(_SYMBOL_CHAR_MAP.get(c, c) for c in text)


def split_pages(text: str, page_count: int = 1) -> list[str]:
    """Split on form feeds; if that disagrees with page_count, cut equal slices."""
    if not text:
        return []
    pages = text.split(PAGE_BREAK)
    if page_count and len(pages) != page_count:
        size = math.ceil(len(text) / page_count)
        pages = [text[i * size:(i + 1) * size] for i in range(page_count)]
    return [p.strip() for p in pages]


# ──────────────────────────────────────────────
# Direct and optical extraction
# ──────────────────────────────────────────────

def _check_pdf_bytes(data: bytes) -> None:
    if not data:
        raise ExtractionFailed("PDF buffer is empty.")
    if not bytes(data[:1024]).lstrip().startswith(b"%PDF"):
        raise ExtractionFailed(
            "File does not appear to be a valid PDF (missing %PDF header).",
            hint="Upload the original PDF file rather than a renamed document.",
        )


def extract_pages_direct(data: bytes) -> list[str]:
    """Text layer of every page (empty strings for image-only pages)."""
    pages: list[str] = []
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        for page in pdf.pages:
            pages.append(normalize_text(page.extract_text() or "").strip())
    return pages


def _ocr_image(image) -> str:
    try:
        return pytesseract.image_to_string(image, lang=config.OCR_LANGUAGES)
    except pytesseract.TesseractError as exc:
        if config.OCR_LANGUAGES == "eng":
            raise
        # Usually a missing traineddata file for Hindi.
        logger.warning("OCR with %s failed (%s); retrying with eng", config.OCR_LANGUAGES, exc)
        return pytesseract.image_to_string(image, lang="eng")


def extract_pages_ocr(data: bytes) -> list[str]:
    """Render each page and run Tesseract over it."""
    pages: list[str] = []
    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            for page_num, page in enumerate(pdf.pages, start=1):
                image = page.to_image(resolution=config.OCR_DPI).original
                text = normalize_text(_ocr_image(image)).strip()
                logger.debug("OCR page %d: %d chars", page_num, len(text))
                pages.append(text)
    except pytesseract.TesseractNotFoundError as exc:
        raise ExtractionFailed(
            "This PDF has no text layer and the OCR engine is not installed.",
            hint="Install Tesseract (with the 'hin' language pack) or upload a text-based PDF.",
        ) from exc
    except Exception as exc:  # noqa: BLE001
        raise ExtractionFailed(f"Could not read PDF for OCR: {exc}") from exc
    return pages


# ──────────────────────────────────────────────
# Public entry point
# ──────────────────────────────────────────────

def recover_pages(pages: list[str]) -> tuple[list[str], str | None]:
    """Apply legacy-font recovery page by page; return the first font used."""
    recovered: list[str] = []
    used_font = None
    for page in pages:
        text, font = recover_legacy_text(page)
        recovered.append(text)
        if font and used_font is None:
            used_font = font
    return recovered, used_font


def extract_document(data: bytes) -> RawDocumentText:
    """Return the recovered text of a PDF or raise ExtractionFailed."""
    _check_pdf_bytes(data)

    method = "direct"
    try:
        pages = extract_pages_direct(data)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Direct text extraction failed (%s); trying OCR", exc)
        pages = []

    if not any(p.strip() for p in pages):
        logger.info("No text layer found; running OCR fallback")
        pages = extract_pages_ocr(data)
        method = "optical"
        if not any(p.strip() for p in pages):
            raise ExtractionFailed(
                "No text could be recovered from this PDF, even with OCR.",
            )

    pages, font = recover_pages(pages)
    if font:
        method = "font-recovered"

    logger.info(
        "Extracted %d pages (%d chars) via %s",
        len(pages), sum(len(p) for p in pages), method,
    )
    return RawDocumentText(
        text=PAGE_BREAK.join(pages),
        pages=pages,
        method=method,
        legacy_font=font,
    )


def document_from_text(text: str, page_count: int | None = None) -> RawDocumentText:
    """Wrap already-extracted text (e.g. pasted by an operator) as a document."""
    text = normalize_text(text)
    pages = split_pages(text, page_count or max(1, text.count(PAGE_BREAK) + 1))
    pages, font = recover_pages(pages)
    return RawDocumentText(
        text=PAGE_BREAK.join(pages),
        pages=pages,
        method="font-recovered" if font else "direct",
        legacy_font=font,
    )
