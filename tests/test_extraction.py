import pytest

from testarena import extraction
from testarena.errors import ExtractionFailed
from testarena.extraction import (
    PAGE_BREAK,
    document_from_text,
    extract_document,
    normalize_text,
    split_pages,
)

FAKE_PDF = b"%PDF-1.4\n% synthetic"


def test_empty_buffer_fails():
    with pytest.raises(ExtractionFailed):
        extract_document(b"")


def test_non_pdf_bytes_fail_with_hint():
    with pytest.raises(ExtractionFailed) as exc_info:
        extract_document(b"PK\x03\x04 not a pdf")
    assert "PDF" in exc_info.value.to_dict()["hint"]


def test_direct_text_is_used_when_present(monkeypatch):
    monkeypatch.setattr(extraction, "extract_pages_direct", lambda data: ["page one", "page two"])
    monkeypatch.setattr(extraction, "extract_pages_ocr", lambda data: pytest.fail("OCR must not run"))
    doc = extract_document(FAKE_PDF)
    assert doc.method == "direct"
    assert doc.pages == ["page one", "page two"]
    assert doc.text == "page one" + PAGE_BREAK + "page two"


def test_ocr_fallback_on_empty_text_layer(monkeypatch):
    monkeypatch.setattr(extraction, "extract_pages_direct", lambda data: ["", "  "])
    monkeypatch.setattr(extraction, "extract_pages_ocr", lambda data: ["scanned text", ""])
    doc = extract_document(FAKE_PDF)
    assert doc.method == "optical"
    assert doc.page_count == 2


def test_ocr_fallback_when_direct_read_raises(monkeypatch):
    def broken(data):
        raise ValueError("unreadable text layer")

    monkeypatch.setattr(extraction, "extract_pages_direct", broken)
    monkeypatch.setattr(extraction, "extract_pages_ocr", lambda data: ["scanned text"])
    assert extract_document(FAKE_PDF).method == "optical"


def test_nothing_recoverable_fails(monkeypatch):
    monkeypatch.setattr(extraction, "extract_pages_direct", lambda data: [""])
    monkeypatch.setattr(extraction, "extract_pages_ocr", lambda data: [""])
    with pytest.raises(ExtractionFailed):
        extract_document(FAKE_PDF)


def test_ocr_errors_become_extraction_failures(monkeypatch):
    def corrupt(stream):
        raise ValueError("no /Root object")

    monkeypatch.setattr(extraction.pdfplumber, "open", corrupt)
    with pytest.raises(ExtractionFailed) as exc_info:
        extraction.extract_pages_ocr(FAKE_PDF)
    assert "no /Root object" in exc_info.value.message
    assert isinstance(exc_info.value.__cause__, ValueError)


def test_missing_tesseract_has_install_hint(monkeypatch):
    def no_engine(stream):
        raise extraction.pytesseract.TesseractNotFoundError()

    monkeypatch.setattr(extraction.pdfplumber, "open", no_engine)
    with pytest.raises(ExtractionFailed) as exc_info:
        extraction.extract_pages_ocr(FAKE_PDF)
    assert "Tesseract" in exc_info.value.hint


def test_legacy_font_page_marks_document(monkeypatch):
    monkeypatch.setattr(
        extraction, "extract_pages_direct",
        lambda data: ["Question paper in English", "प्रश्न पत्र Hkkjr dh jkt/kkuh"],
    )
    doc = extract_document(FAKE_PDF)
    assert doc.method == "font-recovered"
    assert doc.legacy_font == "krutidev010"
    assert doc.pages[0] == "Question paper in English"
    assert "भारत" in doc.pages[1]


def test_split_pages_on_form_feed():
    assert split_pages("a" + PAGE_BREAK + "b", 2) == ["a", "b"]


def test_split_pages_equal_slices_when_count_disagrees():
    assert split_pages("aaaabbbb", 2) == ["aaaa", "bbbb"]


def test_normalize_text_maps_symbol_font_glyphs():
    assert normalize_text("90" + chr(0xF0B0) + "\r\nnext") == "90°\nnext"


def test_document_from_text_counts_pages():
    doc = document_from_text("one" + PAGE_BREAK + "two" + PAGE_BREAK + "three")
    assert doc.page_count == 3
    assert doc.method == "direct"
