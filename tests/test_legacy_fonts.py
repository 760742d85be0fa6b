from testarena.extraction import document_from_text
from testarena.legacy_fonts import (
    krutidev_to_unicode,
    looks_legacy_encoded,
    reads_as_english,
    recover_legacy_text,
)
from testarena.script import count_devanagari, devanagari_ratio


def test_no_devanagari_means_no_conversion():
    text = "Hkkjr dh jkt/kkuh"
    converted, font = recover_legacy_text(text)
    assert converted == text
    assert font is None


def test_english_text_is_never_rewritten():
    text = "Consider the following statements about the Indian Constitution."
    assert recover_legacy_text(text) == (text, None)


def test_krutidev_page_with_unicode_header_is_recovered():
    text = "प्रश्न पत्र Hkkjr dh jkt/kkuh"
    assert looks_legacy_encoded(text)
    converted, font = recover_legacy_text(text)
    assert font == "krutidev010"
    assert "भारत की राजधानी" in converted
    assert count_devanagari(converted) > count_devanagari(text)


def test_plain_unicode_hindi_is_left_alone():
    text = "भारत की राजधानी नई दिल्ली है"
    assert recover_legacy_text(text) == (text, None)


def test_conversion_kept_only_on_strict_increase():
    text = "प्रश्न पत्र Hkkjr dh"
    identity = [("identity", lambda s: s)]
    assert recover_legacy_text(text, fonts=identity) == (text, None)


def test_fonts_tried_in_order():
    text = "प्रश्न पत्र abc"
    fonts = [
        ("worse", lambda s: s.replace("प्रश्न", "")),
        ("better", lambda s: s + " क"),
        ("best", lambda s: s + " कखग"),
    ]
    converted, font = recover_legacy_text(text, fonts=fonts)
    assert font == "better"
    assert converted.endswith(" क")


def test_short_i_is_reordered():
    assert krutidev_to_unicode("fdl") == "किस"


MIXED_UNICODE_PAGE = (
    "1. Which river is the longest in India? भारत की सबसे लंबी नदी कौन सी है?\n"
    "(a) Ganga / गंगा (b) Yamuna / यमुना\n"
    "(c) Godavari / गोदावरी (d) Narmada / नर्मदा"
)


def test_english_dominant_unicode_page_is_untouched():
    assert 0.10 <= devanagari_ratio(MIXED_UNICODE_PAGE) < 0.90
    assert reads_as_english(MIXED_UNICODE_PAGE)
    assert not looks_legacy_encoded(MIXED_UNICODE_PAGE)
    assert recover_legacy_text(MIXED_UNICODE_PAGE) == (MIXED_UNICODE_PAGE, None)


def test_mixed_page_keeps_its_option_markers():
    doc = document_from_text(MIXED_UNICODE_PAGE)
    assert doc.legacy_font is None
    assert doc.method == "direct"
    assert "(a) Ganga / गंगा" in doc.text
    assert "(d) Narmada / नर्मदा" in doc.text


def test_krutidev_glyph_words_do_not_read_as_english():
    assert not reads_as_english("Hkkjr dh jkt/kkuh ubZ fnYyh gS")
    assert reads_as_english("Consider the following statements")
    assert not reads_as_english("1947 ?")
