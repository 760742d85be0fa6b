import pytest

from testarena.script import (
    classify_char,
    classify_page,
    devanagari_ratio,
    script_runs,
    segment_scripts,
)

MIXED = "भारत की राजधानी Capital of India"


def test_classify_char():
    assert classify_char("क") == "hindi"
    assert classify_char("Q") == "english"
    assert classify_char("7") == "neither"
    assert classify_char("?") == "neither"


def test_english_only_short_circuits():
    out = segment_scripts("  Which river is the longest?  ")
    assert out.english == "Which river is the longest?"
    assert out.hindi == ""


def test_hindi_only_short_circuits():
    out = segment_scripts("सबसे लंबी नदी कौन सी है?")
    assert out.english == ""
    assert out.hindi == "सबसे लंबी नदी कौन सी है?"


def test_mixed_text_is_partitioned():
    out = segment_scripts(MIXED)
    assert out.hindi == "भारत की राजधानी"
    assert out.english == "Capital of India"


def test_segmentation_is_idempotent_on_its_output():
    first = segment_scripts(MIXED)
    again = segment_scripts(first.english)
    assert (again.english, again.hindi) == (first.english, "")
    again = segment_scripts(first.hindi)
    assert (again.english, again.hindi) == ("", first.hindi)


@pytest.mark.parametrize("text", ["", "   ", "\n\t", "1234 ?!"])
def test_segmentation_is_total(text):
    out = segment_scripts(text)
    assert isinstance(out.english, str)
    assert isinstance(out.hindi, str)


def test_neutral_characters_ride_with_open_run():
    runs = script_runs("(1) Rome, रोम")
    assert [r.script for r in runs] == ["english", "hindi"]
    assert runs[0].text == "(1) Rome, "


def test_leading_number_is_kept_with_first_run():
    out = segment_scripts("1 only / केवल 1")
    assert out.english == "1 only /"
    assert out.hindi == "केवल 1"


@pytest.mark.parametrize("text", ["1947", " 1, 2 & 3 "])
def test_letterless_text_goes_to_both_sides(text):
    out = segment_scripts(text)
    assert out.english == text.strip()
    assert out.hindi == text.strip()
    assert script_runs(text) == []


def test_classify_page_threshold():
    assert classify_page("The capital of France is Paris.") == "english"
    assert classify_page("फ्रांस की राजधानी पेरिस है।") == "hindi"
    assert devanagari_ratio("") == 0.0
