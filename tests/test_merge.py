import pytest

from testarena.errors import StructuralMismatch
from testarena.merge import apply_answer_key, best_by_number, merge_fragments, validate_sequence
from testarena.models import MergedQuestion, OptionSlots, ParsedQuestionFragment


def frag(number, text, options=None, script="english"):
    slots = OptionSlots.from_pairs(zip("ABCD", options)) if options else OptionSlots.empty()
    return ParsedQuestionFragment(number=number, text=text, options=slots, script=script)


def test_merge_pairs_fragments_by_number():
    hindi = [frag(1, "प्रश्न एक", ["क1", "ख1", "ग1", "घ1"], "hindi")]
    english = [
        frag(1, "Question one", ["a1", "b1", "c1", "d1"]),
        frag(2, "Question two", ["a2", "b2", "c2", "d2"]),
    ]
    merged = merge_fragments(hindi, english)
    assert [q.number for q in merged] == [1, 2]
    assert merged[0].question_text.hindi == "प्रश्न एक"
    assert merged[0].question_text.english == "Question one"
    assert merged[0].options[2].key == "C"
    assert merged[0].options[2].hindi == "ग1"
    assert merged[0].options[2].english == "c1"
    # No Hindi fragment for question 2: that side stays empty.
    assert merged[1].question_text.hindi == ""
    assert all(o.hindi == "" for o in merged[1].options)


def test_fragment_with_most_options_wins():
    statement = frag(2, "Statement two from a list inside question one")
    real = frag(2, "Real question two", ["a", "b", "c", "d"])
    assert best_by_number([statement, real])[2] is real


def test_ties_keep_the_earliest_fragment():
    first = frag(4, "First", ["a", "b", "c", "d"])
    second = frag(4, "Second", ["e", "f", "g", "h"])
    assert best_by_number([first, second])[4] is first


def test_validate_sequence_rejects_short_sets_with_exact_counts():
    merged = [MergedQuestion(number=n) for n in range(1, 101) if n not in (17, 64)]
    with pytest.raises(StructuralMismatch) as exc_info:
        validate_sequence(merged, 100)
    err = exc_info.value
    assert err.found == 98
    assert err.expected == 100
    assert err.missing == [17, 64]
    assert "Found 98" in err.message


def test_validate_sequence_orders_and_drops_out_of_range():
    merged = [MergedQuestion(number=n) for n in (3, 1, 2, 7)]
    assert [q.number for q in validate_sequence(merged, 3)] == [1, 2, 3]


def test_apply_answer_key_defaults_missing_to_a():
    questions = [MergedQuestion(number=n) for n in (1, 2, 3)]
    defaulted = apply_answer_key(questions, {0: "c", 2: "X"}, {0: "Because C."})
    assert [q.correct_answer for q in questions] == ["C", "A", "A"]
    assert questions[0].explanation == "Because C."
    assert defaulted == [2, 3]


def test_merged_question_always_has_four_slots():
    q = MergedQuestion(number=1, options=[{"key": "b", "english": "Bravo"}])
    assert [o.key for o in q.options] == ["A", "B", "C", "D"]
    assert q.options[1].english == "Bravo"
