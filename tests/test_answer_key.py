from testarena.answer_key import parse_answer_key, parse_explanations, parse_solution


def test_numbered_parenthesized_layout():
    assert parse_answer_key("1. (b)\n2. (D)\n3.(a)", 3) == {0: "B", 1: "D", 2: "A"}


def test_line_start_layouts():
    text = "1: c\n2. a\n3 - d"
    assert parse_answer_key(text, 3) == {0: "C", 1: "A", 2: "D"}


def test_q_prefixed_layout():
    assert parse_answer_key("Q1: b   Q.2 - (c)", 2) == {0: "B", 1: "C"}


def test_inline_answer_strip():
    assert parse_answer_key("Answers: 1-a 2-b 3-c", 3) == {0: "A", 1: "B", 2: "C"}


def test_first_match_wins_across_patterns():
    # "1. (b)" comes from the earlier, more specific layout.
    assert parse_answer_key("1: c\n1. (b)", 5)[0] == "B"


def test_out_of_range_and_invalid_letters_are_ignored():
    key = parse_answer_key("1. (a)\n5. (e)\n7. (b)", 5)
    assert key == {0: "A"}


def test_empty_text():
    assert parse_answer_key("", 100) == {}
    assert parse_explanations("", 100) == {}


def test_explanations_are_spans_between_answers():
    text = (
        "1. (b) Explanation: Bravo is the right choice here.\n"
        "2. (a) Sol: Alpha it is, clearly.\n"
        "3. (c) ok"
    )
    explanations = parse_explanations(text, 3)
    assert explanations == {
        0: "Bravo is the right choice here.",
        1: "Alpha it is, clearly.",
    }


def test_explanations_are_bounded():
    text = "1. (a) " + "word " * 1000
    assert len(parse_explanations(text, 1)[0]) == 3000
    assert len(parse_explanations(text, 1, max_length=100)[0]) == 100


def test_parse_solution_returns_both():
    key, explanations = parse_solution("1. (d) Because delta is the answer.", 1)
    assert key == {0: "D"}
    assert explanations == {0: "Because delta is the answer."}
