"""Answer decoding tests: raw client values into the tagged answer union."""

import pytest

from screening_core.models import (
    AnswerSet,
    LabelAnswer,
    NumberAnswer,
    NumericLabelAnswer,
    decode_answer,
)


class TestDecodeAnswer:
    """decode_answer() on every raw shape a client may send."""

    @pytest.mark.parametrize("raw", ["Yes", "no", "Sometimes", "A lot", "2Often"])
    def test_plain_labels(self, raw):
        """Strings that are neither numeric nor prefixed stay labels."""
        decoded = decode_answer(raw)
        assert isinstance(decoded, LabelAnswer)
        assert decoded.text == raw

    @pytest.mark.parametrize("raw, value", [
        ("2 Often", 2),
        ("0 Never", 0),
        ("10 Always", 10),
    ])
    def test_numeric_prefixed_labels(self, raw, value):
        """A leading integer token followed by text is a numeric label."""
        decoded = decode_answer(raw)
        assert isinstance(decoded, NumericLabelAnswer)
        assert decoded.value == value
        assert decoded.text == raw, "Original text must be kept for lookups"

    @pytest.mark.parametrize("raw, value, text", [
        (3, 3.0, "3"),
        (2.0, 2.0, "2"),
        (1.5, 1.5, "1.5"),
        ("4", 4.0, "4"),
        (" 2.5 ", 2.5, " 2.5 "),
        ("-1", -1.0, "-1"),
    ])
    def test_numbers(self, raw, value, text):
        """JSON numbers and numeric strings decode to NumberAnswer."""
        decoded = decode_answer(raw)
        assert isinstance(decoded, NumberAnswer)
        assert decoded.value == value
        assert decoded.text == text

    @pytest.mark.parametrize("raw", [
        None, "", "   ", [1, 2], {"a": 1}, float("nan"), float("inf"),
    ])
    def test_unusable_values_decode_to_none(self, raw):
        """Null, blank, containers and non-finite numbers carry no answer."""
        assert decode_answer(raw) is None

    @pytest.mark.parametrize("raw", ["nan", "inf", "Infinity", "1_000"])
    def test_special_numeric_strings_are_labels(self, raw):
        """Python-only float spellings are not treated as numbers."""
        assert isinstance(decode_answer(raw), LabelAnswer)

    def test_booleans_are_labels(self):
        """JSON true/false decode to labels, not to 1/0."""
        assert decode_answer(True) == LabelAnswer(text="true")
        assert decode_answer(False) == LabelAnswer(text="false")


class TestAnswerSet:
    """AnswerSet construction from the raw submission map."""

    def test_decode_keeps_every_key(self):
        """Unusable values stay as None entries under their key."""
        answers = AnswerSet.decode({"q1": "yes", "q2": None, 3: "2"})
        assert set(answers.values) == {"q1", "q2", "3"}
        assert answers.values["q2"] is None
        assert answers.answered_count == 2

    def test_answered_preserves_order(self):
        """answered() lists non-empty answers in submission order."""
        answers = AnswerSet.decode({"b": "no", "a": "", "c": "yes"})
        assert [a.text for a in answers.answered()] == ["no", "yes"]

    @pytest.mark.parametrize("raw", [None, "yes", ["yes"], 5])
    def test_non_mapping_decodes_empty(self, raw):
        """Anything that is not a mapping becomes an empty set."""
        answers = AnswerSet.decode(raw)
        assert answers.values == {}
        assert answers.answered_count == 0

    def test_round_trips_through_json(self):
        """The tagged union validates back from its own dump."""
        answers = AnswerSet.decode({"q1": "2 Often", "q2": 3, "q3": "Yes"})
        restored = AnswerSet.model_validate(answers.model_dump(mode="json"))
        assert restored == answers
