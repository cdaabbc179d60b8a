"""ScoringEngine tests.

Covers the three-tier encoding cascade (binary, option table, numeric),
first-match risk classification with the legacy fallback buckets, and the
scoring-rule diagnostics reported by ``check_scoring_rules``.
"""

import pytest

from screening_core.models import (
    AnswerSet,
    QuestionnaireDefinition,
    RiskLevel,
    ScoringMethod,
    ScoringRule,
)
from screening_core.models.answer import decode_answer, leading_integer
from screening_core.scoring import (
    ScoringEngine,
    build_option_table,
    check_scoring_rules,
    fallback_risk,
)


THREE_BAND_RULES = [
    ScoringRule(min_score=0, max_score=2, risk_level=RiskLevel.LOW),
    ScoringRule(min_score=3, max_score=6, risk_level=RiskLevel.MEDIUM),
    ScoringRule(min_score=7, risk_level=RiskLevel.HIGH),
]


def _definition(options=None, rules=None, name="TEST") -> QuestionnaireDefinition:
    return QuestionnaireDefinition(
        name=name,
        answer_options=options or [],
        scoring_rules=rules or [],
    )


@pytest.fixture
def engine():
    return ScoringEngine()


# =====================================================================
# Binary yes/no
# =====================================================================


class TestBinaryScoring:
    """Every non-empty answer is yes or no: the score counts the yeses."""

    @pytest.mark.parametrize("answers, expected", [
        ({"q1": "yes", "q2": "no", "q3": "yes"}, 2),
        ({"q1": "Yes", "q2": "YES", "q3": "No", "q4": "NO"}, 2),
        ({"q1": "no", "q2": "No"}, 0),
        ({"q1": "YES"}, 1),
    ])
    def test_count_of_yes_case_insensitive(self, engine, answers, expected):
        """Mixed-case yes/no answers score as the number of yeses."""
        result = engine.score(answers, _definition(["Yes", "No"]))
        assert result.score == expected
        assert result.method == ScoringMethod.BINARY

    def test_binary_wins_over_option_table(self, engine):
        """Yes/no answers are counted even when options would index differently."""
        # "Yes" sits at index 1 here, but binary detection comes first
        definition = _definition(["No", "Yes"])
        result = engine.score({"q1": "yes", "q2": "yes", "q3": "no"}, definition)
        assert result.score == 2, f"Expected yes count 2, got {result.score}"

    def test_null_answers_are_ignored(self, engine):
        """Null and blank answers do not break binary detection."""
        result = engine.score({"q1": "yes", "q2": None, "q3": "  ", "q4": "yes"})
        assert result.score == 2
        assert result.method == ScoringMethod.BINARY

    def test_surrounding_whitespace_is_ignored(self, engine):
        """Padded " yes" and "no " still count as binary answers."""
        result = engine.score({"q1": " yes", "q2": "no ", "q3": "\tYES\n"})
        assert result.method == ScoringMethod.BINARY
        assert result.score == 2

    def test_legacy_scenario_without_definition(self, engine):
        """No questionnaire: 2 yeses score 2 and fall back to Low."""
        result = engine.score({"q1": "yes", "q2": "no", "q3": "yes"}, None)
        assert result.score == 2
        assert result.risk == RiskLevel.LOW, "2 < 3 must classify Low"

    def test_one_non_binary_answer_disables_binary(self, engine):
        """A single "sometimes" pushes the set onto the option-table path."""
        definition = _definition(["yes", "no", "sometimes"])
        result = engine.score({"q1": "yes", "q2": "sometimes"}, definition)
        assert result.method == ScoringMethod.OPTION_TABLE
        # yes -> index 0, sometimes -> index 2
        assert result.score == 2


# =====================================================================
# Shared option list
# =====================================================================


class TestOptionTableScoring:
    """Answers decoded through the questionnaire's option list."""

    def test_numeric_prefix_option(self, engine):
        """Answer "2 Often" against prefixed options scores 2."""
        definition = _definition(["0 Never", "1 Sometimes", "2 Often"])
        result = engine.score({"q1": "2 Often"}, definition)
        assert result.score == 2
        assert result.method == ScoringMethod.OPTION_TABLE

    def test_label_only_options_use_index(self, engine):
        """Options without prefixes score by zero-based position."""
        definition = _definition(["Low", "Medium", "High"])
        result = engine.score({"q1": "High"}, definition)
        assert result.score == 2

    def test_multi_digit_prefix(self, engine):
        """Answer "10 Always" decodes to 10, not to its index."""
        definition = _definition(["0 Never", "5 Sometimes", "10 Always"])
        result = engine.score({"q1": "10 Always", "q2": "5 Sometimes"}, definition)
        assert result.score == 15

    def test_case_insensitive_lookup(self, engine):
        """Exact match first, then a case-insensitive match."""
        definition = _definition(["Not at all", "A little", "A lot"])
        result = engine.score({"q1": "a LOT", "q2": "A little"}, definition)
        assert result.score == 3

    def test_prefixed_answer_against_label_only_options_scores_zero(self, engine):
        """Answer "2 Often" against label-only options matches nothing."""
        definition = _definition(["Never", "Sometimes", "Often"])
        result = engine.score({"q1": "2 Often", "q2": "0 Never"}, definition)
        assert result.score == 0, (
            "Prefixed answers must not be decoded by their own prefix "
            "when the option list has no such label"
        )
        assert result.method == ScoringMethod.OPTION_TABLE

    def test_unmatched_label_contributes_zero(self, engine):
        """Labels absent from the option list add nothing."""
        definition = _definition(["0 Never", "1 Sometimes", "2 Often"])
        result = engine.score({"q1": "2 Often", "q2": "Rarely"}, definition)
        assert result.score == 2

    def test_numeric_answer_matches_option_text(self, engine):
        """A raw number is looked up by its text like any other answer."""
        definition = _definition(["0", "1", "2"])
        result = engine.score({"q1": 2, "q2": "1"}, definition)
        assert result.score == 3

    def test_bundled_frequency_scale(self, engine, catalog):
        """BFS-8 sums option prefixes and classifies with its own rules."""
        definition = catalog.get("BFS-8")
        answers = {str(i): "2 Often" for i in range(8)}
        result = engine.score(answers, definition)
        assert result.score == 16
        assert result.risk == RiskLevel.HIGH


class TestBuildOptionTable:
    """Decode-table construction."""

    def test_prefix_and_index_mix(self):
        """Prefixed options use the prefix, the rest their position."""
        exact, folded = build_option_table(["3 Always", "Never", "Often"])
        assert exact == {"3 Always": 3, "Never": 1, "Often": 2}
        assert folded["never"] == 1

    def test_same_prefix_grammar_as_answers(self):
        """Options and answers read integer prefixes the same way."""
        options = ["0 Never", " 2\tOften", "3Always", "10 Always"]
        exact, _ = build_option_table(options)
        assert exact == {"0 Never": 0, " 2\tOften": 2, "3Always": 2, "10 Always": 10}
        for option in ("0 Never", "10 Always"):
            assert decode_answer(option).value == exact[option]
        assert leading_integer("3Always") is None

    def test_first_duplicate_wins(self):
        """Colliding labels keep the earlier value."""
        exact, folded = build_option_table(["Yes", "yes", "No"])
        assert exact["Yes"] == 0
        assert folded["yes"] == 0


# =====================================================================
# Raw numeric
# =====================================================================


class TestNumericScoring:
    """No usable option list: numeric answers are summed."""

    def test_sum_numeric_answers(self, engine):
        """Numbers and numeric strings are summed; labels add 0."""
        result = engine.score({"q1": 2, "q2": "3", "q3": "Maybe", "q4": 1.5})
        assert result.score == 6.5
        assert result.method == ScoringMethod.NUMERIC

    def test_whole_totals_are_ints(self, engine):
        """Integral float totals come back as int."""
        result = engine.score({"q1": 1.5, "q2": 1.5})
        assert result.score == 3
        assert isinstance(result.score, int)

    def test_unsupported_shapes_contribute_zero(self, engine):
        """Lists, objects and non-finite numbers are skipped."""
        result = engine.score({
            "q1": [1, 2], "q2": {"a": 1}, "q3": float("nan"), "q4": 4,
        })
        assert result.score == 4

    def test_non_mapping_input_scores_zero(self, engine):
        """Garbage input is total: it decodes to an empty set."""
        result = engine.score(["yes", "yes"])
        assert result.score == 0
        assert result.risk == RiskLevel.LOW


# =====================================================================
# Risk classification
# =====================================================================


class TestRiskClassification:
    """First-matching rule wins; otherwise the fallback buckets apply."""

    @pytest.mark.parametrize("score, expected", [
        (0, RiskLevel.LOW),
        (2, RiskLevel.LOW),
        (3, RiskLevel.MEDIUM),
        (6, RiskLevel.MEDIUM),
        (7, RiskLevel.HIGH),
        (100, RiskLevel.HIGH),
    ])
    def test_three_band_rules(self, engine, score, expected):
        """Inclusive ranges with an open-ended top band."""
        assert engine.classify(score, THREE_BAND_RULES) == expected

    @pytest.mark.parametrize("score, expected", [
        (1, RiskLevel.LOW),
        (3, RiskLevel.MEDIUM),
        (4, RiskLevel.MEDIUM),
        (6, RiskLevel.MEDIUM),
        (8, RiskLevel.HIGH),
        (-1, RiskLevel.LOW),
    ])
    def test_fallback_without_rules(self, engine, score, expected):
        """No rules: 3..6 Medium, above 6 High, otherwise Low."""
        assert engine.classify(score, []) == expected
        assert fallback_risk(score) == expected

    def test_gap_falls_through_to_fallback(self, engine):
        """A score between two rules uses the fallback buckets."""
        rules = [
            ScoringRule(min_score=0, max_score=1, risk_level=RiskLevel.LOW),
            ScoringRule(min_score=10, risk_level=RiskLevel.HIGH),
        ]
        assert engine.classify(5, rules) == RiskLevel.MEDIUM
        assert engine.classify(8, rules) == RiskLevel.HIGH

    def test_overlap_first_match_wins(self, engine):
        """Overlapping ranges resolve by listed order."""
        rules = [
            ScoringRule(min_score=0, max_score=5, risk_level=RiskLevel.MODERATE),
            ScoringRule(min_score=3, max_score=10, risk_level=RiskLevel.HIGH),
        ]
        assert engine.classify(4, rules) == RiskLevel.MODERATE
        assert engine.classify(6, rules) == RiskLevel.HIGH

    def test_moderate_ranks_with_medium(self):
        """Moderate and Medium share a rank between Low and High."""
        assert RiskLevel.MODERATE.rank == RiskLevel.MEDIUM.rank
        assert RiskLevel.LOW.rank < RiskLevel.MEDIUM.rank < RiskLevel.HIGH.rank


# =====================================================================
# Whole-engine properties
# =====================================================================


class TestScoreProperties:
    """Properties that hold for every input."""

    def test_empty_answer_set_scores_zero_with_rules(self, engine):
        """Empty set: score 0, risk from whichever rule covers 0."""
        result = engine.score({}, _definition(rules=THREE_BAND_RULES))
        assert result.score == 0
        assert result.risk == RiskLevel.LOW

    def test_empty_answer_set_uses_fallback_when_no_rule_covers_zero(self, engine):
        """Rules starting above 0 leave an empty set to the fallback."""
        rules = [ScoringRule(min_score=1, risk_level=RiskLevel.HIGH)]
        result = engine.score(AnswerSet(), _definition(rules=rules))
        assert result.score == 0
        assert result.risk == RiskLevel.LOW

    def test_idempotent(self, engine, catalog):
        """Scoring the same input twice yields an identical result."""
        definition = catalog.get("SCC-10")
        answers = {"q1": "Yes", "q2": "no", "q3": "YES", "q4": None}
        first = engine.score(answers, definition)
        second = engine.score(answers, definition)
        assert first == second

    def test_result_is_immutable(self, engine):
        """ScoreResult is frozen."""
        result = engine.score({"q1": "yes"})
        with pytest.raises(Exception):
            result.score = 99

    def test_accepts_decoded_answer_set(self, engine):
        """A pre-decoded AnswerSet scores the same as the raw mapping."""
        raw = {"q1": "yes", "q2": "yes"}
        assert engine.score(AnswerSet.decode(raw)) == engine.score(raw)


# =====================================================================
# Rule diagnostics
# =====================================================================


class TestCheckScoringRules:
    """Gap, overlap and inverted-range reporting."""

    def test_clean_partition_has_no_issues(self):
        """Contiguous integer bands with an open top are clean."""
        assert check_scoring_rules(THREE_BAND_RULES) == []

    def test_no_rules_has_no_issues(self):
        """An empty rule list is legal (fallback only)."""
        assert check_scoring_rules([]) == []

    def test_gap_reported(self):
        """Scores between two bands are flagged."""
        rules = [
            ScoringRule(min_score=0, max_score=2, risk_level=RiskLevel.LOW),
            ScoringRule(min_score=5, risk_level=RiskLevel.HIGH),
        ]
        issues = check_scoring_rules(rules)
        assert len(issues) == 1
        assert "between 2 and 5" in issues[0]

    def test_overlap_reported(self):
        """Overlapping bands are flagged with the winning rule named."""
        rules = [
            ScoringRule(min_score=0, max_score=5, risk_level=RiskLevel.LOW),
            ScoringRule(min_score=4, risk_level=RiskLevel.HIGH),
        ]
        issues = check_scoring_rules(rules)
        assert any("overlap" in i and "rule 0 takes precedence" in i for i in issues)

    def test_inverted_range_reported(self):
        """max_score below min_score is flagged."""
        rules = [ScoringRule(min_score=5, max_score=1, risk_level=RiskLevel.LOW)]
        issues = check_scoring_rules(rules)
        assert any("below min_score" in i for i in issues)

    def test_bounded_top_and_raised_floor_reported(self):
        """Uncovered scores below the first and above the last band are flagged."""
        rules = [ScoringRule(min_score=2, max_score=4, risk_level=RiskLevel.MEDIUM)]
        issues = check_scoring_rules(rules)
        assert any("below 2" in i for i in issues)
        assert any("above 4" in i for i in issues)

    def test_bundled_catalog_rules_are_clean(self, catalog):
        """Every shipped questionnaire has a clean rule set."""
        for definition in catalog:
            assert check_scoring_rules(definition.scoring_rules) == [], definition.name
