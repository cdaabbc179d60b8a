"""ScoringEngine — turns an AnswerSet into a score and a risk level.

The engine is a pure function of (answers, questionnaire definition).  It
holds no state, performs no I/O and never raises, so it can be shared by
every request handler without locking.

Encoding detection is a priority cascade evaluated once per AnswerSet:

  1. **binary** — every non-empty answer is "yes" or "no" (any case,
     surrounding whitespace ignored): the score is the number of "yes"
     answers.
  2. **option_table** — the questionnaire declares answer options: each
     option decodes to its leading integer ("2 Often" -> 2) or, failing
     that, its zero-based position.  Answers are looked up by exact text,
     then case-insensitively; unmatched answers add 0.
  3. **numeric** — everything else: numeric answers are summed and
     non-numeric ones add 0.

Risk classification walks the questionnaire's scoring rules in order and
the first rule whose inclusive range holds the score wins.  When nothing
matches (or there are no rules) the legacy fallback applies:
3..6 -> Medium, above 6 -> High, otherwise Low.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Mapping, Sequence, Union

from screening_core.constants import (
    AFFIRMATIVE,
    FALLBACK_MEDIUM_MAX,
    FALLBACK_MEDIUM_MIN,
    NEGATIVE,
)
from screening_core.models.answer import (
    AnswerSet,
    LabelAnswer,
    NumberAnswer,
    leading_integer,
)
from screening_core.models.questionnaire import (
    QuestionnaireDefinition,
    RiskLevel,
    ScoringRule,
)
from screening_core.models.scoring import ScoreResult, ScoringMethod

logger = logging.getLogger(__name__)

Number = Union[int, float]


def build_option_table(options: Sequence[str]) -> tuple[dict[str, int], dict[str, int]]:
    """Decode an answer-option list into (exact, casefolded) lookup tables.

    Each option maps to its leading integer token when it has one, else to
    its zero-based index.  When two options collide, the earlier one wins.
    """
    exact: dict[str, int] = {}
    folded: dict[str, int] = {}
    for index, option in enumerate(options):
        value = leading_integer(option)
        if value is None:
            value = index
        exact.setdefault(option, value)
        folded.setdefault(option.casefold(), value)
    return exact, folded


def _yes_no(answer: Any) -> str:
    return answer.text.strip().casefold()


def fallback_risk(score: Number) -> RiskLevel:
    """Generic bucketing for questionnaires without a matching rule."""
    if FALLBACK_MEDIUM_MIN <= score <= FALLBACK_MEDIUM_MAX:
        return RiskLevel.MEDIUM
    if score > FALLBACK_MEDIUM_MAX:
        return RiskLevel.HIGH
    return RiskLevel.LOW


def _normalise(total: float) -> Number:
    """Return whole-number totals as ``int`` so they serialise as ``2``."""
    if isinstance(total, float) and total.is_integer():
        return int(total)
    return total


class ScoringEngine:
    """Stateless scorer for questionnaire submissions."""

    def score(
        self,
        answers: AnswerSet | Mapping[str, Any] | None,
        definition: QuestionnaireDefinition | None = None,
    ) -> ScoreResult:
        """Score an AnswerSet against its questionnaire.

        ``answers`` may be a decoded :class:`AnswerSet` or the raw client
        mapping, which is decoded here.  ``definition`` may be ``None`` for
        legacy submissions; the binary and numeric paths still apply and
        the fallback buckets classify the result.
        """
        if not isinstance(answers, AnswerSet):
            answers = AnswerSet.decode(answers)

        total, method = self.compute(answers, definition)
        rules = definition.scoring_rules if definition is not None else []
        risk = self.classify(total, rules)

        logger.debug(
            "Scored %d answers via %s: score=%s risk=%s",
            answers.answered_count, method.value, total, risk.value,
        )
        return ScoreResult(score=total, risk=risk, method=method)

    # ------------------------------------------------------------------
    # Score computation
    # ------------------------------------------------------------------

    def compute(
        self,
        answers: AnswerSet,
        definition: QuestionnaireDefinition | None,
    ) -> tuple[Number, ScoringMethod]:
        """Detect the answer encoding and sum accordingly."""
        answered = answers.answered()

        if self._is_binary(answered):
            yes = sum(1 for a in answered if _yes_no(a) == AFFIRMATIVE)
            return yes, ScoringMethod.BINARY

        if definition is not None and definition.answer_options:
            exact, folded = build_option_table(definition.answer_options)
            total = 0
            for answer in answered:
                value = exact.get(answer.text)
                if value is None:
                    value = folded.get(answer.text.casefold(), 0)
                total += value
            return total, ScoringMethod.OPTION_TABLE

        total = math.fsum(
            a.value for a in answered if isinstance(a, NumberAnswer)
        )
        return _normalise(total), ScoringMethod.NUMERIC

    @staticmethod
    def _is_binary(answered: Iterable[Any]) -> bool:
        # Vacuously true for an empty set, which scores 0 either way
        return all(
            isinstance(a, LabelAnswer)
            and _yes_no(a) in (AFFIRMATIVE, NEGATIVE)
            for a in answered
        )

    # ------------------------------------------------------------------
    # Risk classification
    # ------------------------------------------------------------------

    def classify(self, score: Number, rules: Sequence[ScoringRule]) -> RiskLevel:
        """Map a score to a risk level; first matching rule wins."""
        for rule in rules:
            if rule.matches(score):
                return rule.risk_level
        return fallback_risk(score)


def check_scoring_rules(rules: Sequence[ScoringRule]) -> list[str]:
    """Describe gaps, overlaps and malformed ranges in a rule list.

    Scores are assumed to be whole numbers, so ``[0-2]`` followed by
    ``[3-6]`` is contiguous.  Returns an empty list for a clean partition.
    Overlaps are reported rather than resolved: first-match order decides
    them at scoring time.
    """
    issues: list[str] = []
    if not rules:
        return issues

    def upper(rule: ScoringRule) -> float:
        return math.inf if rule.max_score is None else rule.max_score

    for i, rule in enumerate(rules):
        if rule.max_score is not None and rule.max_score < rule.min_score:
            issues.append(
                f"rule {i} ({rule.risk_level.value}) has max_score "
                f"{rule.max_score:g} below min_score {rule.min_score:g}"
            )

    for i, first in enumerate(rules):
        for j in range(i + 1, len(rules)):
            second = rules[j]
            if max(first.min_score, second.min_score) <= min(upper(first), upper(second)):
                issues.append(
                    f"rules {i} ({first.risk_level.value}) and {j} "
                    f"({second.risk_level.value}) overlap; rule {i} takes precedence"
                )

    ordered = sorted(rules, key=lambda r: r.min_score)
    if ordered[0].min_score > 0:
        issues.append(
            f"scores below {ordered[0].min_score:g} match no rule and use the fallback"
        )
    reach = upper(ordered[0])
    for rule in ordered[1:]:
        if rule.min_score > reach + 1:
            issues.append(
                f"scores between {reach:g} and {rule.min_score:g} match no rule "
                f"and use the fallback"
            )
        reach = max(reach, upper(rule))
    if not math.isinf(reach):
        issues.append(f"scores above {reach:g} match no rule and use the fallback")

    return issues
