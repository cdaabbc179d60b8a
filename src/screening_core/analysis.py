"""Assessment analyzers — rule-based templates and an LLM-backed drafter.

  - RuleBasedAnalyzer: deterministic text keyed on the risk level; always
    available and never fails
  - LLMAnalyzer: renders the analysis prompt and calls an OpenAI-compatible
    ``/chat/completions`` endpoint over httpx, expecting a JSON object back
  - FallbackAnalyzer: tries a primary analyzer and falls back to a second
    one when the first raises :class:`AnalysisError`

``build_analyzer()`` wires these together from configuration.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from screening_core.constants import ATTENTION_ANSWER_THRESHOLD
from screening_core.interfaces import AnalysisError, AssessmentAnalyzer
from screening_core.models.analysis import AnalysisContext, AssessmentAnalysis
from screening_core.models.answer import NumberAnswer, decode_answer
from screening_core.prompt import PromptManager

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a clinical assistant specializing in autism spectrum disorder "
    "assessment analysis. Provide evidence-based, compassionate guidance."
)


# ---------------------------------------------------------------------------
# Rule-based
# ---------------------------------------------------------------------------

# Keyed by RiskLevel.rank: 0 = Low, 1 = Medium/Moderate, 2 = High
_SUMMARIES: dict[int, str] = {
    2: (
        "This {type} assessment indicates a HIGH risk level with a score of "
        "{score}. Multiple indicators suggest the child may be experiencing "
        "developmental differences consistent with autism spectrum "
        "characteristics, and the responses warrant prompt professional "
        "evaluation. This is a screening tool, not a diagnostic instrument; a "
        "comprehensive clinical assessment is strongly recommended."
    ),
    1: (
        "This {type} assessment indicates a {level} risk level with a score of "
        "{score}. Some developmental indicators are present that call for "
        "monitoring and follow-up. While not all criteria for high concern are "
        "met, the observed patterns warrant a professional consultation, and a "
        "follow-up assessment in 3-6 months would be prudent."
    ),
    0: (
        "This {type} assessment indicates a LOW risk level with a score of "
        "{score}. The responses show typical developmental patterns with no "
        "significant indicators of autism spectrum characteristics at this "
        "time. Development is dynamic, so continue to observe progress and "
        "consult a pediatrician if new concerns arise."
    ),
}

_FINDINGS: dict[int, list[str]] = {
    2: [
        "Multiple developmental indicators present across domains",
        "Significant concerns in social communication patterns",
        "Notable repetitive or restrictive behaviors observed",
        "Professional evaluation urgently recommended",
    ],
    1: [
        "Some developmental indicators requiring attention",
        "Mixed patterns in social-communication behaviors",
        "Follow-up assessment recommended",
        "Monitoring of developmental progress needed",
    ],
    0: [
        "Developmental patterns within typical range",
        "No significant autism spectrum indicators at this time",
        "Routine developmental monitoring recommended",
        "Continue with regular pediatric check-ups",
    ],
}

_RECOMMENDATIONS: dict[int, str] = {
    2: (
        "Immediate next steps: 1) Schedule an appointment with a developmental "
        "pediatrician or child psychologist within the next 2-4 weeks. "
        "2) Document specific behaviors with dates and contexts. 3) Contact "
        "early intervention services for evaluation. 4) Gather developmental "
        "history and medical records. 5) Consider joining a parent support group."
    ),
    1: (
        "Recommended actions: 1) Discuss these findings with your pediatrician "
        "within 4-6 weeks. 2) Keep a log of social interactions, play and "
        "communication attempts. 3) Consider a formal developmental screening "
        "with a specialist. 4) Add structured social play and track progress. "
        "5) Re-assess in 3-6 months, or sooner if concerns increase."
    ),
    0: (
        "General recommendations: 1) Continue routine well-child visits and "
        "developmental screenings. 2) Engage in age-appropriate social and "
        "language-rich activities. 3) Contact your pediatrician if you notice "
        "regression or new concerns. 4) Re-screen at key ages (18, 24, 36 "
        "months). 5) Raise ongoing concerns even when screening scores are low."
    ),
}


class RuleBasedAnalyzer(AssessmentAnalyzer):
    """Template analysis selected by risk level.

    Adds one extra finding counting numeric answers at or above
    ``ATTENTION_ANSWER_THRESHOLD``.
    """

    GENERATED_BY = "rule_based"

    async def analyze(self, context: AnalysisContext) -> AssessmentAnalysis:
        return self.build(context)

    def build(self, context: AnalysisContext) -> AssessmentAnalysis:
        """Synchronous core of :meth:`analyze`."""
        rank = context.risk.rank
        score = context.score if context.score is not None else "N/A"

        summary = _SUMMARIES[rank].format(
            type=context.questionnaire_type,
            score=score,
            level=context.risk.value.upper(),
        )
        findings = list(_FINDINGS[rank])

        flagged = self._count_flagged(context.answers)
        if flagged:
            findings.append(f"{flagged} responses indicate areas requiring attention")

        return AssessmentAnalysis(
            summary=summary,
            key_findings=findings,
            recommendations=_RECOMMENDATIONS[rank],
            generated_by=self.GENERATED_BY,
        )

    @staticmethod
    def _count_flagged(answers: dict[str, Any]) -> int:
        count = 0
        for raw in answers.values():
            decoded = decode_answer(raw)
            if isinstance(decoded, NumberAnswer) and decoded.value >= ATTENTION_ANSWER_THRESHOLD:
                count += 1
        return count


# ---------------------------------------------------------------------------
# LLM
# ---------------------------------------------------------------------------

def _strip_code_fence(content: str) -> str:
    """Remove a surrounding ```json ... ``` fence some models add."""
    text = content.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return "\n".join(str(v) for v in value)
    return str(value)


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [str(v) for v in value]
    return [str(value)]


class LLMAnalyzer(AssessmentAnalyzer):
    """Drafts the analysis with a chat-completions LLM endpoint.

    Args:
        api_url: base URL of an OpenAI-compatible API (``.../v1``)
        api_key: bearer token sent in the ``Authorization`` header
        model: model name passed through to the endpoint
        timeout: per-request timeout in seconds
        prompts: optional PromptManager override
        client: optional shared ``httpx.AsyncClient`` (tests inject one
            backed by ``httpx.MockTransport``)
    """

    def __init__(
        self,
        *,
        api_url: str,
        api_key: str,
        model: str,
        timeout: float = 30.0,
        prompts: PromptManager | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = f"{api_url.rstrip('/')}/chat/completions"
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._prompts = prompts or PromptManager()
        self._client = client

    @property
    def generated_by(self) -> str:
        return f"llm:{self._model}"

    async def analyze(self, context: AnalysisContext) -> AssessmentAnalysis:
        payload = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": self._prompts.render_analysis_prompt(context)},
            ],
            "temperature": 0.3,
            "max_tokens": 1500,
            "response_format": {"type": "json_object"},
        }

        try:
            body = await self._post(payload)
            content = body["choices"][0]["message"]["content"]
            # Refusals and tool calls come back with null content
            if not isinstance(content, str):
                raise AnalysisError("LLM response has no text content")
            parsed = json.loads(_strip_code_fence(content))
        except httpx.HTTPError as exc:
            raise AnalysisError(f"LLM request failed: {exc}") from exc
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise AnalysisError(f"Unexpected LLM response: {exc}") from exc

        if not isinstance(parsed, dict) or not parsed.get("summary"):
            raise AnalysisError("LLM response is missing a summary")

        return AssessmentAnalysis(
            summary=_as_text(parsed.get("summary")),
            key_findings=_as_list(parsed.get("keyFindings")),
            recommendations=_as_text(parsed.get("recommendations")),
            generated_by=self.generated_by,
        )

    async def _post(self, payload: dict[str, Any]) -> Any:
        headers = {"Authorization": f"Bearer {self._api_key}"}
        if self._client is not None:
            response = await self._client.post(
                self._url, json=payload, headers=headers, timeout=self._timeout,
            )
            response.raise_for_status()
            return response.json()

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(self._url, json=payload, headers=headers)
            response.raise_for_status()
            return response.json()


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------

class FallbackAnalyzer(AssessmentAnalyzer):
    """Use ``primary`` and fall back to ``fallback`` when it fails."""

    def __init__(self, primary: AssessmentAnalyzer, fallback: AssessmentAnalyzer) -> None:
        self.primary = primary
        self.fallback = fallback

    async def analyze(self, context: AnalysisContext) -> AssessmentAnalysis:
        try:
            return await self.primary.analyze(context)
        except AnalysisError as exc:
            logger.warning("Primary analyzer failed, using fallback: %s", exc)
            return await self.fallback.analyze(context)


def build_analyzer(
    *,
    api_url: str | None = None,
    api_key: str | None = None,
    model: str = "gpt-4o-mini",
    timeout: float = 30.0,
) -> AssessmentAnalyzer:
    """Return an LLM analyzer with rule-based fallback, or rule-based only.

    The LLM path is enabled only when both ``api_url`` and ``api_key`` are
    set.
    """
    rule_based = RuleBasedAnalyzer()
    if not (api_url and api_key):
        logger.info("No LLM endpoint configured; using rule-based analysis")
        return rule_based

    logger.info("LLM analysis enabled: model=%s url=%s", model, api_url)
    llm = LLMAnalyzer(api_url=api_url, api_key=api_key, model=model, timeout=timeout)
    return FallbackAnalyzer(llm, rule_based)

