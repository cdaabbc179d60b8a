"""Answer value models — raw client answers decoded into a tagged union.

Clients submit answers as an unstructured ``{question_key: value}`` map with
no enforced schema.  Values arrive as option labels ("Yes"), numerically
prefixed labels ("2 Often"), numeric strings ("3") or raw JSON numbers.
They are decoded once, at the boundary, into one of:

  - LabelAnswer: plain text label
  - NumericLabelAnswer: text with a leading integer token ("2 Often" -> 2)
  - NumberAnswer: a raw number or a string that parses as one

Values that cannot carry an answer (null, blank strings, lists, objects,
non-finite numbers) decode to ``None`` and contribute nothing to a score.

Every variant keeps the original ``text`` so option-table lookups can still
match on the exact string the client sent.
"""

from __future__ import annotations

import math
import re
from typing import Annotated, Any, Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# "2 Often", "10 Always": integer token followed by whitespace
_NUMERIC_PREFIX = re.compile(r"^\s*(\d+)\s")
# Plain decimal numbers only; rejects "nan", "inf" and "1_000"
_NUMBER = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


class LabelAnswer(BaseModel):
    """A free label such as "Yes" or "Sometimes"."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["label"] = "label"
    text: str


class NumericLabelAnswer(BaseModel):
    """A label carrying its own score prefix, e.g. "2 Often"."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["numeric_label"] = "numeric_label"
    value: int
    text: str


class NumberAnswer(BaseModel):
    """A raw number, or a string that is entirely numeric."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["number"] = "number"
    value: float
    text: str


AnswerValue = Annotated[
    Union[LabelAnswer, NumericLabelAnswer, NumberAnswer],
    Field(discriminator="kind"),
]


def leading_integer(text: str) -> int | None:
    """The integer token heading a label like "2 Often", else ``None``.

    Shared by answer decoding and answer-option tables so both read the
    same prefix grammar.
    """
    match = _NUMERIC_PREFIX.match(text)
    return int(match.group(1)) if match else None


def _number_text(value: int | float) -> str:
    """Render a number the way it is written in JSON ("2", not "2.0")."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def decode_answer(raw: Any) -> AnswerValue | None:
    """Decode one raw answer value; never raises."""
    if raw is None:
        return None

    # bool before int: True/False are ints in Python but labels on the wire
    if isinstance(raw, bool):
        return LabelAnswer(text="true" if raw else "false")

    if isinstance(raw, (int, float)):
        if not math.isfinite(raw):
            return None
        return NumberAnswer(value=float(raw), text=_number_text(raw))

    if isinstance(raw, str):
        stripped = raw.strip()
        if not stripped:
            return None
        if _NUMBER.match(stripped):
            value = float(stripped)
            if not math.isfinite(value):
                return None
            return NumberAnswer(value=value, text=raw)
        prefix = leading_integer(stripped)
        if prefix is not None:
            return NumericLabelAnswer(value=prefix, text=raw)
        return LabelAnswer(text=raw)

    # Lists, dicts and other shapes carry no scorable answer
    return None


class AnswerSet(BaseModel):
    """Decoded answers for one assessment attempt, keyed by question key.

    Keys need not cover every question; ``None`` entries record keys that
    were submitted without a usable value.
    """

    model_config = ConfigDict(frozen=True)

    values: Dict[str, Optional[AnswerValue]] = Field(default_factory=dict)

    @classmethod
    def decode(cls, raw: Mapping[str, Any] | None) -> AnswerSet:
        """Build an AnswerSet from the raw client mapping.

        Anything that is not a mapping decodes to an empty set so that the
        scoring path stays total.
        """
        if not isinstance(raw, Mapping):
            return cls()
        return cls(values={str(k): decode_answer(v) for k, v in raw.items()})

    def answered(self) -> list[AnswerValue]:
        """The non-empty answers, in submission order."""
        return [v for v in self.values.values() if v is not None]

    @property
    def answered_count(self) -> int:
        return len(self.answered())
