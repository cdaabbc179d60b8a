"""Build a questionnaire definition from a spreadsheet export.

The CSV has a header row.  One column (``Question`` by default) holds the
prompt text; the other columns hold answer-option labels, repeated on every
row.  Rows are skipped when:

  - the question cell is empty or mentions "section" (section headers)
  - a ``Serial No.`` cell is present but does not start with a digit

Answer options come from ``option_columns`` of the first question row, or
from every non-metadata column of that row when no columns are named.  An
import that yields no options falls back to ``CSV_FALLBACK_OPTIONS``.
Imported questionnaires carry no scoring rules.
"""

from __future__ import annotations

import csv
import io
import re
from typing import Sequence

from pydantic import ValidationError

from screening_core.constants import CSV_FALLBACK_OPTIONS
from screening_core.models.questionnaire import Question, QuestionnaireDefinition

SERIAL_COLUMNS = ("Serial No.", "Serial No")
SECTION_COLUMN = "Section"

_SECTION_HEADER = re.compile(r"section", re.IGNORECASE)
_SERIAL_NUMBER = re.compile(r"^\d+")


def _decode(data: bytes | str) -> str:
    if isinstance(data, str):
        return data
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ValueError(f"CSV file is not valid UTF-8: {exc}") from exc


def read_records(data: bytes | str) -> list[dict[str, str]]:
    """Parse CSV text into trimmed header-keyed rows.

    Cells beyond the header width are dropped; missing cells are absent.
    """
    reader = csv.DictReader(io.StringIO(_decode(data)))
    try:
        return [
            {key.strip(): value.strip() for key, value in row.items()
             if key is not None and isinstance(value, str)}
            for row in reader
        ]
    except csv.Error as exc:
        raise ValueError(f"Malformed CSV: {exc}") from exc


def is_question_row(record: dict[str, str], question_column: str) -> bool:
    question = record.get(question_column, "")
    if not question or _SECTION_HEADER.search(question):
        return False
    serial = next((record[c] for c in SERIAL_COLUMNS if record.get(c)), "")
    return not serial or bool(_SERIAL_NUMBER.match(serial))


def questionnaire_from_csv(
    data: bytes | str,
    *,
    name: str,
    full_name: str,
    description: str = "",
    duration: str = "",
    age_range: str = "",
    is_active: bool = True,
    question_column: str = "Question",
    option_columns: Sequence[str] | None = None,
) -> QuestionnaireDefinition:
    """Turn a CSV export into a :class:`QuestionnaireDefinition`.

    Raises:
        ValueError: empty or malformed CSV, or no question rows.
    """
    if not name.strip() or not full_name.strip():
        raise ValueError("CSV import requires a name and a full name")

    records = read_records(data)
    if not records:
        raise ValueError("CSV appears to be empty or invalid")

    rows = [r for r in records if is_question_row(r, question_column)]
    if not rows:
        raise ValueError(f"No question rows detected in CSV (column {question_column!r})")

    first = rows[0]
    if option_columns:
        options = [first.get(column, "") for column in option_columns]
    else:
        excluded = {question_column, SECTION_COLUMN, *SERIAL_COLUMNS}
        options = [value for key, value in first.items() if key not in excluded]
    options = [o for o in options if o] or list(CSV_FALLBACK_OPTIONS)

    try:
        return QuestionnaireDefinition(
            name=name.strip(),
            full_name=full_name.strip(),
            description=description,
            questions=[
                Question(text=r[question_column], order=i) for i, r in enumerate(rows)
            ],
            answer_options=options,
            duration=duration,
            age_range=age_range,
            is_active=is_active,
        )
    except ValidationError as exc:
        raise ValueError(f"Invalid questionnaire from CSV: {exc}") from exc
