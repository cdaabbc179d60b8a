"""QuestionnaireService — administrator CRUD over questionnaire definitions.

Definitions arrive as JSON or as a CSV export (``screening_core.csv_import``).

Definitions are validated through :class:`QuestionnaireDefinition` before
every write, so anything stored can be fed straight to the scoring engine.
Scoring-rule diagnostics (gaps, overlaps, inverted ranges) are logged as
warnings on create and update; they never block the write because rules are
evaluated first-match and an imperfect rule set is still well defined.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Sequence

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from screening_db.repository import QuestionnaireRepository

from screening_core.constants import DEFAULT_ANSWER_OPTIONS
from screening_core.csv_import import questionnaire_from_csv
from screening_core.models.questionnaire import QuestionnaireDefinition
from screening_core.models.records import QuestionnaireInfo
from screening_core.scoring import check_scoring_rules

logger = logging.getLogger(__name__)


class QuestionnaireService:
    """Create, list, fetch, update and delete questionnaires."""

    def __init__(self) -> None:
        self._repo = QuestionnaireRepository()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(
        self,
        db: AsyncSession,
        definition: QuestionnaireDefinition,
        *,
        created_by: str | None = None,
    ) -> QuestionnaireInfo:
        """Store a new questionnaire.

        An empty ``answer_options`` list is replaced by the default
        ``["yes", "no", "sometimes"]``.
        """
        definition = self._with_default_options(definition)
        self._log_rule_issues(definition)
        row = await self._repo.create(
            db, created_by=created_by, **definition.model_dump(mode="json"),
        )
        logger.info("Questionnaire created: id=%s name=%s", row.id, row.name)
        return QuestionnaireInfo.model_validate(row)

    async def bulk_create(
        self,
        db: AsyncSession,
        definitions: Sequence[QuestionnaireDefinition],
        *,
        created_by: str | None = None,
    ) -> list[QuestionnaireInfo]:
        """Store several questionnaires in one transaction."""
        if not definitions:
            raise ValueError("Bulk create requires at least one questionnaire")
        return [
            await self.create(db, d, created_by=created_by) for d in definitions
        ]

    async def import_csv(
        self,
        db: AsyncSession,
        data: bytes | str,
        *,
        created_by: str | None = None,
        **options: Any,
    ) -> QuestionnaireInfo:
        """Store a questionnaire parsed from a CSV export.

        ``options`` are passed to :func:`questionnaire_from_csv`
        (name, full_name, question_column, option_columns, ...).
        """
        definition = questionnaire_from_csv(data, **options)
        info = await self.create(db, definition, created_by=created_by)
        logger.info(
            "Questionnaire imported from CSV: id=%s questions=%d options=%d",
            info.id, len(info.questions), len(info.answer_options),
        )
        return info

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def list_all(
        self, db: AsyncSession, *, include_inactive: bool = False,
    ) -> list[QuestionnaireInfo]:
        rows = await self._repo.list_all(db, active_only=not include_inactive)
        return [QuestionnaireInfo.model_validate(r) for r in rows]

    async def get(
        self,
        db: AsyncSession,
        questionnaire_id: uuid.UUID,
        *,
        include_inactive: bool = False,
    ) -> QuestionnaireInfo:
        """Fetch one questionnaire; inactive ones are hidden unless asked for."""
        row = await self._load(db, questionnaire_id)
        if not row.is_active and not include_inactive:
            raise ValueError(f"Questionnaire not found: id={questionnaire_id}")
        return QuestionnaireInfo.model_validate(row)

    async def count(self, db: AsyncSession) -> int:
        return await self._repo.count(db)

    # ------------------------------------------------------------------
    # Update / delete
    # ------------------------------------------------------------------

    async def update(
        self,
        db: AsyncSession,
        questionnaire_id: uuid.UUID,
        fields: dict[str, Any],
    ) -> QuestionnaireInfo:
        """Apply a partial update; only the provided fields change.

        The merged result is re-validated as a whole so a partial update
        cannot leave an unscorable definition behind.
        """
        row = await self._load(db, questionnaire_id)
        current = QuestionnaireDefinition.model_validate(row, from_attributes=True)
        unknown = set(fields) - set(QuestionnaireDefinition.model_fields)
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")

        try:
            merged = QuestionnaireDefinition.model_validate(
                {**current.model_dump(mode="json"), **fields}
            )
        except ValidationError as exc:
            raise ValueError(f"Invalid questionnaire update: {exc}") from exc

        if "scoring_rules" in fields:
            self._log_rule_issues(merged)

        changed = merged.model_dump(mode="json", include=set(fields))
        row = await self._repo.update(db, row, changed)
        logger.info("Questionnaire updated: id=%s fields=%s", row.id, sorted(changed))
        return QuestionnaireInfo.model_validate(row)

    async def delete(self, db: AsyncSession, questionnaire_id: uuid.UUID) -> None:
        row = await self._load(db, questionnaire_id)
        await self._repo.delete(db, row)
        logger.info("Questionnaire deleted: id=%s name=%s", questionnaire_id, row.name)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _load(self, db: AsyncSession, questionnaire_id: uuid.UUID) -> Any:
        row = await self._repo.get_by_id(db, questionnaire_id)
        if row is None:
            raise ValueError(f"Questionnaire not found: id={questionnaire_id}")
        return row

    @staticmethod
    def _with_default_options(definition: QuestionnaireDefinition) -> QuestionnaireDefinition:
        if definition.answer_options:
            return definition
        return definition.model_copy(update={"answer_options": list(DEFAULT_ANSWER_OPTIONS)})

    @staticmethod
    def _log_rule_issues(definition: QuestionnaireDefinition) -> None:
        for issue in check_scoring_rules(definition.scoring_rules):
            logger.warning("Questionnaire %r scoring rules: %s", definition.name, issue)
