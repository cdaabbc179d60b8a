"""QuestionnaireCatalog — built-in questionnaire definitions shipped as YAML.

Each ``*.yaml`` file under ``data/questionnaires/`` holds one definition
whose keys mirror :class:`QuestionnaireDefinition`.  The catalog is used by
the ``screening-seed`` CLI to populate a fresh database.

Usage::

    catalog = QuestionnaireCatalog()   # defaults to the packaged data dir
    catalog.load()
    scc = catalog.get("SCC-10")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterator

import yaml

from screening_core.models.questionnaire import QuestionnaireDefinition
from screening_core.scoring import check_scoring_rules

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_DIR = Path(__file__).parent / "data" / "questionnaires"


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


class QuestionnaireCatalog:
    """Loads questionnaire definitions from a directory of YAML files.

    Definitions are keyed by ``name``; a later file with a duplicate name
    replaces the earlier one (files are read in sorted order).
    """

    def __init__(self, directory: str | Path | None = None) -> None:
        self._dir = Path(directory) if directory is not None else DEFAULT_CATALOG_DIR
        self._definitions: dict[str, QuestionnaireDefinition] = {}

    def load(self) -> None:
        """Parse every YAML file in the catalog directory.

        Raises ``FileNotFoundError`` if the directory is missing and
        pydantic's ``ValidationError`` for malformed definitions.
        """
        if not self._dir.is_dir():
            raise FileNotFoundError(f"Questionnaire directory not found: {self._dir}")

        self._definitions = {}
        for path in sorted(self._dir.glob("*.yaml")):
            definition = QuestionnaireDefinition.model_validate(load_yaml(path))
            for issue in check_scoring_rules(definition.scoring_rules):
                logger.warning("%s (%s): %s", definition.name, path.name, issue)
            self._definitions[definition.name] = definition

        logger.info(
            "QuestionnaireCatalog loaded %d definitions from %s",
            len(self._definitions), self._dir,
        )

    def get(self, name: str) -> QuestionnaireDefinition:
        """Return a definition by name; raises ``KeyError`` if unknown."""
        return self._definitions[name]

    def names(self) -> list[str]:
        return list(self._definitions)

    def __iter__(self) -> Iterator[QuestionnaireDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)
