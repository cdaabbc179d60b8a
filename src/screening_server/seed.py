"""Catalog seeding CLI — ``screening-seed``.

Loads the built-in YAML questionnaires (or a directory of your own) into
the database.  Questionnaires whose name already exists are skipped, so
the command is safe to re-run after every deploy.

Examples::

    # Seed the bundled questionnaires
    uv run screening-seed

    # Seed a custom directory, stored inactive for review first
    uv run screening-seed --dir ./questionnaires --inactive
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

from screening_core.catalog import QuestionnaireCatalog

logger = logging.getLogger(__name__)

SEED_AUTHOR = "seed"


async def seed_catalog(
    db: Any,
    catalog: QuestionnaireCatalog,
    *,
    active: bool = True,
    repo: Any = None,
    service: Any = None,
) -> tuple[list[str], list[str]]:
    """Insert every catalog questionnaire not yet stored, by name.

    Returns ``(created, skipped)`` name lists.  Does not commit.
    """
    from screening_core.services import QuestionnaireService
    from screening_db.repository import QuestionnaireRepository

    repo = repo or QuestionnaireRepository()
    service = service or QuestionnaireService()

    created: list[str] = []
    skipped: list[str] = []
    for definition in catalog:
        if await repo.get_by_name(db, definition.name) is not None:
            logger.info("Skipping %s: already exists", definition.name)
            skipped.append(definition.name)
            continue
        definition = definition.model_copy(update={"is_active": active})
        await service.create(db, definition, created_by=SEED_AUTHOR)
        created.append(definition.name)
    return created, skipped


async def run_seed(*, directory: str | None = None, active: bool = True) -> tuple[list[str], list[str]]:
    """Load the catalog, seed it in one transaction, and dispose the engine."""
    # Lazy imports keep DB machinery out of module import time
    from screening_db.engine import dispose_engine, session_scope

    catalog = QuestionnaireCatalog(Path(directory) if directory else None)
    catalog.load()

    try:
        async with session_scope() as db:
            created, skipped = await seed_catalog(db, catalog, active=active)
        logger.info("Seed complete: created=%d skipped=%d", len(created), len(skipped))
        return created, skipped
    finally:
        await dispose_engine()


def cli() -> None:
    """Console-script entry point: ``screening-seed``."""
    parser = argparse.ArgumentParser(
        prog="screening-seed",
        description="Load questionnaire definitions from YAML into the database.",
    )
    parser.add_argument(
        "--dir",
        default=None,
        help="Directory of *.yaml questionnaires (default: the bundled catalog)",
    )
    parser.add_argument(
        "--inactive",
        action="store_true",
        default=False,
        help="Store new questionnaires as inactive",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    created, skipped = asyncio.run(run_seed(directory=args.dir, active=not args.inactive))

    print(f"Created: {', '.join(created) or '-'}")
    print(f"Skipped: {', '.join(skipped) or '-'}")
    sys.exit(0)
