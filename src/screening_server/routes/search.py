"""Child name search, scoped to the children the caller may read."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from screening_core.constants import SEARCH_RESULT_LIMIT
from screening_core.models.records import ChildSearchResult
from screening_core.services import Caller, ChildService

from screening_server.config import MAX_PAGE_LIMIT
from screening_server.dependencies import get_caller, get_child_service, get_db

router = APIRouter(prefix="/search", tags=["search"])


@router.get("/children")
async def search_children(
    query: str = Query("", max_length=100),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    service: ChildService = Depends(get_child_service),
    limit: int = Query(SEARCH_RESULT_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
) -> list[ChildSearchResult]:
    """Case-insensitive substring match on child names, newest first."""
    return await service.search(db, caller, query, limit=limit)
