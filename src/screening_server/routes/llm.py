"""LLM status endpoint — which analyzer the server is using."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from screening_server.config import ServerSettings
from screening_server.dependencies import get_settings

router = APIRouter(prefix="/llm", tags=["llm"])


class LLMStatus(BaseModel):
    enabled: bool
    mode: str
    model: str | None = None
    base_url: str | None = None


@router.get("/status")
async def llm_status(settings: ServerSettings = Depends(get_settings)) -> LLMStatus:
    """Report whether LLM analysis is configured.

    ``mode`` is ``llm`` (with rule-based fallback) or ``rule_based``.  The
    API key is never echoed.
    """
    if not settings.llm_enabled:
        return LLMStatus(enabled=False, mode="rule_based")
    return LLMStatus(
        enabled=True,
        mode="llm",
        model=settings.llm_model,
        base_url=settings.llm_api_url,
    )
