"""Server configuration — reads settings from environment variables.

All settings have sensible defaults for local development.  In production
they are overridden via env vars (or a ``.env`` file loaded by the process
manager).
"""

import os
from dataclasses import dataclass, field

# --- Pagination defaults ---
# Read at import time so FastAPI Query() defaults can reference them.
DEFAULT_PAGE_LIMIT = int(os.getenv("DEFAULT_PAGE_LIMIT", "20"))
MAX_PAGE_LIMIT = int(os.getenv("MAX_PAGE_LIMIT", "100"))

# --- Uploads ---
MAX_CSV_UPLOAD_BYTES = int(os.getenv("MAX_CSV_UPLOAD_BYTES", str(1024 * 1024)))

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in _TRUTHY


@dataclass(frozen=True)
class ServerSettings:
    """Immutable server configuration read from environment at startup."""

    # Network
    host: str = "0.0.0.0"
    port: int = 8080

    # CORS: comma-separated origins, or "*" for wide-open dev mode
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # Logging
    log_level: str = "INFO"

    # When set, every request must carry a matching X-Proxy-Secret header,
    # proving X-User-ID / X-User-Role were injected by the trusted gateway.
    trusted_proxy_secret: str | None = None

    # Every doctor may read every child (small single-practice deployments)
    single_doctor_mode: bool = False

    # How long an assessment submission waits for the analyzer
    analysis_wait_seconds: float = 5.0

    # LLM analysis (OpenAI-compatible). Disabled unless url and key are set.
    llm_api_url: str | None = None
    llm_api_key: str | None = None
    llm_model: str = "gpt-4o-mini"
    llm_timeout_seconds: float = 30.0

    @property
    def llm_enabled(self) -> bool:
        return bool(self.llm_api_url and self.llm_api_key)


def load_settings() -> ServerSettings:
    """Build settings from the process environment."""
    raw_origins = os.getenv("SERVER_CORS_ORIGINS", "*")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]

    return ServerSettings(
        host=os.getenv("SERVER_HOST", "0.0.0.0"),
        port=int(os.getenv("SERVER_PORT", "8080")),
        cors_origins=origins,
        log_level=os.getenv("SERVER_LOG_LEVEL", "INFO").upper(),
        trusted_proxy_secret=os.getenv("TRUSTED_PROXY_SECRET") or None,
        single_doctor_mode=_env_flag("SINGLE_DOCTOR_MODE"),
        analysis_wait_seconds=float(os.getenv("ANALYSIS_WAIT_SECONDS", "5")),
        llm_api_url=os.getenv("LLM_API_URL") or None,
        llm_api_key=os.getenv("LLM_API_KEY") or None,
        llm_model=os.getenv("LLM_MODEL", "gpt-4o-mini"),
        llm_timeout_seconds=float(os.getenv("LLM_TIMEOUT_SECONDS", "30")),
    )
