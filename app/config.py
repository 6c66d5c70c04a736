"""
Nano Banana Proxy - Configuration
Immutable settings read once from the environment at startup
"""

import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


FAL_QUEUE_URL = "https://queue.fal.run/fal-ai/nano-banana"
FAL_EDIT_URL = "https://queue.fal.run/fal-ai/nano-banana/edit"
FAL_STORAGE_URL = "https://fal.run/storage/upload"


class Settings(BaseModel):
    """Process-wide configuration. Frozen once constructed."""

    model_config = ConfigDict(frozen=True)

    fal_api_key: Optional[str] = Field(None, repr=False)
    host: str = "0.0.0.0"
    port: int = 3000
    reload: bool = False
    log_level: str = "INFO"
    cors_origins: tuple[str, ...] = ("*",)
    max_body_bytes: int = 50 * 1024 * 1024
    max_concurrent_upstream: int = Field(64, ge=0)
    upstream_timeout: Optional[float] = None

    generation_url: str = FAL_QUEUE_URL
    edit_url: str = FAL_EDIT_URL
    storage_url: str = FAL_STORAGE_URL

    @property
    def has_api_key(self) -> bool:
        return bool(self.fal_api_key)


def _split_origins(raw: str) -> tuple[str, ...]:
    origins = tuple(o.strip() for o in raw.split(",") if o.strip())
    return origins or ("*",)


def load_settings() -> Settings:
    """
    Build settings from environment variables.

    An empty FAL_API_KEY counts as unset. Malformed numbers raise ValueError
    so the process fails at startup rather than on the first request.

    Returns:
        Frozen Settings instance
    """
    timeout = os.getenv("UPSTREAM_TIMEOUT")

    return Settings(
        fal_api_key=os.getenv("FAL_API_KEY") or None,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3000")),
        reload=os.getenv("RELOAD", "false").lower() == "true",
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        cors_origins=_split_origins(os.getenv("CORS_ORIGINS", "*")),
        max_body_bytes=int(os.getenv("MAX_BODY_BYTES", str(50 * 1024 * 1024))),
        max_concurrent_upstream=int(os.getenv("MAX_CONCURRENT_UPSTREAM", "64")),
        upstream_timeout=float(timeout) if timeout else None,
    )
