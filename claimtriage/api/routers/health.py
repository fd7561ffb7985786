"""Health check endpoint."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from ..core.config import Settings
from ..db import Database
from ..deps import get_app_settings, get_database

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def healthcheck(
    cfg: Settings = Depends(get_app_settings),
    db: Database = Depends(get_database),
) -> dict[str, str | bool]:
    return {
        "status": "ok",
        "version": cfg.api_version,
        "provider": cfg.llm_provider,
        "model": cfg.llm_model,
        "prompt_version": cfg.prompt_version,
        "database": await db.ping(),
    }
