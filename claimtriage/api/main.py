"""FastAPI application bootstrap."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .core.config import Settings, settings
from .core.errors import register_error_handlers
from .core.logging import register_middleware, setup_logging
from .core.security import enable_cors
from .db import Database
from .repositories.ai_version_repo import AiVersionRepository
from .repositories.claim_repo import ClaimRepository
from .routers import claims, health
from .services.ai_service import ClaimAiService, StructuredGenerator
from .services.claims_service import ClaimsService

logger = logging.getLogger("claimtriage")


def create_app(cfg: Optional[Settings] = None, *, generator: Optional[StructuredGenerator] = None) -> FastAPI:
    """Build the API; ``generator`` replaces the HTTP language model client."""

    cfg = cfg or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = Database(cfg.database_path, timeout=cfg.db_timeout)
        await db.init_schema()
        conn = db.connection
        app.state.db = db
        app.state.claims_service = ClaimsService(
            ClaimRepository(conn),
            AiVersionRepository(conn),
            ClaimAiService.from_settings(cfg, generator),
        )
        logger.info("Claim triage API started provider=%s model=%s", cfg.llm_provider, cfg.llm_model)
        try:
            yield
        finally:
            await db.close()

    app = FastAPI(title="Claim Triage API", version=cfg.api_version, lifespan=lifespan)
    app.state.settings = cfg

    register_middleware(app)
    enable_cors(app, cfg.allowed_origins)
    register_error_handlers(app)

    app.include_router(health.router)
    app.include_router(claims.router)

    @app.get("/")
    def root() -> dict[str, str]:
        return {"message": "Claim Triage API", "health": "/health"}

    return app


setup_logging(settings.log_level)
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
