"""Common FastAPI dependencies."""
from __future__ import annotations

from fastapi import Request

from .core.config import Settings
from .db import Database
from .services.claims_service import ClaimsService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.db


def get_claims_service(request: Request) -> ClaimsService:
    return request.app.state.claims_service
