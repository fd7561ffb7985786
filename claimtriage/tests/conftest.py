from __future__ import annotations

import copy
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from claimtriage.api.core.config import Settings
from claimtriage.api.db import Database
from claimtriage.api.llm.client import Generation
from claimtriage.api.main import create_app
from claimtriage.api.repositories.ai_version_repo import AiVersionRepository
from claimtriage.api.repositories.claim_repo import ClaimRepository
from claimtriage.api.services.ai_service import ClaimAiService
from claimtriage.api.services.claims_service import ClaimsService

VALID_AI_OUTPUT: Dict[str, Any] = {
    "summary_bullets": ["Rear-end collision at a stop light", "Single photo supplied"],
    "triage": "FAST_TRACK",
    "rationale_bullets": ["Low amount", "Clear liability"],
    "missing_info_questions": ["Was a police report filed?"],
    "confidence": 0.82,
}


class FakeGenerator:
    """In-process stand-in for the language model.

    Each call consumes the next queued outcome: a dict is returned as the
    generated object, a ``Generation`` is returned as is and an exception is
    raised. With the queue empty a valid triage object is returned.
    """

    def __init__(self, *outcomes: Any) -> None:
        self.outcomes: List[Any] = list(outcomes)
        self.calls: List[Dict[str, Any]] = []

    def queue(self, *outcomes: Any) -> None:
        self.outcomes.extend(outcomes)

    async def generate(self, prompt: str, *, schema: Dict[str, Any], budget: int) -> Generation:
        self.calls.append({"prompt": prompt, "schema": schema, "budget": budget})
        outcome = self.outcomes.pop(0) if self.outcomes else copy.deepcopy(VALID_AI_OUTPUT)
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, Generation):
            return outcome
        return Generation(output=outcome)


class TickingClock:
    """Clock advancing one second per reading, or frozen with ``step=0``."""

    def __init__(self, start: Optional[datetime] = None, step: timedelta = timedelta(seconds=1)) -> None:
        self.current = start or datetime(2026, 1, 20, 12, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        return value


@pytest.fixture()
def ai_output() -> Dict[str, Any]:
    return copy.deepcopy(VALID_AI_OUTPUT)


@pytest.fixture()
def fake_generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture()
def make_generator() -> Callable[..., FakeGenerator]:
    return FakeGenerator


@pytest.fixture()
def make_clock() -> Callable[..., TickingClock]:
    return TickingClock


@pytest.fixture()
def claim_payload() -> Dict[str, Any]:
    return {
        "policyNumber": "PN-12345",
        "claimType": "auto",
        "incidentDate": "2026-01-20",
        "location": "Austin, TX",
        "description": "Rear-ended at a stop light",
        "estimatedAmount": 1250.50,
        "attachments": ["https://example.com/photo1.jpg"],
    }


@pytest.fixture()
def test_settings(tmp_path) -> Settings:
    return Settings(
        DB_URL=f"sqlite:///{tmp_path / 'api.db'}",
        LLM_MODEL="test-model",
        PROMPT_VERSION="v1",
        LLM_REASONING_BUDGET=512,
    )


@pytest.fixture()
def client(test_settings: Settings, fake_generator: FakeGenerator):
    app = create_app(test_settings, generator=fake_generator)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def open_service(tmp_path):
    """Factory for a ``ClaimsService`` on a fresh database, used inside ``asyncio.run``."""

    @asynccontextmanager
    async def _open(generator: Optional[FakeGenerator] = None, clock: Optional[Callable[[], datetime]] = None):
        db = Database(tmp_path / "service.db")
        await db.init_schema()
        repo_kwargs = {"clock": clock} if clock else {}
        service = ClaimsService(
            ClaimRepository(db.connection, **repo_kwargs),
            AiVersionRepository(db.connection, **repo_kwargs),
            ClaimAiService(
                generator or FakeGenerator(),
                model="test-model",
                prompt_version="v1",
                reasoning_budget=512,
            ),
        )
        try:
            yield service
        finally:
            await db.close()

    return _open
