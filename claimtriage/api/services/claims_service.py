"""Claim intake, cursor pagination and AI triage history."""
from __future__ import annotations

import json
import logging
from typing import Any, List, Optional

from ..core.errors import ClaimNotFound, InvalidCursor, RequestValidationFailed
from ..core.money import to_major_units, to_minor_units
from ..llm.prompts import ClaimPromptInput
from ..models.claims import Claim, ClaimAiVersion
from ..repositories.ai_version_repo import AiVersionRepository
from ..repositories.claim_repo import ClaimFilter, ClaimRepository
from ..schemas.claims import (
    ClaimAiHistoryOut,
    ClaimAiVersionOut,
    ClaimDetailOut,
    ClaimListOut,
    ClaimOut,
    ClaimSummaryOut,
    Invalid,
    TokenUsageOut,
    validate_ai_response,
    validate_create_claim,
    validate_list_query,
)
from .ai_service import ClaimAiService

logger = logging.getLogger(__name__)


def _safe_json_loads(value: Any) -> Any:
    if not isinstance(value, str):
        return None
    try:
        return json.loads(value)
    except ValueError:
        return None


def normalize_attachments(value: Any) -> List[str]:
    """Decode stored attachments; anything unreadable becomes an empty list."""

    parsed = _safe_json_loads(value)
    if not isinstance(parsed, list):
        return []
    return [item for item in parsed if isinstance(item, str)]


def _token_usage(value: Optional[str]) -> Optional[TokenUsageOut]:
    parsed = _safe_json_loads(value)
    if not isinstance(parsed, dict):
        return None
    counts = {
        key: parsed.get(key)
        for key in ("prompt", "completion", "total")
        if isinstance(parsed.get(key), int) and not isinstance(parsed.get(key), bool)
    }
    if not counts:
        return None
    return TokenUsageOut(**counts)


def to_claim_dto(claim: Claim) -> ClaimOut:
    return ClaimOut(
        id=claim.id,
        policy_number=claim.policy_number,
        claim_type=claim.claim_type,
        incident_date=claim.incident_date,
        location=claim.location,
        description=claim.description,
        estimated_amount=to_major_units(claim.estimated_amount),
        status=claim.status,
        attachments=normalize_attachments(claim.attachments),
        created_at=claim.created_at,
        updated_at=claim.updated_at,
    )


def to_claim_summary_dto(claim: Claim) -> ClaimSummaryOut:
    return ClaimSummaryOut(
        id=claim.id,
        policy_number=claim.policy_number,
        claim_type=claim.claim_type,
        incident_date=claim.incident_date,
        estimated_amount=to_major_units(claim.estimated_amount),
        status=claim.status,
        created_at=claim.created_at,
    )


def to_claim_ai_dto(version: ClaimAiVersion) -> ClaimAiVersionOut:
    validated = validate_ai_response(_safe_json_loads(version.response_json))
    if isinstance(validated, Invalid):
        logger.warning("Stored AI response unreadable aiVersionId=%s", version.id)
        response = None
    else:
        response = validated.value
    return ClaimAiVersionOut(
        id=version.id,
        claim_id=version.claim_id,
        created_at=version.created_at,
        model=version.model,
        prompt_version=version.prompt_version,
        response=response,
        latency_ms=version.latency_ms,
        token_usage=_token_usage(version.token_usage),
    )


class ClaimsService:
    """Business rules for claims; storage and the AI generator are injected."""

    def __init__(
        self,
        claims: ClaimRepository,
        ai_versions: AiVersionRepository,
        ai: ClaimAiService,
    ) -> None:
        self.claims = claims
        self.ai_versions = ai_versions
        self.ai = ai

    async def create_claim(self, payload: Any) -> ClaimOut:
        validated = validate_create_claim(payload)
        if isinstance(validated, Invalid):
            raise RequestValidationFailed(validated.issues)
        data = validated.value
        logger.info(
            "createClaim start type=%s amount=%s attachments=%d",
            data.claim_type,
            data.estimated_amount,
            len(data.attachments),
        )
        created = await self.claims.create(
            policy_number=data.policy_number,
            claim_type=data.claim_type,
            incident_date=data.incident_date,
            location=data.location,
            description=data.description,
            estimated_amount=to_minor_units(data.estimated_amount),
            attachments=data.attachments,
            status="NEW",
        )
        logger.info("createClaim created id=%s status=%s", created.id, created.status)
        return to_claim_dto(created)

    async def list_claims(self, query: Any) -> ClaimListOut:
        validated = validate_list_query(query)
        if isinstance(validated, Invalid):
            raise RequestValidationFailed(validated.issues)
        params = validated.value
        filters = ClaimFilter(claim_type=params.claim_type, status=params.status, q=params.q)

        after: Optional[Claim] = None
        if params.cursor:
            after = await self.claims.get(params.cursor)
            if after is None:
                logger.info("listClaims invalid cursor=%s", params.cursor)
                raise InvalidCursor(params.cursor)

        logger.info(
            "listClaims start limit=%d type=%s status=%s q=%s cursor=%s",
            params.limit,
            params.claim_type or "-",
            params.status or "-",
            "yes" if params.q else "no",
            params.cursor or "none",
        )
        items, has_next = await self.claims.list(filters, limit=params.limit, after=after)
        next_cursor = items[-1].id if has_next and items else None
        logger.info(
            "listClaims done count=%d hasNext=%s nextCursor=%s", len(items), has_next, next_cursor or "none"
        )
        return ClaimListOut(items=[to_claim_summary_dto(item) for item in items], next_cursor=next_cursor)

    async def get_claim(self, claim_id: str) -> ClaimDetailOut:
        logger.info("getClaim start id=%s", claim_id)
        claim = await self._require_claim(claim_id, "getClaim")
        latest = await self.ai_versions.latest_by_claim(claim.id)
        logger.info("getClaim done id=%s latestAi=%s", claim_id, latest.id if latest else "none")
        return ClaimDetailOut(
            claim=to_claim_dto(claim),
            latest_ai=to_claim_ai_dto(latest) if latest else None,
        )

    async def generate_ai_version(self, claim_id: str) -> ClaimAiVersionOut:
        logger.info("generateAiVersion start id=%s", claim_id)
        claim = await self._require_claim(claim_id, "generateAiVersion")

        prompt_input = ClaimPromptInput(
            id=claim.id,
            policy_number=claim.policy_number,
            claim_type=claim.claim_type,
            incident_date=claim.incident_date,
            location=claim.location,
            description=claim.description,
            estimated_amount=to_major_units(claim.estimated_amount),
            attachments=normalize_attachments(claim.attachments),
        )
        result = await self.ai.generate_claim_insights(prompt_input)
        logger.info(
            "generateAiVersion ai done claimId=%s latencyMs=%d triage=%s",
            claim.id,
            result.latency_ms,
            result.response.triage,
        )
        created = await self.ai_versions.create(
            claim_id=claim.id,
            model=result.model,
            prompt_version=result.prompt_version,
            response=result.response.model_dump(mode="json"),
            latency_ms=result.latency_ms,
            token_usage=result.token_usage,
        )
        logger.info("generateAiVersion saved aiVersionId=%s claimId=%s", created.id, claim.id)
        return to_claim_ai_dto(created)

    async def get_ai_history(self, claim_id: str) -> ClaimAiHistoryOut:
        logger.info("getAiHistory start claimId=%s", claim_id)
        await self._require_claim(claim_id, "getAiHistory")
        history = [to_claim_ai_dto(version) for version in await self.ai_versions.list_by_claim(claim_id)]
        logger.info("getAiHistory done claimId=%s versions=%d", claim_id, len(history))
        return ClaimAiHistoryOut(latest=history[0] if history else None, history=history)

    async def _require_claim(self, claim_id: str, operation: str) -> Claim:
        claim = await self.claims.get(claim_id)
        if claim is None:
            logger.warning("%s not found id=%s", operation, claim_id)
            raise ClaimNotFound(claim_id)
        return claim
