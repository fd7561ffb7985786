"""API endpoints for claims and their AI triage history."""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from ..deps import get_claims_service
from ..schemas.claims import (
    ClaimAiHistoryOut,
    ClaimAiVersionOut,
    ClaimDetailOut,
    ClaimListOut,
    ClaimOut,
)
from ..services.claims_service import ClaimsService

router = APIRouter(prefix="/claims", tags=["claims"])


@router.post("", response_model=ClaimOut, status_code=status.HTTP_201_CREATED)
async def create_claim(
    payload: Any = Body(...),
    service: ClaimsService = Depends(get_claims_service),
) -> ClaimOut:
    return await service.create_claim(payload)


@router.get("", response_model=ClaimListOut)
async def list_claims(
    claim_type: Optional[str] = Query(default=None, alias="type"),
    claim_status: Optional[str] = Query(default=None, alias="status"),
    q: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
    cursor: Optional[str] = Query(default=None),
    service: ClaimsService = Depends(get_claims_service),
) -> ClaimListOut:
    query: Dict[str, Any] = {"type": claim_type, "status": claim_status, "q": q, "cursor": cursor}
    if limit is not None:
        query["limit"] = limit
    return await service.list_claims(query)


@router.get("/{claim_id}", response_model=ClaimDetailOut)
async def get_claim(claim_id: str, service: ClaimsService = Depends(get_claims_service)) -> ClaimDetailOut:
    return await service.get_claim(claim_id)


@router.post("/{claim_id}/ai:generate", response_model=ClaimAiVersionOut, status_code=status.HTTP_201_CREATED)
async def generate_ai(claim_id: str, service: ClaimsService = Depends(get_claims_service)) -> ClaimAiVersionOut:
    return await service.generate_ai_version(claim_id)


@router.get("/{claim_id}/ai", response_model=ClaimAiHistoryOut)
async def get_ai_history(claim_id: str, service: ClaimsService = Depends(get_claims_service)) -> ClaimAiHistoryOut:
    return await service.get_ai_history(claim_id)
