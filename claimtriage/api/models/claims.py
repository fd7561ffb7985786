"""Database row representations using dataclasses."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Claim:
    id: str
    policy_number: str
    claim_type: str
    incident_date: str
    location: str
    description: str
    # integer cents
    estimated_amount: int
    status: str
    # JSON encoded list of URLs
    attachments: str
    created_at: datetime
    updated_at: datetime


@dataclass
class ClaimAiVersion:
    id: str
    claim_id: str
    model: str
    prompt_version: str
    response_json: str
    latency_ms: int
    token_usage: Optional[str]
    created_at: datetime
