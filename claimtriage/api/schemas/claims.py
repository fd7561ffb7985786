"""Pydantic schemas and validators for claim operations."""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Annotated, Any, Dict, Generic, List, Literal, Optional, TypeVar, Union, get_args
from urllib.parse import urlsplit

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from ..core.errors import format_issues
from ..core.money import MAX_MINOR_UNITS, to_minor_units
from ..core.sanitize import sanitize_string

ClaimType = Literal["auto", "home", "travel"]
ClaimStatus = Literal["NEW", "IN_REVIEW", "RESOLVED"]
TriageDecision = Literal["FAST_TRACK", "ADJUSTER_REVIEW", "FRAUD_REVIEW"]

CLAIM_TYPES = get_args(ClaimType)
CLAIM_STATUSES = get_args(ClaimStatus)
TRIAGE_DECISIONS = get_args(TriageDecision)

DEFAULT_PAGE_LIMIT = 20
MAX_PAGE_LIMIT = 100

_ISO_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def _required_text(value: str) -> str:
    cleaned = sanitize_string(value)
    if not cleaned:
        raise ValueError("Required")
    return cleaned


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = sanitize_string(value)
    return cleaned or None


def _cursor_token(value: Optional[str]) -> Optional[str]:
    if value is None or not sanitize_string(value):
        return None
    return value


def _iso_date(value: str) -> str:
    cleaned = sanitize_string(value)
    message = "Invalid date format (expected YYYY-MM-DD)"
    if not _ISO_DATE_RE.fullmatch(cleaned):
        raise ValueError(message)
    try:
        date.fromisoformat(cleaned)
    except ValueError:
        raise ValueError(message) from None
    return cleaned


def _http_url(value: str) -> str:
    cleaned = sanitize_string(value)
    try:
        parts = urlsplit(cleaned)
    except ValueError:
        raise ValueError("Invalid URL") from None
    if parts.scheme.lower() not in ("http", "https") or not parts.hostname:
        raise ValueError("Invalid URL")
    if any(ch.isspace() for ch in parts.netloc):
        raise ValueError("Invalid URL")
    return cleaned


RequiredText = Annotated[str, AfterValidator(_required_text)]
OptionalText = Annotated[Optional[str], AfterValidator(_optional_text)]
IsoDate = Annotated[str, AfterValidator(_iso_date)]
CursorToken = Annotated[Optional[str], AfterValidator(_cursor_token)]
HttpUrlText = Annotated[str, AfterValidator(_http_url)]


class CamelModel(BaseModel):
    """Base model exposing camelCase names on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class ClaimCreate(CamelModel):
    policy_number: RequiredText
    claim_type: ClaimType
    incident_date: IsoDate
    location: RequiredText
    description: RequiredText
    estimated_amount: float = Field(ge=0)
    attachments: List[HttpUrlText]

    @field_validator("estimated_amount", mode="before")
    @classmethod
    def _require_finite_number(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("Expected a number")
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError("Expected a finite number")
        return value

    @field_validator("estimated_amount")
    @classmethod
    def _fits_minor_units(cls, value: float) -> float:
        if to_minor_units(value) > MAX_MINOR_UNITS:
            raise ValueError("Amount is too large")
        return value


class ClaimListQuery(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    claim_type: Optional[ClaimType] = Field(default=None, alias="type")
    status: Optional[ClaimStatus] = None
    q: OptionalText = None
    limit: int = Field(default=DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT)
    cursor: CursorToken = None


# ---------------------------------------------------------------------------
# AI structured output
# ---------------------------------------------------------------------------


class ClaimAiResponse(BaseModel):
    """Structured triage payload produced by the language model."""

    model_config = ConfigDict(strict=True, extra="forbid")

    summary_bullets: List[str]
    triage: TriageDecision
    rationale_bullets: List[str]
    missing_info_questions: List[str]
    confidence: float = Field(ge=0.0, le=1.0)


CLAIM_AI_RESPONSE_SCHEMA: Dict[str, Any] = ClaimAiResponse.model_json_schema()


# ---------------------------------------------------------------------------
# Validation results
# ---------------------------------------------------------------------------

T = TypeVar("T")


@dataclass(frozen=True)
class Valid(Generic[T]):
    value: T


@dataclass(frozen=True)
class Invalid:
    issues: List[Dict[str, str]]


Validated = Union[Valid[T], Invalid]


def _validate(model: type, data: Any) -> Validated:
    try:
        return Valid(model.model_validate(data))
    except ValidationError as exc:
        return Invalid(format_issues(exc.errors()))


def validate_create_claim(data: Any) -> Validated[ClaimCreate]:
    return _validate(ClaimCreate, data)


def validate_list_query(data: Any) -> Validated[ClaimListQuery]:
    return _validate(ClaimListQuery, data)


def validate_ai_response(data: Any) -> Validated[ClaimAiResponse]:
    """Check a generated object against the triage shape, all or nothing."""

    return _validate(ClaimAiResponse, data)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ClaimOut(CamelModel):
    id: str
    policy_number: str
    claim_type: ClaimType
    incident_date: str
    location: str
    description: str
    estimated_amount: float
    status: ClaimStatus
    attachments: List[str]
    created_at: datetime
    updated_at: datetime


class ClaimSummaryOut(CamelModel):
    id: str
    policy_number: str
    claim_type: ClaimType
    incident_date: str
    estimated_amount: float
    status: ClaimStatus
    created_at: datetime


class ClaimListOut(CamelModel):
    items: List[ClaimSummaryOut]
    next_cursor: Optional[str] = None


class TokenUsageOut(BaseModel):
    prompt: Optional[int] = None
    completion: Optional[int] = None
    total: Optional[int] = None


class ClaimAiVersionOut(CamelModel):
    id: str
    claim_id: str
    created_at: datetime
    model: str
    prompt_version: str
    response: Optional[ClaimAiResponse] = None
    latency_ms: int
    token_usage: Optional[TokenUsageOut] = None


class ClaimDetailOut(CamelModel):
    claim: ClaimOut
    latest_ai: Optional[ClaimAiVersionOut] = None


class ClaimAiHistoryOut(CamelModel):
    latest: Optional[ClaimAiVersionOut] = None
    history: List[ClaimAiVersionOut]
