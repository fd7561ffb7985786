"""AI triage version store backed by aiosqlite."""
from __future__ import annotations

import json
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import aiosqlite

from ..db import format_timestamp, parse_timestamp, utcnow
from ..models.claims import ClaimAiVersion

# rowid breaks created_at ties: the later insert sorts first
_ORDER_NEWEST_FIRST = "ORDER BY created_at DESC, rowid DESC"


class AiVersionRepository:
    """Append-only history of AI triage results per claim."""

    def __init__(self, conn: aiosqlite.Connection, *, clock: Callable[[], datetime] = utcnow):
        self.conn = conn
        self.clock = clock

    async def create(
        self,
        *,
        claim_id: str,
        model: str,
        prompt_version: str,
        response: Dict[str, Any],
        latency_ms: int,
        token_usage: Optional[Dict[str, Optional[int]]] = None,
    ) -> ClaimAiVersion:
        record = ClaimAiVersion(
            id=str(uuid.uuid4()),
            claim_id=claim_id,
            model=model,
            prompt_version=prompt_version,
            response_json=json.dumps(response, ensure_ascii=False),
            latency_ms=int(latency_ms),
            token_usage=json.dumps(token_usage) if token_usage else None,
            created_at=self.clock(),
        )
        await self.conn.execute(
            """
            INSERT INTO claim_ai_versions (
                id, claim_id, model, prompt_version, response_json, latency_ms, token_usage, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                record.claim_id,
                record.model,
                record.prompt_version,
                record.response_json,
                record.latency_ms,
                record.token_usage,
                format_timestamp(record.created_at),
            ),
        )
        await self.conn.commit()
        return record

    async def list_by_claim(self, claim_id: str) -> List[ClaimAiVersion]:
        cursor = await self.conn.execute(
            f"SELECT * FROM claim_ai_versions WHERE claim_id = ? {_ORDER_NEWEST_FIRST}",
            (claim_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_model(row) for row in rows]

    async def latest_by_claim(self, claim_id: str) -> Optional[ClaimAiVersion]:
        cursor = await self.conn.execute(
            f"SELECT * FROM claim_ai_versions WHERE claim_id = ? {_ORDER_NEWEST_FIRST} LIMIT 1",
            (claim_id,),
        )
        row = await cursor.fetchone()
        if not row:
            return None
        return self._row_to_model(row)

    def _row_to_model(self, row: aiosqlite.Row) -> ClaimAiVersion:
        return ClaimAiVersion(
            id=row["id"],
            claim_id=row["claim_id"],
            model=row["model"],
            prompt_version=row["prompt_version"],
            response_json=row["response_json"],
            latency_ms=row["latency_ms"],
            token_usage=row["token_usage"],
            created_at=parse_timestamp(row["created_at"]),
        )
