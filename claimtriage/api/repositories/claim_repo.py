"""Claim store backed by aiosqlite."""
from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Tuple

import aiosqlite

from ..db import format_timestamp, parse_timestamp, utcnow
from ..models.claims import Claim


@dataclass(frozen=True)
class ClaimFilter:
    """Conjunctive listing filter; ``q`` is a case-sensitive substring."""

    claim_type: Optional[str] = None
    status: Optional[str] = None
    q: Optional[str] = None


class ClaimRepository:
    """Persistence layer for claim records."""

    def __init__(self, conn: aiosqlite.Connection, *, clock: Callable[[], datetime] = utcnow):
        self.conn = conn
        self.clock = clock

    async def create(
        self,
        *,
        policy_number: str,
        claim_type: str,
        incident_date: str,
        location: str,
        description: str,
        estimated_amount: int,
        attachments: Sequence[str],
        status: str = "NEW",
    ) -> Claim:
        now = self.clock()
        record = Claim(
            id=str(uuid.uuid4()),
            policy_number=policy_number,
            claim_type=claim_type,
            incident_date=incident_date,
            location=location,
            description=description,
            estimated_amount=int(estimated_amount),
            status=status,
            attachments=json.dumps(list(attachments)),
            created_at=now,
            updated_at=now,
        )
        await self.conn.execute(
            """
            INSERT INTO claims (
                id, policy_number, claim_type, incident_date, location, description,
                estimated_amount, status, attachments, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                record.policy_number,
                record.claim_type,
                record.incident_date,
                record.location,
                record.description,
                record.estimated_amount,
                record.status,
                record.attachments,
                format_timestamp(record.created_at),
                format_timestamp(record.updated_at),
            ),
        )
        await self.conn.commit()
        return record

    async def get(self, claim_id: str) -> Optional[Claim]:
        cursor = await self.conn.execute("SELECT * FROM claims WHERE id = ?", (claim_id,))
        row = await cursor.fetchone()
        if not row:
            return None
        return self._row_to_model(row)

    async def list(
        self,
        filters: ClaimFilter,
        *,
        limit: int,
        after: Optional[Claim] = None,
    ) -> Tuple[List[Claim], bool]:
        """Return up to ``limit`` claims newest first and whether more remain.

        ``after`` is an exclusive bound on ``(created_at, id)``.
        """

        query = "SELECT * FROM claims"
        conditions = []
        params: list = []
        if filters.claim_type:
            conditions.append("claim_type = ?")
            params.append(filters.claim_type)
        if filters.status:
            conditions.append("status = ?")
            params.append(filters.status)
        if filters.q:
            conditions.append("(instr(policy_number, ?) > 0 OR instr(location, ?) > 0)")
            params.extend([filters.q, filters.q])
        if after is not None:
            bound = format_timestamp(after.created_at)
            conditions.append("(created_at < ? OR (created_at = ? AND id < ?))")
            params.extend([bound, bound, after.id])
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        query += " ORDER BY created_at DESC, id DESC LIMIT ?"
        params.append(limit + 1)
        cursor = await self.conn.execute(query, params)
        rows = await cursor.fetchall()
        records = [self._row_to_model(row) for row in rows]
        return records[:limit], len(records) > limit

    def _row_to_model(self, row: aiosqlite.Row) -> Claim:
        return Claim(
            id=row["id"],
            policy_number=row["policy_number"],
            claim_type=row["claim_type"],
            incident_date=row["incident_date"],
            location=row["location"],
            description=row["description"],
            estimated_amount=row["estimated_amount"],
            status=row["status"],
            attachments=row["attachments"],
            created_at=parse_timestamp(row["created_at"]),
            updated_at=parse_timestamp(row["updated_at"]),
        )
