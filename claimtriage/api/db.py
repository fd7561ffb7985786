"""SQLite persistence bootstrap (aiosqlite)."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import aiosqlite

logger = logging.getLogger(__name__)

CLAIMS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS claims (
    id TEXT PRIMARY KEY,
    policy_number TEXT NOT NULL,
    claim_type TEXT NOT NULL,
    incident_date TEXT NOT NULL,
    location TEXT NOT NULL,
    description TEXT NOT NULL,
    estimated_amount INTEGER NOT NULL CHECK (estimated_amount >= 0),
    status TEXT NOT NULL DEFAULT 'NEW',
    attachments TEXT NOT NULL DEFAULT '[]',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_claims_created_at_id ON claims (created_at DESC, id DESC);
"""

AI_VERSIONS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS claim_ai_versions (
    id TEXT PRIMARY KEY,
    claim_id TEXT NOT NULL,
    model TEXT NOT NULL,
    prompt_version TEXT NOT NULL,
    response_json TEXT NOT NULL,
    latency_ms INTEGER NOT NULL,
    token_usage TEXT,
    created_at TEXT NOT NULL,
    FOREIGN KEY(claim_id) REFERENCES claims(id)
);
CREATE INDEX IF NOT EXISTS idx_claim_ai_versions_claim ON claim_ai_versions (claim_id, created_at DESC);
"""


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Fixed width UTC representation; string order equals time order."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Database:
    """Owns the aiosqlite connection shared by the repositories."""

    def __init__(self, path: Path, *, timeout: float = 30.0) -> None:
        self.path = Path(path)
        self.timeout = timeout
        self._conn: Optional[aiosqlite.Connection] = None

    @property
    def connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Database is not connected")
        return self._conn

    async def connect(self) -> aiosqlite.Connection:
        if self._conn is not None:
            return self._conn
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = await aiosqlite.connect(self.path, timeout=self.timeout)
        await conn.execute("PRAGMA journal_mode=WAL;")
        await conn.execute("PRAGMA synchronous=NORMAL;")
        await conn.execute("PRAGMA foreign_keys=ON;")
        conn.row_factory = aiosqlite.Row
        self._conn = conn
        logger.info("Database connected path=%s", self.path)
        return conn

    async def init_schema(self) -> None:
        conn = await self.connect()
        await conn.executescript(CLAIMS_TABLE_SQL)
        await conn.executescript(AI_VERSIONS_TABLE_SQL)
        await conn.commit()

    async def ping(self) -> bool:
        try:
            cursor = await self.connection.execute("SELECT 1")
            row = await cursor.fetchone()
        except (RuntimeError, aiosqlite.Error):
            return False
        return bool(row and row[0] == 1)

    async def close(self) -> None:
        conn = self._conn
        self._conn = None
        if conn is not None:
            await conn.close()
