"""Insert demonstration claims into the configured database."""
from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Any, Dict, List

from claimtriage.api.core.config import settings
from claimtriage.api.core.logging import setup_logging
from claimtriage.api.core.money import to_minor_units
from claimtriage.api.db import Database
from claimtriage.api.repositories.claim_repo import ClaimRepository

logger = logging.getLogger("claimtriage.seed")

SEED_CLAIMS: List[Dict[str, Any]] = [
    {
        "policy_number": "PN-12345",
        "claim_type": "auto",
        "incident_date": "2026-01-20",
        "location": "Austin, TX",
        "description": "Rear-ended at a stop light",
        "estimated_amount": 1250.50,
        "status": "NEW",
        "attachments": ["https://example.com/photo1.jpg"],
    },
    {
        "policy_number": "PN-54321",
        "claim_type": "home",
        "incident_date": "2026-01-10",
        "location": "Denver, CO",
        "description": "Water leak in the kitchen ceiling",
        "estimated_amount": 3420.00,
        "status": "IN_REVIEW",
        "attachments": ["https://example.com/leak.jpg"],
    },
    {
        "policy_number": "PN-77777",
        "claim_type": "travel",
        "incident_date": "2025-12-28",
        "location": "Miami, FL",
        "description": "Lost luggage on return flight",
        "estimated_amount": 895.00,
        "status": "RESOLVED",
        "attachments": ["https://example.com/bag.jpg"],
    },
    {
        "policy_number": "PN-99999",
        "claim_type": "auto",
        "incident_date": "2026-01-02",
        "location": "San Jose, CA",
        "description": "Windshield cracked by debris on highway",
        "estimated_amount": 420.00,
        "status": "NEW",
        "attachments": ["https://example.com/windshield.jpg"],
    },
]


async def seed(db: Database) -> List[str]:
    await db.init_schema()
    repo = ClaimRepository(db.connection)
    ids = []
    for item in SEED_CLAIMS:
        record = await repo.create(**{**item, "estimated_amount": to_minor_units(item["estimated_amount"])})
        logger.info("Seeded claim id=%s policy=%s status=%s", record.id, record.policy_number, record.status)
        ids.append(record.id)
    return ids


async def _main(db_path: str | None) -> None:
    db = Database(db_path or settings.database_path, timeout=settings.db_timeout)
    try:
        ids = await seed(db)
    finally:
        await db.close()
    print(f"Seeded {len(ids)} claims into {db.path}")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--db", help="SQLite file path (defaults to DB_URL)")
    args = parser.parse_args()
    setup_logging(settings.log_level)
    asyncio.run(_main(args.db))


if __name__ == "__main__":
    main()
