"""Seed the default permission matrix and provision the default organization.

Writes one allow/deny rule per (tier, permission key) and creates the
organization's module records (base active, add-ons inactive).  Safe to
re-run.

Run with:
    DATABASE_URL=postgresql+asyncpg://... python scripts/seed_licensing.py [ORG_ID]
"""

from __future__ import annotations

import asyncio
import logging
import sys
from uuid import UUID

from alignex.api.wiring import license_admin
from alignex.core.config import SETTINGS
from alignex.core.logging import setup_logging
from alignex.db.engine import engine
from alignex.services.license_seed import seed_licensing

logger = logging.getLogger("seed_licensing")


async def main(org_id: UUID) -> None:
    if engine is None:
        logger.warning("DATABASE_URL is not set; seeding in-memory stores only")
    try:
        await seed_licensing(license_admin, org_id)
    finally:
        if engine is not None:
            await engine.dispose()


if __name__ == "__main__":
    setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)
    target = UUID(sys.argv[1]) if len(sys.argv) > 1 else UUID(SETTINGS.default_org_id)
    asyncio.run(main(target))
