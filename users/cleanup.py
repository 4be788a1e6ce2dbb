"""
Remove registrations that never reached step two.

    python -m users.cleanup --hours 24
"""

import argparse
import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import configure_logging, get_settings
from core.database import AsyncSessionLocal, transaction
from users import crud

logger = logging.getLogger(__name__)


async def cleanup_incomplete_registrations(db: AsyncSession, hours: int) -> int:
    async with transaction(db):
        deleted = await crud.delete_incomplete_registrations(db, hours)
    logger.info("Deleted %d incomplete registrations older than %d hours", deleted, hours)
    return deleted


async def _run(hours: int) -> int:
    async with AsyncSessionLocal() as session:
        return await cleanup_incomplete_registrations(session, hours)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Clean up incomplete user registrations older than the given hours")
    parser.add_argument(
        "--hours",
        type=int,
        default=get_settings().incomplete_registration_ttl_hours,
        help="Hours after which incomplete registrations should be deleted",
    )
    args = parser.parse_args(argv)

    configure_logging()
    print(f"Cleaning up incomplete registrations older than {args.hours} hours...")
    deleted = asyncio.run(_run(args.hours))
    print(f"Successfully deleted {deleted} incomplete registrations.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
