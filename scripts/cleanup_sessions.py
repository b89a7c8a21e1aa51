#!/usr/bin/env python3
"""
Clean up expired login sessions.

Should be run periodically (e.g., daily cron job) to remove
expired session rows and keep the sessions table lean.

Usage:
    python scripts/cleanup_sessions.py
    python scripts/cleanup_sessions.py --stats
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.config import get_settings
from app.db.database import get_async_url
from app.db.models import UserSessionModel
from app.db.models.base import utcnow
from app.services.auth_service import AuthService

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def get_session_stats(session: AsyncSession) -> dict:
    """Get session table statistics."""
    now = utcnow()
    total = await session.scalar(select(func.count(UserSessionModel.id)))
    expired = await session.scalar(
        select(func.count(UserSessionModel.id)).where(UserSessionModel.expires_at <= now)
    )
    users = await session.scalar(
        select(func.count(func.distinct(UserSessionModel.user_id))).where(
            UserSessionModel.expires_at > now
        )
    )

    return {
        "total_sessions": total or 0,
        "active_sessions": (total or 0) - (expired or 0),
        "expired_sessions": expired or 0,
        "users_logged_in": users or 0,
    }


async def main_async(stats_only: bool = False) -> None:
    """Main async function."""
    settings = get_settings()
    engine = create_async_engine(
        get_async_url(settings.database_url),
        echo=False,
    )
    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    try:
        async with async_session_maker() as session:
            # Get stats before cleanup
            stats = await get_session_stats(session)

            logger.info("Session Statistics:")
            logger.info(f"  Total sessions: {stats['total_sessions']:,}")
            logger.info(f"  Active sessions: {stats['active_sessions']:,}")
            logger.info(f"  Expired sessions: {stats['expired_sessions']:,}")
            logger.info(f"  Users logged in: {stats['users_logged_in']:,}")

            if stats_only:
                return

            if stats["expired_sessions"] == 0:
                logger.info("No expired sessions to clean up.")
                return

            deleted = await AuthService(session).purge_expired_sessions()
            await session.commit()

            logger.info(f"Cleaned up {deleted:,} expired sessions.")
    finally:
        await engine.dispose()


def main():
    parser = argparse.ArgumentParser(
        description="Clean up expired login sessions"
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Only show statistics, don't clean up",
    )

    args = parser.parse_args()
    asyncio.run(main_async(stats_only=args.stats))


if __name__ == "__main__":
    main()
