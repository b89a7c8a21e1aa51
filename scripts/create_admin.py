#!/usr/bin/env python3
"""
Create an admin account from the command line.

Admins are created approved and without a profile, so they can log in
immediately at /api/admin/login.

Usage:
    python scripts/create_admin.py --username admin --email admin@example.com
    python scripts/create_admin.py --username admin --email admin@example.com --create-tables
"""

import argparse
import asyncio
import getpass
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.config import get_settings
from app.core.auth import hash_password
from app.core.exceptions import ValidationFailedError
from app.core.lifecycle import UserStatus, UserType
from app.db.database import Base, get_async_url
from app.services.user_service import UserService

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def read_password() -> str:
    """Prompt for the password twice without echoing it."""
    password = getpass.getpass("Password: ")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise SystemExit(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if getpass.getpass("Confirm password: ") != password:
        raise SystemExit("Passwords do not match")
    return password


async def main_async(args: argparse.Namespace, password: str) -> int:
    """Main async function. Returns the process exit code."""
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
        if args.create_tables:
            import app.db.models  # noqa: F401

            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables ensured")

        async with async_session_maker() as session:
            users = UserService(session)
            try:
                await users.ensure_available(args.username, args.email)
            except ValidationFailedError as e:
                logger.error(e.user_message)
                return 1

            user = await users.create(
                username=args.username,
                password_hash=hash_password(password),
                email=args.email,
                first_name=args.first_name,
                last_name=args.last_name,
                phone=args.phone,
                user_type=UserType.ADMIN.value,
                status=UserStatus.APPROVED.value,
            )
            await session.commit()
            logger.info(f"Created admin {user.username!r} (id={user.id})")
            return 0
    finally:
        await engine.dispose()


def main():
    parser = argparse.ArgumentParser(
        description="Create an admin account"
    )
    parser.add_argument("--username", required=True, help="Login name")
    parser.add_argument("--email", required=True, help="Contact email")
    parser.add_argument("--first-name", default="System", help="First name")
    parser.add_argument("--last-name", default="Administrator", help="Last name")
    parser.add_argument("--phone", default="", help="Phone number")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before inserting",
    )

    args = parser.parse_args()
    password = read_password()
    sys.exit(asyncio.run(main_async(args, password)))


if __name__ == "__main__":
    main()
