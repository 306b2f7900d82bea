"""
Database management commands.
Creates, drops and seeds the schema outside the running API.
"""

import asyncio
import argparse
import logging
import sys

from estatehub.config import settings
from estatehub.database import (
    AsyncSessionLocal,
    close_db_connection,
    create_tables,
    drop_tables,
    get_database_info,
)
from estatehub.services.auth import AuthService

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def seed_demo_users() -> None:
    """Create the demo accounts and log their credentials."""
    async with AsyncSessionLocal() as session:
        created = await AuthService(session).seed_demo_users()

    if not created:
        logger.info("Demo accounts already exist, skipping seed")
        return
    for account in AuthService.demo_credentials():
        logger.info(f"  {account['role'].value}: {account['email']} / {account['password']}")
    if settings.is_production:
        logger.warning("Demo accounts were seeded into a production database")


async def reset_database() -> None:
    """Drop and recreate every table, then seed the demo accounts."""
    logger.warning("Resetting database - all data will be lost!")
    await drop_tables()
    await create_tables()
    await seed_demo_users()
    logger.info("Database reset completed")


async def check_database() -> bool:
    info = await get_database_info()
    if "error" in info:
        logger.error(f"Database check failed: {info['error']}")
        return False
    for key, value in info.items():
        logger.info(f"  {key}: {value}")
    return True


async def _run(command: str) -> bool:
    try:
        if command == "create-tables":
            await create_tables()
        elif command == "drop-tables":
            await drop_tables()
        elif command == "seed-demo":
            await seed_demo_users()
        elif command == "reset":
            await reset_database()
        elif command == "check":
            return await check_database()
        return True
    finally:
        await close_db_connection()


def main() -> None:
    """Command line entry point."""
    parser = argparse.ArgumentParser(description="EstateHub database management")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("create-tables", help="Create all tables")
    subparsers.add_parser("drop-tables", help="Drop all tables (development and testing only)")
    subparsers.add_parser("seed-demo", help="Create the demo accounts")
    reset_parser = subparsers.add_parser("reset", help="Drop, recreate and seed (development only)")
    reset_parser.add_argument("--confirm", action="store_true", help="Confirm database reset")
    subparsers.add_parser("check", help="Show database version and pool status")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    if args.command == "reset" and not args.confirm:
        print("Database reset requires --confirm flag")
        sys.exit(1)

    try:
        ok = asyncio.run(_run(args.command))
    except Exception as e:
        logger.error(f"Command '{args.command}' failed: {e}")
        sys.exit(1)

    if not ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
