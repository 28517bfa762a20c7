"""Database reset script.

Run this script to drop all tables and recreate them empty.
This will delete all rules, images and auto-replies.

Usage:
    python -m scripts.reset_db
    or
    python scripts/reset_db.py (after pip install -e .)
"""

import asyncio

from replybot.core.config import get_settings
from replybot.db.session import close_db, create_all_tables, drop_all_tables


async def main() -> None:
    """Reset the database by dropping all tables and recreating them."""
    settings = get_settings()

    print("Dropping all database tables...")
    await drop_all_tables(settings)
    print("All tables dropped successfully!")

    print("Recreating tables...")
    await create_all_tables(settings)
    await close_db()
    print("Database reinitialized successfully!")


if __name__ == "__main__":
    asyncio.run(main())
