"""Database initialization script.

Run this script to create the rule, image and auto-reply tables.

Usage:
    python -m scripts.init_db
    or
    python scripts/init_db.py (after pip install -e .)
"""

import asyncio

from replybot.core.config import get_settings
from replybot.db.session import close_db, create_all_tables


async def main() -> None:
    """Create all tables."""
    settings = get_settings()
    await create_all_tables(settings)
    await close_db()
    print("Database initialized successfully!")


if __name__ == "__main__":
    asyncio.run(main())
