#!/usr/bin/env python3
"""Initialize the signal database and create tables."""

import asyncio
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from smc_app.config import get_settings
from smc_app.storage.database import init_database


async def main():
    settings = get_settings()
    print(f"Initializing database at {settings.database_url}...")
    db = await init_database(settings.database_url)
    print("Database initialized successfully!")
    print("Tables created: signals")
    await db.close()


if __name__ == "__main__":
    asyncio.run(main())
