"""
Seed Data Script: populate the SQL store with the demo dataset
=============================================================================
Creates the tables (if missing) and inserts the demo rows from
ops_portal/adapters/demo_data.py: one user per role, their employee
records, tools, requests in several states and a month of ledger rows.

Skips seeding when the users table already has rows.

Run: DATABASE_URL=sqlite+aiosqlite:///./portal.db python -m scripts.seed_data
=============================================================================
"""

import asyncio
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from ops_portal.adapters.demo_data import DEMO_PASSWORD, build_demo_dataset
from ops_portal.adapters.sql import SqlAdapter
from ops_portal.config import settings
from ops_portal.db.engine import build_engine, init_models


async def main():
    if not settings.database_url:
        print("DATABASE_URL is not set; nothing to seed.")
        return

    print("Seeding database...")
    print("=" * 50)

    adapter = SqlAdapter(build_engine(settings.database_url), demo_mode=True)
    try:
        print("\n1. Creating tables...")
        await init_models(adapter.engine)

        print("\n2. Seeding demo data...")
        existing = await adapter.list_users()
        if existing:
            print(f"  Users table already has {len(existing)} records, skipping...")
            return

        dataset = build_demo_dataset()
        await adapter.seed(dataset)
        print(f"  Created {len(dataset.users)} users, {len(dataset.tools)} tools, "
              f"{len(dataset.tool_requests)} tool requests, {len(dataset.leave_requests)} leave requests")

        print("\n" + "=" * 50)
        print("Seeding complete!")
        print(f"\nTest credentials (password for all: {DEMO_PASSWORD}):")
        for user in dataset.users:
            print(f"  {user.email:<28} (role: {user.role.value})")
    finally:
        await adapter.aclose()


if __name__ == "__main__":
    asyncio.run(main())
