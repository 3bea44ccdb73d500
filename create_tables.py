#!/usr/bin/env python3
# ============================================================================
# create_tables.py - Create database tables and optionally promote an admin
# ============================================================================

import argparse
import asyncio
import sys

from sqlalchemy import select

from fashionx.core.database import async_session_maker, engine, init_db
from fashionx.models.user import User, UserRole


async def promote_admin(email: str) -> bool:
    async with async_session_maker() as session:
        result = await session.execute(select(User).where(User.email == email.strip().lower()))
        user = result.scalar_one_or_none()
        if not user:
            return False
        user.role = UserRole.ADMIN
        await session.commit()
        return True


async def main(admin_email: str = None) -> int:
    try:
        print("🔄 Creating database tables...")
        await init_db()
        print("✅ Database tables created successfully!")

        if admin_email:
            if not await promote_admin(admin_email):
                print(f"❌ No user with email {admin_email}")
                return 1
            print(f"✅ {admin_email} is now an admin")
        return 0
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create FashionX tables")
    parser.add_argument("--admin-email", help="promote an existing account to admin")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.admin_email)))
