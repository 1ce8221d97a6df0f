"""Script to initialize the database.

Creates every table and, optionally, a first super admin account:

    python scripts/init_db.py --admin-email admin@formconsult.io --admin-password secret
"""

import argparse
import asyncio

from sqlalchemy import insert, select

from formconsult.core.security import get_password_hash
from formconsult.database import engine
from formconsult.models import metadata, users
from formconsult.schemas.users import UserRole


async def init_db(admin_email: str | None = None, admin_password: str | None = None) -> None:
    """Create all tables and the optional super admin."""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
        print("✓ Tables created")

        if not admin_email or not admin_password:
            return

        existing = await conn.execute(select(users.c.id).where(users.c.email == admin_email.lower()))
        if existing.first():
            print(f"• Super admin {admin_email} already exists")
            return

        await conn.execute(
            insert(users).values(
                email=admin_email.lower(),
                name="Administrator",
                password_hash=get_password_hash(admin_password),
                role=UserRole.SUPER_ADMIN.value,
            )
        )
        print(f"✓ Super admin {admin_email} created")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Initialize the FormConsult database")
    parser.add_argument("--admin-email", help="Create a super admin with this email")
    parser.add_argument("--admin-password", help="Password for the super admin")
    args = parser.parse_args()

    asyncio.run(init_db(args.admin_email, args.admin_password))
    print("✓ Database initialized successfully!")
