"""
Law Nation Editorial - Seed Users Script
=======================================
Seeds the database with the editorial team (admins, editors, reviewers)
and prints a development bearer token for each account.

Usage:
    python -m scripts.seed_users

For development/staging only. Tokens are signed with LAWNATION_APP_SECRET_KEY.
"""

import asyncio
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sqlalchemy import select  # noqa: E402

from lawnation.core.database import async_session, init_db  # noqa: E402
from lawnation.core.security import create_access_token  # noqa: E402
from lawnation.models.user import User, UserRole  # noqa: E402
from lawnation.utils.text import normalize_email  # noqa: E402

TEAM = [
    {"full_name": "Managing Editor", "email": "admin@lawnation.example", "roles": [UserRole.admin]},
    {"full_name": "Copy Editor One", "email": "editor1@lawnation.example", "roles": [UserRole.editor]},
    {"full_name": "Copy Editor Two", "email": "editor2@lawnation.example", "roles": [UserRole.editor]},
    {"full_name": "Peer Reviewer One", "email": "reviewer1@lawnation.example", "roles": [UserRole.reviewer]},
    {"full_name": "Peer Reviewer Two", "email": "reviewer2@lawnation.example", "roles": [UserRole.reviewer]},
    {
        "full_name": "Senior Editor",
        "email": "senior@lawnation.example",
        "roles": [UserRole.editor, UserRole.reviewer],
    },
]


async def seed() -> None:
    await init_db()
    async with async_session() as db:
        created = 0
        for member in TEAM:
            email = normalize_email(member["email"])
            row = await db.execute(select(User).where(User.email == email))
            user = row.scalar_one_or_none()
            if user is None:
                user = User(
                    full_name=member["full_name"],
                    email=email,
                    roles=[role.value for role in member["roles"]],
                    is_active=True,
                )
                db.add(user)
                created += 1
        await db.commit()

        rows = await db.execute(select(User).order_by(User.id.asc()))
        print(f"Seeded {created} new users.")
        for user in rows.scalars().all():
            token = create_access_token({"sub": str(user.id)})
            print(f"  #{user.id:<3} {user.email:<32} {','.join(user.roles or []):<20} {token}")


if __name__ == "__main__":
    asyncio.run(seed())
