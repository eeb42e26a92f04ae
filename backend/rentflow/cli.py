"""Management CLI.

Usage:
    python -m rentflow.cli init-db                   # Create all tables from the models
    python -m rentflow.cli migrate                   # Run Alembic upgrade head
    python -m rentflow.cli revalidate-drafts         # Re-run wizard rules on every draft
    python -m rentflow.cli issue-token <user-id>     # Print a bearer token for a user
"""

import asyncio
import subprocess
import sys
from pathlib import Path

from sqlalchemy import select

from rentflow.auth.jwt import create_access_token
from rentflow.database import Base, async_session, engine
from rentflow.models import Application, Property, User
from rentflow.services import application as application_service
from rentflow.services import property as property_service

BACKEND_DIR = Path(__file__).resolve().parents[1]


async def init_db():
    """Create every table directly, for local development and tests."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def migrate():
    """Run Alembic upgrade head against the configured database."""
    result = subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        capture_output=True, text=True,
        cwd=BACKEND_DIR,
    )
    if result.returncode != 0:
        print(f"  FAILED: {result.stderr}")
        sys.exit(1)
    print("  OK")


async def revalidate_drafts() -> tuple[int, int]:
    """Move every draft to the step its stored data supports.

    Rules that depend on today's date (move-in dates, availability)
    can invalidate a draft that was valid when it was saved.
    """
    moved = checked = 0
    async with async_session() as db:
        applications = (
            await db.execute(select(Application).where(Application.status == "draft"))
        ).scalars().all()
        for application in applications:
            before = application.current_step
            await application_service.revalidate_draft(db, application)
            checked += 1
            moved += application.current_step != before

        properties = (
            await db.execute(select(Property).where(Property.status == "draft"))
        ).scalars().all()
        for property in properties:
            before = property.wizard_step
            await property_service.revalidate_draft(db, property)
            checked += 1
            moved += property.wizard_step != before

        await db.commit()
    return checked, moved


async def issue_token(user_id: str) -> str | None:
    async with async_session() as db:
        user = await db.get(User, user_id)
    if user is None or not user.is_active:
        return None
    return create_access_token(user.id, user.role.value)


if __name__ == "__main__":
    cmd = sys.argv[1] if len(sys.argv) > 1 else ""
    if cmd == "init-db":
        asyncio.run(init_db())
        print("  Tables created")
    elif cmd == "migrate":
        migrate()
    elif cmd == "revalidate-drafts":
        checked, moved = asyncio.run(revalidate_drafts())
        print(f"  {checked} draft(s) checked, {moved} moved")
    elif cmd == "issue-token" and len(sys.argv) > 2:
        token = asyncio.run(issue_token(sys.argv[2]))
        if token is None:
            print(f"  No active user {sys.argv[2]}")
            sys.exit(1)
        print(token)
    else:
        print("Usage: python -m rentflow.cli [init-db|migrate|revalidate-drafts|issue-token <user-id>]")
