"""Seed script: creates languages, users and a few sample episodes and insights.

Idempotent: checks for existing records before inserting.
Run from backend/: python scripts/seed.py
"""
import asyncio
import sys
import os
from datetime import datetime, timezone, timedelta

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from podcast_cms.core.config import settings
from podcast_cms.core.security import hash_password as get_password_hash
from podcast_cms.models.episode import Episode, EpisodePlatform
from podcast_cms.models.insight import Insight
from podcast_cms.models.translation import Language
from podcast_cms.models.user import User
from podcast_cms.services.episode_matching import slugify

NOW = datetime.now(timezone.utc)

LANGUAGES = [
    # code, name, native name, default
    ("de", "German", "Deutsch", True),
    ("en", "English", "English", False),
    ("fr", "French", "Français", False),
    ("es", "Spanish", "Español", False),
]

EPISODES = [
    {
        "title": "Digital Finance Basics",
        "description": "An intro episode on what digital finance teams actually do.",
        "series": "finance_transformers",
        "season": 1,
        "episode_number": 1,
        "status": "published",
        "duration": "42:10",
        "platforms": {"Spotify": "https://open.spotify.com/episode/demo-1"},
    },
    {
        "title": "Closing the Books in Three Days",
        "description": "How a mid-size CFO team shortened its month-end close.",
        "series": "finance_transformers",
        "season": 1,
        "episode_number": 2,
        "status": "published",
        "duration": "38:55",
        "platforms": {},
    },
    {
        "title": "Budgeting Without the Spreadsheet Chaos",
        "description": "A memo on planning cycles that survive contact with reality.",
        "series": "cfo_memo",
        "season": 1,
        "episode_number": 1,
        "status": "draft",
        "duration": None,
        "platforms": {},
    },
]


# ─── Upsert helpers ───

async def _upsert_language(db: AsyncSession, code: str, name: str, native: str, default: bool, order: int) -> None:
    if await db.get(Language, code):
        print(f"  [skip] Language {code}")
        return
    db.add(Language(code=code, name=name, native_name=native, is_default=default, is_active=True, sort_order=order))
    print(f"  [new]  Language {code}")


async def _upsert_user(db: AsyncSession, email: str, name: str, role: str) -> User:
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalars().first()
    if user:
        print(f"  [skip] User {email}")
        return user
    user = User(
        email=email, name=name,
        password_hash=get_password_hash("changeme123"),
        role=role, is_active=True,
    )
    db.add(user)
    await db.flush()
    print(f"  [new]  User {email} ({role})")
    return user


async def _upsert_episode(db: AsyncSession, data: dict, age_days: int) -> None:
    slug = slugify(data["title"])
    result = await db.execute(select(Episode).where(Episode.slug == slug))
    if result.scalars().first():
        print(f"  [skip] Episode {slug}")
        return
    values = {k: v for k, v in data.items() if k != "platforms"}
    episode = Episode(
        slug=slug,
        publish_date=NOW - timedelta(days=age_days) if data["status"] == "published" else None,
        **values,
    )
    db.add(episode)
    await db.flush()
    for name, url in data["platforms"].items():
        db.add(EpisodePlatform(episode_id=episode.id, platform_name=name, platform_url=url))
    print(f"  [new]  Episode {slug}")


async def _upsert_insight(db: AsyncSession, title: str, description: str) -> None:
    slug = slugify(title)
    result = await db.execute(select(Insight).where(Insight.slug == slug))
    if result.scalars().first():
        print(f"  [skip] Insight {slug}")
        return
    db.add(Insight(title=title, slug=slug, description=description, status="published"))
    print(f"  [new]  Insight {slug}")


async def seed():
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False)

    async with SessionLocal() as db:
        print("Languages")
        for order, (code, name, native, default) in enumerate(LANGUAGES):
            await _upsert_language(db, code, name, native, default, order)

        print("Users")
        await _upsert_user(db, "admin@example.com", "Admin User", "admin")
        await _upsert_user(db, "editor@example.com", "Content Editor", "member")

        print("Episodes")
        for index, data in enumerate(EPISODES):
            await _upsert_episode(db, data, age_days=30 * (len(EPISODES) - index))

        print("Insights")
        await _upsert_insight(db, "Five Signs Your Close Process Is Broken", "A checklist for finance leads.")

        await db.commit()

    await engine.dispose()
    print("Seed complete.")


if __name__ == "__main__":
    asyncio.run(seed())
