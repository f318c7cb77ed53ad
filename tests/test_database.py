from __future__ import annotations

import asyncio

from sqlalchemy import create_engine, inspect, select, text

from app.database import Database
from app.db_models import Favorite, Review, User


def test_create_all_builds_expected_tables(tmp_path) -> None:
    database_path = tmp_path / "fresh.db"

    database = Database(f"sqlite+aiosqlite:///{database_path}")
    asyncio.run(database.create_all())
    asyncio.run(database.dispose())

    inspector_engine = create_engine(f"sqlite:///{database_path}")
    try:
        inspector = inspect(inspector_engine)
        tables = set(inspector.get_table_names())
        review_columns = {column["name"] for column in inspector.get_columns("reviews")}
    finally:
        inspector_engine.dispose()

    assert {"users", "favorites", "reviews"} <= tables
    assert {"user_id", "media_id", "content", "created_at"} <= review_columns


def test_deleting_user_cascades_to_their_records(tmp_path) -> None:
    """Raw deletes rely on SQLite foreign keys being switched on."""

    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'cascade.db'}")

    async def scenario() -> tuple[int, int]:
        await database.create_all()
        async with database.session_factory() as session:
            user = User(username="bob", display_name="Robert Paulson")
            session.add(user)
            await session.flush()
            session.add(
                Favorite(
                    user_id=user.id,
                    media_type="movie",
                    media_id="550",
                    media_title="Fight Club",
                )
            )
            session.add(
                Review(
                    user_id=user.id,
                    media_type="movie",
                    media_id="550",
                    media_title="Fight Club",
                    content="His name was Robert Paulson.",
                )
            )
            await session.commit()
            await session.execute(text("DELETE FROM users"))
            await session.commit()
            favorites = (await session.execute(select(Favorite))).scalars().all()
            reviews = (await session.execute(select(Review))).scalars().all()
        await database.dispose()
        return len(favorites), len(reviews)

    assert asyncio.run(scenario()) == (0, 0)
