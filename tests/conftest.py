"""
Shared pytest fixtures.

Each test gets its own SQLite file with every table created, a session on
it, and an httpx client whose ``get_db`` dependency points at the same file.

Factories (``make_user``, ``make_question``, ``make_prompt``,
``make_attempt``) insert rows directly so tests can set up legacy data the
API would never produce.
"""
from datetime import datetime

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from question_images.core.security import create_access_token
from question_images.db.base import Base
from question_images.db.session import get_db
from question_images.main import app
from question_images.models import GenerationRequest, ImageAttempt, Question, User


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def load_attempts(session_factory):
    """Read attempts through a fresh session so no cached state leaks in."""

    async def _load(**filters) -> list[ImageAttempt]:
        async with session_factory() as session:
            stmt = select(ImageAttempt).order_by(ImageAttempt.generated_at, ImageAttempt.attempt_number)
            for name, value in filters.items():
                stmt = stmt.where(getattr(ImageAttempt, name) == value)
            result = await session.execute(stmt)
            return list(result.scalars().all())

    return _load


@pytest.fixture
def make_user(db):
    async def _make(email="author@example.com", is_admin=False) -> User:
        user = User(email=email, hashed_password="not-a-real-hash", is_admin=is_admin)
        db.add(user)
        await db.commit()
        return user

    return _make


@pytest.fixture
def make_question(db):
    async def _make(question_id=None, user_id=None, text="What is photosynthesis?") -> Question:
        question = Question(id=question_id, user_id=user_id, question_text=text)
        db.add(question)
        await db.commit()
        return question

    return _make


@pytest.fixture
def make_prompt(db):
    async def _make(question_id=None, placement="question", user_id=None, text="A labelled leaf diagram") -> GenerationRequest:
        prompt = GenerationRequest(
            question_id=question_id,
            placement=placement,
            prompt_text=text,
            original_ai_prompt=text,
            user_id=user_id,
        )
        db.add(prompt)
        await db.commit()
        return prompt

    return _make


@pytest.fixture
def make_attempt(db):
    async def _make(
        prompt_id=None,
        question_id=None,
        placement_type=None,
        is_selected=False,
        generated_at=None,
        attempt_number=1,
        user_id=None,
    ) -> ImageAttempt:
        attempt = ImageAttempt(
            prompt_id=prompt_id,
            question_id=question_id,
            placement_type=placement_type,
            image_url=f"https://cdn.example.com/images/{attempt_number}.png",
            prompt_used="A labelled leaf diagram",
            attempt_number=attempt_number,
            is_selected=is_selected,
            generated_at=generated_at or datetime(2025, 3, 1, 10, 0),
            user_id=user_id,
        )
        db.add(attempt)
        await db.commit()
        return attempt

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers
