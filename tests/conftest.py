"""
Pytest configuration and fixtures.
"""

import sys
from pathlib import Path
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Add project root
sys.path.insert(0, str(Path(__file__).parent.parent))

from tasktime.domain.models import User
from tasktime.infra.db import Base
from tasktime.infra.repository import UserRepository


@pytest_asyncio.fixture
async def db_engine():
    """Create an in-memory SQLite database for testing"""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create a new session for a test"""
    async_session = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session


@pytest_asyncio.fixture
async def user(db_session) -> User:
    return await UserRepository(session=db_session).create(User(email="alice@example.com", name="Alice"))


@pytest_asyncio.fixture
async def other_user(db_session) -> User:
    return await UserRepository(session=db_session).create(User(email="bob@example.com", name="Bob"))
