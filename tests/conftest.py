from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from coachstudio.api.deps import get_now
from coachstudio.config import Settings, get_settings
from coachstudio.database import Base, get_db
from coachstudio.main import app
from tests.factories import ADMIN_TOKEN, CRON_SECRET, NOW, test_engine, test_session


async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with test_session() as session:
        yield session


def override_get_settings() -> Settings:
    return Settings(
        _env_file=None,
        studio_timezone="UTC",
        cron_secret=CRON_SECRET,
        admin_token=ADMIN_TOKEN,
    )


app.dependency_overrides[get_db] = override_get_db
app.dependency_overrides[get_settings] = override_get_settings
app.dependency_overrides[get_now] = lambda: NOW


@pytest.fixture(autouse=True)
async def setup_db() -> AsyncGenerator[None, None]:
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with test_session() as session:
        yield session


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
