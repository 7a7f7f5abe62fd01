"""
Harvous Backend - Test Configuration (conftest.py)
===================================================

What:  Shared fixtures: mocked database session, API test client, auth
       headers and sample data.
How:   Environment overrides are applied before anything imports harvous,
       so Settings (read once at import) sees the test values.

Fixtures:
    mock_db_session   AsyncMock standing in for AsyncSession
    test_client       httpx.AsyncClient bound to the app via ASGITransport,
                      with get_db_session overridden by mock_db_session
    auth_headers      X-User-ID header for a fixed test user
    sample_note       Note-shaped object for service tests
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RETRY_MAX_ATTEMPTS"] = "2"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_MAX_WAIT"] = "1"

from datetime import datetime, timezone  # noqa: E402
from types import SimpleNamespace  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

TEST_USER_ID = "user_test_123"


@pytest.fixture
def mock_db_session():
    """
    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = note
        await note_service.get_note_detail(mock_db_session, TEST_USER_ID, note_id)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock(return_value=None)
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    # MagicMock implements __aenter__/__aexit__, so `async with db.begin_nested()` works
    session.begin_nested = MagicMock()
    return session


@pytest.fixture
def auth_headers():
    return {"X-User-ID": TEST_USER_ID}


@pytest.fixture
def sample_note():
    return SimpleNamespace(
        id=uuid4(),
        user_id=TEST_USER_ID,
        title="Morning study",
        content="<p>Read John 3:16 and Romans 8:28 today.</p>",
        simple_note_id=1,
        note_type="default",
        space_id=None,
        is_public=False,
        is_featured=False,
        created_at=datetime.now(timezone.utc),
        updated_at=None,
    )


@pytest_asyncio.fixture
async def test_client(mock_db_session):
    """
    Usage:
        async def test_detect(test_client, auth_headers):
            response = await test_client.post("/api/scripture/detect", json={...}, headers=auth_headers)
    """
    from harvous.database import get_db_session
    from harvous.main import app

    async def override_db_session():
        yield mock_db_session

    app.dependency_overrides[get_db_session] = override_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
