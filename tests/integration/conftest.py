"""API test fixtures: the app wired to the in-memory test database."""

from collections.abc import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_checks.api.app import create_app
from payroll_checks.api.dependencies import get_db_session, get_lock_registry
from payroll_checks.services.locking_service import CompanyLockRegistry


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    app = create_app()

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    locks = CompanyLockRegistry()
    app.dependency_overrides[get_db_session] = override_session
    app.dependency_overrides[get_lock_registry] = lambda: locks

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
