"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_checks.database import init_db
from payroll_checks.services.locking_service import CompanyLockRegistry


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """One session per request; rolled back if the handler raises."""
    _, factory = init_db()
    async with factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def get_user_id(x_user_id: Annotated[str | None, Header()] = None) -> str:
    """Extract the creator identity from header."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-User-ID header is required",
        )
    return x_user_id.strip()


@lru_cache(maxsize=1)
def get_lock_registry() -> CompanyLockRegistry:
    """Process-wide per-company commit locks."""
    return CompanyLockRegistry()


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
UserId = Annotated[str, Depends(get_user_id)]
CommitLocks = Annotated[CompanyLockRegistry, Depends(get_lock_registry)]
