import logging
from typing import AsyncIterator

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .database import async_session
from .models import User
from .usecases.retry import ReadPolicy
from .utils.auth import bearer_token, decode_access_token
from .utils.locks import KeyedLocks
from .utils.request_context import RequestContext

logger = logging.getLogger(__name__)

_BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session


async def get_current_user_id(
    authorization: str | None = Header(default=None),
    session: AsyncSession = Depends(get_session),
) -> int:
    token = bearer_token(authorization)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Bearer token required",
            headers=_BEARER_CHALLENGE,
        )
    settings = get_settings()
    try:
        user_id = decode_access_token(token, secret=settings.auth_secret, algorithms=[settings.auth_algorithm])
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid or expired token",
            headers=_BEARER_CHALLENGE,
        ) from exc

    try:
        found = await session.scalar(select(User.id).where(User.id == user_id))
    except SQLAlchemyError as exc:
        logger.error("user lookup failed: %s", exc)
        await session.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="user lookup failed") from exc
    # End the read-only transaction so handlers can open their own with session.begin().
    await session.rollback()
    if found is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="user no longer exists",
            headers=_BEARER_CHALLENGE,
        )
    return int(found)


async def get_request_context(user_id: int = Depends(get_current_user_id)) -> RequestContext:
    return RequestContext.current(user_id=user_id)


def get_catway_locks(request: Request) -> KeyedLocks:
    locks = getattr(request.app.state, "catway_locks", None)
    if locks is None:
        locks = request.app.state.catway_locks = KeyedLocks()
    return locks


def get_read_policy() -> ReadPolicy:
    settings = get_settings()
    return ReadPolicy(attempts=settings.read_retry_attempts, delay=settings.read_retry_delay_seconds)
