from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..deps import get_current_user_id, get_read_policy, get_request_context, get_session
from ..infrastructure.repositories import SqlAlchemyUserRepository
from ..schemas import UserRead, UserWrite
from ..usecases import users as user_usecase
from ..usecases.retry import ReadPolicy
from ..utils.audit_log import emit_audit_log
from ..utils.request_context import RequestContext
from .errors import unwrap

router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(get_current_user_id)])


def _audit(**fields: Any) -> None:
    try:
        emit_audit_log(**fields)
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failure") from exc


def _credentials(payload: UserWrite) -> user_usecase.Credentials:
    return user_usecase.Credentials(
        name=payload.name,
        email=payload.email,
        password=payload.password,
        password_confirm=payload.password_confirm,
    )


@router.get("", response_model=List[UserRead])
async def list_users(
    session: AsyncSession = Depends(get_session),
    reads: ReadPolicy = Depends(get_read_policy),
) -> list[UserRead]:
    user_repo = SqlAlchemyUserRepository(session, timeout=get_settings().store_timeout_seconds)
    users = unwrap(await user_usecase.list_users(user_repo, reads=reads))
    return [UserRead.from_db(user=u) for u in users]


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserWrite,
    session: AsyncSession = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
) -> UserRead:
    user_repo = SqlAlchemyUserRepository(session, timeout=get_settings().store_timeout_seconds)
    async with session.begin():
        user = unwrap(await user_usecase.create_user(user_repo, _credentials(payload), ctx=ctx))

    _audit(action="user.created", actor_id=ctx.user_id, user_id=user.id)
    return UserRead.from_db(user=user)


@router.get("/{user_id}", response_model=UserRead)
async def get_user(
    user_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    reads: ReadPolicy = Depends(get_read_policy),
) -> UserRead:
    user_repo = SqlAlchemyUserRepository(session, timeout=get_settings().store_timeout_seconds)
    user = unwrap(await user_usecase.get_user(user_repo, user_id=user_id, reads=reads))
    return UserRead.from_db(user=user)


@router.put("/{user_id}", response_model=UserRead)
async def update_user(
    payload: UserWrite,
    user_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
) -> UserRead:
    user_repo = SqlAlchemyUserRepository(session, timeout=get_settings().store_timeout_seconds)
    async with session.begin():
        user = unwrap(await user_usecase.update_user(user_repo, _credentials(payload), user_id=user_id, ctx=ctx))

    _audit(action="user.updated", actor_id=ctx.user_id, user_id=user.id)
    return UserRead.from_db(user=user)


@router.delete("/{user_id}", response_model=UserRead)
async def delete_user(
    user_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
) -> UserRead:
    user_repo = SqlAlchemyUserRepository(session, timeout=get_settings().store_timeout_seconds)
    async with session.begin():
        user = unwrap(await user_usecase.delete_user(user_repo, user_id=user_id, ctx=ctx))

    _audit(action="user.deleted", actor_id=ctx.user_id, user_id=user_id)
    return UserRead.from_db(user=user)
