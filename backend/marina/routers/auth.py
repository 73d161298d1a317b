from datetime import timedelta

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..deps import get_read_policy, get_session
from ..infrastructure.repositories import SqlAlchemyUserRepository
from ..schemas import LoginRequest, TokenRead
from ..usecases import users as user_usecase
from ..usecases.retry import ReadPolicy
from ..utils.auth import create_access_token
from .errors import unwrap

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenRead)
async def login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_session),
    reads: ReadPolicy = Depends(get_read_policy),
) -> TokenRead:
    settings = get_settings()
    user_repo = SqlAlchemyUserRepository(session, timeout=settings.store_timeout_seconds)
    user = unwrap(
        await user_usecase.authenticate(user_repo, email=payload.email, password=payload.password, reads=reads)
    )
    lifetime = timedelta(minutes=settings.access_token_minutes)
    token = create_access_token(
        user_id=user.id,
        secret=settings.auth_secret,
        algorithm=settings.auth_algorithm,
        expires_delta=lifetime,
        email=user.email,
    )
    return TokenRead(access_token=token, expires_in=int(lifetime.total_seconds()))
