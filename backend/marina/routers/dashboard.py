from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..deps import get_current_user_id, get_read_policy, get_request_context, get_session
from ..infrastructure.repositories import (
    SqlAlchemyCatwayRepository,
    SqlAlchemyReservationRepository,
    SqlAlchemyUserRepository,
)
from ..schemas import DashboardRead
from ..usecases import dashboard as dashboard_usecase
from ..usecases.retry import ReadPolicy
from ..utils.request_context import RequestContext
from .errors import unwrap

router = APIRouter(prefix="/dashboard", tags=["dashboard"], dependencies=[Depends(get_current_user_id)])


@router.get("", response_model=DashboardRead)
async def get_dashboard(
    session: AsyncSession = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
    reads: ReadPolicy = Depends(get_read_policy),
) -> DashboardRead:
    settings = get_settings()
    timeout = settings.store_timeout_seconds
    snapshot = unwrap(
        await dashboard_usecase.get_dashboard(
            SqlAlchemyCatwayRepository(session, timeout=timeout),
            SqlAlchemyReservationRepository(session, timeout=timeout),
            SqlAlchemyUserRepository(session, timeout=timeout),
            ctx=ctx,
            recent_limit=settings.recent_bookings_limit,
            reads=reads,
        )
    )
    return DashboardRead.from_snapshot(snapshot)
