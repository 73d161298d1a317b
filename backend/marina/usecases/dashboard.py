from __future__ import annotations

from ..domain.errors import ServiceResult, StoreError
from ..domain.occupancy import DashboardSnapshot, build_dashboard
from ..domain.repositories import CatwayRepository, ReservationRepository, UserRepository
from ..utils.request_context import RequestContext
from .retry import ReadPolicy


async def get_dashboard(
    catway_repo: CatwayRepository,
    res_repo: ReservationRepository,
    user_repo: UserRepository,
    *,
    ctx: RequestContext,
    recent_limit: int = 5,
    reads: ReadPolicy = ReadPolicy(),
) -> ServiceResult[DashboardSnapshot]:
    try:
        catways = await reads.run(catway_repo.find_all)
        reservations = await reads.run(res_repo.find_all)
        total_users = await reads.run(user_repo.count)
    except StoreError as exc:
        return ServiceResult.from_store_error(exc)

    snapshot = build_dashboard(
        catways,
        reservations,
        total_users=total_users,
        now=ctx.now,
        recent_limit=recent_limit,
    )
    return ServiceResult.success(snapshot)
