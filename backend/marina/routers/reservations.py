from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..deps import get_catway_locks, get_current_user_id, get_read_policy, get_request_context, get_session
from ..domain.validator import ReservationRequest
from ..infrastructure.repositories import SqlAlchemyCatwayRepository, SqlAlchemyReservationRepository
from ..schemas import ReservationCreate, ReservationRead
from ..usecases import reservations as reservation_usecase
from ..usecases.retry import ReadPolicy
from ..utils.audit_log import emit_audit_log
from ..utils.locks import KeyedLocks
from ..utils.request_context import RequestContext
from .errors import unwrap

router = APIRouter(prefix="", tags=["reservations"], dependencies=[Depends(get_current_user_id)])


def _audit(**fields: Any) -> None:
    try:
        emit_audit_log(**fields)
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failure") from exc


@router.get("/reservations", response_model=List[ReservationRead])
async def list_reservations(
    session: AsyncSession = Depends(get_session),
    reads: ReadPolicy = Depends(get_read_policy),
) -> list[ReservationRead]:
    timeout = get_settings().store_timeout_seconds
    res_repo = SqlAlchemyReservationRepository(session, timeout=timeout)
    rows = unwrap(await reservation_usecase.list_reservations(res_repo, reads=reads))
    return [ReservationRead.from_db(reservation=r) for r in rows]


@router.get("/catways/{catway_number}/reservations", response_model=List[ReservationRead])
async def list_catway_reservations(
    catway_number: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    reads: ReadPolicy = Depends(get_read_policy),
) -> list[ReservationRead]:
    timeout = get_settings().store_timeout_seconds
    catway_repo = SqlAlchemyCatwayRepository(session, timeout=timeout)
    res_repo = SqlAlchemyReservationRepository(session, timeout=timeout)
    rows = unwrap(
        await reservation_usecase.list_catway_reservations(
            catway_repo,
            res_repo,
            catway_number=catway_number,
            reads=reads,
        )
    )
    return [ReservationRead.from_db(reservation=r) for r in rows]


@router.get("/catways/{catway_number}/reservations/{reservation_id}", response_model=ReservationRead)
async def get_reservation(
    catway_number: int = Path(..., ge=1),
    reservation_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    reads: ReadPolicy = Depends(get_read_policy),
) -> ReservationRead:
    res_repo = SqlAlchemyReservationRepository(session, timeout=get_settings().store_timeout_seconds)
    reservation = unwrap(
        await reservation_usecase.get_reservation(
            res_repo,
            catway_number=catway_number,
            reservation_id=reservation_id,
            reads=reads,
        )
    )
    return ReservationRead.from_db(reservation=reservation)


@router.post(
    "/catways/{catway_number}/reservations",
    response_model=ReservationRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_reservation(
    payload: ReservationCreate,
    catway_number: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
    locks: KeyedLocks = Depends(get_catway_locks),
) -> ReservationRead:
    timeout = get_settings().store_timeout_seconds
    catway_repo = SqlAlchemyCatwayRepository(session, timeout=timeout)
    res_repo = SqlAlchemyReservationRepository(session, timeout=timeout)
    request = ReservationRequest(
        catway_number=catway_number,
        client_name=payload.client_name,
        boat_name=payload.boat_name,
        check_in=payload.check_in,
        check_out=payload.check_out,
    )
    async with session.begin():
        result = await reservation_usecase.create_reservation(
            catway_repo,
            res_repo,
            request,
            ctx=ctx,
            locks=locks,
        )
        reservation = unwrap(result)

    _audit(
        action="reservation.created",
        actor_id=ctx.user_id,
        catway_number=reservation.catway_number,
        reservation_id=reservation.id,
        extra={"check_in": reservation.check_in, "check_out": reservation.check_out},
    )
    return ReservationRead.from_db(reservation=reservation)


@router.delete("/catways/{catway_number}/reservations/{reservation_id}", response_model=ReservationRead)
async def delete_reservation(
    catway_number: int = Path(..., ge=1),
    reservation_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
) -> ReservationRead:
    res_repo = SqlAlchemyReservationRepository(session, timeout=get_settings().store_timeout_seconds)
    async with session.begin():
        result = await reservation_usecase.delete_reservation(
            res_repo,
            catway_number=catway_number,
            reservation_id=reservation_id,
            ctx=ctx,
        )
        reservation = unwrap(result)

    _audit(
        action="reservation.deleted",
        actor_id=ctx.user_id,
        catway_number=catway_number,
        reservation_id=reservation_id,
    )
    return ReservationRead.from_db(reservation=reservation)
