from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..deps import get_current_user_id, get_read_policy, get_request_context, get_session
from ..infrastructure.repositories import SqlAlchemyCatwayRepository, SqlAlchemyReservationRepository
from ..schemas import (
    CatwayCreate,
    CatwayDetailRead,
    CatwayRead,
    CatwayRemoved,
    CatwayReplace,
    CatwayStateUpdate,
    ReservationRead,
)
from ..usecases import catways as catway_usecase
from ..usecases.retry import ReadPolicy
from ..utils.audit_log import emit_audit_log
from ..utils.request_context import RequestContext
from .errors import unwrap

router = APIRouter(prefix="/catways", tags=["catways"], dependencies=[Depends(get_current_user_id)])


def _audit(**fields: Any) -> None:
    try:
        emit_audit_log(**fields)
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failure") from exc


def _catway_repo(session: AsyncSession) -> SqlAlchemyCatwayRepository:
    return SqlAlchemyCatwayRepository(session, timeout=get_settings().store_timeout_seconds)


def _reservation_repo(session: AsyncSession) -> SqlAlchemyReservationRepository:
    return SqlAlchemyReservationRepository(session, timeout=get_settings().store_timeout_seconds)


@router.get("", response_model=List[CatwayRead])
async def list_catways(
    session: AsyncSession = Depends(get_session),
    reads: ReadPolicy = Depends(get_read_policy),
) -> list[CatwayRead]:
    catways = unwrap(await catway_usecase.list_catways(_catway_repo(session), reads=reads))
    return [CatwayRead.from_db(catway=c) for c in catways]


@router.post("", response_model=CatwayRead, status_code=status.HTTP_201_CREATED)
async def create_catway(
    payload: CatwayCreate,
    session: AsyncSession = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
) -> CatwayRead:
    catway_repo = _catway_repo(session)
    async with session.begin():
        result = await catway_usecase.create_catway(
            catway_repo,
            catway_number=payload.catway_number,
            type=payload.type,
            catway_state=payload.catway_state,
            ctx=ctx,
        )
        catway = unwrap(result)

    _audit(action="catway.created", actor_id=ctx.user_id, catway_number=catway.catway_number)
    return CatwayRead.from_db(catway=catway)


@router.get("/{catway_number}", response_model=CatwayDetailRead)
async def get_catway(
    catway_number: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    reads: ReadPolicy = Depends(get_read_policy),
) -> CatwayDetailRead:
    detail = unwrap(
        await catway_usecase.get_catway(
            _catway_repo(session),
            _reservation_repo(session),
            catway_number=catway_number,
            reads=reads,
        )
    )
    return CatwayDetailRead(
        catway=CatwayRead.from_db(catway=detail.catway),
        reservations=[ReservationRead.from_db(reservation=r) for r in detail.reservations],
    )


@router.put("/{catway_number}", response_model=CatwayRead)
async def replace_catway(
    payload: CatwayReplace,
    catway_number: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
) -> CatwayRead:
    catway_repo = _catway_repo(session)
    async with session.begin():
        result = await catway_usecase.replace_catway(
            catway_repo,
            catway_number=catway_number,
            new_catway_number=payload.catway_number,
            type=payload.type,
            catway_state=payload.catway_state,
            ctx=ctx,
        )
        catway = unwrap(result)

    _audit(
        action="catway.updated",
        actor_id=ctx.user_id,
        catway_number=catway.catway_number,
        extra={"catway_number_from": catway_number, "type": catway.type, "catway_state": catway.catway_state},
    )
    return CatwayRead.from_db(catway=catway)


@router.patch("/{catway_number}", response_model=CatwayRead)
async def update_catway_state(
    payload: CatwayStateUpdate,
    catway_number: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
) -> CatwayRead:
    catway_repo = _catway_repo(session)
    async with session.begin():
        result = await catway_usecase.update_catway_state(
            catway_repo,
            catway_number=catway_number,
            catway_state=payload.catway_state,
            ctx=ctx,
        )
        catway = unwrap(result)

    _audit(
        action="catway.updated",
        actor_id=ctx.user_id,
        catway_number=catway_number,
        extra={"catway_state": catway.catway_state},
    )
    return CatwayRead.from_db(catway=catway)


@router.delete("/{catway_number}", response_model=CatwayRemoved)
async def delete_catway(
    catway_number: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
) -> CatwayRemoved:
    catway_repo = _catway_repo(session)
    res_repo = _reservation_repo(session)
    async with session.begin():
        result = await catway_usecase.delete_catway(catway_repo, res_repo, catway_number=catway_number, ctx=ctx)
        removal = unwrap(result)

    _audit(
        action="catway.deleted",
        actor_id=ctx.user_id,
        catway_number=catway_number,
        extra={"removed_reservations": removal.removed_reservations},
    )
    return CatwayRemoved(catway_number=catway_number, removed_reservations=removal.removed_reservations)
