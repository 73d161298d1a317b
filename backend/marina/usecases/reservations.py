from __future__ import annotations

import logging
from dataclasses import asdict

from ..domain.errors import ErrorCode, ServiceResult, StoreError
from ..domain.repositories import CatwayRepository, ReservationRepository
from ..domain.validator import ReservationRequest, validate_reservation
from ..models import Reservation
from ..utils.locks import KeyedLocks
from ..utils.request_context import RequestContext
from .retry import ReadPolicy

logger = logging.getLogger(__name__)

DEFAULT_READS = ReadPolicy()


async def list_reservations(
    res_repo: ReservationRepository,
    *,
    reads: ReadPolicy = DEFAULT_READS,
) -> ServiceResult[list[Reservation]]:
    try:
        return ServiceResult.success(await reads.run(res_repo.find_all))
    except StoreError as exc:
        return ServiceResult.from_store_error(exc)


async def list_catway_reservations(
    catway_repo: CatwayRepository,
    res_repo: ReservationRepository,
    *,
    catway_number: int,
    reads: ReadPolicy = DEFAULT_READS,
) -> ServiceResult[list[Reservation]]:
    try:
        catway = await reads.run(lambda: catway_repo.find_by_number(catway_number))
        if catway is None:
            return ServiceResult.failure(ErrorCode.NOT_FOUND, f"catway {catway_number} does not exist")
        reservations = await reads.run(lambda: res_repo.find_by_catway(catway_number))
    except StoreError as exc:
        return ServiceResult.from_store_error(exc)
    return ServiceResult.success(reservations)


async def get_reservation(
    res_repo: ReservationRepository,
    *,
    catway_number: int,
    reservation_id: int,
    reads: ReadPolicy = DEFAULT_READS,
) -> ServiceResult[Reservation]:
    try:
        reservation = await reads.run(lambda: res_repo.get(reservation_id))
    except StoreError as exc:
        return ServiceResult.from_store_error(exc)
    if reservation is None or reservation.catway_number != catway_number:
        return ServiceResult.failure(ErrorCode.NOT_FOUND, "reservation not found")
    return ServiceResult.success(reservation)


async def create_reservation(
    catway_repo: CatwayRepository,
    res_repo: ReservationRepository,
    request: ReservationRequest,
    *,
    ctx: RequestContext,
    locks: KeyedLocks,
) -> ServiceResult[Reservation]:
    # Reject malformed input before touching the store.
    precheck = validate_reservation(request, (), now=ctx.now)
    if not precheck.ok or precheck.draft is None:
        return ServiceResult.from_decision(precheck)
    catway_number = precheck.draft.catway_number

    # Serialises fetch, validate and insert within this process. The lock is released
    # before the caller commits, so the store's locked re-read still decides races.
    async with locks.hold(catway_number):
        try:
            catway = await catway_repo.find_by_number(catway_number)
            if catway is None:
                return ServiceResult.failure(ErrorCode.NOT_FOUND, f"catway {catway_number} does not exist")

            existing = await res_repo.find_by_catway(catway_number)
            decision = validate_reservation(request, existing, now=ctx.now)
            if not decision.ok or decision.draft is None:
                logger.info("reservation on catway %s rejected: %s", catway_number, decision.reason)
                return ServiceResult.from_decision(decision)

            reservation = await res_repo.insert(**asdict(decision.draft))
        except StoreError as exc:
            logger.warning("reservation on catway %s not stored: %s", catway_number, exc)
            return ServiceResult.from_store_error(exc)

    logger.info("reservation %s created on catway %s", reservation.id, catway_number)
    return ServiceResult.success(reservation)


async def delete_reservation(
    res_repo: ReservationRepository,
    *,
    catway_number: int,
    reservation_id: int,
    ctx: RequestContext,
) -> ServiceResult[Reservation]:
    try:
        reservation = await res_repo.get(reservation_id)
        if reservation is None or reservation.catway_number != catway_number:
            return ServiceResult.failure(ErrorCode.NOT_FOUND, "reservation not found")
        await res_repo.delete(reservation)
    except StoreError as exc:
        return ServiceResult.from_store_error(exc)

    logger.info("reservation %s deleted from catway %s by user %s", reservation_id, catway_number, ctx.user_id)
    return ServiceResult.success(reservation)
