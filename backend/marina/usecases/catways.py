from __future__ import annotations

import logging
from dataclasses import dataclass

from ..domain import lifecycle
from ..domain.errors import ErrorCode, ServiceResult, StoreError
from ..domain.repositories import CatwayRepository, ReservationRepository
from ..models import Catway, CatwayType, Reservation
from ..utils.request_context import RequestContext
from .retry import ReadPolicy

logger = logging.getLogger(__name__)

DEFAULT_READS = ReadPolicy()


@dataclass(frozen=True)
class CatwayDetail:
    catway: Catway
    reservations: list[Reservation]


@dataclass(frozen=True)
class CatwayRemoval:
    catway: Catway
    removed_reservations: int


def _not_found(catway_number: int) -> ServiceResult:
    return ServiceResult.failure(ErrorCode.NOT_FOUND, f"catway {catway_number} does not exist")


async def list_catways(
    catway_repo: CatwayRepository,
    *,
    reads: ReadPolicy = DEFAULT_READS,
) -> ServiceResult[list[Catway]]:
    try:
        return ServiceResult.success(await reads.run(catway_repo.find_all))
    except StoreError as exc:
        return ServiceResult.from_store_error(exc)


async def get_catway(
    catway_repo: CatwayRepository,
    res_repo: ReservationRepository,
    *,
    catway_number: int,
    reads: ReadPolicy = DEFAULT_READS,
) -> ServiceResult[CatwayDetail]:
    try:
        catway = await reads.run(lambda: catway_repo.find_by_number(catway_number))
        if catway is None:
            return _not_found(catway_number)
        reservations = await reads.run(lambda: res_repo.find_by_catway(catway_number))
    except StoreError as exc:
        return ServiceResult.from_store_error(exc)
    return ServiceResult.success(CatwayDetail(catway=catway, reservations=reservations))


async def create_catway(
    catway_repo: CatwayRepository,
    *,
    catway_number: int,
    type: CatwayType,
    catway_state: str,
    ctx: RequestContext,
) -> ServiceResult[Catway]:
    decision = lifecycle.can_change_state(catway_state)
    if not decision.ok:
        return ServiceResult.from_decision(decision)
    try:
        decision = lifecycle.can_create(catway_number, await catway_repo.list_numbers())
        if not decision.ok:
            return ServiceResult.from_decision(decision)
        catway = await catway_repo.insert(
            catway_number=catway_number,
            type=type,
            catway_state=catway_state.strip(),
        )
    except StoreError as exc:
        # a concurrent insert of the same number trips the unique index
        return ServiceResult.from_store_error(exc)

    logger.info("catway %s created by user %s", catway_number, ctx.user_id)
    return ServiceResult.success(catway)


async def update_catway_state(
    catway_repo: CatwayRepository,
    *,
    catway_number: int,
    catway_state: str | None,
    ctx: RequestContext,
) -> ServiceResult[Catway]:
    decision = lifecycle.can_change_state(catway_state)
    if not decision.ok or catway_state is None:
        return ServiceResult.from_decision(decision)
    try:
        catway = await catway_repo.find_by_number(catway_number, for_update=True)
        if catway is None:
            return _not_found(catway_number)
        catway = await catway_repo.update_state(catway, catway_state.strip())
    except StoreError as exc:
        return ServiceResult.from_store_error(exc)

    logger.info("catway %s state set to %r by user %s", catway_number, catway.catway_state, ctx.user_id)
    return ServiceResult.success(catway)


async def replace_catway(
    catway_repo: CatwayRepository,
    *,
    catway_number: int,
    new_catway_number: int,
    type: CatwayType,
    catway_state: str | None,
    ctx: RequestContext,
) -> ServiceResult[Catway]:
    try:
        catway = await catway_repo.find_by_number(catway_number, for_update=True)
        if catway is None:
            return _not_found(catway_number)
        decision = lifecycle.can_replace(
            catway_number,
            new_catway_number,
            catway_state,
            await catway_repo.list_numbers(),
        )
        if not decision.ok or catway_state is None:
            return ServiceResult.from_decision(decision)
        catway = await catway_repo.replace(
            catway,
            catway_number=new_catway_number,
            type=type,
            catway_state=catway_state.strip(),
        )
    except StoreError as exc:
        return ServiceResult.from_store_error(exc)

    logger.info("catway %s replaced as %s by user %s", catway_number, new_catway_number, ctx.user_id)
    return ServiceResult.success(catway)


async def delete_catway(
    catway_repo: CatwayRepository,
    res_repo: ReservationRepository,
    *,
    catway_number: int,
    ctx: RequestContext,
) -> ServiceResult[CatwayRemoval]:
    """
    Delete a catway unless it still has active or upcoming reservations.
    Expired reservations are removed together with it; the caller's transaction makes both deletes atomic.
    """
    try:
        catway = await catway_repo.find_by_number(catway_number, for_update=True)
        if catway is None:
            return _not_found(catway_number)
        reservations = await res_repo.find_by_catway(catway_number)
        decision = lifecycle.can_delete(catway_number, reservations, now=ctx.now)
        if not decision.ok:
            logger.info("catway %s deletion refused: %s", catway_number, decision.reason)
            return ServiceResult.from_decision(decision)
        removed = await res_repo.delete_by_catway(catway_number)
        await catway_repo.delete(catway)
    except StoreError as exc:
        return ServiceResult.from_store_error(exc)

    logger.info("catway %s deleted with %d expired reservations by user %s", catway_number, removed, ctx.user_id)
    return ServiceResult.success(CatwayRemoval(catway=catway, removed_reservations=removed))
