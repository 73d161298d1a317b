from __future__ import annotations

from datetime import datetime
from typing import Iterable, Protocol

from .errors import Decision, ErrorCode


class Stay(Protocol):
    catway_number: int
    check_out: datetime


def can_create(catway_number: int, existing_numbers: Iterable[int]) -> Decision:
    if catway_number in set(existing_numbers):
        return Decision.deny(ErrorCode.DUPLICATE_NUMBER, f"catway {catway_number} already exists")
    return Decision.allow()


def can_change_state(new_state: str | None) -> Decision:
    # States are free-form labels; only blank ones are rejected.
    if new_state is None or not new_state.strip():
        return Decision.deny(ErrorCode.EMPTY_STATE, "catway state must not be empty")
    return Decision.allow()


def can_replace(
    current_number: int,
    new_number: int,
    new_state: str | None,
    existing_numbers: Iterable[int],
) -> Decision:
    state_decision = can_change_state(new_state)
    if not state_decision.ok:
        return state_decision
    if new_number != current_number:
        return can_create(new_number, existing_numbers)
    return Decision.allow()


def can_delete(catway_number: int, reservations: Iterable[Stay], *, now: datetime) -> Decision:
    """
    Deletion is refused while any reservation on the catway is active or upcoming
    (check_out > now). Expired reservations do not block and are removed with the catway.
    """
    for reservation in reservations:
        if reservation.catway_number == catway_number and reservation.check_out > now:
            return Decision.deny(
                ErrorCode.HAS_ACTIVE_RESERVATIONS,
                f"catway {catway_number} has active reservations",
            )
    return Decision.allow()
