"""Reservation validity rules.

A reservation occupies the half-open interval [check_in, check_out) on one
catway. Two reservations overlap when

    existing.check_in < candidate.check_out AND existing.check_out > candidate.check_in

so a booking that starts exactly when another ends is accepted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Protocol

from ..utils.time import parse_timestamp
from .errors import Decision, ErrorCode


class Booked(Protocol):
    catway_number: int
    check_in: datetime
    check_out: datetime


@dataclass(frozen=True)
class ReservationRequest:
    """Raw reservation input, before any validation."""

    catway_number: object
    client_name: object
    boat_name: object
    check_in: object
    check_out: object


@dataclass(frozen=True)
class ReservationDraft:
    """Normalised reservation fields, ready to be persisted as-is."""

    catway_number: int
    client_name: str
    boat_name: str
    check_in: datetime
    check_out: datetime


@dataclass(frozen=True)
class ReservationDecision(Decision):
    draft: Optional[ReservationDraft] = None
    conflicting: Optional[Booked] = None


def overlaps(existing: Booked, check_in: datetime, check_out: datetime) -> bool:
    return existing.check_in < check_out and existing.check_out > check_in


def _present(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _catway_number(value: object) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and value.strip().isdigit():
        number = int(value.strip())
    else:
        return None
    return number if number > 0 else None


def _deny(reason: ErrorCode, message: str, *, conflicting: Optional[Booked] = None) -> ReservationDecision:
    return ReservationDecision(ok=False, reason=reason, message=message, conflicting=conflicting)


def validate_reservation(
    request: ReservationRequest,
    existing: Iterable[Booked],
    *,
    now: datetime,
) -> ReservationDecision:
    """
    Pure validation of a candidate reservation against the catway's existing bookings.
    Checks run in a fixed order and the first failing rule decides the reason.
    """
    fields = (request.catway_number, request.client_name, request.boat_name, request.check_in, request.check_out)
    if not all(_present(value) for value in fields):
        return _deny(ErrorCode.MISSING_FIELDS, "catway_number, client_name, boat_name, check_in and check_out are required")

    catway_number = _catway_number(request.catway_number)
    if catway_number is None:
        return _deny(ErrorCode.MISSING_FIELDS, "catway_number must be a positive integer")

    check_in = parse_timestamp(request.check_in)
    check_out = parse_timestamp(request.check_out)
    if check_in is None or check_out is None:
        return _deny(ErrorCode.INVALID_DATE, "check_in and check_out must be valid dates")

    if check_in >= check_out:
        return _deny(ErrorCode.INVALID_RANGE, "check_in must be earlier than check_out")

    # Reservations may not start in the past.
    if check_in < now:
        return _deny(ErrorCode.CHECK_IN_IN_PAST, "check_in cannot be in the past")

    for booking in existing:
        if booking.catway_number != catway_number:
            continue
        if overlaps(booking, check_in, check_out):
            return _deny(
                ErrorCode.OVERLAP_CONFLICT,
                "a reservation already exists for this period",
                conflicting=booking,
            )

    draft = ReservationDraft(
        catway_number=catway_number,
        client_name=str(request.client_name).strip(),
        boat_name=str(request.boat_name).strip(),
        check_in=check_in,
        check_out=check_out,
    )
    return ReservationDecision(ok=True, draft=draft)
