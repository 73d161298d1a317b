"""Dashboard metrics over catways and reservations.

Every function is pure and takes the reference time explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol, Sequence, TypeVar


class Berth(Protocol):
    catway_number: int
    created_at: datetime


class Booking(Protocol):
    catway_number: int
    check_in: datetime
    check_out: datetime
    created_at: datetime


B = TypeVar("B", bound=Booking)

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class Occupancy:
    occupied: int
    available: int


def _active(reservations: Sequence[B], now: datetime) -> list[B]:
    return [r for r in reservations if r.check_out > now]


def _active_catway_numbers(catways: Sequence[Berth], reservations: Sequence[Booking], now: datetime) -> set[int]:
    known = {c.catway_number for c in catways}
    return {r.catway_number for r in _active(reservations, now) if r.catway_number in known}


def occupancy_percentage(catways: Sequence[Berth], reservations: Sequence[Booking], now: datetime) -> float:
    if not catways:
        return 0
    occupied = len(_active_catway_numbers(catways, reservations, now))
    return round(occupied / len(catways) * 100, 2)


def total_active_reservations(reservations: Sequence[Booking], now: datetime) -> int:
    return len(_active(reservations, now))


def next_reservation_to_expire(reservations: Sequence[B], now: datetime) -> Optional[B]:
    active = _active(reservations, now)
    if not active:
        return None
    return min(active, key=lambda r: r.check_out)


def recent_bookings(reservations: Sequence[B], limit: int) -> list[B]:
    # sorted() is stable with reverse=True, so equal created_at keep input order.
    if limit <= 0:
        return []
    return sorted(reservations, key=lambda r: r.created_at, reverse=True)[:limit]


def average_booking_duration_days(reservations: Sequence[Booking]) -> float:
    if not reservations:
        return 0
    total = sum((r.check_out - r.check_in).total_seconds() for r in reservations)
    return total / SECONDS_PER_DAY / len(reservations)


def occupied_vs_available(catways: Sequence[Berth], reservations: Sequence[Booking], now: datetime) -> Occupancy:
    occupied = len(_active_catway_numbers(catways, reservations, now))
    return Occupancy(occupied=occupied, available=len(catways) - occupied)


@dataclass(frozen=True)
class DashboardSnapshot:
    generated_at: datetime
    total_catways: int
    total_reservations: int
    total_users: int
    occupancy_percentage: float
    total_active_reservations: int
    average_booking_duration_days: float
    occupancy: Occupancy
    next_reservation_to_expire: Optional[Booking] = None
    last_catway: Optional[Berth] = None
    recent_bookings: list[Booking] = field(default_factory=list)


def build_dashboard(
    catways: Sequence[Berth],
    reservations: Sequence[Booking],
    *,
    total_users: int,
    now: datetime,
    recent_limit: int,
) -> DashboardSnapshot:
    last_catway = max(catways, key=lambda c: c.created_at) if catways else None
    return DashboardSnapshot(
        generated_at=now,
        total_catways=len(catways),
        total_reservations=len(reservations),
        total_users=total_users,
        occupancy_percentage=occupancy_percentage(catways, reservations, now),
        total_active_reservations=total_active_reservations(reservations, now),
        average_booking_duration_days=round(average_booking_duration_days(reservations), 2),
        occupancy=occupied_vs_available(catways, reservations, now),
        next_reservation_to_expire=next_reservation_to_expire(reservations, now),
        last_catway=last_catway,
        recent_bookings=recent_bookings(reservations, recent_limit),
    )
