from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_serializer

from .domain.occupancy import DashboardSnapshot
from .models import Catway, CatwayType, Reservation, User
from .utils.time import utc_naive_to_aware


def _iso_utc(dt: datetime) -> str:
    return (utc_naive_to_aware(dt) if dt.tzinfo is None else dt).isoformat()


class CatwayCreate(BaseModel):
    catway_number: int = Field(gt=0)
    type: CatwayType
    catway_state: str


class CatwayReplace(BaseModel):
    catway_number: int = Field(gt=0)
    type: CatwayType
    catway_state: str


class CatwayStateUpdate(BaseModel):
    catway_state: Optional[str] = None


class CatwayRead(BaseModel):
    catway_id: int
    catway_number: int
    type: CatwayType
    catway_state: str
    created_at: datetime
    updated_at: datetime

    @field_serializer("created_at", "updated_at")
    def _ser_datetime(self, dt: datetime) -> str:
        return _iso_utc(dt)

    @classmethod
    def from_db(cls, *, catway: Catway) -> "CatwayRead":
        return cls(
            catway_id=catway.id,
            catway_number=catway.catway_number,
            type=catway.type,
            catway_state=catway.catway_state,
            created_at=catway.created_at,
            updated_at=catway.updated_at,
        )


class CatwayRemoved(BaseModel):
    catway_number: int
    removed_reservations: int


class ReservationCreate(BaseModel):
    # Plain optional strings: the validator reports missing or malformed values.
    client_name: Optional[str] = None
    boat_name: Optional[str] = None
    check_in: Optional[str] = None
    check_out: Optional[str] = None


class ReservationRead(BaseModel):
    reservation_id: int
    catway_number: int
    client_name: str
    boat_name: str
    check_in: datetime
    check_out: datetime
    created_at: datetime

    @field_serializer("check_in", "check_out", "created_at")
    def _ser_datetime(self, dt: datetime) -> str:
        return _iso_utc(dt)

    @classmethod
    def from_db(cls, *, reservation: Reservation) -> "ReservationRead":
        return cls(
            reservation_id=reservation.id,
            catway_number=reservation.catway_number,
            client_name=reservation.client_name,
            boat_name=reservation.boat_name,
            check_in=reservation.check_in,
            check_out=reservation.check_out,
            created_at=reservation.created_at,
        )


class CatwayDetailRead(BaseModel):
    catway: CatwayRead
    reservations: list[ReservationRead]


class UserWrite(BaseModel):
    name: str
    email: str
    password: str
    password_confirm: str


class UserRead(BaseModel):
    user_id: int
    name: str
    email: str
    created_at: datetime

    @field_serializer("created_at")
    def _ser_datetime(self, dt: datetime) -> str:
        return _iso_utc(dt)

    @classmethod
    def from_db(cls, *, user: User) -> "UserRead":
        return cls(user_id=user.id, name=user.name, email=user.email, created_at=user.created_at)


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenRead(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class OccupancyRead(BaseModel):
    occupied: int
    available: int


class DashboardRead(BaseModel):
    generated_at: datetime
    total_catways: int
    total_reservations: int
    total_users: int
    occupancy_percentage: float
    total_active_reservations: int
    average_booking_duration_days: float
    occupancy: OccupancyRead
    next_reservation_to_expire: Optional[ReservationRead] = None
    last_catway: Optional[CatwayRead] = None
    recent_bookings: list[ReservationRead]

    @field_serializer("generated_at")
    def _ser_datetime(self, dt: datetime) -> str:
        return _iso_utc(dt)

    @classmethod
    def from_snapshot(cls, snapshot: DashboardSnapshot) -> "DashboardRead":
        upcoming = snapshot.next_reservation_to_expire
        last = snapshot.last_catway
        return cls(
            generated_at=snapshot.generated_at,
            total_catways=snapshot.total_catways,
            total_reservations=snapshot.total_reservations,
            total_users=snapshot.total_users,
            occupancy_percentage=snapshot.occupancy_percentage,
            total_active_reservations=snapshot.total_active_reservations,
            average_booking_duration_days=snapshot.average_booking_duration_days,
            occupancy=OccupancyRead(
                occupied=snapshot.occupancy.occupied,
                available=snapshot.occupancy.available,
            ),
            next_reservation_to_expire=ReservationRead.from_db(reservation=upcoming) if upcoming else None,
            last_catway=CatwayRead.from_db(catway=last) if last else None,
            recent_bookings=[ReservationRead.from_db(reservation=r) for r in snapshot.recent_bookings],
        )
