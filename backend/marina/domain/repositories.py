from __future__ import annotations

from datetime import datetime
from typing import Protocol

from ..models import Catway, CatwayType, Reservation, User


class CatwayRepository(Protocol):
    async def find_all(self) -> list[Catway]: ...

    async def find_by_number(self, catway_number: int, *, for_update: bool = False) -> Catway | None: ...

    async def list_numbers(self) -> list[int]: ...

    async def insert(self, *, catway_number: int, type: CatwayType, catway_state: str) -> Catway: ...

    async def update_state(self, catway: Catway, catway_state: str) -> Catway: ...

    async def replace(
        self,
        catway: Catway,
        *,
        catway_number: int,
        type: CatwayType,
        catway_state: str,
    ) -> Catway: ...

    async def delete(self, catway: Catway) -> None: ...


class ReservationRepository(Protocol):
    async def find_all(self) -> list[Reservation]: ...

    async def find_by_catway(self, catway_number: int) -> list[Reservation]: ...

    async def get(self, reservation_id: int) -> Reservation | None: ...

    async def insert(
        self,
        *,
        catway_number: int,
        client_name: str,
        boat_name: str,
        check_in: datetime,
        check_out: datetime,
    ) -> Reservation:
        """Persist a reservation. Raises ConflictError if it overlaps a stored one."""
        ...

    async def delete(self, reservation: Reservation) -> None: ...

    async def delete_by_catway(self, catway_number: int) -> int: ...


class UserRepository(Protocol):
    async def find_all(self) -> list[User]: ...

    async def get(self, user_id: int) -> User | None: ...

    async def find_by_email(self, email: str) -> User | None: ...

    async def count(self) -> int: ...

    async def insert(self, *, name: str, email: str, password_hash: str) -> User: ...

    async def update(self, user: User, *, name: str, email: str, password_hash: str) -> User: ...

    async def delete(self, user: User) -> None: ...
