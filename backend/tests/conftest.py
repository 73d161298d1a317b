import asyncio
import itertools
from datetime import datetime, timedelta
from typing import List, Optional

import pytest
from marina.domain.errors import ConflictError, StoreUnavailableError
from marina.models import Catway, CatwayType, Reservation, User

NOW = datetime(2026, 1, 5, 12, 0, 0)


class FakeStore:
    """In-memory stand-in for the database shared by the fake repositories."""

    def __init__(self, *, yield_on_read: bool = False) -> None:
        self.catways: dict[int, Catway] = {}
        self.reservations: List[Reservation] = []
        self.users: List[User] = []
        self.failing_reads = 0
        self.failing_writes = 0
        self.read_calls = 0
        self.yield_on_read = yield_on_read
        self._ids = itertools.count(1)

    def next_id(self) -> int:
        return next(self._ids)

    async def read(self) -> None:
        self.read_calls += 1
        if self.yield_on_read:
            await asyncio.sleep(0)
        if self.failing_reads:
            self.failing_reads -= 1
            raise StoreUnavailableError("connection lost")

    def write(self) -> None:
        if self.failing_writes:
            self.failing_writes -= 1
            raise StoreUnavailableError("connection lost")

    def add_catway(self, number: int, *, state: str = "operational", created_at: datetime = NOW) -> Catway:
        catway = Catway(
            id=self.next_id(),
            catway_number=number,
            type=CatwayType.LONG,
            catway_state=state,
            created_at=created_at,
            updated_at=created_at,
        )
        self.catways[number] = catway
        return catway

    def add_reservation(
        self,
        catway_number: int,
        check_in: datetime,
        check_out: datetime,
        *,
        created_at: datetime = NOW,
    ) -> Reservation:
        reservation = Reservation(
            id=self.next_id(),
            catway_number=catway_number,
            client_name="Jane Doe",
            boat_name="Sea Breeze",
            check_in=check_in,
            check_out=check_out,
            created_at=created_at,
            updated_at=created_at,
        )
        self.reservations.append(reservation)
        return reservation

    def add_user(self, email: str, *, password_hash: str = "x", name: str = "Admin") -> User:
        user = User(
            id=self.next_id(),
            name=name,
            email=email.strip().lower(),
            password_hash=password_hash,
            created_at=NOW,
            updated_at=NOW,
        )
        self.users.append(user)
        return user


class FakeCatwayRepo:
    def __init__(self, store: FakeStore) -> None:
        self.store = store

    async def find_all(self) -> List[Catway]:
        await self.store.read()
        return [self.store.catways[n] for n in sorted(self.store.catways)]

    async def find_by_number(self, catway_number: int, *, for_update: bool = False) -> Optional[Catway]:
        await self.store.read()
        return self.store.catways.get(catway_number)

    async def list_numbers(self) -> List[int]:
        await self.store.read()
        return list(self.store.catways)

    async def insert(self, *, catway_number: int, type: CatwayType, catway_state: str) -> Catway:
        self.store.write()
        if catway_number in self.store.catways:
            raise ConflictError("duplicate catway_number")
        catway = self.store.add_catway(catway_number, state=catway_state)
        catway.type = type
        return catway

    async def update_state(self, catway: Catway, catway_state: str) -> Catway:
        self.store.write()
        catway.catway_state = catway_state
        return catway

    async def replace(self, catway: Catway, *, catway_number: int, type: CatwayType, catway_state: str) -> Catway:
        self.store.write()
        old_number = catway.catway_number
        del self.store.catways[old_number]
        catway.catway_number = catway_number
        catway.type = type
        catway.catway_state = catway_state
        self.store.catways[catway_number] = catway
        for reservation in self.store.reservations:
            if reservation.catway_number == old_number:
                reservation.catway_number = catway_number
        return catway

    async def delete(self, catway: Catway) -> None:
        self.store.write()
        del self.store.catways[catway.catway_number]


class FakeReservationRepo:
    def __init__(self, store: FakeStore) -> None:
        self.store = store

    # Reads take their snapshot before the simulated round trip, so a
    # concurrent writer can commit between the query and its result.
    async def find_all(self) -> List[Reservation]:
        rows = list(self.store.reservations)
        await self.store.read()
        return rows

    async def find_by_catway(self, catway_number: int) -> List[Reservation]:
        rows = [r for r in self.store.reservations if r.catway_number == catway_number]
        await self.store.read()
        return rows

    async def get(self, reservation_id: int) -> Optional[Reservation]:
        await self.store.read()
        return next((r for r in self.store.reservations if r.id == reservation_id), None)

    async def insert(
        self,
        *,
        catway_number: int,
        client_name: str,
        boat_name: str,
        check_in: datetime,
        check_out: datetime,
    ) -> Reservation:
        # Check and append without yielding, like a constraint enforced inside the store.
        self.store.write()
        for r in self.store.reservations:
            if r.catway_number == catway_number and r.check_in < check_out and r.check_out > check_in:
                raise ConflictError(f"reservation {r.id} overlaps")
        reservation = self.store.add_reservation(catway_number, check_in, check_out)
        reservation.client_name = client_name
        reservation.boat_name = boat_name
        return reservation

    async def delete(self, reservation: Reservation) -> None:
        self.store.write()
        self.store.reservations.remove(reservation)

    async def delete_by_catway(self, catway_number: int) -> int:
        self.store.write()
        before = len(self.store.reservations)
        self.store.reservations = [r for r in self.store.reservations if r.catway_number != catway_number]
        return before - len(self.store.reservations)


class FakeUserRepo:
    def __init__(self, store: FakeStore) -> None:
        self.store = store

    async def find_all(self) -> List[User]:
        await self.store.read()
        return list(self.store.users)

    async def get(self, user_id: int) -> Optional[User]:
        await self.store.read()
        return next((u for u in self.store.users if u.id == user_id), None)

    async def find_by_email(self, email: str) -> Optional[User]:
        await self.store.read()
        wanted = email.strip().lower()
        return next((u for u in self.store.users if u.email == wanted), None)

    async def count(self) -> int:
        await self.store.read()
        return len(self.store.users)

    async def insert(self, *, name: str, email: str, password_hash: str) -> User:
        self.store.write()
        return self.store.add_user(email, password_hash=password_hash, name=name)

    async def update(self, user: User, *, name: str, email: str, password_hash: str) -> User:
        self.store.write()
        user.name = name
        user.email = email.strip().lower()
        user.password_hash = password_hash
        return user

    async def delete(self, user: User) -> None:
        self.store.write()
        self.store.users.remove(user)


def days(n: float) -> timedelta:
    return timedelta(days=n)


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def catway_repo(store: FakeStore) -> FakeCatwayRepo:
    return FakeCatwayRepo(store)


@pytest.fixture
def res_repo(store: FakeStore) -> FakeReservationRepo:
    return FakeReservationRepo(store)


@pytest.fixture
def user_repo(store: FakeStore) -> FakeUserRepo:
    return FakeUserRepo(store)
