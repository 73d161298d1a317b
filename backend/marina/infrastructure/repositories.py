from __future__ import annotations

import asyncio
import functools
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.errors import ConflictError, StoreUnavailableError
from ..domain.repositories import CatwayRepository, ReservationRepository, UserRepository
from ..models import Catway, CatwayType, Reservation, User
from ..utils.time import utc_now_naive

logger = logging.getLogger(__name__)

R = TypeVar("R")


def store_call(method: Callable[..., Awaitable[R]]) -> Callable[..., Awaitable[R]]:
    """Bound the call by the repository timeout and translate driver errors into store errors."""

    @functools.wraps(method)
    async def wrapper(self: "_SqlAlchemyRepository", *args: Any, **kwargs: Any) -> R:
        try:
            async with asyncio.timeout(self.timeout):
                return await method(self, *args, **kwargs)
        except IntegrityError as exc:
            raise ConflictError(str(exc.orig or exc)) from exc
        except (OperationalError, InterfaceError, PoolTimeoutError, TimeoutError) as exc:
            logger.warning("store call %s failed: %s", method.__qualname__, exc)
            await self._discard()
            raise StoreUnavailableError(f"store unavailable during {method.__name__}") from exc

    return wrapper


class _SqlAlchemyRepository:
    def __init__(self, session: AsyncSession, *, timeout: Optional[float] = None) -> None:
        self.session = session
        self.timeout = timeout

    async def _discard(self) -> None:
        # A failed connection leaves the session unusable until rolled back.
        try:
            await self.session.rollback()
        except SQLAlchemyError as exc:
            logger.warning("rollback after store failure also failed: %s", exc)


class SqlAlchemyCatwayRepository(_SqlAlchemyRepository, CatwayRepository):
    @store_call
    async def find_all(self) -> List[Catway]:
        rows = await self.session.scalars(select(Catway).order_by(Catway.catway_number))
        return list(rows.all())

    @store_call
    async def find_by_number(self, catway_number: int, *, for_update: bool = False) -> Catway | None:
        stmt = select(Catway).where(Catway.catway_number == catway_number)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.scalar(stmt)
        return result if isinstance(result, Catway) else None

    @store_call
    async def list_numbers(self) -> List[int]:
        rows = await self.session.scalars(select(Catway.catway_number))
        return list(rows.all())

    @store_call
    async def insert(self, *, catway_number: int, type: CatwayType, catway_state: str) -> Catway:
        now = utc_now_naive()
        catway = Catway(
            catway_number=catway_number,
            type=type,
            catway_state=catway_state,
            created_at=now,
            updated_at=now,
        )
        self.session.add(catway)
        await self.session.flush()
        return catway

    @store_call
    async def update_state(self, catway: Catway, catway_state: str) -> Catway:
        catway.catway_state = catway_state
        catway.updated_at = utc_now_naive()
        self.session.add(catway)
        await self.session.flush()
        return catway

    @store_call
    async def replace(
        self,
        catway: Catway,
        *,
        catway_number: int,
        type: CatwayType,
        catway_state: str,
    ) -> Catway:
        # reservations.catway_number follows through ON UPDATE CASCADE
        catway.catway_number = catway_number
        catway.type = type
        catway.catway_state = catway_state
        catway.updated_at = utc_now_naive()
        self.session.add(catway)
        await self.session.flush()
        return catway

    @store_call
    async def delete(self, catway: Catway) -> None:
        await self.session.delete(catway)
        await self.session.flush()


class SqlAlchemyReservationRepository(_SqlAlchemyRepository, ReservationRepository):
    @store_call
    async def find_all(self) -> List[Reservation]:
        rows = await self.session.scalars(select(Reservation).order_by(Reservation.check_in, Reservation.id))
        return list(rows.all())

    @store_call
    async def find_by_catway(self, catway_number: int) -> List[Reservation]:
        stmt = (
            select(Reservation)
            .where(Reservation.catway_number == catway_number)
            .order_by(Reservation.check_in, Reservation.id)
        )
        rows = await self.session.scalars(stmt)
        return list(rows.all())

    @store_call
    async def get(self, reservation_id: int) -> Reservation | None:
        result = await self.session.scalar(select(Reservation).where(Reservation.id == reservation_id))
        return result if isinstance(result, Reservation) else None

    @store_call
    async def insert(
        self,
        *,
        catway_number: int,
        client_name: str,
        boat_name: str,
        check_in: datetime,
        check_out: datetime,
    ) -> Reservation:
        # Lock the catway row so concurrent inserts on the same catway queue up,
        # then re-read overlapping rows with a locking read (sees committed data).
        await self.session.scalar(
            select(Catway.id).where(Catway.catway_number == catway_number).with_for_update()
        )
        clash = await self.session.scalar(
            select(Reservation.id)
            .where(
                Reservation.catway_number == catway_number,
                Reservation.check_in < check_out,
                Reservation.check_out > check_in,
            )
            .limit(1)
            .with_for_update()
        )
        if clash is not None:
            raise ConflictError(f"reservation {clash} already occupies catway {catway_number} in this period")

        now = utc_now_naive()
        reservation = Reservation(
            catway_number=catway_number,
            client_name=client_name,
            boat_name=boat_name,
            check_in=check_in,
            check_out=check_out,
            created_at=now,
            updated_at=now,
        )
        self.session.add(reservation)
        await self.session.flush()
        return reservation

    @store_call
    async def delete(self, reservation: Reservation) -> None:
        await self.session.delete(reservation)
        await self.session.flush()

    @store_call
    async def delete_by_catway(self, catway_number: int) -> int:
        result = await self.session.execute(
            delete(Reservation)
            .where(Reservation.catway_number == catway_number)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)


class SqlAlchemyUserRepository(_SqlAlchemyRepository, UserRepository):
    @store_call
    async def find_all(self) -> List[User]:
        rows = await self.session.scalars(select(User).order_by(User.id))
        return list(rows.all())

    @store_call
    async def get(self, user_id: int) -> User | None:
        result = await self.session.scalar(select(User).where(User.id == user_id))
        return result if isinstance(result, User) else None

    @store_call
    async def find_by_email(self, email: str) -> User | None:
        result = await self.session.scalar(select(User).where(User.email == email.strip().lower()))
        return result if isinstance(result, User) else None

    @store_call
    async def count(self) -> int:
        return int(await self.session.scalar(select(func.count(User.id))) or 0)

    @store_call
    async def insert(self, *, name: str, email: str, password_hash: str) -> User:
        now = utc_now_naive()
        user = User(
            name=name,
            email=email.strip().lower(),
            password_hash=password_hash,
            created_at=now,
            updated_at=now,
        )
        self.session.add(user)
        await self.session.flush()
        return user

    @store_call
    async def update(self, user: User, *, name: str, email: str, password_hash: str) -> User:
        user.name = name
        user.email = email.strip().lower()
        user.password_hash = password_hash
        user.updated_at = utc_now_naive()
        self.session.add(user)
        await self.session.flush()
        return user

    @store_call
    async def delete(self, user: User) -> None:
        await self.session.delete(user)
        await self.session.flush()
