import asyncio
from datetime import datetime
from typing import Any

import pytest
from marina.domain.errors import ConflictError, StoreUnavailableError
from marina.infrastructure.repositories import SqlAlchemyReservationRepository, SqlAlchemyUserRepository
from sqlalchemy.exc import IntegrityError, OperationalError


class ScriptedSession:
    """Answers scalar() calls from a script; exceptions in the script are raised."""

    def __init__(self, *answers: Any, delay: float = 0) -> None:
        self.answers = list(answers)
        self.delay = delay
        self.added: list[Any] = []
        self.rollbacks = 0

    async def scalar(self, *args: Any, **kwargs: Any) -> Any:
        if self.delay:
            await asyncio.sleep(self.delay)
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer

    def add(self, obj: Any) -> None:
        self.added.append(obj)

    async def flush(self) -> None:
        for obj in self.added:
            if getattr(obj, "id", None) is None:
                obj.id = 500

    async def rollback(self) -> None:
        self.rollbacks += 1


def _insert(repo: SqlAlchemyReservationRepository):
    return repo.insert(
        catway_number=1,
        client_name="Jane Doe",
        boat_name="Sea Breeze",
        check_in=datetime(2026, 3, 10),
        check_out=datetime(2026, 3, 12),
    )


@pytest.mark.asyncio
async def test_insert_refuses_overlap_found_by_locking_read() -> None:
    session = ScriptedSession(1, 42)
    repo = SqlAlchemyReservationRepository(session)  # type: ignore[arg-type]
    with pytest.raises(ConflictError, match="reservation 42"):
        await _insert(repo)
    assert session.added == []


@pytest.mark.asyncio
async def test_insert_adds_row_when_period_is_free() -> None:
    session = ScriptedSession(1, None)
    repo = SqlAlchemyReservationRepository(session)  # type: ignore[arg-type]
    reservation = await _insert(repo)
    assert reservation.id == 500
    assert session.added == [reservation]
    assert reservation.created_at == reservation.updated_at


@pytest.mark.asyncio
async def test_operational_error_becomes_store_unavailable() -> None:
    session = ScriptedSession(OperationalError("SELECT", None, Exception("gone away")))
    repo = SqlAlchemyUserRepository(session)  # type: ignore[arg-type]
    with pytest.raises(StoreUnavailableError):
        await repo.count()
    assert session.rollbacks == 1


@pytest.mark.asyncio
async def test_integrity_error_becomes_conflict() -> None:
    session = ScriptedSession(IntegrityError("INSERT", None, Exception("Duplicate entry")))
    repo = SqlAlchemyUserRepository(session)  # type: ignore[arg-type]
    with pytest.raises(ConflictError):
        await repo.find_by_email("a@example.com")
    assert session.rollbacks == 0


@pytest.mark.asyncio
async def test_slow_call_times_out_as_store_unavailable() -> None:
    session = ScriptedSession(3, delay=1)
    repo = SqlAlchemyUserRepository(session, timeout=0.01)  # type: ignore[arg-type]
    with pytest.raises(StoreUnavailableError):
        await repo.count()
    assert session.rollbacks == 1
