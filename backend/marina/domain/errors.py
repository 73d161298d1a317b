from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorCode(StrEnum):
    MISSING_FIELDS = "MissingFields"
    INVALID_DATE = "InvalidDate"
    INVALID_RANGE = "InvalidRange"
    CHECK_IN_IN_PAST = "CheckInInPast"
    OVERLAP_CONFLICT = "OverlapConflict"
    DUPLICATE_NUMBER = "DuplicateNumber"
    HAS_ACTIVE_RESERVATIONS = "HasActiveReservations"
    EMPTY_STATE = "EmptyState"
    NOT_FOUND = "NotFound"
    CONFLICT = "ConflictError"
    STORE_UNAVAILABLE = "StoreUnavailable"
    DUPLICATE_EMAIL = "DuplicateEmail"
    PASSWORD_MISMATCH = "PasswordMismatch"
    WEAK_PASSWORD = "WeakPassword"
    INVALID_CREDENTIALS = "InvalidCredentials"

    @property
    def retryable(self) -> bool:
        return self is ErrorCode.STORE_UNAVAILABLE


@dataclass(frozen=True)
class Decision:
    """Outcome of a pure domain rule. Failures carry a reason, never an exception."""

    ok: bool
    reason: Optional[ErrorCode] = None
    message: Optional[str] = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(ok=True)

    @classmethod
    def deny(cls, reason: ErrorCode, message: str) -> "Decision":
        return cls(ok=False, reason=reason, message=message)


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    ok: bool
    data: Optional[T] = None
    error_code: Optional[ErrorCode] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, data: T) -> "ServiceResult[T]":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, error_code: ErrorCode, message: str) -> "ServiceResult[T]":
        return cls(ok=False, error_code=error_code, message=message)

    @classmethod
    def from_decision(cls, decision: Decision) -> "ServiceResult[T]":
        if decision.ok or decision.reason is None:
            raise ValueError("only a refused decision can become a failed result")
        return cls.failure(decision.reason, decision.message or str(decision.reason))

    @classmethod
    def from_store_error(cls, exc: "StoreError") -> "ServiceResult[T]":
        if isinstance(exc, StoreUnavailableError):
            return cls.failure(ErrorCode.STORE_UNAVAILABLE, "the store is temporarily unavailable, try again")
        return cls.failure(ErrorCode.CONFLICT, str(exc) or "conflicting write detected by the store")


class StoreError(Exception):
    """Base class for failures raised at the persistence boundary."""


class ConflictError(StoreError):
    """A uniqueness or overlap constraint was violated by the store."""


class StoreUnavailableError(StoreError):
    """Transient I/O failure (lost connection, pool timeout)."""
