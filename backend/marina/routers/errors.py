from typing import TypeVar

from fastapi import HTTPException, status

from ..domain.errors import ErrorCode, ServiceResult

T = TypeVar("T")

STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.MISSING_FIELDS: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_DATE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_RANGE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.CHECK_IN_IN_PAST: status.HTTP_400_BAD_REQUEST,
    ErrorCode.EMPTY_STATE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.PASSWORD_MISMATCH: status.HTTP_400_BAD_REQUEST,
    ErrorCode.WEAK_PASSWORD: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.OVERLAP_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.DUPLICATE_NUMBER: status.HTTP_409_CONFLICT,
    ErrorCode.HAS_ACTIVE_RESERVATIONS: status.HTTP_409_CONFLICT,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.DUPLICATE_EMAIL: status.HTTP_409_CONFLICT,
    ErrorCode.STORE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def unwrap(result: ServiceResult[T]) -> T:
    """Return the result data, or raise the HTTPException matching its error code."""
    if result.ok:
        return result.data  # type: ignore[return-value]
    code = result.error_code or ErrorCode.CONFLICT
    headers = {"Retry-After": "1"} if code.retryable else None
    raise HTTPException(
        status_code=STATUS_BY_CODE.get(code, status.HTTP_400_BAD_REQUEST),
        detail={"error_code": code.value, "message": result.message},
        headers=headers,
    )
