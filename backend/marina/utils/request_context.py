from __future__ import annotations

import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .time import utc_now_naive

_request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


def generate_request_id() -> str:
    return uuid.uuid4().hex


def set_request_id(request_id: str | None) -> None:
    """Store request id in context (None to clear)."""
    _request_id_ctx.set(request_id)


def get_request_id() -> Optional[str]:
    return _request_id_ctx.get()


@dataclass(frozen=True)
class RequestContext:
    """Per-request data handed to use cases instead of process-wide session state."""

    user_id: Optional[int] = None
    request_id: Optional[str] = None
    now: datetime = field(default_factory=utc_now_naive)

    @classmethod
    def current(cls, *, user_id: Optional[int] = None) -> "RequestContext":
        return cls(user_id=user_id, request_id=get_request_id())
