from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from .request_context import get_request_id

AuditAction = Literal[
    "reservation.created",
    "reservation.deleted",
    "catway.created",
    "catway.updated",
    "catway.deleted",
    "user.created",
    "user.updated",
    "user.deleted",
]

_audit_logger = logging.getLogger("audit")
_audit_logger.setLevel(logging.INFO)
if not _audit_logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    _audit_logger.addHandler(handler)
_audit_logger.propagate = False


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.replace(tzinfo=timezone.utc).isoformat() if value.tzinfo is None else value.isoformat()
    if hasattr(value, "value"):
        return value.value
    return value


def emit_audit_log(
    *,
    action: AuditAction,
    actor_id: Optional[int],
    catway_number: Optional[int] = None,
    reservation_id: Optional[int] = None,
    user_id: Optional[int] = None,
    message: Optional[str] = None,
    extra: Optional[dict[str, Any]] = None,
) -> None:
    """Emit structured JSON audit log. Raises RuntimeError if logging fails."""
    payload: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": "info",
        "action": action,
        "request_id": get_request_id(),
        "actor_id": actor_id,
        "catway_number": catway_number,
        "reservation_id": reservation_id,
        "user_id": user_id,
    }
    if message is not None:
        payload["message"] = message
    if extra:
        payload.update({k: _jsonable(v) for k, v in extra.items()})

    compact_payload = {k: v for k, v in payload.items() if v is not None}
    try:
        _audit_logger.info(json.dumps(compact_payload, ensure_ascii=True))
    except Exception as exc:
        raise RuntimeError("failed to emit audit log") from exc
