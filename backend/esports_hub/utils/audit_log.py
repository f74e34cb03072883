from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from .request_id import get_request_id

AuditAction = Literal[
    "team.created",
    "team.updated",
    "team.deleted",
    "team.joined",
    "team.left",
    "lab_booking.created",
    "lab_booking.updated",
    "lab_booking.deleted",
    "tournament.created",
    "tournament.updated",
    "tournament.deleted",
    "tournament.registered",
    "tournament.unregistered",
    "watch_party.created",
    "watch_party.updated",
    "watch_party.deleted",
    "watch_party.joined",
    "watch_party.left",
]
ResourceType = Literal["team", "lab_booking", "tournament", "watch_party"]

_audit_logger = logging.getLogger("audit")
_audit_logger.setLevel(logging.INFO)
if not _audit_logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    _audit_logger.addHandler(handler)
_audit_logger.propagate = False


class AuditLogError(RuntimeError):
    pass


def emit_audit_log(
    *,
    action: AuditAction,
    principal_id: str,
    resource_type: ResourceType,
    resource_id: Optional[int],
    message: Optional[str] = None,
    extra: Optional[dict[str, Any]] = None,
) -> None:
    """Emit structured JSON audit log. Raises AuditLogError if logging fails."""
    payload: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": "info",
        "action": action,
        "request_id": get_request_id(),
        "principal_id": principal_id,
        "resource_type": resource_type,
        "resource_id": resource_id,
    }
    if message is not None:
        payload["message"] = message
    if extra:
        payload.update(extra)

    # Drop None values to keep the log compact.
    compact_payload = {k: v for k, v in payload.items() if v is not None}
    try:
        _audit_logger.info(json.dumps(compact_payload, ensure_ascii=True, default=str))
    except Exception as exc:
        raise AuditLogError("failed to emit audit log") from exc
