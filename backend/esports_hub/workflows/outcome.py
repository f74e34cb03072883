from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..domain.errors import DomainError, ErrorCode


@dataclass(frozen=True)
class Outcome:
    """Result handed to the presentation layer: `{success, id}` or `{success: False, error}`."""

    success: bool
    id: Optional[int] = None
    error: Optional[str] = None
    code: Optional[ErrorCode] = None

    @classmethod
    def ok(cls, resource_id: Optional[int] = None) -> "Outcome":
        return cls(success=True, id=resource_id)

    @classmethod
    def fail(cls, error: DomainError) -> "Outcome":
        return cls(success=False, error=error.message, code=error.code)

    @classmethod
    def failed(cls, message: str) -> "Outcome":
        return cls(success=False, error=message, code=ErrorCode.FAILED)
