from __future__ import annotations

from dataclasses import dataclass

from .errors import UnauthenticatedError


@dataclass(frozen=True)
class Principal:
    id: str
    first_name: str = ""
    last_name: str = ""

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.id


def resolve_principal(principal: Principal | None, *, action: str | None = None) -> Principal:
    """Fail closed when no principal was supplied by the identity provider."""
    if principal is None or not principal.id:
        if action:
            raise UnauthenticatedError(f"You must be logged in to {action}")
        raise UnauthenticatedError()
    return principal
