from dataclasses import dataclass
from typing import Optional

from .errors import (
    AlreadyLinkedError,
    AtCapacityError,
    NotLinkedError,
    OwnerCannotLeaveError,
    ValidationFailedError,
)


@dataclass(frozen=True)
class SeatSnapshot:
    max_attendees: int
    attendees: int
    already_attending: bool


def validate_attendance(
    snapshot: SeatSnapshot,
    *,
    already_message: Optional[str] = None,
    full_message: Optional[str] = None,
) -> int:
    """
    Pure validation: ensures the principal is not seated yet and a seat is free.
    Returns the seats left after joining. Raises domain errors otherwise.
    """
    if snapshot.already_attending:
        raise AlreadyLinkedError(already_message)
    if snapshot.attendees >= snapshot.max_attendees:
        raise AtCapacityError(full_message)
    return snapshot.max_attendees - snapshot.attendees - 1


def validate_leave(
    *,
    is_member: bool,
    is_owner: bool,
    not_member_message: Optional[str] = None,
    owner_message: Optional[str] = None,
) -> None:
    if not is_member:
        raise NotLinkedError(not_member_message)
    if is_owner:
        raise OwnerCannotLeaveError(owner_message)


def validate_max_attendees(max_attendees: int, *, current_attendees: int = 0) -> int:
    if max_attendees < 1:
        raise ValidationFailedError("Max attendees must be at least 1")
    if max_attendees < current_attendees:
        raise AtCapacityError(
            f"Max attendees cannot be lower than the {current_attendees} people already attending"
        )
    return max_attendees


def require_text(value: Optional[str], message: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationFailedError(message)
    return cleaned


def optional_text(value: Optional[str]) -> Optional[str]:
    cleaned = (value or "").strip()
    return cleaned or None


def matches_query(query: Optional[str], *fields: Optional[str]) -> bool:
    """Case-insensitive substring match of `query` against any of `fields`."""
    needle = (query or "").strip().casefold()
    if not needle:
        return True
    return any(needle in field.casefold() for field in fields if field)
