from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    DUPLICATE_NAME = "duplicate_name"
    SLOT_TAKEN = "slot_taken"
    ALREADY_LINKED = "already_linked"
    NOT_LINKED = "not_linked"
    OWNER_CANNOT_LEAVE = "owner_cannot_leave"
    AT_CAPACITY = "at_capacity"
    VALIDATION_FAILED = "validation_failed"
    FAILED = "failed"


class DomainError(Exception):
    """Base for failures that are reported back to the caller as an outcome."""

    code: ErrorCode = ErrorCode.FAILED
    default_message = "The operation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthenticatedError(DomainError):
    code = ErrorCode.UNAUTHENTICATED
    default_message = "You must be logged in"


class ForbiddenError(DomainError):
    code = ErrorCode.FORBIDDEN
    default_message = "You don't have permission to do that"


class NotFoundError(DomainError):
    code = ErrorCode.NOT_FOUND
    default_message = "Not found"


class DuplicateNameError(DomainError):
    code = ErrorCode.DUPLICATE_NAME
    default_message = "That name is already taken. Please choose a different name."


class SlotTakenError(DomainError):
    code = ErrorCode.SLOT_TAKEN
    default_message = "That slot is already booked"


class AlreadyLinkedError(DomainError):
    code = ErrorCode.ALREADY_LINKED
    default_message = "You are already linked to this resource"


class NotLinkedError(DomainError):
    code = ErrorCode.NOT_LINKED
    default_message = "You are not linked to this resource"


class OwnerCannotLeaveError(DomainError):
    code = ErrorCode.OWNER_CANNOT_LEAVE
    default_message = "As the creator, you cannot leave. You can delete it instead."


class AtCapacityError(DomainError):
    code = ErrorCode.AT_CAPACITY
    default_message = "This is at maximum capacity"


class ValidationFailedError(DomainError):
    code = ErrorCode.VALIDATION_FAILED
    default_message = "Invalid input"
