from fastapi import Response, status

from ..domain.errors import ErrorCode
from ..schemas import OutcomeRead
from ..workflows.outcome import Outcome

_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.DUPLICATE_NAME: status.HTTP_409_CONFLICT,
    ErrorCode.SLOT_TAKEN: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_LINKED: status.HTTP_409_CONFLICT,
    ErrorCode.NOT_LINKED: status.HTTP_409_CONFLICT,
    ErrorCode.OWNER_CANNOT_LEAVE: status.HTTP_409_CONFLICT,
    ErrorCode.AT_CAPACITY: status.HTTP_409_CONFLICT,
    ErrorCode.VALIDATION_FAILED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(outcome: Outcome, *, success_status: int = status.HTTP_200_OK) -> int:
    if outcome.success:
        return success_status
    if outcome.code is None:
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return _STATUS_BY_CODE.get(outcome.code, status.HTTP_500_INTERNAL_SERVER_ERROR)


def respond(outcome: Outcome, response: Response, *, success_status: int = status.HTTP_200_OK) -> OutcomeRead:
    """Set the HTTP status from the outcome and return it as the body."""
    response.status_code = status_for(outcome, success_status=success_status)
    return OutcomeRead.from_outcome(outcome)
