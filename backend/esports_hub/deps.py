import logging
from typing import AsyncIterator

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.exc import ProgrammingError
from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .database import async_session
from .domain.events import ChangeNotifier
from .domain.principal import Principal
from .infrastructure.repositories import SqlAlchemyUserRepository
from .utils.auth import decode_access_token
from .workflows.labs import LabBookingWorkflow
from .workflows.teams import TeamWorkflow
from .workflows.tournaments import TournamentWorkflow
from .workflows.watch_parties import WatchPartyWorkflow

logger = logging.getLogger(__name__)

_notifier = ChangeNotifier()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session


async def get_current_principal(
    authorization: str | None = Header(default=None),
    session: AsyncSession = Depends(get_session),
) -> Principal:
    if authorization is None:
        raise _unauthorized("Authorization header required")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthorized("Bearer token required")

    settings = get_settings()
    try:
        user_id = decode_access_token(
            token.strip(),
            secret=settings.auth_secret,
            algorithms=[settings.auth_algorithm],
        )
    except ValueError as exc:
        raise _unauthorized("Invalid or expired token") from exc

    try:
        user = await SqlAlchemyUserRepository(session).get(user_id)
    except ProgrammingError as exc:
        await session.rollback()
        logger.exception("user lookup failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="user store unavailable",
        ) from exc
    if user is None:
        raise _unauthorized("Unknown user")
    return Principal(id=user.id, first_name=user.first_name, last_name=user.last_name)


def get_notifier() -> ChangeNotifier:
    return _notifier


def get_team_workflow(notifier: ChangeNotifier = Depends(get_notifier)) -> TeamWorkflow:
    return TeamWorkflow(async_session, notifier)


def get_lab_booking_workflow(notifier: ChangeNotifier = Depends(get_notifier)) -> LabBookingWorkflow:
    return LabBookingWorkflow(async_session, notifier)


def get_tournament_workflow(notifier: ChangeNotifier = Depends(get_notifier)) -> TournamentWorkflow:
    return TournamentWorkflow(async_session, notifier)


def get_watch_party_workflow(notifier: ChangeNotifier = Depends(get_notifier)) -> WatchPartyWorkflow:
    return WatchPartyWorkflow(async_session, notifier)
