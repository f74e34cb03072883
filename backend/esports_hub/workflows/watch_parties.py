from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.errors import NotFoundError, ValidationFailedError
from ..domain.principal import Principal, resolve_principal
from ..infrastructure.repositories import (
    SqlAlchemyAttendanceLedger,
    SqlAlchemyTournamentRepository,
    SqlAlchemyWatchPartyRepository,
)
from ..schemas import WatchPartyForm, WatchPartyView
from ..usecases import watch_parties as party_usecase
from ..utils.time import combine_local
from .base import Workflow
from .outcome import Outcome

logger = logging.getLogger(__name__)


def _party_at(form: WatchPartyForm) -> datetime:
    try:
        return combine_local(form.party_date, form.party_time)
    except ValueError as exc:
        raise ValidationFailedError("Please enter a valid time (HH:MM)") from exc


class WatchPartyWorkflow(Workflow):
    resource_type = "watch_party"
    collections = ("watch_parties", "tournaments")

    async def create(self, principal: Optional[Principal], form: WatchPartyForm) -> Outcome:
        async def operation(session: AsyncSession, who: Principal) -> int:
            party = await party_usecase.create_watch_party(
                SqlAlchemyTournamentRepository(session),
                SqlAlchemyWatchPartyRepository(session),
                SqlAlchemyAttendanceLedger(session),
                principal=who,
                tournament_id=form.tournament_id,
                party_at=_party_at(form),
                location=form.location,
                max_attendees=form.max_attendees,
            )
            return party.id

        return await self._mutate(
            principal, action="watch_party.created", verb="create a watch party", operation=operation, return_id=True
        )

    async def update(self, principal: Optional[Principal], party_id: int, form: WatchPartyForm) -> Outcome:
        async def operation(session: AsyncSession, who: Principal) -> int:
            party = await party_usecase.update_watch_party(
                SqlAlchemyTournamentRepository(session),
                SqlAlchemyWatchPartyRepository(session),
                SqlAlchemyAttendanceLedger(session),
                principal=who,
                party_id=party_id,
                tournament_id=form.tournament_id,
                party_at=_party_at(form),
                location=form.location,
                max_attendees=form.max_attendees,
            )
            return party.id

        return await self._mutate(
            principal, action="watch_party.updated", verb="update a watch party", operation=operation
        )

    async def delete(self, principal: Optional[Principal], party_id: int) -> Outcome:
        async def operation(session: AsyncSession, who: Principal) -> int:
            party = await party_usecase.delete_watch_party(
                SqlAlchemyWatchPartyRepository(session), principal=who, party_id=party_id
            )
            return party.id

        return await self._mutate(
            principal, action="watch_party.deleted", verb="delete a watch party", operation=operation
        )

    async def join(self, principal: Optional[Principal], party_id: int) -> Outcome:
        async def operation(session: AsyncSession, who: Principal) -> int:
            await party_usecase.join_watch_party(
                SqlAlchemyWatchPartyRepository(session),
                SqlAlchemyAttendanceLedger(session),
                principal=who,
                party_id=party_id,
            )
            return party_id

        return await self._mutate(principal, action="watch_party.joined", verb="join the watch party", operation=operation)

    async def leave(self, principal: Optional[Principal], party_id: int) -> Outcome:
        async def operation(session: AsyncSession, who: Principal) -> int:
            await party_usecase.leave_watch_party(
                SqlAlchemyWatchPartyRepository(session),
                SqlAlchemyAttendanceLedger(session),
                principal=who,
                party_id=party_id,
            )
            return party_id

        return await self._mutate(principal, action="watch_party.left", verb="leave the watch party", operation=operation)

    async def list_mine(self, principal: Optional[Principal]) -> list[WatchPartyView]:
        async def operation(session: AsyncSession, who: Principal) -> list[WatchPartyView]:
            rows = await party_usecase.list_my_watch_parties(SqlAlchemyWatchPartyRepository(session), principal=who)
            return [
                WatchPartyView.from_db(
                    party=party,
                    tournament=tournament,
                    principal_id=who.id,
                    attendee_count=attendees,
                    joined_at=joined_at,
                )
                for party, tournament, joined_at, attendees in rows
            ]

        return await self._query(principal, verb="view watch parties", operation=operation)

    async def list_available(
        self, principal: Optional[Principal], query: Optional[str] = None
    ) -> list[WatchPartyView]:
        async def operation(session: AsyncSession, who: Principal) -> list[WatchPartyView]:
            rows = await party_usecase.list_available_watch_parties(
                SqlAlchemyWatchPartyRepository(session), principal=who, query=query
            )
            return [
                WatchPartyView.from_db(
                    party=party, tournament=tournament, principal_id=who.id, attendee_count=attendees
                )
                for party, tournament, attendees in rows
            ]

        return await self._query(principal, verb="view available watch parties", operation=operation)

    async def attendee_count(self, principal: Optional[Principal], party_id: int) -> Optional[int]:
        """Current occupancy, or None when the party is gone or the store fails."""
        resolve_principal(principal, action="view attendees")
        try:
            async with self.session_factory() as session:
                return await party_usecase.attendee_count(
                    SqlAlchemyWatchPartyRepository(session),
                    SqlAlchemyAttendanceLedger(session),
                    party_id=party_id,
                )
        except NotFoundError:
            return None
        except SQLAlchemyError:
            logger.exception("Error trying to count attendees for watch party %s", party_id)
            return None
