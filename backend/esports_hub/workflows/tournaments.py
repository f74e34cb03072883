from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.principal import Principal
from ..infrastructure.repositories import (
    SqlAlchemyAttendanceLedger,
    SqlAlchemyTournamentRepository,
    SqlAlchemyWatchPartyRepository,
)
from ..schemas import TournamentForm, TournamentOption, TournamentView
from ..usecases import tournaments as tournament_usecase
from .base import Workflow
from .outcome import Outcome


class TournamentWorkflow(Workflow):
    resource_type = "tournament"
    # Registration moves a seat in a watch party, so both lists go stale.
    collections = ("tournaments", "watch_parties")

    async def create(self, principal: Optional[Principal], form: TournamentForm) -> Outcome:
        async def operation(session: AsyncSession, who: Principal) -> int:
            tournament = await tournament_usecase.create_tournament(
                SqlAlchemyTournamentRepository(session),
                principal=who,
                name=form.name,
                event_date=form.event_date,
                game_title=form.game_title,
                genre=form.genre,
                prize_fund=form.prize_fund,
            )
            return tournament.id

        return await self._mutate(
            principal, action="tournament.created", verb="create a tournament", operation=operation, return_id=True
        )

    async def update(self, principal: Optional[Principal], tournament_id: int, form: TournamentForm) -> Outcome:
        async def operation(session: AsyncSession, who: Principal) -> int:
            tournament = await tournament_usecase.update_tournament(
                SqlAlchemyTournamentRepository(session),
                principal=who,
                tournament_id=tournament_id,
                name=form.name,
                event_date=form.event_date,
                game_title=form.game_title,
                genre=form.genre,
                prize_fund=form.prize_fund,
            )
            return tournament.id

        return await self._mutate(
            principal, action="tournament.updated", verb="update a tournament", operation=operation
        )

    async def delete(self, principal: Optional[Principal], tournament_id: int) -> Outcome:
        async def operation(session: AsyncSession, who: Principal) -> int:
            tournament = await tournament_usecase.delete_tournament(
                SqlAlchemyTournamentRepository(session), principal=who, tournament_id=tournament_id
            )
            return tournament.id

        return await self._mutate(
            principal, action="tournament.deleted", verb="delete a tournament", operation=operation
        )

    async def register(self, principal: Optional[Principal], tournament_id: int) -> Outcome:
        async def operation(session: AsyncSession, who: Principal) -> int:
            await tournament_usecase.register_for_tournament(
                SqlAlchemyTournamentRepository(session),
                SqlAlchemyWatchPartyRepository(session),
                SqlAlchemyAttendanceLedger(session),
                principal=who,
                tournament_id=tournament_id,
            )
            return tournament_id

        return await self._mutate(
            principal, action="tournament.registered", verb="register for the tournament", operation=operation
        )

    async def unregister(self, principal: Optional[Principal], tournament_id: int) -> Outcome:
        async def operation(session: AsyncSession, who: Principal) -> int:
            await tournament_usecase.unregister_from_tournament(
                SqlAlchemyTournamentRepository(session),
                SqlAlchemyWatchPartyRepository(session),
                SqlAlchemyAttendanceLedger(session),
                principal=who,
                tournament_id=tournament_id,
            )
            return tournament_id

        return await self._mutate(
            principal, action="tournament.unregistered", verb="unregister from the tournament", operation=operation
        )

    async def list_mine(self, principal: Optional[Principal]) -> list[TournamentView]:
        async def operation(session: AsyncSession, who: Principal) -> list[TournamentView]:
            rows = await tournament_usecase.list_my_tournaments(SqlAlchemyTournamentRepository(session), principal=who)
            return [
                TournamentView.from_db(tournament=tournament, principal_id=who.id, registered_at=registered_at)
                for tournament, registered_at in rows
            ]

        return await self._query(principal, verb="view tournaments", operation=operation)

    async def list_available(
        self, principal: Optional[Principal], query: Optional[str] = None
    ) -> list[TournamentView]:
        async def operation(session: AsyncSession, who: Principal) -> list[TournamentView]:
            rows = await tournament_usecase.list_available_tournaments(
                SqlAlchemyTournamentRepository(session), principal=who, query=query
            )
            return [
                TournamentView.from_db(tournament=tournament, principal_id=who.id, watch_party_count=parties)
                for tournament, parties in rows
            ]

        return await self._query(principal, verb="view available tournaments", operation=operation)

    async def list_options(self, principal: Optional[Principal]) -> list[TournamentOption]:
        async def operation(session: AsyncSession, who: Principal) -> list[TournamentOption]:
            tournaments = await tournament_usecase.list_tournament_options(SqlAlchemyTournamentRepository(session))
            return [TournamentOption(tournament_id=t.id, name=t.name) for t in tournaments]

        return await self._query(principal, verb="view tournaments", operation=operation)
