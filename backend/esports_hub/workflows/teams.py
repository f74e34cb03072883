from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.principal import Principal
from ..infrastructure.repositories import SqlAlchemyTeamMembershipLedger, SqlAlchemyTeamRepository
from ..schemas import TeamForm, TeamView
from ..usecases import teams as team_usecase
from .base import Workflow
from .outcome import Outcome


class TeamWorkflow(Workflow):
    resource_type = "team"
    collections = ("teams",)

    async def create(self, principal: Optional[Principal], form: TeamForm) -> Outcome:
        async def operation(session: AsyncSession, who: Principal) -> int:
            team = await team_usecase.create_team(
                SqlAlchemyTeamRepository(session),
                SqlAlchemyTeamMembershipLedger(session),
                principal=who,
                name=form.name,
            )
            return team.id

        return await self._mutate(
            principal, action="team.created", verb="create a team", operation=operation, return_id=True
        )

    async def update(self, principal: Optional[Principal], team_id: int, form: TeamForm) -> Outcome:
        async def operation(session: AsyncSession, who: Principal) -> int:
            team = await team_usecase.update_team(
                SqlAlchemyTeamRepository(session),
                principal=who,
                team_id=team_id,
                name=form.name,
            )
            return team.id

        return await self._mutate(principal, action="team.updated", verb="update a team", operation=operation)

    async def delete(self, principal: Optional[Principal], team_id: int) -> Outcome:
        async def operation(session: AsyncSession, who: Principal) -> int:
            team = await team_usecase.delete_team(SqlAlchemyTeamRepository(session), principal=who, team_id=team_id)
            return team.id

        return await self._mutate(principal, action="team.deleted", verb="delete a team", operation=operation)

    async def join(self, principal: Optional[Principal], team_id: int) -> Outcome:
        async def operation(session: AsyncSession, who: Principal) -> int:
            await team_usecase.join_team(
                SqlAlchemyTeamRepository(session),
                SqlAlchemyTeamMembershipLedger(session),
                principal=who,
                team_id=team_id,
            )
            return team_id

        return await self._mutate(principal, action="team.joined", verb="join a team", operation=operation)

    async def leave(self, principal: Optional[Principal], team_id: int) -> Outcome:
        async def operation(session: AsyncSession, who: Principal) -> int:
            await team_usecase.leave_team(
                SqlAlchemyTeamRepository(session),
                SqlAlchemyTeamMembershipLedger(session),
                principal=who,
                team_id=team_id,
            )
            return team_id

        return await self._mutate(principal, action="team.left", verb="leave a team", operation=operation)

    async def list_mine(self, principal: Optional[Principal]) -> list[TeamView]:
        async def operation(session: AsyncSession, who: Principal) -> list[TeamView]:
            rows = await team_usecase.list_my_teams(SqlAlchemyTeamRepository(session), principal=who)
            return [
                TeamView.from_db(team=team, principal_id=who.id, member_count=members, joined_at=joined_at)
                for team, joined_at, members in rows
            ]

        return await self._query(principal, verb="view teams", operation=operation)

    async def list_available(self, principal: Optional[Principal], query: Optional[str] = None) -> list[TeamView]:
        async def operation(session: AsyncSession, who: Principal) -> list[TeamView]:
            rows = await team_usecase.list_available_teams(
                SqlAlchemyTeamRepository(session), principal=who, query=query
            )
            return [TeamView.from_db(team=team, principal_id=who.id, member_count=members) for team, members in rows]

        return await self._query(principal, verb="view available teams", operation=operation)
