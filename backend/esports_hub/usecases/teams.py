from datetime import datetime
from typing import Optional

from ..domain.errors import ForbiddenError, NotFoundError
from ..domain.principal import Principal
from ..domain.repositories import MembershipLedger, TeamRepository
from ..domain.services import matches_query, require_text
from ..models import Team
from . import membership


async def create_team(
    team_repo: TeamRepository,
    ledger: MembershipLedger,
    *,
    principal: Principal,
    name: str,
) -> Team:
    cleaned = require_text(name, "Team name is required")
    team = await team_repo.create(name=cleaned, creator_id=principal.id)
    # Creator is always a member; both rows commit or neither does.
    await ledger.add(principal.id, team.id)
    return team


async def get_owned_team(
    team_repo: TeamRepository,
    *,
    principal: Principal,
    team_id: int,
    verb: str,
) -> Team:
    team = await team_repo.get(team_id)
    if team is None:
        raise NotFoundError("Team not found")
    if team.creator_id != principal.id:
        raise ForbiddenError(f"Only the team creator can {verb} this team")
    return team


async def update_team(
    team_repo: TeamRepository,
    *,
    principal: Principal,
    team_id: int,
    name: str,
) -> Team:
    cleaned = require_text(name, "Team name is required")
    team = await get_owned_team(team_repo, principal=principal, team_id=team_id, verb="edit")
    return await team_repo.rename(team, cleaned)


async def delete_team(team_repo: TeamRepository, *, principal: Principal, team_id: int) -> Team:
    team = await get_owned_team(team_repo, principal=principal, team_id=team_id, verb="delete")
    await team_repo.delete(team)
    return team


async def join_team(
    team_repo: TeamRepository,
    ledger: MembershipLedger,
    *,
    principal: Principal,
    team_id: int,
) -> datetime:
    team = await team_repo.get(team_id)
    if team is None:
        raise NotFoundError("Team not found")
    return await membership.link(
        ledger,
        user_id=principal.id,
        resource_id=team.id,
        already_message="You are already a member of this team",
    )


async def leave_team(
    team_repo: TeamRepository,
    ledger: MembershipLedger,
    *,
    principal: Principal,
    team_id: int,
) -> None:
    team = await team_repo.get(team_id)
    if team is None:
        raise NotFoundError("Team not found")
    await membership.unlink(
        ledger,
        user_id=principal.id,
        resource_id=team.id,
        owner_id=team.creator_id,
        not_member_message="You are not a member of this team",
        owner_message="As the team creator, you cannot leave the team. You can delete it instead.",
    )


async def list_my_teams(
    team_repo: TeamRepository,
    *,
    principal: Principal,
) -> list[tuple[Team, datetime, int]]:
    return await team_repo.list_for_member(principal.id)


async def list_available_teams(
    team_repo: TeamRepository,
    *,
    principal: Principal,
    query: Optional[str] = None,
) -> list[tuple[Team, int]]:
    rows = await team_repo.list_excluding_member(principal.id)
    return [(team, members) for team, members in rows if matches_query(query, team.name)]
