from datetime import datetime
from typing import Optional

from ..domain.errors import ForbiddenError, NotFoundError, ValidationFailedError
from ..domain.principal import Principal
from ..domain.repositories import MembershipLedger, TournamentRepository, WatchPartyRepository
from ..domain.services import matches_query, optional_text, validate_max_attendees
from ..models import Tournament, WatchParty
from . import membership

DEFAULT_LOCATION = "TBD"


async def _require_tournament(tournament_repo: TournamentRepository, tournament_id: int) -> Tournament:
    tournament = await tournament_repo.get(tournament_id)
    if tournament is None:
        raise NotFoundError("Tournament not found")
    return tournament


async def create_watch_party(
    tournament_repo: TournamentRepository,
    party_repo: WatchPartyRepository,
    ledger: MembershipLedger,
    *,
    principal: Principal,
    tournament_id: int,
    party_at: Optional[datetime],
    location: Optional[str],
    max_attendees: int,
) -> WatchParty:
    if party_at is None:
        raise ValidationFailedError("Please select a date and time for the watch party")
    await _require_tournament(tournament_repo, tournament_id)
    capacity = validate_max_attendees(max_attendees)
    party = await party_repo.create(
        tournament_id=tournament_id,
        creator_id=principal.id,
        party_at=party_at,
        location=optional_text(location) or DEFAULT_LOCATION,
        max_attendees=capacity,
    )
    # The organizer takes the first seat in the same transaction.
    await ledger.add(principal.id, party.id)
    return party


async def get_owned_party(
    party_repo: WatchPartyRepository,
    *,
    principal: Principal,
    party_id: int,
    verb: str,
    for_update: bool = False,
) -> WatchParty:
    if for_update:
        party = await party_repo.get_for_update(party_id)
    else:
        party = await party_repo.get(party_id)
    if party is None:
        raise NotFoundError("Watch party not found")
    if party.creator_id != principal.id:
        raise ForbiddenError(f"Only the organizer can {verb} this watch party")
    return party


async def update_watch_party(
    tournament_repo: TournamentRepository,
    party_repo: WatchPartyRepository,
    ledger: MembershipLedger,
    *,
    principal: Principal,
    party_id: int,
    tournament_id: int,
    party_at: Optional[datetime],
    location: Optional[str],
    max_attendees: int,
) -> WatchParty:
    if party_at is None:
        raise ValidationFailedError("Please select a date and time for the watch party")
    # Locked so a concurrent join cannot slip in above the new capacity.
    party = await get_owned_party(party_repo, principal=principal, party_id=party_id, verb="edit", for_update=True)
    await _require_tournament(tournament_repo, tournament_id)
    capacity = validate_max_attendees(max_attendees, current_attendees=await ledger.count(party.id))
    return await party_repo.update(
        party,
        tournament_id=tournament_id,
        party_at=party_at,
        location=optional_text(location) or DEFAULT_LOCATION,
        max_attendees=capacity,
    )


async def delete_watch_party(
    party_repo: WatchPartyRepository,
    *,
    principal: Principal,
    party_id: int,
) -> WatchParty:
    party = await get_owned_party(party_repo, principal=principal, party_id=party_id, verb="delete")
    await party_repo.delete(party)
    return party


async def join_watch_party(
    party_repo: WatchPartyRepository,
    ledger: MembershipLedger,
    *,
    principal: Principal,
    party_id: int,
) -> datetime:
    _, joined_at = await membership.reserve_seat(
        party_repo,
        ledger,
        party_id=party_id,
        user_id=principal.id,
        already_message="You are already attending this watch party",
        full_message="This watch party is at maximum capacity",
    )
    return joined_at


async def leave_watch_party(
    party_repo: WatchPartyRepository,
    ledger: MembershipLedger,
    *,
    principal: Principal,
    party_id: int,
) -> None:
    party = await party_repo.get(party_id)
    if party is None:
        raise NotFoundError("Watch party not found")
    await membership.unlink(
        ledger,
        user_id=principal.id,
        resource_id=party.id,
        owner_id=party.creator_id,
        not_member_message="You are not attending this watch party",
        owner_message="As the organizer, you cannot leave the watch party. You can delete it instead.",
    )


async def attendee_count(
    party_repo: WatchPartyRepository,
    ledger: MembershipLedger,
    *,
    party_id: int,
) -> int:
    if await party_repo.get(party_id) is None:
        raise NotFoundError("Watch party not found")
    return await membership.occupancy(ledger, resource_id=party_id)


async def list_my_watch_parties(
    party_repo: WatchPartyRepository,
    *,
    principal: Principal,
) -> list[tuple[WatchParty, Tournament, datetime, int]]:
    return await party_repo.list_attending(principal.id)


async def list_available_watch_parties(
    party_repo: WatchPartyRepository,
    *,
    principal: Principal,
    query: Optional[str] = None,
) -> list[tuple[WatchParty, Tournament, int]]:
    rows = await party_repo.list_not_attending(principal.id)
    return [
        (party, tournament, attendees)
        for party, tournament, attendees in rows
        if matches_query(query, tournament.name, tournament.game_title, party.location)
    ]
