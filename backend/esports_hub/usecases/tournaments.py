from datetime import date, datetime
from typing import Optional

from ..domain.errors import AlreadyLinkedError, ForbiddenError, NotFoundError, NotLinkedError, ValidationFailedError
from ..domain.principal import Principal
from ..domain.repositories import MembershipLedger, TournamentRepository, WatchPartyRepository
from ..domain.services import matches_query, optional_text, require_text
from ..models import Tournament, WatchParty
from . import membership

NO_WATCH_PARTY = (
    "No watch party exists for this tournament yet. Please check the Watch Parties page "
    "to join an existing party or create a new one."
)


def _clean_fields(
    *,
    name: str,
    event_date: Optional[date],
    game_title: str,
) -> tuple[str, date, str]:
    cleaned_name = require_text(name, "Tournament name is required")
    cleaned_game = require_text(game_title, "Game title is required")
    if event_date is None:
        raise ValidationFailedError("Please select a tournament date")
    return cleaned_name, event_date, cleaned_game


async def create_tournament(
    tournament_repo: TournamentRepository,
    *,
    principal: Principal,
    name: str,
    event_date: Optional[date],
    game_title: str,
    genre: Optional[str] = None,
    prize_fund: Optional[str] = None,
) -> Tournament:
    cleaned_name, day, game = _clean_fields(name=name, event_date=event_date, game_title=game_title)
    return await tournament_repo.create(
        name=cleaned_name,
        event_date=day,
        game_title=game,
        genre=optional_text(genre),
        prize_fund=optional_text(prize_fund),
        creator_id=principal.id,
    )


async def get_owned_tournament(
    tournament_repo: TournamentRepository,
    *,
    principal: Principal,
    tournament_id: int,
    verb: str,
) -> Tournament:
    tournament = await tournament_repo.get(tournament_id)
    if tournament is None:
        raise NotFoundError("Tournament not found")
    if tournament.creator_id != principal.id:
        raise ForbiddenError(f"Only the tournament creator can {verb} this tournament")
    return tournament


async def update_tournament(
    tournament_repo: TournamentRepository,
    *,
    principal: Principal,
    tournament_id: int,
    name: str,
    event_date: Optional[date],
    game_title: str,
    genre: Optional[str] = None,
    prize_fund: Optional[str] = None,
) -> Tournament:
    cleaned_name, day, game = _clean_fields(name=name, event_date=event_date, game_title=game_title)
    tournament = await get_owned_tournament(
        tournament_repo, principal=principal, tournament_id=tournament_id, verb="edit"
    )
    return await tournament_repo.update(
        tournament,
        name=cleaned_name,
        event_date=day,
        game_title=game,
        genre=optional_text(genre),
        prize_fund=optional_text(prize_fund),
    )


async def delete_tournament(
    tournament_repo: TournamentRepository,
    *,
    principal: Principal,
    tournament_id: int,
) -> Tournament:
    tournament = await get_owned_tournament(
        tournament_repo, principal=principal, tournament_id=tournament_id, verb="delete"
    )
    await tournament_repo.delete(tournament)
    return tournament


async def register_for_tournament(
    tournament_repo: TournamentRepository,
    party_repo: WatchPartyRepository,
    ledger: MembershipLedger,
    *,
    principal: Principal,
    tournament_id: int,
) -> WatchParty:
    """Registration is a seat in the tournament's first watch party."""
    if await tournament_repo.get(tournament_id) is None:
        raise NotFoundError("Tournament not found")
    if await party_repo.attended_for_tournament(tournament_id, principal.id) is not None:
        raise AlreadyLinkedError("You are already registered for this tournament")
    party = await party_repo.first_for_tournament(tournament_id)
    if party is None:
        raise NotFoundError(NO_WATCH_PARTY)
    seated, _ = await membership.reserve_seat(
        party_repo,
        ledger,
        party_id=party.id,
        user_id=principal.id,
        already_message="You are already registered for this tournament",
        full_message=(
            "This watch party has reached its maximum capacity. "
            "Please check if there are other watch parties available."
        ),
    )
    return seated


async def unregister_from_tournament(
    tournament_repo: TournamentRepository,
    party_repo: WatchPartyRepository,
    ledger: MembershipLedger,
    *,
    principal: Principal,
    tournament_id: int,
) -> WatchParty:
    if await tournament_repo.get(tournament_id) is None:
        raise NotFoundError("Tournament not found")
    party = await party_repo.attended_for_tournament(tournament_id, principal.id)
    if party is None:
        raise NotLinkedError("You are not registered for this tournament")
    await membership.unlink(
        ledger,
        user_id=principal.id,
        resource_id=party.id,
        owner_id=party.creator_id,
        not_member_message="You are not registered for this tournament",
        owner_message=(
            "As the organizer of this tournament's watch party, you cannot unregister. "
            "You can delete the watch party instead."
        ),
    )
    return party


async def list_my_tournaments(
    tournament_repo: TournamentRepository,
    *,
    principal: Principal,
) -> list[tuple[Tournament, datetime]]:
    return await tournament_repo.list_registered(principal.id)


async def list_available_tournaments(
    tournament_repo: TournamentRepository,
    *,
    principal: Principal,
    query: Optional[str] = None,
) -> list[tuple[Tournament, int]]:
    rows = await tournament_repo.list_unregistered(principal.id)
    return [
        (tournament, parties)
        for tournament, parties in rows
        if matches_query(query, tournament.name, tournament.game_title, tournament.genre)
    ]


async def list_tournament_options(tournament_repo: TournamentRepository) -> list[Tournament]:
    return await tournament_repo.list_options()
