from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol

from ..models import ComputerLab, LabBooking, Team, Tournament, User, WatchParty


class UserRepository(Protocol):
    async def get(self, user_id: str) -> User | None: ...


class MembershipLedger(Protocol):
    """Links principals to a resource; the composite key makes each pair unique."""

    async def is_member(self, user_id: str, resource_id: int) -> bool: ...

    async def add(self, user_id: str, resource_id: int) -> datetime: ...

    async def remove(self, user_id: str, resource_id: int) -> bool: ...

    async def count(self, resource_id: int) -> int: ...


class TeamRepository(Protocol):
    async def get(self, team_id: int) -> Team | None: ...

    async def create(self, *, name: str, creator_id: str) -> Team: ...

    async def rename(self, team: Team, name: str) -> Team: ...

    async def delete(self, team: Team) -> None: ...

    async def list_for_member(self, user_id: str) -> list[tuple[Team, datetime, int]]: ...

    async def list_excluding_member(self, user_id: str) -> list[tuple[Team, int]]: ...


class LabRepository(Protocol):
    async def get(self, lab_id: int) -> ComputerLab | None: ...

    async def list_all(self) -> list[ComputerLab]: ...

    async def list_unbooked(self, booking_date: date) -> list[ComputerLab]: ...


class LabBookingRepository(Protocol):
    async def get(self, booking_id: int) -> LabBooking | None: ...

    async def create(
        self,
        *,
        lab_id: int,
        team_id: int,
        booking_date: date,
        booked_by_user_id: str,
    ) -> LabBooking: ...

    async def reschedule(
        self,
        booking: LabBooking,
        *,
        lab_id: int,
        team_id: int,
        booking_date: date,
    ) -> LabBooking: ...

    async def delete(self, booking: LabBooking) -> None: ...

    async def list_upcoming_for_user(self, user_id: str, *, since: date) -> list[LabBooking]: ...


class TournamentRepository(Protocol):
    async def get(self, tournament_id: int) -> Tournament | None: ...

    async def create(
        self,
        *,
        name: str,
        event_date: date,
        game_title: str,
        genre: Optional[str],
        prize_fund: Optional[str],
        creator_id: str,
    ) -> Tournament: ...

    async def update(
        self,
        tournament: Tournament,
        *,
        name: str,
        event_date: date,
        game_title: str,
        genre: Optional[str],
        prize_fund: Optional[str],
    ) -> Tournament: ...

    async def delete(self, tournament: Tournament) -> None: ...

    async def list_registered(self, user_id: str) -> list[tuple[Tournament, datetime]]: ...

    async def list_unregistered(self, user_id: str) -> list[tuple[Tournament, int]]: ...

    async def list_options(self) -> list[Tournament]: ...


class WatchPartyRepository(Protocol):
    async def get(self, party_id: int) -> WatchParty | None: ...

    async def get_for_update(self, party_id: int) -> WatchParty | None: ...

    async def first_for_tournament(self, tournament_id: int) -> WatchParty | None: ...

    async def attended_for_tournament(self, tournament_id: int, user_id: str) -> WatchParty | None: ...

    async def create(
        self,
        *,
        tournament_id: int,
        creator_id: str,
        party_at: datetime,
        location: str,
        max_attendees: int,
    ) -> WatchParty: ...

    async def update(
        self,
        party: WatchParty,
        *,
        tournament_id: int,
        party_at: datetime,
        location: str,
        max_attendees: int,
    ) -> WatchParty: ...

    async def delete(self, party: WatchParty) -> None: ...

    async def list_attending(self, user_id: str) -> list[tuple[WatchParty, Tournament, datetime, int]]: ...

    async def list_not_attending(self, user_id: str) -> list[tuple[WatchParty, Tournament, int]]: ...
