from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from .config import get_settings
from .models import ComputerLab, LabBooking, Team, Tournament, WatchParty
from .utils.time import utc_naive_to_local
from .workflows.outcome import Outcome


class TeamForm(BaseModel):
    name: str = Field(min_length=1, max_length=255)


class LabBookingForm(BaseModel):
    lab_id: int = Field(ge=1)
    team_id: int = Field(ge=1)
    booking_date: date


class TournamentForm(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    game_title: str = Field(min_length=1, max_length=255)
    event_date: date
    genre: Optional[str] = Field(default=None, max_length=255)
    prize_fund: Optional[str] = Field(default=None, max_length=255)


class WatchPartyForm(BaseModel):
    tournament_id: int = Field(ge=1)
    party_date: date
    party_time: str = Field(pattern=r"^\d{1,2}:\d{2}$", description="Local wall-clock time, HH:MM")
    location: Optional[str] = Field(default=None, max_length=255)
    max_attendees: int = Field(default_factory=lambda: get_settings().default_max_attendees, ge=1)


class OutcomeRead(BaseModel):
    success: bool
    id: Optional[int] = None
    error: Optional[str] = None
    code: Optional[str] = None

    @classmethod
    def from_outcome(cls, outcome: Outcome) -> "OutcomeRead":
        return cls(
            success=outcome.success,
            id=outcome.id,
            error=outcome.error,
            code=outcome.code.value if outcome.code is not None else None,
        )


class TeamView(BaseModel):
    team_id: int
    name: str
    creator_id: str
    is_owner: bool
    member_count: int
    created_at: datetime
    updated_at: datetime
    joined_at: Optional[datetime] = None

    @classmethod
    def from_db(
        cls,
        *,
        team: Team,
        principal_id: str,
        member_count: int,
        joined_at: Optional[datetime] = None,
    ) -> "TeamView":
        return cls(
            team_id=team.id,
            name=team.name,
            creator_id=team.creator_id,
            is_owner=team.creator_id == principal_id,
            member_count=member_count,
            created_at=team.created_at,
            updated_at=team.updated_at,
            joined_at=joined_at,
        )


class LabView(BaseModel):
    lab_id: int
    name: str
    computer_count: int
    description: Optional[str]

    @classmethod
    def from_db(cls, *, lab: ComputerLab) -> "LabView":
        return cls(
            lab_id=lab.id,
            name=lab.name,
            computer_count=lab.computer_count,
            description=lab.description,
        )


class LabBookingView(BaseModel):
    booking_id: int
    booking_date: date
    created_at: datetime
    lab_id: int
    lab_name: str
    team_id: int
    team_name: str
    booked_by_id: str
    booked_by_first_name: str
    booked_by_last_name: str

    @classmethod
    def from_db(cls, *, booking: LabBooking) -> "LabBookingView":
        return cls(
            booking_id=booking.id,
            booking_date=booking.booking_date,
            created_at=booking.created_at,
            lab_id=booking.lab_id,
            lab_name=booking.lab.name,
            team_id=booking.team_id,
            team_name=booking.team.name,
            booked_by_id=booking.booked_by_user_id,
            booked_by_first_name=booking.booked_by.first_name,
            booked_by_last_name=booking.booked_by.last_name,
        )


class TournamentView(BaseModel):
    tournament_id: int
    name: str
    game_title: str
    genre: Optional[str]
    event_date: date
    prize_fund: Optional[str]
    creator_id: Optional[str]
    is_owner: bool
    watch_party_count: Optional[int] = None
    registered_at: Optional[datetime] = None

    @classmethod
    def from_db(
        cls,
        *,
        tournament: Tournament,
        principal_id: str,
        watch_party_count: Optional[int] = None,
        registered_at: Optional[datetime] = None,
    ) -> "TournamentView":
        return cls(
            tournament_id=tournament.id,
            name=tournament.name,
            game_title=tournament.game_title,
            genre=tournament.genre,
            event_date=tournament.event_date,
            prize_fund=tournament.prize_fund,
            creator_id=tournament.creator_id,
            is_owner=tournament.creator_id == principal_id,
            watch_party_count=watch_party_count,
            registered_at=registered_at,
        )


class TournamentOption(BaseModel):
    tournament_id: int
    name: str


class WatchPartyView(BaseModel):
    watch_party_id: int
    tournament_id: int
    tournament_name: str
    game_title: str
    party_at: datetime
    location: str
    max_attendees: int
    attendee_count: int
    seats_left: int
    creator_id: str
    is_owner: bool
    created_at: datetime
    joined_at: Optional[datetime] = None

    @classmethod
    def from_db(
        cls,
        *,
        party: WatchParty,
        tournament: Tournament,
        principal_id: str,
        attendee_count: int,
        joined_at: Optional[datetime] = None,
    ) -> "WatchPartyView":
        return cls(
            watch_party_id=party.id,
            tournament_id=tournament.id,
            tournament_name=tournament.name,
            game_title=tournament.game_title,
            party_at=utc_naive_to_local(party.party_at),
            location=party.location,
            max_attendees=party.max_attendees,
            attendee_count=attendee_count,
            seats_left=max(party.max_attendees - attendee_count, 0),
            creator_id=party.creator_id,
            is_owner=party.creator_id == principal_id,
            created_at=party.created_at,
            joined_at=joined_at,
        )


class AttendeeCountRead(BaseModel):
    watch_party_id: int
    count: int
