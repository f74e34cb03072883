from __future__ import annotations

from datetime import date, datetime
from typing import Any, ClassVar, Optional, Tuple, cast

from sqlalchemy import Select, delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased, joinedload

from ..domain.errors import AlreadyLinkedError, DomainError, DuplicateNameError, SlotTakenError
from ..domain.repositories import (
    LabBookingRepository,
    LabRepository,
    MembershipLedger,
    TeamRepository,
    TournamentRepository,
    UserRepository,
    WatchPartyRepository,
)
from ..models import (
    ComputerLab,
    LabBooking,
    Team,
    TeamMember,
    Tournament,
    User,
    WatchParty,
    WatchPartyAttendee,
)
from ..utils.time import utc_now_naive

TEAM_NAME_TAKEN = "A team with that name already exists. Please choose a different name."
TOURNAMENT_NAME_TAKEN = "A tournament with that name already exists. Please choose a different name."
LAB_SLOT_TAKEN = "This lab is already booked for that date. Please pick another lab or date."


# MySQL ER_DUP_ENTRY; other backends are recognised by their driver message.
_DUPLICATE_KEY_ERRNO = 1062
_DUPLICATE_KEY_MARKERS = ("duplicate entry", "duplicate key", "unique constraint failed")


def _is_duplicate_key(exc: IntegrityError) -> bool:
    args = getattr(exc.orig, "args", ())
    if args and args[0] == _DUPLICATE_KEY_ERRNO:
        return True
    message = str(exc.orig).lower()
    return any(marker in message for marker in _DUPLICATE_KEY_MARKERS)


async def _flush_or_raise(session: AsyncSession, error: DomainError) -> None:
    """Flush pending writes, turning a unique-key violation into `error`.

    Foreign-key, NOT NULL and CHECK failures are not the caller's conflict
    and propagate as `IntegrityError`.
    """
    try:
        await session.flush()
    except IntegrityError as exc:
        if not _is_duplicate_key(exc):
            raise
        raise error from exc


def _member_count() -> Any:
    counted = aliased(TeamMember)
    return (
        select(func.count())
        .select_from(counted)
        .where(counted.team_id == Team.id)
        .correlate(Team)
        .scalar_subquery()
    )


def _attendee_count() -> Any:
    counted = aliased(WatchPartyAttendee)
    return (
        select(func.count())
        .select_from(counted)
        .where(counted.watch_party_id == WatchParty.id)
        .correlate(WatchParty)
        .scalar_subquery()
    )


class SqlAlchemyUserRepository(UserRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, user_id: str) -> User | None:
        return await self.session.get(User, user_id)


class _SqlAlchemyLedger(MembershipLedger):
    model: ClassVar[type[TeamMember] | type[WatchPartyAttendee]]
    resource_key: ClassVar[str]
    duplicate_message: ClassVar[str]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _resource_column(self) -> Any:
        return getattr(self.model, self.resource_key)

    async def is_member(self, user_id: str, resource_id: int) -> bool:
        stmt = select(self.model.user_id).where(
            self.model.user_id == user_id,
            self._resource_column() == resource_id,
        )
        return await self.session.scalar(stmt) is not None

    async def add(self, user_id: str, resource_id: int) -> datetime:
        now = utc_now_naive()
        link = self.model(user_id=user_id, joined_at=now, **{self.resource_key: resource_id})
        self.session.add(link)
        await _flush_or_raise(self.session, AlreadyLinkedError(self.duplicate_message))
        return now

    async def remove(self, user_id: str, resource_id: int) -> bool:
        result = await self.session.execute(
            delete(self.model).where(
                self.model.user_id == user_id,
                self._resource_column() == resource_id,
            )
        )
        return bool(cast(Any, result).rowcount)

    async def count(self, resource_id: int) -> int:
        stmt = select(func.count()).select_from(self.model).where(self._resource_column() == resource_id)
        return int(await self.session.scalar(stmt) or 0)


class SqlAlchemyTeamMembershipLedger(_SqlAlchemyLedger):
    model = TeamMember
    resource_key = "team_id"
    duplicate_message = "You are already a member of this team"


class SqlAlchemyAttendanceLedger(_SqlAlchemyLedger):
    model = WatchPartyAttendee
    resource_key = "watch_party_id"
    duplicate_message = "You are already attending this watch party"


class SqlAlchemyTeamRepository(TeamRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, team_id: int) -> Team | None:
        return await self.session.get(Team, team_id)

    async def create(self, *, name: str, creator_id: str) -> Team:
        now = utc_now_naive()
        team = Team(name=name, creator_id=creator_id, created_at=now, updated_at=now)
        self.session.add(team)
        await _flush_or_raise(self.session, DuplicateNameError(TEAM_NAME_TAKEN))
        return team

    async def rename(self, team: Team, name: str) -> Team:
        team.name = name
        team.updated_at = utc_now_naive()
        self.session.add(team)
        await _flush_or_raise(self.session, DuplicateNameError(TEAM_NAME_TAKEN))
        return team

    async def delete(self, team: Team) -> None:
        await self.session.execute(delete(TeamMember).where(TeamMember.team_id == team.id))
        await self.session.execute(delete(LabBooking).where(LabBooking.team_id == team.id))
        await self.session.execute(delete(Team).where(Team.id == team.id))

    async def list_for_member(self, user_id: str) -> list[tuple[Team, datetime, int]]:
        stmt: Select[Tuple[Team, datetime, int]] = (
            select(Team, TeamMember.joined_at, _member_count())
            .join(TeamMember, TeamMember.team_id == Team.id)
            .where(TeamMember.user_id == user_id)
            .order_by(TeamMember.joined_at)
        )
        rows = await self.session.execute(stmt)
        return [(team, joined_at, int(members)) for team, joined_at, members in rows.all()]

    async def list_excluding_member(self, user_id: str) -> list[tuple[Team, int]]:
        mine = select(TeamMember.team_id).where(TeamMember.user_id == user_id)
        stmt: Select[Tuple[Team, int]] = (
            select(Team, _member_count()).where(Team.id.not_in(mine)).order_by(Team.name)
        )
        rows = await self.session.execute(stmt)
        return [(team, int(members)) for team, members in rows.all()]


class SqlAlchemyLabRepository(LabRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, lab_id: int) -> ComputerLab | None:
        return await self.session.get(ComputerLab, lab_id)

    async def list_all(self) -> list[ComputerLab]:
        return list((await self.session.scalars(select(ComputerLab).order_by(ComputerLab.name))).all())

    async def list_unbooked(self, booking_date: date) -> list[ComputerLab]:
        booked = select(LabBooking.lab_id).where(LabBooking.booking_date == booking_date)
        stmt = select(ComputerLab).where(ComputerLab.id.not_in(booked)).order_by(ComputerLab.name)
        return list((await self.session.scalars(stmt)).all())


class SqlAlchemyLabBookingRepository(LabBookingRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, booking_id: int) -> LabBooking | None:
        return await self.session.get(LabBooking, booking_id)

    async def create(
        self,
        *,
        lab_id: int,
        team_id: int,
        booking_date: date,
        booked_by_user_id: str,
    ) -> LabBooking:
        booking = LabBooking(
            lab_id=lab_id,
            team_id=team_id,
            booking_date=booking_date,
            booked_by_user_id=booked_by_user_id,
            created_at=utc_now_naive(),
        )
        self.session.add(booking)
        await _flush_or_raise(self.session, SlotTakenError(LAB_SLOT_TAKEN))
        return booking

    async def reschedule(
        self,
        booking: LabBooking,
        *,
        lab_id: int,
        team_id: int,
        booking_date: date,
    ) -> LabBooking:
        booking.lab_id = lab_id
        booking.team_id = team_id
        booking.booking_date = booking_date
        self.session.add(booking)
        await _flush_or_raise(self.session, SlotTakenError(LAB_SLOT_TAKEN))
        return booking

    async def delete(self, booking: LabBooking) -> None:
        await self.session.execute(delete(LabBooking).where(LabBooking.id == booking.id))

    async def list_upcoming_for_user(self, user_id: str, *, since: date) -> list[LabBooking]:
        stmt = (
            select(LabBooking)
            .options(
                joinedload(LabBooking.lab),
                joinedload(LabBooking.team),
                joinedload(LabBooking.booked_by),
            )
            .where(LabBooking.booked_by_user_id == user_id, LabBooking.booking_date >= since)
            .order_by(LabBooking.booking_date)
        )
        return list((await self.session.scalars(stmt)).all())


class SqlAlchemyTournamentRepository(TournamentRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, tournament_id: int) -> Tournament | None:
        return await self.session.get(Tournament, tournament_id)

    async def create(
        self,
        *,
        name: str,
        event_date: date,
        game_title: str,
        genre: Optional[str],
        prize_fund: Optional[str],
        creator_id: str,
    ) -> Tournament:
        tournament = Tournament(
            name=name,
            event_date=event_date,
            game_title=game_title,
            genre=genre,
            prize_fund=prize_fund,
            creator_id=creator_id,
        )
        self.session.add(tournament)
        await _flush_or_raise(self.session, DuplicateNameError(TOURNAMENT_NAME_TAKEN))
        return tournament

    async def update(
        self,
        tournament: Tournament,
        *,
        name: str,
        event_date: date,
        game_title: str,
        genre: Optional[str],
        prize_fund: Optional[str],
    ) -> Tournament:
        tournament.name = name
        tournament.event_date = event_date
        tournament.game_title = game_title
        tournament.genre = genre
        tournament.prize_fund = prize_fund
        self.session.add(tournament)
        await _flush_or_raise(self.session, DuplicateNameError(TOURNAMENT_NAME_TAKEN))
        return tournament

    async def delete(self, tournament: Tournament) -> None:
        parties = select(WatchParty.id).where(WatchParty.tournament_id == tournament.id)
        await self.session.execute(
            delete(WatchPartyAttendee).where(WatchPartyAttendee.watch_party_id.in_(parties))
        )
        await self.session.execute(delete(WatchParty).where(WatchParty.tournament_id == tournament.id))
        await self.session.execute(delete(Tournament).where(Tournament.id == tournament.id))

    async def list_registered(self, user_id: str) -> list[tuple[Tournament, datetime]]:
        stmt: Select[Tuple[Tournament, datetime]] = (
            select(Tournament, func.min(WatchPartyAttendee.joined_at))
            .join(WatchParty, WatchParty.tournament_id == Tournament.id)
            .join(WatchPartyAttendee, WatchPartyAttendee.watch_party_id == WatchParty.id)
            .where(WatchPartyAttendee.user_id == user_id)
            .group_by(Tournament.id)
            .order_by(Tournament.event_date)
        )
        rows = await self.session.execute(stmt)
        return [(tournament, registered_at) for tournament, registered_at in rows.all()]

    async def list_unregistered(self, user_id: str) -> list[tuple[Tournament, int]]:
        registered = (
            select(WatchParty.tournament_id)
            .join(WatchPartyAttendee, WatchPartyAttendee.watch_party_id == WatchParty.id)
            .where(WatchPartyAttendee.user_id == user_id)
        )
        stmt: Select[Tuple[Tournament, int]] = (
            select(Tournament, func.count(WatchParty.id))
            .outerjoin(WatchParty, WatchParty.tournament_id == Tournament.id)
            .where(Tournament.id.not_in(registered))
            .group_by(Tournament.id)
            .order_by(Tournament.event_date)
        )
        rows = await self.session.execute(stmt)
        return [(tournament, int(parties)) for tournament, parties in rows.all()]

    async def list_options(self) -> list[Tournament]:
        return list((await self.session.scalars(select(Tournament).order_by(Tournament.name))).all())


class SqlAlchemyWatchPartyRepository(WatchPartyRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, party_id: int) -> WatchParty | None:
        return await self.session.get(WatchParty, party_id)

    async def get_for_update(self, party_id: int) -> WatchParty | None:
        result = await self.session.scalar(select(WatchParty).where(WatchParty.id == party_id).with_for_update())
        return result if isinstance(result, WatchParty) else None

    async def first_for_tournament(self, tournament_id: int) -> WatchParty | None:
        stmt = (
            select(WatchParty)
            .where(WatchParty.tournament_id == tournament_id)
            .order_by(WatchParty.id)
            .limit(1)
        )
        return await self.session.scalar(stmt)

    async def attended_for_tournament(self, tournament_id: int, user_id: str) -> WatchParty | None:
        stmt = (
            select(WatchParty)
            .join(WatchPartyAttendee, WatchPartyAttendee.watch_party_id == WatchParty.id)
            .where(WatchParty.tournament_id == tournament_id, WatchPartyAttendee.user_id == user_id)
            .order_by(WatchParty.id)
            .limit(1)
        )
        return await self.session.scalar(stmt)

    async def create(
        self,
        *,
        tournament_id: int,
        creator_id: str,
        party_at: datetime,
        location: str,
        max_attendees: int,
    ) -> WatchParty:
        now = utc_now_naive()
        party = WatchParty(
            tournament_id=tournament_id,
            creator_id=creator_id,
            party_at=party_at,
            location=location,
            max_attendees=max_attendees,
            created_at=now,
            updated_at=now,
        )
        self.session.add(party)
        await self.session.flush()
        return party

    async def update(
        self,
        party: WatchParty,
        *,
        tournament_id: int,
        party_at: datetime,
        location: str,
        max_attendees: int,
    ) -> WatchParty:
        party.tournament_id = tournament_id
        party.party_at = party_at
        party.location = location
        party.max_attendees = max_attendees
        party.updated_at = utc_now_naive()
        self.session.add(party)
        await self.session.flush()
        return party

    async def delete(self, party: WatchParty) -> None:
        await self.session.execute(delete(WatchPartyAttendee).where(WatchPartyAttendee.watch_party_id == party.id))
        await self.session.execute(delete(WatchParty).where(WatchParty.id == party.id))

    async def list_attending(self, user_id: str) -> list[tuple[WatchParty, Tournament, datetime, int]]:
        stmt: Select[Tuple[WatchParty, Tournament, datetime, int]] = (
            select(WatchParty, Tournament, WatchPartyAttendee.joined_at, _attendee_count())
            .join(Tournament, WatchParty.tournament_id == Tournament.id)
            .join(WatchPartyAttendee, WatchPartyAttendee.watch_party_id == WatchParty.id)
            .where(WatchPartyAttendee.user_id == user_id)
            .order_by(WatchParty.party_at)
        )
        rows = await self.session.execute(stmt)
        return [(party, tournament, joined_at, int(count)) for party, tournament, joined_at, count in rows.all()]

    async def list_not_attending(self, user_id: str) -> list[tuple[WatchParty, Tournament, int]]:
        attending = select(WatchPartyAttendee.watch_party_id).where(WatchPartyAttendee.user_id == user_id)
        stmt: Select[Tuple[WatchParty, Tournament, int]] = (
            select(WatchParty, Tournament, _attendee_count())
            .join(Tournament, WatchParty.tournament_id == Tournament.id)
            .where(WatchParty.id.not_in(attending))
            .order_by(WatchParty.party_at)
        )
        rows = await self.session.execute(stmt)
        return [(party, tournament, int(count)) for party, tournament, count in rows.all()]


