from datetime import date
from typing import Any, cast

import pytest
from esports_hub.domain.errors import AlreadyLinkedError, DuplicateNameError, SlotTakenError
from esports_hub.infrastructure.repositories import (
    LAB_SLOT_TAKEN,
    TEAM_NAME_TAKEN,
    SqlAlchemyAttendanceLedger,
    SqlAlchemyLabBookingRepository,
    SqlAlchemyTeamMembershipLedger,
    SqlAlchemyTeamRepository,
    SqlAlchemyTournamentRepository,
    SqlAlchemyWatchPartyRepository,
)
from esports_hub.models import LabBooking, Team, TeamMember, WatchPartyAttendee
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession


class DummySession:
    def __init__(self, *, flush_error: Exception | None = None, scalar_result: Any = None) -> None:
        self.flush_error = flush_error
        self.scalar_result = scalar_result
        self.added: list[Any] = []
        self.statements: list[Any] = []

    def add(self, obj: Any) -> None:
        self.added.append(obj)

    async def flush(self) -> None:
        if self.flush_error is not None:
            raise self.flush_error

    async def scalar(self, stmt: Any) -> Any:
        self.statements.append(stmt)
        return self.scalar_result


def _integrity_error() -> IntegrityError:
    return IntegrityError("INSERT", {}, Exception(1062, "Duplicate entry 'Alpha' for key 'uq_teams_name'"))


def _foreign_key_error() -> IntegrityError:
    return IntegrityError(
        "INSERT",
        {},
        Exception(1452, "Cannot add or update a child row: a foreign key constraint fails"),
    )


def _session(**kwargs: Any) -> AsyncSession:
    return cast(AsyncSession, DummySession(**kwargs))


@pytest.mark.asyncio
async def test_team_create_maps_unique_violation_to_duplicate_name() -> None:
    repo = SqlAlchemyTeamRepository(_session(flush_error=_integrity_error()))
    with pytest.raises(DuplicateNameError) as excinfo:
        await repo.create(name="Alpha", creator_id="alice")
    assert excinfo.value.message == TEAM_NAME_TAKEN


@pytest.mark.asyncio
async def test_team_create_stamps_timestamps() -> None:
    session = DummySession()
    team = await SqlAlchemyTeamRepository(cast(AsyncSession, session)).create(name="Alpha", creator_id="alice")
    assert session.added == [team]
    assert isinstance(team, Team)
    assert team.created_at == team.updated_at
    assert team.created_at.tzinfo is None


@pytest.mark.asyncio
async def test_team_rename_maps_unique_violation() -> None:
    repo = SqlAlchemyTeamRepository(_session(flush_error=_integrity_error()))
    team = Team(id=1, name="Alpha", creator_id="alice")
    with pytest.raises(DuplicateNameError):
        await repo.rename(team, "Beta")


@pytest.mark.asyncio
async def test_tournament_create_maps_unique_violation() -> None:
    repo = SqlAlchemyTournamentRepository(_session(flush_error=_integrity_error()))
    with pytest.raises(DuplicateNameError):
        await repo.create(
            name="Spring Cup",
            event_date=date(2030, 3, 1),
            game_title="Rocket League",
            genre=None,
            prize_fund=None,
            creator_id="alice",
        )


@pytest.mark.asyncio
async def test_lab_booking_create_maps_unique_violation_to_slot_taken() -> None:
    repo = SqlAlchemyLabBookingRepository(_session(flush_error=_integrity_error()))
    with pytest.raises(SlotTakenError) as excinfo:
        await repo.create(lab_id=1, team_id=2, booking_date=date(2025, 5, 1), booked_by_user_id="alice")
    assert excinfo.value.message == LAB_SLOT_TAKEN


@pytest.mark.asyncio
async def test_lab_booking_reschedule_maps_unique_violation() -> None:
    repo = SqlAlchemyLabBookingRepository(_session(flush_error=_integrity_error()))
    booking = LabBooking(id=1, lab_id=1, team_id=2, booking_date=date(2025, 5, 1), booked_by_user_id="alice")
    with pytest.raises(SlotTakenError):
        await repo.reschedule(booking, lab_id=3, team_id=2, booking_date=date(2025, 5, 1))


@pytest.mark.asyncio
async def test_ledgers_map_composite_key_violation_to_already_linked() -> None:
    team_session = DummySession(flush_error=_integrity_error())
    with pytest.raises(AlreadyLinkedError) as excinfo:
        await SqlAlchemyTeamMembershipLedger(cast(AsyncSession, team_session)).add("bob", 1)
    assert excinfo.value.message == "You are already a member of this team"
    assert isinstance(team_session.added[0], TeamMember)

    party_session = DummySession(flush_error=_integrity_error())
    with pytest.raises(AlreadyLinkedError):
        await SqlAlchemyAttendanceLedger(cast(AsyncSession, party_session)).add("bob", 1)
    link = party_session.added[0]
    assert isinstance(link, WatchPartyAttendee)
    assert link.watch_party_id == 1


@pytest.mark.asyncio
async def test_ledger_is_member_and_count_use_scalar() -> None:
    session = DummySession(scalar_result=3)
    ledger = SqlAlchemyTeamMembershipLedger(cast(AsyncSession, session))
    assert await ledger.count(1) == 3
    assert await ledger.is_member("bob", 1) is True

    empty = SqlAlchemyTeamMembershipLedger(_session(scalar_result=None))
    assert await empty.count(1) == 0
    assert await empty.is_member("bob", 1) is False


@pytest.mark.asyncio
async def test_watch_party_lookup_for_update_locks_row() -> None:
    session = DummySession(scalar_result=None)
    repo = SqlAlchemyWatchPartyRepository(cast(AsyncSession, session))

    assert await repo.get_for_update(1) is None
    assert "FOR UPDATE" in str(session.statements[0].compile(compile_kwargs={"literal_binds": True}))


@pytest.mark.asyncio
async def test_foreign_key_violation_is_not_mapped_to_a_conflict() -> None:
    ledger = SqlAlchemyTeamMembershipLedger(_session(flush_error=_foreign_key_error()))
    with pytest.raises(IntegrityError):
        await ledger.add("bob", 999)

    bookings = SqlAlchemyLabBookingRepository(_session(flush_error=_foreign_key_error()))
    with pytest.raises(IntegrityError):
        await bookings.create(lab_id=42, team_id=2, booking_date=date(2025, 5, 1), booked_by_user_id="alice")


@pytest.mark.asyncio
async def test_not_null_violation_is_not_mapped_to_duplicate_name() -> None:
    error = IntegrityError("INSERT", {}, Exception(1048, "Column 'name' cannot be null"))
    repo = SqlAlchemyTeamRepository(_session(flush_error=error))
    with pytest.raises(IntegrityError):
        await repo.create(name="Alpha", creator_id="alice")


@pytest.mark.asyncio
async def test_unique_violation_from_other_drivers_is_recognised() -> None:
    sqlite_error = IntegrityError(
        "INSERT", {}, Exception("UNIQUE constraint failed: lab_bookings.lab_id, lab_bookings.booking_date")
    )
    repo = SqlAlchemyLabBookingRepository(_session(flush_error=sqlite_error))
    with pytest.raises(SlotTakenError):
        await repo.create(lab_id=1, team_id=2, booking_date=date(2025, 5, 1), booked_by_user_id="alice")
