import asyncio
from datetime import date

import pytest
from esports_hub.domain.errors import (
    DomainError,
    ForbiddenError,
    NotFoundError,
    SlotTakenError,
    ValidationFailedError,
)
from esports_hub.domain.principal import Principal
from esports_hub.models import Team
from esports_hub.usecases import labs as uc
from esports_hub.usecases import teams as team_uc
from fakes import (
    FakeLabBookingRepository,
    FakeLabRepository,
    FakeTeamMembershipLedger,
    FakeTeamRepository,
    Store,
)

DAY = date(2030, 5, 1)


class Repos:
    def __init__(self, store: Store) -> None:
        self.labs = FakeLabRepository(store)
        self.bookings = FakeLabBookingRepository(store)
        self.teams = FakeTeamRepository(store)
        self.ledger = FakeTeamMembershipLedger(store)

    async def book(self, principal: Principal, *, lab_id: int, team_id: int, booking_date: date | None = DAY):
        return await uc.create_booking(
            self.labs,
            self.bookings,
            self.teams,
            self.ledger,
            principal=principal,
            lab_id=lab_id,
            team_id=team_id,
            booking_date=booking_date,
        )


async def _team(store: Store, owner: Principal, name: str = "Red") -> Team:
    return await team_uc.create_team(FakeTeamRepository(store), FakeTeamMembershipLedger(store), principal=owner, name=name)


@pytest.mark.asyncio
async def test_create_booking_records_booker() -> None:
    store = Store()
    alice = store.add_user("alice")
    lab = store.add_lab("Lab A")
    team = await _team(store, alice)
    repos = Repos(store)

    booking = await repos.book(alice, lab_id=lab.id, team_id=team.id)

    assert booking.booked_by_user_id == "alice"
    assert booking.booking_date == DAY
    assert store.bookings[booking.id] is booking


@pytest.mark.asyncio
async def test_create_booking_validates_target() -> None:
    store = Store()
    alice, bob = store.add_user("alice"), store.add_user("bob")
    lab = store.add_lab("Lab A")
    team = await _team(store, alice)
    repos = Repos(store)

    with pytest.raises(ValidationFailedError):
        await repos.book(alice, lab_id=lab.id, team_id=team.id, booking_date=None)
    with pytest.raises(NotFoundError) as excinfo:
        await repos.book(alice, lab_id=999, team_id=team.id)
    assert excinfo.value.message == "Lab not found"
    with pytest.raises(NotFoundError):
        await repos.book(alice, lab_id=lab.id, team_id=999)
    with pytest.raises(ForbiddenError):
        await repos.book(bob, lab_id=lab.id, team_id=team.id)
    assert store.bookings == {}


@pytest.mark.asyncio
async def test_second_booking_for_same_lab_and_date_is_rejected() -> None:
    store = Store()
    alice = store.add_user("alice")
    lab = store.add_lab("Lab A")
    red = await _team(store, alice, "Red")
    blue = await _team(store, alice, "Blue")
    repos = Repos(store)

    await repos.book(alice, lab_id=lab.id, team_id=red.id)
    with pytest.raises(SlotTakenError):
        await repos.book(alice, lab_id=lab.id, team_id=blue.id)
    assert len(store.bookings) == 1


@pytest.mark.asyncio
async def test_concurrent_bookings_for_one_slot_admit_exactly_one() -> None:
    store = Store()
    alice, bob = store.add_user("alice"), store.add_user("bob")
    lab = store.add_lab("Lab A")
    red = await _team(store, alice, "Red")
    blue = await _team(store, bob, "Blue")

    results = await asyncio.gather(
        Repos(store).book(alice, lab_id=lab.id, team_id=red.id),
        Repos(store).book(bob, lab_id=lab.id, team_id=blue.id),
        return_exceptions=True,
    )

    errors = [r for r in results if isinstance(r, DomainError)]
    assert len(errors) == 1
    assert isinstance(errors[0], SlotTakenError)
    assert len(store.bookings) == 1


@pytest.mark.asyncio
async def test_reschedule_keeps_own_slot_and_rejects_taken_one() -> None:
    store = Store()
    alice, bob = store.add_user("alice"), store.add_user("bob")
    lab_a, lab_b = store.add_lab("Lab A"), store.add_lab("Lab B")
    team = await _team(store, alice)
    repos = Repos(store)
    mine = await repos.book(alice, lab_id=lab_a.id, team_id=team.id)
    await repos.book(alice, lab_id=lab_b.id, team_id=team.id)

    same = await uc.update_booking(
        repos.labs,
        repos.bookings,
        repos.teams,
        repos.ledger,
        principal=alice,
        booking_id=mine.id,
        lab_id=lab_a.id,
        team_id=team.id,
        booking_date=DAY,
    )
    assert same.lab_id == lab_a.id

    with pytest.raises(SlotTakenError):
        await uc.update_booking(
            repos.labs,
            repos.bookings,
            repos.teams,
            repos.ledger,
            principal=alice,
            booking_id=mine.id,
            lab_id=lab_b.id,
            team_id=team.id,
            booking_date=DAY,
        )
    with pytest.raises(ForbiddenError):
        await uc.update_booking(
            repos.labs,
            repos.bookings,
            repos.teams,
            repos.ledger,
            principal=bob,
            booking_id=mine.id,
            lab_id=lab_a.id,
            team_id=team.id,
            booking_date=date(2030, 5, 2),
        )


@pytest.mark.asyncio
async def test_delete_booking_frees_the_slot() -> None:
    store = Store()
    alice, bob = store.add_user("alice"), store.add_user("bob")
    lab = store.add_lab("Lab A")
    team = await _team(store, alice)
    repos = Repos(store)
    booking = await repos.book(alice, lab_id=lab.id, team_id=team.id)

    with pytest.raises(ForbiddenError):
        await uc.delete_booking(repos.bookings, principal=bob, booking_id=booking.id)
    with pytest.raises(NotFoundError):
        await uc.delete_booking(repos.bookings, principal=alice, booking_id=999)

    await uc.delete_booking(repos.bookings, principal=alice, booking_id=booking.id)
    assert [lab.name for lab in await uc.list_available_labs(repos.labs, booking_date=DAY)] == ["Lab A"]


@pytest.mark.asyncio
async def test_list_my_bookings_only_upcoming() -> None:
    store = Store()
    alice = store.add_user("alice")
    lab = store.add_lab("Lab A")
    team = await _team(store, alice)
    repos = Repos(store)
    await repos.book(alice, lab_id=lab.id, team_id=team.id, booking_date=date(2030, 4, 1))
    upcoming = await repos.book(alice, lab_id=lab.id, team_id=team.id, booking_date=date(2030, 6, 1))

    rows = await uc.list_my_bookings(repos.bookings, principal=alice, today=date(2030, 5, 1))

    assert [b.id for b in rows] == [upcoming.id]
    assert rows[0].lab.name == "Lab A"
    assert rows[0].team.name == "Red"


@pytest.mark.asyncio
async def test_available_labs_exclude_booked_and_filter_by_query() -> None:
    store = Store()
    alice = store.add_user("alice")
    lab_a = store.add_lab("Lab A", description="Streaming rigs")
    store.add_lab("Lab B", description="Quiet room")
    team = await _team(store, alice)
    repos = Repos(store)
    await repos.book(alice, lab_id=lab_a.id, team_id=team.id)

    free = await uc.list_available_labs(repos.labs, booking_date=DAY)
    assert [lab.name for lab in free] == ["Lab B"]

    other_day = await uc.list_available_labs(repos.labs, booking_date=date(2030, 5, 2), query="stream")
    assert [lab.name for lab in other_day] == ["Lab A"]
    assert len(await uc.list_labs(repos.labs)) == 2
