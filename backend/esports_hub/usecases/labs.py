from datetime import date
from typing import Optional

from ..domain.errors import ForbiddenError, NotFoundError, ValidationFailedError
from ..domain.principal import Principal
from ..domain.repositories import LabBookingRepository, LabRepository, MembershipLedger, TeamRepository
from ..domain.services import matches_query
from ..models import ComputerLab, LabBooking


async def _check_booking_target(
    lab_repo: LabRepository,
    team_repo: TeamRepository,
    team_ledger: MembershipLedger,
    *,
    principal: Principal,
    lab_id: int,
    team_id: int,
    booking_date: Optional[date],
) -> date:
    if booking_date is None:
        raise ValidationFailedError("Please select a booking date")
    if await lab_repo.get(lab_id) is None:
        raise NotFoundError("Lab not found")
    if await team_repo.get(team_id) is None:
        raise NotFoundError("Team not found")
    if not await team_ledger.is_member(principal.id, team_id):
        raise ForbiddenError("You can only book labs for teams you belong to")
    return booking_date


async def create_booking(
    lab_repo: LabRepository,
    booking_repo: LabBookingRepository,
    team_repo: TeamRepository,
    team_ledger: MembershipLedger,
    *,
    principal: Principal,
    lab_id: int,
    team_id: int,
    booking_date: Optional[date],
) -> LabBooking:
    day = await _check_booking_target(
        lab_repo,
        team_repo,
        team_ledger,
        principal=principal,
        lab_id=lab_id,
        team_id=team_id,
        booking_date=booking_date,
    )
    # No pre-check for the slot: the (lab, date) unique constraint decides races.
    return await booking_repo.create(
        lab_id=lab_id,
        team_id=team_id,
        booking_date=day,
        booked_by_user_id=principal.id,
    )


async def get_owned_booking(
    booking_repo: LabBookingRepository,
    *,
    principal: Principal,
    booking_id: int,
    verb: str,
) -> LabBooking:
    booking = await booking_repo.get(booking_id)
    if booking is None:
        raise NotFoundError("Booking not found")
    if booking.booked_by_user_id != principal.id:
        raise ForbiddenError(f"Only the person who made this booking can {verb} it")
    return booking


async def update_booking(
    lab_repo: LabRepository,
    booking_repo: LabBookingRepository,
    team_repo: TeamRepository,
    team_ledger: MembershipLedger,
    *,
    principal: Principal,
    booking_id: int,
    lab_id: int,
    team_id: int,
    booking_date: Optional[date],
) -> LabBooking:
    booking = await get_owned_booking(booking_repo, principal=principal, booking_id=booking_id, verb="edit")
    day = await _check_booking_target(
        lab_repo,
        team_repo,
        team_ledger,
        principal=principal,
        lab_id=lab_id,
        team_id=team_id,
        booking_date=booking_date,
    )
    return await booking_repo.reschedule(booking, lab_id=lab_id, team_id=team_id, booking_date=day)


async def delete_booking(
    booking_repo: LabBookingRepository,
    *,
    principal: Principal,
    booking_id: int,
) -> LabBooking:
    booking = await get_owned_booking(booking_repo, principal=principal, booking_id=booking_id, verb="delete")
    await booking_repo.delete(booking)
    return booking


async def list_my_bookings(
    booking_repo: LabBookingRepository,
    *,
    principal: Principal,
    today: date,
) -> list[LabBooking]:
    return await booking_repo.list_upcoming_for_user(principal.id, since=today)


async def list_labs(lab_repo: LabRepository) -> list[ComputerLab]:
    return await lab_repo.list_all()


async def list_available_labs(
    lab_repo: LabRepository,
    *,
    booking_date: date,
    query: Optional[str] = None,
) -> list[ComputerLab]:
    labs = await lab_repo.list_unbooked(booking_date)
    return [lab for lab in labs if matches_query(query, lab.name, lab.description)]
