from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.principal import Principal
from ..infrastructure.repositories import (
    SqlAlchemyLabBookingRepository,
    SqlAlchemyLabRepository,
    SqlAlchemyTeamMembershipLedger,
    SqlAlchemyTeamRepository,
)
from ..schemas import LabBookingForm, LabBookingView, LabView
from ..usecases import labs as lab_usecase
from ..utils.time import local_today
from .base import Workflow
from .outcome import Outcome


class LabBookingWorkflow(Workflow):
    resource_type = "lab_booking"
    collections = ("lab_bookings",)

    async def create(self, principal: Optional[Principal], form: LabBookingForm) -> Outcome:
        async def operation(session: AsyncSession, who: Principal) -> int:
            booking = await lab_usecase.create_booking(
                SqlAlchemyLabRepository(session),
                SqlAlchemyLabBookingRepository(session),
                SqlAlchemyTeamRepository(session),
                SqlAlchemyTeamMembershipLedger(session),
                principal=who,
                lab_id=form.lab_id,
                team_id=form.team_id,
                booking_date=form.booking_date,
            )
            return booking.id

        return await self._mutate(
            principal, action="lab_booking.created", verb="create a booking", operation=operation, return_id=True
        )

    async def update(self, principal: Optional[Principal], booking_id: int, form: LabBookingForm) -> Outcome:
        async def operation(session: AsyncSession, who: Principal) -> int:
            booking = await lab_usecase.update_booking(
                SqlAlchemyLabRepository(session),
                SqlAlchemyLabBookingRepository(session),
                SqlAlchemyTeamRepository(session),
                SqlAlchemyTeamMembershipLedger(session),
                principal=who,
                booking_id=booking_id,
                lab_id=form.lab_id,
                team_id=form.team_id,
                booking_date=form.booking_date,
            )
            return booking.id

        return await self._mutate(principal, action="lab_booking.updated", verb="update a booking", operation=operation)

    async def delete(self, principal: Optional[Principal], booking_id: int) -> Outcome:
        async def operation(session: AsyncSession, who: Principal) -> int:
            booking = await lab_usecase.delete_booking(
                SqlAlchemyLabBookingRepository(session), principal=who, booking_id=booking_id
            )
            return booking.id

        return await self._mutate(principal, action="lab_booking.deleted", verb="delete a booking", operation=operation)

    async def list_mine(self, principal: Optional[Principal]) -> list[LabBookingView]:
        async def operation(session: AsyncSession, who: Principal) -> list[LabBookingView]:
            bookings = await lab_usecase.list_my_bookings(
                SqlAlchemyLabBookingRepository(session), principal=who, today=local_today()
            )
            return [LabBookingView.from_db(booking=booking) for booking in bookings]

        return await self._query(principal, verb="view lab bookings", operation=operation)

    async def list_available(
        self,
        principal: Optional[Principal],
        booking_date: Optional[date] = None,
        query: Optional[str] = None,
    ) -> list[LabView]:
        async def operation(session: AsyncSession, who: Principal) -> list[LabView]:
            labs = await lab_usecase.list_available_labs(
                SqlAlchemyLabRepository(session),
                booking_date=booking_date or local_today(),
                query=query,
            )
            return [LabView.from_db(lab=lab) for lab in labs]

        return await self._query(principal, verb="view available labs", operation=operation)

    async def list_labs(self, principal: Optional[Principal]) -> list[LabView]:
        async def operation(session: AsyncSession, who: Principal) -> list[LabView]:
            return [LabView.from_db(lab=lab) for lab in await lab_usecase.list_labs(SqlAlchemyLabRepository(session))]

        return await self._query(principal, verb="view labs", operation=operation)
