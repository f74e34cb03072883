from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status

from ..deps import get_current_principal, get_lab_booking_workflow
from ..domain.principal import Principal
from ..schemas import LabBookingForm, LabBookingView, LabView, OutcomeRead
from ..workflows.labs import LabBookingWorkflow
from .common import respond

router = APIRouter(prefix="", tags=["labs"])


@router.get("/labs", response_model=List[LabView])
async def list_labs(
    principal: Principal = Depends(get_current_principal),
    workflow: LabBookingWorkflow = Depends(get_lab_booking_workflow),
) -> list[LabView]:
    return await workflow.list_labs(principal)


@router.get("/labs/available", response_model=List[LabView])
async def list_available_labs(
    booking_date: Optional[date] = Query(default=None, alias="date"),
    q: Optional[str] = Query(default=None, max_length=255),
    principal: Principal = Depends(get_current_principal),
    workflow: LabBookingWorkflow = Depends(get_lab_booking_workflow),
) -> list[LabView]:
    return await workflow.list_available(principal, booking_date, q)


@router.post("/lab-bookings", response_model=OutcomeRead, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: LabBookingForm,
    response: Response,
    principal: Principal = Depends(get_current_principal),
    workflow: LabBookingWorkflow = Depends(get_lab_booking_workflow),
) -> OutcomeRead:
    outcome = await workflow.create(principal, payload)
    return respond(outcome, response, success_status=status.HTTP_201_CREATED)


@router.put("/lab-bookings/{booking_id}", response_model=OutcomeRead)
async def update_booking(
    payload: LabBookingForm,
    response: Response,
    booking_id: int = Path(..., ge=1),
    principal: Principal = Depends(get_current_principal),
    workflow: LabBookingWorkflow = Depends(get_lab_booking_workflow),
) -> OutcomeRead:
    return respond(await workflow.update(principal, booking_id, payload), response)


@router.delete("/lab-bookings/{booking_id}", response_model=OutcomeRead)
async def delete_booking(
    response: Response,
    booking_id: int = Path(..., ge=1),
    principal: Principal = Depends(get_current_principal),
    workflow: LabBookingWorkflow = Depends(get_lab_booking_workflow),
) -> OutcomeRead:
    return respond(await workflow.delete(principal, booking_id), response)


@router.get("/me/lab-bookings", response_model=List[LabBookingView])
async def list_my_bookings(
    principal: Principal = Depends(get_current_principal),
    workflow: LabBookingWorkflow = Depends(get_lab_booking_workflow),
) -> list[LabBookingView]:
    return await workflow.list_mine(principal)
