from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status

from ..deps import get_current_principal, get_watch_party_workflow
from ..domain.principal import Principal
from ..schemas import AttendeeCountRead, OutcomeRead, WatchPartyForm, WatchPartyView
from ..workflows.watch_parties import WatchPartyWorkflow
from .common import respond

router = APIRouter(prefix="", tags=["watch-parties"])


@router.post("/watch-parties", response_model=OutcomeRead, status_code=status.HTTP_201_CREATED)
async def create_watch_party(
    payload: WatchPartyForm,
    response: Response,
    principal: Principal = Depends(get_current_principal),
    workflow: WatchPartyWorkflow = Depends(get_watch_party_workflow),
) -> OutcomeRead:
    outcome = await workflow.create(principal, payload)
    return respond(outcome, response, success_status=status.HTTP_201_CREATED)


@router.put("/watch-parties/{party_id}", response_model=OutcomeRead)
async def update_watch_party(
    payload: WatchPartyForm,
    response: Response,
    party_id: int = Path(..., ge=1),
    principal: Principal = Depends(get_current_principal),
    workflow: WatchPartyWorkflow = Depends(get_watch_party_workflow),
) -> OutcomeRead:
    return respond(await workflow.update(principal, party_id, payload), response)


@router.delete("/watch-parties/{party_id}", response_model=OutcomeRead)
async def delete_watch_party(
    response: Response,
    party_id: int = Path(..., ge=1),
    principal: Principal = Depends(get_current_principal),
    workflow: WatchPartyWorkflow = Depends(get_watch_party_workflow),
) -> OutcomeRead:
    return respond(await workflow.delete(principal, party_id), response)


@router.post("/watch-parties/{party_id}/join", response_model=OutcomeRead)
async def join_watch_party(
    response: Response,
    party_id: int = Path(..., ge=1),
    principal: Principal = Depends(get_current_principal),
    workflow: WatchPartyWorkflow = Depends(get_watch_party_workflow),
) -> OutcomeRead:
    return respond(await workflow.join(principal, party_id), response)


@router.post("/watch-parties/{party_id}/leave", response_model=OutcomeRead)
async def leave_watch_party(
    response: Response,
    party_id: int = Path(..., ge=1),
    principal: Principal = Depends(get_current_principal),
    workflow: WatchPartyWorkflow = Depends(get_watch_party_workflow),
) -> OutcomeRead:
    return respond(await workflow.leave(principal, party_id), response)


@router.get("/watch-parties/{party_id}/attendees/count", response_model=AttendeeCountRead)
async def get_attendee_count(
    party_id: int = Path(..., ge=1),
    principal: Principal = Depends(get_current_principal),
    workflow: WatchPartyWorkflow = Depends(get_watch_party_workflow),
) -> AttendeeCountRead:
    count = await workflow.attendee_count(principal, party_id)
    if count is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="watch party not found")
    return AttendeeCountRead(watch_party_id=party_id, count=count)


@router.get("/me/watch-parties", response_model=List[WatchPartyView])
async def list_my_watch_parties(
    principal: Principal = Depends(get_current_principal),
    workflow: WatchPartyWorkflow = Depends(get_watch_party_workflow),
) -> list[WatchPartyView]:
    return await workflow.list_mine(principal)


@router.get("/watch-parties/available", response_model=List[WatchPartyView])
async def list_available_watch_parties(
    q: Optional[str] = Query(default=None, max_length=255),
    principal: Principal = Depends(get_current_principal),
    workflow: WatchPartyWorkflow = Depends(get_watch_party_workflow),
) -> list[WatchPartyView]:
    return await workflow.list_available(principal, q)
