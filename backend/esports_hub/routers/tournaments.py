from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status

from ..deps import get_current_principal, get_tournament_workflow
from ..domain.principal import Principal
from ..schemas import OutcomeRead, TournamentForm, TournamentOption, TournamentView
from ..workflows.tournaments import TournamentWorkflow
from .common import respond

router = APIRouter(prefix="", tags=["tournaments"])


@router.post("/tournaments", response_model=OutcomeRead, status_code=status.HTTP_201_CREATED)
async def create_tournament(
    payload: TournamentForm,
    response: Response,
    principal: Principal = Depends(get_current_principal),
    workflow: TournamentWorkflow = Depends(get_tournament_workflow),
) -> OutcomeRead:
    outcome = await workflow.create(principal, payload)
    return respond(outcome, response, success_status=status.HTTP_201_CREATED)


@router.put("/tournaments/{tournament_id}", response_model=OutcomeRead)
async def update_tournament(
    payload: TournamentForm,
    response: Response,
    tournament_id: int = Path(..., ge=1),
    principal: Principal = Depends(get_current_principal),
    workflow: TournamentWorkflow = Depends(get_tournament_workflow),
) -> OutcomeRead:
    return respond(await workflow.update(principal, tournament_id, payload), response)


@router.delete("/tournaments/{tournament_id}", response_model=OutcomeRead)
async def delete_tournament(
    response: Response,
    tournament_id: int = Path(..., ge=1),
    principal: Principal = Depends(get_current_principal),
    workflow: TournamentWorkflow = Depends(get_tournament_workflow),
) -> OutcomeRead:
    return respond(await workflow.delete(principal, tournament_id), response)


@router.post("/tournaments/{tournament_id}/register", response_model=OutcomeRead)
async def register_for_tournament(
    response: Response,
    tournament_id: int = Path(..., ge=1),
    principal: Principal = Depends(get_current_principal),
    workflow: TournamentWorkflow = Depends(get_tournament_workflow),
) -> OutcomeRead:
    return respond(await workflow.register(principal, tournament_id), response)


@router.post("/tournaments/{tournament_id}/unregister", response_model=OutcomeRead)
async def unregister_from_tournament(
    response: Response,
    tournament_id: int = Path(..., ge=1),
    principal: Principal = Depends(get_current_principal),
    workflow: TournamentWorkflow = Depends(get_tournament_workflow),
) -> OutcomeRead:
    return respond(await workflow.unregister(principal, tournament_id), response)


@router.get("/me/tournaments", response_model=List[TournamentView])
async def list_my_tournaments(
    principal: Principal = Depends(get_current_principal),
    workflow: TournamentWorkflow = Depends(get_tournament_workflow),
) -> list[TournamentView]:
    return await workflow.list_mine(principal)


@router.get("/tournaments/available", response_model=List[TournamentView])
async def list_available_tournaments(
    q: Optional[str] = Query(default=None, max_length=255),
    principal: Principal = Depends(get_current_principal),
    workflow: TournamentWorkflow = Depends(get_tournament_workflow),
) -> list[TournamentView]:
    return await workflow.list_available(principal, q)


@router.get("/tournaments/options", response_model=List[TournamentOption])
async def list_tournament_options(
    principal: Principal = Depends(get_current_principal),
    workflow: TournamentWorkflow = Depends(get_tournament_workflow),
) -> list[TournamentOption]:
    return await workflow.list_options(principal)
