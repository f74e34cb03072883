from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status

from ..deps import get_current_principal, get_team_workflow
from ..domain.principal import Principal
from ..schemas import OutcomeRead, TeamForm, TeamView
from ..workflows.teams import TeamWorkflow
from .common import respond

router = APIRouter(prefix="", tags=["teams"])


@router.post("/teams", response_model=OutcomeRead, status_code=status.HTTP_201_CREATED)
async def create_team(
    payload: TeamForm,
    response: Response,
    principal: Principal = Depends(get_current_principal),
    workflow: TeamWorkflow = Depends(get_team_workflow),
) -> OutcomeRead:
    outcome = await workflow.create(principal, payload)
    return respond(outcome, response, success_status=status.HTTP_201_CREATED)


@router.put("/teams/{team_id}", response_model=OutcomeRead)
async def update_team(
    payload: TeamForm,
    response: Response,
    team_id: int = Path(..., ge=1),
    principal: Principal = Depends(get_current_principal),
    workflow: TeamWorkflow = Depends(get_team_workflow),
) -> OutcomeRead:
    return respond(await workflow.update(principal, team_id, payload), response)


@router.delete("/teams/{team_id}", response_model=OutcomeRead)
async def delete_team(
    response: Response,
    team_id: int = Path(..., ge=1),
    principal: Principal = Depends(get_current_principal),
    workflow: TeamWorkflow = Depends(get_team_workflow),
) -> OutcomeRead:
    return respond(await workflow.delete(principal, team_id), response)


@router.post("/teams/{team_id}/join", response_model=OutcomeRead)
async def join_team(
    response: Response,
    team_id: int = Path(..., ge=1),
    principal: Principal = Depends(get_current_principal),
    workflow: TeamWorkflow = Depends(get_team_workflow),
) -> OutcomeRead:
    return respond(await workflow.join(principal, team_id), response)


@router.post("/teams/{team_id}/leave", response_model=OutcomeRead)
async def leave_team(
    response: Response,
    team_id: int = Path(..., ge=1),
    principal: Principal = Depends(get_current_principal),
    workflow: TeamWorkflow = Depends(get_team_workflow),
) -> OutcomeRead:
    return respond(await workflow.leave(principal, team_id), response)


@router.get("/me/teams", response_model=List[TeamView])
async def list_my_teams(
    principal: Principal = Depends(get_current_principal),
    workflow: TeamWorkflow = Depends(get_team_workflow),
) -> list[TeamView]:
    return await workflow.list_mine(principal)


@router.get("/teams/available", response_model=List[TeamView])
async def list_available_teams(
    q: Optional[str] = Query(default=None, max_length=255),
    principal: Principal = Depends(get_current_principal),
    workflow: TeamWorkflow = Depends(get_team_workflow),
) -> list[TeamView]:
    return await workflow.list_available(principal, q)
