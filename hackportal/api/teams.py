# api/teams.py
from fastapi import APIRouter, Depends

from hackportal.api.deps import current_user
from hackportal.db.schemas._base import MessageRead
from hackportal.db.schemas.team import LeaderTransfer, MembersUpdate, TeamCreate, TeamRead, TeamUpdate
from hackportal.db.schemas.user import UserRead
from hackportal.services.team import TeamService

router = APIRouter(prefix="/teams", tags=["teams"])


@router.post("", response_model=TeamRead, status_code=201)
async def create_team(payload: TeamCreate, user: UserRead = Depends(current_user)):
    return await TeamService().create_team(user, payload)


@router.get("", response_model=list[TeamRead])
async def list_teams(_user: UserRead = Depends(current_user)):
    return await TeamService().list_teams()


@router.get("/{team_id}", response_model=TeamRead)
async def get_team(team_id: int, _user: UserRead = Depends(current_user)):
    return await TeamService().get_team(team_id)


@router.patch("/{team_id}", response_model=TeamRead)
async def update_team(team_id: int, payload: TeamUpdate, user: UserRead = Depends(current_user)):
    return await TeamService().update_team(user, team_id, payload)


@router.patch("/{team_id}/members", response_model=TeamRead)
@router.patch("/{team_id}/users", response_model=TeamRead, include_in_schema=False)
async def replace_members(team_id: int, payload: MembersUpdate, user: UserRead = Depends(current_user)):
    return await TeamService().replace_members(user, team_id, payload)


@router.post("/{team_id}/leader", response_model=TeamRead)
async def transfer_leadership(team_id: int, payload: LeaderTransfer, user: UserRead = Depends(current_user)):
    return await TeamService().transfer_leadership(user, team_id, payload.user_id)


@router.post("/{team_id}/leave", response_model=MessageRead)
async def leave_team(team_id: int, user: UserRead = Depends(current_user)):
    team = await TeamService().leave_team(user, team_id)
    return MessageRead(message="Left team" if team is not None else "Team disbanded")


@router.delete("/{team_id}", response_model=MessageRead)
async def delete_team(team_id: int, user: UserRead = Depends(current_user)):
    await TeamService().delete_team(user, team_id)
    return MessageRead(message="Team deleted")
