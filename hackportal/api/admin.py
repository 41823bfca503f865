# api/admin.py
from typing import Optional

from fastapi import APIRouter, Depends, Query

from hackportal.api.deps import admin_user
from hackportal.db.schemas._base import MessageRead
from hackportal.db.schemas.audit_log import AuditLogPage
from hackportal.db.schemas.auth import ArrivalUpdate
from hackportal.db.schemas.review import TeamResult
from hackportal.db.schemas.team import MembersUpdate, RoundAssignment, TeamRead, TeamUpdate
from hackportal.db.schemas.user import UserRead
from hackportal.services.audit_log import audit_logger
from hackportal.services.judging import JudgingService
from hackportal.services.team import TeamService
from hackportal.services.user import UserService

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(admin_user)])


@router.get("/users", response_model=list[UserRead])
async def list_users():
    return await UserService().list_users()


@router.patch("/users/{user_id}", response_model=UserRead)
async def set_arrival_state(user_id: int, payload: ArrivalUpdate, admin: UserRead = Depends(admin_user)):
    return await UserService().set_arrival_state(admin, user_id, payload.state)


@router.get("/teams", response_model=list[TeamRead])
async def list_teams():
    return await TeamService().list_teams()


@router.patch("/teams/{team_id}", response_model=TeamRead)
async def update_team(team_id: int, payload: TeamUpdate, admin: UserRead = Depends(admin_user)):
    return await TeamService().update_team(admin, team_id, payload)


@router.patch("/teams/{team_id}/members", response_model=TeamRead)
@router.patch("/teams/{team_id}/users", response_model=TeamRead, include_in_schema=False)
async def replace_members(team_id: int, payload: MembersUpdate, admin: UserRead = Depends(admin_user)):
    return await TeamService().replace_members(admin, team_id, payload)


@router.delete("/teams/{team_id}", response_model=MessageRead)
async def delete_team(team_id: int, admin: UserRead = Depends(admin_user)):
    await TeamService().delete_team(admin, team_id)
    return MessageRead(message="Team deleted")


@router.put("/teams/{team_id}/assignments/{round_id}", response_model=TeamRead)
async def set_round_assignment(
    team_id: int,
    round_id: str,
    payload: RoundAssignment,
    admin: UserRead = Depends(admin_user),
):
    return await JudgingService().set_round_assignment(
        admin, team_id, round_id, payload.judge_ids, merge=payload.merge
    )


@router.get("/results", response_model=list[TeamResult])
async def results():
    return await JudgingService().results()


@router.get("/audit-log", response_model=AuditLogPage)
async def audit_log(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    action: Optional[str] = Query(None),
    actor_id: Optional[int] = Query(None, alias="actorId"),
):
    items, total = await audit_logger.list_entries(limit=limit, offset=offset, actor_id=actor_id, action=action)
    return AuditLogPage(items=items, total=total)
