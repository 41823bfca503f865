# api/judging.py
from fastapi import APIRouter, Depends

from hackportal.api.deps import judge_user
from hackportal.db.schemas.review import JudgeTeamsResponse, ReviewCreate, ReviewRead
from hackportal.db.schemas.team import RoundRead
from hackportal.db.schemas.user import UserRead
from hackportal.services.judging import JudgingService

router = APIRouter(tags=["judging"])


@router.get("/rounds", response_model=list[RoundRead])
async def list_rounds():
    return JudgingService().list_rounds()


@router.get("/judge/teams", response_model=JudgeTeamsResponse)
async def assigned_teams(judge: UserRead = Depends(judge_user)):
    return await JudgingService().assigned_teams(judge)


@router.post("/teams/{team_id}/review", response_model=ReviewRead)
async def submit_review(team_id: int, payload: ReviewCreate, judge: UserRead = Depends(judge_user)):
    return await JudgingService().submit_review(judge, team_id, payload)
