# db/schemas/review.py
from datetime import datetime
from typing import Optional
from pydantic import AliasChoices, Field
from hackportal.db.schemas._base import OrmModel
from hackportal.db.schemas.invitation import InviteeInfo

class ReviewCreate(OrmModel):
    round_id: Optional[str] = Field(None, validation_alias=AliasChoices("round", "roundId", "round_id"))
    application: int = Field(0, ge=0, le=5)
    technicality: int = Field(0, ge=0, le=5)
    creativity: int = Field(0, ge=0, le=5)
    functionality: int = Field(0, ge=0, le=5)
    theme: bool = False
    review: str = ""

class ReviewRead(OrmModel):
    id: int
    team_id: int
    judge_id: int
    round_id: str
    application: int
    technicality: int
    creativity: int
    functionality: int
    theme: bool
    review: str = ""
    total_score: int
    updated_at: datetime

class JudgeInfo(OrmModel):
    id: int
    name: str

class JudgeTeamRead(OrmModel):
    id: int
    team_name: str
    project_name: str = ""
    project_details: str = ""
    members: list[InviteeInfo] = []
    rounds: list[str] = []
    reviews: list[ReviewRead] = []

class JudgeTeamsResponse(OrmModel):
    judge: JudgeInfo
    teams: list[JudgeTeamRead]

class TeamResult(OrmModel):
    team_id: int
    team_name: str
    track: str
    review_count: int = 0
    average_score: Optional[float] = None
    round_averages: dict[str, float] = {}
