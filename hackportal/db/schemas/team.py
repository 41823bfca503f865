# db/schemas/team.py
from typing import Optional
from pydantic import AliasChoices, Field
from hackportal.db.schemas._base import OrmModel
from hackportal.db.schemas.user import MemberRead
from hackportal.db.enums import TeamStatus, Track
from hackportal.utils.sentinels import Missing

class ProjectInfo(OrmModel):
    name: str = ""
    details: str = ""

class TeamCreate(OrmModel):
    team_name: str = Field("", validation_alias=AliasChoices("teamName", "team_name", "name"))
    track: Track = Track.SOFTWARE

class TeamUpdate(OrmModel):
    name: str | Missing = Field(Missing(), validation_alias=AliasChoices("name", "teamName"))
    status: TeamStatus | Missing = Missing()
    track: Track | Missing = Missing()
    project_name: str | Missing | None = Missing()
    project_details: str | Missing | None = Missing()
    judge_assignments: dict[str, list[int]] | Missing | None = Field(
        Missing(), validation_alias=AliasChoices("judgeAssignments", "assignments", "judge_assignments")
    )

class TeamRead(OrmModel):
    id: int
    team_name: str
    status: TeamStatus
    track: Track
    project: ProjectInfo
    assignments: dict[str, list[int]] = {}
    leader_id: Optional[int] = None
    members: list[MemberRead] = []

class MembersUpdate(OrmModel):
    member_ids: list[int]
    leader_id: Optional[int] = None

class LeaderTransfer(OrmModel):
    user_id: int

class RoundAssignment(OrmModel):
    judge_ids: list[int]
    merge: bool = False

class RoundRead(OrmModel):
    id: str
    name: str
