# db/schemas/invitation.py
from datetime import datetime
from typing import Optional
from hackportal.db.schemas._base import OrmModel
from hackportal.db.enums import InvitationStatus

class InvitationCreate(OrmModel):
    invitee_id: int

class InviteeInfo(OrmModel):
    id: int
    name: str
    email: str

class InvitationRead(OrmModel):
    id: int
    team_id: Optional[int] = None
    team_name: str
    status: InvitationStatus
    created_at: datetime
    invitee: Optional[InviteeInfo] = None

class InvitationAction(OrmModel):
    message: str
    invitation: InvitationRead
