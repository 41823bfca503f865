# api/invitations.py
from fastapi import APIRouter, Depends

from hackportal.api.deps import current_user
from hackportal.db.schemas.invitation import InvitationAction, InvitationCreate, InvitationRead
from hackportal.db.schemas.user import UserRead
from hackportal.services.invitation import InvitationService

router = APIRouter(tags=["invitations"])


@router.post("/invitations", response_model=InvitationRead, status_code=201)
async def create_invitation(payload: InvitationCreate, user: UserRead = Depends(current_user)):
    return await InvitationService().create_invitation(user, payload.invitee_id)


@router.get("/invitations", response_model=list[InvitationRead])
async def list_my_invitations(user: UserRead = Depends(current_user)):
    return await InvitationService().list_my_invitations(user)


@router.get("/teams/{team_id}/invitations", response_model=list[InvitationRead])
async def list_team_invitations(team_id: int, user: UserRead = Depends(current_user)):
    return await InvitationService().list_team_invitations(user, team_id)


@router.post("/invitations/{invitation_id}/accept", response_model=InvitationAction)
async def accept_invitation(invitation_id: int, user: UserRead = Depends(current_user)):
    invitation = await InvitationService().accept(user, invitation_id)
    return InvitationAction(message="Invitation accepted", invitation=invitation)


@router.post("/invitations/{invitation_id}/decline", response_model=InvitationAction)
async def decline_invitation(invitation_id: int, user: UserRead = Depends(current_user)):
    invitation = await InvitationService().decline(user, invitation_id)
    return InvitationAction(message="Invitation declined", invitation=invitation)


@router.post("/invitations/{invitation_id}/revoke", response_model=InvitationAction)
async def revoke_invitation(invitation_id: int, user: UserRead = Depends(current_user)):
    invitation = await InvitationService().revoke(user, invitation_id)
    return InvitationAction(message="Invitation revoked", invitation=invitation)
