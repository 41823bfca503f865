import logging
from typing import Optional, ClassVar, Self, List

from hackportal.db.database import DataBase
from hackportal.db.schemas.invitation import InvitationRead
from hackportal.db.schemas.user import UserRead
from hackportal.errors import NotFoundError, PermissionDenied, ValidationFailed
from hackportal.services.audit_log import instrument_service_class
from hackportal.services.team import TeamService

logger = logging.getLogger(__name__)


class InvitationService:
    _instance: ClassVar[Optional["InvitationService"]] = None

    def __new__(cls) -> Self:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if getattr(self, "_initialized", False):
            return

        self._database = DataBase()
        self._team_svc = TeamService()
        self._initialized = True

    async def create_invitation(self, actor: UserRead, invitee_id: int) -> InvitationRead:
        if actor.team_id is None:
            raise ValidationFailed("You must be in a team to send invitations")

        team = await self._team_svc.get_team(actor.team_id)
        if not self._team_svc.is_leader(actor, team):
            raise PermissionDenied("Only the team leader can send invitations")

        invitation = await self._database.create_invitation(team.id, invitee_id)
        logger.info("User %s invited to team %s by %s", invitee_id, team.id, actor.id)
        return invitation

    async def list_my_invitations(self, actor: UserRead) -> List[InvitationRead]:
        return await self._database.list_invitations_for_user(actor.id)

    async def list_team_invitations(self, actor: UserRead, team_id: int) -> List[InvitationRead]:
        team = await self._team_svc.get_team(team_id)
        if not (actor.is_admin or self._team_svc.is_member(actor, team)):
            raise PermissionDenied("Only team members can view the team's invitations")
        return await self._database.list_invitations_for_team(team.id)

    async def accept(self, actor: UserRead, invitation_id: int) -> InvitationRead:
        return await self._database.accept_invitation(invitation_id, actor.id)

    async def decline(self, actor: UserRead, invitation_id: int) -> InvitationRead:
        return await self._database.decline_invitation(invitation_id, actor.id)

    async def revoke(self, actor: UserRead, invitation_id: int) -> InvitationRead:
        invitation = await self._database.get_invitation(invitation_id)
        if invitation is None or invitation.team_id is None:
            raise NotFoundError("Invitation not found")

        team = await self._team_svc.get_team(invitation.team_id)
        if not (actor.is_admin or self._team_svc.is_leader(actor, team)):
            raise PermissionDenied("Only the team leader can revoke invitations")
        return await self._database.revoke_invitation(invitation_id, team.id)


instrument_service_class(
    InvitationService,
    prefix="services.invitation",
    exclude={"list_my_invitations", "list_team_invitations"},
)
