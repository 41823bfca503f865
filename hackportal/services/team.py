import logging
from typing import Optional, ClassVar, Self, List

from hackportal.db.database import DataBase
from hackportal.db.schemas.team import MembersUpdate, TeamCreate, TeamRead, TeamUpdate
from hackportal.db.schemas.user import UserRead
from hackportal.errors import NotFoundError, PermissionDenied
from hackportal.services.audit_log import instrument_service_class
from hackportal.utils.sentinels import provided

logger = logging.getLogger(__name__)


class TeamService:
	_instance: ClassVar[Optional["TeamService"]] = None

	def __new__(cls) -> Self:
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __init__(self) -> None:
		if getattr(self, "_initialized", False):
			return

		self._database = DataBase()
		self._initialized = True

	@staticmethod
	def is_leader(user: UserRead, team: TeamRead) -> bool:
		return team.leader_id is not None and team.leader_id == user.id

	@staticmethod
	def is_member(user: UserRead, team: TeamRead) -> bool:
		return any(m.id == user.id for m in team.members)

	def _require_leader_or_admin(self, actor: UserRead, team: TeamRead, message: str) -> None:
		if actor.is_admin or self.is_leader(actor, team):
			return
		raise PermissionDenied(message)

	async def list_teams(self) -> List[TeamRead]:
		return await self._database.list_teams()

	async def get_team(self, team_id: int) -> TeamRead:
		team = await self._database.get_team(team_id)
		if team is None:
			raise NotFoundError("Team not found")
		return team

	async def create_team(self, actor: UserRead, payload: TeamCreate) -> TeamRead:
		team = await self._database.create_team(actor.id, payload)
		logger.info("Team %s (%s) created by user %s", team.id, team.team_name, actor.id)
		return team

	async def update_team(self, actor: UserRead, team_id: int, payload: TeamUpdate) -> TeamRead:
		"""
		Leaders may rename the team and edit track and project fields.
		Status and judge assignments are reserved for admins.
		"""
		team = await self.get_team(team_id)
		if not actor.is_admin:
			if not self.is_leader(actor, team):
				raise PermissionDenied("Only the team leader can update the team")
			if provided(payload.status) or provided(payload.judge_assignments):
				raise PermissionDenied("Only admins can change team status or judge assignments")

		return await self._database.update_team(team_id, payload)

	async def replace_members(self, actor: UserRead, team_id: int, payload: MembersUpdate) -> TeamRead:
		team = await self.get_team(team_id)
		self._require_leader_or_admin(actor, team, "Only the team leader can edit members")
		if payload.leader_id is not None and not actor.is_admin and payload.leader_id != actor.id:
			raise PermissionDenied("Only admins can assign a new leader while editing members")

		return await self._database.replace_members(team_id, payload.member_ids, leader_id=payload.leader_id)

	async def transfer_leadership(self, actor: UserRead, team_id: int, user_id: int) -> TeamRead:
		team = await self.get_team(team_id)
		self._require_leader_or_admin(actor, team, "Only the team leader can transfer leadership")
		return await self._database.transfer_leadership(team_id, user_id)

	async def leave_team(self, actor: UserRead, team_id: int) -> Optional[TeamRead]:
		"""Returns the remaining team, or None when the leader was alone and the team was disbanded."""
		team = await self._database.leave_team(team_id, actor.id)
		if team is None:
			logger.info("Team %s disbanded: its leader %s left", team_id, actor.id)
		return team

	async def delete_team(self, actor: UserRead, team_id: int) -> None:
		team = await self.get_team(team_id)
		self._require_leader_or_admin(actor, team, "Only the team leader can delete the team")
		await self._database.delete_team(team_id)
		logger.info("Team %s (%s) deleted by user %s", team.id, team.team_name, actor.id)


instrument_service_class(
	TeamService,
	prefix="services.team",
	exclude={"is_leader", "is_member", "list_teams", "get_team"},
)
