# db/database.py
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator, Optional, ClassVar, Self, Any, Iterable, List, Tuple

from sqlalchemy import delete, event, select, func
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import NullPool

from hackportal.config import Settings
from hackportal.db.enums import InvitationStatus, TEAM_ROLES, UserRole
from hackportal.db.models._base import Base, utcnow
from hackportal.db.models.user import User
from hackportal.db.models.team import Team
from hackportal.db.models.invitation import Invitation
from hackportal.db.models.review import Review
from hackportal.db.models.auth_token import AuthToken
from hackportal.db.models.audit_log import AuditLog
from hackportal.db.schemas.user import UserCreate, UserRead, UserUpdate, MemberRead
from hackportal.db.schemas.team import TeamCreate, TeamRead, TeamUpdate, ProjectInfo
from hackportal.db.schemas.invitation import InvitationRead, InviteeInfo
from hackportal.db.schemas.review import (
    JudgeTeamRead, ReviewCreate, ReviewRead, TeamResult,
)
from hackportal.db.schemas.audit_log import AuditLogCreate, AuditLogRead
from hackportal.errors import ConflictError, NotFoundError, PermissionDenied, ValidationFailed
from hackportal.utils.rounds import round_ids, round_sort_key
from hackportal.utils.sentinels import provided


# --- row -> DTO helpers ---

def _set_roles(user: User, add: Iterable[UserRole] = (), remove: Iterable[UserRole] = ()) -> None:
    dropped = {r.value for r in remove}
    roles = [r for r in (user.roles or []) if r not in dropped]
    for role in add:
        if role.value not in roles:
            roles.append(role.value)
    if UserRole.USER.value not in roles:
        roles.insert(0, UserRole.USER.value)
    # JSON columns are not mutation-tracked; always assign a fresh list
    user.roles = roles


def _leader_of(team: Team) -> Optional[User]:
    for member in team.members:
        if member.has_role(UserRole.TEAM_LEADER):
            return member
    return None


def _member_read(user: User) -> MemberRead:
    return MemberRead(id=user.id, name=user.name or "", email=user.email, track=user.track, state=user.state)


def _invitee_info(user: User) -> InviteeInfo:
    return InviteeInfo(id=user.id, name=user.name or user.email, email=user.email)


def _team_read(team: Team) -> TeamRead:
    leader = _leader_of(team)
    return TeamRead(
        id=team.id,
        team_name=team.name,
        status=team.status,
        track=team.track,
        project=ProjectInfo(name=team.project_name or "", details=team.project_details or ""),
        assignments=dict(team.judge_assignments or {}),
        leader_id=leader.id if leader is not None else None,
        members=[_member_read(m) for m in sorted(team.members, key=lambda m: m.id)],
    )


def _invitation_read(invitation: Invitation, invitee: Optional[User] = None) -> InvitationRead:
    return InvitationRead(
        id=invitation.id,
        team_id=invitation.team_id,
        team_name=invitation.team_name,
        status=invitation.status,
        created_at=invitation.created_at,
        invitee=_invitee_info(invitee) if invitee is not None else None,
    )


class DataBase():
    """
    Async SQLAlchemy database singleton.
    Usage:
        db = DataBase()  # same instance everywhere
        async with db.session() as s:
            ...

    Every mutating domain method runs inside one session, so a request either
    applies completely or not at all.
    """
    _instance: ClassVar[Optional["DataBase"]] = None

    def __new__(cls, *args: Any, **kwargs: Any) -> Self:
        if cls._instance is None:
            cls._instance = super().__new__(cls)

        return cls._instance

    def __init__(self, echo: bool = False) -> None:
        if getattr(self, "_initialized", False):
            return

        self.bind(Settings().database_url, echo=echo)
        self._initialized = True

    def bind(self, url: str, echo: bool = False) -> None:
        """
        (Re)create the engine for the given URL.

        SQLite engines skip connection pooling and enforce foreign keys on
        every connection.
        """
        if url.startswith("sqlite"):
            self._engine: AsyncEngine = create_async_engine(url, echo=echo, poolclass=NullPool)

            @event.listens_for(self._engine.sync_engine, "connect")
            def _enable_foreign_keys(dbapi_connection, _record) -> None:
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()
        else:
            self._engine = create_async_engine(url, echo=echo, pool_pre_ping=True)

        self._sessionmaker: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=self._engine,
            expire_on_commit=False,
            autoflush=False,
        )

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Provides an AsyncSession with safe commit/rollback semantics.
        """
        session: AsyncSession = self._sessionmaker()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    # --- schema management helpers ---

    async def create_all(self) -> None:
        """
        Create tables based on Base metadata.
        """
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self._engine.dispose()

    # --- internal lookups (inside an open session) ---

    async def _get_team_or_raise(self, s: AsyncSession, team_id: int) -> Team:
        team = await s.get(Team, team_id)
        if team is None:
            raise NotFoundError("Team not found")
        return team

    async def _get_user_or_raise(self, s: AsyncSession, user_id: int, message: str = "User not found") -> User:
        user = await s.get(User, user_id)
        if user is None:
            raise NotFoundError(message)
        return user

    async def _users_by_ids(self, s: AsyncSession, ids: Iterable[int]) -> dict[int, User]:
        ids = set(ids)
        if not ids:
            return {}
        rows = (await s.execute(select(User).where(User.id.in_(ids)))).scalars().all()
        return {u.id: u for u in rows}

    async def _name_taken(self, s: AsyncSession, name: str, exclude_id: Optional[int] = None) -> bool:
        stmt = select(Team.id).where(Team.name == name)
        if exclude_id is not None:
            stmt = stmt.where(Team.id != exclude_id)
        return (await s.execute(stmt)).first() is not None

    async def _decline_pending_for_user(self, s: AsyncSession, user_id: int, keep_id: Optional[int] = None) -> int:
        stmt = select(Invitation).where(
            Invitation.invitee_id == user_id,
            Invitation.status == InvitationStatus.PENDING,
        )
        declined = 0
        for invitation in (await s.execute(stmt)).scalars().all():
            if invitation.id == keep_id:
                continue
            invitation.status = InvitationStatus.DECLINED
            invitation.responded_at = utcnow()
            declined += 1
        return declined

    async def _pending_count(self, s: AsyncSession, team_id: int) -> int:
        stmt = select(func.count(Invitation.id)).where(
            Invitation.team_id == team_id,
            Invitation.status == InvitationStatus.PENDING,
        )
        return int((await s.execute(stmt)).scalar_one())

    async def _normalize_assignments(self, s: AsyncSession, assignments: dict) -> dict[str, list[int]]:
        """
        Validate a round -> judge ids map against configured rounds and the judge roster.
        Judge ids are de-duplicated per round, keeping their first position.
        """
        known_rounds = set(round_ids())
        normalized: dict[str, list[int]] = {}
        for round_id, judge_ids in assignments.items():
            round_id = str(round_id)
            if round_id not in known_rounds:
                raise ValidationFailed(f"Unknown round '{round_id}'")
            normalized[round_id] = list(dict.fromkeys(int(j) for j in judge_ids))

        await self._check_judges(s, {j for ids in normalized.values() for j in ids})
        return dict(sorted(normalized.items(), key=lambda item: round_sort_key(item[0])))

    async def _check_judges(self, s: AsyncSession, judge_ids: set[int]) -> None:
        if not judge_ids:
            return
        found = await self._users_by_ids(s, judge_ids)
        if len(found) != len(judge_ids):
            raise NotFoundError("One or more judges were not found")
        if any(not u.has_role(UserRole.JUDGE) for u in found.values()):
            raise ValidationFailed("Assignments must only include judge users")

    # --- users ---

    async def create_user(self, data: UserCreate) -> UserRead:
        """
        Create a user and return its snapshot.
        On unique-constraint violation (email), re-raises IntegrityError for the caller to handle.
        """
        user = User(
            email=data.email,
            password_hash=data.password_hash,
            name=data.name,
            track=data.track,
            major=data.major,
            state=data.state,
            team=None,
        )
        _set_roles(user, add=data.roles)

        async with self.session() as s:
            s.add(user)
            await s.flush()
            await s.refresh(user)

        return UserRead.model_validate(user)

    async def get_user_by_id(self, uid: Optional[int] = None) -> Optional[UserRead]:
        if uid is None:
            return None

        async with self.session() as s:
            user_row = await s.get(User, uid)

        return UserRead.model_validate(user_row) if user_row is not None else None

    async def get_user_by_email(self, email: Optional[str] = None) -> Optional[UserRead]:
        if not email:
            return None

        async with self.session() as s:
            stmt = select(User).where(User.email == email.strip().lower())
            user_row = (await s.execute(stmt)).scalar_one_or_none()

        return UserRead.model_validate(user_row) if user_row is not None else None

    async def get_credentials(self, email: str) -> Optional[Tuple[UserRead, str]]:
        """(user, password hash) for a login attempt, or None when the email is unknown."""
        async with self.session() as s:
            stmt = select(User).where(User.email == email.strip().lower())
            user_row = (await s.execute(stmt)).scalar_one_or_none()

        if user_row is None:
            return None
        return UserRead.model_validate(user_row), user_row.password_hash

    async def list_users(self, *, judges: Optional[bool] = None) -> list[UserRead]:
        """
        Users ordered by id. ``judges=True`` keeps only judges, ``False`` drops them.
        Roles live in a JSON column, so the role filter runs in Python.
        """
        async with self.session() as s:
            rows: List[User] = (await s.execute(select(User).order_by(User.id.asc()))).scalars().all()

        if judges is not None:
            rows = [u for u in rows if u.has_role(UserRole.JUDGE) == judges]
        return [UserRead.model_validate(r) for r in rows]

    async def update_user(self, user_id: int, data: UserUpdate) -> UserRead:
        """
        Partially update a user by id.
        Only fields explicitly provided (i.e., not MISSING) are updated.

        Raises:
            NotFoundError: if the user does not exist.
        """
        async with self.session() as s:
            db_user = await self._get_user_or_raise(s, user_id)

            if provided(data.name):
                db_user.name = data.name
            if provided(data.track):
                db_user.track = data.track
            if provided(data.major):
                db_user.major = data.major
            if provided(data.state):
                db_user.state = data.state

            await s.flush()
            await s.refresh(db_user)

        return UserRead.model_validate(db_user)

    # --- auth tokens ---

    async def create_auth_token(self, user_id: int, token_hash: str) -> None:
        async with self.session() as s:
            s.add(AuthToken(user_id=user_id, token_hash=token_hash))

    async def get_user_by_token(self, token_hash: str, max_age: timedelta) -> Optional[UserRead]:
        """
        Resolve a token hash to its user. Expired tokens are deleted and resolve to None.
        """
        async with self.session() as s:
            token = (
                await s.execute(select(AuthToken).where(AuthToken.token_hash == token_hash))
            ).scalar_one_or_none()
            if token is None:
                return None
            if token.created_at + max_age < utcnow():
                await s.delete(token)
                return None
            user = await s.get(User, token.user_id)

        return UserRead.model_validate(user) if user is not None else None

    async def delete_auth_token(self, token_hash: str) -> bool:
        async with self.session() as s:
            res = await s.execute(delete(AuthToken).where(AuthToken.token_hash == token_hash))
        return bool(res.rowcount)

    # --- teams: reads ---

    async def get_team(self, team_id: int) -> Optional[TeamRead]:
        if not team_id:
            return None

        async with self.session() as s:
            team = await s.get(Team, team_id)
            return _team_read(team) if team is not None else None

    async def list_teams(self) -> list[TeamRead]:
        async with self.session() as s:
            rows = (await s.execute(select(Team).order_by(Team.id.asc()))).scalars().all()
            return [_team_read(t) for t in rows]

    async def count_members(self, team_id: int) -> int:
        async with self.session() as s:
            stmt = select(func.count(User.id)).where(User.team_id == team_id)
            return int((await s.execute(stmt)).scalar_one())

    # --- teams: writes ---

    async def create_team(self, leader_id: int, payload: TeamCreate) -> TeamRead:
        """
        Create a team led by ``leader_id``.

        Raises:
            ValidationFailed: empty name, or the leader already belongs to a team.
            ConflictError: the name is taken.
        """
        name = payload.team_name.strip()
        if not name:
            raise ValidationFailed("Team name is required")

        async with self.session() as s:
            leader = await self._get_user_or_raise(s, leader_id)
            if leader.team is not None:
                raise ValidationFailed("User is already in a team")
            if leader.has_role(UserRole.JUDGE):
                raise ValidationFailed("Judges cannot create teams")
            if await self._name_taken(s, name):
                raise ConflictError("Team name already exists")

            team = Team(name=name, track=payload.track, judge_assignments={})
            team.members = []
            s.add(team)
            leader.team = team
            _set_roles(leader, add=[UserRole.TEAM_LEADER], remove=[UserRole.MEMBER])
            await self._decline_pending_for_user(s, leader.id)

            try:
                await s.flush()
            except IntegrityError:
                raise ConflictError("Team name already exists")

            return _team_read(team)

    async def update_team(self, team_id: int, payload: TeamUpdate) -> TeamRead:
        """
        Partially update a team by id.

        Notes:
            Only fields explicitly provided (i.e., not MISSING) are updated.
            Empty project strings are stored as NULL. A provided
            ``judge_assignments`` replaces the whole map.

        Raises:
            NotFoundError: team (or an assigned judge) does not exist.
            ValidationFailed / ConflictError: invalid name or assignments.
        """
        async with self.session() as s:
            team = await self._get_team_or_raise(s, team_id)

            if provided(payload.name):
                new_name = payload.name.strip()
                if not new_name:
                    raise ValidationFailed("Team name cannot be empty")
                if new_name != team.name:
                    if await self._name_taken(s, new_name, exclude_id=team.id):
                        raise ConflictError("Team name already exists")
                    team.name = new_name

            if provided(payload.status):
                team.status = payload.status
            if provided(payload.track):
                team.track = payload.track
            if provided(payload.project_name):
                team.project_name = (payload.project_name or "").strip() or None
            if provided(payload.project_details):
                team.project_details = (payload.project_details or "").strip() or None
            if provided(payload.judge_assignments):
                team.judge_assignments = await self._normalize_assignments(s, payload.judge_assignments or {})

            try:
                await s.flush()
            except IntegrityError:
                raise ConflictError("Team name already exists")

            return _team_read(team)

    async def set_round_assignment(self, team_id: int, round_id: str, judge_ids: list[int], *, merge: bool = False) -> TeamRead:
        """Replace (or merge into) one round's judge list, leaving other rounds untouched."""
        async with self.session() as s:
            team = await self._get_team_or_raise(s, team_id)
            assignments = {k: list(v) for k, v in (team.judge_assignments or {}).items()}
            current = assignments.get(round_id, []) if merge else []
            edited = await self._normalize_assignments(s, {round_id: current + [int(j) for j in judge_ids]})
            assignments.update(edited)
            team.judge_assignments = dict(sorted(assignments.items(), key=lambda item: round_sort_key(item[0])))
            await s.flush()
            return _team_read(team)

    async def replace_members(self, team_id: int, member_ids: list[int], *, leader_id: Optional[int] = None) -> TeamRead:
        """
        Replace a team's member list in one step.

        The current leader must stay in the list unless ``leader_id`` names a
        replacement leader, which must itself be part of the list. Exactly one
        member holds TEAM_LEADER afterwards; everybody else holds MEMBER.
        """
        member_ids = list(dict.fromkeys(int(i) for i in member_ids))
        capacity = Settings().max_team_size
        if len(member_ids) > capacity:
            raise ValidationFailed(f"A team can only have up to {capacity} members")

        async with self.session() as s:
            team = await self._get_team_or_raise(s, team_id)
            selected = await self._users_by_ids(s, member_ids)
            if len(selected) != len(member_ids):
                raise NotFoundError("One or more users were not found")

            current_leader = _leader_of(team)
            target_leader_id = leader_id if leader_id is not None else (
                current_leader.id if current_leader is not None else None
            )
            if target_leader_id is None:
                raise ValidationFailed("Team has no leader")
            if target_leader_id not in selected:
                if leader_id is not None:
                    raise ValidationFailed("The new leader must be one of the team members")
                raise ValidationFailed("Cannot remove team leader from team")

            for user in selected.values():
                if user.team is not None and user.team.id != team.id:
                    raise ValidationFailed(f"User {user.id} is already in another team")
                if user.has_role(UserRole.JUDGE):
                    raise ValidationFailed(f"User {user.id} is a judge and cannot join a team")

            for member in list(team.members):
                if member.id not in selected:
                    member.team = None
                    _set_roles(member, remove=TEAM_ROLES)

            for user_id in member_ids:
                user = selected[user_id]
                joining = user.team is None
                user.team = team
                if user_id == target_leader_id:
                    _set_roles(user, add=[UserRole.TEAM_LEADER], remove=[UserRole.MEMBER])
                else:
                    _set_roles(user, add=[UserRole.MEMBER], remove=[UserRole.TEAM_LEADER])
                if joining:
                    await self._decline_pending_for_user(s, user.id)

            await s.flush()
            return _team_read(team)

    async def transfer_leadership(self, team_id: int, user_id: int) -> TeamRead:
        async with self.session() as s:
            team = await self._get_team_or_raise(s, team_id)
            new_leader = next((m for m in team.members if m.id == user_id), None)
            if new_leader is None:
                raise ValidationFailed("The new leader must be a member of the team")

            for member in team.members:
                if member.id == user_id:
                    _set_roles(member, add=[UserRole.TEAM_LEADER], remove=[UserRole.MEMBER])
                elif member.has_role(UserRole.TEAM_LEADER):
                    _set_roles(member, add=[UserRole.MEMBER], remove=[UserRole.TEAM_LEADER])

            await s.flush()
            return _team_read(team)

    async def leave_team(self, team_id: int, user_id: int) -> Optional[TeamRead]:
        """
        Remove ``user_id`` from the team. A leader who is the only member
        disbands the team instead (returns None).
        """
        async with self.session() as s:
            team = await self._get_team_or_raise(s, team_id)
            member = next((m for m in team.members if m.id == user_id), None)
            if member is None:
                raise ValidationFailed("You are not a member of this team")

            if member.has_role(UserRole.TEAM_LEADER):
                if len(team.members) > 1:
                    raise ValidationFailed("Transfer leadership before leaving the team")
                await self._disband(s, team)
                return None

            member.team = None
            _set_roles(member, remove=TEAM_ROLES)
            await s.flush()
            return _team_read(team)

    async def delete_team(self, team_id: int) -> None:
        """
        Delete a team: members lose their team and team roles, pending
        invitations are declined, reviews are removed.
        """
        async with self.session() as s:
            team = await self._get_team_or_raise(s, team_id)
            await self._disband(s, team)

    async def _disband(self, s: AsyncSession, team: Team) -> None:
        for member in list(team.members):
            member.team = None
            _set_roles(member, remove=TEAM_ROLES)

        invitations = (await s.execute(select(Invitation).where(Invitation.team_id == team.id))).scalars().all()
        for invitation in invitations:
            if invitation.status == InvitationStatus.PENDING:
                invitation.status = InvitationStatus.DECLINED
                invitation.responded_at = utcnow()
            invitation.team_id = None

        await s.flush()
        await s.execute(delete(Review).where(Review.team_id == team.id))
        await s.delete(team)
        await s.flush()

    # --- invitations ---

    async def get_invitation(self, invitation_id: int) -> Optional[InvitationRead]:
        async with self.session() as s:
            invitation = await s.get(Invitation, invitation_id)
            return _invitation_read(invitation) if invitation is not None else None

    async def list_invitations_for_user(self, user_id: int, status: Optional[InvitationStatus] = InvitationStatus.PENDING) -> list[InvitationRead]:
        async with self.session() as s:
            stmt = select(Invitation).where(Invitation.invitee_id == user_id).order_by(Invitation.id.asc())
            if status is not None:
                stmt = stmt.where(Invitation.status == status)
            rows = (await s.execute(stmt)).scalars().all()
            return [_invitation_read(r) for r in rows]

    async def list_invitations_for_team(self, team_id: int, status: Optional[InvitationStatus] = InvitationStatus.PENDING) -> list[InvitationRead]:
        async with self.session() as s:
            stmt = (
                select(Invitation, User)
                .join(User, Invitation.invitee_id == User.id)
                .where(Invitation.team_id == team_id)
                .order_by(Invitation.id.asc())
            )
            if status is not None:
                stmt = stmt.where(Invitation.status == status)
            rows = (await s.execute(stmt)).all()
            return [_invitation_read(invitation, invitee) for invitation, invitee in rows]

    async def create_invitation(self, team_id: int, invitee_id: int) -> InvitationRead:
        """
        Invite a user into a team.

        Members plus pending invitations may not exceed the team capacity.
        """
        capacity = Settings().max_team_size
        async with self.session() as s:
            team = await self._get_team_or_raise(s, team_id)

            if len(team.members) + await self._pending_count(s, team.id) >= capacity:
                raise ValidationFailed("Team is at capacity (including pending invitations)")

            invitee = await self._get_user_or_raise(s, invitee_id)
            if invitee.team is not None:
                raise ValidationFailed("User is already in a team")
            if invitee.has_role(UserRole.JUDGE):
                raise ValidationFailed("Judges cannot join teams")

            duplicate = (await s.execute(
                select(Invitation.id).where(
                    Invitation.team_id == team.id,
                    Invitation.invitee_id == invitee.id,
                    Invitation.status == InvitationStatus.PENDING,
                )
            )).first()
            if duplicate is not None:
                raise ConflictError("Invitation already sent")

            invitation = Invitation(
                team_id=team.id,
                team_name=team.name,
                invitee_id=invitee.id,
                status=InvitationStatus.PENDING,
            )
            s.add(invitation)
            await s.flush()
            return _invitation_read(invitation, invitee)

    async def _pending_invitation_for(self, s: AsyncSession, invitation_id: int, invitee_id: int) -> Invitation:
        invitation = await s.get(Invitation, invitation_id)
        if invitation is None or invitation.invitee_id != invitee_id:
            raise NotFoundError("Invitation not found")
        if invitation.status != InvitationStatus.PENDING:
            raise ValidationFailed("Invitation is no longer pending")
        return invitation

    async def accept_invitation(self, invitation_id: int, user_id: int) -> InvitationRead:
        """
        Accept a pending invitation: the user joins the team as a member and
        every other pending invitation of that user is declined.
        """
        capacity = Settings().max_team_size
        async with self.session() as s:
            invitation = await self._pending_invitation_for(s, invitation_id, user_id)
            user = await self._get_user_or_raise(s, user_id)
            if user.team is not None:
                raise ValidationFailed("You are already in a team")
            if invitation.team_id is None:
                raise ValidationFailed("Team no longer exists")

            team = await self._get_team_or_raise(s, invitation.team_id)
            if len(team.members) >= capacity:
                raise ValidationFailed("Team is already at maximum capacity")

            user.team = team
            _set_roles(user, add=[UserRole.MEMBER], remove=[UserRole.TEAM_LEADER])
            invitation.status = InvitationStatus.ACCEPTED
            invitation.responded_at = utcnow()
            await self._decline_pending_for_user(s, user.id, keep_id=invitation.id)

            await s.flush()
            return _invitation_read(invitation)

    async def decline_invitation(self, invitation_id: int, user_id: int) -> InvitationRead:
        async with self.session() as s:
            invitation = await self._pending_invitation_for(s, invitation_id, user_id)
            invitation.status = InvitationStatus.DECLINED
            invitation.responded_at = utcnow()
            await s.flush()
            return _invitation_read(invitation)

    async def revoke_invitation(self, invitation_id: int, team_id: int) -> InvitationRead:
        """Withdraw a pending invitation on behalf of the inviting team."""
        async with self.session() as s:
            invitation = await s.get(Invitation, invitation_id)
            if invitation is None or invitation.team_id != team_id:
                raise NotFoundError("Invitation not found")
            if invitation.status != InvitationStatus.PENDING:
                raise ValidationFailed("Invitation is no longer pending")
            invitation.status = InvitationStatus.DECLINED
            invitation.responded_at = utcnow()
            await s.flush()
            return _invitation_read(invitation)

    # --- judging ---

    async def list_teams_for_judge(self, judge_id: int) -> list[JudgeTeamRead]:
        """
        Teams in which the judge holds at least one round, with the judge's own reviews.
        """
        async with self.session() as s:
            teams = (await s.execute(select(Team).order_by(Team.id.asc()))).scalars().all()
            reviews = (await s.execute(
                select(Review).where(Review.judge_id == judge_id).order_by(Review.id.asc())
            )).scalars().all()

            reviews_by_team: dict[int, list[ReviewRead]] = defaultdict(list)
            for review in reviews:
                reviews_by_team[review.team_id].append(ReviewRead.model_validate(review))

            items: list[JudgeTeamRead] = []
            for team in teams:
                rounds = team.judge_rounds(judge_id)
                if not rounds:
                    continue
                items.append(
                    JudgeTeamRead(
                        id=team.id,
                        team_name=team.name,
                        project_name=team.project_name or "",
                        project_details=team.project_details or "",
                        members=[_invitee_info(m) for m in team.members],
                        rounds=sorted(rounds, key=round_sort_key),
                        reviews=reviews_by_team.get(team.id, []),
                    )
                )
        return items

    async def upsert_review(self, team_id: int, judge_id: int, payload: ReviewCreate) -> ReviewRead:
        """
        Store the judge's review of a team for one round, replacing the judge's
        previous review for that round.

        Raises:
            NotFoundError: team does not exist.
            PermissionDenied: judge is not assigned to the team (or to the named round).
            ValidationFailed: several rounds are assigned and none was named.
        """
        async with self.session() as s:
            team = await self._get_team_or_raise(s, team_id)
            rounds = sorted(team.judge_rounds(judge_id), key=round_sort_key)
            if not rounds:
                raise PermissionDenied("You are not assigned to review this team")

            round_id = payload.round_id
            if round_id is None:
                if len(rounds) > 1:
                    raise ValidationFailed("round is required when assigned to several rounds")
                round_id = rounds[0]
            elif round_id not in rounds:
                raise PermissionDenied("You are not assigned to this round")

            review = (await s.execute(
                select(Review).where(
                    Review.team_id == team.id,
                    Review.judge_id == judge_id,
                    Review.round_id == round_id,
                )
            )).scalar_one_or_none()
            if review is None:
                review = Review(team_id=team.id, judge_id=judge_id, round_id=round_id)
                s.add(review)

            review.application = payload.application
            review.technicality = payload.technicality
            review.creativity = payload.creativity
            review.functionality = payload.functionality
            review.theme = payload.theme
            review.review = payload.review.strip()
            review.updated_at = utcnow()

            await s.flush()
            return ReviewRead.model_validate(review)

    async def list_reviews_by_team(self, team_id: int) -> list[ReviewRead]:
        async with self.session() as s:
            rows = (await s.execute(
                select(Review).where(Review.team_id == team_id).order_by(Review.id.asc())
            )).scalars().all()
            return [ReviewRead.model_validate(r) for r in rows]

    async def team_results(self) -> list[TeamResult]:
        """
        Per-team aggregate of review totals, best average first.
        Teams without reviews are listed last.
        """
        async with self.session() as s:
            teams = (await s.execute(select(Team).order_by(Team.id.asc()))).scalars().all()
            reviews = (await s.execute(select(Review))).scalars().all()

        totals: dict[int, list[int]] = defaultdict(list)
        per_round: dict[int, dict[str, list[int]]] = defaultdict(lambda: defaultdict(list))
        for review in reviews:
            totals[review.team_id].append(review.total_score)
            per_round[review.team_id][review.round_id].append(review.total_score)

        results = []
        for team in teams:
            scores = totals.get(team.id, [])
            rounds = per_round.get(team.id, {})
            results.append(
                TeamResult(
                    team_id=team.id,
                    team_name=team.name,
                    track=str(team.track),
                    review_count=len(scores),
                    average_score=round(sum(scores) / len(scores), 2) if scores else None,
                    round_averages={
                        r: round(sum(v) / len(v), 2)
                        for r, v in sorted(rounds.items(), key=lambda item: round_sort_key(item[0]))
                    },
                )
            )

        results.sort(key=lambda r: (r.average_score is None, -(r.average_score or 0), r.team_name.lower()))
        return results

    # --- audit log ---

    async def create_audit_log(self, payload: AuditLogCreate) -> AuditLogRead:
        async with self.session() as s:
            entry = AuditLog(actor_id=payload.actor_id, action=payload.action, payload=payload.payload)
            s.add(entry)
            await s.flush()
            await s.refresh(entry)
        return AuditLogRead.model_validate(entry)

    async def list_audit_logs(
        self,
        *,
        limit: int,
        offset: int,
        actor_id: Optional[int] = None,
        action: Optional[str] = None,
    ) -> Tuple[list[AuditLogRead], int]:
        """
        Newest entries first. Returns (items, total).
        """
        limit = max(0, int(limit))
        offset = max(0, int(offset))

        async with self.session() as s:
            total_stmt = select(func.count(AuditLog.id))
            items_stmt = select(AuditLog).order_by(AuditLog.id.desc()).limit(limit).offset(offset)
            if actor_id is not None:
                total_stmt = total_stmt.where(AuditLog.actor_id == actor_id)
                items_stmt = items_stmt.where(AuditLog.actor_id == actor_id)
            if action:
                total_stmt = total_stmt.where(AuditLog.action.startswith(action, autoescape=True))
                items_stmt = items_stmt.where(AuditLog.action.startswith(action, autoescape=True))

            total = int((await s.execute(total_stmt)).scalar_one())
            if limit == 0:
                return [], total

            rows = (await s.execute(items_stmt)).scalars().all()

        return [AuditLogRead.model_validate(r) for r in rows], total
