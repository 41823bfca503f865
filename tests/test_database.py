import asyncio
from datetime import timedelta

import pytest

from hackportal.config import Settings
from hackportal.db.enums import InvitationStatus, UserRole
from hackportal.db.schemas.review import ReviewCreate
from hackportal.db.schemas.team import TeamCreate, TeamUpdate
from hackportal.db.schemas.user import UserCreate
from hackportal.errors import ConflictError, NotFoundError, PermissionDenied, ValidationFailed


def _user(db, name: str, *roles: UserRole):
    return db.create_user(
        UserCreate(
            email=f"{name}@demo.com",
            password_hash="x",
            name=name,
            roles=[UserRole.USER, *roles],
        )
    )


def test_roles_always_include_user(db):
    async def scenario():
        judge = await db.create_user(
            UserCreate(email="judy@demo.com", password_hash="x", roles=[UserRole.JUDGE])
        )
        assert judge.roles == [UserRole.USER, UserRole.JUDGE]
        assert judge.is_judge and not judge.is_admin

    asyncio.run(scenario())


def test_member_count_never_exceeds_capacity(db):
    async def scenario():
        leader = await _user(db, "lead")
        team = await db.create_team(leader.id, TeamCreate(team_name="Alpha"))
        users = [await _user(db, f"user{i}") for i in range(5)]

        with pytest.raises(ValidationFailed):
            await db.replace_members(team.id, [leader.id] + [u.id for u in users])

        team = await db.replace_members(team.id, [leader.id] + [u.id for u in users[:4]])
        assert len(team.members) == 5
        assert await db.count_members(team.id) == 5

        late = await _user(db, "late")
        with pytest.raises(ValidationFailed):
            await db.create_invitation(team.id, late.id)

    asyncio.run(scenario())


def test_accept_invitation_example(db):
    async def scenario():
        alpha_lead = await _user(db, "alpha")
        beta_lead = await _user(db, "beta")
        alpha = await db.create_team(alpha_lead.id, TeamCreate(team_name="Alpha"))
        beta = await db.create_team(beta_lead.id, TeamCreate(team_name="Beta"))
        user7 = await _user(db, "user7")

        invitation = await db.create_invitation(alpha.id, user7.id)
        other = await db.create_invitation(beta.id, user7.id)

        accepted = await db.accept_invitation(invitation.id, user7.id)
        assert accepted.status == InvitationStatus.ACCEPTED
        assert await db.count_members(alpha.id) == 2

        statuses = {i.id: i.status for i in await db.list_invitations_for_user(user7.id, status=None)}
        assert statuses == {invitation.id: InvitationStatus.ACCEPTED, other.id: InvitationStatus.DECLINED}

        user = await db.get_user_by_id(user7.id)
        assert user.team_id == alpha.id
        assert user.has_role(UserRole.MEMBER)

    asyncio.run(scenario())


def test_team_names_stay_unique(db):
    async def scenario():
        a = await _user(db, "aaa")
        b = await _user(db, "bbb")
        await db.create_team(a.id, TeamCreate(team_name="Alpha"))
        beta = await db.create_team(b.id, TeamCreate(team_name="Beta"))

        with pytest.raises(ConflictError):
            await db.update_team(beta.id, TeamUpdate(name="Alpha"))

        renamed = await db.update_team(beta.id, TeamUpdate(name="Beta"))
        assert renamed.team_name == "Beta"

        names = [t.team_name for t in await db.list_teams()]
        assert len(names) == len(set(names))

    asyncio.run(scenario())


def test_leave_team_requires_membership(db):
    async def scenario():
        leader = await _user(db, "lead")
        outsider = await _user(db, "outsider")
        team = await db.create_team(leader.id, TeamCreate(team_name="Alpha"))

        with pytest.raises(ValidationFailed):
            await db.leave_team(team.id, outsider.id)
        with pytest.raises(NotFoundError):
            await db.leave_team(9999, outsider.id)

    asyncio.run(scenario())


def test_delete_team_removes_reviews(db):
    async def scenario():
        leader = await _user(db, "lead")
        judge = await _user(db, "judy", UserRole.JUDGE)
        team = await db.create_team(leader.id, TeamCreate(team_name="Alpha"))
        await db.set_round_assignment(team.id, "r1", [judge.id])
        await db.upsert_review(team.id, judge.id, ReviewCreate(application=3))
        assert len(await db.list_reviews_by_team(team.id)) == 1

        await db.delete_team(team.id)
        assert await db.get_team(team.id) is None
        assert await db.list_reviews_by_team(team.id) == []
        assert (await db.get_user_by_id(leader.id)).team_id is None

    asyncio.run(scenario())


def test_reviews_require_assignment(db):
    async def scenario():
        leader = await _user(db, "lead")
        judge = await _user(db, "judy", UserRole.JUDGE)
        team = await db.create_team(leader.id, TeamCreate(team_name="Alpha"))

        with pytest.raises(PermissionDenied):
            await db.upsert_review(team.id, judge.id, ReviewCreate())

        with pytest.raises(ValidationFailed):
            await db.set_round_assignment(team.id, "r1", [leader.id])

    asyncio.run(scenario())


def test_expired_tokens_are_dropped(db):
    async def scenario():
        user = await _user(db, "ava")
        await db.create_auth_token(user.id, "a" * 64)

        resolved = await db.get_user_by_token("a" * 64, timedelta(hours=1))
        assert resolved.id == user.id

        assert await db.get_user_by_token("a" * 64, timedelta(seconds=-1)) is None
        assert await db.get_user_by_token("a" * 64, timedelta(hours=1)) is None
        assert await db.delete_auth_token("a" * 64) is False

    asyncio.run(scenario())


def test_round_edit_ignores_rounds_no_longer_configured(db, monkeypatch):
    async def setup():
        leader = await _user(db, "lead")
        judge = await _user(db, "judy", UserRole.JUDGE)
        team = await db.create_team(leader.id, TeamCreate(team_name="Alpha"))
        await db.set_round_assignment(team.id, "r3", [judge.id])
        return team, judge

    team, judge = asyncio.run(setup())
    monkeypatch.setattr(Settings(), "round_count", 2)

    async def scenario():
        updated = await db.set_round_assignment(team.id, "r1", [judge.id])
        assert updated.assignments == {"r1": [judge.id], "r3": [judge.id]}

        with pytest.raises(ValidationFailed):
            await db.set_round_assignment(team.id, "r3", [judge.id])

    asyncio.run(scenario())
