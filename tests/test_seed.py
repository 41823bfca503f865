import asyncio

from hackportal.db.enums import UserRole
from hackportal.seed import PEOPLE, SHOWCASE_TEAMS, TEST_TEAM_COUNT, fixture_team_name, seed


def test_seed_is_idempotent(db):
    created = asyncio.run(seed(db))
    assert created == {"users": len(PEOPLE) + 2 * TEST_TEAM_COUNT, "teams": len(SHOWCASE_TEAMS) + TEST_TEAM_COUNT}

    again = asyncio.run(seed(db))
    assert again == {"users": 0, "teams": 0}

    users = asyncio.run(db.list_users())
    assert len(users) == len(PEOPLE) + 2 * TEST_TEAM_COUNT
    assert len(asyncio.run(db.list_users(judges=True))) == 3


def test_seeded_fixture_teams_have_a_leader(db):
    asyncio.run(seed(db))
    teams = {t.team_name: t for t in asyncio.run(db.list_teams())}

    team = teams[fixture_team_name(2)]
    assert team.track == "Hardware"
    assert len(team.members) == 2
    assert team.assignments == {"r1": [], "r2": []}

    leader = asyncio.run(db.get_user_by_id(team.leader_id))
    assert leader.email == "zz.team.02.lead@demo.com"
    assert leader.has_role(UserRole.TEAM_LEADER)

    assert teams["Neon Ninjas"].project.name == "GlowFlow"
    assert teams["Byte Bandits"].members == []


def test_seeded_accounts_can_log_in(client, db):
    asyncio.run(seed(db))
    resp = client.post("/api/login", json={"email": "judge1@demo.com", "password": "password"})
    assert resp.status_code == 200, resp.text
    token = resp.json()["token"]
    me = client.get("/api/me", headers={"Authorization": f"Bearer {token}"}).json()
    assert "ROLE_JUDGE" in me["roles"]


def test_reseed_keeps_changes_made_through_the_api(client, db):
    asyncio.run(seed(db))
    token = client.post("/api/login", json={"email": "ava@demo.com", "password": "password"}).json()["token"]
    headers = {"Authorization": f"Bearer {token}"}

    team = client.post("/api/teams", json={"teamName": "Live"}, headers=headers).json()
    client.patch("/api/users/profile", json={"name": "Ava N."}, headers=headers)

    assert asyncio.run(seed(db)) == {"users": 0, "teams": 0}

    resp = client.get(f"/api/teams/{team['id']}", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["leaderId"] == team["leaderId"]
    assert [m["id"] for m in resp.json()["members"]] == [team["leaderId"]]

    me = client.get("/api/me", headers=headers).json()
    assert me["teamId"] == team["id"]
    assert "ROLE_TEAM_LEADER" in me["roles"]
    assert me["name"] == "Ava N."

    fixture = {t.team_name: t for t in asyncio.run(db.list_teams())}[fixture_team_name(1)]
    assert len(fixture.members) == 2
