import json


def _entries(admin, **params):
    resp = admin.get("/api/admin/audit-log", params=params)
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_mutations_are_audited_with_actor(client, signup, admin):
    ava = signup("ava")
    resp = ava.post("/api/teams", json={"teamName": "Alpha"})
    assert resp.status_code == 201

    page = _entries(admin, action="services.team.create_team")
    assert page["total"] == 1
    entry = page["items"][0]
    assert entry["actorId"] == ava.id
    assert entry["payload"]["actor"]["email"] == "ava@demo.com"
    assert entry["payload"]["target"]["payload"]["team_name"] == "Alpha"
    assert entry["payload"]["result"]["team_name"] == "Alpha"


def test_failures_are_audited_as_errors(client, signup, admin):
    ava = signup("ava")
    bob = signup("bob")
    ava.post("/api/teams", json={"teamName": "Alpha"})
    assert bob.post("/api/teams", json={"teamName": "Alpha"}).status_code == 409

    page = _entries(admin, action="services.team.create_team.error")
    assert page["total"] == 1
    error = page["items"][0]["payload"]["error"]
    assert error == {"type": "ConflictError", "message": "Team name already exists"}


def test_registration_never_stores_passwords(client, signup, admin):
    signup("ava")
    page = _entries(admin, action="services.user.register")
    assert page["total"] == 2  # ava and the admin
    dumped = json.dumps(page)
    assert "Secr3t!pass" not in dumped
    assert "passwordHash" not in dumped and "password_hash" not in dumped


def test_audit_log_filters_and_access(client, signup, admin):
    ava = signup("ava")
    ava.post("/api/teams", json={"teamName": "Alpha"})

    page = _entries(admin, actorId=ava.id)
    assert page["total"] >= 2
    assert all(item["actorId"] == ava.id for item in page["items"])

    page = _entries(admin, limit=1)
    assert len(page["items"]) == 1
    assert page["total"] > 1

    assert ava.get("/api/admin/audit-log").status_code == 403


def test_entries_name_the_affected_team(client, signup, admin):
    ava = signup("ava")
    team = ava.post("/api/teams", json={"teamName": "Alpha"}).json()
    assert ava.delete(f"/api/teams/{team['id']}").status_code == 200

    entry = _entries(admin, action="services.team.delete_team")["items"][0]
    assert entry["actorId"] == ava.id
    assert entry["payload"]["target"] == {"team_id": team["id"]}
    assert entry["payload"]["result"] is None


def test_action_filter_is_a_literal_prefix(client, signup, admin):
    ava = signup("ava")
    ava.post("/api/teams", json={"teamName": "Alpha"})

    assert _entries(admin, action="services.team.create_team")["total"] == 1
    assert _entries(admin, action="services.team.create_tea_")["total"] == 0
    assert _entries(admin, action="services.team.%")["total"] == 0
