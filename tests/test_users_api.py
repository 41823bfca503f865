import pytest

from conftest import PASSWORD


def _register(client, **overrides):
    body = {
        "email": "ava@demo.com",
        "password": PASSWORD,
        "confirmPassword": PASSWORD,
        "username": "ava",
    }
    body.update(overrides)
    return client.post("/api/register", json=body)


def test_register_returns_created_user(client):
    resp = _register(client, track="Software", major="Computer Science")
    assert resp.status_code == 201, resp.text
    data = resp.json()
    assert data["message"] == "User created successfully"
    assert data["user"]["email"] == "ava@demo.com"
    assert isinstance(data["user"]["id"], int)


def test_register_normalises_email_and_rejects_duplicates(client):
    assert _register(client, email="Ava@Demo.com").status_code == 201
    resp = _register(client, email="ava@demo.com")
    assert resp.status_code == 400
    assert resp.json() == {"message": "Email is already registered"}


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"email": ""}, "Email is required"),
        ({"email": "not-an-email"}, "Invalid email format"),
        ({"password": "", "confirmPassword": ""}, "Password is required"),
        ({"password": "Ab1!", "confirmPassword": "Ab1!"}, "Password must be between 8 and 4096 characters long"),
        ({"password": "Abc def1!", "confirmPassword": "Abc def1!"}, "Password cannot contain whitespace characters"),
        ({"confirmPassword": "Different1!"}, "Passwords do not match"),
        ({"password": "abcdefg1!", "confirmPassword": "abcdefg1!"}, "Password must contain at least one uppercase letter"),
        ({"password": "ABCDEFG1!", "confirmPassword": "ABCDEFG1!"}, "Password must contain at least one lowercase letter"),
        ({"password": "Abcdefgh!", "confirmPassword": "Abcdefgh!"}, "Password must contain at least one number"),
        ({"password": "Abcdefg12", "confirmPassword": "Abcdefg12"}, "Password must contain at least one special character"),
        ({"username": ""}, "Username is required"),
        ({"username": "ab"}, "Username must be between 3 and 50 characters long"),
        ({"username": "a b c"}, "Username cannot contain whitespace characters"),
        ({"track": "Quantum"}, "Track must be Software or Hardware"),
    ],
)
def test_register_validation(client, overrides, message):
    resp = _register(client, **overrides)
    assert resp.status_code == 400
    assert resp.json() == {"message": message}


def test_judge_and_admin_roles(client, signup, admin):
    judge = signup("judy", judge=True)
    me = judge.get("/api/me").json()
    assert "ROLE_JUDGE" in me["roles"]
    assert "ROLE_USER" in me["roles"]

    me = admin.get("/api/me").json()
    assert "ROLE_ADMIN" in me["roles"]


def test_login_me_logout(client, signup):
    ava = signup("ava", track="Hardware")
    me = ava.get("/api/me")
    assert me.status_code == 200
    body = me.json()
    assert body["email"] == "ava@demo.com"
    assert body["name"] == "ava"
    assert body["track"] == "Hardware"
    assert body["state"] == "Pending"
    assert body["teamId"] is None
    assert "passwordHash" not in body

    assert ava.post("/api/logout").status_code == 200
    resp = ava.get("/api/me")
    assert resp.status_code == 401
    assert resp.json() == {"message": "Auth required"}


def test_login_rejects_bad_credentials(client, signup):
    signup("ava")
    resp = client.post("/api/login", json={"email": "ava@demo.com", "password": "Wrong1!pass"})
    assert resp.status_code == 401
    assert resp.json() == {"message": "Invalid credentials"}

    resp = client.post("/api/login", json={"email": "nobody@demo.com", "password": PASSWORD})
    assert resp.status_code == 401


def test_endpoints_require_a_token(client):
    assert client.get("/api/me").status_code == 401
    assert client.get("/api/teams").status_code == 401
    resp = client.get("/api/users", headers={"Authorization": "Bearer not-a-real-token"})
    assert resp.status_code == 401


def test_rosters_split_participants_and_judges(client, signup):
    ava = signup("ava")
    judge = signup("judy", judge=True)

    users = ava.get("/api/users").json()
    assert [u["id"] for u in users] == [ava.id]

    judges = ava.get("/api/judges").json()
    assert judges == [{"id": judge.id, "name": "judy", "email": "judy@demo.com"}]


def test_update_profile(client, signup):
    ava = signup("ava")
    resp = ava.patch("/api/users/profile", json={"track": "Software", "major": "Physics"})
    assert resp.status_code == 200, resp.text
    assert resp.json()["track"] == "Software"
    assert resp.json()["major"] == "Physics"
    # untouched fields keep their value
    assert resp.json()["name"] == "ava"

    resp = ava.patch("/api/users/profile", json={"major": None})
    assert resp.json()["major"] is None


def test_arrival_state_is_admin_only(client, signup, admin):
    ava = signup("ava")

    resp = ava.patch(f"/api/users/{ava.id}", json={"state": "Checked In"})
    assert resp.status_code == 403

    resp = admin.patch(f"/api/users/{ava.id}", json={"state": "Checked In"})
    assert resp.status_code == 200, resp.text
    assert resp.json()["state"] == "Checked In"

    resp = admin.patch(f"/api/admin/users/{ava.id}", json={"state": "Pending"})
    assert resp.json()["state"] == "Pending"

    assert admin.patch("/api/users/9999", json={"state": "Checked In"}).status_code == 404


def test_invalid_body_is_reported_as_400(client, signup, admin):
    ava = signup("ava")
    resp = admin.patch(f"/api/users/{ava.id}", json={"state": "Teleported"})
    assert resp.status_code == 400
    assert resp.json()["message"].startswith("state")


def test_admin_user_roster_includes_everyone(client, signup, admin):
    signup("ava")
    signup("judy", judge=True)
    emails = {u["email"] for u in admin.get("/api/admin/users").json()}
    assert emails == {"ava@demo.com", "judy@demo.com", "admin@hackportal.dev"}

    assert signup("bob").get("/api/admin/users").status_code == 403
