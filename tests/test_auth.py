from models.user import Role

from tests.conftest import PASSWORD, make_user


def test_login_and_me(client, acme):
    resp = client.post("/api/auth/login", json={"email": "Admin@Acme.com ", "password": PASSWORD})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["role"] == "ADMIN"
    assert "password_hash" not in data and "password" not in data

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.get_json()["email"] == "admin@acme.com"


def test_login_wrong_password(client, acme):
    resp = client.post("/api/auth/login", json={"email": "admin@acme.com", "password": "nope"})
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Credenciales inválidas."


def test_login_missing_fields(client):
    resp = client.post("/api/auth/login", json={"email": "x@y.com"})
    assert resp.status_code == 400


def test_user_without_password_cannot_login(app, client, acme):
    make_user(app, "nuevo@acme.com", Role.USER, company_id=acme["company"], password=None,
              has_temporary_password=True)
    resp = client.post("/api/auth/login", json={"email": "nuevo@acme.com", "password": ""})
    assert resp.status_code == 400
    resp = client.post("/api/auth/login", json={"email": "nuevo@acme.com", "password": "cualquiera"})
    assert resp.status_code == 401


def test_inactive_user_cannot_login(app, client):
    make_user(app, "baja@acme.com", Role.USER, is_active=False)
    resp = client.post("/api/auth/login", json={"email": "baja@acme.com", "password": PASSWORD})
    assert resp.status_code == 401


def test_logout(admin_client):
    assert admin_client.post("/api/auth/logout").status_code == 200
    assert admin_client.get("/api/auth/me").status_code == 401


def test_unknown_route_is_json(client):
    resp = client.get("/api/no-existe")
    assert resp.status_code == 404
    assert set(resp.get_json()) == {"error", "message"}
