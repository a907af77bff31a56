from itsdangerous import URLSafeTimedSerializer

from shop_admin.auth.tokens import TOKEN_SALT, bearer_token, issue_access_token, verify_access_token
from shop_admin.extensions import db
from shop_admin.models import AdminUser

from .conftest import ADMIN, REP, bearer, login


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    body = r.get_json()
    assert body["status"] == "ok"
    assert body["service"]
    assert body["timestamp"].endswith("Z")


def test_login_returns_token_and_profile(client):
    r = client.post("/api/auth/login", json={"username": "  ADMIN ", "password": ADMIN[1]})
    assert r.status_code == 200
    body = r.get_json()
    assert body["accessToken"]
    assert body["user"]["username"] == "admin"
    assert body["user"]["role"] == "ADMIN"
    assert "passwordHash" not in body["user"]


def test_login_rejects_wrong_password(client):
    r = client.post("/api/auth/login", json={"username": ADMIN[0], "password": "nope"})
    assert r.status_code == 401
    assert r.get_json() == {"error": "Invalid username or password.", "statusCode": 401}

    r = client.post("/api/auth/login", json={"username": "ghost", "password": "whatever"})
    assert r.status_code == 401


def test_login_requires_fields(client):
    r = client.post("/api/auth/login", json={"username": "admin"})
    assert r.status_code == 400
    assert "password" in r.get_json()["error"]


def test_inactive_account(client, rep_headers):
    rep = AdminUser.query.filter_by(username=REP[0]).one()
    rep.is_active = False
    db.session.commit()

    r = client.post("/api/auth/login", json={"username": REP[0], "password": REP[1]})
    assert r.status_code == 401
    assert r.get_json()["error"] == "Account is inactive."

    # tokens issued before deactivation stop working
    assert client.get("/api/auth/me", headers=rep_headers).status_code == 401


def test_me(client, rep_headers):
    r = client.get("/api/auth/me", headers=rep_headers)
    assert r.status_code == 200
    body = r.get_json()
    assert body["username"] == "temsilci"
    assert body["role"] == "REPRESENTATIVE"
    assert body["fullName"] == "Musteri Temsilcisi"


def test_me_rejects_bad_tokens(client):
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers=bearer("garbage")).status_code == 401

    forged = URLSafeTimedSerializer("another-secret", salt=TOKEN_SALT).dumps({"sub": "x"})
    assert client.get("/api/auth/me", headers=bearer(forged)).status_code == 401


def test_token_round_trip(app):
    admin = AdminUser.query.filter_by(username=ADMIN[0]).one()
    payload = verify_access_token(issue_access_token(admin))
    assert payload == {"sub": admin.id, "username": "admin", "role": "ADMIN"}


def test_expired_token(app, monkeypatch):
    admin = AdminUser.query.filter_by(username=ADMIN[0]).one()
    token = issue_access_token(admin)
    monkeypatch.setitem(app.config, "JWT_EXPIRES_IN", -1)
    assert verify_access_token(token) is None


def test_bearer_token():
    assert bearer_token("Bearer abc") == "abc"
    assert bearer_token("bearer   abc ") == "abc"
    assert bearer_token("abc") == "abc"
    assert bearer_token(None) is None


def test_representative_cannot_manage_users(client, rep_headers):
    r = client.post(
        "/api/users/representatives",
        json={"username": "yeni", "password": "secret1", "fullName": "Yeni Kisi"},
        headers=rep_headers,
    )
    assert r.status_code == 403
    assert r.get_json()["statusCode"] == 403


def test_login_helper_matches_token_flow(client):
    token = login(client, *ADMIN)
    assert client.get("/api/settings", headers=bearer(token)).status_code == 200
