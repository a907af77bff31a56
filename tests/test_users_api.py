import uuid

from .conftest import bearer, login


def _create(client, headers, **overrides):
    data = {"username": "  Yeni.Temsilci ", "password": "secret1", "fullName": " Yeni Temsilci "}
    data.update(overrides)
    return client.post("/api/users/representatives", json=data, headers=headers)


def test_list_representatives(client, rep_headers):
    r = client.get("/api/users/representatives", headers=rep_headers)
    assert r.status_code == 200
    reps = r.get_json()
    assert [u["username"] for u in reps] == ["temsilci"]
    assert all(u["role"] == "REPRESENTATIVE" for u in reps)


def test_create_representative(client, admin_headers):
    r = _create(client, admin_headers)
    assert r.status_code == 201
    body = r.get_json()
    assert body["username"] == "yeni.temsilci"
    assert body["fullName"] == "Yeni Temsilci"
    assert body["role"] == "REPRESENTATIVE"
    assert body["isActive"] is True

    token = login(client, "YENI.TEMSILCI", "secret1")
    assert client.get("/api/auth/me", headers=bearer(token)).get_json()["role"] == "REPRESENTATIVE"


def test_create_representative_conflicts(client, admin_headers):
    assert _create(client, admin_headers, username="Temsilci").status_code == 409
    assert _create(client, admin_headers, username="admin").status_code == 409


def test_create_representative_validation(client, admin_headers):
    assert _create(client, admin_headers, password="123").status_code == 400
    assert _create(client, admin_headers, username="ab").status_code == 400
    assert _create(client, admin_headers, fullName=None).status_code == 400


def test_update_representative(client, admin_headers):
    rep_id = _create(client, admin_headers).get_json()["id"]

    r = client.patch(
        f"/api/users/representatives/{rep_id}",
        json={"fullName": "Yeni Ad", "password": "changed1", "isActive": False},
        headers=admin_headers,
    )
    assert r.status_code == 200
    body = r.get_json()
    assert body["fullName"] == "Yeni Ad"
    assert body["isActive"] is False

    # inactive representatives sort last
    usernames = [u["username"] for u in client.get("/api/users/representatives", headers=admin_headers).get_json()]
    assert usernames == ["temsilci", "yeni.temsilci"]

    r = client.post("/api/auth/login", json={"username": "yeni.temsilci", "password": "changed1"})
    assert r.status_code == 401
    assert r.get_json()["error"] == "Account is inactive."


def test_update_unknown_representative(client, admin_headers):
    r = client.patch(f"/api/users/representatives/{uuid.uuid4()}", json={"fullName": "Kim"}, headers=admin_headers)
    assert r.status_code == 404

    admin_id = client.get("/api/auth/me", headers=admin_headers).get_json()["id"]
    r = client.patch(f"/api/users/representatives/{admin_id}", json={"isActive": False}, headers=admin_headers)
    assert r.status_code == 404


def test_malformed_representative_id_is_400(client, admin_headers):
    r = client.patch("/api/users/representatives/abc", json={"fullName": "Kim"}, headers=admin_headers)
    assert r.status_code == 400
    assert "UUID" in r.get_json()["error"]
