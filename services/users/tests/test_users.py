from services.users.app.application.passwords import hash_password, verify_password
from services.users.app.domain.models import User
from services.users.app.infrastructure.db import SessionLocal
from shared.testing import assert_error, data_of


def _stored_hash(user_id):
    with SessionLocal() as db:
        return db.get(User, user_id).password_hash


def test_create_user_hashes_password(client, make_user):
    user = make_user()
    assert user["username"] == "jdoe"
    assert user["role"] == "warehouse_staff"
    assert user["is_active"] is True
    assert "password" not in user
    assert "password_hash" not in user

    stored = _stored_hash(user["id"])
    assert stored != "S3cure-pass!"
    assert stored.startswith("$2")
    assert verify_password("S3cure-pass!", stored)


def test_duplicate_username_or_email_conflicts(client, make_user):
    make_user()
    resp = client.post("/api/users", json={"username": "jdoe", "email": "other@example.com", "password": "password123"})
    assert_error(resp, 409, "already exists")
    resp = client.post("/api/users", json={"username": "other", "email": "jdoe@example.com", "password": "password123"})
    assert_error(resp, 409)


def test_short_password_rejected(client):
    resp = client.post("/api/users", json={"username": "short", "email": "s@example.com", "password": "abc"})
    assert_error(resp, 400, "Invalid request")


def test_unknown_role_rejected(client):
    resp = client.post("/api/users", json={
        "username": "boss", "email": "b@example.com", "password": "password123", "role": "overlord",
    })
    assert_error(resp, 400, "Invalid request")


def test_list_filters_by_role(client, make_user):
    make_user()
    make_user(username="acme", email="acme@example.com", role="supplier")

    assert len(data_of(client.get("/api/users"))) == 2
    suppliers = data_of(client.get("/api/users", params={"role": "supplier"}))
    assert [u["username"] for u in suppliers] == ["acme"]


def test_update_rehashes_password(client, make_user):
    user = make_user()
    before = _stored_hash(user["id"])

    updated = data_of(client.put(f"/api/users/{user['id']}", json={"password": "N3w-password", "full_name": "Jane D."}))
    assert updated["full_name"] == "Jane D."

    after = _stored_hash(user["id"])
    assert after != before
    assert verify_password("N3w-password", after)
    assert not verify_password("S3cure-pass!", after)


def test_update_to_taken_username_conflicts(client, make_user):
    make_user()
    other = make_user(username="other", email="other@example.com")
    assert_error(client.put(f"/api/users/{other['id']}", json={"username": "jdoe"}), 409)
    # Keeping its own username is fine
    assert data_of(client.put(f"/api/users/{other['id']}", json={"username": "other"}))["username"] == "other"


def test_soft_delete(client, make_user):
    user = make_user()
    data_of(client.delete(f"/api/users/{user['id']}"))

    assert data_of(client.get("/api/users")) == []
    assert data_of(client.get("/api/users", params={"is_active": False}))[0]["id"] == user["id"]
    assert data_of(client.get(f"/api/users/{user['id']}"))["is_active"] is False


def test_missing_user(client):
    assert_error(client.get("/api/users/404"), 404, "User not found")


def test_verify_password_rejects_non_bcrypt_values():
    assert not verify_password("secret", "plain-text")
    assert verify_password("secret", hash_password("secret", rounds=4))


def test_update_rejects_null_required_fields(client, make_user):
    user = make_user()
    assert_error(client.put(f"/api/users/{user['id']}", json={"username": None}), 400, "username cannot be null")
    assert_error(client.put(f"/api/users/{user['id']}", json={"role": None}), 400, "role cannot be null")
    assert data_of(client.get(f"/api/users/{user['id']}"))["username"] == "jdoe"
