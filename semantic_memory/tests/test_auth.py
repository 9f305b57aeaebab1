from __future__ import annotations

import pytest

from semantic_memory.auth.dependencies import require_role
from semantic_memory.auth.users import DEFAULT_AUTH_CONFIG, authenticate, has_role


def test_authenticate_valid_credentials():
    user = authenticate("editor", DEFAULT_AUTH_CONFIG.editor_password)
    assert user == {"username": "editor", "role": "editor"}


def test_authenticate_wrong_password():
    assert authenticate("admin", "wrong") is None


def test_authenticate_unknown_user():
    assert authenticate("nobody", "whatever") is None


def test_role_hierarchy():
    admin = {"username": "admin", "role": "admin"}
    reader = {"username": "reader", "role": "reader"}
    assert has_role(admin, "reader")
    assert has_role(admin, "editor")
    assert has_role(reader, "reader")
    assert not has_role(reader, "editor")
    assert not has_role({"username": "x", "role": "guest"}, "reader")


def test_require_role_rejects_unknown_role():
    with pytest.raises(ValueError):
        require_role("superuser")


def test_login_and_me(client):
    resp = client.post("/auth/login", json={"username": "reader", "password": DEFAULT_AUTH_CONFIG.reader_password})
    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == "reader"

    resp = client.get("/auth/me")
    assert resp.status_code == 200
    assert resp.json() == {"username": "reader", "role": "reader"}


def test_login_invalid(client):
    resp = client.post("/auth/login", json={"username": "reader", "password": "bad"})
    assert resp.status_code == 401


def test_logout_clears_session(client):
    client.post("/auth/login", json={"username": "reader", "password": DEFAULT_AUTH_CONFIG.reader_password})
    client.post("/auth/logout")
    assert client.get("/auth/me").status_code == 401
