from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import bcrypt
from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

# Higher rank implies every permission of the lower ones
ROLE_RANK: dict[str, int] = {"reader": 1, "editor": 2, "admin": 3}


@dataclass(frozen=True)
class AuthConfig:
    reader_password: str = os.getenv("MEMORY_READER_PASSWORD", "reader123")
    editor_password: str = os.getenv("MEMORY_EDITOR_PASSWORD", "editor123")
    admin_password: str = os.getenv("MEMORY_ADMIN_PASSWORD", "admin123")
    session_secret: str = os.getenv("SESSION_SECRET", "semantic-memory-secret-change-in-production")


DEFAULT_AUTH_CONFIG = AuthConfig()

_users: dict[str, dict[str, Any]] = {}


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def seed_users(config: AuthConfig = DEFAULT_AUTH_CONFIG) -> None:
    """Register one account per role, named after the role."""
    _users.clear()
    _users["reader"] = {"password_hash": _hash_password(config.reader_password), "role": "reader"}
    _users["editor"] = {"password_hash": _hash_password(config.editor_password), "role": "editor"}
    _users["admin"] = {"password_hash": _hash_password(config.admin_password), "role": "admin"}


def authenticate(username: str, password: str) -> dict[str, Any] | None:
    """Verify credentials. Returns ``{username, role}`` or ``None``."""
    record = _users.get(username)
    if record and _verify_password(password, record["password_hash"]):
        return {"username": username, "role": record["role"]}
    return None


def has_role(user: dict[str, Any], role: str) -> bool:
    return ROLE_RANK.get(user.get("role", ""), 0) >= ROLE_RANK[role]


seed_users()
