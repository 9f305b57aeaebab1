from __future__ import annotations

from typing import Callable

from fastapi import HTTPException, Request

from .users import ROLE_RANK, has_role


def require_role(role: str) -> Callable[[Request], dict]:
    """Build a dependency that raises 401 if logged out, 403 below ``role``."""
    if role not in ROLE_RANK:
        raise ValueError(f"Unknown role: {role!r}")

    def _dependency(request: Request) -> dict:
        user = request.session.get("user")
        if not user:
            raise HTTPException(status_code=401, detail="Not authenticated")
        if not has_role(user, role):
            raise HTTPException(status_code=403, detail=f"{role.capitalize()} access required")
        return user

    return _dependency


require_reader = require_role("reader")
require_editor = require_role("editor")
require_admin = require_role("admin")
