from __future__ import annotations

from typing import Optional
import os

import jwt
from fastapi import Depends, HTTPException, Request, status

ROLE_ADMIN = "admin"
ROLE_TESTER = "tester"
DEV_SECRET = "testchat-dev-secret"


class User:
    def __init__(self, subject: str | None, role: str = ROLE_TESTER) -> None:
        self.sub = subject
        self.role = role

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def _secret() -> str:
    return os.getenv("AUTH_JWT_SECRET") or DEV_SECRET


def _enforced() -> bool:
    return os.getenv("ENFORCE_JWT", "").lower() in {"1", "true", "yes"}


def role_for_username(username: str) -> str:
    """Demo role assignment: any username containing 'admin' is an admin."""
    return ROLE_ADMIN if "admin" in username.lower() else ROLE_TESTER


def issue_token(username: str, role: str) -> str:
    return jwt.encode({"sub": username, "role": role}, _secret(), algorithm="HS256")


def _extract_bearer_token(request: Request) -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    return auth.split(" ", 1)[1].strip() or None


async def jwt_optional(request: Request) -> User | None:
    """Accepts JWT when provided. Without ENFORCE_JWT a missing token is an anonymous tester.

    Configuration via env:
      - ENFORCE_JWT: when truthy, require a valid token on protected routes
      - AUTH_JWT_SECRET: HS256 secret for signing and verification
    """
    token = _extract_bearer_token(request)
    if not token:
        if _enforced():
            return None
        return User(subject="anonymous", role=ROLE_TESTER)

    try:
        decoded = jwt.decode(token, _secret(), algorithms=["HS256"])
    except jwt.PyJWTError:
        return None
    role = decoded.get("role") if decoded.get("role") in {ROLE_ADMIN, ROLE_TESTER} else ROLE_TESTER
    return User(subject=str(decoded.get("sub") or "user"), role=role)


async def jwt_required(user: User | None = Depends(jwt_optional)) -> User:
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing or invalid token")
    return user


async def admin_required(user: User = Depends(jwt_required)) -> User:
    """Catalog and configuration changes are admin-only; anonymous dev access is admin unless enforced."""
    if user.is_admin or (user.sub == "anonymous" and not _enforced()):
        return user
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
