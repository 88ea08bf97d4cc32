from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ..auth import issue_token, role_for_username


router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    username: str = Field(..., description="Any non-empty name; names containing 'admin' get the admin role.")
    password: str


class LoginResponse(BaseModel):
    token: str
    username: str
    role: str


@router.post("/login", response_model=LoginResponse)
async def login(req: LoginRequest) -> LoginResponse:
    """Demo login: no credential store, the role is derived from the username."""
    username = req.username.strip()
    if not username or not req.password:
        raise HTTPException(status_code=400, detail="username and password are required")
    role = role_for_username(username)
    return LoginResponse(token=issue_token(username, role), username=username, role=role)
