"""Auth API: registration, login, current user, logout.

- POST /auth/register → create account + first session token
- POST /auth/login → email/password → new session token (one per device)
- GET /auth/me → current user
- POST /auth/logout → revoke the token used for this request
- POST /auth/logout-all → revoke every session of the current user
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tasktrack.auth.dependencies import CurrentIdentity, get_current_user
from tasktrack.db.engine import get_db
from tasktrack.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserEnvelope,
)
from tasktrack.schemas.common import MessageResponse
from tasktrack.services.auth_service import AuthService

router = APIRouter(prefix="/auth")


def _auth_svc(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(body: RegisterRequest, svc: AuthService = Depends(_auth_svc)):
    """Create a new user account and log it in."""
    user = await svc.register(name=body.name, email=body.email, password=body.password)
    token = await svc.issue_token(user)
    return {"message": "User registered successfully", "user": user, "token": token}


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, svc: AuthService = Depends(_auth_svc)):
    """Login with email and password → session token."""
    user = await svc.authenticate(body.email, body.password)
    token = await svc.issue_token(user)
    return {"message": "Login successful", "user": user, "token": token}


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=UserEnvelope)
async def get_me(identity: CurrentIdentity = Depends(get_current_user)):
    return {"user": identity.user}


# ─── Logout ─────────────────────────────────────────────


@router.post("/logout", response_model=MessageResponse)
async def logout(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: AuthService = Depends(_auth_svc),
):
    """Revoke this session only. Other devices stay logged in."""
    await svc.logout(identity.user_id, identity.token)
    return {"message": "Logged out successfully"}


@router.post("/logout-all", response_model=MessageResponse)
async def logout_all(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: AuthService = Depends(_auth_svc),
):
    """Revoke every session of the current user, including this one."""
    count = await svc.logout_all(identity.user_id)
    return {"message": f"Logged out of {count} session(s)"}
