"""
Authentication routes and dependencies
"""

from typing import Optional
from fastapi import APIRouter, HTTPException, Header, Depends, Cookie
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from auth_utils import create_jwt, decode_jwt, validate_password_strength, SESSION_MAX_AGE_SECONDS
from backend.identity.base import IdentityError, IdentityProvider
from backend.identity.providers import get_identity_provider
from backend.webhook.notifier import ONBOARDING_PATH, public_base_url
from config.settings import settings
from crud.user import UserRepository
from database import get_db
from database_models import User

logger = logging.getLogger(__name__)

# Create auth router
auth_router = APIRouter(prefix="/api/auth", tags=["auth"])


# Request models
class LoginRequest(BaseModel):
    email: str
    password: str


class MagicLinkRequest(BaseModel):
    email: str


class SetPasswordRequest(BaseModel):
    password: str
    confirm_password: str


def _session_response(content: dict, token: str) -> JSONResponse:
    response = JSONResponse(content=content)
    _set_session_cookie(response, token)
    return response


def _set_session_cookie(response, token: str) -> None:
    response.set_cookie(
        key="auth_token",
        value=token,
        httponly=True,
        secure=True,
        samesite="Lax",
        max_age=SESSION_MAX_AGE_SECONDS,
    )


@auth_router.post("/login")
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
    identities: IdentityProvider = Depends(get_identity_provider),
):
    """Login with email and password and get a session cookie"""
    identity = await identities.authenticate(request.email.strip().lower(), request.password)
    if not identity:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    user = await UserRepository(db).get_user_by_id(identity.id)
    if not user:
        # Identity exists but checkout never provisioned a profile
        raise HTTPException(status_code=403, detail="No active subscription for this account")
    if user.status != "active":
        raise HTTPException(status_code=403, detail="Subscription is not active")

    return _session_response({"ok": True, "user_id": user.id}, create_jwt(user.id))


@auth_router.post("/magic-link")
async def request_magic_link(
    body: MagicLinkRequest,
    identities: IdentityProvider = Depends(get_identity_provider),
):
    """
    Send a sign-in link to an existing account.
    Always answers the same way so the endpoint cannot reveal which emails are registered.
    """
    base_url = public_base_url(settings.app_url)
    try:
        await identities.send_magic_link(body.email.strip().lower(), f"{base_url}{ONBOARDING_PATH}")
    except IdentityError as e:
        logger.info(f"Magic link not sent: {e}")
    return {"ok": True, "message": "If the email is registered, a sign-in link is on its way"}


@auth_router.get("/verify")
async def verify_magic_link(
    token: str,
    db: AsyncSession = Depends(get_db),
    identities: IdentityProvider = Depends(get_identity_provider),
):
    """Consume a sign-in link: confirm the identity, set the session cookie, redirect."""
    try:
        identity, next_url = await identities.verify_magic_link(token)
    except IdentityError as e:
        raise HTTPException(status_code=400, detail=str(e))

    user = await UserRepository(db).get_user_by_id(identity.id)
    if not user:
        raise HTTPException(status_code=403, detail="No active subscription for this account")
    await db.commit()

    target = next_url or f"{public_base_url(settings.app_url)}{ONBOARDING_PATH}"
    response = RedirectResponse(url=target, status_code=303)
    _set_session_cookie(response, create_jwt(user.id))
    return response


@auth_router.post("/logout")
async def logout():
    """Logout and clear auth token cookie"""
    response = JSONResponse(
        content={
            "ok": True,
            "message": "Logged out successfully"
        }
    )
    # Clear the auth_token cookie by setting max_age=0
    response.set_cookie(
        key="auth_token",
        value="",
        httponly=True,
        secure=True,
        samesite="Lax",
        max_age=0
    )
    return response


# Dependency for protected routes
async def get_current_user(
    auth_token: Optional[str] = Cookie(None),
    authorization: Optional[str] = Header(None, alias="Authorization"),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Dependency function to get current authenticated user.

    Authentication priority:
    1. Check auth_token cookie first (httpOnly cookie set by login/verify)
    2. Fallback to Authorization header (Bearer token) for API consumers
    3. Raise 401 if neither is found
    """
    token = None
    if auth_token:
        token = auth_token
    elif authorization and authorization.startswith("Bearer "):
        token = authorization.replace("Bearer ", "").strip()

    if not token:
        raise HTTPException(status_code=401, detail="Missing authentication token")

    payload = decode_jwt(token)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token payload")

    user = await UserRepository(db).get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    if user.status != "active":
        raise HTTPException(status_code=403, detail="Subscription is not active")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.email.lower() not in settings.admin_email_list:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


@auth_router.get("/me")
async def get_current_user_info(user: User = Depends(get_current_user)):
    """Get current user information from the session token"""
    return {
        "ok": True,
        "user_id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "profile_type": user.profile_type,
        "subscription_plan": user.subscription_plan,
        "subscription_end_date": user.subscription_end_date.isoformat() if user.subscription_end_date else None,
        "status": user.status,
        "is_admin": user.email.lower() in settings.admin_email_list,
    }


@auth_router.post("/set-password")
async def set_password(
    request: SetPasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    identities: IdentityProvider = Depends(get_identity_provider),
):
    """Choose a password after signing in with a magic link"""
    try:
        validate_password_strength(request.password)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if request.password != request.confirm_password:
        raise HTTPException(status_code=400, detail="Passwords do not match")

    try:
        await identities.update_password(user.id, request.password, mark_password_set=True)
    except IdentityError as e:
        logger.error(f"Password update failed for {user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to set password")
    await db.commit()
    return {"ok": True, "message": "Password set successfully"}
