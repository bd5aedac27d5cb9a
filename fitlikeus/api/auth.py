from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from fitlikeus.core.auth import get_auth_service, get_current_user, get_session_token
from fitlikeus.core.errors import ValidationError
from fitlikeus.core.store import DocumentStore, get_store
from fitlikeus.features.auth.passwords import (
    LOGIN_MIN_LENGTH,
    REQUIREMENTS,
    validate_password,
    validate_password_match,
)
from fitlikeus.features.auth.service import AuthService, AuthSession
from fitlikeus.features.premium.service import is_premium
from fitlikeus.features.users.routing import landing_path
from fitlikeus.features.users.service import update_profile
from fitlikeus.models.user import ProfileUpdate, UserProfile

router = APIRouter(prefix="/v1/auth")


class SignUpRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str
    confirm_password: Optional[str] = None
    display_name: Optional[str] = Field(None, max_length=80)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=LOGIN_MIN_LENGTH)


class PasswordResetRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    continue_url: Optional[str] = None


class PasswordResetConfirm(BaseModel):
    code: str = Field(..., min_length=1)
    new_password: str
    confirm_password: Optional[str] = None


class PasswordStrengthRequest(BaseModel):
    password: str = ""


def _session_payload(session: AuthSession) -> dict:
    return {
        "token": session.token,
        "token_type": "bearer",
        "expires_at": session.expires_at,
        "profile": session.profile,
        "landing_path": landing_path(session.profile),
    }


@router.post("/signup", status_code=201)
def sign_up(body: SignUpRequest, auth: AuthService = Depends(get_auth_service)):
    if body.confirm_password is not None and not validate_password_match(body.password, body.confirm_password):
        raise ValidationError("Passwords do not match")
    session = auth.sign_up(body.email, body.password, display_name=body.display_name)
    return _session_payload(session)


@router.post("/login")
def login(body: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    return _session_payload(auth.sign_in(body.email, body.password))


@router.post("/logout")
def logout(token: str = Depends(get_session_token), auth: AuthService = Depends(get_auth_service)):
    auth.sign_out(token)
    return {"ok": True}


@router.post("/password-reset")
def request_password_reset(body: PasswordResetRequest, auth: AuthService = Depends(get_auth_service)):
    auth.send_password_reset(body.email, body.continue_url)
    return {"sent": True}


@router.get("/password-reset/verify")
def verify_password_reset(code: str = Query(..., min_length=1), auth: AuthService = Depends(get_auth_service)):
    return {"email": auth.verify_reset_code(code)}


@router.post("/password-reset/confirm")
def confirm_password_reset(body: PasswordResetConfirm, auth: AuthService = Depends(get_auth_service)):
    if body.confirm_password is not None and not validate_password_match(body.new_password, body.confirm_password):
        raise ValidationError("Passwords do not match")
    auth.confirm_password_reset(body.code, body.new_password)
    return {"ok": True}


@router.post("/password-strength")
def password_strength(body: PasswordStrengthRequest):
    """Strength meter for the sign-up and reset forms."""
    result = validate_password(body.password)
    return {
        "is_valid": result.is_valid,
        "score": result.score,
        "strength": result.strength,
        "errors": result.errors,
        "requirements": [{"label": label, "met": bool(body.password) and check(body.password)} for label, check in REQUIREMENTS],
    }


@router.get("/me")
def me(user: UserProfile = Depends(get_current_user)):
    return {
        "profile": user,
        "landing_path": landing_path(user),
        "is_premium": is_premium(user),
    }


@router.patch("/me")
def update_me(
    changes: ProfileUpdate,
    user: UserProfile = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    profile = update_profile(store, user.uid, changes)
    return {"profile": profile, "landing_path": landing_path(profile)}
