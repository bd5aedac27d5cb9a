"""
Request auth dependencies.

Session tokens arrive as `Authorization: Bearer <token>`; the token is
resolved to the stored UserProfile, which is the authority for role and
plan checks.
"""
from typing import Optional

from fastapi import Depends, Request

from fitlikeus.core.errors import BackendError
from fitlikeus.core.store import DocumentStore, get_store
from fitlikeus.features.auth.service import AuthService, PasswordResetMailer
from fitlikeus.models.user import Role, UserProfile


def get_mailer(app) -> PasswordResetMailer:
    mailer = getattr(app.state, "mailer", None)
    if mailer is None:
        mailer = PasswordResetMailer()
        app.state.mailer = mailer
    return mailer


def get_auth_service(request: Request, store: DocumentStore = Depends(get_store)) -> AuthService:
    return AuthService(store, mailer=get_mailer(request.app))


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_session_token(request: Request) -> str:
    token = extract_bearer_token(request.headers.get("Authorization"))
    if not token:
        raise BackendError("unauthenticated")
    return token


def get_current_user(
    token: str = Depends(get_session_token),
    auth: AuthService = Depends(get_auth_service),
) -> UserProfile:
    return auth.resolve_token(token)


def get_optional_user(
    request: Request,
    auth: AuthService = Depends(get_auth_service),
) -> Optional[UserProfile]:
    token = extract_bearer_token(request.headers.get("Authorization"))
    if not token:
        return None
    return auth.resolve_token(token)


def require_role(role: Role):
    """Dependency factory: only profiles with `role` get through."""

    def dependency(user: UserProfile = Depends(get_current_user)) -> UserProfile:
        if user.role != role:
            raise BackendError("permission-denied", f"role {user.role} cannot access {role} routes")
        return user

    return dependency


require_admin = require_role("admin")
require_client = require_role("client")
