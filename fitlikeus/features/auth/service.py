"""
Email/password auth on top of the document store.

Handles:
- Sign-up (credential + profile), sign-in, sign-out
- Signed session tokens (PyJWT, HS256) with revocation on sign-out
- Password reset codes (single use, TTL) and confirmation

Every failure is raised as BackendError with an auth/* code so callers can
map it to user-facing text.
"""

import logging
import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional
from urllib.parse import urlencode
from uuid import uuid4

import jwt

from fitlikeus.core.config import Settings, settings, token_secret
from fitlikeus.core.errors import BackendError
from fitlikeus.core.logging import log_event
from fitlikeus.core.metrics import auth_events_total
from fitlikeus.core.store import DocumentStore, Query, SERVER_TIMESTAMP
from fitlikeus.features.auth.passwords import hash_password, password_too_long, validate_password, verify_password
from fitlikeus.models.user import Role, UserProfile

logger = logging.getLogger(__name__)

USERS = "users"
CREDENTIALS = "auth_users"
PASSWORD_RESETS = "password_resets"
REVOKED_TOKENS = "revoked_tokens"

TOKEN_ALGORITHM = "HS256"

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True)
class AuthSession:
    token: str
    expires_at: datetime
    profile: UserProfile


@dataclass
class ResetMessage:
    email: str
    code: str
    link: str


class PasswordResetMailer:
    """Hands reset links to the delivery channel.

    Delivery itself is external; this keeps an outbox (read by dev tooling
    and tests) and records that a link was issued.
    """

    def __init__(self):
        self.outbox: List[ResetMessage] = []

    def send(self, email: str, code: str, link: str) -> None:
        self.outbox.append(ResetMessage(email=email, code=code, link=link))
        log_event("info", "auth.password_reset.issued", event_type="auth.password_reset.issued", extra={"email": email})


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class AuthService:
    def __init__(
        self,
        store: DocumentStore,
        *,
        settings_obj: Optional[Settings] = None,
        mailer: Optional[PasswordResetMailer] = None,
    ):
        self._store = store
        self._settings = settings_obj or settings
        self._mailer = mailer or PasswordResetMailer()

    # Sessions -------------------------------------------------------------
    def sign_up(
        self,
        email: str,
        password: str,
        *,
        role: Role = "client",
        display_name: Optional[str] = None,
    ) -> AuthSession:
        email = normalize_email(email)
        if not _EMAIL_RE.match(email):
            raise BackendError("auth/invalid-email")
        if not validate_password(password).is_valid:
            raise BackendError("auth/weak-password")
        if password_too_long(password):
            raise BackendError("auth/invalid-password", "Password must be at most 72 bytes")
        if self._find_credential(email) is not None:
            raise BackendError("auth/email-already-in-use")

        uid = uuid4().hex
        self._store.set(CREDENTIALS, uid, {
            "uid": uid,
            "email": email,
            "password_hash": hash_password(password, rounds=self._settings.PASSWORD_HASH_ROUNDS),
            "disabled": False,
            "created_at": SERVER_TIMESTAMP,
        })
        self._store.set(USERS, uid, {
            "uid": uid,
            "email": email,
            "role": role,
            "display_name": display_name,
            "level": "beginner",
            "plan": "free",
            "created_at": SERVER_TIMESTAMP,
            "updated_at": SERVER_TIMESTAMP,
        })
        auth_events_total.inc(labels={"event": "sign_up"})
        log_event("info", "auth.sign_up", user_id=uid, event_type="auth.sign_up", extra={"role": role})
        return self._issue_session(self.get_profile(uid))

    def sign_in(self, email: str, password: str) -> AuthSession:
        credential = self._find_credential(normalize_email(email))
        if credential is None:
            auth_events_total.inc(labels={"event": "sign_in_failed"})
            raise BackendError("auth/user-not-found")
        if credential.get("disabled"):
            raise BackendError("auth/user-disabled")
        if not verify_password(password or "", credential.get("password_hash", "")):
            auth_events_total.inc(labels={"event": "sign_in_failed"})
            raise BackendError("auth/wrong-password")

        auth_events_total.inc(labels={"event": "sign_in"})
        log_event("info", "auth.sign_in", user_id=credential.id, event_type="auth.sign_in")
        return self._issue_session(self.get_profile(credential.id))

    def sign_out(self, token: str) -> None:
        claims = self._decode(token)
        self._store.set(REVOKED_TOKENS, claims["jti"], {
            "uid": claims["sub"],
            "revoked_at": SERVER_TIMESTAMP,
        })
        auth_events_total.inc(labels={"event": "sign_out"})
        log_event("info", "auth.sign_out", user_id=claims["sub"], event_type="auth.sign_out")

    def resolve_token(self, token: str) -> UserProfile:
        """Return the profile behind a session token."""
        claims = self._decode(token)
        if self._store.get(REVOKED_TOKENS, claims["jti"]) is not None:
            raise BackendError("auth/session-cookie-expired")
        credential = self._store.get(CREDENTIALS, claims["sub"])
        if credential is None:
            raise BackendError("unauthenticated")
        if credential.get("disabled"):
            raise BackendError("auth/user-disabled")
        return self.get_profile(claims["sub"])

    def get_profile(self, uid: str) -> UserProfile:
        doc = self._store.get(USERS, uid)
        if doc is None:
            raise BackendError("not-found", "User profile not found")
        return UserProfile.from_document(doc)

    # Password reset -------------------------------------------------------
    def send_password_reset(self, email: str, continue_url: Optional[str] = None) -> None:
        email = normalize_email(email)
        if not _EMAIL_RE.match(email):
            raise BackendError("auth/invalid-email")
        credential = self._find_credential(email)
        if credential is None:
            raise BackendError("auth/user-not-found")

        code = secrets.token_urlsafe(24)
        expires_at = self._store.now() + timedelta(minutes=self._settings.PASSWORD_RESET_TTL_MINUTES)
        self._store.set(PASSWORD_RESETS, code, {
            "uid": credential.id,
            "email": email,
            "expires_at": expires_at,
            "used": False,
            "created_at": SERVER_TIMESTAMP,
        })
        base = (continue_url or f"{self._settings.FRONTEND_URL.rstrip('/')}/reset-password")
        link = f"{base}?{urlencode({'oobCode': code})}"
        self._mailer.send(email, code, link)

    def verify_reset_code(self, code: str) -> str:
        return self._load_reset(code).get("email")

    def confirm_password_reset(self, code: str, new_password: str) -> None:
        reset = self._load_reset(code)
        if not validate_password(new_password).is_valid:
            raise BackendError("auth/weak-password")
        if password_too_long(new_password):
            raise BackendError("auth/invalid-password", "Password must be at most 72 bytes")
        self._store.update(CREDENTIALS, reset.get("uid"), {
            "password_hash": hash_password(new_password, rounds=self._settings.PASSWORD_HASH_ROUNDS),
        })
        self._store.update(PASSWORD_RESETS, code, {"used": True, "used_at": SERVER_TIMESTAMP})
        auth_events_total.inc(labels={"event": "password_reset"})
        log_event("info", "auth.password_reset.confirmed", user_id=reset.get("uid"), event_type="auth.password_reset.confirmed")

    # Internal helpers -----------------------------------------------------
    def _find_credential(self, email: str):
        matches = self._store.query(Query(CREDENTIALS).where("email", "==", email).limit(1))
        return matches[0] if matches else None

    def _load_reset(self, code: str):
        if not code:
            raise BackendError("auth/invalid-action-code")
        reset = self._store.get(PASSWORD_RESETS, code)
        if reset is None or reset.get("used"):
            raise BackendError("auth/invalid-action-code")
        expires_at = reset.get("expires_at")
        if expires_at is not None and expires_at <= self._store.now():
            raise BackendError("auth/expired-action-code")
        return reset

    def _issue_session(self, profile: UserProfile) -> AuthSession:
        issued_at = self._store.now()
        expires_at = issued_at + timedelta(minutes=self._settings.AUTH_TOKEN_TTL_MINUTES)
        token = jwt.encode(
            {
                "sub": profile.uid,
                "role": profile.role,
                "jti": uuid4().hex,
                "iat": int(issued_at.timestamp()),
                "exp": int(expires_at.timestamp()),
            },
            token_secret(self._settings),
            algorithm=TOKEN_ALGORITHM,
        )
        return AuthSession(token=token, expires_at=expires_at, profile=profile)

    def _decode(self, token: str) -> dict:
        try:
            claims = jwt.decode(
                token,
                token_secret(self._settings),
                algorithms=[TOKEN_ALGORITHM],
                options={"require": ["sub", "jti", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise BackendError("auth/session-cookie-expired")
        except jwt.InvalidTokenError as e:
            logger.debug(f"Invalid token: {e}")
            raise BackendError("unauthenticated")
        return claims
