"""
Password strength rules and hashing.

validate_password() drives both sign-up enforcement and the strength meter
shown while typing; each rule contributes one point to a 0-5 score.
"""

import re
from dataclasses import dataclass, field
from typing import List

import bcrypt

MIN_LENGTH = 8
LOGIN_MIN_LENGTH = 6

BCRYPT_ROUNDS = 12
# bcrypt only reads the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72

_SPECIAL_RE = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")

REQUIREMENTS = (
    ("At least 8 characters", lambda p: len(p) >= MIN_LENGTH),
    ("One uppercase letter (A-Z)", lambda p: re.search(r"[A-Z]", p) is not None),
    ("One lowercase letter (a-z)", lambda p: re.search(r"[a-z]", p) is not None),
    ("One number (0-9)", lambda p: re.search(r"\d", p) is not None),
    ("One special character (!@#$%^&* etc.)", lambda p: _SPECIAL_RE.search(p) is not None),
)


@dataclass(frozen=True)
class PasswordValidation:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    score: int = 0

    @property
    def strength(self) -> str:
        if self.score <= 2:
            return "weak"
        if self.score <= 4:
            return "fair"
        return "strong"


def validate_password(password: str) -> PasswordValidation:
    if not password:
        return PasswordValidation(is_valid=False, errors=["Password is required"], score=0)

    errors = [label for label, check in REQUIREMENTS if not check(password)]
    score = len(REQUIREMENTS) - len(errors)
    return PasswordValidation(is_valid=not errors, errors=errors, score=score)


def validate_password_match(password: str, confirm_password: str) -> bool:
    return password == confirm_password


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > BCRYPT_MAX_BYTES


def hash_password(password: str, *, rounds: int = BCRYPT_ROUNDS) -> str:
    """bcrypt hash with a per-password salt; raises ValueError past 72 bytes."""
    if password_too_long(password):
        raise ValueError(f"password exceeds {BCRYPT_MAX_BYTES} bytes")
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash or password_too_long(password):
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False
