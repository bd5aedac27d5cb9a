import logging

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional

class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False

    # Document store
    STORE_BACKEND: str = "memory"  # memory | sql
    DATABASE_URL: Optional[str] = None
    TEST_DATABASE_URL: Optional[str] = None

    # Auth sessions
    AUTH_TOKEN_SECRET: Optional[str] = None
    AUTH_TOKEN_TTL_MINUTES: int = 60 * 24 * 7
    PASSWORD_RESET_TTL_MINUTES: int = 60
    PASSWORD_HASH_ROUNDS: int = 12  # bcrypt cost factor (4-31)

    # App URLs
    FRONTEND_URL: str = "http://localhost:5173"
    CORS_ORIGINS: str = "http://localhost:5173"  # comma-separated

    # Consistency streak
    CONSISTENCY_WINDOW_DAYS: int = 7
    CONSISTENCY_MATCH_MODE: str = "date"  # date | weekday

    # Stripe
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_WEBHOOK_SECRET: Optional[str] = None
    STRIPE_PRICE_MONTHLY: Optional[str] = None
    STRIPE_PRICE_YEARLY: Optional[str] = None

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
settings = Settings()


# Used only outside production; validate_env refuses to start without a real secret there.
DEV_TOKEN_SECRET = "fitlikeus-dev-secret"


def token_secret(settings_obj: Optional[Settings] = None) -> str:
    cfg = settings_obj or settings
    return cfg.AUTH_TOKEN_SECRET or DEV_TOKEN_SECRET


def cors_origins(settings_obj: Optional[Settings] = None) -> list[str]:
    cfg = settings_obj or settings
    return [o.strip() for o in (cfg.CORS_ORIGINS or "").split(",") if o.strip()]


# Keys whose absence disables a feature rather than breaking startup
RECOMMENDED_KEYS = ("AUTH_TOKEN_SECRET", "STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET")


def missing_config(settings_obj: Optional[Settings] = None) -> list[str]:
    cfg = settings_obj or settings
    keys = list(RECOMMENDED_KEYS)
    if (getattr(cfg, "STORE_BACKEND", None) or "memory").lower() == "sql":
        keys.insert(0, "DATABASE_URL")
    return [key for key in keys if not getattr(cfg, key, None)]


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Warn about (or, in strict mode, refuse) missing recommended keys. Only key names are logged."""
    cfg = settings_obj or settings
    missing = missing_config(cfg)
    if not missing:
        return True
    message = f"Missing recommended configuration: {', '.join(missing)}"
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)
    if strict_mode:
        raise RuntimeError(message)
    (logger or logging.getLogger("fitlikeus")).warning(message)
    return True
