from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

Role = Literal["admin", "client"]
Level = Literal["beginner", "intermediate", "advanced"]
Plan = Literal["free", "premium"]


class UserProfile(BaseModel):
    """Profile document in `users`, keyed by uid. Authority for access gating."""

    model_config = ConfigDict(frozen=True)

    uid: str
    email: str
    role: Role
    display_name: Optional[str] = None
    level: Level = "beginner"
    plan: Plan = "free"
    premium_expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc) -> "UserProfile":
        return cls(**{k: v for k, v in doc.data.items() if k in cls.model_fields})


class ProfileUpdate(BaseModel):
    display_name: Optional[str] = Field(None, max_length=80)
    level: Optional[Level] = None

    @field_validator("level", mode="before")
    @classmethod
    def level_not_null(cls, value):
        if value is None:
            raise ValueError("level cannot be null")
        return value
