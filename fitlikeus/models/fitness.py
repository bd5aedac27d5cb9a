from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator

Intensity = Literal["low", "medium", "high"]


class FitnessEntryCreate(BaseModel):
    exercise: str = Field(..., max_length=100)
    duration: int = Field(30, ge=1, le=1440)  # minutes
    intensity: Intensity = "medium"
    calories: int = Field(0, ge=0, le=20000)
    notes: str = Field("", max_length=1000)
    date: Optional[datetime] = None

    @field_validator("exercise")
    @classmethod
    def exercise_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("exercise is required")
        return value


class FitnessEntryUpdate(BaseModel):
    exercise: Optional[str] = Field(None, max_length=100)
    duration: Optional[int] = Field(None, ge=1, le=1440)
    intensity: Optional[Intensity] = None
    calories: Optional[int] = Field(None, ge=0, le=20000)
    notes: Optional[str] = Field(None, max_length=1000)
    date: Optional[datetime] = None

    @field_validator("exercise", "duration", "intensity", "calories", "notes", "date", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("field cannot be null")
        return value

    @field_validator("exercise")
    @classmethod
    def exercise_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("exercise cannot be blank")
        return value


class FitnessEntry(BaseModel):
    id: str
    user_id: str
    exercise: str
    duration: int
    intensity: Intensity
    calories: int = 0
    notes: str = ""
    date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc) -> "FitnessEntry":
        return cls(id=doc.id, **{k: v for k, v in doc.data.items() if k in cls.model_fields and k != "id"})


class FitnessSummary(BaseModel):
    total_entries: int
    total_duration: int
    total_calories: int
