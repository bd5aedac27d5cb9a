from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


def _clean_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    if tags is None:
        return None
    seen: List[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class JournalEntryCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=20000)
    mood: Optional[int] = Field(None, ge=1, le=10)
    workout_id: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, value: List[str]) -> List[str]:
        return _clean_tags(value) or []


class JournalEntryUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1, max_length=20000)
    mood: Optional[int] = Field(None, ge=1, le=10)
    workout_id: Optional[str] = None
    tags: Optional[List[str]] = None

    # Omit a field to keep it; only mood and workout_id can be cleared with null
    @field_validator("title", "content", "tags", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("field cannot be null")
        return value

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_tags(value)


class JournalEntry(BaseModel):
    id: str
    user_id: str
    title: str
    content: str
    mood: Optional[int] = Field(None, ge=1, le=10)
    workout_id: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc) -> "JournalEntry":
        return cls(id=doc.id, **{k: v for k, v in doc.data.items() if k in cls.model_fields and k != "id"})
