from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, HttpUrl

Category = Literal["nutrition", "training", "recovery", "mindset"]


class ResourceCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    category: Category
    link: Optional[HttpUrl] = None
    content: Optional[str] = None
    premium: bool = False


class Resource(BaseModel):
    id: str
    title: str
    description: str = ""
    category: Category
    link: Optional[str] = None
    content: Optional[str] = None
    premium: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc) -> "Resource":
        return cls(id=doc.id, **{k: v for k, v in doc.data.items() if k in cls.model_fields and k != "id"})


class ResourceView(Resource):
    """Catalog entry as seen by a specific user."""

    locked: bool = False
