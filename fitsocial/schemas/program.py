from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import Field

from fitsocial.schemas.base import BaseSchema

ProgramType = Literal["strength", "cardio", "mixed"]


class ProgramCreate(BaseSchema):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    type: ProgramType
    content: Dict[str, Any] = Field(default_factory=dict)
    is_public: bool = True


class ProgramResponse(BaseSchema):
    id: int
    name: str
    author: str
    type: str
    description: str
    rating: float
    rating_count: int
    creator_id: Optional[int] = None
    content: Dict[str, Any] = Field(default_factory=dict)
    is_public: bool = True
    created_at: datetime


class ProgramRatingCreate(BaseSchema):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None


class ProgramRatingResponse(BaseSchema):
    id: int
    program_id: int
    user_id: int
    rating: int
    comment: Optional[str] = None
    created_at: datetime
