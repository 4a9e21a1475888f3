from datetime import datetime
from typing import List, Optional

from pydantic import Field

from fitsocial.schemas.base import BaseSchema
from fitsocial.schemas.user import UserSummary
from fitsocial.schemas.workout import PostWorkout


class PostCreate(BaseSchema):
    content: str = Field(..., min_length=1, max_length=5000)
    workout_id: Optional[int] = None
    image: Optional[str] = None


class PostResponse(BaseSchema):
    id: int
    user_id: int
    workout_id: Optional[int] = None
    content: str
    image: Optional[str] = None
    created_at: datetime


class PostDetail(PostResponse):
    """A post with its author, workout summary and engagement counts."""
    user: UserSummary
    workout: Optional[PostWorkout] = None
    comment_count: int = 0
    like_count: int = 0
    liked: bool = False


class CommentCreate(BaseSchema):
    content: Optional[str] = None
    parent_id: Optional[int] = None


class CommentResponse(BaseSchema):
    id: int
    post_id: int
    user_id: int
    parent_id: Optional[int] = None
    content: str
    created_at: datetime


class CommentDetail(CommentResponse):
    user: UserSummary
    replies: List["CommentDetail"] = Field(default_factory=list)


CommentDetail.model_rebuild()
