from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from fitsocial.schemas.base import BaseSchema


class UserSummary(BaseSchema):
    """Author block embedded in posts and comments."""
    id: int
    username: str
    avatar: Optional[str] = None


class UserPublic(BaseSchema):
    """A user as returned to clients; the password hash never leaves the server."""
    id: int
    username: str
    email: str
    avatar: Optional[str] = None
    bio: Optional[str] = None
    weekly_goal: int = 4
    use_metric: bool = True
    created_at: datetime


class UserWithFollowStatus(UserPublic):
    is_following: bool = False


class UserProfileResponse(UserPublic):
    workout_count: int
    follower_count: int
    following_count: int
    is_following: bool
    current_streak: int
    weekly_workouts: int


class UserUpdate(BaseSchema):
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None
    weekly_goal: Optional[int] = Field(default=None, ge=1, le=7)
    use_metric: Optional[bool] = None
