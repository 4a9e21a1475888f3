from typing import Optional

from pydantic import EmailStr, Field

from fitsocial.schemas.base import BaseSchema

# NOTE: email-validator is required by Pydantic for EmailStr validation


class UserRegister(BaseSchema):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)
    avatar: Optional[str] = None
    bio: Optional[str] = None
    weekly_goal: Optional[int] = Field(default=None, ge=1, le=7)
    use_metric: Optional[bool] = None


class UserLogin(BaseSchema):
    username: str
    password: str


class SessionPayload(BaseSchema):
    sub: Optional[str] = None
    exp: Optional[int] = None
