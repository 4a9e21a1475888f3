from typing import Optional

from fastapi import Depends, HTTPException, Request, Response, status

from fitsocial.api.deps import get_storage
from fitsocial.core import security
from fitsocial.core.config import settings
from fitsocial.models.user import User
from fitsocial.services.storage import AbstractStorage
from fitsocial.utils.logger import auth_logger


class AuthService:
    """
    Session handling for the cookie-based login.

    The session cookie carries a signed token whose subject is the user id;
    there is no server-side session table.
    """

    @staticmethod
    def start_session(response: Response, user_id: int) -> None:
        """Attach a fresh session cookie for ``user_id`` to the response."""
        response.set_cookie(
            key=settings.SESSION_COOKIE_NAME,
            value=security.create_session_token(user_id),
            max_age=settings.SESSION_MAX_AGE_SECONDS,
            httponly=True,
            secure=settings.SESSION_COOKIE_SECURE,
            samesite="lax",
            path="/",
        )

    @staticmethod
    def end_session(response: Response) -> None:
        response.delete_cookie(key=settings.SESSION_COOKIE_NAME, path="/")

    @staticmethod
    def get_session_user_id(request: Request) -> Optional[int]:
        token = request.cookies.get(settings.SESSION_COOKIE_NAME)
        if not token:
            return None
        return security.decode_session_token(token)

    @classmethod
    async def authenticate(cls, storage: AbstractStorage, username: str, password: str) -> Optional[User]:
        user = await storage.get_user_by_username(username)
        if user is None or not security.verify_password(password, user.hashed_password):
            auth_logger.warning("Failed login attempt", context="LOGIN", username=username)
            return None
        return user


async def get_current_user(
    request: Request,
    storage: AbstractStorage = Depends(get_storage),
) -> User:
    """Resolve the logged-in user from the session cookie, or fail with 401."""
    user_id = AuthService.get_session_user_id(request)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    user = await storage.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user
