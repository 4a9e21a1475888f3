from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from fitsocial.api.deps import get_storage
from fitsocial.core.security import default_avatar, get_password_hash
from fitsocial.schemas.auth import UserLogin, UserRegister
from fitsocial.schemas.base import MessageResponse
from fitsocial.schemas.user import UserPublic
from fitsocial.services.auth import AuthService
from fitsocial.services.storage import AbstractStorage
from fitsocial.utils.logger import auth_logger

router = APIRouter()


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=UserPublic)
async def register(
    user_data: UserRegister,
    response: Response,
    storage: AbstractStorage = Depends(get_storage),
) -> Any:
    """Create an account and log it in."""
    if await storage.get_user_by_username(user_data.username):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already taken")
    if await storage.get_user_by_email(user_data.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    user = await storage.create_user(
        username=user_data.username,
        email=user_data.email,
        hashed_password=get_password_hash(user_data.password),
        avatar=user_data.avatar or default_avatar(user_data.username),
        bio=user_data.bio,
        weekly_goal=user_data.weekly_goal or 4,
        use_metric=True if user_data.use_metric is None else user_data.use_metric,
    )
    AuthService.start_session(response, user.id)
    auth_logger.success("User registered", context="REGISTER", user_id=user.id, username=user.username)
    return user


@router.post("/login", response_model=UserPublic)
async def login(
    login_data: UserLogin,
    response: Response,
    storage: AbstractStorage = Depends(get_storage),
) -> Any:
    user = await AuthService.authenticate(storage, login_data.username, login_data.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")

    AuthService.start_session(response, user.id)
    auth_logger.info("User logged in", context="LOGIN", user_id=user.id)
    return user


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response) -> Any:
    AuthService.end_session(response)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserPublic)
async def get_me(request: Request, storage: AbstractStorage = Depends(get_storage)) -> Any:
    """The logged-in user; a session pointing at a deleted user is cleared."""
    user_id = AuthService.get_session_user_id(request)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    user = await storage.get_user(user_id)
    if user is None:
        stale = JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"message": "User not found"})
        AuthService.end_session(stale)
        return stale
    return user
