from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from fitsocial.api.deps import get_storage
from fitsocial.models.user import User
from fitsocial.schemas.base import MessageResponse
from fitsocial.schemas.metrics import ActivityPoint
from fitsocial.schemas.post import PostDetail
from fitsocial.schemas.user import UserProfileResponse, UserPublic, UserUpdate, UserWithFollowStatus
from fitsocial.services.auth import get_current_user
from fitsocial.services.storage import AbstractStorage
from fitsocial.utils.logger import user_logger

router = APIRouter()


async def _get_user_or_404(storage: AbstractStorage, user_id: int) -> User:
    user = await storage.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("", response_model=List[UserWithFollowStatus])
async def list_users(
    search: Optional[str] = Query(None, description="Substring of username or bio"),
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    users = await storage.get_users(search)
    following = set(await storage.get_following_ids(current_user.id))
    return [
        UserWithFollowStatus(
            **UserPublic.model_validate(user).model_dump(),
            is_following=user.id in following,
        )
        for user in users
    ]


@router.get("/{user_id}", response_model=UserProfileResponse)
async def get_user_profile(
    user_id: int,
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Profile with workout and follow counts, streak and this week's workouts."""
    user = await _get_user_or_404(storage, user_id)

    return UserProfileResponse(
        **UserPublic.model_validate(user).model_dump(),
        workout_count=await storage.get_user_workout_count(user_id),
        follower_count=await storage.get_user_follower_count(user_id),
        following_count=await storage.get_user_following_count(user_id),
        is_following=await storage.is_following(current_user.id, user_id),
        current_streak=await storage.get_user_workout_streak(user_id),
        weekly_workouts=await storage.get_user_weekly_workout_count(user_id),
    )


@router.patch("/{user_id}", response_model=UserPublic)
async def update_user_profile(
    user_id: int,
    update_data: UserUpdate,
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    if user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to update this user")

    changes = update_data.model_dump(exclude_unset=True)
    # Nullable only where the column is
    changes = {field: value for field, value in changes.items() if value is not None or field in ("bio", "avatar")}

    if "username" in changes:
        existing = await storage.get_user_by_username(changes["username"])
        if existing is not None and existing.id != user_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already taken")
    if "email" in changes:
        existing = await storage.get_user_by_email(changes["email"])
        if existing is not None and existing.id != user_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    user = await storage.update_user(user_id, changes)
    user_logger.info("Profile updated", context="UPDATE", user_id=user_id, fields=sorted(changes))
    return user


@router.post("/{user_id}/follow", status_code=status.HTTP_201_CREATED, response_model=MessageResponse)
async def follow_user(
    user_id: int,
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    await _get_user_or_404(storage, user_id)
    if user_id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot follow yourself")
    if await storage.is_following(current_user.id, user_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Already following this user")

    await storage.create_follow(current_user.id, user_id)
    user_logger.info("Followed user", context="FOLLOW", follower_id=current_user.id, following_id=user_id)
    return MessageResponse(message="Successfully followed user")


@router.delete("/{user_id}/follow", response_model=MessageResponse)
async def unfollow_user(
    user_id: int,
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    await storage.delete_follow(current_user.id, user_id)
    return MessageResponse(message="Successfully unfollowed user")


@router.get("/{user_id}/activity", response_model=List[ActivityPoint])
async def get_user_activity(
    user_id: int,
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Workouts per month over the last six months."""
    await _get_user_or_404(storage, user_id)
    return await storage.get_user_activity_data(user_id)


@router.get("/{user_id}/posts", response_model=List[PostDetail])
async def get_user_posts(
    user_id: int,
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    await _get_user_or_404(storage, user_id)
    return await storage.get_user_posts(user_id, viewer_id=current_user.id)
