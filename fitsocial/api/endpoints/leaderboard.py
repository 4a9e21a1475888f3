from typing import Any, List

from fastapi import APIRouter, Depends

from fitsocial.api.deps import get_storage
from fitsocial.models.user import User
from fitsocial.schemas.metrics import LeaderboardEntry
from fitsocial.services.auth import get_current_user
from fitsocial.services.storage import AbstractStorage

router = APIRouter()


@router.get("", response_model=List[LeaderboardEntry])
async def get_leaderboard(
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    """This week's workout counts for the current user and everyone they follow."""
    return await storage.get_weekly_leaderboard(current_user.id)
