from typing import Any, List

from fastapi import APIRouter, Depends

from fitsocial.api.deps import get_storage
from fitsocial.models.user import User
from fitsocial.schemas.metrics import ExerciseProgress, WorkoutMetricsResponse
from fitsocial.services.auth import get_current_user
from fitsocial.services.storage import AbstractStorage

router = APIRouter()


@router.get("/workout", response_model=WorkoutMetricsResponse)
async def get_workout_metrics(
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    user_id = current_user.id
    return WorkoutMetricsResponse(
        total_workouts=await storage.get_user_workout_count(user_id),
        current_streak=await storage.get_user_workout_streak(user_id),
        monthly_average=await storage.get_user_monthly_workout_average(user_id),
        frequency=await storage.get_user_workout_frequency(user_id),
        volume=await storage.get_user_workout_volume(user_id),
    )


@router.get("/exercises", response_model=List[ExerciseProgress])
async def get_exercise_metrics(
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Monthly max weight per exercise from the sets the user logged."""
    return await storage.get_user_exercise_progress(current_user.id)
