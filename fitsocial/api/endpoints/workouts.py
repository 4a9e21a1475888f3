from datetime import date
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from fitsocial.api.deps import get_storage
from fitsocial.models.user import User
from fitsocial.schemas.base import MessageResponse
from fitsocial.schemas.metrics import WorkoutStatsResponse
from fitsocial.schemas.workout import (
    UpcomingWorkout,
    WorkoutCreate,
    WorkoutDetail,
    WorkoutResponse,
    WorkoutSummary,
    WorkoutTemplate,
    WorkoutUpdate,
)
from fitsocial.services.catalog import get_upcoming_workouts, get_workout_templates
from fitsocial.services.storage import AbstractStorage
from fitsocial.services.auth import get_current_user
from fitsocial.utils.logger import workout_logger
from fitsocial.utils.time import utcnow

router = APIRouter()


@router.get("", response_model=List[WorkoutSummary])
async def list_workouts(
    workout_filter: str = Query("all", alias="filter", description="'all' or part of a workout name"),
    day: Optional[date] = Query(None, alias="date", description="Only workouts logged on this day"),
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    return await storage.get_user_workouts(current_user.id, workout_filter, day)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=WorkoutResponse)
async def create_workout(
    workout_data: WorkoutCreate,
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Log a finished workout.

    Exercises without a name are skipped. With ``shareToFeed`` a post
    announcing the workout is published in the same transaction.
    """
    if not workout_data.name or not workout_data.name.strip() or workout_data.exercises is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid workout data")

    workout = await storage.create_workout(
        user_id=current_user.id,
        name=workout_data.name.strip(),
        exercises=workout_data.exercises,
        share_to_feed=workout_data.share_to_feed,
        use_metric=True if workout_data.use_metric is None else workout_data.use_metric,
        notes=workout_data.notes,
    )
    workout_logger.success(
        "Workout logged",
        context="CREATE",
        user_id=current_user.id,
        workout_id=workout.id,
        shared=workout_data.share_to_feed,
    )
    return workout


@router.get("/stats", response_model=WorkoutStatsResponse)
async def get_workout_stats(
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    user_id = current_user.id
    return WorkoutStatsResponse(
        total_workouts=await storage.get_user_workout_count(user_id),
        weekly_workouts=await storage.get_user_weekly_workout_count(user_id),
        following=await storage.get_user_following_count(user_id),
        followers=await storage.get_user_follower_count(user_id),
        current_streak=await storage.get_user_workout_streak(user_id),
        weekly_goal=current_user.weekly_goal or 4,
        monthly_average=await storage.get_user_monthly_workout_average(user_id),
        frequency=await storage.get_user_workout_frequency(user_id),
        volume=await storage.get_user_workout_volume(user_id),
    )


@router.get("/templates", response_model=List[WorkoutTemplate])
async def list_workout_templates(current_user: User = Depends(get_current_user)) -> Any:
    return get_workout_templates()


@router.get("/upcoming", response_model=List[UpcomingWorkout])
async def list_upcoming_workouts(current_user: User = Depends(get_current_user)) -> Any:
    return get_upcoming_workouts()


async def _get_owned_workout(storage: AbstractStorage, workout_id: int, user: User, action: str) -> WorkoutDetail:
    workout = await storage.get_workout(workout_id)
    if workout is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Workout not found")
    if workout.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Not authorized to {action} this workout")
    return workout


@router.get("/{workout_id}", response_model=WorkoutDetail)
async def get_workout(
    workout_id: int,
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    workout = await storage.get_workout(workout_id)
    if workout is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Workout not found")
    return workout


@router.patch("/{workout_id}", response_model=WorkoutDetail)
async def update_workout(
    workout_id: int,
    update_data: WorkoutUpdate,
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    workout = await _get_owned_workout(storage, workout_id, current_user, "update")

    changes = update_data.model_dump(exclude_unset=True, exclude={"complete"})
    changes = {field: value for field, value in changes.items() if value is not None or field == "notes"}
    if update_data.complete and workout.end_time is None:
        changes["end_time"] = utcnow()

    if changes:
        await storage.update_workout(workout_id, changes)
    return await storage.get_workout(workout_id)


@router.delete("/{workout_id}", response_model=MessageResponse)
async def delete_workout(
    workout_id: int,
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    await _get_owned_workout(storage, workout_id, current_user, "delete")
    await storage.delete_workout(workout_id)
    workout_logger.info("Workout deleted", context="DELETE", user_id=current_user.id, workout_id=workout_id)
    return MessageResponse(message="Workout deleted successfully")
