from datetime import date, datetime
from typing import List, Optional

from pydantic import Field

from fitsocial.schemas.base import BaseSchema


class SetCreate(BaseSchema):
    weight: Optional[float] = Field(default=None, ge=0)
    reps: Optional[int] = Field(default=None, ge=0)
    duration: Optional[int] = Field(default=None, ge=0, description="Seconds")
    distance: Optional[float] = Field(default=None, ge=0)
    rpe: Optional[int] = Field(default=None, ge=1, le=10, description="Rate of perceived exertion")


class ExerciseCreate(BaseSchema):
    name: Optional[str] = None
    sets: List[SetCreate] = Field(default_factory=list)


class WorkoutCreate(BaseSchema):
    name: Optional[str] = None
    exercises: Optional[List[ExerciseCreate]] = None
    share_to_feed: bool = False
    use_metric: Optional[bool] = None
    notes: Optional[str] = None


class WorkoutUpdate(BaseSchema):
    name: Optional[str] = Field(default=None, min_length=1)
    notes: Optional[str] = None
    use_metric: Optional[bool] = None
    complete: bool = False


class WorkoutResponse(BaseSchema):
    id: int
    user_id: int
    name: str
    start_time: datetime
    end_time: Optional[datetime] = None
    notes: Optional[str] = None
    use_metric: bool = True
    created_at: datetime


class WorkoutSummary(WorkoutResponse):
    """A workout with the figures shown in workout lists."""
    duration: str
    volume: int
    exercise_count: int
    exercises: List[str]


class SetResponse(BaseSchema):
    id: int
    exercise_id: int
    weight: Optional[float] = None
    reps: Optional[int] = None
    duration: Optional[int] = None
    distance: Optional[float] = None
    rpe: Optional[int] = None
    created_at: datetime


class ExerciseResponse(BaseSchema):
    id: int
    workout_id: int
    name: str
    created_at: datetime


class ExerciseDetail(ExerciseResponse):
    sets: List[SetResponse] = Field(default_factory=list)


class WorkoutDetail(WorkoutResponse):
    duration: str
    volume: int
    exercises: List[ExerciseDetail] = Field(default_factory=list)


class PostWorkout(WorkoutResponse):
    """Workout block embedded in a post."""
    exercise_count: int


class WorkoutTemplate(BaseSchema):
    id: int
    name: str
    exercise_count: int
    created_by: str
    exercises: List[str]


class UpcomingWorkout(BaseSchema):
    id: int
    name: str
    scheduled_for: date
    time: str
    duration: str
