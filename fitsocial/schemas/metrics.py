from typing import List, Optional

from fitsocial.schemas.base import BaseSchema


class FrequencyPoint(BaseSchema):
    name: str
    count: int


class VolumePoint(BaseSchema):
    month: str
    volume: int


class ActivityPoint(BaseSchema):
    date: str
    count: int


class WorkoutMetricsResponse(BaseSchema):
    total_workouts: int
    current_streak: int
    monthly_average: float
    frequency: List[FrequencyPoint]
    volume: List[VolumePoint]


class WorkoutStatsResponse(WorkoutMetricsResponse):
    weekly_workouts: int
    following: int
    followers: int
    weekly_goal: int


class ExerciseProgressPoint(BaseSchema):
    date: str
    weight: float


class ExerciseProgress(BaseSchema):
    id: int
    name: str
    progress: List[ExerciseProgressPoint]
    current_max: float
    change: float
    unit: str


class LeaderboardEntry(BaseSchema):
    id: int
    username: str
    avatar: Optional[str] = None
    workouts: int
    is_current_user: bool


class AnalysisResponse(BaseSchema):
    analysis: str
