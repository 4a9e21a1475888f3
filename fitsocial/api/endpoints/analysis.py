from typing import Any

from fastapi import APIRouter, Depends

from fitsocial.api.deps import get_storage
from fitsocial.models.user import User
from fitsocial.schemas.metrics import AnalysisResponse
from fitsocial.services.ai_analysis import WorkoutAnalysisService, workout_analysis_service
from fitsocial.services.auth import get_current_user
from fitsocial.services.storage import AbstractStorage

router = APIRouter()


def get_analysis_service() -> WorkoutAnalysisService:
    return workout_analysis_service


@router.get("/workouts", response_model=AnalysisResponse)
async def analyze_workouts(
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
    analysis_service: WorkoutAnalysisService = Depends(get_analysis_service),
) -> Any:
    workouts = await storage.get_user_workouts(current_user.id)
    return AnalysisResponse(analysis=await analysis_service.analyze(workouts))
