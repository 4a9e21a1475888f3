from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, status

from fitsocial.api.deps import get_storage
from fitsocial.models.user import User
from fitsocial.schemas.program import ProgramCreate, ProgramRatingCreate, ProgramRatingResponse, ProgramResponse
from fitsocial.services.auth import get_current_user
from fitsocial.services.storage import AbstractStorage
from fitsocial.utils.logger import program_logger

router = APIRouter()

TRENDING_LIMIT = 3


@router.get("", response_model=List[ProgramResponse])
async def list_programs(
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    return await storage.get_programs(viewer_id=current_user.id)


@router.get("/trending", response_model=List[ProgramResponse])
async def list_trending_programs(
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Highest rated programs, ties broken by number of ratings."""
    return await storage.get_trending_programs(TRENDING_LIMIT, viewer_id=current_user.id)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ProgramResponse)
async def create_program(
    program_data: ProgramCreate,
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    program = await storage.create_program(current_user.id, current_user.username, program_data)
    program_logger.info("Program created", context="CREATE", user_id=current_user.id, program_id=program.id)
    return await storage.get_program(program.id, viewer_id=current_user.id)


@router.get("/{program_id}", response_model=ProgramResponse)
async def get_program(
    program_id: int,
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    program = await storage.get_program(program_id, viewer_id=current_user.id)
    if program is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Program not found")
    return program


@router.post("/{program_id}/ratings", status_code=status.HTTP_201_CREATED, response_model=ProgramRatingResponse)
async def rate_program(
    program_id: int,
    rating_data: ProgramRatingCreate,
    storage: AbstractStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Rate a program from 1 to 5; rating again replaces the earlier rating."""
    if await storage.get_program(program_id, viewer_id=current_user.id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Program not found")

    rating = await storage.rate_program(program_id, current_user.id, rating_data.rating, rating_data.comment)
    program_logger.info("Program rated", context="RATE", program_id=program_id, rating=rating_data.rating)
    return rating
