"""API router configuration.

This module configures the main API router and includes all endpoint routers
for the different features of the application.
"""

from fastapi import APIRouter

from fitsocial.api.endpoints import analysis, auth, health, leaderboard, metrics, posts, programs, users, workouts

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(workouts.router, prefix="/workouts", tags=["workouts"])
api_router.include_router(posts.router, prefix="/posts", tags=["posts"])
api_router.include_router(metrics.router, prefix="/metrics", tags=["metrics"])
api_router.include_router(programs.router, prefix="/programs", tags=["programs"])
api_router.include_router(leaderboard.router, prefix="/leaderboard", tags=["leaderboard"])
api_router.include_router(analysis.router, prefix="/analysis", tags=["analysis"])
