"""Database models."""

# Import all models here to ensure they're recognized by SQLAlchemy
from fitsocial.models.comment import Comment
from fitsocial.models.follow import Follow
from fitsocial.models.like import Like
from fitsocial.models.post import Post
from fitsocial.models.program import Program, ProgramRating
from fitsocial.models.user import User
from fitsocial.models.workout import Exercise, Workout, WorkoutSet

__all__ = [
    "User",
    "Workout",
    "Exercise",
    "WorkoutSet",
    "Post",
    "Comment",
    "Like",
    "Follow",
    "Program",
    "ProgramRating",
]
