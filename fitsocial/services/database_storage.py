from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from sqlalchemy import and_, delete, desc, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fitsocial.core.exceptions import ConflictError
from fitsocial.models import Comment, Exercise, Follow, Like, Post, Program, ProgramRating, User, Workout, WorkoutSet
from fitsocial.schemas.program import ProgramCreate
from fitsocial.schemas.workout import ExerciseCreate, SetCreate
from fitsocial.services.storage import AbstractStorage
from fitsocial.utils.logger import db_logger
from fitsocial.utils.time import utcnow

SET_FIELDS = {"weight", "reps", "duration", "distance", "rpe"}


class DatabaseStorage(AbstractStorage):
    """Storage over an async SQLAlchemy session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _scalar(self, stmt):
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _scalars(self, stmt) -> list:
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _count(self, stmt) -> int:
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    async def _grouped_counts(self, key_column, id_column, condition) -> Dict[int, int]:
        result = await self.db.execute(
            select(key_column, func.count(id_column)).where(condition).group_by(key_column)
        )
        return {key: count for key, count in result.all()}

    async def _commit_unique(self, row, message: str):
        """Insert a row guarded by a unique constraint, mapping a violation to ConflictError."""
        self.db.add(row)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError(message, original_error=e)
        await self.db.refresh(row)
        return row

    # Users

    async def get_user(self, user_id: int) -> Optional[User]:
        return await self._scalar(select(User).where(User.id == user_id))

    async def get_user_by_username(self, username: str) -> Optional[User]:
        return await self._scalar(select(User).where(func.lower(User.username) == username.lower()))

    async def get_user_by_email(self, email: str) -> Optional[User]:
        return await self._scalar(select(User).where(func.lower(User.email) == email.lower()))

    async def get_users(self, search: Optional[str] = None) -> List[User]:
        stmt = select(User).order_by(User.id)
        if search:
            needle = search.lower()
            stmt = stmt.where(or_(
                func.lower(User.username).contains(needle, autoescape=True),
                func.lower(User.bio).contains(needle, autoescape=True),
            ))
        return await self._scalars(stmt)

    async def create_user(self, username: str, email: str, hashed_password: str,
                          avatar: Optional[str] = None, bio: Optional[str] = None,
                          weekly_goal: int = 4, use_metric: bool = True) -> User:
        user = User(
            username=username,
            email=email,
            hashed_password=hashed_password,
            avatar=avatar,
            bio=bio,
            weekly_goal=weekly_goal,
            use_metric=use_metric,
        )
        return await self._commit_unique(user, "Username or email already registered")

    async def update_user(self, user_id: int, data: Dict[str, Any]) -> Optional[User]:
        user = await self.get_user(user_id)
        if user is None:
            return None

        for field, value in data.items():
            setattr(user, field, value)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError("Username or email already registered", original_error=e)
        await self.db.refresh(user)
        return user

    async def _get_users_by_ids(self, user_ids: Sequence[int]) -> Dict[int, User]:
        if not user_ids:
            return {}
        users = await self._scalars(select(User).where(User.id.in_(user_ids)))
        return {user.id: user for user in users}

    # Workouts

    async def _get_workout(self, workout_id: int) -> Optional[Workout]:
        return await self._scalar(select(Workout).where(Workout.id == workout_id))

    async def _get_workout_rows(self, user_id: int, since: Optional[datetime] = None) -> List[Workout]:
        stmt = select(Workout).where(Workout.user_id == user_id)
        if since is not None:
            stmt = stmt.where(Workout.created_at >= since)
        return await self._scalars(stmt.order_by(desc(Workout.created_at), desc(Workout.id)))

    async def _get_workouts_by_ids(self, workout_ids: Sequence[int]) -> Dict[int, Workout]:
        if not workout_ids:
            return {}
        workouts = await self._scalars(select(Workout).where(Workout.id.in_(workout_ids)))
        return {workout.id: workout for workout in workouts}

    async def _get_exercises_for_workouts(self, workout_ids: Sequence[int]) -> List[Exercise]:
        if not workout_ids:
            return []
        return await self._scalars(
            select(Exercise).where(Exercise.workout_id.in_(workout_ids)).order_by(Exercise.id)
        )

    async def _get_sets_for_exercises(self, exercise_ids: Sequence[int]) -> List[WorkoutSet]:
        if not exercise_ids:
            return []
        return await self._scalars(
            select(WorkoutSet).where(WorkoutSet.exercise_id.in_(exercise_ids)).order_by(WorkoutSet.id)
        )

    async def create_workout(self, user_id: int, name: str, exercises: Sequence[ExerciseCreate],
                             share_to_feed: bool = False, use_metric: bool = True,
                             notes: Optional[str] = None) -> Workout:
        now = utcnow()
        try:
            workout = Workout(user_id=user_id, name=name, start_time=now, notes=notes, use_metric=use_metric)
            self.db.add(workout)
            await self.db.flush()

            for exercise_data in exercises:
                if not exercise_data.name or not exercise_data.name.strip():
                    continue
                exercise = Exercise(workout_id=workout.id, name=exercise_data.name.strip())
                self.db.add(exercise)
                await self.db.flush()
                self.db.add_all([
                    WorkoutSet(exercise_id=exercise.id, **set_data.model_dump(include=SET_FIELDS))
                    for set_data in exercise_data.sets
                ])

            if share_to_feed:
                self.db.add(Post(user_id=user_id, workout_id=workout.id, content=f"Completed a {name} workout"))

            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            db_logger.error("Workout creation rolled back", context="WORKOUTS", user_id=user_id, error=str(e))
            raise

        await self.db.refresh(workout)
        return workout

    async def update_workout(self, workout_id: int, data: Dict[str, Any]) -> Optional[Workout]:
        workout = await self._get_workout(workout_id)
        if workout is None:
            return None

        for field, value in data.items():
            setattr(workout, field, value)
        await self.db.commit()
        await self.db.refresh(workout)
        return workout

    async def delete_workout(self, workout_id: int) -> bool:
        workout = await self._get_workout(workout_id)
        if workout is None:
            return False

        try:
            post_ids = select(Post.id).where(Post.workout_id == workout_id)
            exercise_ids = select(Exercise.id).where(Exercise.workout_id == workout_id)

            await self.db.execute(delete(Like).where(Like.post_id.in_(post_ids)))
            await self.db.execute(delete(Comment).where(and_(Comment.post_id.in_(post_ids), Comment.parent_id.isnot(None))))
            await self.db.execute(delete(Comment).where(Comment.post_id.in_(post_ids)))
            await self.db.execute(delete(Post).where(Post.workout_id == workout_id))
            await self.db.execute(delete(WorkoutSet).where(WorkoutSet.exercise_id.in_(exercise_ids)))
            await self.db.execute(delete(Exercise).where(Exercise.workout_id == workout_id))
            await self.db.execute(delete(Workout).where(Workout.id == workout_id))
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        return True

    async def get_exercise(self, exercise_id: int) -> Optional[Exercise]:
        return await self._scalar(select(Exercise).where(Exercise.id == exercise_id))

    async def create_exercise(self, workout_id: int, name: str) -> Exercise:
        exercise = Exercise(workout_id=workout_id, name=name)
        self.db.add(exercise)
        await self.db.commit()
        await self.db.refresh(exercise)
        return exercise

    async def get_set(self, set_id: int) -> Optional[WorkoutSet]:
        return await self._scalar(select(WorkoutSet).where(WorkoutSet.id == set_id))

    async def create_set(self, exercise_id: int, data: SetCreate) -> WorkoutSet:
        workout_set = WorkoutSet(exercise_id=exercise_id, **data.model_dump(include=SET_FIELDS))
        self.db.add(workout_set)
        await self.db.commit()
        await self.db.refresh(workout_set)
        return workout_set

    async def get_user_workout_count(self, user_id: int) -> int:
        return await self._count(select(func.count(Workout.id)).where(Workout.user_id == user_id))

    async def count_workouts_since(self, user_ids: Sequence[int], since: datetime) -> Dict[int, int]:
        if not user_ids:
            return {}
        return await self._grouped_counts(
            Workout.user_id,
            Workout.id,
            and_(Workout.user_id.in_(user_ids), Workout.created_at >= since),
        )

    # Posts

    async def _get_post(self, post_id: int) -> Optional[Post]:
        return await self._scalar(select(Post).where(Post.id == post_id))

    async def _get_posts_by_authors(self, user_ids: Sequence[int]) -> List[Post]:
        if not user_ids:
            return []
        return await self._scalars(
            select(Post).where(Post.user_id.in_(user_ids)).order_by(desc(Post.created_at), desc(Post.id))
        )

    async def create_post(self, user_id: int, content: str, workout_id: Optional[int] = None,
                          image: Optional[str] = None) -> Post:
        post = Post(user_id=user_id, workout_id=workout_id, content=content, image=image)
        self.db.add(post)
        await self.db.commit()
        await self.db.refresh(post)
        return post

    async def delete_post(self, post_id: int) -> bool:
        post = await self._get_post(post_id)
        if post is None:
            return False

        try:
            await self.db.execute(delete(Like).where(Like.post_id == post_id))
            await self.db.execute(delete(Comment).where(and_(Comment.post_id == post_id, Comment.parent_id.isnot(None))))
            await self.db.execute(delete(Comment).where(Comment.post_id == post_id))
            await self.db.execute(delete(Post).where(Post.id == post_id))
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        return True

    async def _count_exercises(self, workout_ids: Sequence[int]) -> Dict[int, int]:
        if not workout_ids:
            return {}
        return await self._grouped_counts(Exercise.workout_id, Exercise.id, Exercise.workout_id.in_(workout_ids))

    async def _count_comments(self, post_ids: Sequence[int]) -> Dict[int, int]:
        if not post_ids:
            return {}
        return await self._grouped_counts(Comment.post_id, Comment.id, Comment.post_id.in_(post_ids))

    async def _count_likes(self, post_ids: Sequence[int]) -> Dict[int, int]:
        if not post_ids:
            return {}
        return await self._grouped_counts(Like.post_id, Like.id, Like.post_id.in_(post_ids))

    async def _get_liked_post_ids(self, user_id: int, post_ids: Sequence[int]) -> Set[int]:
        if not post_ids:
            return set()
        result = await self.db.execute(
            select(Like.post_id).where(and_(Like.user_id == user_id, Like.post_id.in_(post_ids)))
        )
        return set(result.scalars().all())

    # Comments

    async def get_comment(self, comment_id: int) -> Optional[Comment]:
        return await self._scalar(select(Comment).where(Comment.id == comment_id))

    async def _get_comments_for_post(self, post_id: int) -> List[Comment]:
        return await self._scalars(
            select(Comment).where(Comment.post_id == post_id).order_by(Comment.created_at, Comment.id)
        )

    async def create_comment(self, post_id: int, user_id: int, content: str,
                             parent_id: Optional[int] = None) -> Comment:
        comment = Comment(post_id=post_id, user_id=user_id, parent_id=parent_id, content=content)
        self.db.add(comment)
        await self.db.commit()
        await self.db.refresh(comment)
        return comment

    async def delete_comment(self, comment_id: int) -> bool:
        comment = await self.get_comment(comment_id)
        if comment is None:
            return False

        try:
            await self.db.execute(delete(Comment).where(Comment.parent_id == comment_id))
            await self.db.execute(delete(Comment).where(Comment.id == comment_id))
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        return True

    # Likes

    async def has_user_liked_post(self, user_id: int, post_id: int) -> bool:
        count = await self._count(
            select(func.count(Like.id)).where(and_(Like.user_id == user_id, Like.post_id == post_id))
        )
        return count > 0

    async def create_like(self, user_id: int, post_id: int) -> Like:
        return await self._commit_unique(Like(user_id=user_id, post_id=post_id), "Post already liked")

    async def delete_like(self, user_id: int, post_id: int) -> bool:
        result = await self.db.execute(
            delete(Like).where(and_(Like.user_id == user_id, Like.post_id == post_id))
        )
        await self.db.commit()
        return result.rowcount > 0

    # Follows

    async def is_following(self, follower_id: int, following_id: int) -> bool:
        count = await self._count(
            select(func.count(Follow.id)).where(
                and_(Follow.follower_id == follower_id, Follow.following_id == following_id)
            )
        )
        return count > 0

    async def create_follow(self, follower_id: int, following_id: int) -> Follow:
        follow = Follow(follower_id=follower_id, following_id=following_id)
        return await self._commit_unique(follow, "Already following this user")

    async def delete_follow(self, follower_id: int, following_id: int) -> bool:
        result = await self.db.execute(
            delete(Follow).where(and_(Follow.follower_id == follower_id, Follow.following_id == following_id))
        )
        await self.db.commit()
        return result.rowcount > 0

    async def get_user_follower_count(self, user_id: int) -> int:
        return await self._count(select(func.count(Follow.id)).where(Follow.following_id == user_id))

    async def get_user_following_count(self, user_id: int) -> int:
        return await self._count(select(func.count(Follow.id)).where(Follow.follower_id == user_id))

    async def get_following_ids(self, user_id: int) -> List[int]:
        result = await self.db.execute(select(Follow.following_id).where(Follow.follower_id == user_id))
        return list(result.scalars().all())

    # Programs

    async def _get_program(self, program_id: int) -> Optional[Program]:
        return await self._scalar(select(Program).where(Program.id == program_id))

    async def _get_program_rows(self) -> List[Program]:
        return await self._scalars(select(Program).order_by(Program.id))

    async def _get_rating_stats(self, program_ids: Sequence[int]) -> Dict[int, Tuple[float, int]]:
        if not program_ids:
            return {}
        result = await self.db.execute(
            select(ProgramRating.program_id, func.avg(ProgramRating.rating), func.count(ProgramRating.id))
            .where(ProgramRating.program_id.in_(program_ids))
            .group_by(ProgramRating.program_id)
        )
        return {program_id: (float(average), count) for program_id, average, count in result.all()}

    async def create_program(self, creator_id: Optional[int], author: str, data: ProgramCreate) -> Program:
        program = Program(
            name=data.name,
            description=data.description,
            creator_id=creator_id,
            author=author,
            type=data.type,
            content=dict(data.content),
            is_public=data.is_public,
        )
        self.db.add(program)
        await self.db.commit()
        await self.db.refresh(program)
        return program

    async def rate_program(self, program_id: int, user_id: int, rating: int,
                           comment: Optional[str] = None) -> ProgramRating:
        existing = await self._scalar(
            select(ProgramRating).where(
                and_(ProgramRating.program_id == program_id, ProgramRating.user_id == user_id)
            )
        )
        if existing is not None:
            existing.rating = rating
            existing.comment = comment
            await self.db.commit()
            await self.db.refresh(existing)
            return existing

        return await self._commit_unique(
            ProgramRating(program_id=program_id, user_id=user_id, rating=rating, comment=comment),
            "Program already rated",
        )

    async def ping(self) -> bool:
        try:
            await self.db.execute(select(1))
            return True
        except SQLAlchemyError as e:
            db_logger.error("Storage ping failed", context="HEALTH", error=str(e))
            return False
