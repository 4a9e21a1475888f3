"""
Data-access interface shared by the in-memory and database storages.

Backends implement the row-level primitives (lookups, inserts, batched
counts); the enrichment and statistics built on top of them live here so
both backends return the same shapes.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from fitsocial.models import Comment, Exercise, Like, Post, Program, ProgramRating, User, Workout, WorkoutSet
from fitsocial.schemas.metrics import ExerciseProgress, FrequencyPoint, LeaderboardEntry, VolumePoint, ActivityPoint
from fitsocial.schemas.post import CommentDetail, PostDetail
from fitsocial.schemas.program import ProgramCreate, ProgramResponse
from fitsocial.schemas.user import UserSummary
from fitsocial.schemas.workout import (
    ExerciseCreate,
    ExerciseDetail,
    PostWorkout,
    SetCreate,
    SetResponse,
    WorkoutDetail,
    WorkoutSummary,
)
from fitsocial.services import workout_stats
from fitsocial.services.workout_stats import SetRecord


class AbstractStorage(ABC):
    """Storage interface used by every endpoint."""

    # Users

    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[User]:
        ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[User]:
        """Case-insensitive lookup."""

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Case-insensitive lookup."""

    @abstractmethod
    async def get_users(self, search: Optional[str] = None) -> List[User]:
        """All users, or those whose username or bio contains ``search``."""

    @abstractmethod
    async def create_user(self, username: str, email: str, hashed_password: str,
                          avatar: Optional[str] = None, bio: Optional[str] = None,
                          weekly_goal: int = 4, use_metric: bool = True) -> User:
        ...

    @abstractmethod
    async def update_user(self, user_id: int, data: Dict[str, Any]) -> Optional[User]:
        ...

    @abstractmethod
    async def _get_users_by_ids(self, user_ids: Sequence[int]) -> Dict[int, User]:
        ...

    # Workouts, exercises and sets

    @abstractmethod
    async def _get_workout(self, workout_id: int) -> Optional[Workout]:
        ...

    @abstractmethod
    async def _get_workout_rows(self, user_id: int, since: Optional[datetime] = None) -> List[Workout]:
        """A user's workouts created at or after ``since``, newest first."""

    @abstractmethod
    async def _get_workouts_by_ids(self, workout_ids: Sequence[int]) -> Dict[int, Workout]:
        ...

    @abstractmethod
    async def _get_exercises_for_workouts(self, workout_ids: Sequence[int]) -> List[Exercise]:
        """Exercises of the given workouts in insertion order."""

    @abstractmethod
    async def _get_sets_for_exercises(self, exercise_ids: Sequence[int]) -> List[WorkoutSet]:
        """Sets of the given exercises in insertion order."""

    @abstractmethod
    async def create_workout(self, user_id: int, name: str, exercises: Sequence[ExerciseCreate],
                             share_to_feed: bool = False, use_metric: bool = True,
                             notes: Optional[str] = None) -> Workout:
        """
        Log a workout with its exercises and sets, plus the feed post when
        ``share_to_feed`` is set. Either every row is written or none is.
        Exercises without a name are skipped.
        """

    @abstractmethod
    async def update_workout(self, workout_id: int, data: Dict[str, Any]) -> Optional[Workout]:
        ...

    @abstractmethod
    async def delete_workout(self, workout_id: int) -> bool:
        """Delete a workout with its exercises, sets and the posts that reference it."""

    @abstractmethod
    async def get_exercise(self, exercise_id: int) -> Optional[Exercise]:
        ...

    @abstractmethod
    async def create_exercise(self, workout_id: int, name: str) -> Exercise:
        ...

    @abstractmethod
    async def get_set(self, set_id: int) -> Optional[WorkoutSet]:
        ...

    @abstractmethod
    async def create_set(self, exercise_id: int, data: SetCreate) -> WorkoutSet:
        ...

    @abstractmethod
    async def get_user_workout_count(self, user_id: int) -> int:
        ...

    @abstractmethod
    async def count_workouts_since(self, user_ids: Sequence[int], since: datetime) -> Dict[int, int]:
        """Workout counts per user for workouts created at or after ``since``."""

    # Posts

    @abstractmethod
    async def _get_post(self, post_id: int) -> Optional[Post]:
        ...

    @abstractmethod
    async def _get_posts_by_authors(self, user_ids: Sequence[int]) -> List[Post]:
        """Posts written by any of ``user_ids``, newest first."""

    @abstractmethod
    async def create_post(self, user_id: int, content: str, workout_id: Optional[int] = None,
                          image: Optional[str] = None) -> Post:
        ...

    @abstractmethod
    async def delete_post(self, post_id: int) -> bool:
        """Delete a post with its comments and likes."""

    @abstractmethod
    async def _count_exercises(self, workout_ids: Sequence[int]) -> Dict[int, int]:
        ...

    @abstractmethod
    async def _count_comments(self, post_ids: Sequence[int]) -> Dict[int, int]:
        ...

    @abstractmethod
    async def _count_likes(self, post_ids: Sequence[int]) -> Dict[int, int]:
        ...

    @abstractmethod
    async def _get_liked_post_ids(self, user_id: int, post_ids: Sequence[int]) -> Set[int]:
        ...

    # Comments

    @abstractmethod
    async def get_comment(self, comment_id: int) -> Optional[Comment]:
        ...

    @abstractmethod
    async def _get_comments_for_post(self, post_id: int) -> List[Comment]:
        """Every comment on a post, oldest first."""

    @abstractmethod
    async def create_comment(self, post_id: int, user_id: int, content: str,
                             parent_id: Optional[int] = None) -> Comment:
        ...

    @abstractmethod
    async def delete_comment(self, comment_id: int) -> bool:
        """Delete a comment with its replies."""

    # Likes

    @abstractmethod
    async def has_user_liked_post(self, user_id: int, post_id: int) -> bool:
        ...

    @abstractmethod
    async def create_like(self, user_id: int, post_id: int) -> Like:
        """Raises ConflictError when the user already liked the post."""

    @abstractmethod
    async def delete_like(self, user_id: int, post_id: int) -> bool:
        ...

    # Follows

    @abstractmethod
    async def is_following(self, follower_id: int, following_id: int) -> bool:
        ...

    @abstractmethod
    async def create_follow(self, follower_id: int, following_id: int):
        """Raises ConflictError when the follow already exists."""

    @abstractmethod
    async def delete_follow(self, follower_id: int, following_id: int) -> bool:
        ...

    @abstractmethod
    async def get_user_follower_count(self, user_id: int) -> int:
        ...

    @abstractmethod
    async def get_user_following_count(self, user_id: int) -> int:
        ...

    @abstractmethod
    async def get_following_ids(self, user_id: int) -> List[int]:
        ...

    # Programs

    @abstractmethod
    async def _get_program(self, program_id: int) -> Optional[Program]:
        ...

    @abstractmethod
    async def _get_program_rows(self) -> List[Program]:
        """Every program, oldest first."""

    @abstractmethod
    async def _get_rating_stats(self, program_ids: Sequence[int]) -> Dict[int, Tuple[float, int]]:
        """(average rating, rating count) per program that has ratings."""

    @abstractmethod
    async def create_program(self, creator_id: Optional[int], author: str, data: ProgramCreate) -> Program:
        ...

    @abstractmethod
    async def rate_program(self, program_id: int, user_id: int, rating: int,
                           comment: Optional[str] = None) -> ProgramRating:
        """Record a user's rating, replacing any earlier one."""

    @abstractmethod
    async def ping(self) -> bool:
        """Whether the backing store answers."""

    # Workout views

    async def get_user_workouts(self, user_id: int, workout_filter: str = "all",
                                day: Optional[date] = None) -> List[WorkoutSummary]:
        rows = await self._get_workout_rows(user_id)

        if workout_filter and workout_filter.lower() != "all":
            needle = workout_filter.lower()
            rows = [workout for workout in rows if needle in workout.name.lower()]
        if day is not None:
            rows = [workout for workout in rows if workout.created_at.date() == day]

        return await self._summarize_workouts(rows)

    async def get_workout(self, workout_id: int) -> Optional[WorkoutDetail]:
        workout = await self._get_workout(workout_id)
        if workout is None:
            return None

        exercises = await self._get_exercises_for_workouts([workout.id])
        sets_by_exercise = await self._group_sets(exercises)

        all_sets = [workout_set for sets in sets_by_exercise.values() for workout_set in sets]
        exercise_details = [
            ExerciseDetail(
                id=exercise.id,
                workout_id=exercise.workout_id,
                name=exercise.name,
                created_at=exercise.created_at,
                sets=[SetResponse.model_validate(s) for s in sets_by_exercise.get(exercise.id, [])],
            )
            for exercise in exercises
        ]
        return WorkoutDetail(
            **self._workout_fields(workout),
            duration=workout_stats.format_duration(workout.start_time, workout.end_time),
            volume=workout_stats.calculate_volume(all_sets),
            exercises=exercise_details,
        )

    async def _group_sets(self, exercises: Sequence[Exercise]) -> Dict[int, List[WorkoutSet]]:
        sets = await self._get_sets_for_exercises([exercise.id for exercise in exercises])
        grouped: Dict[int, List[WorkoutSet]] = defaultdict(list)
        for workout_set in sets:
            grouped[workout_set.exercise_id].append(workout_set)
        return grouped

    async def _summarize_workouts(self, workouts: Sequence[Workout]) -> List[WorkoutSummary]:
        if not workouts:
            return []

        exercises = await self._get_exercises_for_workouts([workout.id for workout in workouts])
        sets_by_exercise = await self._group_sets(exercises)

        exercises_by_workout: Dict[int, List[Exercise]] = defaultdict(list)
        for exercise in exercises:
            exercises_by_workout[exercise.workout_id].append(exercise)

        summaries = []
        for workout in workouts:
            workout_exercises = exercises_by_workout.get(workout.id, [])
            workout_sets = [s for exercise in workout_exercises for s in sets_by_exercise.get(exercise.id, [])]
            summaries.append(WorkoutSummary(
                **self._workout_fields(workout),
                duration=workout_stats.format_duration(workout.start_time, workout.end_time),
                volume=workout_stats.calculate_volume(workout_sets),
                exercise_count=len(workout_exercises),
                exercises=[exercise.name for exercise in workout_exercises],
            ))
        return summaries

    @staticmethod
    def _workout_fields(workout: Workout) -> Dict[str, Any]:
        return {
            "id": workout.id,
            "user_id": workout.user_id,
            "name": workout.name,
            "start_time": workout.start_time,
            "end_time": workout.end_time,
            "notes": workout.notes,
            "use_metric": workout.use_metric,
            "created_at": workout.created_at,
        }

    # Workout statistics

    async def _workout_times(self, user_id: int, since: Optional[datetime] = None) -> List[datetime]:
        return [workout.created_at for workout in await self._get_workout_rows(user_id, since)]

    async def get_user_weekly_workout_count(self, user_id: int, today: Optional[date] = None) -> int:
        times = await self._workout_times(user_id, workout_stats.week_start(today))
        return workout_stats.count_weekly_workouts(times, today)

    async def get_user_monthly_workout_average(self, user_id: int, today: Optional[date] = None) -> float:
        since = workout_stats.months_window_start(workout_stats.MONTHLY_AVERAGE_MONTHS, today)
        times = await self._workout_times(user_id, since)
        return workout_stats.monthly_workout_average(times, today)

    async def get_user_workout_streak(self, user_id: int, today: Optional[date] = None) -> int:
        return workout_stats.calculate_streak(await self._workout_times(user_id), today)

    async def get_user_workout_frequency(self, user_id: int, today: Optional[date] = None) -> List[FrequencyPoint]:
        since = workout_stats.months_window_start(workout_stats.CHART_MONTHS, today)
        times = await self._workout_times(user_id, since)
        return [FrequencyPoint(**point) for point in workout_stats.workout_frequency(times, today)]

    async def get_user_workout_volume(self, user_id: int, today: Optional[date] = None) -> List[VolumePoint]:
        since = workout_stats.months_window_start(workout_stats.CHART_MONTHS, today)
        summaries = await self._summarize_workouts(await self._get_workout_rows(user_id, since))
        records = [(summary.created_at, summary.volume) for summary in summaries]
        return [VolumePoint(**point) for point in workout_stats.volume_by_month(records, today)]

    async def get_user_activity_data(self, user_id: int, today: Optional[date] = None) -> List[ActivityPoint]:
        since = workout_stats.months_window_start(workout_stats.CHART_MONTHS, today)
        times = await self._workout_times(user_id, since)
        return [ActivityPoint(**point) for point in workout_stats.activity_by_month(times, today)]

    async def get_user_exercise_progress(self, user_id: int, today: Optional[date] = None) -> List[ExerciseProgress]:
        user = await self.get_user(user_id)
        use_metric = user.use_metric if user is not None else True

        since = workout_stats.months_window_start(workout_stats.EXERCISE_PROGRESS_MONTHS, today)
        workouts = {workout.id: workout for workout in await self._get_workout_rows(user_id, since)}
        exercises = await self._get_exercises_for_workouts(list(workouts))
        sets_by_exercise = await self._group_sets(exercises)

        records = [
            SetRecord(exercise.name, workout_set.weight, workouts[exercise.workout_id].created_at)
            for exercise in exercises
            for workout_set in sets_by_exercise.get(exercise.id, [])
            if workout_set.weight
        ]
        return [ExerciseProgress(**entry) for entry in workout_stats.exercise_progress(records, use_metric, today)]

    async def get_weekly_leaderboard(self, user_id: int, today: Optional[date] = None) -> List[LeaderboardEntry]:
        """The user and everyone they follow, ranked by workouts logged since Monday."""
        member_ids = [user_id] + [i for i in await self.get_following_ids(user_id) if i != user_id]
        counts = await self.count_workouts_since(member_ids, workout_stats.week_start(today))
        users = await self._get_users_by_ids(member_ids)

        entries = [
            LeaderboardEntry(
                id=member_id,
                username=users[member_id].username,
                avatar=users[member_id].avatar,
                workouts=counts.get(member_id, 0),
                is_current_user=member_id == user_id,
            )
            for member_id in member_ids
            if member_id in users
        ]
        entries.sort(key=lambda entry: (-entry.workouts, entry.username.lower()))
        return entries

    # Post views

    async def get_post(self, post_id: int, viewer_id: Optional[int] = None) -> Optional[PostDetail]:
        post = await self._get_post(post_id)
        if post is None:
            return None
        return (await self._enrich_posts([post], viewer_id))[0]

    async def get_user_posts(self, user_id: int, viewer_id: Optional[int] = None) -> List[PostDetail]:
        posts = await self._get_posts_by_authors([user_id])
        return await self._enrich_posts(posts, viewer_id)

    async def get_feed_posts(self, user_id: int) -> List[PostDetail]:
        """Posts by the user and everyone they follow, newest first."""
        author_ids = [user_id] + await self.get_following_ids(user_id)
        posts = await self._get_posts_by_authors(author_ids)
        return await self._enrich_posts(posts, user_id)

    async def _enrich_posts(self, posts: Sequence[Post], viewer_id: Optional[int]) -> List[PostDetail]:
        if not posts:
            return []

        post_ids = [post.id for post in posts]
        workout_ids = list({post.workout_id for post in posts if post.workout_id is not None})

        users = await self._get_users_by_ids(list({post.user_id for post in posts}))
        workouts = await self._get_workouts_by_ids(workout_ids)
        exercise_counts = await self._count_exercises(workout_ids)
        comment_counts = await self._count_comments(post_ids)
        like_counts = await self._count_likes(post_ids)
        liked = await self._get_liked_post_ids(viewer_id, post_ids) if viewer_id is not None else set()

        enriched = []
        for post in posts:
            author = users.get(post.user_id)
            workout = workouts.get(post.workout_id) if post.workout_id is not None else None
            enriched.append(PostDetail(
                id=post.id,
                user_id=post.user_id,
                workout_id=post.workout_id,
                content=post.content,
                image=post.image,
                created_at=post.created_at,
                user=self._user_summary(author, post.user_id),
                workout=PostWorkout(
                    **self._workout_fields(workout),
                    exercise_count=exercise_counts.get(workout.id, 0),
                ) if workout is not None else None,
                comment_count=comment_counts.get(post.id, 0),
                like_count=like_counts.get(post.id, 0),
                liked=post.id in liked,
            ))
        return enriched

    @staticmethod
    def _user_summary(user: Optional[User], user_id: int) -> UserSummary:
        if user is None:
            return UserSummary(id=user_id, username="Unknown user", avatar=None)
        return UserSummary(id=user.id, username=user.username, avatar=user.avatar)

    # Comment views

    async def get_post_comments(self, post_id: int) -> List[CommentDetail]:
        """Top-level comments, oldest first, each with its replies."""
        comments = await self._get_comments_for_post(post_id)
        users = await self._get_users_by_ids(list({comment.user_id for comment in comments}))

        details = {
            comment.id: CommentDetail(
                id=comment.id,
                post_id=comment.post_id,
                user_id=comment.user_id,
                parent_id=comment.parent_id,
                content=comment.content,
                created_at=comment.created_at,
                user=self._user_summary(users.get(comment.user_id), comment.user_id),
            )
            for comment in comments
        }

        top_level = []
        for comment in comments:
            detail = details[comment.id]
            parent = details.get(comment.parent_id) if comment.parent_id is not None else None
            if parent is not None:
                parent.replies.append(detail)
            elif comment.parent_id is None:
                top_level.append(detail)
        return top_level

    # Program views

    async def get_programs(self, viewer_id: Optional[int] = None) -> List[ProgramResponse]:
        """Public programs plus the viewer's own private ones."""
        programs = [
            program for program in await self._get_program_rows()
            if program.is_public or (viewer_id is not None and program.creator_id == viewer_id)
        ]
        return await self._program_responses(programs)

    async def get_program(self, program_id: int, viewer_id: Optional[int] = None) -> Optional[ProgramResponse]:
        program = await self._get_program(program_id)
        if program is None:
            return None
        if not program.is_public and (viewer_id is None or program.creator_id != viewer_id):
            return None
        return (await self._program_responses([program]))[0]

    async def get_trending_programs(self, limit: int = 3, viewer_id: Optional[int] = None) -> List[ProgramResponse]:
        programs = await self.get_programs(viewer_id)
        programs.sort(key=lambda program: (-program.rating, -program.rating_count, program.id))
        return programs[:limit]

    async def _program_responses(self, programs: Sequence[Program]) -> List[ProgramResponse]:
        stats = await self._get_rating_stats([program.id for program in programs])
        responses = []
        for program in programs:
            average, count = stats.get(program.id, (0.0, 0))
            responses.append(ProgramResponse(
                id=program.id,
                name=program.name,
                author=program.author,
                type=program.type,
                description=program.description,
                rating=round(average, 1),
                rating_count=count,
                creator_id=program.creator_id,
                content=program.content or {},
                is_public=program.is_public,
                created_at=program.created_at,
            ))
        return responses
