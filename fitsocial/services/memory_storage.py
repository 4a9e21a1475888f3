"""
Dict-backed storage.

Rows are plain (transient) model instances kept in one dict per table, with a
counter per table for ids. Used for local runs without Postgres and in tests.
"""

from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from fitsocial.core.exceptions import ConflictError
from fitsocial.core.security import default_avatar, get_password_hash
from fitsocial.models import Comment, Exercise, Follow, Like, Post, Program, ProgramRating, User, Workout, WorkoutSet
from fitsocial.schemas.program import ProgramCreate
from fitsocial.schemas.workout import ExerciseCreate, SetCreate
from fitsocial.services.catalog import BUILTIN_PROGRAMS
from fitsocial.services.storage import AbstractStorage
from fitsocial.utils.logger import db_logger
from fitsocial.utils.time import utcnow

SET_FIELDS = ("weight", "reps", "duration", "distance", "rpe")


class MemoryStorage(AbstractStorage):

    def __init__(self, seed: bool = False):
        self.users: Dict[int, User] = {}
        self.workouts: Dict[int, Workout] = {}
        self.exercises: Dict[int, Exercise] = {}
        self.sets: Dict[int, WorkoutSet] = {}
        self.posts: Dict[int, Post] = {}
        self.comments: Dict[int, Comment] = {}
        self.likes: Dict[int, Like] = {}
        self.follows: Dict[int, Follow] = {}
        self.programs: Dict[int, Program] = {}
        self.program_ratings: Dict[int, ProgramRating] = {}
        self._counters: Counter = Counter()

        for entry in BUILTIN_PROGRAMS:
            self._insert(self.programs, Program(creator_id=None, is_public=True, **entry))

        if seed:
            self._seed_sample_data()

    def _insert(self, table: Dict[int, Any], row):
        self._counters[row.__tablename__] += 1
        row.id = self._counters[row.__tablename__]
        if getattr(row, "created_at", None) is None:
            row.created_at = utcnow()
        table[row.id] = row
        return row

    def _seed_sample_data(self):
        """Two users following each other, one logged workout and a post with a comment and a like."""
        john = self._insert(self.users, User(
            username="johndoe",
            email="john@example.com",
            hashed_password=get_password_hash("password123"),
            avatar=default_avatar("johndoe"),
            bio="Fitness enthusiast and software developer",
            weekly_goal=4,
            use_metric=True,
        ))
        jane = self._insert(self.users, User(
            username="janedoe",
            email="jane@example.com",
            hashed_password=get_password_hash("password123"),
            avatar=default_avatar("janedoe"),
            bio="Runner and yoga instructor",
            weekly_goal=5,
            use_metric=True,
        ))
        self._insert(self.follows, Follow(follower_id=john.id, following_id=jane.id))
        self._insert(self.follows, Follow(follower_id=jane.id, following_id=john.id))

        now = utcnow()
        workout = self._insert(self.workouts, Workout(
            user_id=john.id, name="Upper Body Workout", start_time=now, end_time=None, use_metric=True,
        ))
        bench = self._insert(self.exercises, Exercise(workout_id=workout.id, name="Bench Press"))
        self._insert(self.sets, WorkoutSet(exercise_id=bench.id, weight=80, reps=10))
        self._insert(self.sets, WorkoutSet(exercise_id=bench.id, weight=85, reps=8))
        pull_ups = self._insert(self.exercises, Exercise(workout_id=workout.id, name="Pull Ups"))
        self._insert(self.sets, WorkoutSet(exercise_id=pull_ups.id, reps=8))

        post = self._insert(self.posts, Post(
            user_id=john.id,
            workout_id=workout.id,
            content="Just finished a great upper body workout. Hit a new PR on bench press!",
        ))
        self._insert(self.comments, Comment(post_id=post.id, user_id=jane.id, content="Great job! What's your new PR?"))
        self._insert(self.likes, Like(user_id=jane.id, post_id=post.id))
        db_logger.info("Seeded in-memory storage with sample data", context="MEMORY", users=len(self.users))

    # Users

    async def get_user(self, user_id: int) -> Optional[User]:
        return self.users.get(user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        username = username.lower()
        return next((user for user in self.users.values() if user.username.lower() == username), None)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        email = email.lower()
        return next((user for user in self.users.values() if user.email.lower() == email), None)

    async def get_users(self, search: Optional[str] = None) -> List[User]:
        users = list(self.users.values())
        if search:
            needle = search.lower()
            users = [
                user for user in users
                if needle in user.username.lower() or (user.bio and needle in user.bio.lower())
            ]
        return users

    async def create_user(self, username: str, email: str, hashed_password: str,
                          avatar: Optional[str] = None, bio: Optional[str] = None,
                          weekly_goal: int = 4, use_metric: bool = True) -> User:
        if await self.get_user_by_username(username):
            raise ConflictError("Username already taken")
        if await self.get_user_by_email(email):
            raise ConflictError("Email already registered")
        return self._insert(self.users, User(
            username=username,
            email=email,
            hashed_password=hashed_password,
            avatar=avatar,
            bio=bio,
            weekly_goal=weekly_goal,
            use_metric=use_metric,
        ))

    async def update_user(self, user_id: int, data: Dict[str, Any]) -> Optional[User]:
        user = self.users.get(user_id)
        if user is None:
            return None
        for field, value in data.items():
            setattr(user, field, value)
        return user

    async def _get_users_by_ids(self, user_ids: Sequence[int]) -> Dict[int, User]:
        return {user_id: self.users[user_id] for user_id in user_ids if user_id in self.users}

    # Workouts

    async def _get_workout(self, workout_id: int) -> Optional[Workout]:
        return self.workouts.get(workout_id)

    async def _get_workout_rows(self, user_id: int, since: Optional[datetime] = None) -> List[Workout]:
        rows = [
            workout for workout in self.workouts.values()
            if workout.user_id == user_id and (since is None or workout.created_at >= since)
        ]
        return sorted(rows, key=lambda workout: (workout.created_at, workout.id), reverse=True)

    async def _get_workouts_by_ids(self, workout_ids: Sequence[int]) -> Dict[int, Workout]:
        return {workout_id: self.workouts[workout_id] for workout_id in workout_ids if workout_id in self.workouts}

    async def _get_exercises_for_workouts(self, workout_ids: Sequence[int]) -> List[Exercise]:
        wanted = set(workout_ids)
        return [exercise for exercise in self.exercises.values() if exercise.workout_id in wanted]

    async def _get_sets_for_exercises(self, exercise_ids: Sequence[int]) -> List[WorkoutSet]:
        wanted = set(exercise_ids)
        return [workout_set for workout_set in self.sets.values() if workout_set.exercise_id in wanted]

    async def create_workout(self, user_id: int, name: str, exercises: Sequence[ExerciseCreate],
                             share_to_feed: bool = False, use_metric: bool = True,
                             notes: Optional[str] = None) -> Workout:
        now = utcnow()
        workout = self._insert(self.workouts, Workout(
            user_id=user_id, name=name, start_time=now, end_time=None, notes=notes, use_metric=use_metric,
        ))
        for exercise_data in exercises:
            if not exercise_data.name or not exercise_data.name.strip():
                continue
            exercise = self._insert(self.exercises, Exercise(workout_id=workout.id, name=exercise_data.name.strip()))
            for set_data in exercise_data.sets:
                self._insert(self.sets, WorkoutSet(exercise_id=exercise.id, **set_data.model_dump(include=set(SET_FIELDS))))

        if share_to_feed:
            self._insert(self.posts, Post(user_id=user_id, workout_id=workout.id, content=f"Completed a {name} workout"))
        return workout

    async def update_workout(self, workout_id: int, data: Dict[str, Any]) -> Optional[Workout]:
        workout = self.workouts.get(workout_id)
        if workout is None:
            return None
        for field, value in data.items():
            setattr(workout, field, value)
        return workout

    async def delete_workout(self, workout_id: int) -> bool:
        if workout_id not in self.workouts:
            return False

        exercise_ids = {e.id for e in self.exercises.values() if e.workout_id == workout_id}
        for set_id in [s.id for s in self.sets.values() if s.exercise_id in exercise_ids]:
            del self.sets[set_id]
        for exercise_id in exercise_ids:
            del self.exercises[exercise_id]
        for post_id in [p.id for p in self.posts.values() if p.workout_id == workout_id]:
            await self.delete_post(post_id)
        del self.workouts[workout_id]
        return True

    async def get_exercise(self, exercise_id: int) -> Optional[Exercise]:
        return self.exercises.get(exercise_id)

    async def create_exercise(self, workout_id: int, name: str) -> Exercise:
        return self._insert(self.exercises, Exercise(workout_id=workout_id, name=name))

    async def get_set(self, set_id: int) -> Optional[WorkoutSet]:
        return self.sets.get(set_id)

    async def create_set(self, exercise_id: int, data: SetCreate) -> WorkoutSet:
        return self._insert(self.sets, WorkoutSet(exercise_id=exercise_id, **data.model_dump(include=set(SET_FIELDS))))

    async def get_user_workout_count(self, user_id: int) -> int:
        return sum(1 for workout in self.workouts.values() if workout.user_id == user_id)

    async def count_workouts_since(self, user_ids: Sequence[int], since: datetime) -> Dict[int, int]:
        wanted = set(user_ids)
        return dict(Counter(
            workout.user_id for workout in self.workouts.values()
            if workout.user_id in wanted and workout.created_at >= since
        ))

    # Posts

    async def _get_post(self, post_id: int) -> Optional[Post]:
        return self.posts.get(post_id)

    async def _get_posts_by_authors(self, user_ids: Sequence[int]) -> List[Post]:
        wanted = set(user_ids)
        rows = [post for post in self.posts.values() if post.user_id in wanted]
        return sorted(rows, key=lambda post: (post.created_at, post.id), reverse=True)

    async def create_post(self, user_id: int, content: str, workout_id: Optional[int] = None,
                          image: Optional[str] = None) -> Post:
        return self._insert(self.posts, Post(user_id=user_id, workout_id=workout_id, content=content, image=image))

    async def delete_post(self, post_id: int) -> bool:
        if post_id not in self.posts:
            return False
        for comment_id in [c.id for c in self.comments.values() if c.post_id == post_id]:
            del self.comments[comment_id]
        for like_id in [l.id for l in self.likes.values() if l.post_id == post_id]:
            del self.likes[like_id]
        del self.posts[post_id]
        return True

    async def _count_exercises(self, workout_ids: Sequence[int]) -> Dict[int, int]:
        wanted = set(workout_ids)
        return dict(Counter(e.workout_id for e in self.exercises.values() if e.workout_id in wanted))

    async def _count_comments(self, post_ids: Sequence[int]) -> Dict[int, int]:
        wanted = set(post_ids)
        return dict(Counter(c.post_id for c in self.comments.values() if c.post_id in wanted))

    async def _count_likes(self, post_ids: Sequence[int]) -> Dict[int, int]:
        wanted = set(post_ids)
        return dict(Counter(l.post_id for l in self.likes.values() if l.post_id in wanted))

    async def _get_liked_post_ids(self, user_id: int, post_ids: Sequence[int]) -> Set[int]:
        wanted = set(post_ids)
        return {l.post_id for l in self.likes.values() if l.user_id == user_id and l.post_id in wanted}

    # Comments

    async def get_comment(self, comment_id: int) -> Optional[Comment]:
        return self.comments.get(comment_id)

    async def _get_comments_for_post(self, post_id: int) -> List[Comment]:
        rows = [comment for comment in self.comments.values() if comment.post_id == post_id]
        return sorted(rows, key=lambda comment: (comment.created_at, comment.id))

    async def create_comment(self, post_id: int, user_id: int, content: str,
                             parent_id: Optional[int] = None) -> Comment:
        return self._insert(self.comments, Comment(post_id=post_id, user_id=user_id, parent_id=parent_id, content=content))

    async def delete_comment(self, comment_id: int) -> bool:
        if comment_id not in self.comments:
            return False
        for reply_id in [c.id for c in self.comments.values() if c.parent_id == comment_id]:
            await self.delete_comment(reply_id)
        del self.comments[comment_id]
        return True

    # Likes

    async def has_user_liked_post(self, user_id: int, post_id: int) -> bool:
        return any(l.user_id == user_id and l.post_id == post_id for l in self.likes.values())

    async def create_like(self, user_id: int, post_id: int) -> Like:
        if await self.has_user_liked_post(user_id, post_id):
            raise ConflictError("Post already liked")
        return self._insert(self.likes, Like(user_id=user_id, post_id=post_id))

    async def delete_like(self, user_id: int, post_id: int) -> bool:
        like = next((l for l in self.likes.values() if l.user_id == user_id and l.post_id == post_id), None)
        if like is None:
            return False
        del self.likes[like.id]
        return True

    # Follows

    async def is_following(self, follower_id: int, following_id: int) -> bool:
        return any(
            f.follower_id == follower_id and f.following_id == following_id for f in self.follows.values()
        )

    async def create_follow(self, follower_id: int, following_id: int) -> Follow:
        if await self.is_following(follower_id, following_id):
            raise ConflictError("Already following this user")
        return self._insert(self.follows, Follow(follower_id=follower_id, following_id=following_id))

    async def delete_follow(self, follower_id: int, following_id: int) -> bool:
        follow = next(
            (f for f in self.follows.values() if f.follower_id == follower_id and f.following_id == following_id),
            None,
        )
        if follow is None:
            return False
        del self.follows[follow.id]
        return True

    async def get_user_follower_count(self, user_id: int) -> int:
        return sum(1 for f in self.follows.values() if f.following_id == user_id)

    async def get_user_following_count(self, user_id: int) -> int:
        return sum(1 for f in self.follows.values() if f.follower_id == user_id)

    async def get_following_ids(self, user_id: int) -> List[int]:
        return [f.following_id for f in self.follows.values() if f.follower_id == user_id]

    # Programs

    async def _get_program(self, program_id: int) -> Optional[Program]:
        return self.programs.get(program_id)

    async def _get_program_rows(self) -> List[Program]:
        return list(self.programs.values())

    async def _get_rating_stats(self, program_ids: Sequence[int]) -> Dict[int, Tuple[float, int]]:
        wanted = set(program_ids)
        ratings: Dict[int, List[int]] = {}
        for rating in self.program_ratings.values():
            if rating.program_id in wanted:
                ratings.setdefault(rating.program_id, []).append(rating.rating)
        return {program_id: (sum(values) / len(values), len(values)) for program_id, values in ratings.items()}

    async def create_program(self, creator_id: Optional[int], author: str, data: ProgramCreate) -> Program:
        return self._insert(self.programs, Program(
            name=data.name,
            description=data.description,
            creator_id=creator_id,
            author=author,
            type=data.type,
            content=dict(data.content),
            is_public=data.is_public,
        ))

    async def rate_program(self, program_id: int, user_id: int, rating: int,
                           comment: Optional[str] = None) -> ProgramRating:
        existing = next(
            (r for r in self.program_ratings.values() if r.program_id == program_id and r.user_id == user_id),
            None,
        )
        if existing is not None:
            existing.rating = rating
            existing.comment = comment
            return existing
        return self._insert(self.program_ratings, ProgramRating(
            program_id=program_id, user_id=user_id, rating=rating, comment=comment,
        ))

    async def ping(self) -> bool:
        return True
