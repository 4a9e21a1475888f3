"""
Behaviour shared by MemoryStorage and DatabaseStorage.

Every test taking the ``storage`` fixture runs once per backend. Workouts
are backdated through ``update_workout`` so statistics can be checked
against a pinned ``today``.
"""

from datetime import date, datetime

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from fitsocial.core.exceptions import ConflictError
from fitsocial.core.security import verify_password
from fitsocial.models.workout import Exercise, WorkoutSet
from fitsocial.schemas.program import ProgramCreate
from fitsocial.schemas.workout import ExerciseCreate, SetCreate
from fitsocial.services.memory_storage import MemoryStorage

TODAY = date(2025, 3, 12)


async def make_user(storage, username="alice", **extra):
    return await storage.create_user(
        username=username,
        email=f"{username}@example.com",
        hashed_password="not-a-real-hash",
        **extra,
    )


def bench(*weights):
    return ExerciseCreate(name="Bench Press", sets=[SetCreate(weight=w, reps=5) for w in weights])


async def logged_on(storage, user_id, when, name="Workout", exercises=None):
    workout = await storage.create_workout(user_id, name, exercises or [bench(100)])
    await storage.update_workout(workout.id, {"created_at": when, "start_time": when})
    return workout


class TestUsers:

    async def test_lookups_are_case_insensitive(self, storage):
        user = await make_user(storage, "Alice")

        assert (await storage.get_user_by_username("alice")).id == user.id
        assert (await storage.get_user_by_email("ALICE@example.com")).id == user.id
        assert await storage.get_user_by_username("bob") is None

    async def test_duplicate_username_conflicts(self, storage):
        await make_user(storage, "alice")

        with pytest.raises(ConflictError):
            await storage.create_user(username="alice", email="other@example.com", hashed_password="x")

    async def test_update_user(self, storage):
        user = await make_user(storage)

        updated = await storage.update_user(user.id, {"bio": "Coach", "weekly_goal": 6})

        assert updated.bio == "Coach"
        assert updated.weekly_goal == 6
        assert await storage.update_user(9999, {"bio": "nobody"}) is None

    async def test_search(self, storage):
        await make_user(storage, "alice", bio="Powerlifter")
        await make_user(storage, "bob", bio="Runner")

        assert [u.username for u in await storage.get_users("run")] == ["bob"]
        assert len(await storage.get_users()) == 2

    async def test_search_treats_wildcards_literally(self, storage):
        await make_user(storage, "alice", bio="Squats")
        await make_user(storage, "bob_lifts", bio="100% effort")

        assert [u.username for u in await storage.get_users("_")] == ["bob_lifts"]
        assert [u.username for u in await storage.get_users("%")] == ["bob_lifts"]
        assert await storage.get_users("a%s") == []


class TestWorkouts:

    async def test_create_workout_writes_every_row(self, storage):
        user = await make_user(storage)
        workout = await storage.create_workout(
            user.id,
            "Push Day",
            [bench(80, 85), ExerciseCreate(name="  ", sets=[SetCreate(reps=10)]), ExerciseCreate(name="Dips")],
            share_to_feed=True,
            notes="Felt good",
        )

        detail = await storage.get_workout(workout.id)
        assert [e.name for e in detail.exercises] == ["Bench Press", "Dips"]
        assert detail.volume == 825
        assert detail.notes == "Felt good"

        posts = await storage.get_user_posts(user.id)
        assert posts[0].content == "Completed a Push Day workout"
        assert posts[0].workout.exercise_count == 2

    async def test_delete_workout_cascades(self, storage):
        user = await make_user(storage)
        friend = await make_user(storage, "bob")
        workout = await storage.create_workout(user.id, "Push Day", [bench(100)], share_to_feed=True)
        post = (await storage.get_user_posts(user.id))[0]
        comment = await storage.create_comment(post.id, friend.id, "Nice")
        await storage.create_comment(post.id, user.id, "Thanks", parent_id=comment.id)
        await storage.create_like(friend.id, post.id)

        assert await storage.delete_workout(workout.id) is True

        assert await storage.get_workout(workout.id) is None
        assert await storage.get_post(post.id) is None
        assert await storage.get_comment(comment.id) is None
        assert await storage.get_user_workout_count(user.id) == 0
        assert await storage.delete_workout(workout.id) is False

    async def test_exercise_and_set_primitives(self, storage):
        user = await make_user(storage)
        workout = await storage.create_workout(user.id, "Accessories", [])

        exercise = await storage.create_exercise(workout.id, "Curls")
        workout_set = await storage.create_set(exercise.id, SetCreate(weight=15, reps=12, rpe=8))

        assert (await storage.get_exercise(exercise.id)).name == "Curls"
        assert (await storage.get_set(workout_set.id)).rpe == 8
        assert (await storage.get_workout(workout.id)).volume == 180


class TestStatistics:

    async def test_streak_and_weekly_count(self, storage):
        user = await make_user(storage)
        await logged_on(storage, user.id, datetime(2025, 3, 12, 8))
        await logged_on(storage, user.id, datetime(2025, 3, 11, 8))
        await logged_on(storage, user.id, datetime(2025, 3, 9, 8))

        assert await storage.get_user_workout_streak(user.id, today=TODAY) == 2
        assert await storage.get_user_weekly_workout_count(user.id, today=TODAY) == 2
        assert await storage.get_user_monthly_workout_average(user.id, today=TODAY) == 0.75

    async def test_volume_chart(self, storage):
        user = await make_user(storage)
        await logged_on(storage, user.id, datetime(2025, 1, 15), exercises=[bench(100, 100)])
        await logged_on(storage, user.id, datetime(2025, 3, 1), exercises=[bench(60)])

        volume = {point.month: point.volume for point in await storage.get_user_workout_volume(user.id, today=TODAY)}

        assert volume["Jan"] == 1000
        assert volume["Mar"] == 300
        assert volume["Feb"] == 0

    async def test_exercise_progress(self, storage):
        user = await make_user(storage, use_metric=False)
        await logged_on(storage, user.id, datetime(2025, 1, 15), exercises=[bench(80, 85)])
        await logged_on(storage, user.id, datetime(2025, 3, 1), exercises=[bench(95)])

        [progress] = await storage.get_user_exercise_progress(user.id, today=TODAY)

        assert progress.name == "Bench Press"
        assert [(p.date, p.weight) for p in progress.progress] == [("Jan", 85), ("Mar", 95)]
        assert progress.current_max == 95
        assert progress.change == 10
        assert progress.unit == "lb"

    async def test_leaderboard(self, storage):
        alice = await make_user(storage, "alice")
        bob = await make_user(storage, "bob")
        carol = await make_user(storage, "carol")
        await storage.create_follow(alice.id, bob.id)
        await storage.create_follow(alice.id, carol.id)
        await logged_on(storage, bob.id, datetime(2025, 3, 11))
        await logged_on(storage, carol.id, datetime(2025, 3, 10))
        await logged_on(storage, carol.id, datetime(2025, 3, 7))  # last week

        board = await storage.get_weekly_leaderboard(alice.id, today=TODAY)

        assert [(e.username, e.workouts) for e in board] == [("bob", 1), ("carol", 1), ("alice", 0)]
        assert [e.is_current_user for e in board] == [False, False, True]


class TestSocial:

    async def test_duplicate_like_conflicts(self, storage):
        user_id = (await make_user(storage)).id
        post_id = (await storage.create_post(user_id, "Hello")).id
        await storage.create_like(user_id, post_id)

        with pytest.raises(ConflictError):
            await storage.create_like(user_id, post_id)

        assert await storage.delete_like(user_id, post_id) is True
        assert await storage.delete_like(user_id, post_id) is False

    async def test_duplicate_follow_conflicts(self, storage):
        alice_id = (await make_user(storage, "alice")).id
        bob_id = (await make_user(storage, "bob")).id
        await storage.create_follow(alice_id, bob_id)

        # The failed insert rolls the session back, so only plain ids are reused
        with pytest.raises(ConflictError):
            await storage.create_follow(alice_id, bob_id)

        assert await storage.get_user_follower_count(bob_id) == 1
        assert await storage.get_following_ids(alice_id) == [bob_id]

    async def test_feed_enrichment(self, storage):
        alice = await make_user(storage, "alice")
        bob = await make_user(storage, "bob")
        await storage.create_follow(bob.id, alice.id)
        post = await storage.create_post(alice.id, "PR day")
        await storage.create_comment(post.id, bob.id, "Nice")
        await storage.create_like(bob.id, post.id)

        [detail] = await storage.get_feed_posts(bob.id)

        assert detail.user.username == "alice"
        assert detail.comment_count == 1
        assert detail.like_count == 1
        assert detail.liked is True
        assert (await storage.get_post(post.id, viewer_id=alice.id)).liked is False

    async def test_deleting_a_comment_removes_replies(self, storage):
        user = await make_user(storage)
        post = await storage.create_post(user.id, "Hello")
        top = await storage.create_comment(post.id, user.id, "Top")
        await storage.create_comment(post.id, user.id, "Reply", parent_id=top.id)

        assert len((await storage.get_post_comments(post.id))[0].replies) == 1

        await storage.delete_comment(top.id)
        assert await storage.get_post_comments(post.id) == []


    async def test_delete_post_removes_comments_and_likes(self, storage):
        alice_id = (await make_user(storage, "alice")).id
        bob_id = (await make_user(storage, "bob")).id
        post_id = (await storage.create_post(alice_id, "PR day")).id
        comment_id = (await storage.create_comment(post_id, bob_id, "Nice")).id
        reply_id = (await storage.create_comment(post_id, alice_id, "Thanks", parent_id=comment_id)).id
        await storage.create_like(bob_id, post_id)

        assert await storage.delete_post(post_id) is True

        assert await storage.get_post(post_id) is None
        assert await storage.get_comment(comment_id) is None
        assert await storage.get_comment(reply_id) is None
        assert await storage.has_user_liked_post(bob_id, post_id) is False
        assert await storage.delete_post(post_id) is False


class TestPrograms:

    async def test_rating_upsert_and_average(self, storage):
        alice = await make_user(storage, "alice")
        bob = await make_user(storage, "bob")
        program = await storage.create_program(
            alice.id, "alice", ProgramCreate(name="Plan", description="A plan", type="strength")
        )

        await storage.rate_program(program.id, alice.id, 2)
        await storage.rate_program(program.id, alice.id, 4, "Better second time")
        await storage.rate_program(program.id, bob.id, 5)

        response = await storage.get_program(program.id)
        assert response.rating == 4.5
        assert response.rating_count == 2

    async def test_private_program_hidden_from_others(self, storage):
        alice = await make_user(storage, "alice")
        program = await storage.create_program(
            alice.id, "alice", ProgramCreate(name="Plan", description="A plan", type="cardio", is_public=False)
        )

        assert await storage.get_program(program.id, viewer_id=alice.id) is not None
        assert await storage.get_program(program.id, viewer_id=alice.id + 1) is None


async def test_ping(storage):
    assert await storage.ping() is True


class TestMemoryStorage:
    """Behaviour specific to the in-memory backend."""

    async def test_builtin_programs_are_always_loaded(self, memory_storage):
        programs = await memory_storage.get_programs()

        assert len(programs) == 6
        assert all(p.creator_id is None and p.rating == 0 for p in programs)

    async def test_seeded_sample_data(self):
        storage = MemoryStorage(seed=True)

        john = await storage.get_user_by_username("johndoe")
        jane = await storage.get_user_by_username("janedoe")
        assert verify_password("password123", john.hashed_password)
        assert await storage.is_following(john.id, jane.id)
        assert await storage.is_following(jane.id, john.id)

        [post] = await storage.get_feed_posts(jane.id)
        assert post.user.username == "johndoe"
        assert post.workout.name == "Upper Body Workout"
        assert post.like_count == 1
        assert post.liked is True
        assert post.comment_count == 1

        [workout] = await storage.get_user_workouts(john.id)
        assert workout.volume == 1480
        assert workout.exercises == ["Bench Press", "Pull Ups"]

    async def test_ids_are_sequential_per_table(self, memory_storage):
        alice = await make_user(memory_storage, "alice")
        bob = await make_user(memory_storage, "bob")
        post = await memory_storage.create_post(alice.id, "Hello")

        assert (alice.id, bob.id) == (1, 2)
        assert post.id == 1


async def test_database_starts_without_programs(database_storage):
    assert await database_storage.get_programs() == []


async def test_failed_workout_write_rolls_back(database_storage, async_db_session, monkeypatch):
    user_id = (await make_user(database_storage)).id

    async def failing_commit():
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(async_db_session, "commit", failing_commit)
    with pytest.raises(OperationalError):
        await database_storage.create_workout(user_id, "Push Day", [bench(100, 105)], share_to_feed=True)
    monkeypatch.undo()

    assert await database_storage.get_user_workout_count(user_id) == 0
    assert await database_storage.get_user_posts(user_id) == []
    for model in (Exercise, WorkoutSet):
        count = await async_db_session.scalar(select(func.count()).select_from(model))
        assert count == 0
