"""
Integration tests for metrics, the leaderboard, workout analysis and health checks.
"""

from fitsocial.core.config import settings
from fitsocial.services.ai_analysis import NO_DATA_MESSAGE
from fitsocial.utils.time import utcnow


class TestMetrics:
    """Tests for /api/metrics"""

    async def test_workout_metrics(self, async_client, register_user, log_workout):
        await register_user("alice")
        await log_workout()

        metrics = (await async_client.get("/api/metrics/workout")).json()

        assert metrics["totalWorkouts"] == 1
        assert metrics["currentStreak"] == 1
        assert metrics["monthlyAverage"] == 0.25
        assert len(metrics["frequency"]) == 7
        assert metrics["volume"][-1] == {"month": utcnow().strftime("%b"), "volume": 1000}

    async def test_exercise_progress(self, async_client, register_user, log_workout):
        await register_user("alice")
        await log_workout()

        progress = (await async_client.get("/api/metrics/exercises")).json()

        # Dips has no weighted sets
        assert len(progress) == 1
        bench = progress[0]
        assert bench["id"] == 1
        assert bench["name"] == "Bench Press"
        assert bench["currentMax"] == 100
        assert bench["change"] == 0
        assert bench["unit"] == "kg"
        assert bench["progress"] == [{"date": utcnow().strftime("%b"), "weight": 100}]

    async def test_exercise_progress_in_pounds(self, async_client, register_user, log_workout):
        await register_user("alice", useMetric=False)
        await log_workout()

        progress = (await async_client.get("/api/metrics/exercises")).json()

        assert progress[0]["unit"] == "lb"

    async def test_no_workouts(self, async_client, register_user):
        await register_user("alice")

        assert (await async_client.get("/api/metrics/exercises")).json() == []
        assert (await async_client.get("/api/metrics/workout")).json()["totalWorkouts"] == 0


async def test_weekly_leaderboard(async_client, register_user, login_as, log_workout):
    alice = await register_user("alice")
    await log_workout()
    await log_workout()
    await register_user("carol")
    await log_workout()
    await log_workout()
    await log_workout()
    bob = await register_user("bob")
    await log_workout()
    await async_client.post(f"/api/users/{alice['id']}/follow")

    leaderboard = (await async_client.get("/api/leaderboard")).json()

    assert [(e["username"], e["workouts"]) for e in leaderboard] == [("alice", 2), ("bob", 1)]
    assert leaderboard[1]["id"] == bob["id"]
    assert leaderboard[1]["isCurrentUser"] is True
    assert leaderboard[0]["isCurrentUser"] is False


class TestAnalysis:
    """Tests for GET /api/analysis/workouts"""

    async def test_no_workouts(self, async_client, register_user):
        await register_user("alice")

        response = await async_client.get("/api/analysis/workouts")

        assert response.status_code == 200
        assert response.json() == {"analysis": NO_DATA_MESSAGE}

    async def test_local_report(self, async_client, register_user, log_workout):
        await register_user("alice")
        await log_workout()

        analysis = (await async_client.get("/api/analysis/workouts")).json()["analysis"]

        assert analysis.startswith("## Workout Analysis")
        assert "Based on your 1 recorded workouts" in analysis


class TestHealth:

    async def test_root(self, async_client):
        response = await async_client.get("/")
        assert response.json()["status"] == "ok"

    async def test_health(self, async_client):
        body = (await async_client.get("/api/health")).json()

        assert body["status"] == "healthy"
        assert body["storage_status"] == "connected"
        assert body["service"] == "fitsocial-backend"

    async def test_database_check_skipped_for_memory_backend(self, async_client, monkeypatch):
        monkeypatch.setattr(settings, "STORAGE_BACKEND", "memory")

        body = (await async_client.get("/api/health/database")).json()

        assert body == {"status": "skipped", "storage": "memory"}
