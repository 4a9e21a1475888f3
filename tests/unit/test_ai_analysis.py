"""Unit tests for the workout analysis service."""

from datetime import datetime

import pytest
from langchain_core.language_models import FakeListChatModel
from langchain_core.runnables import RunnableLambda

from fitsocial.schemas.workout import WorkoutSummary
from fitsocial.services.ai_analysis import (
    NO_DATA_MESSAGE,
    WorkoutAnalysisService,
    generate_local_analysis,
    strip_reasoning,
    summarize_workouts,
)


def make_summary(workout_id: int, name: str, created_at: datetime, volume: int) -> WorkoutSummary:
    return WorkoutSummary(
        id=workout_id,
        user_id=1,
        name=name,
        start_time=created_at,
        end_time=None,
        notes=None,
        use_metric=True,
        created_at=created_at,
        duration="In progress",
        volume=volume,
        exercise_count=2,
        exercises=["Bench Press", "Dips"],
    )


@pytest.fixture
def workouts():
    return [
        make_summary(2, "Leg Day", datetime(2025, 1, 3, 18), 300),
        make_summary(1, "Push Day", datetime(2025, 1, 1, 18), 100),
    ]


class TestStripReasoning:
    """Removal of model reasoning markers."""

    def test_strips_think_block(self):
        assert strip_reasoning("<think>plan the answer</think>\n## Report") == "## Report"

    def test_strips_multiline_thinking_block(self):
        assert strip_reasoning("<thinking>line one\nline two</thinking>Hello") == "Hello"

    def test_strips_dangling_closing_tag(self):
        assert strip_reasoning("</think>Result") == "Result"

    def test_leaves_plain_text_alone(self):
        assert strip_reasoning("Keep lifting.") == "Keep lifting."


class TestLocalAnalysis:
    """Report generated without a model."""

    def test_no_data_message(self):
        assert generate_local_analysis([]) == NO_DATA_MESSAGE

    def test_report_compares_latest_workout_with_average(self, workouts):
        report = generate_local_analysis(summarize_workouts(workouts))

        assert report.startswith("## Workout Analysis")
        assert "Based on your 2 recorded workouts" in report
        assert "Your average workout volume is 200 units" in report
        assert 'Your latest workout "Leg Day" had a volume of 300 units' in report
        assert "is above your average - great work!" in report
        assert "5. Make sure to balance pushing and pulling movements" in report

    def test_summary_fields(self, workouts):
        assert summarize_workouts(workouts)[0] == {
            "name": "Leg Day",
            "date": "2025-01-03",
            "exercises": 2,
            "volume": 300,
        }


class TestWorkoutAnalysisService:
    """Model call, marker stripping and fallbacks."""

    async def test_no_workouts_returns_fixed_message(self):
        service = WorkoutAnalysisService(llm=FakeListChatModel(responses=["unused"]))
        assert await service.analyze([]) == NO_DATA_MESSAGE

    async def test_model_reply_is_cleaned(self, workouts):
        service = WorkoutAnalysisService(llm=FakeListChatModel(responses=["<think>hmm</think>Great progress!"]))
        assert await service.analyze(workouts) == "Great progress!"

    async def test_falls_back_when_model_fails(self, workouts):
        def broken_model(_):
            raise RuntimeError("provider unavailable")

        service = WorkoutAnalysisService(llm=RunnableLambda(broken_model))
        analysis = await service.analyze(workouts)

        assert analysis.startswith("## Workout Analysis")

    async def test_falls_back_on_empty_reply(self, workouts):
        service = WorkoutAnalysisService(llm=FakeListChatModel(responses=["<think>only thoughts</think>"]))
        analysis = await service.analyze(workouts)

        assert "Based on your 2 recorded workouts" in analysis

    async def test_without_api_key_uses_local_analysis(self, workouts, monkeypatch):
        from fitsocial.core.config import settings

        monkeypatch.setattr(settings, "OPENAI_API_KEY", "")
        analysis = await WorkoutAnalysisService().analyze(workouts)

        assert analysis.startswith("## Workout Analysis")
