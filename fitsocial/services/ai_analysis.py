import json
import re
from typing import Any, Dict, List, Optional, Sequence

from langchain_core.prompts import ChatPromptTemplate
from langchain_openai import ChatOpenAI

from fitsocial.core.config import settings
from fitsocial.schemas.workout import WorkoutSummary
from fitsocial.utils.logger import analysis_logger

NO_DATA_MESSAGE = "No workout data available to analyze. Complete some workouts to get AI insights."

# Reasoning models wrap their scratchpad in these tags
_REASONING_BLOCK = re.compile(r"<(think|thinking)>.*?</\1>", re.DOTALL | re.IGNORECASE)
_DANGLING_TAG = re.compile(r"</?(think|thinking)>", re.IGNORECASE)


def strip_reasoning(text: str) -> str:
    """Remove ``<think>``/``<thinking>`` blocks and any unmatched marker left behind."""
    cleaned = _REASONING_BLOCK.sub("", text)
    cleaned = _DANGLING_TAG.sub("", cleaned)
    return cleaned.strip()


def summarize_workouts(workouts: Sequence[WorkoutSummary]) -> List[Dict[str, Any]]:
    return [
        {
            "name": workout.name or "Unnamed Workout",
            "date": workout.created_at.date().isoformat() if workout.created_at else "unknown date",
            "exercises": workout.exercise_count or 0,
            "volume": workout.volume or 0,
        }
        for workout in workouts
    ]


def generate_local_analysis(workout_data: List[Dict[str, Any]]) -> str:
    """Markdown report built from the numbers alone, used whenever the model is unavailable."""
    if not workout_data:
        return NO_DATA_MESSAGE

    ordered = sorted(workout_data, key=lambda w: w["date"])
    total_workouts = len(workout_data)
    total_volume = sum(w["volume"] for w in workout_data)
    avg_volume = int(total_volume / total_workouts + 0.5)
    latest = ordered[-1]

    if latest["volume"] > avg_volume:
        comparison = "is above your average - great work!"
    else:
        comparison = "is below your average - consider adding more sets or intensity next time."

    return f"""## Workout Analysis

Based on your {total_workouts} recorded workouts, here's an analysis of your fitness journey:

### Consistency & Frequency
You've completed {total_workouts} workouts in your current program. This shows dedication to your fitness goals. Try to maintain a consistent schedule of 3-4 workouts per week for optimal results.

### Volume Progression
Your average workout volume is {avg_volume} units. Your latest workout "{latest["name"]}" had a volume of {latest["volume"]} units, which {comparison}

### Recommendations
1. Focus on consistent weekly workout frequency
2. Consider tracking your rest periods to ensure optimal recovery
3. Gradually increase your workout volume over time
4. Include more variety in your exercises to prevent plateaus
5. Make sure to balance pushing and pulling movements for overall development

Keep up the great work! Consistency is key to reaching your fitness goals.
"""


class WorkoutAnalysisService:
    """Writes a progress review of a user's workouts with an OpenAI-compatible chat model."""

    def __init__(self, llm: Optional[Any] = None):
        self._llm = llm
        self.prompt_template = ChatPromptTemplate.from_template("""
You are an experienced strength and conditioning coach reviewing a client's training log.

Workout history (JSON list of name, date, exercise count and total volume):
{workout_data}

Write a short markdown report with these sections:
## Workout Analysis
### Consistency & Frequency
### Volume Progression
### Recommendations (a numbered list of 3-5 concrete suggestions)

Base every statement on the data above. Keep it under 300 words.
""")

    @property
    def llm(self) -> Optional[Any]:
        if self._llm is None and settings.OPENAI_API_KEY:
            self._llm = ChatOpenAI(
                model=settings.AI_ANALYSIS_MODEL,
                api_key=settings.OPENAI_API_KEY,
                base_url=settings.OPENAI_BASE_URL or None,
                max_tokens=settings.AI_ANALYSIS_MAX_TOKENS,
                timeout=settings.AI_ANALYSIS_TIMEOUT,
            )
        return self._llm

    async def analyze(self, workouts: Sequence[WorkoutSummary]) -> str:
        if not workouts:
            return NO_DATA_MESSAGE

        workout_data = summarize_workouts(workouts)
        llm = self.llm
        if llm is None:
            analysis_logger.info("No model configured, using local analysis", context="ANALYZE")
            return generate_local_analysis(workout_data)

        try:
            chain = self.prompt_template | llm
            response = await chain.ainvoke({"workout_data": json.dumps(workout_data, indent=2)})
        except Exception as e:
            analysis_logger.error("Model call failed, using local analysis", context="ANALYZE", error=str(e))
            return generate_local_analysis(workout_data)

        content = response.content if hasattr(response, "content") else str(response)
        analysis = strip_reasoning(content if isinstance(content, str) else str(content))
        if not analysis:
            analysis_logger.warning("Model returned an empty analysis", context="ANALYZE")
            return generate_local_analysis(workout_data)

        analysis_logger.success("Generated workout analysis", context="ANALYZE", workouts=len(workout_data))
        return analysis


workout_analysis_service = WorkoutAnalysisService()
