"""Built-in programs, workout templates and the upcoming-workout schedule."""

from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from fitsocial.utils.time import utcnow

BUILTIN_PROGRAMS: List[Dict[str, Any]] = [
    {
        "name": "12-Week Strength Builder",
        "author": "Coach Mike",
        "type": "strength",
        "description": "Complete strength program focused on compound movements to build overall strength and muscle.",
        "content": {"weeks": 12, "daysPerWeek": 4, "level": "intermediate"},
    },
    {
        "name": "Endurance Challenge",
        "author": "FitRunner",
        "type": "cardio",
        "description": "Progressive cardio program designed to improve endurance and cardiovascular health.",
        "content": {"weeks": 8, "daysPerWeek": 5, "level": "intermediate"},
    },
    {
        "name": "Full Body Transformation",
        "author": "Transform Fitness",
        "type": "mixed",
        "description": "Comprehensive program combining strength training, cardio, and nutrition for total body transformation.",
        "content": {"weeks": 16, "daysPerWeek": 5, "level": "advanced"},
    },
    {
        "name": "Beginner's Guide to Lifting",
        "author": "StartStrong",
        "type": "strength",
        "description": "Perfect for beginners looking to learn proper form and build a foundation of strength.",
        "content": {"weeks": 6, "daysPerWeek": 3, "level": "beginner"},
    },
    {
        "name": "HIIT Fat Burner",
        "author": "BurnItUp",
        "type": "cardio",
        "description": "High intensity interval training program focused on maximizing calorie burn and fat loss.",
        "content": {"weeks": 6, "daysPerWeek": 4, "level": "intermediate"},
    },
    {
        "name": "5x5 Progressive Overload",
        "author": "GainTrain",
        "type": "strength",
        "description": "Classic 5x5 workout structure with progressive overload for consistent strength gains.",
        "content": {"weeks": 12, "daysPerWeek": 3, "level": "beginner"},
    },
]

WORKOUT_TEMPLATES: List[Dict[str, Any]] = [
    {
        "id": 1,
        "name": "Push Day",
        "created_by": "You",
        "exercises": ["Bench Press", "Shoulder Press", "Tricep Extensions", "Chest Flys", "Lateral Raises"],
    },
    {
        "id": 2,
        "name": "Pull Day",
        "created_by": "You",
        "exercises": ["Pull Ups", "Barbell Rows", "Face Pulls", "Bicep Curls", "Lat Pulldowns"],
    },
    {
        "id": 3,
        "name": "Leg Day",
        "created_by": "You",
        "exercises": ["Squats", "Deadlifts", "Leg Press", "Leg Extensions", "Leg Curls", "Calf Raises"],
    },
    {
        "id": 4,
        "name": "Full Body",
        "created_by": "Community",
        "exercises": ["Squats", "Bench Press", "Deadlifts", "Pull Ups", "Shoulder Press", "Rows", "Lunges", "Planks"],
    },
    {
        "id": 5,
        "name": "30 Min HIIT",
        "created_by": "Community",
        "exercises": ["Burpees", "Mountain Climbers", "Jumping Jacks", "High Knees", "Push Ups", "Planks"],
    },
]

# (name, days from today, time, duration)
_UPCOMING_SCHEDULE = [
    ("Upper Body Strength", 0, "4:30 PM", "45-60 min"),
    ("HIIT Cardio", 1, "6:00 AM", "20-30 min"),
    ("Lower Body Focus", 2, "5:30 PM", "45-60 min"),
]


def get_workout_templates() -> List[Dict[str, Any]]:
    return [dict(template, exercise_count=len(template["exercises"])) for template in WORKOUT_TEMPLATES]


def get_upcoming_workouts(today: Optional[date] = None) -> List[Dict[str, Any]]:
    """The fixed three-day schedule, anchored at ``today``."""
    day = today if today is not None else utcnow().date()
    return [
        {
            "id": index,
            "name": name,
            "scheduled_for": day + timedelta(days=offset),
            "time": time_label,
            "duration": duration,
        }
        for index, (name, offset, time_label, duration) in enumerate(_UPCOMING_SCHEDULE, start=1)
    ]
