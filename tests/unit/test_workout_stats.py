"""
Unit tests for the pure workout statistics functions.

All tests pin ``today`` to Wednesday 12 March 2025.
"""

from datetime import date, datetime

from fitsocial.models import WorkoutSet
from fitsocial.services import workout_stats
from fitsocial.services.workout_stats import SetRecord

TODAY = date(2025, 3, 12)


class TestVolumeAndDuration:
    """Volume totals and duration labels."""

    def test_volume_counts_only_sets_with_weight_and_reps(self):
        sets = [
            WorkoutSet(weight=80, reps=10),
            WorkoutSet(weight=85, reps=8),
            WorkoutSet(weight=None, reps=8),
            WorkoutSet(weight=20, reps=None),
        ]
        assert workout_stats.calculate_volume(sets) == 1480

    def test_volume_rounds_half_up(self):
        assert workout_stats.calculate_volume([WorkoutSet(weight=12.5, reps=1)]) == 13

    def test_volume_of_no_sets_is_zero(self):
        assert workout_stats.calculate_volume([]) == 0

    def test_duration_in_progress_without_end_time(self):
        assert workout_stats.format_duration(datetime(2025, 3, 12, 10, 0), None) == "In progress"

    def test_duration_under_an_hour(self):
        start = datetime(2025, 3, 12, 10, 0)
        assert workout_stats.format_duration(start, datetime(2025, 3, 12, 10, 45, 59)) == "45m"

    def test_duration_with_hours(self):
        start = datetime(2025, 3, 12, 10, 0)
        assert workout_stats.format_duration(start, datetime(2025, 3, 12, 11, 30)) == "1h 30m"
        assert workout_stats.format_duration(start, datetime(2025, 3, 12, 11, 0)) == "1h 0m"


class TestCounts:
    """Weekly count and monthly average."""

    def test_week_starts_on_monday_midnight(self):
        assert workout_stats.week_start(TODAY) == datetime(2025, 3, 10, 0, 0)

    def test_weekly_count(self):
        times = [
            datetime(2025, 3, 10, 8, 0),
            datetime(2025, 3, 12, 7, 0),
            datetime(2025, 3, 9, 23, 59),
        ]
        assert workout_stats.count_weekly_workouts(times, TODAY) == 2

    def test_monthly_average_over_four_month_buckets(self):
        times = [
            datetime(2024, 12, 11, 23, 0),  # before the window
            datetime(2024, 12, 12, 9, 0),
            datetime(2025, 1, 5),
            datetime(2025, 2, 10),
            datetime(2025, 3, 1),
            datetime(2025, 3, 11),
        ]
        assert workout_stats.monthly_workout_average(times, TODAY) == 1.25

    def test_monthly_average_without_workouts(self):
        assert workout_stats.monthly_workout_average([], TODAY) == 0


class TestStreak:
    """Consecutive-day streaks."""

    def test_streak_ending_today(self):
        times = [datetime(2025, 3, 12), datetime(2025, 3, 11), datetime(2025, 3, 10), datetime(2025, 3, 8)]
        assert workout_stats.calculate_streak(times, TODAY) == 3

    def test_streak_ending_yesterday_still_counts(self):
        times = [datetime(2025, 3, 11), datetime(2025, 3, 10)]
        assert workout_stats.calculate_streak(times, TODAY) == 2

    def test_streak_is_zero_when_latest_workout_is_older(self):
        assert workout_stats.calculate_streak([datetime(2025, 3, 10)], TODAY) == 0

    def test_gap_ends_the_streak(self):
        times = [datetime(2025, 3, 12), datetime(2025, 3, 10), datetime(2025, 3, 9)]
        assert workout_stats.calculate_streak(times, TODAY) == 1

    def test_multiple_workouts_on_one_day_count_once(self):
        times = [datetime(2025, 3, 12, 8), datetime(2025, 3, 12, 18), datetime(2025, 3, 11, 7)]
        assert workout_stats.calculate_streak(times, TODAY) == 2

    def test_no_workouts(self):
        assert workout_stats.calculate_streak([], TODAY) == 0


class TestCharts:
    """Frequency, volume and activity chart series."""

    def test_frequency_is_ordered_sunday_first(self):
        times = [
            datetime(2025, 3, 9, 10),   # Sunday
            datetime(2025, 3, 10, 10),  # Monday
            datetime(2025, 3, 10, 18),
            datetime(2024, 9, 1, 10),   # outside six months
        ]
        frequency = workout_stats.workout_frequency(times, TODAY)

        assert [point["name"] for point in frequency] == ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
        assert [point["count"] for point in frequency] == [1, 2, 0, 0, 0, 0, 0]

    def test_volume_by_month_has_seven_buckets(self):
        records = [
            (datetime(2024, 9, 20), 100),
            (datetime(2025, 3, 1), 250.4),
            (datetime(2025, 3, 5), 100),
            (datetime(2024, 9, 11), 999),  # outside six months
        ]
        volume = workout_stats.volume_by_month(records, TODAY)

        assert [point["month"] for point in volume] == ["Sep", "Oct", "Nov", "Dec", "Jan", "Feb", "Mar"]
        assert volume[0]["volume"] == 100
        assert volume[-1]["volume"] == 350
        assert sum(point["volume"] for point in volume[1:-1]) == 0

    def test_activity_keys_include_the_year(self):
        activity = workout_stats.activity_by_month([datetime(2025, 1, 2), datetime(2025, 1, 9)], TODAY)

        assert activity[0]["date"] == "Sep 2024"
        assert activity[-1]["date"] == "Mar 2025"
        assert {"date": "Jan 2025", "count": 2} in activity

    def test_empty_series_are_zero_filled(self):
        assert all(point["count"] == 0 for point in workout_stats.workout_frequency([], TODAY))
        assert len(workout_stats.activity_by_month([], TODAY)) == 7


class TestExerciseProgress:
    """Monthly max weight per exercise."""

    def test_progress_per_exercise(self):
        records = [
            SetRecord("Bench Press", 80, datetime(2025, 1, 10)),
            SetRecord("Bench Press", 85, datetime(2025, 1, 20)),
            SetRecord("Bench Press", 90, datetime(2025, 3, 1)),
            SetRecord("Bench Press", 70, datetime(2024, 11, 1)),  # outside the window
            SetRecord("Squat", 100, datetime(2025, 2, 2)),
        ]
        progress = workout_stats.exercise_progress(records, use_metric=False, today=TODAY)

        bench, squat = progress
        assert bench["id"] == 1
        assert bench["name"] == "Bench Press"
        assert bench["progress"] == [{"date": "Jan", "weight": 85}, {"date": "Mar", "weight": 90}]
        assert bench["current_max"] == 90
        assert bench["change"] == 5
        assert bench["unit"] == "lb"

        assert squat["progress"] == [{"date": "Feb", "weight": 100}]
        assert squat["change"] == 0

    def test_no_sets_means_no_exercises(self):
        assert workout_stats.exercise_progress([], today=TODAY) == []
