"""
Workout statistics shared by both storage backends.

Every function here is pure: it takes already-loaded workout records and the
reference day, so the in-memory and database storages compute identical
numbers and the tests can pin ``today``.
"""

from collections import OrderedDict, defaultdict
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from fitsocial.utils.time import shift_months, utcnow

WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

MONTHLY_AVERAGE_MONTHS = 3
CHART_MONTHS = 6
EXERCISE_PROGRESS_MONTHS = 3


@dataclass(frozen=True)
class SetRecord:
    """One weighted set, flattened with the name of its exercise and the workout time."""
    exercise_name: str
    weight: float
    performed_at: datetime


def _today(today: Optional[date]) -> date:
    return today if today is not None else utcnow().date()


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min)


def calculate_volume(sets) -> int:
    """Sum of weight x reps over sets where both are set, rounded half up."""
    total = 0.0
    for workout_set in sets:
        if workout_set.weight and workout_set.reps:
            total += workout_set.weight * workout_set.reps
    return int(total + 0.5)


def format_duration(start_time: datetime, end_time: Optional[datetime]) -> str:
    if end_time is None:
        return "In progress"

    minutes = max(int((end_time - start_time).total_seconds() // 60), 0)
    if minutes < 60:
        return f"{minutes}m"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m"


def week_start(today: Optional[date] = None) -> datetime:
    """Monday 00:00 of the week containing ``today``."""
    day = _today(today)
    return _day_start(day - timedelta(days=day.weekday()))


def months_window_start(months: int, today: Optional[date] = None) -> datetime:
    return _day_start(shift_months(_today(today), -months))


def count_weekly_workouts(times: Iterable[datetime], today: Optional[date] = None) -> int:
    start = week_start(today)
    return sum(1 for created_at in times if created_at >= start)


def monthly_workout_average(times: Iterable[datetime], today: Optional[date] = None) -> float:
    """Average workouts per month over the current month and the three before it."""
    day = _today(today)
    start = months_window_start(MONTHLY_AVERAGE_MONTHS, day)
    workout_count = sum(1 for created_at in times if created_at >= start)

    bucket_count = MONTHLY_AVERAGE_MONTHS + 1
    return round(workout_count / bucket_count, 2)


def calculate_streak(times: Iterable[datetime], today: Optional[date] = None) -> int:
    """
    Length of the run of consecutive workout days ending at the latest workout.

    The streak is 0 when the latest workout is older than yesterday.
    """
    day = _today(today)
    workout_days = sorted({created_at.date() for created_at in times}, reverse=True)
    if not workout_days:
        return 0

    latest = workout_days[0]
    if latest not in (day, day - timedelta(days=1)):
        return 0

    streak = 1
    for previous, current in zip(workout_days, workout_days[1:]):
        if previous - current != timedelta(days=1):
            break
        streak += 1
    return streak


def workout_frequency(times: Iterable[datetime], today: Optional[date] = None) -> List[Dict[str, object]]:
    """Workouts per weekday over the last six months, Sunday first."""
    start = months_window_start(CHART_MONTHS, today)
    counts = [0] * 7
    for created_at in times:
        if created_at >= start:
            # date.weekday() is Monday=0; shift so Sunday lands at index 0
            counts[(created_at.weekday() + 1) % 7] += 1
    return [{"name": name, "count": count} for name, count in zip(WEEKDAY_NAMES, counts)]


def _month_buckets(months: int, fmt: str, today: Optional[date]) -> "OrderedDict[str, int]":
    day = _today(today)
    buckets: "OrderedDict[str, int]" = OrderedDict()
    for offset in range(months, -1, -1):
        buckets[shift_months(day, -offset).strftime(fmt)] = 0
    return buckets


def volume_by_month(records: Iterable[Tuple[datetime, float]], today: Optional[date] = None) -> List[Dict[str, object]]:
    """Total lifted volume per month, seven buckets ending at the current month."""
    start = months_window_start(CHART_MONTHS, today)
    buckets = _month_buckets(CHART_MONTHS, "%b", today)
    for created_at, volume in records:
        if created_at < start:
            continue
        key = created_at.strftime("%b")
        if key in buckets:
            buckets[key] += volume
    return [{"month": month, "volume": int(volume + 0.5)} for month, volume in buckets.items()]


def activity_by_month(times: Iterable[datetime], today: Optional[date] = None) -> List[Dict[str, object]]:
    """Workout counts per month keyed ``"Mon YYYY"``, seven buckets ending at the current month."""
    start = months_window_start(CHART_MONTHS, today)
    buckets = _month_buckets(CHART_MONTHS, "%b %Y", today)
    for created_at in times:
        if created_at < start:
            continue
        key = created_at.strftime("%b %Y")
        if key in buckets:
            buckets[key] += 1
    return [{"date": label, "count": count} for label, count in buckets.items()]


def exercise_progress(records: Iterable[SetRecord], use_metric: bool = True,
                      today: Optional[date] = None) -> List[Dict[str, object]]:
    """
    Monthly max weight per exercise over the current month and the three before it.

    Only months with a logged weight appear in ``progress``. ``currentMax`` is the
    latest month's max and ``change`` is its difference from the first month.
    """
    start = months_window_start(EXERCISE_PROGRESS_MONTHS, today)
    month_keys = list(_month_buckets(EXERCISE_PROGRESS_MONTHS, "%Y-%m", today))

    maxima: Dict[str, Dict[str, float]] = defaultdict(dict)
    for record in records:
        if record.performed_at < start or not record.weight:
            continue
        name = record.exercise_name.strip()
        month_key = record.performed_at.strftime("%Y-%m")
        best = maxima[name].get(month_key)
        if best is None or record.weight > best:
            maxima[name][month_key] = record.weight

    unit = "kg" if use_metric else "lb"
    results = []
    for index, name in enumerate(sorted(maxima, key=str.lower), start=1):
        monthly = maxima[name]
        progress = [
            {"date": datetime.strptime(key, "%Y-%m").strftime("%b"), "weight": monthly[key]}
            for key in month_keys
            if key in monthly
        ]
        current_max = progress[-1]["weight"]
        results.append({
            "id": index,
            "name": name,
            "progress": progress,
            "current_max": current_max,
            "change": round(current_max - progress[0]["weight"], 2),
            "unit": unit,
        })
    return results
