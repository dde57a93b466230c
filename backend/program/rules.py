"""
Pure program rules: dates, body metrics and gamification thresholds.
"""
import math
from datetime import date, datetime, timezone
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

from config.settings import BONUS_UNLOCK_THRESHOLD, PROGRAM_LENGTH_DAYS


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def subscription_end_date(plan: str, start: datetime) -> datetime:
    """
    Subscription end for a plan bought at `start`.

    Calendar arithmetic: Jan 31 + 1 month is Feb 28/29, Feb 29 + 1 year is Feb 28.
    """
    if plan == "annual":
        return start + relativedelta(years=1)
    return start + relativedelta(months=1)


def calculate_bmi(weight_kg: float, height_cm: float) -> float:
    height_m = height_cm / 100
    return round(weight_kg / (height_m * height_m), 2)


def calculate_water_intake(weight_kg: float) -> float:
    """Daily water target in liters (35 ml per kg), one decimal."""
    return math.floor(weight_kg * 0.035 * 10 + 0.5) / 10


def calculate_current_day(
    completed_at: Optional[Union[datetime, date]],
    today: Optional[date] = None,
) -> int:
    """
    Program day for a user who finished onboarding at `completed_at`.

    Day 1 is the completion day itself; the result is clamped to 1..30.
    """
    if not completed_at:
        return 1
    start = completed_at.date() if isinstance(completed_at, datetime) else completed_at
    today = today or utcnow().date()
    current_day = (today - start).days + 1
    return min(max(current_day, 1), PROGRAM_LENGTH_DAYS)


def completion_percentage(completed: int, total: int) -> int:
    if total <= 0:
        return 0
    return math.floor(completed * 100 / total + 0.5)


def points_until_bonus(points: int) -> int:
    return max(BONUS_UNLOCK_THRESHOLD - points, 0)
