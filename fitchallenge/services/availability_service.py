"""Task availability rules.

Pure functions only. The caller always supplies `now`; nothing here reads a
clock or touches the database.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Iterable
from zoneinfo import ZoneInfo

from fitchallenge.core.clock import ensure_utc
from fitchallenge.core.config import settings
from fitchallenge.models.challenge import Challenge
from fitchallenge.models.challenge_task import ChallengeTask

ONE_DAY = timedelta(days=1)


def challenge_zone(challenge: Challenge) -> ZoneInfo:
    return ZoneInfo(challenge.timezone or settings.default_timezone)


def total_days_between(start: datetime, end: datetime) -> int:
    """Whole days covered by [start, end], rounded up, never below 1."""
    span = ensure_utc(end) - ensure_utc(start)
    return max(1, math.ceil(span / ONE_DAY))


def challenge_total_days(challenge: Challenge) -> int:
    if challenge.total_days and challenge.total_days > 0:
        return challenge.total_days
    return total_days_between(challenge.start_date, challenge.end_date)


def current_day_number(challenge: Challenge, now: datetime) -> int:
    """1-based day of the challenge containing `now`, clamped to [1, total_days]."""
    elapsed = ensure_utc(now) - ensure_utc(challenge.start_date)
    day = math.floor(elapsed / ONE_DAY) + 1
    return min(max(day, 1), challenge_total_days(challenge))


def is_within_window(challenge: Challenge, now: datetime) -> bool:
    now = ensure_utc(now)
    return ensure_utc(challenge.start_date) <= now <= ensure_utc(challenge.end_date)


def unlock_instant(task: ChallengeTask, challenge: Challenge, now: datetime) -> datetime | None:
    """Instant the task's time-of-day gate opens for the day-number containing `now`.

    The gate is anchored to the start's local calendar date advanced by one
    date per elapsed day-number, so it opens at most once per day-number and
    never closes again before the day-number rolls over.
    """
    if task.unlock_time is None:
        return None
    zone = challenge_zone(challenge)
    local_start = ensure_utc(challenge.start_date).astimezone(zone)
    # same clamp as current_day_number, so the anchor is fixed per day-number
    day_index = current_day_number(challenge, now) - 1
    # wall-clock addition keeps the local date stable across DST changes
    local_date = (local_start + ONE_DAY * day_index).date()
    return datetime.combine(local_date, task.unlock_time, tzinfo=zone)


def is_task_available(task: ChallengeTask, challenge: Challenge, now: datetime) -> bool:
    if not is_within_window(challenge, now):
        return False

    unlock_days = task.unlock_days or []
    if unlock_days and current_day_number(challenge, now) not in unlock_days:
        return False

    opens_at = unlock_instant(task, challenge, now)
    if opens_at is not None and ensure_utc(now) < opens_at:
        return False
    return True


def available_tasks(
    tasks: Iterable[ChallengeTask], challenge: Challenge, now: datetime
) -> list[ChallengeTask]:
    return [task for task in tasks if is_task_available(task, challenge, now)]
