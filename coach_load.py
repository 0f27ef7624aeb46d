"""
coach_load.py — Training load metrics
Session load (duration x session RPE) rolled into weekly load, monotony and strain.
"""

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

from coach_models import Session, to_number

DAYS_PER_WEEK = 7


@dataclass
class WeekLoad:
    week_start: date
    week_load: float
    mean: float
    sd: float
    monotony: float
    strain: float


def session_load(session: Session) -> float:
    duration = to_number(session.duration_min)
    rpe = to_number(session.session_rpe)
    if duration <= 0 or rpe <= 0:
        return 0.0
    return duration * rpe


def week_metrics(week_start: date, loads: list[float]) -> WeekLoad:
    """Monotony is mean/sd; a non-zero week with no spread counts as 7."""
    week_load = sum(loads)
    mean = week_load / DAYS_PER_WEEK
    sd = math.sqrt(sum((x - mean) ** 2 for x in loads) / DAYS_PER_WEEK)
    if sd > 0:
        monotony = mean / sd
    else:
        monotony = 7.0 if week_load > 0 else 0.0
    return WeekLoad(week_start, week_load, mean, sd, monotony, week_load * monotony)


def weekly_load_metrics(
    sessions: Iterable[Session],
    weeks: int = 8,
    today: Optional[date] = None,
) -> list[WeekLoad]:
    """Trailing `weeks` seven-day chunks ending today, oldest first; missing days load 0."""
    today = today or date.today()
    weeks = max(1, int(weeks))
    by_day: dict[date, float] = {}
    for s in sessions:
        load = session_load(s)
        if load <= 0 or not s.date:
            continue
        by_day[s.date] = by_day.get(s.date, 0.0) + load

    start = today - timedelta(days=weeks * DAYS_PER_WEEK - 1)
    out = []
    for w in range(weeks):
        week_start = start + timedelta(days=w * DAYS_PER_WEEK)
        loads = [by_day.get(week_start + timedelta(days=i), 0.0) for i in range(DAYS_PER_WEEK)]
        out.append(week_metrics(week_start, loads))
    return out


def latest_week(sessions: Iterable[Session], weeks: int = 4,
                today: Optional[date] = None) -> WeekLoad:
    return weekly_load_metrics(sessions, weeks, today)[-1]
