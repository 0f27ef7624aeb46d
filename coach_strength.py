"""
coach_strength.py — Strength & Plateau Analyzer
e1RM estimation, weekly strength trends, readiness scoring and the rule-based
plateau classifier.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, Optional

from coach_catalog import ExerciseCatalog
from coach_load import WeekLoad, latest_week
from coach_models import Checkin, CoachState, RegionTarget, Session, clamp, round_half_up, to_number
from coach_volume import aggregate_by_region, region_targets

logger = logging.getLogger(__name__)

# Trend thresholds
PLATEAU_WEEKS = 8
MIN_POINTS = 4
FLAT_PCT_PER_WEEK = 0.15
UNDER_VOLUME_RATIO = 0.85
OVER_VOLUME_RATIO = 1.15
HIGH_MONOTONY = 2.0
LOW_READINESS = 55

LOW_READINESS_ACTION = ("Your readiness is low today - apply a 10-30% volume reduction "
                        "until your score returns to yellow/green.")


def e1rm(weight, reps, method: str = "epley") -> float:
    """
    Estimated one-rep max from a weight x reps pair.
    Zero for non-positive input, and for Brzycki at 37+ reps.
    """
    w = to_number(weight)
    r = to_number(reps)
    if w <= 0 or r <= 0:
        return 0.0
    if method == "brzycki":
        return 0.0 if r >= 37 else w * 36 / (37 - r)
    if method == "lombardi":
        return w * r ** 0.10
    return w * (1 + r / 30)


@dataclass
class StrengthPoint:
    date: date
    e1rm: float


def strength_series(
    sessions: Iterable[Session],
    exercise_id: str,
    weeks: int = 12,
    method: str = "epley",
    today: Optional[date] = None,
) -> list[StrengthPoint]:
    """One point per logged entry of the lift in the trailing `weeks` up to today, oldest first."""
    today = today or date.today()
    cutoff = today - timedelta(days=weeks * 7 - 1)
    points = []
    for s in sessions:
        if not s.date or not cutoff <= s.date <= today:
            continue
        for entry in s.exercises:
            if entry.exercise_id == exercise_id:
                points.append(StrengthPoint(s.date, e1rm(entry.weight, entry.reps, method)))
    points.sort(key=lambda p: p.date)
    return points


def weekly_best(points: Iterable[StrengthPoint], today: Optional[date] = None,
                weeks: int = PLATEAU_WEEKS) -> list[float]:
    """Best e1RM per week bucket counted from `weeks` ago, in bucket order."""
    today = today or date.today()
    anchor = today - timedelta(days=weeks * 7)
    buckets: dict[int, float] = {}
    for p in points:
        idx = (p.date - anchor).days // 7
        if idx < 0:
            continue
        buckets[idx] = max(buckets.get(idx, 0.0), p.e1rm)
    return [buckets[k] for k in sorted(buckets)]


def linear_regression_slope(ys: list[float]) -> float:
    """OLS slope of ys against their index; 0 when undefined."""
    n = len(ys)
    if n < 2:
        return 0.0
    xbar = (n - 1) / 2
    ybar = sum(ys) / n
    num = sum((i - xbar) * (y - ybar) for i, y in enumerate(ys))
    den = sum((i - xbar) ** 2 for i in range(n))
    return num / den if den else 0.0


# ─────────────────────────────────────────────
# Readiness
# ─────────────────────────────────────────────

def readiness_score(checkin: Checkin) -> int:
    """0-100 blend of sleep, soreness, stress and motivation (each 1-10)."""
    sleep = clamp(to_number(checkin.sleep, 5) or 5, 1, 10)
    sore = clamp(to_number(checkin.soreness, 5) or 5, 1, 10)
    stress = clamp(to_number(checkin.stress, 5) or 5, 1, 10)
    motivation = clamp(to_number(checkin.motivation, 5) or 5, 1, 10)
    score = (
        (sleep / 10) * 0.35
        + ((11 - sore) / 10) * 0.25
        + ((11 - stress) / 10) * 0.2
        + (motivation / 10) * 0.2
    ) * 100
    return round_half_up(score)


def readiness_advice(score: int) -> dict:
    if score >= 75:
        return {"label": "Green",
                "advice": "Train as planned. Consider pushing top sets slightly if reps are moving well."}
    if score >= LOW_READINESS:
        return {"label": "Yellow",
                "advice": "Train as planned but keep effort honest. If sets feel slow, reduce volume ~10-20%."}
    return {"label": "Red",
            "advice": "Prioritize technique + easy work. Consider reducing volume 20-40% or taking an extra rest day."}


# ─────────────────────────────────────────────
# Plateau Diagnosis
# ─────────────────────────────────────────────

@dataclass
class Diagnosis:
    status: str                 # "insufficient", "progressing" or "plateau"
    title: str
    detail: str
    actions: list[str] = field(default_factory=list)
    cause: Optional[str] = None  # "low_volume", "fatigue" or "other" for plateaus
    relative_slope: Optional[float] = None


def classify_plateau(
    points: list[StrengthPoint],
    region_sets: dict[str, float],
    targets: dict[str, RegionTarget],
    latest_load: Optional[WeekLoad],
    checkin: Optional[Checkin] = None,
    today: Optional[date] = None,
) -> Diagnosis:
    """
    Classify a lift's recent trend from its strength points, this week's region
    volumes, the latest load week and today's readiness check-in.

    A rising trend of at least 0.15%/week is progress; anything else is a plateau
    attributed to low volume first, then fatigue (high monotony or region sets
    above 115% of hi), else a stimulus problem.
    """
    if len(points) < MIN_POINTS:
        return Diagnosis("insufficient", "Not enough data",
                         "Log at least 4 sessions for this lift to diagnose progress.")

    series = weekly_best(points, today)
    if len(series) < MIN_POINTS:
        return Diagnosis("insufficient", "Not enough weekly points",
                         "Log more weeks or more consistent sessions.")

    slope = linear_regression_slope(series)
    rel_slope = slope / max(1.0, series[-1]) * 100
    progressing = rel_slope >= FLAT_PCT_PER_WEEK

    if progressing:
        result = Diagnosis(
            "progressing", "Progressing",
            f"Your trend is moving up ({rel_slope:.2f}% per week approx). "
            "Keep the plan; tighten consistency.",
            [
                "Keep progression rule: top of rep range <=RPE 8 -> add 2-5%",
                "Prioritize sleep and consistent weekly frequency",
            ],
            relative_slope=rel_slope,
        )
    else:
        result = _plateau_cause(region_sets, targets, latest_load)
        result.relative_slope = rel_slope
        if rel_slope <= -FLAT_PCT_PER_WEEK:
            result.detail = f"Your e1RM is trending down ({rel_slope:.2f}% per week). " + result.detail

    if checkin is not None and readiness_score(checkin) < LOW_READINESS:
        result.actions.insert(0, LOW_READINESS_ACTION)
    return result


def _plateau_cause(region_sets, targets, latest_load) -> Diagnosis:
    under, over = [], []
    for region, sets in region_sets.items():
        target = targets.get(region)
        if target is None or sets <= 0:
            continue
        if sets < target.lo * UNDER_VOLUME_RATIO:
            under.append(region)
        elif sets > target.hi * OVER_VOLUME_RATIO:
            over.append(region)

    high_strain = bool(latest_load) and latest_load.week_load > 0 and latest_load.monotony >= HIGH_MONOTONY

    if under:
        return Diagnosis(
            "plateau", "Plateau likely from low volume / exposure",
            f"Your weekly effective sets are below target in: {', '.join(under[:3])}.",
            [
                "Add 2-4 hard sets/week to the region most tied to your goal lift.",
                "Add 1 additional heavy exposure set (3-5 reps) once per week for the goal lift.",
            ],
            cause="low_volume",
        )
    if high_strain or over:
        detail = ("Your training load is high with low variability (high monotony)."
                  if high_strain
                  else f"Your weekly sets look high in: {', '.join(over[:3])}.")
        return Diagnosis(
            "plateau", "Plateau likely from accumulated fatigue", detail,
            [
                "Deload: reduce sets by ~30-50% for 5-7 days; keep technique crisp.",
                "Next week: return to normal volume but keep intensity moderate (RPE 7-8) "
                "for the first 2 sessions.",
            ],
            cause="fatigue",
        )
    return Diagnosis(
        "plateau", "Plateau: try a targeted change",
        "Volume looks near target and training load isn't extreme. Next best move: change "
        "the stimulus slightly while keeping the plan coherent.",
        [
            "Swap one main lift to a close variation for 2-3 weeks (e.g., paused bench, tempo squat).",
            "Add a back-off set (8-10 reps) after your top set once per week.",
        ],
        cause="other",
    )


def todays_checkin(state: CoachState, today: Optional[date] = None) -> Optional[Checkin]:
    today = today or date.today()
    return next((c for c in state.checkins if c.date == today), None)


def plateau_diagnosis(
    state: CoachState,
    catalog: ExerciseCatalog,
    exercise_id: str,
    today: Optional[date] = None,
) -> Diagnosis:
    """Gather the inputs for `classify_plateau` from a state snapshot."""
    today = today or date.today()
    profile, settings = state.profile, state.settings
    points = strength_series(state.sessions, exercise_id, PLATEAU_WEEKS,
                             settings.e1rm_method, today)
    region_sets = aggregate_by_region(state.sessions, catalog, 7, today)
    targets = region_targets(profile.goal, profile.experience, profile.priority,
                             catalog.taxonomy.regions, settings.volume_mode,
                             settings.volume_custom)
    diagnosis = classify_plateau(points, region_sets, targets,
                                 latest_week(state.sessions, 4, today),
                                 todays_checkin(state, today), today)
    logger.debug("Diagnosis for %s: %s (%s)", exercise_id, diagnosis.status, diagnosis.cause)
    return diagnosis
