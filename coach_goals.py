"""
coach_goals.py — Goal pacing & personal records
Weekly pacing toward an e1RM target and the PR store kept in step with the log.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from coach_models import (
    PR_EVENT_LIMIT, ExerciseEntry, Goal, PREvent, PRRecord, PRStore, Session,
    ValidationError, clamp, format_load, to_number,
)
from coach_strength import e1rm, strength_series

logger = logging.getLogger(__name__)

# Realistic e1RM gain, percent per week, by experience tier.
PACE_BANDS = {
    "novice": (0.5, 2.0),
    "intermediate": (0.2, 0.8),
    "advanced": (0.1, 0.4),
}
MILESTONE_WEEKS = (4, 8, 12)
PR_EPSILON = 1e-6


@dataclass
class GoalPacing:
    delta: float
    per_week: float
    required_pct_per_week: float
    classification: str  # "conservative", "reasonable" or "aggressive"
    milestones: dict[int, float] = field(default_factory=dict)


def goal_pacing(baseline: float, target: float, weeks: float, experience: str) -> GoalPacing:
    baseline = to_number(baseline)
    target = to_number(target)
    weeks = to_number(weeks)
    if baseline <= 0:
        raise ValidationError("Baseline e1RM must be greater than zero.")
    if target <= baseline:
        raise ValidationError("Target e1RM must be higher than the baseline.")
    if weeks <= 0:
        raise ValidationError("Timeframe must be at least one week.")

    delta = target - baseline
    per_week = delta / weeks
    required = (delta / baseline * 100) / weeks
    lo, hi = PACE_BANDS.get(experience, PACE_BANDS["advanced"])
    if required < lo:
        classification = "conservative"
    elif required > hi:
        classification = "aggressive"
    else:
        classification = "reasonable"
    milestones = {n: baseline + per_week * n for n in MILESTONE_WEEKS}
    return GoalPacing(delta, per_week, required, classification, milestones)


def infer_baseline_e1rm(sessions: Iterable[Session], exercise_id: str, method: str = "epley",
                        today: Optional[date] = None) -> float:
    points = strength_series(sessions, exercise_id, 12, method, today)
    return max((p.e1rm for p in points), default=0.0)


def goal_progress(goal: Goal, sessions: Iterable[Session], method: str = "epley",
                  today: Optional[date] = None) -> dict:
    today = today or date.today()
    points = strength_series(sessions, goal.exercise_id, 26, method, today)
    best = max((p.e1rm for p in points), default=0.0)
    pct = best / goal.target_e1rm * 100 if goal.target_e1rm > 0 else 0.0
    return {
        "best": best,
        "pct": clamp(pct, 0, 200),
        "days_left": max(0, (goal.target_date - today).days),
    }


# ─────────────────────────────────────────────
# Personal Records
# ─────────────────────────────────────────────

def best_e1rm_from_entry(entry: ExerciseEntry, method: str = "epley") -> float:
    return max((e1rm(s.weight, s.reps, method) for s in entry.sets), default=0.0)


def best_weight_from_entry(entry: ExerciseEntry) -> float:
    return max((to_number(s.weight) for s in entry.sets), default=0.0)


def _apply_session(prs: PRStore, session: Session, method: str, units: str,
                   round_to: float) -> list[PREvent]:
    new_events = []
    for entry in session.exercises:
        rec = prs.by_exercise.setdefault(entry.exercise_id, PRRecord())
        best_e = best_e1rm_from_entry(entry, method)
        best_w = best_weight_from_entry(entry)
        if best_e > rec.best_e1rm + PR_EPSILON:
            rec.best_e1rm = best_e
            rec.best_e1rm_date = session.date
            new_events.append(PREvent(session.date, entry.exercise_id, "e1rm", best_e,
                                      f"New best e1RM: {format_load(best_e, round_to)} {units}"))
        if best_w > rec.best_weight + PR_EPSILON:
            rec.best_weight = best_w
            rec.best_weight_date = session.date
            new_events.append(PREvent(session.date, entry.exercise_id, "weight", best_w,
                                      f"Heaviest set: {format_load(best_w, round_to)} {units}"))
    prs.events.extend(new_events)
    if len(prs.events) > PR_EVENT_LIMIT:
        del prs.events[:-PR_EVENT_LIMIT]
    return new_events


def update_prs_with_session(prs: PRStore, session: Session, method: str = "epley",
                            units: str = "lb", round_to: float = 2.5) -> list[PREvent]:
    """Fold one new session into the PR store; returns the PR events it produced."""
    events = _apply_session(prs, session, method, units, round_to)
    for ev in events:
        logger.info("PR %s on %s: %s", ev.kind, ev.exercise_id, ev.description)
    return events


def recompute_prs(sessions: Iterable[Session], method: str = "epley", units: str = "lb",
                  round_to: float = 2.5) -> PRStore:
    """Rebuild the PR store from the whole log in date order."""
    prs = PRStore()
    for s in sorted((s for s in sessions if s.date), key=lambda s: s.date):
        _apply_session(prs, s, method, units, round_to)
    logger.debug("Recomputed PRs for %d exercises", len(prs.by_exercise))
    return prs
