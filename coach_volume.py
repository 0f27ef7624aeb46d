"""
coach_volume.py — The Volume Accountant
Effective-set accounting per muscle and region, weekly set targets and
volume status bands.
"""

from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, Optional

from coach_catalog import ExerciseCatalog
from coach_models import RegionTarget, Session, clamp, round_half_up, to_number

PRIMARY_CREDIT = 1.0
SECONDARY_CREDIT = 0.5

# Region multipliers for the active priority focus.
PRIORITY_REGION_BOOSTS = {
    "upper": (["Chest", "Back", "Shoulders", "Arms", "Forearms/Grip", "Shoulders/Back"], 1.25),
    "lower": (["Thighs", "Hips/Glutes", "Lower Leg", "Back/Hips", "Hips/Glutes/Thigh"], 1.25),
    "push": (["Chest", "Chest/Core", "Shoulders", "Arms"], 1.25),
    "pull": (["Back", "Back/Core", "Shoulders/Back", "Arms", "Forearms/Grip", "Back/Neck"], 1.25),
    "legs": (["Thighs", "Hips/Glutes", "Lower Leg", "Hips/Glutes/Thigh"], 1.3),
    "arms": (["Arms", "Forearms/Grip"], 1.35),
    "back": (["Back", "Back/Core", "Back/Hips", "Shoulders/Back", "Back/Neck"], 1.35),
    "chest": (["Chest", "Chest/Core"], 1.35),
    "shoulders": (["Shoulders", "Shoulders/Back"], 1.35),
    "core": (["Core", "Back/Core", "Chest/Core"], 1.35),
}


def effective_sets(catalog: ExerciseCatalog, exercise_id: str, set_count: float) -> dict[str, float]:
    """
    Sets credited to each muscle listed on the exercise: 1.0 per set for primary
    movers, 0.5 for secondary. A muscle listed in both lists gets both credits.
    """
    ex = catalog.get(exercise_id)
    if ex is None:
        return {}
    n = to_number(set_count)
    out: dict[str, float] = defaultdict(float)
    for m in ex.primary:
        out[m] += n * PRIMARY_CREDIT
    for m in ex.secondary:
        out[m] += n * SECONDARY_CREDIT
    return dict(out)


def sessions_in_window(sessions: Iterable[Session], window_days: int,
                       today: Optional[date] = None) -> list[Session]:
    """Sessions dated within the trailing `window_days`, today included."""
    today = today or date.today()
    cutoff = today - timedelta(days=max(1, int(window_days)) - 1)
    return [s for s in sessions if s.date and cutoff <= s.date <= today]


def aggregate_by_muscle(
    sessions: Iterable[Session],
    catalog: ExerciseCatalog,
    window_days: int = 7,
    today: Optional[date] = None,
) -> dict[str, float]:
    """Leaf muscle id -> effective sets over the window; overlapping leaves add up."""
    taxonomy = catalog.taxonomy
    out: dict[str, float] = defaultdict(float)
    for s in sessions_in_window(sessions, window_days, today):
        for entry in s.exercises:
            for muscle_id, value in effective_sets(catalog, entry.exercise_id, entry.set_count).items():
                for leaf in taxonomy.expand_to_leaves(muscle_id):
                    out[leaf] += value
    return dict(out)


def aggregate_by_region(
    sessions: Iterable[Session],
    catalog: ExerciseCatalog,
    window_days: int = 7,
    today: Optional[date] = None,
) -> dict[str, float]:
    taxonomy = catalog.taxonomy
    out = {r: 0.0 for r in taxonomy.regions}
    for leaf, value in aggregate_by_muscle(sessions, catalog, window_days, today).items():
        region = taxonomy.region_of(leaf)
        if region:
            out[region] = out.get(region, 0.0) + value
    return out


# ─────────────────────────────────────────────
# Targets
# ─────────────────────────────────────────────

def weekly_set_targets(goal: str, experience: str) -> tuple[int, int]:
    """Baseline (lo, hi) weekly effective sets per region."""
    lo, hi = 8, 14
    if goal == "strength":
        lo, hi = 6, 12
    elif goal == "general":
        lo, hi = 6, 10
    if experience == "intermediate":
        lo, hi = lo + 2, hi + 4
    elif experience == "advanced":
        lo, hi = lo + 4, hi + 6
    return lo, hi


def priority_region_weights(priority: str, regions: Iterable[str]) -> dict[str, float]:
    weights = {r: 1.0 for r in regions}
    boosted, factor = PRIORITY_REGION_BOOSTS.get(priority, ((), 1.0))
    for r in boosted:
        if r in weights:
            weights[r] *= factor
    return weights


def mrv_for(lo: float, hi: float) -> float:
    """Soft ceiling on weekly sets: hi plus max(2, 0.75 * (hi - lo))."""
    return hi + max(2.0, 0.75 * (hi - lo))


def region_targets(
    goal: str,
    experience: str,
    priority: str,
    regions: Iterable[str],
    mode: str = "auto",
    custom: Optional[dict] = None,
) -> dict[str, RegionTarget]:
    """Per-region lo/hi/mrv; in custom mode overrides are clamped so lo <= hi <= mrv."""
    base_lo, base_hi = weekly_set_targets(goal, experience)
    regions = list(regions)
    weights = priority_region_weights(priority, regions)
    custom = custom or {}
    out = {}
    for r in regions:
        lo = round_half_up(base_lo * weights[r])
        hi = round_half_up(base_hi * weights[r])
        mrv = round_half_up(mrv_for(lo, hi))
        override = custom.get(r) if mode == "custom" else None
        if override:
            if isinstance(override, RegionTarget):
                override = {"lo": override.lo, "hi": override.hi, "mrv": override.mrv}
            lo = clamp(to_number(override.get("lo")) or lo, 0, 100)
            hi = clamp(to_number(override.get("hi")) or hi, lo, 120)
            mrv = clamp(to_number(override.get("mrv")) or mrv, hi, 140)
        out[r] = RegionTarget(lo, hi, mrv)
    return out


def volume_status(sets: float, target: RegionTarget) -> dict:
    if sets < target.lo:
        return {"status": "Low", "action": "Add 2-6 sets next week."}
    if sets <= target.hi:
        return {"status": "In range", "action": "Keep steady."}
    if sets <= target.mrv:
        return {"status": "High",
                "action": "Watch recovery; consider a small deload if soreness accumulates."}
    return {"status": "Over", "action": "Reduce volume 20-40% and prioritize sleep/recovery."}


def volume_table(
    sessions: list[Session],
    catalog: ExerciseCatalog,
    targets: dict[str, RegionTarget],
    today: Optional[date] = None,
) -> list[dict]:
    """One row per region with 7-day and 14-day sets against its target band."""
    s7 = aggregate_by_region(sessions, catalog, 7, today)
    s14 = aggregate_by_region(sessions, catalog, 14, today)
    rows = []
    for region, target in targets.items():
        v7 = s7.get(region, 0.0)
        rows.append({
            "region": region,
            "sets_7d": v7,
            "sets_14d": s14.get(region, 0.0),
            "lo": target.lo,
            "hi": target.hi,
            "mrv": target.mrv,
            **volume_status(v7, target),
        })
    return rows
