"""
coach_tools.py — Gym floor calculators
Warm-up ramps, plate loading and a PR test-day plan.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from coach_models import Outcome, ValidationError, round_to_step, to_number

WARMUP_RAMPS = {
    3: ([0.55, 0.75, 1.0], [8, 5, None]),
    4: ([0.45, 0.65, 0.82, 1.0], [8, 5, 3, None]),
    5: ([0.4, 0.6, 0.75, 0.87, 1.0], [10, 6, 4, 2, None]),
}

PR_WARMUP_LADDER = [(0.40, 5), (0.55, 3), (0.70, 2), (0.80, 1), (0.87, 1), (0.92, 1)]
PR_TAPER = [
    (-6, "3x3 @ 80% (crisp)", 0.80),
    (-4, "3x2 @ 85% (fast)", 0.85),
    (-2, "3x1 @ 90% (easy)", 0.90),
    (-1, "Rest / mobility", None),
]
PR_FINAL_ATTEMPT = {"conservative": 1.02, "standard": 1.04, "aggressive": 1.06}
PLACEHOLDER_BASELINE = 100.0


@dataclass
class WarmupSet:
    label: str
    weight: float
    reps: int
    pct: float


def warmup_sets(work_weight, work_reps, steps: int = 4, round_to: float = 2.5) -> list[WarmupSet]:
    """Ramp up to the work set; the last step is the work set itself."""
    weight = to_number(work_weight)
    reps = int(to_number(work_reps, 5) or 5)
    if weight <= 0:
        raise ValidationError("Work weight must be greater than zero.")
    pcts, ramp_reps = WARMUP_RAMPS.get(int(steps), WARMUP_RAMPS[4])
    out = []
    for i, (pct, r) in enumerate(zip(pcts, ramp_reps)):
        last = i == len(pcts) - 1
        out.append(WarmupSet(
            label="Work set" if last else f"Warm-up {i + 1}",
            weight=round_to_step(weight * pct, round_to),
            reps=reps if r is None else r,
            pct=pct,
        ))
    return out


@dataclass
class PlateLoad:
    per_side: list[tuple[float, int]] = field(default_factory=list)  # (plate, count per side)
    achieved: float = 0.0
    diff: float = 0.0


def plate_breakdown(target, bar_weight, plates: dict[float, int]) -> Outcome:
    """
    Greedy per-side plate loading for a target bar weight.
    `plates` is the inventory as {plate weight: total count}; pairs are used.
    """
    target = to_number(target)
    bar = to_number(bar_weight)
    if target <= bar:
        return Outcome.fail("Target must be heavier than the bar.")

    remaining = (target - bar) / 2
    per_side = []
    for plate in sorted((to_number(p) for p in plates), reverse=True):
        if plate <= 0:
            continue
        pairs = int(to_number(plates.get(plate, 0))) // 2
        used = 0
        while used < pairs and remaining + 1e-9 >= plate:
            remaining -= plate
            used += 1
        if used:
            per_side.append((plate, used))

    achieved = bar + 2 * sum(p * n for p, n in per_side)
    return Outcome.success(PlateLoad(per_side, achieved, target - achieved))


# ─────────────────────────────────────────────
# PR Test Planner
# ─────────────────────────────────────────────

@dataclass
class PRTestPlan:
    baseline: float
    taper: list[dict]
    warmups: list[dict]
    attempts: list[float]
    placeholder: bool = False


def pr_test_plan(
    baseline_e1rm,
    test_date: date,
    style: str = "standard",
    round_to: float = 2.5,
    bar_weight: float = 45.0,
) -> PRTestPlan:
    """Taper days, a warm-up ladder and three attempts keyed off the baseline e1RM."""
    base = to_number(baseline_e1rm)
    placeholder = base <= 0
    if placeholder:
        base = PLACEHOLDER_BASELINE

    def load(pct: float) -> float:
        return round_to_step(base * pct, round_to)

    taper = []
    for offset, text, pct in PR_TAPER:
        day = test_date + timedelta(days=offset)
        taper.append({"date": day, "session": text, "load": load(pct) if pct else None})

    warmups = [{"load": round_to_step(to_number(bar_weight), round_to), "reps": 8, "note": "bar"}]
    warmups += [{"load": load(pct), "reps": reps, "note": f"{pct:.0%}"} for pct, reps in PR_WARMUP_LADDER]

    final = PR_FINAL_ATTEMPT.get(style, PR_FINAL_ATTEMPT["standard"])
    attempts = [load(0.95), load(1.0), load(final)]
    return PRTestPlan(base, taper, warmups, attempts, placeholder)


def pr_test_baseline(prs, exercise_id: str) -> Optional[float]:
    rec = prs.by_exercise.get(exercise_id)
    return rec.best_e1rm if rec and rec.best_e1rm > 0 else None
