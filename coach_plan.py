"""
coach_plan.py — The Plan Generator
Split templates, set/rep prescriptions, weekly plan generation, smart swap and
exercise-order analysis.
"""

import logging
import random
from dataclasses import dataclass
from datetime import date
from typing import Optional

from coach_catalog import ExerciseCatalog, JITTER
from coach_models import (
    Outcome, Plan, PlanDay, PlanItem, Profile, Progression, clamp,
)

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────
# Templates
# ─────────────────────────────────────────────


@dataclass(frozen=True)
class DayTemplate:
    name: str
    patterns: tuple[str, ...]


@dataclass(frozen=True)
class SplitTemplate:
    name: str
    days: tuple[DayTemplate, ...]


def _days(*rows) -> tuple[DayTemplate, ...]:
    return tuple(DayTemplate(name, tuple(patterns)) for name, patterns in rows)


FULL_BODY_AB = SplitTemplate("Full Body (A/B)", _days(
    ("Full Body A", ["squat", "push", "pull", "hinge", "core"]),
    ("Full Body B", ["squat", "pull", "push", "hinge", "core"]),
))
FULL_BODY_3X = SplitTemplate("Full Body (3x)", _days(
    ("Full Body 1", ["squat", "push", "pull", "hinge", "core"]),
    ("Full Body 2", ["squat", "pull", "push", "lunge", "core"]),
    ("Full Body 3", ["hinge", "push", "pull", "isolation", "core"]),
))
UPPER_LOWER = SplitTemplate("Upper/Lower", _days(
    ("Upper 1", ["push", "pull", "push", "pull", "isolation"]),
    ("Lower 1", ["squat", "hinge", "lunge", "core", "carry"]),
    ("Upper 2", ["push", "pull", "push", "pull", "isolation"]),
    ("Lower 2", ["squat", "hinge", "lunge", "core", "carry"]),
))
PPL_FULL = SplitTemplate("PPL + Full", _days(
    ("Push", ["push", "push", "isolation", "core"]),
    ("Pull", ["pull", "pull", "isolation", "core"]),
    ("Legs", ["squat", "hinge", "lunge", "core", "carry"]),
    ("Full Body", ["squat", "push", "pull", "hinge", "core"]),
    ("Pump/Prehab", ["isolation", "isolation", "prehab", "core"]),
))
HYBRID_6X = SplitTemplate("Hybrid (6x)", _days(
    ("Push", ["push", "push", "isolation", "core"]),
    ("Pull", ["pull", "pull", "isolation", "core"]),
    ("Legs", ["squat", "hinge", "lunge", "core", "carry"]),
    ("Upper", ["push", "pull", "push", "pull", "isolation"]),
    ("Lower", ["squat", "hinge", "lunge", "core", "carry"]),
    ("Prehab", ["prehab", "isolation", "core", "carry"]),
))

# Named program templates; each is trimmed to the requested number of days.
PROGRAM_TEMPLATES = {
    "fb_strength": {
        "name": "Full Body Strength (3x)",
        "note": "Great default for beginners and busy schedules. Squat/hinge/push/pull/core each day.",
        "split": SplitTemplate("Full Body Strength", FULL_BODY_3X.days),
    },
    "ul_4": {
        "name": "Upper/Lower (4x)",
        "note": "Balanced strength + muscle. Two upper and two lower days; easy progression.",
        "split": UPPER_LOWER,
    },
    "ppl_hyp": {
        "name": "PPL Hypertrophy (5-6x)",
        "note": "Higher volume. Works well when you can train most days and recover well.",
        "split": SplitTemplate("PPL / Hypertrophy", _days(
            ("Push", ["push", "push", "isolation", "core"]),
            ("Pull", ["pull", "pull", "isolation", "core"]),
            ("Legs", ["squat", "hinge", "lunge", "core", "carry"]),
            ("Upper", ["push", "pull", "push", "pull", "isolation"]),
            ("Lower", ["squat", "hinge", "lunge", "core", "carry"]),
            ("Prehab", ["prehab", "isolation", "core", "carry"]),
        )),
    },
    "min_2": {
        "name": "Minimal (2x)",
        "note": "If you can only train twice, this keeps the essentials and maintains progress.",
        "split": SplitTemplate("Minimal 2-Day", _days(
            ("Day A", ["squat", "push", "pull", "hinge", "core"]),
            ("Day B", ["squat", "pull", "push", "lunge", "core"]),
        )),
    },
}

# Muscles favoured when scoring picks for a priority focus.
PRIORITY_MUSCLES = {
    "back": ["lats", "upper_back", "mid_traps", "traps_lower", "delt_post"],
    "chest": ["pec_major_sternal", "pec_major_clav", "pec_minor"],
    "shoulders": ["delt_ant", "delt_lat", "delt_post"],
    "arms": ["biceps", "triceps", "forearms"],
    "legs": ["quads", "hamstrings", "glute_max", "gastroc", "soleus"],
    "lower": ["quads", "hamstrings", "glute_max", "gastroc", "soleus"],
    "core": ["abs", "obliques", "transverse_abdominis", "spinal_erectors"],
    "push": ["pecs", "triceps", "delt_ant", "delt_lat"],
    "pull": ["lats", "upper_back", "biceps", "delt_post"],
    "upper": ["pecs", "upper_back", "delt_lat", "arms"],
}

DOUBLE_PROGRESSION = Progression(
    rule="Double progression",
    detail=("Hit the top of the rep range at <=RPE 8 -> add 2-5% next time; if you miss the "
            "bottom of the range 2 sessions in a row -> reduce 5-10% or deload."),
)

# (goal, pattern category) -> sets, reps, rpe
PRESCRIPTIONS = {
    "strength": {
        "main": (3, "3-6", "7-9"),
        "upper": (3, "4-8", "7-9"),
        "lunge": (2, "6-10", "7-9"),
        "core": (2, "6-15", "6-8"),
        "other": (2, "8-15", "7-9"),
    },
    "hypertrophy": {
        "main": (3, "6-12", "7-9"),
        "upper": (3, "8-15", "7-9"),
        "core": (2, "10-20", "6-8"),
        "other": (3, "10-20", "7-9"),
    },
    "general": {
        "main": (2, "5-10", "6-8"),
        "upper": (2, "6-12", "6-8"),
        "core": (2, "10-20", "6-8"),
        "other": (2, "10-20", "6-8"),
    },
}


def split_template(days_per_week: int) -> SplitTemplate:
    """Split for the day count, trimmed to `days_per_week` days."""
    days = int(clamp(int(days_per_week or 1), 1, 7))
    if days <= 2:
        tpl = FULL_BODY_AB
    elif days == 3:
        tpl = FULL_BODY_3X
    elif days == 4:
        tpl = UPPER_LOWER
    elif days == 5:
        tpl = PPL_FULL
    else:
        tpl = HYBRID_6X
    return SplitTemplate(tpl.name, tpl.days[:days])


def program_template(template_id: str, days_per_week: int) -> Optional[SplitTemplate]:
    entry = PROGRAM_TEMPLATES.get(template_id)
    if entry is None:
        return None
    split = entry["split"]
    return SplitTemplate(split.name, split.days[:max(1, int(days_per_week))])


def _pattern_category(goal: str, pattern: str) -> str:
    if goal == "strength":
        if pattern in ("squat", "hinge", "power"):
            return "main"
        if pattern == "lunge":
            return "lunge"
    elif pattern in ("squat", "hinge", "lunge"):
        # hypertrophy/general group lunges with the main lifts
        return "main"
    if pattern in ("push", "pull"):
        return "upper"
    if pattern == "core":
        return "core"
    return "other"


def prescription(goal: str, pattern: str, overrides: Optional[dict] = None) -> dict:
    """Sets, rep range and RPE range for a slot; user overrides win per (goal, pattern)."""
    table = PRESCRIPTIONS.get(goal, PRESCRIPTIONS["general"])
    sets, reps, rpe = table[_pattern_category(goal, pattern)]
    out = {"sets": sets, "reps": reps, "rpe": rpe}
    custom = ((overrides or {}).get(goal) or {}).get(pattern)
    if custom:
        out.update({k: v for k, v in custom.items() if k in out and v not in (None, "")})
        out["sets"] = int(out["sets"])
    return out


def preferred_muscles(priority: str) -> list[str]:
    return list(PRIORITY_MUSCLES.get(priority, []))


# ─────────────────────────────────────────────
# Generator Engine
# ─────────────────────────────────────────────

def generate_plan(
    profile: Profile,
    catalog: ExerciseCatalog,
    template: Optional[SplitTemplate] = None,
    prescription_overrides: Optional[dict] = None,
    rng=None,
    today: Optional[date] = None,
) -> Plan:
    """
    Build a weekly plan by filling each template slot with the best pick.
    A slot whose pattern has no eligible exercise is kept with no exercise.
    """
    days_per_week = int(clamp(int(profile.days_per_week or 1), 1, 7))
    tpl = template or split_template(days_per_week)
    owned = profile.owned_equipment
    prefs = preferred_muscles(profile.priority)

    plan_days = []
    for day_tpl in tpl.days[:days_per_week]:
        used: set[str] = set()
        items = []
        for pattern in day_tpl.patterns:
            ex = (catalog.pick(pattern, owned, prefs, used, rng=rng)
                  or catalog.pick(pattern, owned, [], used, rng=rng))
            pres = prescription(profile.goal, pattern, prescription_overrides)
            if ex is None:
                logger.warning("No %s exercise available for equipment %s", pattern, sorted(owned))
                notes = "No exercise available for this pattern with your equipment."
            else:
                used.add(ex.id)
                notes = ex.notes
            items.append(PlanItem(
                pattern=pattern,
                exercise_id=ex.id if ex else None,
                sets=pres["sets"],
                reps=pres["reps"],
                rpe=pres["rpe"],
                notes=notes,
            ))
        plan_days.append(PlanDay(name=day_tpl.name, items=items))

    logger.debug("Generated %s plan with %d days", tpl.name, len(plan_days))
    return Plan(
        split_name=tpl.name,
        days=plan_days,
        progression=DOUBLE_PROGRESSION,
        created=today or date.today(),
    )


def swap_exercise(
    plan: Plan,
    day_id: str,
    item_id: str,
    profile: Profile,
    catalog: ExerciseCatalog,
    rng=None,
    jitter: float = JITTER,
) -> Outcome:
    """
    Replace one plan item with the best same-pattern alternative.
    Keeps the stimulus close by rewarding overlap with the current exercise.
    """
    rng = rng or random
    day, item = plan.find_item(day_id, item_id)
    if item is None:
        return Outcome.fail("Plan item not found.")

    current = catalog.get(item.exercise_id)
    prefs = set(preferred_muscles(profile.priority))
    options = [ex for ex in catalog.eligible(profile.owned_equipment, pattern=item.pattern)
               if ex.id != item.exercise_id]
    if not options:
        logger.info("No alternatives for %s in %s", item.exercise_id, day.name)
        return Outcome.fail("No alternatives found for your equipment.")

    current_muscles = current.muscles if current else set()

    def score(ex):
        trained = ex.muscles
        s = 2 * len(prefs & trained) + 0.6 * len(current_muscles & trained)
        return s + rng.random() * jitter

    best = max(options, key=score)
    logger.info("Swapped %s -> %s (%s)", item.exercise_id, best.id, day.name)
    item.exercise_id = best.id
    item.notes = best.notes
    return Outcome.success(best)


def find_swaps(
    current_id: str,
    profile: Profile,
    catalog: ExerciseCatalog,
    pattern: Optional[str] = None,
    include_muscle: Optional[str] = None,
    limit: int = 12,
    rng=None,
    jitter: float = JITTER,
) -> list:
    """Ranked alternatives by muscle overlap with the current exercise."""
    rng = rng or random
    current = catalog.get(current_id)
    want = pattern or (current.pattern if current else None)
    if not want:
        return []
    options = [ex for ex in catalog.eligible(profile.owned_equipment, pattern=want,
                                             include_muscle=include_muscle)
               if ex.id != current_id]
    current_muscles = current.muscles if current else set()
    ranked = sorted(
        ((len(current_muscles & ex.muscles) + rng.random() * jitter, ex) for ex in options),
        key=lambda pair: pair[0],
        reverse=True,
    )
    return [ex for _, ex in ranked[:limit]]


# ─────────────────────────────────────────────
# Exercise Order
# ─────────────────────────────────────────────

PATTERN_ORDER = ["power", "squat", "hinge", "lunge", "push", "pull", "carry", "core",
                 "isolation", "prehab"]
PATTERN_RANK = {p: i for i, p in enumerate(PATTERN_ORDER)}
COMPOUND = {"power", "squat", "hinge", "lunge", "push", "pull", "carry"}


def analyze_day_order(day: PlanDay, catalog: ExerciseCatalog) -> dict:
    """Suggested order (compounds first) and pre-fatigue warnings for one day."""
    rows = []
    for idx, item in enumerate(day.items):
        ex = catalog.get(item.exercise_id)
        rows.append({
            "idx": idx,
            "item": item,
            "name": ex.name if ex else (item.exercise_id or "(empty)"),
            "pattern": ex.pattern if ex else item.pattern,
            "primary": set(ex.primary) if ex else set(),
            "secondary": set(ex.secondary) if ex else set(),
        })

    suggested = sorted(rows, key=lambda r: (PATTERN_RANK.get(r["pattern"], 999), r["idx"]))

    warnings = []
    for i, a in enumerate(rows):
        if a["pattern"] not in ("isolation", "prehab"):
            continue
        for b in rows[i + 1:]:
            if b["pattern"] not in COMPOUND:
                continue
            overlap = len(a["primary"] & (b["primary"] | b["secondary"]))
            overlap += len(a["secondary"] & b["primary"])
            if overlap:
                warnings.append(
                    f"Possible pre-fatigue: {a['name']} before {b['name']} (shared muscles). "
                    "Consider doing the compound earlier."
                )

    return {
        "current": [r["item"] for r in rows],
        "suggested": [r["item"] for r in suggested],
        "warnings": warnings,
    }


def apply_day_order(day: PlanDay, catalog: ExerciseCatalog) -> PlanDay:
    day.items = analyze_day_order(day, catalog)["suggested"]
    return day
