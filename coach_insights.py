"""
coach_insights.py — Direction engine
Bottlenecks, weekly summary/report and concurrent-training interference.
"""

from datetime import date
from typing import Optional

from coach_catalog import ExerciseCatalog
from coach_load import latest_week
from coach_models import CoachState, Plan, Profile, format_load
from coach_strength import readiness_score, strength_series, todays_checkin, LOW_READINESS
from coach_volume import aggregate_by_region, region_targets, sessions_in_window

COMMON_LIFTS = ["back_squat", "bench_press", "deadlift", "overhead_press"]


def recommended_frequency(experience: str) -> tuple[int, int]:
    if experience == "novice":
        return 2, 3
    if experience == "intermediate":
        return 3, 4
    return 4, 5


def rep_intensity_defaults(goal: str) -> dict:
    if goal == "strength":
        return {"reps": "3-6", "rpe": "7-9", "rest": "2-4 min"}
    if goal == "hypertrophy":
        return {"reps": "6-12", "rpe": "7-9", "rest": "1-3 min"}
    return {"reps": "5-10", "rpe": "6-8", "rest": "1-3 min"}


def _targets_for(state: CoachState, catalog: ExerciseCatalog):
    p, s = state.profile, state.settings
    return region_targets(p.goal, p.experience, p.priority, catalog.taxonomy.regions,
                          s.volume_mode, s.volume_custom)


def bottleneck_summary(state: CoachState, catalog: ExerciseCatalog,
                       today: Optional[date] = None) -> list[dict]:
    """Up to three limiters: consistency, frequency, volume, recovery."""
    today = today or date.today()
    profile = state.profile
    rec_min, rec_max = recommended_frequency(profile.experience)
    sessions_7 = len(sessions_in_window(state.sessions, 7, today))
    volume = aggregate_by_region(state.sessions, catalog, 7, today)
    targets = _targets_for(state, catalog)

    gaps = sorted(
        ((targets[r].lo - v, r) for r, v in volume.items() if r in targets and targets[r].lo - v > 2),
        reverse=True,
    )
    checkin = todays_checkin(state, today)
    readiness = readiness_score(checkin) if checkin else None

    out = []
    if sessions_7 == 0:
        out.append({"key": "Consistency",
                    "detail": "No sessions logged in the last 7 days. Start with the smallest plan you can complete."})
    elif sessions_7 < min(profile.days_per_week, rec_min):
        out.append({"key": "Frequency",
                    "detail": f"You logged {sessions_7} sessions in 7 days. For your level, aim for {rec_min}-{rec_max}."})
    if gaps:
        out.append({"key": "Volume",
                    "detail": f"Biggest under-trained region: {gaps[0][1]}. Add ~2-4 sets/week."})
    if readiness is not None and readiness < LOW_READINESS:
        out.append({"key": "Recovery",
                    "detail": "Readiness is low today. Reduce volume and focus on easy technique work."})
    if not out:
        out.append({"key": "Focus",
                    "detail": "You're on track. Keep progressing and tighten one specific goal lift."})
    return out[:3]


def best_lift_for_trend(state: CoachState, catalog: ExerciseCatalog,
                        today: Optional[date] = None) -> Optional[str]:
    """First goal's lift, else the first common compound with data, else the first exercise."""
    if state.goals:
        return state.goals[0].exercise_id
    for lift in COMMON_LIFTS:
        if strength_series(state.sessions, lift, 12, state.settings.e1rm_method, today):
            return lift
    return catalog.exercises[0].id if catalog.exercises else None


def week_summary(state: CoachState, catalog: ExerciseCatalog,
                 today: Optional[date] = None) -> dict:
    today = today or date.today()
    by_region = aggregate_by_region(state.sessions, catalog, 7, today)
    targets = _targets_for(state, catalog)
    scored = []
    for region, sets in by_region.items():
        t = targets.get(region)
        if t is None:
            continue
        scored.append({"region": region, "sets": sets, "lo": t.lo, "hi": t.hi,
                       "pct": sets / t.hi * 100 if t.hi > 0 else 0.0})
    scored.sort(key=lambda row: row["pct"])

    lift = best_lift_for_trend(state, catalog, today)
    points = strength_series(state.sessions, lift, 12, state.settings.e1rm_method, today) if lift else []
    return {
        "total_sessions": len(sessions_in_window(state.sessions, 7, today)),
        "latest_load": latest_week(state.sessions, 2, today),
        "lowest": scored[:3],
        "highest": list(reversed(scored[-3:])),
        "lift_id": lift,
        "last_e1rm": points[-1].e1rm if points else 0.0,
    }


def weekly_report_text(state: CoachState, catalog: ExerciseCatalog,
                       today: Optional[date] = None) -> str:
    today = today or date.today()
    summary = week_summary(state, catalog, today)
    settings = state.settings
    ex = catalog.get(summary["lift_id"])
    name = ex.name if ex else "Main Lift"
    load = summary["latest_load"]

    lines = [
        f"Weekly Report ({today.isoformat()})",
        f"Sessions logged (last 7d): {summary['total_sessions']}",
    ]
    if load.week_load > 0:
        lines.append(f"Training load: {round(load.week_load)} (sRPE x min) | "
                     f"Monotony: {load.monotony:.2f} | Strain: {round(load.strain)}")
    else:
        lines.append("Training load: (not enough data - log duration + session RPE to enable)")
    if summary["last_e1rm"] > 0:
        lines.append(f"{name} e1RM (latest): "
                     f"{format_load(summary['last_e1rm'], settings.round_to)} {settings.units}")
    lines.append("Lowest regions vs target: " + " | ".join(
        f"{r['region']} {r['sets']:.1f}/{r['lo']:.0f}-{r['hi']:.0f}" for r in summary["lowest"]))
    lines.append("Highest regions vs target: " + " | ".join(
        f"{r['region']} {r['sets']:.1f}" for r in summary["highest"]))
    lines.append("")
    lines.append("Bottlenecks:")
    for b in bottleneck_summary(state, catalog, today):
        lines.append(f"- {b['key']}: {b['detail']}")
    return "\n".join(lines)


# ─────────────────────────────────────────────
# Concurrent Training
# ─────────────────────────────────────────────

LOWER_PATTERNS = {"squat", "hinge", "lunge"}


def cardio_interference(profile: Profile, plan: Optional[Plan] = None,
                        catalog: Optional[ExerciseCatalog] = None) -> dict:
    """Interference risk of the cardio setup and which plan days are lower-body days."""
    c = profile.cardio
    score = 0
    if c.modality == "run":
        score += 2
    if c.modality == "hiit":
        score += 3
    if (c.days_per_week or 0) >= 4:
        score += 2
    if (c.minutes_per_session or 0) >= 30:
        score += 1
    if c.intensity == "hard":
        score += 2
    if profile.goal == "strength":
        score += 1
    risk = "Higher" if score >= 6 else "Moderate" if score >= 3 else "Low"

    days = []
    if plan is not None and catalog is not None:
        for d in plan.days:
            patterns = {ex.pattern for ex in (catalog.get(it.exercise_id) for it in d.items) if ex}
            is_lower = bool(patterns & LOWER_PATTERNS)
            days.append({
                "name": d.name,
                "is_lower": is_lower,
                "advice": ("easy + short, or separate day" if is_lower
                           else "OK to place after or separate by hours"),
            })

    has_cardio = (c.modality not in ("", "none") and (c.days_per_week or 0) > 0
                  and (c.minutes_per_session or 0) > 0)
    return {"score": score, "risk": risk, "has_cardio": has_cardio, "days": days}
