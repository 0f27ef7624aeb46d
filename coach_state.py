"""
coach_state.py — State snapshot operations
Logging and deleting sessions, readiness check-ins, goals, and JSON
(de)serialization of the whole snapshot for the persistence layer.
"""

import json
import logging
from dataclasses import asdict, fields
from datetime import date, timedelta
from typing import Any, Optional

from coach_catalog import ExerciseCatalog
from coach_goals import goal_pacing, update_prs_with_session
from coach_models import (
    Cardio, Checkin, CoachState, ExerciseEntry, Goal, Outcome, Plan, PlanDay, PlanItem,
    PREvent, PRRecord, PRStore, Profile, Progression, RegionTarget, Schedule, Session,
    SetEntry, Settings, ValidationError, clamp, parse_date, to_number,
)

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────
# Log
# ─────────────────────────────────────────────


def build_entry(exercise_id: str, set_count, reps, weight, rpe=None) -> ExerciseEntry:
    """One exercise entry with a homogeneous per-set breakdown."""
    n = int(to_number(set_count))
    reps = to_number(reps)
    weight = to_number(weight)
    rpe = to_number(rpe) or None
    if n < 1:
        raise ValidationError("Log at least one set.")
    if reps < 1:
        raise ValidationError("Reps must be at least 1.")
    if weight < 0:
        raise ValidationError("Weight cannot be negative.")
    return ExerciseEntry(
        exercise_id=exercise_id,
        set_count=n,
        reps=reps,
        weight=weight,
        rpe=rpe,
        sets=[SetEntry(reps, weight, rpe) for _ in range(n)],
    )


def log_session(
    state: CoachState,
    catalog: ExerciseCatalog,
    exercise_id: str,
    set_count,
    reps,
    weight,
    rpe=None,
    duration_min=None,
    session_rpe=None,
    session_date: Optional[date] = None,
    today: Optional[date] = None,
) -> Outcome:
    """Validate and record a session, then fold it into the PR store."""
    today = today or date.today()
    session_date = session_date or today
    if exercise_id not in catalog:
        logger.warning("Rejected session for unknown exercise %r", exercise_id)
        return Outcome.fail("Invalid exercise.")
    if session_date > today:
        logger.warning("Rejected session dated %s after %s", session_date, today)
        return Outcome.fail("Session date cannot be in the future.")
    try:
        entry = build_entry(exercise_id, set_count, reps, weight, rpe)
    except ValidationError as e:
        logger.warning("Rejected session input: %s", e)
        return Outcome.fail(str(e))

    session = Session(
        date=session_date,
        exercises=[entry],
        duration_min=to_number(duration_min) or None,
        session_rpe=to_number(session_rpe) or None,
    )
    state.sessions.insert(0, session)
    settings = state.settings
    events = update_prs_with_session(state.prs, session, settings.e1rm_method,
                                     settings.units, settings.round_to)
    logger.info("Logged %s x%d on %s", exercise_id, entry.set_count, session.date)
    return Outcome.success(session, reason=f"{len(events)} new PR(s)" if events else "")


def delete_session(state: CoachState, session_id: str) -> Outcome:
    before = len(state.sessions)
    state.sessions = [s for s in state.sessions if s.id != session_id]
    if len(state.sessions) == before:
        return Outcome.fail("Session not found.")
    return Outcome.success()


# ─────────────────────────────────────────────
# Check-ins & Goals
# ─────────────────────────────────────────────

def save_checkin(state: CoachState, checkin: Checkin) -> Checkin:
    """At most one check-in per date; the latest write wins."""
    state.checkins = [c for c in state.checkins if c.date != checkin.date]
    state.checkins.insert(0, checkin)
    return checkin


def add_goal(
    state: CoachState,
    catalog: ExerciseCatalog,
    exercise_id: str,
    baseline,
    target,
    weeks=12,
    today: Optional[date] = None,
) -> Outcome:
    today = today or date.today()
    if exercise_id not in catalog:
        return Outcome.fail("Pick a lift from the catalog.")
    weeks = int(clamp(to_number(weeks, 12) or 12, 4, 104))
    try:
        goal_pacing(baseline, target, weeks, state.profile.experience)
    except ValidationError as e:
        return Outcome.fail(str(e))
    goal = Goal(
        exercise_id=exercise_id,
        baseline_e1rm=to_number(baseline),
        target_e1rm=to_number(target),
        created=today,
        target_date=today + timedelta(days=weeks * 7),
    )
    state.goals.insert(0, goal)
    return Outcome.success(goal)


def delete_goal(state: CoachState, goal_id: str) -> Outcome:
    before = len(state.goals)
    state.goals = [g for g in state.goals if g.id != goal_id]
    return Outcome.success() if len(state.goals) < before else Outcome.fail("Goal not found.")


# ─────────────────────────────────────────────
# Serialization
# ─────────────────────────────────────────────

def _pick(cls, raw: Optional[dict], **converted) -> Any:
    """Instantiate `cls` from the keys it knows; missing keys keep their defaults."""
    raw = raw if isinstance(raw, dict) else {}
    names = {f.name for f in fields(cls)}
    kwargs = {k: v for k, v in raw.items() if k in names and k not in converted}
    kwargs.update({k: v for k, v in converted.items() if v is not None})
    return cls(**kwargs)


def _each(rows, build) -> list:
    """Build one record per stored row; a row that cannot be built is dropped on its own."""
    out = []
    for row in rows or []:
        if not isinstance(row, dict):
            logger.warning("Dropped stored record %r: not an object", row)
            continue
        try:
            record = build(row)
        except TypeError as e:
            logger.warning("Dropped stored record %r: %s", row, e)
            continue
        if record is not None:
            out.append(record)
    return out


def _session_from_dict(raw: dict) -> Optional[Session]:
    day = parse_date(raw.get("date"))
    if day is None:
        return None
    exercises = _each(
        raw.get("exercises"),
        lambda e: _pick(ExerciseEntry, e, sets=_each(e.get("sets"), lambda s: _pick(SetEntry, s))),
    )
    return _pick(Session, raw, date=day, exercises=exercises)


def _plan_from_dict(raw: Optional[dict]) -> Optional[Plan]:
    if not raw:
        return None
    days = _each(
        raw.get("days"),
        lambda d: _pick(PlanDay, d, items=_each(d.get("items"), lambda it: _pick(PlanItem, it))),
    )
    return _pick(Plan, raw, days=days,
                 progression=_pick(Progression, raw.get("progression") or {"rule": "", "detail": ""}),
                 created=parse_date(raw.get("created")))


def _settings_from_dict(raw: Optional[dict]) -> Settings:
    raw = raw or {}
    defaults = Settings()
    plates = dict(defaults.plates)
    for k, v in (raw.get("plates") or {}).items():
        plates[to_number(k)] = int(to_number(v))
    custom = {}
    for region, t in (raw.get("volume_custom") or {}).items():
        try:
            custom[region] = _pick(RegionTarget, t)
        except TypeError as e:
            logger.warning("Dropped volume target for %s: %s", region, e)
    return _pick(Settings, raw, plates=plates, volume_custom=custom)


def _profile_from_dict(raw: Optional[dict]) -> Profile:
    raw = raw or {}
    equipment = Profile().equipment
    equipment.update({k: bool(v) for k, v in (raw.get("equipment") or {}).items()})
    return _pick(Profile, raw, equipment=equipment,
                 schedule=_pick(Schedule, raw.get("schedule")),
                 cardio=_pick(Cardio, raw.get("cardio")))


def _prs_from_dict(raw: Optional[dict]) -> PRStore:
    raw = raw or {}
    by_exercise = {}
    for ex_id, r in (raw.get("by_exercise") or {}).items():
        by_exercise[ex_id] = _pick(PRRecord, r,
                                   best_e1rm_date=parse_date(r.get("best_e1rm_date")),
                                   best_weight_date=parse_date(r.get("best_weight_date")))
    events = _each(raw.get("events"),
                   lambda e: _pick(PREvent, e, date=parse_date(e.get("date")))
                   if parse_date(e.get("date")) else None)
    return PRStore(by_exercise=by_exercise, events=events)


def _goal_from_dict(raw: dict) -> Optional[Goal]:
    created = parse_date(raw.get("created"))
    target_date = parse_date(raw.get("target_date"))
    if not (raw.get("exercise_id") and created and target_date):
        return None
    return _pick(Goal, raw, created=created, target_date=target_date)


def state_from_dict(raw: Optional[dict]) -> CoachState:
    """Merge a stored snapshot onto defaults so older snapshots still load."""
    raw = raw or {}
    sessions = _each(raw.get("sessions"), _session_from_dict)
    goals = _each(raw.get("goals"), _goal_from_dict)
    checkins = _each(raw.get("checkins"),
                     lambda c: _pick(Checkin, c, date=parse_date(c.get("date")))
                     if parse_date(c.get("date")) else None)
    return CoachState(
        profile=_profile_from_dict(raw.get("profile")),
        settings=_settings_from_dict(raw.get("settings")),
        goals=goals,
        plan=_plan_from_dict(raw.get("plan")),
        prs=_prs_from_dict(raw.get("prs")),
        sessions=sessions,
        checkins=checkins,
    )


def state_to_json(state: CoachState) -> str:
    """Serialize a snapshot for Google Sheets storage."""
    return json.dumps(asdict(state), default=str)


def json_to_state(json_str: str) -> CoachState:
    """Deserialize a snapshot from Google Sheets; blank input gives a fresh state."""
    if not json_str:
        return CoachState()
    try:
        return state_from_dict(json.loads(json_str))
    except (json.JSONDecodeError, TypeError, AttributeError) as e:
        raise ValidationError(f"Stored snapshot is malformed: {e}") from e
