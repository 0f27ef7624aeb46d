from datetime import date, timedelta

import pytest

from coach_catalog import ExerciseCatalog
from coach_models import CoachState, Session
from coach_state import build_entry

TODAY = date(2024, 6, 12)

MUSCLES = [
    {"id": "quads", "name": "Quadriceps", "region": "Thighs"},
    {"id": "hamstrings", "name": "Hamstrings", "region": "Thighs"},
    {"id": "glute_max", "name": "Gluteus Maximus", "region": "Hips"},
    {"id": "pec", "name": "Pectoralis", "region": "Chest"},
    {"id": "triceps", "name": "Triceps", "region": "Arms"},
    {"id": "lats", "name": "Lats", "region": "Back"},
    {"id": "abs", "name": "Abs", "region": "Core"},
    # legs <-> posterior reference each other
    {"id": "legs", "name": "Legs", "region": "Thighs", "type": "group",
     "members": ["quads", "hamstrings", "posterior"]},
    {"id": "posterior", "name": "Posterior Chain", "region": "Hips", "type": "group",
     "members": ["glute_max", "hamstrings", "legs"]},
    {"id": "chest", "name": "Chest", "region": "Chest", "type": "alias", "members": ["pec"]},
]

EXERCISES = [
    {"id": "squat_bb", "name": "Back Squat", "pattern": "squat", "equip": ["barbell"],
     "primary": ["quads"], "secondary": ["glute_max"]},
    {"id": "goblet_squat", "name": "Goblet Squat", "pattern": "squat", "equip": ["dumbbell", "kettlebell"],
     "primary": ["quads", "glute_max"], "secondary": ["abs"]},
    {"id": "deadlift_bb", "name": "Deadlift", "pattern": "hinge", "equip": ["barbell"],
     "primary": ["posterior"], "secondary": ["lats"]},
    {"id": "bench_bb", "name": "Bench Press", "pattern": "push", "equip": ["barbell"],
     "primary": ["chest"], "secondary": ["triceps"]},
    {"id": "push_up", "name": "Push-up", "pattern": "push", "equip": ["bodyweight"],
     "primary": ["pec"], "secondary": ["triceps", "abs"]},
    {"id": "db_row", "name": "Dumbbell Row", "pattern": "pull", "equip": ["dumbbell"],
     "primary": ["lats"]},
    {"id": "split_squat", "name": "Split Squat", "pattern": "lunge", "equip": ["dumbbell"],
     "primary": ["quads"], "secondary": ["glute_max"]},
    {"id": "plank", "name": "Plank", "pattern": "core", "equip": ["bodyweight"], "primary": ["abs"]},
    {"id": "leg_machine", "name": "Leg Machine", "pattern": "isolation", "equip": ["machine"],
     "primary": ["legs"], "secondary": ["quads"]},
]


class ZeroRandom:
    """Stands in for the random module with the jitter switched off."""

    def random(self):
        return 0.0


@pytest.fixture
def catalog():
    return ExerciseCatalog.from_rows(EXERCISES, MUSCLES)


@pytest.fixture
def rng():
    return ZeroRandom()


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def make_session():
    def _make(exercise_id, days_ago=0, set_count=3, reps=5, weight=100,
              duration_min=None, session_rpe=None):
        return Session(
            date=TODAY - timedelta(days=days_ago),
            exercises=[build_entry(exercise_id, set_count, reps, weight)],
            duration_min=duration_min,
            session_rpe=session_rpe,
        )
    return _make


@pytest.fixture
def state():
    # default equipment: barbell, dumbbell, bodyweight
    return CoachState()
