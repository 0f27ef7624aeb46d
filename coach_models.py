"""
coach_models.py — The Coach Brain data layer
Records for catalog entries, profile, plan, log, goals and PRs, plus the
state snapshot every core function reads from and returns.
"""

import math
import uuid
from dataclasses import dataclass, field, asdict
from datetime import date
from typing import Any, Optional

# ─────────────────────────────────────────────
# Vocabulary
# ─────────────────────────────────────────────

PATTERNS = (
    "squat", "hinge", "lunge", "push", "pull",
    "carry", "core", "isolation", "power", "prehab",
)

GOALS = ("strength", "hypertrophy", "general")
EXPERIENCE_TIERS = ("novice", "intermediate", "advanced")
PRIORITIES = (
    "balanced", "upper", "lower", "push", "pull", "legs",
    "arms", "back", "chest", "shoulders", "core",
)
E1RM_METHODS = ("epley", "brzycki", "lombardi")
MUSCLE_TYPES = ("leaf", "group", "alias")

EQUIPMENT = {
    "barbell": "Barbell",
    "dumbbell": "Dumbbells",
    "machine": "Machine",
    "cable": "Cable",
    "kettlebell": "Kettlebell",
    "bodyweight": "Bodyweight",
    "band": "Bands",
}

PR_EVENT_LIMIT = 250


class ValidationError(ValueError):
    """Raised when caller input breaks a documented contract."""


# ─────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────

def uid(prefix: str = "id") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def to_number(value: Any, default: float = 0.0) -> float:
    """Coerce blank, missing or non-finite input to `default`."""
    if value is None or value == "":
        return default
    try:
        n = float(value)
    except (TypeError, ValueError):
        return default
    return n if math.isfinite(n) else default


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def clamp(n: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, n))


def round_to_step(x: float, step: float = 2.5) -> float:
    """Round a load to the nearest multiple of `step` (minimum step 0.01)."""
    s = max(0.01, to_number(step, 1.0) or 1.0)
    return math.floor(to_number(x) / s + 0.5) * s


def format_load(x: float, step: float = 2.5) -> str:
    """Rounded load as display text; whole numbers for steps of 1 or more."""
    s = to_number(step, 2.5) or 2.5
    value = round_to_step(x, s)
    return f"{value:.0f}" if s >= 1 else f"{value:.2f}"


def parse_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


# ─────────────────────────────────────────────
# Catalog Records
# ─────────────────────────────────────────────

@dataclass(frozen=True)
class Exercise:
    id: str
    name: str
    pattern: str            # one of PATTERNS
    equip: tuple[str, ...]  # equipment tags; any owned tag makes it eligible
    primary: tuple[str, ...] = ()
    secondary: tuple[str, ...] = ()
    notes: str = ""

    @property
    def muscles(self) -> set[str]:
        return set(self.primary) | set(self.secondary)

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class Muscle:
    id: str
    name: str
    region: Optional[str]
    type: str = "leaf"      # "leaf", "group" or "alias"
    members: tuple[str, ...] = ()
    synonyms: tuple[str, ...] = ()


# ─────────────────────────────────────────────
# Profile & Settings
# ─────────────────────────────────────────────

@dataclass
class Schedule:
    train_time: str = "evening"
    wake_time: str = "07:00"
    bed_time: str = "23:00"
    work_start: str = "09:00"
    work_end: str = "17:00"
    break_every_min: int = 45


@dataclass
class Cardio:
    modality: str = "none"   # "none", "run", "bike", "row", "hiit", ...
    days_per_week: int = 0
    minutes_per_session: int = 0
    intensity: str = "easy"  # "easy", "moderate", "hard"


def _default_equipment() -> dict[str, bool]:
    return {
        "barbell": True, "dumbbell": True, "machine": False, "cable": False,
        "kettlebell": False, "bodyweight": True, "band": False,
    }


@dataclass
class Profile:
    goal: str = "strength"
    experience: str = "novice"
    days_per_week: int = 3
    minutes_per_session: int = 60
    priority: str = "balanced"
    equipment: dict[str, bool] = field(default_factory=_default_equipment)
    schedule: Schedule = field(default_factory=Schedule)
    cardio: Cardio = field(default_factory=Cardio)

    @property
    def owned_equipment(self) -> set[str]:
        return {k for k, on in self.equipment.items() if on}


def _default_plates() -> dict[float, int]:
    return {45: 8, 35: 2, 25: 2, 10: 4, 5: 4, 2.5: 4, 1.25: 0}


@dataclass
class RegionTarget:
    lo: float
    hi: float
    mrv: float


@dataclass
class Settings:
    units: str = "lb"              # display label only
    round_to: float = 2.5
    e1rm_method: str = "epley"
    bar_weight: float = 45.0
    plates: dict[float, int] = field(default_factory=_default_plates)
    default_rest_sec: int = 120
    volume_mode: str = "auto"      # "auto" or "custom"
    volume_custom: dict[str, RegionTarget] = field(default_factory=dict)
    # goal -> pattern -> {"sets", "reps", "rpe"}
    prescription_overrides: dict[str, dict[str, dict]] = field(default_factory=dict)


# ─────────────────────────────────────────────
# Plan
# ─────────────────────────────────────────────

@dataclass
class PlanItem:
    pattern: str
    exercise_id: Optional[str]
    sets: int
    reps: str
    rpe: str
    notes: str = ""
    id: str = field(default_factory=lambda: uid("item"))


@dataclass
class PlanDay:
    name: str
    items: list[PlanItem] = field(default_factory=list)
    id: str = field(default_factory=lambda: uid("day"))


@dataclass
class Progression:
    rule: str
    detail: str


@dataclass
class Plan:
    split_name: str
    days: list[PlanDay]
    progression: Progression
    created: date = field(default_factory=date.today)

    def find_item(self, day_id: str, item_id: str):
        day = next((d for d in self.days if d.id == day_id), None)
        if day is None:
            return None, None
        item = next((it for it in day.items if it.id == item_id), None)
        return day, item


# ─────────────────────────────────────────────
# Log, Goals, PRs, Check-ins
# ─────────────────────────────────────────────

@dataclass
class SetEntry:
    reps: float
    weight: float
    rpe: Optional[float] = None


@dataclass
class ExerciseEntry:
    exercise_id: str
    set_count: int
    reps: float
    weight: float
    rpe: Optional[float] = None
    sets: list[SetEntry] = field(default_factory=list)


@dataclass
class Session:
    date: date
    exercises: list[ExerciseEntry] = field(default_factory=list)
    duration_min: Optional[float] = None
    session_rpe: Optional[float] = None
    id: str = field(default_factory=lambda: uid("s"))


@dataclass
class Goal:
    exercise_id: str
    baseline_e1rm: float
    target_e1rm: float
    created: date
    target_date: date
    id: str = field(default_factory=lambda: uid("g"))


@dataclass
class PRRecord:
    best_e1rm: float = 0.0
    best_e1rm_date: Optional[date] = None
    best_weight: float = 0.0
    best_weight_date: Optional[date] = None


@dataclass
class PREvent:
    date: date
    exercise_id: str
    kind: str   # "e1rm" or "weight"
    value: float
    description: str


@dataclass
class PRStore:
    by_exercise: dict[str, PRRecord] = field(default_factory=dict)
    events: list[PREvent] = field(default_factory=list)


@dataclass
class Checkin:
    date: date
    sleep: int = 5
    soreness: int = 5
    stress: int = 5
    motivation: int = 5


@dataclass
class CoachState:
    profile: Profile = field(default_factory=Profile)
    settings: Settings = field(default_factory=Settings)
    goals: list[Goal] = field(default_factory=list)
    plan: Optional[Plan] = None
    prs: PRStore = field(default_factory=PRStore)
    sessions: list[Session] = field(default_factory=list)
    checkins: list[Checkin] = field(default_factory=list)


# ─────────────────────────────────────────────
# Results
# ─────────────────────────────────────────────

@dataclass
class Outcome:
    """Explicit success/failure result for operations that can be refused."""
    ok: bool
    reason: str = ""
    value: Any = None

    @classmethod
    def success(cls, value: Any = None, reason: str = "") -> "Outcome":
        return cls(True, reason, value)

    @classmethod
    def fail(cls, reason: str) -> "Outcome":
        return cls(False, reason, None)

    def __bool__(self):
        return self.ok
