"""
coach_catalog.py — Exercise catalog & query engine
Loads the reference tables, filters exercises by equipment/pattern/muscle and
picks the best candidate for a plan slot.
"""

import json
import logging
import random
from pathlib import Path
from typing import Iterable, Optional

from coach_models import Exercise, PATTERNS
from coach_taxonomy import CatalogError, Taxonomy

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"

# Tie-break noise added to candidate scores; always strictly below this bound.
JITTER = 0.1


def exercise_from_dict(raw: dict) -> Exercise:
    """Build an Exercise from a catalog row, validating its shape."""
    eid = str(raw.get("id") or "").strip()
    if not eid:
        raise CatalogError(f"Exercise row without id: {raw!r}")
    pattern = raw.get("pattern")
    if pattern not in PATTERNS:
        raise CatalogError(f"Exercise {eid}: unknown pattern {pattern!r}")
    equip = tuple(raw.get("equip") or raw.get("equipment") or ())
    if not equip:
        raise CatalogError(f"Exercise {eid}: no equipment tags")
    return Exercise(
        id=eid,
        name=str(raw.get("name") or eid),
        pattern=pattern,
        equip=equip,
        primary=tuple(raw.get("primary") or ()),
        secondary=tuple(raw.get("secondary") or ()),
        notes=str(raw.get("notes") or ""),
    )


class ExerciseCatalog:
    """Immutable exercise table plus the muscle taxonomy it refers to."""

    def __init__(self, exercises: Iterable[Exercise], taxonomy: Taxonomy):
        self.taxonomy = taxonomy
        self.exercises: list[Exercise] = []
        self._by_id: dict[str, Exercise] = {}
        for ex in exercises:
            if ex.id in self._by_id:
                raise CatalogError(f"Duplicate exercise id: {ex.id}")
            self._by_id[ex.id] = ex
            self.exercises.append(ex)
            unknown = [m for m in (*ex.primary, *ex.secondary) if m not in taxonomy]
            if unknown:
                logger.warning("Exercise %s references unknown muscles: %s", ex.id, unknown)

    @classmethod
    def from_rows(cls, exercise_rows: Iterable[dict], muscle_rows: Iterable[dict]):
        taxonomy = Taxonomy.from_rows(muscle_rows)
        return cls((exercise_from_dict(r) for r in exercise_rows), taxonomy)

    def __len__(self):
        return len(self.exercises)

    def __contains__(self, exercise_id: str) -> bool:
        return exercise_id in self._by_id

    def get(self, exercise_id: Optional[str]) -> Optional[Exercise]:
        if not exercise_id:
            return None
        return self._by_id.get(exercise_id)

    @property
    def patterns(self) -> list[str]:
        return sorted({ex.pattern for ex in self.exercises})

    def eligible(
        self,
        owned_equipment: Iterable[str],
        pattern: Optional[str] = None,
        require_equip: Optional[str] = None,
        include_muscle: Optional[str] = None,
    ) -> list[Exercise]:
        """Exercises usable with the owned equipment, optionally narrowed down.

        An exercise needs at least one equipment tag the user owns, even when
        `pattern` matches.
        """
        owned = set(owned_equipment)
        out = []
        for ex in self.exercises:
            if pattern and ex.pattern != pattern:
                continue
            if require_equip and require_equip not in ex.equip:
                continue
            if not owned.intersection(ex.equip):
                continue
            if include_muscle and include_muscle not in ex.muscles:
                continue
            out.append(ex)
        return out

    def pick(
        self,
        pattern: str,
        owned_equipment: Iterable[str],
        preferred_muscles: Iterable[str] = (),
        exclude_ids: Iterable[str] = (),
        rng=None,
        jitter: float = JITTER,
    ) -> Optional[Exercise]:
        """Top-scoring eligible exercise for `pattern`, or None."""
        rng = rng or random
        excluded = set(exclude_ids)
        preferred = list(preferred_muscles)
        candidates = [ex for ex in self.eligible(owned_equipment, pattern=pattern)
                      if ex.id not in excluded]
        if not candidates:
            return None

        scored = [(pick_score(ex, preferred) + rng.random() * jitter, ex) for ex in candidates]
        scored.sort(key=lambda pair: pair[0], reverse=True)
        best = scored[0][1]
        logger.debug("pick(%s): %s from %d candidates", pattern, best.id, len(candidates))
        return best


def pick_score(ex: Exercise, preferred_muscles: Iterable[str]) -> float:
    """2 points per preferred muscle trained, plus up to 1 for a multi-muscle primary list."""
    overlap = len(ex.muscles.intersection(preferred_muscles))
    return 2 * overlap + min(1.0, len(ex.primary) / 3)


def load_catalog(data_dir: Optional[Path] = None) -> ExerciseCatalog:
    """Read exercises.json and muscles.json from `data_dir`."""
    data_dir = Path(data_dir) if data_dir else DATA_DIR
    with open(data_dir / "muscles.json", encoding="utf-8") as fh:
        muscle_rows = json.load(fh)
    with open(data_dir / "exercises.json", encoding="utf-8") as fh:
        exercise_rows = json.load(fh)
    catalog = ExerciseCatalog.from_rows(exercise_rows, muscle_rows)
    logger.debug("Loaded %d exercises from %s", len(catalog), data_dir)
    return catalog
