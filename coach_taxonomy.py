"""
coach_taxonomy.py — Muscle taxonomy resolver
Expands group/alias muscle ids to leaf muscles and maps leaves to body regions.
"""

import logging
from typing import Iterable, Optional

from coach_models import Muscle, MUSCLE_TYPES

logger = logging.getLogger(__name__)


class CatalogError(ValueError):
    """Raised when a reference table fails schema validation."""


def muscle_from_dict(raw: dict) -> Muscle:
    """Build a Muscle from a catalog row, validating its shape."""
    mid = str(raw.get("id") or "").strip()
    if not mid:
        raise CatalogError(f"Muscle row without id: {raw!r}")
    kind = raw.get("type") or "leaf"
    if kind not in MUSCLE_TYPES:
        raise CatalogError(f"Muscle {mid}: unknown type {kind!r}")
    members = tuple(raw.get("members") or ())
    if kind == "leaf" and members:
        raise CatalogError(f"Muscle {mid}: a leaf muscle cannot list members")
    if kind != "leaf" and not members:
        raise CatalogError(f"Muscle {mid}: {kind} without members")
    return Muscle(
        id=mid,
        name=str(raw.get("name") or mid),
        region=raw.get("region") or None,
        type=kind,
        members=members,
        synonyms=tuple(raw.get("syn") or raw.get("synonyms") or ()),
    )


class Taxonomy:
    """Read-only view over the muscle table.

    Groups and aliases behave identically: both resolve through `members`.
    """

    def __init__(self, muscles: Iterable[Muscle]):
        self._by_id: dict[str, Muscle] = {}
        for m in muscles:
            if m.id in self._by_id:
                raise CatalogError(f"Duplicate muscle id: {m.id}")
            self._by_id[m.id] = m
        self.regions: list[str] = sorted({m.region for m in self._by_id.values() if m.region})
        self._leaf_cache: dict[str, frozenset[str]] = {}

    @classmethod
    def from_rows(cls, rows: Iterable[dict]) -> "Taxonomy":
        taxonomy = cls(muscle_from_dict(r) for r in rows)
        taxonomy.validate()
        logger.debug("Loaded taxonomy: %d muscles, %d regions",
                     len(taxonomy._by_id), len(taxonomy.regions))
        return taxonomy

    def __contains__(self, muscle_id: str) -> bool:
        return muscle_id in self._by_id

    def __len__(self):
        return len(self._by_id)

    def get(self, muscle_id: str) -> Optional[Muscle]:
        return self._by_id.get(muscle_id)

    def leaves(self) -> list[Muscle]:
        return [m for m in self._by_id.values() if m.type == "leaf"]

    def validate(self) -> None:
        """Every group/alias must reach at least one real leaf."""
        for m in self._by_id.values():
            if m.type == "leaf":
                continue
            resolved = [x for x in self.expand_to_leaves(m.id) if x in self._by_id]
            if not resolved:
                raise CatalogError(f"Muscle {m.id} does not resolve to any leaf muscle")

    def expand_to_leaves(self, muscle_id: str) -> set[str]:
        """Leaf ids reachable from `muscle_id`; unknown ids and leaves map to themselves."""
        cached = self._leaf_cache.get(muscle_id)
        if cached is not None:
            return set(cached)

        out: set[str] = set()
        visited: set[str] = set()
        stack = [muscle_id]
        while stack:
            mid = stack.pop()
            if mid in visited:
                continue
            visited.add(mid)
            m = self._by_id.get(mid)
            if m is None or m.type == "leaf" or not m.members:
                out.add(mid)
                continue
            stack.extend(m.members)

        if not out:
            # a group whose members only loop back to groups
            logger.warning("Muscle %s has a membership cycle with no leaves", muscle_id)
        self._leaf_cache[muscle_id] = frozenset(out)
        return out

    def region_of(self, muscle_id: str) -> Optional[str]:
        m = self._by_id.get(muscle_id)
        return m.region if m else None
