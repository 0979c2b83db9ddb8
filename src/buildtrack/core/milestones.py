"""
Milestone catalog and transition validator.

A build moves through an ordered lattice of milestones (Dev, QA, Staging,
Release, ...). Each milestone has an integer ``level``; progression is legal
only towards an equal or higher level, and only onto an active milestone.

Manifesto:
    - **Pure decisions:** :func:`can_progress` and
      :meth:`MilestoneCatalog.check_transition` have no side effects
    - **Distinct failures:** an unknown name resolves to ``None`` instead of
      raising, so callers report "bad milestone name" and "illegal
      transition" differently
    - **Fresh per request:** a catalog is a snapshot loaded for one request
      and never cached across requests

Examples:
    >>> catalog = MilestoneCatalog([
    ...     Milestone(1, "Dev", 0), Milestone(2, "QA", 10), Milestone(3, "Release", 20),
    ... ])
    >>> catalog.resolve("qa").level
    10
    >>> catalog.resolve("Staging") is None
    True
    >>> can_progress(10, 0)
    False
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from buildtrack.core.errors import IllegalProgressionError
from buildtrack.core.models import Milestone, name_key


def can_progress(current_level: int, target_level: int, target_active: bool = True) -> bool:
    """Return whether a build at *current_level* may move to *target_level*.

    Equality is legal: a build may be re-recorded at the same milestone.
    """
    return target_active and target_level >= current_level


class MilestoneCatalog:
    """Snapshot of the configured milestones, indexed by id and by name.

    Name lookups are case-insensitive and cover inactive milestones too, so
    that an inactive target is reported as an illegal progression rather
    than an unknown name.
    """

    def __init__(self, milestones: Iterable[Milestone]) -> None:
        self._by_id: dict[int, Milestone] = {}
        self._by_name: dict[str, Milestone] = {}
        for milestone in milestones:
            self._by_id[milestone.id] = milestone
            self._by_name[name_key(milestone.name)] = milestone

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[Milestone]:
        return iter(_ordered(self._by_id.values()))

    def resolve(self, name: str) -> Milestone | None:
        """Look up a milestone by display name, ignoring case."""
        return self._by_name.get(name_key(name))

    def get(self, milestone_id: int) -> Milestone | None:
        return self._by_id.get(milestone_id)

    def active(self) -> list[Milestone]:
        """Active milestones ordered by level."""
        return _ordered(m for m in self._by_id.values() if m.active)

    def progressions_from(self, current: Milestone) -> list[Milestone]:
        """Active milestones a build at *current* may move to (level >= current)."""
        return [m for m in self.active() if can_progress(current.level, m.level, m.active)]

    def check_transition(self, current: Milestone, target: Milestone) -> None:
        """Raise :class:`IllegalProgressionError` unless *current* -> *target* is legal."""
        if can_progress(current.level, target.level, target.active):
            return
        if not target.active:
            reason = f"milestone {target.name!r} is inactive"
        else:
            reason = (
                f"level {target.level} is below the current level {current.level}"
            )
        raise IllegalProgressionError(current.name, target.name, reason=reason)


def _ordered(milestones: Iterable[Milestone]) -> list[Milestone]:
    return sorted(milestones, key=lambda m: (m.level, m.id))


__all__ = ["can_progress", "MilestoneCatalog"]
