"""Session-level visit counting per grid cell."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from footprint_grid.grid import CELL_SIZE_M, cell_id_of
from footprint_grid.models import CellId, Coordinate, GridCounts, Session
from footprint_grid.tiers import Tier, tier_of


def session_cells(coordinates: Iterable[Coordinate], cell_size_m: float = CELL_SIZE_M) -> set[CellId]:
    """Distinct cells touched by one sequence of coordinates."""

    return {cell_id_of(c, cell_size_m) for c in coordinates}


def compute_grid_counts(
    sessions: Iterable[Session],
    active_buffer: Sequence[Coordinate] = (),
    cell_size_m: float = CELL_SIZE_M,
) -> GridCounts:
    """Count, per cell, how many distinct sessions touched it.

    A non-empty ``active_buffer`` is counted as one more session. A session
    that hits the same cell with many samples contributes 1 to that cell.

    Args:
        sessions: Sealed sessions. Not mutated.
        active_buffer: Coordinates of the in-progress session, if any.
        cell_size_m: Cell edge length in meters.

    Returns:
        Mapping cell -> count (every value >= 1).
    """

    counts: GridCounts = {}
    for s in sessions:
        _add_cells(counts, session_cells(s.coordinates, cell_size_m))
    if active_buffer:
        _add_cells(counts, session_cells(active_buffer, cell_size_m))
    return counts


def _add_cells(counts: GridCounts, cells: Iterable[CellId]) -> None:
    for cell in cells:
        counts[cell] = counts.get(cell, 0) + 1


class GridCounter:
    """Incremental counterpart of `compute_grid_counts` for sealed sessions.

    Adding sessions one at a time yields the same mapping as recomputing
    from the full list, including when two sessions share an id: like
    `compute_grid_counts`, every session passed in is counted. The
    in-progress buffer is not tracked here; pass it to `counts` instead.
    """

    def __init__(self, cell_size_m: float = CELL_SIZE_M) -> None:
        self._cell_size_m = cell_size_m
        self._counts: GridCounts = {}
        self._sessions = 0

    def add_session(self, session: Session) -> None:
        _add_cells(self._counts, session_cells(session.coordinates, self._cell_size_m))
        self._sessions += 1

    def counts(self, active_buffer: Sequence[Coordinate] = ()) -> GridCounts:
        """Current mapping, optionally including an in-progress buffer."""

        out = dict(self._counts)
        if active_buffer:
            _add_cells(out, session_cells(active_buffer, self._cell_size_m))
        return out

    def __len__(self) -> int:
        return self._sessions


@dataclass(frozen=True, slots=True)
class GridSummary:
    """High-level view of a GridCounts mapping."""

    cells: int
    total_visits: int
    max_count: int
    cells_per_tier: dict[Tier, int] = field(default_factory=dict)


def summarize(counts: GridCounts) -> GridSummary:
    """Summarize cell counts by tier."""

    per_tier = {t: 0 for t in Tier}
    for n in counts.values():
        per_tier[tier_of(n)] += 1
    return GridSummary(
        cells=len(counts),
        total_visits=sum(counts.values()),
        max_count=max(counts.values(), default=0),
        cells_per_tier=per_tier,
    )
