"""Grid indexing: coordinate -> cell id, cell id -> polygon."""

from __future__ import annotations

import math
from typing import Final

from footprint_grid.geo import from_planar, to_planar
from footprint_grid.models import CellId, Coordinate, PlanarPosition

CELL_SIZE_M: Final[float] = 100.0


def cell_id_of(c: Coordinate, cell_size_m: float = CELL_SIZE_M) -> CellId:
    """Map a coordinate to the grid cell containing it.

    Cells are half-open on the low side: ``[row*S, (row+1)*S)`` in north
    meters and likewise for east meters. ``math.floor`` keeps negative
    coordinates consistent (truncation would fold -0.5 into cell 0).

    Note:
        Samples within floating-point error of a cell edge may land in the
        neighbouring cell. That is accepted as part of the approximation.
    """

    p = to_planar(c)
    return CellId(row=math.floor(p.north_m / cell_size_m), col=math.floor(p.east_m / cell_size_m))


def _mid_latitude(cell: CellId, cell_size_m: float) -> float:
    return from_planar(PlanarPosition((cell.row + 0.5) * cell_size_m, 0.0), 0.0).latitude


def cell_bounds(cell: CellId, cell_size_m: float = CELL_SIZE_M) -> tuple[Coordinate, ...]:
    """Reconstruct the geographic outline of a cell.

    Latitudes come straight from the row. The longitude scale is taken once,
    at the cell's vertical midpoint, and used for both east edges.

    Returns:
        Closed ring of 5 coordinates: SW, SE, NE, NW, SW.
    """

    ref_lat = _mid_latitude(cell, cell_size_m)
    south = cell.row * cell_size_m
    north = (cell.row + 1) * cell_size_m
    west = cell.col * cell_size_m
    east = (cell.col + 1) * cell_size_m

    sw = from_planar(PlanarPosition(south, west), ref_lat)
    return (
        sw,
        from_planar(PlanarPosition(south, east), ref_lat),
        from_planar(PlanarPosition(north, east), ref_lat),
        from_planar(PlanarPosition(north, west), ref_lat),
        sw,
    )


def cell_center(cell: CellId, cell_size_m: float = CELL_SIZE_M) -> Coordinate:
    """Center point of a cell, on the same mid-latitude scale as `cell_bounds`."""

    ref_lat = _mid_latitude(cell, cell_size_m)
    return from_planar(
        PlanarPosition((cell.row + 0.5) * cell_size_m, (cell.col + 0.5) * cell_size_m),
        ref_lat,
    )
