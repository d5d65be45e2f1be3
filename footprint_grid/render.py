"""GeoJSON payloads for map rendering."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from footprint_grid.grid import CELL_SIZE_M, cell_bounds
from footprint_grid.models import GridCounts, Session
from footprint_grid.tiers import TIER_COLORS, tier_of


def grid_feature_collection(counts: GridCounts, cell_size_m: float = CELL_SIZE_M) -> dict[str, Any]:
    """One Polygon feature per visited cell.

    Properties: ``cell`` ("row_col"), ``count``, ``tier`` and ``color``.
    GeoJSON positions are [lon, lat].
    """

    features: list[dict[str, Any]] = []
    for cell, n in sorted(counts.items()):
        tier = tier_of(n)
        ring = [[c.longitude, c.latitude] for c in cell_bounds(cell, cell_size_m)]
        features.append(
            {
                "type": "Feature",
                "geometry": {"type": "Polygon", "coordinates": [ring]},
                "properties": {
                    "cell": str(cell),
                    "count": n,
                    "tier": tier.value,
                    "color": TIER_COLORS[tier],
                },
            }
        )
    return {"type": "FeatureCollection", "features": features}


def session_lines(sessions: Iterable[Session]) -> dict[str, Any]:
    """LineString features for sessions with at least two coordinates."""

    features = [
        {
            "type": "Feature",
            "geometry": {
                "type": "LineString",
                "coordinates": [[c.longitude, c.latitude] for c in s.coordinates],
            },
            "properties": {"id": s.id, "start_ms": s.start_ms, "end_ms": s.end_ms},
        }
        for s in sessions
        if len(s.coordinates) >= 2
    ]
    return {"type": "FeatureCollection", "features": features}


def write_geojson(doc: dict[str, Any], out_path: str | Path) -> None:
    p = Path(out_path)
    p.write_text(json.dumps(doc, ensure_ascii=False, indent=2), encoding="utf-8")
