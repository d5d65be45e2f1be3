"""CSV input/output: exported track files in, grid tables out."""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from footprint_grid.grid import cell_center
from footprint_grid.models import GridCounts, Session, TrackPoint
from footprint_grid.tiers import tier_of

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CsvSummary:
    """Quick summary of CSV parsing."""

    rows_total: int
    rows_parsed: int
    rows_skipped: int
    fieldnames: Sequence[str]


@dataclass(frozen=True, slots=True)
class ImportParams:
    """Parameters controlling how a flat track is cut into sessions."""

    # Consecutive samples further apart than this start a new session.
    max_gap_seconds: float = 30 * 60.0
    # Sessions with fewer samples are dropped.
    min_points: int = 1


def _parse_int(value: str) -> int:
    return int(value.strip())


def _parse_float(value: str) -> float:
    return float(value.strip())


def load_track_points(csv_path: str | Path) -> tuple[list[TrackPoint], CsvSummary]:
    """Load all samples of an exported track CSV into memory.

    Args:
        csv_path: Path to the exported CSV. Required columns are
            ``geoTime`` (epoch ms), ``latitude`` and ``longitude``;
            other columns are ignored.

    Returns:
        (points, summary)

    Raises:
        KeyError: If the header lacks a required column.
    """

    p = Path(csv_path)
    rows_total = 0
    parsed: list[TrackPoint] = []
    fieldnames: Sequence[str] = ()

    with p.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        fieldnames = reader.fieldnames or ()
        missing = [c for c in ("geoTime", "latitude", "longitude") if c not in fieldnames]
        if fieldnames and missing:
            raise KeyError(f"CSV缺少必要字段：{missing}. 实际字段：{list(fieldnames)}")
        for row in reader:
            rows_total += 1
            try:
                parsed.append(
                    TrackPoint(
                        geo_time_ms=_parse_int(row["geoTime"]),
                        latitude=_parse_float(row["latitude"]),
                        longitude=_parse_float(row["longitude"]),
                    )
                )
            except (ValueError, TypeError, AttributeError):
                # 某些行可能损坏/空行，直接跳过
                continue

    summary = CsvSummary(
        rows_total=rows_total,
        rows_parsed=len(parsed),
        rows_skipped=rows_total - len(parsed),
        fieldnames=fieldnames,
    )
    if summary.rows_skipped > 0:
        logger.warning("CSV中有 %s 行解析失败已跳过", summary.rows_skipped)
    return parsed, summary


def split_sessions(points: Iterable[TrackPoint], params: ImportParams = ImportParams()) -> list[Session]:
    """Cut a flat track into sealed sessions at large time gaps.

    Args:
        points: Track samples (can be unsorted).
        params: Gap threshold and minimum session size.

    Returns:
        Sessions in time order. Ids are ``session_<end epoch ms>``.
    """

    pts = sorted(points, key=lambda p: p.geo_time_ms)
    if not pts:
        return []

    groups: list[list[TrackPoint]] = [[pts[0]]]
    for prev, cur in zip(pts, pts[1:]):
        if (cur.geo_time_ms - prev.geo_time_ms) / 1000.0 > params.max_gap_seconds:
            groups.append([])
        groups[-1].append(cur)

    sessions: list[Session] = []
    for g in groups:
        if len(g) < params.min_points:
            continue
        sessions.append(
            Session(
                id=f"session_{g[-1].geo_time_ms}",
                start_ms=g[0].geo_time_ms,
                end_ms=g[-1].geo_time_ms,
                coordinates=tuple(p.coordinate for p in g),
            )
        )
    return sessions


def write_grid_csv(counts: GridCounts, out_path: str | Path) -> None:
    """Write one row per visited cell, most visited first."""

    p = Path(out_path)
    with p.open("w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(
            f,
            fieldnames=["row", "col", "count", "tier", "center_lat", "center_lon"],
        )
        w.writeheader()
        for cell, n in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0])):
            center = cell_center(cell)
            w.writerow(
                {
                    "row": cell.row,
                    "col": cell.col,
                    "count": n,
                    "tier": tier_of(n).value,
                    "center_lat": f"{center.latitude:.7f}",
                    "center_lon": f"{center.longitude:.7f}",
                }
            )
