from __future__ import annotations

import argparse
import csv
import math
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Final

from zoneinfo import ZoneInfo


TZ: Final[str] = "Asia/Tokyo"


@dataclass(frozen=True, slots=True)
class Place:
    name: str
    lat: float
    lon: float


def _epoch_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def generate_trips(
    *,
    trips: int,
    seed: int,
    start_local: datetime,
    places: list[Place],
) -> list[dict[str, str]]:
    """Generate fake track rows: walks between places, separated by long gaps."""

    rng = random.Random(seed)
    cur = start_local.replace(tzinfo=ZoneInfo(TZ))

    out: list[dict[str, str]] = []
    for _ in range(trips):
        a, b = rng.sample(places, 2)
        steps = rng.randint(20, 80)
        for i in range(steps + 1):
            f = i / steps
            # Straight line plus a little GPS jitter (~5 m)
            lat = a.lat + (b.lat - a.lat) * f + rng.gauss(0.0, 0.00005)
            lon = a.lon + (b.lon - a.lon) * f + rng.gauss(0.0, 0.00005 / math.cos(math.radians(a.lat)))
            cur = cur + timedelta(seconds=rng.uniform(5, 30))
            out.append(
                {
                    "geoTime": str(_epoch_ms(cur)),
                    "latitude": f"{lat:.7f}",
                    "longitude": f"{lon:.7f}",
                    "altitude": f"{rng.uniform(0, 60):.1f}",
                    "horizontalAccuracy": f"{rng.choice([3.0, 5.0, 8.0, 12.0]):.1f}",
                    "speed": f"{rng.uniform(0.8, 1.8):.1f}",
                    "locationType": str(rng.choice([0, 1])),
                }
            )
        # Next trip starts hours later
        cur = cur + timedelta(hours=rng.uniform(2, 20))

    return out


def main() -> int:
    p = argparse.ArgumentParser(description="Generate a fake Path.csv for demo/testing (privacy-safe).")
    p.add_argument("--out", type=str, default="sample_data/Path.csv", help="Output CSV path")
    p.add_argument("--trips", type=int, default=20, help="Number of trips (each becomes one session)")
    p.add_argument("--seed", type=int, default=42, help="Random seed (reproducible)")
    p.add_argument(
        "--start",
        type=str,
        default="2025-01-01 08:00:00",
        help="Start local time in Asia/Tokyo, e.g. '2025-01-01 08:00:00'",
    )
    args = p.parse_args()

    places = [
        Place("tokyo_station", 35.6812000, 139.7671000),
        Place("imperial_palace", 35.6852000, 139.7528000),
        Place("ginza", 35.6717000, 139.7650000),
        Place("akihabara", 35.6984000, 139.7731000),
    ]

    rows = generate_trips(
        trips=args.trips,
        seed=args.seed,
        start_local=datetime.fromisoformat(args.start),
        places=places,
    )
    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    with out_path.open("w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(f, fieldnames=list(rows[0].keys()) if rows else ["geoTime", "latitude", "longitude"])
        w.writeheader()
        w.writerows(rows)

    print(f"Generated: {out_path} (rows={len(rows)}, trips={args.trips}, seed={args.seed})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
