"""Data models for coordinates, grid cells and recorded sessions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final, Mapping, Sequence


@dataclass(frozen=True, slots=True)
class Coordinate:
    """A single location sample.

    Attributes:
        latitude: Latitude in decimal degrees, expected within [-90, 90].
        longitude: Longitude in decimal degrees, expected within [-180, 180].

    Note:
        Ranges are the location source's contract and are not validated here.
    """

    latitude: float
    longitude: float

    def to_dict(self) -> dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Coordinate:
        return cls(latitude=float(data["latitude"]), longitude=float(data["longitude"]))


@dataclass(frozen=True, slots=True)
class PlanarPosition:
    """Approximate local projection of a Coordinate, in meters.

    Only comparable near the latitude band it was computed at, because the
    east scale depends on latitude.
    """

    north_m: float
    east_m: float


@dataclass(frozen=True, slots=True, order=True)
class CellId:
    """Integer (row, col) of one square grid cell in the planar projection."""

    row: int
    col: int

    def __str__(self) -> str:
        return f"{self.row}_{self.col}"


@dataclass(frozen=True, slots=True)
class TrackPoint:
    """A timestamped sample from an exported track file.

    Attributes:
        geo_time_ms: Unix epoch milliseconds.
        latitude: Latitude in decimal degrees.
        longitude: Longitude in decimal degrees.
    """

    geo_time_ms: int
    latitude: float
    longitude: float

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)


@dataclass(frozen=True, slots=True)
class Session:
    """One sealed recording interval.

    Attributes:
        id: Opaque identifier, unique per session.
        start_ms: Unix epoch milliseconds when recording started.
        end_ms: Unix epoch milliseconds when recording stopped.
        coordinates: Recorded samples in arrival order (initial fix first).
    """

    id: str
    start_ms: int
    end_ms: int
    coordinates: tuple[Coordinate, ...]

    @property
    def duration_seconds(self) -> float:
        """Session duration in seconds."""

        return max(0.0, (self.end_ms - self.start_ms) / 1000.0)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the exchange record shape (camelCase keys)."""

        return {
            "id": self.id,
            "startTime": self.start_ms,
            "endTime": self.end_ms,
            "coordinates": [c.to_dict() for c in self.coordinates],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Session:
        """Parse an exchange record.

        Raises:
            KeyError: If a required field is missing.
            ValueError: If a field cannot be converted.
            TypeError: If a field has the wrong shape.
        """

        coords: Sequence[Mapping[str, Any]] = data["coordinates"]
        return cls(
            id=str(data["id"]),
            start_ms=int(data["startTime"]),
            end_ms=int(data["endTime"]),
            coordinates=tuple(Coordinate.from_dict(c) for c in coords),
        )


GridCounts = dict[CellId, int]

DEFAULT_TZ: Final[str] = "Asia/Tokyo"
