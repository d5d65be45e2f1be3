"""A location source that replays already-recorded coordinates."""

from __future__ import annotations

from typing import Callable, Sequence

from footprint_grid.errors import LocationUnavailable
from footprint_grid.models import Coordinate


class ReplaySubscription:
    def __init__(self) -> None:
        self.active = True

    def remove(self) -> None:
        self.active = False


class ReplayLocationSource:
    """Serves the first coordinate as the initial fix, the rest via `pump`.

    Samples are delivered synchronously on the caller's thread, only while
    a subscription is active.
    """

    def __init__(self, coordinates: Sequence[Coordinate], *, granted: bool = True) -> None:
        self._coords = list(coordinates)
        self._pos = 0
        self.granted = granted
        self._callback: Callable[[Coordinate], None] | None = None
        self._subscription: ReplaySubscription | None = None

    def request_permission(self) -> bool:
        return self.granted

    def current_position(self) -> Coordinate:
        if self._pos >= len(self._coords):
            raise LocationUnavailable("没有可用的初始位置")
        c = self._coords[self._pos]
        self._pos += 1
        return c

    def watch(self, callback: Callable[[Coordinate], None]) -> ReplaySubscription:
        self._callback = callback
        self._subscription = ReplaySubscription()
        return self._subscription

    @property
    def delivered(self) -> int:
        """Samples handed out so far, the initial fix included."""

        return self._pos

    @property
    def remaining(self) -> int:
        return len(self._coords) - self._pos

    def pump(self, limit: int | None = None) -> int:
        """Deliver up to ``limit`` pending samples (all if None). Returns how many."""

        delivered = 0
        while self._pos < len(self._coords) and (limit is None or delivered < limit):
            if self._callback is None or self._subscription is None or not self._subscription.active:
                break
            c = self._coords[self._pos]
            self._pos += 1
            self._callback(c)
            delivered += 1
        return delivered
