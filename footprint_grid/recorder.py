"""Lifecycle of a single tracking session.

The recorder buffers samples from a location source while recording and, on
stop, seals them into an immutable `Session` that is handed to a
`SessionStore`. Grid counts are derived from a consistent snapshot of the
sealed sessions plus the live buffer.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Protocol

from footprint_grid.aggregate import compute_grid_counts
from footprint_grid.errors import AlreadyRecording, LocationUnavailable, PermissionDenied, PersistenceFailure
from footprint_grid.models import Coordinate, GridCounts, Session
from footprint_grid.storage import SessionStore, load_sessions_best_effort
from footprint_grid.timeutils import now_ms

logger = logging.getLogger(__name__)


class Subscription(Protocol):
    def remove(self) -> None: ...


class LocationSource(Protocol):
    """Device-side location collaborator."""

    def request_permission(self) -> bool:
        """Return True if foreground location access is granted."""
        ...

    def current_position(self) -> Coordinate:
        """Return one fix now.

        Raises:
            LocationUnavailable: If no fix can be obtained.
        """
        ...

    def watch(self, callback: Callable[[Coordinate], None]) -> Subscription:
        """Deliver future samples to ``callback`` until the subscription is removed.

        Raises:
            LocationUnavailable: If the subscription cannot be set up.
        """
        ...


class RecorderState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"


class SessionRecorder:
    """Idle -> Recording -> Idle state machine around one location source.

    Every state transition and every appended sample is serialized by an
    internal lock, so samples may arrive on another thread than the caller
    of `start`/`stop`.
    """

    def __init__(
        self,
        source: LocationSource,
        store: SessionStore,
        *,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._source = source
        self._store = store
        self._clock = clock
        self._lock = threading.RLock()
        self._state = RecorderState.IDLE
        self._buffer: list[Coordinate] = []
        self._start_ms: int | None = None
        self._subscription: Subscription | None = None
        self._sessions: list[Session] = []
        self.last_error: Exception | None = None

    @property
    def state(self) -> RecorderState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state is RecorderState.RECORDING

    def load(self) -> list[Session]:
        """Replace the in-memory session list with what the store holds.

        A store that cannot be read yields an empty list (logged).
        """

        loaded = load_sessions_best_effort(self._store)
        with self._lock:
            self._sessions = list(loaded)
            return list(self._sessions)

    def start(self) -> None:
        """Begin a new session with one immediate fix.

        Raises:
            AlreadyRecording: Already in Recording state; nothing changes.
            PermissionDenied: Location permission not granted; stays Idle.
            LocationUnavailable: No initial fix or no subscription; stays Idle.
        """

        with self._lock:
            if self._state is RecorderState.RECORDING:
                raise AlreadyRecording("已经在记录中")

            self.last_error = None
            if not self._source.request_permission():
                raise PermissionDenied("位置权限未被授予")

            first = self._source.current_position()
            self._buffer = [first]
            self._start_ms = self._clock()
            self._state = RecorderState.RECORDING

            try:
                self._subscription = self._source.watch(self.on_sample)
            except LocationUnavailable:
                self._reset()
                raise
            logger.info("开始记录：初始位置=(%.6f, %.6f)", first.latitude, first.longitude)

    def on_sample(self, c: Coordinate) -> None:
        """Append one sample. Ignored unless recording."""

        with self._lock:
            if self._state is not RecorderState.RECORDING:
                logger.debug("忽略非记录状态下的采样点：%s", c)
                return
            self._buffer.append(c)

    def stop(self) -> Session | None:
        """Seal the buffer into a Session and persist it.

        Returns:
            The sealed session, or None if nothing was recording.

        Note:
            A failed write is logged and stored in `last_error`; the session
            still counts for this run but may be missing after a reload.
        """

        with self._lock:
            if self._state is not RecorderState.RECORDING:
                return None

            subscription, self._subscription = self._subscription, None
            if subscription is not None:
                try:
                    subscription.remove()
                except Exception:
                    # 取消订阅失败不影响封存：此后到达的采样点会因 Idle 状态被忽略
                    logger.warning("取消位置订阅失败", exc_info=True)

            session: Session | None = None
            if self._buffer and self._start_ms is not None:
                end_ms = self._clock()
                session = Session(
                    id=self._new_session_id(end_ms),
                    start_ms=self._start_ms,
                    end_ms=end_ms,
                    coordinates=tuple(self._buffer),
                )
                self._sessions.append(session)
            self._reset()

            if session is not None:
                try:
                    self._store.append(session)
                except PersistenceFailure as exc:
                    self.last_error = exc
                    logger.warning("会话保存失败（%s）：%s", session.id, exc)
                else:
                    logger.info("会话已保存：%s（%d 个点）", session.id, len(session.coordinates))
            return session

    def snapshot(self) -> tuple[tuple[Session, ...], tuple[Coordinate, ...]]:
        """Copy of (sealed sessions, live buffer), taken atomically."""

        with self._lock:
            return tuple(self._sessions), tuple(self._buffer)

    def grid_counts(self) -> GridCounts:
        """Per-cell session counts over all sealed sessions plus the live buffer."""

        sessions, buffer = self.snapshot()
        return compute_grid_counts(sessions, buffer)

    def _reset(self) -> None:
        self._buffer = []
        self._start_ms = None
        self._subscription = None
        self._state = RecorderState.IDLE

    def _new_session_id(self, end_ms: int) -> str:
        taken = {s.id for s in self._sessions}
        sid = f"session_{end_ms}"
        n = 1
        while sid in taken:
            sid = f"session_{end_ms}_{n}"
            n += 1
        return sid
