"""Session persistence.

Sessions are stored as one JSON document keyed by `GPS_SESSIONS_KEY`, using
the record shape of `Session.to_dict`. Only the standard library is used.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Final, Protocol

from footprint_grid.errors import PersistenceFailure
from footprint_grid.models import Session

logger = logging.getLogger(__name__)

GPS_SESSIONS_KEY: Final[str] = "gps_sessions"


class SessionStore(Protocol):
    """Where sealed sessions go and come back from."""

    def load(self) -> list[Session]:
        """Return all stored sessions in append order.

        Raises:
            PersistenceFailure: If the stored data cannot be read or parsed.
        """
        ...

    def append(self, session: Session) -> None:
        """Persist one more session.

        Raises:
            PersistenceFailure: If the write fails.
        """
        ...


class JsonSessionStore:
    """Sessions in a single JSON file, rewritten atomically on every append."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[Session]:
        """Load sessions (empty list if the file does not exist or is blank)."""

        try:
            if not self._path.exists():
                return []
            raw = self._path.read_bytes()
        except OSError as exc:
            raise PersistenceFailure(f"无法读取会话文件：{self._path}") from exc

        try:
            text = raw.decode("utf-8").strip()
            if not text:
                return []
            doc = json.loads(text)
            records = doc[GPS_SESSIONS_KEY]
            if not isinstance(records, list):
                raise TypeError(f"{GPS_SESSIONS_KEY!r} is not a list")
            return [Session.from_dict(r) for r in records]
        except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError, ValueError, OverflowError) as exc:
            # Keep a copy of the broken file so the next append cannot destroy it.
            self._backup(raw)
            raise PersistenceFailure(f"会话文件格式错误：{self._path}（{exc}）") from exc

    def append(self, session: Session) -> None:
        """Append a session, replacing the file atomically.

        A malformed existing file is not overwritten: the append fails with
        `PersistenceFailure` instead.
        """

        sessions = self.load()
        sessions.append(session)
        self._write({GPS_SESSIONS_KEY: [s.to_dict() for s in sessions]})

    def _write(self, doc: dict[str, Any]) -> None:
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(doc, ensure_ascii=False, indent=2), encoding="utf-8")
            tmp.replace(self._path)
        except OSError as exc:
            raise PersistenceFailure(f"无法写入会话文件：{self._path}") from exc

    def _backup(self, raw: bytes) -> None:
        backup = self._path.with_suffix(self._path.suffix + ".broken")
        try:
            backup.write_bytes(raw)
        except OSError:
            logger.warning("无法写入备份文件：%s", backup)


class MemorySessionStore:
    """In-process store, mostly for tests and replay runs."""

    def __init__(self, sessions: list[Session] | None = None, *, fail_on_append: bool = False) -> None:
        self._sessions: list[Session] = list(sessions or [])
        self.fail_on_append = fail_on_append

    def load(self) -> list[Session]:
        return list(self._sessions)

    def append(self, session: Session) -> None:
        if self.fail_on_append:
            raise PersistenceFailure("存储不可写（fail_on_append=True）")
        self._sessions.append(session)


def load_sessions_best_effort(store: SessionStore) -> list[Session]:
    """Load stored sessions, falling back to an empty list on failure."""

    try:
        return store.load()
    except PersistenceFailure as exc:
        logger.warning("读取历史会话失败，按空列表处理：%s", exc)
        return []
