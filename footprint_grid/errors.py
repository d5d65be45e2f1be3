"""Exceptions raised by the recorder and the session store."""

from __future__ import annotations


class FootprintError(Exception):
    """Base class. None of these are fatal to the process."""


class PermissionDenied(FootprintError):
    """The location source refused permission; recording did not start."""


class LocationUnavailable(FootprintError):
    """The initial fix or the sample subscription could not be obtained."""


class AlreadyRecording(FootprintError):
    """`start` was called while a session is already being recorded."""


class PersistenceFailure(FootprintError):
    """Reading or writing stored sessions failed (including malformed data)."""
