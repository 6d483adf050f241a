"""Calendar port: abstract interface for reading a user's busy intervals.

Core modules depend on this protocol, never on a specific provider.
"""

from __future__ import annotations

from typing import Protocol


class CalendarError(Exception):
    """Raised when any calendar provider operation fails."""


class CalendarPort(Protocol):
    """Abstract calendar interface used by core modules."""

    async def get_calendar_events(
        self, user_id: str, start_iso: str, end_iso: str
    ) -> list[dict]:
        """Return events overlapping [start_iso, end_iso].

        Each dict carries ISO ``start_time`` and ``end_time`` strings.
        """
        ...
