"""Preferences port: abstract interface for notification-time preferences."""

from __future__ import annotations

from typing import Protocol


class PreferencesPort(Protocol):
    """Read-only access to the notification preferences store."""

    async def get_notification_preferences(self, user_id: str) -> dict | None:
        """Return the user's preference record, or None if never configured.

        Known keys: daily_question_time ("HH:MM"), needs_suggestion_times
        (list of "HH:MM"), date_suggestion_days (weekday names) and
        date_suggestion_time_preference (morning | afternoon | evening).
        """
        ...
