"""
Lovebirds Assistant: Availability Scheduler.

Picks send times for daily questions, needs-suggestion nudges and date
reminders that respect the user's preferred times and avoid calendar events.

The scheduler never fails loudly: a failed read is logged and treated as
"no data" or "not busy" so that notification flow is never blocked.
"""

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta
from typing import TYPE_CHECKING, Callable
from zoneinfo import ZoneInfo

from src.config import settings
from src.data.models import (
    CalendarEvent,
    NotificationPreference,
    NotificationType,
    ScheduledNotification,
)

if TYPE_CHECKING:
    from src.ports.calendar_port import CalendarPort
    from src.ports.preferences_port import PreferencesPort

logger = logging.getLogger(__name__)

PROBE_INTERVAL_MINUTES = 30
DAILY_QUESTION_MAX_HOURS = 2
DATE_LOOKAHEAD_DAYS = 7
MAX_DATE_SUGGESTIONS = 3

DATE_HOUR_BY_TIME_OF_DAY = {
    "morning": 9,
    "afternoon": 14,
    "evening": 19,
}
_DEFAULT_TIME_OF_DAY = "evening"

# Indexed by datetime.weekday(); independent of the process locale
WEEKDAY_NAMES = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
)

_USER_PREFERRED_REASON = "User preferred time, not during busy period"


def _parse_hhmm(value: str) -> tuple[int, int] | None:
    """Parse "HH:MM" into (hour, minute); None if malformed."""
    if not value:
        return None
    try:
        parsed = datetime.strptime(value.strip(), "%H:%M")
    except (ValueError, TypeError, AttributeError):
        return None
    return parsed.hour, parsed.minute


def _default_clock() -> datetime:
    return datetime.now(ZoneInfo(settings.TIMEZONE))


class NotificationScheduler:
    """Computes non-conflicting notification times for one user at a time."""

    def __init__(
        self,
        preferences: PreferencesPort,
        calendar: CalendarPort,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._preferences = preferences
        self._calendar = calendar
        self._clock = clock or _default_clock

    # -- preferences -------------------------------------------------------

    async def _load_preferences(self, user_id: str) -> NotificationPreference | None:
        try:
            record = await self._preferences.get_notification_preferences(user_id)
        except Exception as exc:
            logger.error("Failed to load notification preferences for %s: %s", user_id, exc)
            return None
        if not record:
            return None
        return NotificationPreference.from_record(user_id, record)

    # -- busy check --------------------------------------------------------

    async def is_user_busy_at(self, user_id: str, instant: datetime) -> bool:
        """True if any event on the instant's calendar day covers it.

        Boundaries are inclusive. Any failure counts as "not busy".
        """
        day_start = datetime.combine(instant.date(), time.min, tzinfo=instant.tzinfo)
        day_end = datetime.combine(instant.date(), time.max, tzinfo=instant.tzinfo)

        try:
            records = await self._calendar.get_calendar_events(
                user_id, day_start.isoformat(), day_end.isoformat(),
            )
        except Exception as exc:
            logger.error("Failed to check if %s is busy at %s: %s", user_id, instant, exc)
            return False

        for record in records or []:
            try:
                event = CalendarEvent.from_record(record, default_tz=instant.tzinfo)
                if event.covers(instant):
                    return True
            except (ValueError, TypeError) as exc:
                logger.warning("Skipping malformed calendar event %r: %s", record, exc)
        return False

    async def _find_next_available_slot(
        self, user_id: str, preferred: datetime, max_hours: int,
    ) -> datetime | None:
        """Probe forward from ``preferred`` in fixed steps below the ceiling."""
        now = self._clock()
        max_checks = (max_hours * 60) // PROBE_INTERVAL_MINUTES

        for i in range(1, max_checks):
            candidate = preferred + timedelta(minutes=i * PROBE_INTERVAL_MINUTES)
            if candidate <= now:
                continue
            if not await self.is_user_busy_at(user_id, candidate):
                return candidate
            logger.debug("User %s busy at %s, probing further", user_id, candidate)
        return None

    # -- operations --------------------------------------------------------

    async def best_time_for_daily_question(self, user_id: str) -> datetime | None:
        """Best send time for today's daily question, or None."""
        prefs = await self._load_preferences(user_id)
        if prefs is None or not prefs.daily_question_time:
            return None

        hm = _parse_hhmm(prefs.daily_question_time)
        if hm is None:
            logger.warning(
                "Invalid daily_question_time for %s: %r", user_id, prefs.daily_question_time,
            )
            return None

        now = self._clock()
        preferred = now.replace(hour=hm[0], minute=hm[1], second=0, microsecond=0)

        if preferred > now and not await self.is_user_busy_at(user_id, preferred):
            return preferred

        slot = await self._find_next_available_slot(
            user_id, preferred, DAILY_QUESTION_MAX_HOURS,
        )
        if slot is None:
            logger.info("No free slot for %s's daily question near %s", user_id, preferred)
        return slot

    async def best_times_for_needs_suggestions(self, user_id: str) -> list[datetime]:
        """Configured suggestion times still ahead today and not busy."""
        prefs = await self._load_preferences(user_id)
        if prefs is None or not prefs.needs_suggestion_times:
            return []

        now = self._clock()
        available: list[datetime] = []
        for raw in prefs.needs_suggestion_times:
            hm = _parse_hhmm(raw)
            if hm is None:
                logger.warning("Invalid needs_suggestion_time for %s: %r", user_id, raw)
                continue
            candidate = now.replace(hour=hm[0], minute=hm[1], second=0, microsecond=0)
            if candidate > now and not await self.is_user_busy_at(user_id, candidate):
                available.append(candidate)
        return available

    async def best_times_for_date_suggestions(
        self, user_id: str, partner_id: str,
    ) -> list[ScheduledNotification]:
        """Up to three date reminders in the next week when both partners are free."""
        prefs = await self._load_preferences(user_id)
        if prefs is None or not prefs.date_suggestion_days:
            return []

        time_of_day = prefs.date_suggestion_time_preference or _DEFAULT_TIME_OF_DAY
        target_hour = DATE_HOUR_BY_TIME_OF_DAY.get(
            time_of_day, DATE_HOUR_BY_TIME_OF_DAY[_DEFAULT_TIME_OF_DAY],
        )

        now = self._clock()
        suggestions: list[ScheduledNotification] = []

        for day_offset in range(DATE_LOOKAHEAD_DAYS):
            check_date = now + timedelta(days=day_offset)
            day_name = WEEKDAY_NAMES[check_date.weekday()]
            if day_name not in prefs.date_suggestion_days:
                continue

            candidate = check_date.replace(hour=target_hour, minute=0, second=0, microsecond=0)
            if candidate <= now:
                continue
            if await self.is_user_busy_at(user_id, candidate):
                continue
            if await self.is_user_busy_at(partner_id, candidate):
                continue

            suggestions.append(ScheduledNotification(
                type=NotificationType.DATE_SUGGESTION,
                user_id=user_id,
                scheduled_time=candidate,
                reason=f"Preferred {time_of_day} time on {day_name}",
            ))
            if len(suggestions) >= MAX_DATE_SUGGESTIONS:
                break

        return suggestions

    async def schedule_all_notifications(
        self, user_id: str, partner_id: str | None = None,
    ) -> list[ScheduledNotification]:
        """Every notification type for one user, in send-type order."""
        scheduled: list[ScheduledNotification] = []

        daily = await self.best_time_for_daily_question(user_id)
        if daily is not None:
            scheduled.append(ScheduledNotification(
                type=NotificationType.DAILY_QUESTION,
                user_id=user_id,
                scheduled_time=daily,
                reason=_USER_PREFERRED_REASON,
            ))

        for when in await self.best_times_for_needs_suggestions(user_id):
            scheduled.append(ScheduledNotification(
                type=NotificationType.NEEDS_SUGGESTION,
                user_id=user_id,
                scheduled_time=when,
                reason=_USER_PREFERRED_REASON,
            ))

        if partner_id:
            scheduled.extend(
                await self.best_times_for_date_suggestions(user_id, partner_id)
            )

        logger.info("Scheduled %d notifications for user %s", len(scheduled), user_id)
        return scheduled
