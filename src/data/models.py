"""
Lovebirds Assistant: Data Models.

Plain dataclasses and enums shared by the scheduler, the suggestion engine
and the storage adapters. Records coming from a data store are dicts; the
``from_record`` constructors turn them into typed objects, and ``to_record``
turns any model back into a storable dict.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime, timezone, tzinfo
from enum import Enum

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class LoveLanguage(Enum):
    WORDS = "words"
    QUALITY_TIME = "quality_time"
    GIFTS = "gifts"
    ACTS = "acts"
    TOUCH = "touch"


class CommunicationStyle(Enum):
    DIRECT = "direct"
    GENTLE = "gentle"
    PLAYFUL = "playful"
    RESERVED = "reserved"


class SuggestionType(Enum):
    REASSURANCE = "reassurance"
    AFFECTION = "affection"
    QUALITY_TIME = "quality_time"
    APPRECIATION = "appreciation"
    SUPPORT = "support"
    CELEBRATION = "celebration"
    RECONNECTION = "reconnection"
    CHECK_IN = "check_in"


class NeedCategory(Enum):
    COMMUNICATION = "communication"
    AFFECTION = "affection"
    QUALITY_TIME = "quality_time"
    REASSURANCE = "reassurance"
    SUPPORT = "support"
    SPACE = "space"
    APPRECIATION = "appreciation"
    UNDERSTANDING = "understanding"
    CONSISTENCY = "consistency"
    PHYSICAL_INTIMACY = "physical_intimacy"
    FUN = "fun"
    OTHER = "other"


class Urgency(Enum):
    NOT_URGENT = "not_urgent"
    WOULD_HELP = "would_help"
    IMPORTANT = "important"


class NeedStatus(Enum):
    PENDING = "pending"
    ACKNOWLEDGED = "acknowledged"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    EXPIRED = "expired"


class ActionType(Enum):
    SEND_GIFT = "send_gift"
    SCHEDULE_DATE = "schedule_date"
    SEND_MESSAGE = "send_message"
    GIVE_SPACE = "give_space"
    CHECK_IN_LATER = "check_in_later"


class NotificationType(Enum):
    DAILY_QUESTION = "daily_question"
    NEEDS_SUGGESTION = "needs_suggestion"
    DATE_SUGGESTION = "date_suggestion"


class LearningEventType(Enum):
    ACCEPTED = "accepted"
    SKIPPED = "skipped"
    MODIFIED = "modified"
    DISMISSED = "dismissed"


class EngagementEventType(Enum):
    NEED_SUBMITTED = "need_submitted"
    FEATURE_ENGAGED = "feature_engaged"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_iso_datetime(value: str, default_tz: tzinfo | None = None) -> datetime:
    """Parse an ISO-8601 timestamp; naive values get ``default_tz``.

    Raises ValueError on malformed input.
    """
    if not value:
        raise ValueError("Empty timestamp")
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None and default_tz is not None:
        parsed = parsed.replace(tzinfo=default_tz)
    return parsed


def _optional_datetime(value: str | datetime | None) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return parse_iso_datetime(value, default_tz=timezone.utc)


def _to_plain(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if is_dataclass(value) and not isinstance(value, type):
        return to_record(value)
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_plain(v) for k, v in value.items()}
    return value


def to_record(obj) -> dict:
    """Serialize a model into a plain dict (enum values, ISO timestamps)."""
    return {f.name: _to_plain(getattr(obj, f.name)) for f in fields(obj)}


# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------


@dataclass
class NotificationPreference:
    """Per-user send-time configuration, owned by the preferences store."""

    user_id: str
    daily_question_time: str | None = None          # "HH:MM"
    needs_suggestion_times: list[str] = field(default_factory=list)
    date_suggestion_days: list[str] = field(default_factory=list)  # "Monday", ...
    date_suggestion_time_preference: str | None = None  # morning | afternoon | evening

    @classmethod
    def from_record(cls, user_id: str, record: dict) -> NotificationPreference:
        return cls(
            user_id=user_id,
            daily_question_time=record.get("daily_question_time") or None,
            needs_suggestion_times=list(record.get("needs_suggestion_times") or []),
            date_suggestion_days=list(record.get("date_suggestion_days") or []),
            date_suggestion_time_preference=record.get("date_suggestion_time_preference") or None,
        )


@dataclass
class CalendarEvent:
    """A busy interval on a user's calendar."""

    start_time: datetime
    end_time: datetime
    title: str = ""

    @classmethod
    def from_record(cls, record: dict, default_tz: tzinfo | None = None) -> CalendarEvent:
        """Build from a store record. Raises ValueError on bad timestamps."""
        return cls(
            start_time=parse_iso_datetime(record.get("start_time", ""), default_tz),
            end_time=parse_iso_datetime(record.get("end_time", ""), default_tz),
            title=record.get("title") or "",
        )

    def covers(self, instant: datetime) -> bool:
        """True if ``instant`` falls inside the event, boundaries included."""
        return self.start_time <= instant <= self.end_time


@dataclass
class ScheduledNotification:
    """A computed send recommendation. Never persisted by the scheduler."""

    type: NotificationType
    user_id: str
    scheduled_time: datetime
    reason: str


# ---------------------------------------------------------------------------
# Profiles and needs
# ---------------------------------------------------------------------------


def _enum_or_default(enum_cls, raw, default):
    if raw is None or raw == "":
        return default
    try:
        return enum_cls(raw)
    except ValueError:
        logger.warning("Unknown %s value %r, using %s", enum_cls.__name__, raw, default.value)
        return default


@dataclass
class PartnerProfile:
    """What the app knows about a partner. Missing fields fall back to defaults."""

    user_id: str = ""
    name: str = "them"
    love_language: LoveLanguage = LoveLanguage.QUALITY_TIME
    communication_style: CommunicationStyle = CommunicationStyle.GENTLE
    favorite_activities: list[str] = field(default_factory=list)
    budget_comfort: str | None = None   # low | medium | high
    energy_level: str | None = None     # low | medium | high
    is_long_distance: bool = False

    @classmethod
    def from_record(cls, user_id: str, record: dict | None) -> PartnerProfile:
        record = record or {}
        defaults = cls()
        return cls(
            user_id=user_id,
            name=record.get("name") or defaults.name,
            love_language=_enum_or_default(
                LoveLanguage, record.get("love_language"), defaults.love_language,
            ),
            communication_style=_enum_or_default(
                CommunicationStyle, record.get("communication_style"),
                defaults.communication_style,
            ),
            favorite_activities=list(record.get("favorite_activities") or []),
            budget_comfort=record.get("budget_comfort") or None,
            energy_level=record.get("energy_level") or None,
            is_long_distance=bool(record.get("is_long_distance", False)),
        )


@dataclass
class RelationshipNeed:
    """A "what feels missing?" request submitted by one partner."""

    id: str
    couple_id: str
    requester_id: str
    receiver_id: str
    need_category: NeedCategory
    urgency: Urgency
    context: str = ""                  # optional 1-2 sentences
    custom_category: str | None = None  # only when need_category is OTHER
    status: NeedStatus = NeedStatus.PENDING
    show_raw_need_to_partner: bool = False
    created_at: datetime | None = None
    acknowledged_at: datetime | None = None
    resolved_at: datetime | None = None
    expires_at: datetime | None = None

    @classmethod
    def from_record(cls, record: dict) -> RelationshipNeed:
        return cls(
            id=str(record["id"]),
            couple_id=record.get("couple_id", ""),
            requester_id=record.get("requester_id", ""),
            receiver_id=record.get("receiver_id", ""),
            need_category=NeedCategory(record["need_category"]),
            urgency=Urgency(record.get("urgency") or Urgency.WOULD_HELP.value),
            context=record.get("context") or "",
            custom_category=record.get("custom_category"),
            status=NeedStatus(record.get("status") or NeedStatus.PENDING.value),
            show_raw_need_to_partner=bool(record.get("show_raw_need_to_partner", False)),
            created_at=_optional_datetime(record.get("created_at")),
            acknowledged_at=_optional_datetime(record.get("acknowledged_at")),
            resolved_at=_optional_datetime(record.get("resolved_at")),
            expires_at=_optional_datetime(record.get("expires_at")),
        )


@dataclass
class SubmitNeedRequest:
    couple_id: str
    requester_id: str
    need_category: NeedCategory
    urgency: Urgency
    context: str = ""
    custom_category: str | None = None
    show_raw_need_to_partner: bool = False


@dataclass
class NeedResolution:
    """How the receiver says a need was handled."""

    need_id: str
    resolved_by: str            # user id that marked it resolved
    how_it_was_resolved: str
    was_helpful: bool
    feedback: str | None = None


# ---------------------------------------------------------------------------
# Suggestions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SuggestionTemplate:
    """One love-language x suggestion-type row: a message per tone."""

    direct: str
    gentle: str
    playful: str
    reserved: str

    def __post_init__(self) -> None:
        for style in CommunicationStyle:
            if not getattr(self, style.value):
                raise ValueError(f"Template is missing the {style.value!r} tone")

    def for_style(self, style: CommunicationStyle) -> str:
        return getattr(self, style.value)


@dataclass
class SuggestionContext:
    """Context used to generate message suggestions."""

    trigger_reason: str
    partner_love_language: LoveLanguage
    partner_communication_style: CommunicationStyle
    partner_name: str = "them"
    current_mood: str | None = None  # stressed | happy | neutral | distant


@dataclass
class MessageSuggestion:
    id: str
    tone: CommunicationStyle
    message: str
    reasoning: str
    love_language_alignment: LoveLanguage
    suggestion_type: SuggestionType
    confidence: int  # 0-100

    def __post_init__(self) -> None:
        if not 0 <= self.confidence <= 100:
            raise ValueError(f"confidence must be within 0-100, got {self.confidence}")


@dataclass
class ActionSuggestion:
    """A concrete action, not just a message."""

    type: ActionType
    description: str
    reasoning: str
    love_language_alignment: LoveLanguage


@dataclass
class NeedResponse:
    """Generated guidance for the partner who receives a need."""

    receiver_message: str
    suggested_messages: list[MessageSuggestion]
    suggested_actions: list[ActionSuggestion]
    reasoning: str
    safety_note: str | None = None
    requester_guidance: str | None = None


@dataclass
class DateSuggestion:
    id: str
    title: str
    description: str
    category: str               # virtual | in_person | async
    love_language_focus: LoveLanguage
    energy_level: str           # low | medium | high
    duration: str               # "30 minutes", "2 hours"
    reasoning: str
    steps: list[str] = field(default_factory=list)


@dataclass
class NeedsAnalytics:
    couple_id: str
    total_needs_submitted: int
    needs_per_month: int
    needs_trend: str            # increasing | stable | decreasing
    most_common_need: NeedCategory
    least_common_need: NeedCategory
    average_resolution_time: int  # hours
    resolution_rate: int          # 0-100
    spontaneous_resolution: int
    needing_app_less: bool
