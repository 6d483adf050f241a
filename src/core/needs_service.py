"""
Lovebirds Assistant: Needs Service.

Handles the "What feels missing?" flow: a partner submits a need, the
suggestion engine turns it into guidance for the other partner, and the
need moves through pending → acknowledged → in_progress → resolved
(or expires after a week).

Every write here propagates failures to the caller.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Callable

from src.data.models import (
    EngagementEventType,
    NeedCategory,
    NeedResolution,
    NeedsAnalytics,
    NeedStatus,
    PartnerProfile,
    RelationshipNeed,
    SubmitNeedRequest,
    to_record,
)

if TYPE_CHECKING:
    from src.core.suggestion_engine import SuggestionEngine
    from src.ports.profile_port import ProfilePort
    from src.ports.store_port import NeedsStorePort

logger = logging.getLogger(__name__)

NEED_TTL_DAYS = 7
SUBMITTED_NEEDS_LIMIT = 20
_OPEN_STATUSES = [NeedStatus.PENDING.value, NeedStatus.ACKNOWLEDGED.value]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class NeedsService:
    """Submission and lifecycle of relationship needs."""

    def __init__(
        self,
        store: NeedsStorePort,
        profiles: ProfilePort,
        engine: SuggestionEngine,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._profiles = profiles
        self._engine = engine
        self._clock = clock or _utcnow

    async def submit_need(self, request: SubmitNeedRequest) -> str:
        """Store a need together with generated guidance; returns its id.

        Raises ValueError if the couple is unknown or the requester is not in it.
        """
        couple = await self._store.get_relationship(request.couple_id)
        if couple is None:
            raise ValueError(f"Relationship {request.couple_id} not found")

        if couple["partner_a_id"] == request.requester_id:
            receiver_id = couple["partner_b_id"]
        elif couple["partner_b_id"] == request.requester_id:
            receiver_id = couple["partner_a_id"]
        else:
            raise ValueError(
                f"User {request.requester_id} is not part of relationship {request.couple_id}"
            )

        profile = PartnerProfile.from_record(
            receiver_id, await self._profiles.get_partner_profile(receiver_id),
        )

        now = self._clock()
        need = RelationshipNeed(
            id="",
            couple_id=request.couple_id,
            requester_id=request.requester_id,
            receiver_id=receiver_id,
            need_category=request.need_category,
            urgency=request.urgency,
            context=request.context,
            custom_category=request.custom_category,
            show_raw_need_to_partner=request.show_raw_need_to_partner,
            created_at=now,
            expires_at=now + timedelta(days=NEED_TTL_DAYS),
        )
        response = self._engine.generate_need_response(need, profile)

        record = to_record(need)
        record.pop("id")
        record["ai_suggestion"] = to_record(response)

        stored = await self._store.insert_need(record)
        await self._store.record_engagement_event({
            "user_id": request.requester_id,
            "event_type": EngagementEventType.NEED_SUBMITTED.value,
            "context": {
                "need_category": request.need_category.value,
                "urgency": request.urgency.value,
            },
            "created_at": now.isoformat(),
        })
        logger.info(
            "Need #%s (%s, %s) submitted by %s",
            stored["id"], request.need_category.value, request.urgency.value,
            request.requester_id,
        )
        return str(stored["id"])

    async def get_pending_needs(self, user_id: str) -> list[RelationshipNeed]:
        """Open needs where ``user_id`` is the receiver."""
        rows = await self._store.list_needs(receiver_id=user_id, statuses=_OPEN_STATUSES)
        return [RelationshipNeed.from_record(r) for r in rows]

    async def get_submitted_needs(self, user_id: str) -> list[RelationshipNeed]:
        """The requester's most recent needs."""
        rows = await self._store.list_needs(
            requester_id=user_id, limit=SUBMITTED_NEEDS_LIMIT,
        )
        return [RelationshipNeed.from_record(r) for r in rows]

    async def acknowledge_need(self, need_id: str) -> None:
        await self._store.update_need(need_id, {
            "status": NeedStatus.ACKNOWLEDGED.value,
            "acknowledged_at": self._clock().isoformat(),
        })

    async def mark_in_progress(self, need_id: str) -> None:
        await self._store.update_need(need_id, {"status": NeedStatus.IN_PROGRESS.value})

    async def resolve_need(self, resolution: NeedResolution) -> None:
        """Close a need and record how it was handled."""
        now = self._clock()
        await self._store.update_need(resolution.need_id, {
            "status": NeedStatus.RESOLVED.value,
            "resolved_at": now.isoformat(),
        })
        event_context = {
            "feature": "needs",
            "action": "resolved",
            "how_resolved": resolution.how_it_was_resolved,
            "was_helpful": resolution.was_helpful,
        }
        if resolution.feedback:
            event_context["feedback"] = resolution.feedback
        await self._store.record_engagement_event({
            "user_id": resolution.resolved_by,
            "event_type": EngagementEventType.FEATURE_ENGAGED.value,
            "context": event_context,
            "created_at": now.isoformat(),
        })
        logger.info("Need #%s resolved by %s", resolution.need_id, resolution.resolved_by)

    async def expire_old_needs(self) -> int:
        """Expire open needs past their expiry time; returns how many."""
        now = self._clock()
        rows = await self._store.list_needs(statuses=_OPEN_STATUSES)
        expired = 0
        for need in (RelationshipNeed.from_record(r) for r in rows):
            if need.expires_at is not None and need.expires_at < now:
                await self._store.update_need(need.id, {"status": NeedStatus.EXPIRED.value})
                expired += 1
        if expired:
            logger.info("Expired %d old needs", expired)
        return expired

    async def get_needs_analytics(self, couple_id: str) -> NeedsAnalytics:
        rows = await self._store.list_needs(couple_id=couple_id)
        needs = [RelationshipNeed.from_record(r) for r in rows]
        return compute_needs_analytics(couple_id, needs, self._clock())


def compute_needs_analytics(
    couple_id: str, needs: list[RelationshipNeed], now: datetime,
) -> NeedsAnalytics:
    """Summarize a couple's needs history. Pure; no I/O."""
    total = len(needs)
    thirty_days_ago = now - timedelta(days=30)
    fifteen_days_ago = now - timedelta(days=15)

    dated = [n for n in needs if n.created_at is not None]
    needs_per_month = sum(1 for n in dated if n.created_at >= thirty_days_ago)
    recent = sum(1 for n in dated if n.created_at >= fifteen_days_ago)
    previous = sum(1 for n in dated if thirty_days_ago <= n.created_at < fifteen_days_ago)

    if recent > previous * 1.5:
        trend = "increasing"
    elif recent < previous * 0.5:
        trend = "decreasing"
    else:
        trend = "stable"

    counts = Counter(n.need_category for n in needs)
    if counts:
        ranked = counts.most_common()
        most_common = ranked[0][0]
        least_common = min(counts.items(), key=lambda item: item[1])[0]
    else:
        most_common = NeedCategory.COMMUNICATION
        least_common = NeedCategory.SPACE

    resolved = [n for n in needs if n.status is NeedStatus.RESOLVED]
    resolution_rate = _round_half_up(len(resolved) / total * 100) if total else 0

    hours = [
        (n.resolved_at - n.created_at).total_seconds() / 3600
        for n in resolved
        if n.resolved_at is not None and n.created_at is not None
    ]
    average_resolution_time = _round_half_up(sum(hours) / len(hours)) if hours else 24

    # Resolved before the receiver ever opened the suggestion
    spontaneous = sum(
        1 for n in resolved
        if n.resolved_at and n.acknowledged_at and n.resolved_at < n.acknowledged_at
    )

    needing_app_less = (
        trend == "decreasing"
        and spontaneous > len(resolved) * 0.3
        and average_resolution_time < 12
    )

    return NeedsAnalytics(
        couple_id=couple_id,
        total_needs_submitted=total,
        needs_per_month=needs_per_month,
        needs_trend=trend,
        most_common_need=most_common,
        least_common_need=least_common,
        average_resolution_time=average_resolution_time,
        resolution_rate=resolution_rate,
        spontaneous_resolution=spontaneous,
        needing_app_less=needing_app_less,
    )
