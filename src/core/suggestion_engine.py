"""
Lovebirds Assistant: Suggestion Engine.

Turns a partner's love language and communication style into concrete
message and action suggestions, using the static tables in
``suggestion_templates`` plus light string personalization.

Read paths degrade to empty results on failure; write paths
(``store_suggestion``, ``record_suggestion_usage``) re-raise so the caller
never believes an unsaved suggestion was saved.
"""

from __future__ import annotations

import logging
import random
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from src.core.suggestion_templates import (
    LOVE_LANGUAGE_LABELS,
    get_all_variations,
    personalize,
    suggestion_type_for_need,
)
from src.data.models import (
    ActionSuggestion,
    ActionType,
    CommunicationStyle,
    DateSuggestion,
    LearningEventType,
    LoveLanguage,
    MessageSuggestion,
    NeedCategory,
    NeedResponse,
    PartnerProfile,
    RelationshipNeed,
    SuggestionContext,
    SuggestionType,
    Urgency,
    to_record,
)

if TYPE_CHECKING:
    from src.ports.profile_port import ProfilePort
    from src.ports.store_port import SuggestionStorePort

logger = logging.getLogger(__name__)

PRIMARY_CONFIDENCE = 90
ALTERNATIVE_CONFIDENCE = 70
REFRESH_CONFIDENCE = 75
PERSONALIZED_CONFIDENCE = 85
CONTEXT_CONFIDENCE = 90

MAX_NEED_MESSAGES = 3
MAX_NEED_ACTIONS = 3
CONTEXT_DISPLAY_CHARS = 80
RECEIVER_CONTEXT_CHARS = 50


# ---------------------------------------------------------------------------
# Need-response content
# ---------------------------------------------------------------------------

# What to say for each category. "other" has no generic phrasing on purpose.
CATEGORY_MESSAGES: dict[NeedCategory, str] = {
    NeedCategory.COMMUNICATION: "I'd love for us to really talk, not just about logistics. How are you, honestly?",
    NeedCategory.AFFECTION: "I don't say it enough: I love you, and you mean so much to me.",
    NeedCategory.QUALITY_TIME: "I want to give you my full attention. Can we plan some time that's just ours?",
    NeedCategory.REASSURANCE: "We're okay. I'm in this with you, and that isn't changing.",
    NeedCategory.SUPPORT: "Whatever you're carrying right now, you don't have to carry it alone.",
    NeedCategory.APPRECIATION: "I see everything you do for us, and I'm really grateful for you.",
    NeedCategory.UNDERSTANDING: "I want to understand how this feels for you. I'm listening, no fixing.",
    NeedCategory.CONSISTENCY: "I want you to be able to count on me. Let's find a rhythm that works for us.",
    NeedCategory.PHYSICAL_INTIMACY: "I miss being close to you. Can we make time to just be together?",
    NeedCategory.FUN: "We've been so serious lately. Let's do something just for fun this week!",
}

LOVE_LANGUAGE_MESSAGES: dict[LoveLanguage, str] = {
    LoveLanguage.WORDS: "I want you to hear it clearly: you matter to me more than I can put into words.",
    LoveLanguage.QUALITY_TIME: "Let's put the phones away and spend some real time together soon.",
    LoveLanguage.GIFTS: "I've got a little something for you, just because I was thinking of you.",
    LoveLanguage.ACTS: "Let me take something off your plate this week. What would help most?",
    LoveLanguage.TOUCH: "I can't wait to hold you. Sending you the biggest hug until then.",
}

# Receiver-facing summary when no context was shared
CATEGORY_RECEIVER_MESSAGES: dict[NeedCategory, str] = {
    NeedCategory.COMMUNICATION: "Your partner would love a deeper conversation with you.",
    NeedCategory.AFFECTION: "Your partner would love to feel a little more loved right now.",
    NeedCategory.QUALITY_TIME: "Your partner is craving some intentional time together.",
    NeedCategory.REASSURANCE: "Your partner could use some reassurance that you two are okay.",
    NeedCategory.SUPPORT: "Your partner could use some extra support right now.",
    NeedCategory.SPACE: "Your partner needs a little breathing room right now.",
    NeedCategory.APPRECIATION: "Your partner would love to feel seen and appreciated.",
    NeedCategory.UNDERSTANDING: "Your partner wants to feel heard and understood.",
    NeedCategory.CONSISTENCY: "Your partner would appreciate a bit more rhythm and reliability.",
    NeedCategory.PHYSICAL_INTIMACY: "Your partner is missing closeness with you.",
    NeedCategory.FUN: "Your partner is missing some lightness and fun together.",
    NeedCategory.OTHER: "Your partner shared that something feels missing.",
}

TONE_INTROS: dict[CommunicationStyle, str] = {
    CommunicationStyle.DIRECT: "Heads up:",
    CommunicationStyle.GENTLE: "A gentle nudge:",
    CommunicationStyle.PLAYFUL: "Psst!",
    CommunicationStyle.RESERVED: "Quick note:",
}

CATEGORY_ACTIONS: dict[NeedCategory, tuple[ActionType, str]] = {
    NeedCategory.COMMUNICATION: (ActionType.SCHEDULE_DATE, "Set aside 20 minutes tonight for a phone-free conversation"),
    NeedCategory.AFFECTION: (ActionType.SEND_MESSAGE, "Send a lockscreen love note they'll see first thing"),
    NeedCategory.QUALITY_TIME: (ActionType.SCHEDULE_DATE, "Plan a dedicated date this week, even a virtual one"),
    NeedCategory.REASSURANCE: (ActionType.SEND_MESSAGE, "Send a message reminding them where you stand"),
    NeedCategory.SUPPORT: (ActionType.CHECK_IN_LATER, "Check in later today to ask how they're holding up"),
    NeedCategory.APPRECIATION: (ActionType.SEND_MESSAGE, "Thank them for one specific thing they did recently"),
    NeedCategory.UNDERSTANDING: (ActionType.CHECK_IN_LATER, "Ask how they're feeling and listen without problem-solving"),
    NeedCategory.CONSISTENCY: (ActionType.SCHEDULE_DATE, "Agree on a regular check-in time you both can keep"),
    NeedCategory.PHYSICAL_INTIMACY: (ActionType.SCHEDULE_DATE, "Plan an evening with time to be close, or a video call if apart"),
    NeedCategory.FUN: (ActionType.SCHEDULE_DATE, "Plan something playful: a game night, a new place or a silly challenge"),
}

BUDGET_GIFT_IDEAS = {
    "low": "a handwritten note or their favorite snack",
    "medium": "a small thoughtful gift or a delivery of their favorite treat",
    "high": "a special surprise they'd never buy themselves",
}

ENERGY_DATE_IDEAS = {
    "low": "a cozy night in with their favorite movie",
    "medium": "a relaxed walk and dinner together",
    "high": "an active outing, like a hike or trying something new",
}

SPACE_MESSAGE = "Take all the time you need. I'm here whenever you're ready 💛"
SPACE_SAFETY_NOTE = (
    "Respect their need for space. Avoid repeated messages or pressure to talk, "
    "and don't take the distance personally."
)
IMPORTANT_SAFETY_NOTE = (
    "This feels important to your partner. If it's weighing on them, "
    "consider talking about it directly soon."
)
_FALLBACK_ACTION = "Send a thoughtful message letting them know you care"


# ---------------------------------------------------------------------------
# Date templates (placeholder for a future generative step)
# ---------------------------------------------------------------------------

DATE_TEMPLATES: list[dict] = [
    {
        "title": "Cook-along dinner date",
        "description": "Pick a recipe together, cook it at the same time and share the meal over video or at the same table.",
        "category": "virtual",
        "love_languages": list(LoveLanguage),
        "long_distance": None,  # None = suitable for both
        "energy_level": "medium",
        "duration": "2 hours",
        "steps": [
            "Choose a recipe you both can make",
            "Shop for ingredients ahead of time",
            "Start a call (or clear the kitchen) and cook together",
            "Eat together with phones away",
        ],
    },
]


def _truncate(text: str, limit: int) -> str:
    """Shorten ``text`` to ``limit`` characters, appending "..." when cut."""
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def _alternative_tones(primary: CommunicationStyle) -> list[CommunicationStyle]:
    """The other tones, in declaration order."""
    return [style for style in CommunicationStyle if style is not primary]


class SuggestionEngine:
    """Message, action and date suggestions for one partner at a time."""

    def __init__(
        self,
        profiles: ProfilePort,
        store: SuggestionStorePort,
        rng: random.Random | None = None,
    ) -> None:
        self._profiles = profiles
        self._store = store
        self._rng = rng or random.Random()

    # -- message suggestions ---------------------------------------------

    def generate_message_suggestions(
        self, context: SuggestionContext, suggestion_type: SuggestionType,
    ) -> list[MessageSuggestion]:
        """One suggestion in the partner's own tone plus two alternatives."""
        template = get_all_variations(context.partner_love_language, suggestion_type)
        primary = context.partner_communication_style
        label = LOVE_LANGUAGE_LABELS[context.partner_love_language]

        suggestions = [MessageSuggestion(
            id=_new_id("msg"),
            tone=primary,
            message=personalize(template.for_style(primary), context.partner_name),
            reasoning=(
                f"{context.trigger_reason} Matches their {label} love language "
                f"and {primary.value} communication style."
            ).strip(),
            love_language_alignment=context.partner_love_language,
            suggestion_type=suggestion_type,
            confidence=PRIMARY_CONFIDENCE,
        )]

        for tone in _alternative_tones(primary)[:2]:
            suggestions.append(MessageSuggestion(
                id=_new_id("msg"),
                tone=tone,
                message=personalize(template.for_style(tone), context.partner_name),
                reasoning=f"Alternative {tone.value} tone if you want to try something different.",
                love_language_alignment=context.partner_love_language,
                suggestion_type=suggestion_type,
                confidence=ALTERNATIVE_CONFIDENCE,
            ))
        return suggestions

    async def refresh_suggestions(
        self, suggestion_type: SuggestionType, user_id: str, target_user_id: str,
    ) -> list[MessageSuggestion]:
        """A fresh random set: the requested type plus two other types.

        Returns an empty list if the partner profile cannot be read.
        """
        try:
            record = await self._profiles.get_partner_profile(target_user_id)
        except Exception as exc:
            logger.error(
                "Failed to refresh suggestions for %s -> %s: %s", user_id, target_user_id, exc,
            )
            return []

        profile = PartnerProfile.from_record(target_user_id, record)
        others = [t for t in SuggestionType if t is not suggestion_type]
        types = [suggestion_type, *self._rng.sample(others, 2)]
        label = LOVE_LANGUAGE_LABELS[profile.love_language]

        suggestions = []
        for stype in types:
            tone = self._rng.choice(list(CommunicationStyle))
            text = get_all_variations(profile.love_language, stype).for_style(tone)
            suggestions.append(MessageSuggestion(
                id=_new_id(stype.value),
                tone=tone,
                message=personalize(text, profile.name),
                reasoning=f"Speaks to {profile.name}'s {label} love language.",
                love_language_alignment=profile.love_language,
                suggestion_type=stype,
                confidence=REFRESH_CONFIDENCE,
            ))
        return suggestions

    # -- need responses ----------------------------------------------------

    def generate_need_response(
        self, need: RelationshipNeed, partner_profile: PartnerProfile,
    ) -> NeedResponse:
        """Guidance for the receiver of a need, routed on its category."""
        if need.need_category is NeedCategory.SPACE:
            return self._space_response(partner_profile)

        context = (need.context or "").strip()
        messages = self._need_messages(need, partner_profile, context)
        actions = self._need_actions(need, partner_profile)

        if context:
            receiver_message = f'Your partner shared: "{_truncate(context, RECEIVER_CONTEXT_CHARS)}"'
        else:
            receiver_message = (
                f"{TONE_INTROS[partner_profile.communication_style]} "
                f"{CATEGORY_RECEIVER_MESSAGES[need.need_category]}"
            )

        return NeedResponse(
            receiver_message=receiver_message,
            suggested_messages=messages,
            suggested_actions=actions,
            reasoning=self._need_reasoning(partner_profile, bool(context)),
            safety_note=IMPORTANT_SAFETY_NOTE if need.urgency is Urgency.IMPORTANT else None,
        )

    def _space_response(self, profile: PartnerProfile) -> NeedResponse:
        language = profile.love_language
        return NeedResponse(
            receiver_message=CATEGORY_RECEIVER_MESSAGES[NeedCategory.SPACE],
            suggested_messages=[MessageSuggestion(
                id=_new_id("msg"),
                tone=profile.communication_style,
                message=SPACE_MESSAGE,
                reasoning="A short, pressure-free message lets them know you're there without asking for anything.",
                love_language_alignment=language,
                suggestion_type=SuggestionType.CHECK_IN,
                confidence=PRIMARY_CONFIDENCE,
            )],
            suggested_actions=[
                ActionSuggestion(
                    type=ActionType.GIVE_SPACE,
                    description="Give them space without pressure to respond",
                    reasoning="Stepping back shows respect and trust.",
                    love_language_alignment=language,
                ),
                ActionSuggestion(
                    type=ActionType.CHECK_IN_LATER,
                    description="Check in gently after 24-48 hours",
                    reasoning="A later check-in shows you care without crowding them.",
                    love_language_alignment=language,
                ),
            ],
            reasoning="Your partner asked for breathing room, so the kindest response is a light touch.",
            safety_note=SPACE_SAFETY_NOTE,
        )

    def _need_messages(
        self, need: RelationshipNeed, profile: PartnerProfile, context: str,
    ) -> list[MessageSuggestion]:
        language = profile.love_language
        tone = profile.communication_style
        stype = suggestion_type_for_need(need.need_category)
        messages: list[MessageSuggestion] = []

        def add(text: str, reasoning: str, confidence: int, msg_tone=tone) -> None:
            messages.append(MessageSuggestion(
                id=_new_id("msg"),
                tone=msg_tone,
                message=text,
                reasoning=reasoning,
                love_language_alignment=language,
                suggestion_type=stype,
                confidence=confidence,
            ))

        category_text = CATEGORY_MESSAGES.get(need.need_category)
        if category_text:
            if context:
                shown = _truncate(context, CONTEXT_DISPLAY_CHARS)
                add(
                    f'I\'ve been thinking about what you said: "{shown}". {category_text}',
                    "Acknowledges what they shared in their own words.",
                    CONTEXT_CONFIDENCE,
                )
            else:
                need_label = need.need_category.value.replace("_", " ")
                add(
                    category_text,
                    f"Speaks directly to the need for {need_label}.",
                    PERSONALIZED_CONFIDENCE,
                )

        add(
            LOVE_LANGUAGE_MESSAGES[language],
            f"Framed in their {LOVE_LANGUAGE_LABELS[language]} love language.",
            PERSONALIZED_CONFIDENCE,
        )

        if context and len(messages) < MAX_NEED_MESSAGES:
            add(
                "Thank you for telling me how you feel. I heard you, and I want to make this better together.",
                "Shows that their words landed.",
                PERSONALIZED_CONFIDENCE,
            )

        messages = messages[:MAX_NEED_MESSAGES]
        if len(messages) < MAX_NEED_MESSAGES:
            template = get_all_variations(language, stype)
            for alt in _alternative_tones(tone)[:2]:
                add(
                    personalize(template.for_style(alt), profile.name),
                    f"Alternative {alt.value} tone.",
                    ALTERNATIVE_CONFIDENCE,
                    msg_tone=alt,
                )
        return messages

    def _need_actions(
        self, need: RelationshipNeed, profile: PartnerProfile,
    ) -> list[ActionSuggestion]:
        language = profile.love_language
        actions: list[ActionSuggestion] = []

        category_action = CATEGORY_ACTIONS.get(need.need_category)
        if category_action:
            kind, description = category_action
            actions.append(ActionSuggestion(
                type=kind,
                description=description,
                reasoning=f"A concrete step toward more {need.need_category.value.replace('_', ' ')}.",
                love_language_alignment=language,
            ))

        if profile.favorite_activities:
            activity = profile.favorite_activities[0]
            actions.append(ActionSuggestion(
                type=ActionType.SCHEDULE_DATE,
                description=f"Plan time together around {activity}",
                reasoning=f"{profile.name} loves {activity}.",
                love_language_alignment=language,
            ))

        gift_idea = BUDGET_GIFT_IDEAS.get(profile.budget_comfort or "")
        if gift_idea:
            actions.append(ActionSuggestion(
                type=ActionType.SEND_GIFT,
                description=f"Surprise them with {gift_idea}",
                reasoning="Fits their budget comfort level.",
                love_language_alignment=language,
            ))

        date_idea = ENERGY_DATE_IDEAS.get(profile.energy_level or "")
        if date_idea:
            actions.append(ActionSuggestion(
                type=ActionType.SCHEDULE_DATE,
                description=f"Suggest {date_idea}",
                reasoning="Matches their usual energy level.",
                love_language_alignment=language,
            ))

        if not category_action:
            actions.insert(0, ActionSuggestion(
                type=ActionType.SEND_MESSAGE,
                description=_FALLBACK_ACTION,
                reasoning="A simple, caring gesture fits almost any need.",
                love_language_alignment=language,
            ))

        return actions[:MAX_NEED_ACTIONS]

    @staticmethod
    def _need_reasoning(profile: PartnerProfile, has_context: bool) -> str:
        parts = [
            f"{profile.name}'s love language is {LOVE_LANGUAGE_LABELS[profile.love_language]}, "
            "so these suggestions lean into it."
        ]
        if profile.favorite_activities:
            parts.append(f"They enjoy {', '.join(profile.favorite_activities[:2])}.")
        if has_context:
            parts.append("The suggestions reflect what your partner shared.")
        else:
            parts.append("No extra context was shared, so these are general suggestions.")
        return " ".join(parts)

    # -- dates ---------------------------------------------------------------

    def generate_date_suggestion(self, profile: PartnerProfile) -> DateSuggestion | None:
        """First date template matching the profile, or None."""
        for tpl in DATE_TEMPLATES:
            if profile.love_language not in tpl["love_languages"]:
                continue
            if tpl["long_distance"] not in (None, profile.is_long_distance):
                continue
            return DateSuggestion(
                id=_new_id("date"),
                title=tpl["title"],
                description=tpl["description"],
                category=tpl["category"],
                love_language_focus=profile.love_language,
                energy_level=tpl["energy_level"],
                duration=tpl["duration"],
                reasoning=(
                    f"Shared, focused time suits {profile.name}'s "
                    f"{LOVE_LANGUAGE_LABELS[profile.love_language]} love language."
                ),
                steps=list(tpl["steps"]),
            )
        return None

    # -- persistence -------------------------------------------------------

    async def store_suggestion(
        self,
        sender_id: str,
        receiver_id: str,
        suggestion_type: SuggestionType,
        messages: list[MessageSuggestion],
        context: SuggestionContext,
    ) -> str:
        """Persist generated messages; returns the stored suggestion id."""
        record = {
            "sender_id": sender_id,
            "receiver_id": receiver_id,
            "suggestion_type": suggestion_type.value,
            "generated_messages": [to_record(m) for m in messages],
            "context": to_record(context),
            "was_used": False,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            stored = await self._store.insert_suggestion(record)
        except Exception as exc:
            logger.error("Failed to store suggestion for %s: %s", sender_id, exc)
            raise
        logger.info("Stored %s suggestion %s", suggestion_type.value, stored["id"])
        return str(stored["id"])

    async def record_suggestion_usage(
        self,
        suggestion_id: str,
        used_message_id: str,
        user_id: str,
        love_language: LoveLanguage,
        communication_style: CommunicationStyle,
        suggestion_type: SuggestionType,
    ) -> None:
        """Mark a suggestion as used and log an "accepted" learning event."""
        try:
            await self._store.update_suggestion(
                suggestion_id, {"was_used": True, "used_message_id": used_message_id},
            )
            await self._store.insert_learning_event({
                "user_id": user_id,
                "event_type": LearningEventType.ACCEPTED.value,
                "suggestion_id": suggestion_id,
                "suggestion_type": suggestion_type.value,
                "love_language": love_language.value,
                "communication_style": communication_style.value,
                "created_at": datetime.now(timezone.utc).isoformat(),
            })
        except Exception as exc:
            logger.error("Failed to record usage of suggestion %s: %s", suggestion_id, exc)
            raise
