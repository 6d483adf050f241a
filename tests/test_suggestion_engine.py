"""Tests for src.core.suggestion_engine — messages, need responses and dates."""

import random

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.core import suggestion_engine as se
from src.core.suggestion_engine import SuggestionEngine
from src.core.suggestion_templates import get_all_variations
from src.data.models import (
    ActionType,
    CommunicationStyle,
    LoveLanguage,
    NeedCategory,
    PartnerProfile,
    RelationshipNeed,
    SuggestionContext,
    SuggestionType,
    Urgency,
)
from src.ports.store_port import StoreError


def _mock_profiles(record=None, side_effect=None):
    port = MagicMock()
    if side_effect:
        port.get_partner_profile = AsyncMock(side_effect=side_effect)
    else:
        port.get_partner_profile = AsyncMock(return_value=record)
    return port


def _mock_store():
    store = MagicMock()
    store.insert_suggestion = AsyncMock(return_value={"id": "sugg-1"})
    store.update_suggestion = AsyncMock(return_value={"id": "sugg-1", "was_used": True})
    store.insert_learning_event = AsyncMock(return_value={"id": "evt-1"})
    return store


def _engine(profile_record=None, store=None, seed=None, profile_error=None):
    return SuggestionEngine(
        profiles=_mock_profiles(profile_record, side_effect=profile_error),
        store=store or _mock_store(),
        rng=random.Random(seed) if seed is not None else None,
    )


def _need(category, urgency=Urgency.WOULD_HELP, context=""):
    return RelationshipNeed(
        id="n1",
        couple_id="c1",
        requester_id="alice",
        receiver_id="bob",
        need_category=category,
        urgency=urgency,
        context=context,
    )


def _profile(**overrides):
    values = dict(
        user_id="alice",
        name="Alice",
        love_language=LoveLanguage.WORDS,
        communication_style=CommunicationStyle.GENTLE,
    )
    values.update(overrides)
    return PartnerProfile(**values)


# ---------------------------------------------------------------------------
# generate_message_suggestions
# ---------------------------------------------------------------------------


class TestGenerateMessageSuggestions:
    def _context(self, style=CommunicationStyle.GENTLE):
        return SuggestionContext(
            trigger_reason="They had a rough day.",
            partner_love_language=LoveLanguage.WORDS,
            partner_communication_style=style,
            partner_name="Sam",
        )

    def test_three_suggestions_with_confidences(self):
        result = _engine().generate_message_suggestions(self._context(), SuggestionType.SUPPORT)
        assert [s.confidence for s in result] == [90, 70, 70]

    def test_primary_uses_partner_tone(self):
        result = _engine().generate_message_suggestions(self._context(), SuggestionType.SUPPORT)
        row = get_all_variations(LoveLanguage.WORDS, SuggestionType.SUPPORT)
        assert result[0].tone is CommunicationStyle.GENTLE
        assert result[0].message == row.gentle.replace("{name}", "Sam")

    def test_alternatives_are_other_tones(self):
        result = _engine().generate_message_suggestions(
            self._context(CommunicationStyle.DIRECT), SuggestionType.SUPPORT,
        )
        tones = [s.tone for s in result]
        assert tones[0] is CommunicationStyle.DIRECT
        assert CommunicationStyle.DIRECT not in tones[1:]
        assert len(set(tones)) == 3

    def test_reasoning_mentions_trigger_and_love_language(self):
        result = _engine().generate_message_suggestions(self._context(), SuggestionType.AFFECTION)
        assert "They had a rough day." in result[0].reasoning
        assert "Words of Affirmation" in result[0].reasoning

    def test_fields_propagated(self):
        result = _engine().generate_message_suggestions(self._context(), SuggestionType.AFFECTION)
        assert all(s.suggestion_type is SuggestionType.AFFECTION for s in result)
        assert all(s.love_language_alignment is LoveLanguage.WORDS for s in result)
        assert len({s.id for s in result}) == 3

    def test_name_placeholder_filled(self):
        result = _engine().generate_message_suggestions(
            self._context(CommunicationStyle.DIRECT), SuggestionType.REASSURANCE,
        )
        assert all("{name}" not in s.message for s in result)

    def test_default_partner_name_drops_address(self):
        context = SuggestionContext(
            trigger_reason="",
            partner_love_language=LoveLanguage.QUALITY_TIME,
            partner_communication_style=CommunicationStyle.DIRECT,
        )
        result = _engine().generate_message_suggestions(context, SuggestionType.APPRECIATION)
        assert result[0].message == "Thank you for making time for me. It means everything."


# ---------------------------------------------------------------------------
# refresh_suggestions
# ---------------------------------------------------------------------------


class TestRefreshSuggestions:
    PROFILE = {"name": "Sam", "love_language": "touch", "communication_style": "playful"}

    @pytest.mark.asyncio
    async def test_requested_type_first_then_two_distinct(self):
        engine = _engine(self.PROFILE, seed=7)
        result = await engine.refresh_suggestions(SuggestionType.CELEBRATION, "alice", "sam")
        types = [s.suggestion_type for s in result]
        assert len(result) == 3
        assert types[0] is SuggestionType.CELEBRATION
        assert len(set(types)) == 3

    @pytest.mark.asyncio
    async def test_profile_fields_used(self):
        result = await _engine(self.PROFILE, seed=1).refresh_suggestions(
            SuggestionType.SUPPORT, "alice", "sam",
        )
        assert all(s.love_language_alignment is LoveLanguage.TOUCH for s in result)
        assert all(s.confidence == 75 for s in result)
        assert all("Sam" in s.reasoning for s in result)

    @pytest.mark.asyncio
    async def test_same_seed_same_output(self):
        first = await _engine(self.PROFILE, seed=42).refresh_suggestions(
            SuggestionType.SUPPORT, "alice", "sam",
        )
        second = await _engine(self.PROFILE, seed=42).refresh_suggestions(
            SuggestionType.SUPPORT, "alice", "sam",
        )
        assert [(s.suggestion_type, s.tone, s.message) for s in first] == [
            (s.suggestion_type, s.tone, s.message) for s in second
        ]

    @pytest.mark.asyncio
    async def test_missing_profile_uses_defaults(self):
        result = await _engine(None, seed=3).refresh_suggestions(
            SuggestionType.CHECK_IN, "alice", "sam",
        )
        assert len(result) == 3
        assert all(s.love_language_alignment is LoveLanguage.QUALITY_TIME for s in result)

    @pytest.mark.asyncio
    async def test_unnamed_partner_never_addressed_as_them(self):
        for seed in range(40):
            result = await _engine(None, seed=seed).refresh_suggestions(
                SuggestionType.REASSURANCE, "alice", "sam",
            )
            for s in result:
                assert ", them" not in s.message
                assert "{name}" not in s.message

    @pytest.mark.asyncio
    async def test_profile_error_returns_empty(self):
        engine = _engine(profile_error=StoreError("db locked"))
        assert await engine.refresh_suggestions(SuggestionType.SUPPORT, "alice", "sam") == []


# ---------------------------------------------------------------------------
# generate_need_response
# ---------------------------------------------------------------------------


class TestNeedResponseSpace:
    def test_canned_response(self):
        response = _engine().generate_need_response(_need(NeedCategory.SPACE), _profile())
        assert len(response.suggested_messages) == 1
        assert response.suggested_messages[0].message == se.SPACE_MESSAGE
        assert [a.type for a in response.suggested_actions] == [
            ActionType.GIVE_SPACE, ActionType.CHECK_IN_LATER,
        ]
        assert response.safety_note == se.SPACE_SAFETY_NOTE

    def test_context_ignored(self):
        response = _engine().generate_need_response(
            _need(NeedCategory.SPACE, context="Work is overwhelming"), _profile(),
        )
        assert "Work is overwhelming" not in response.receiver_message
        assert len(response.suggested_messages) == 1

    def test_space_safety_note_even_when_important(self):
        response = _engine().generate_need_response(
            _need(NeedCategory.SPACE, urgency=Urgency.IMPORTANT), _profile(),
        )
        assert response.safety_note == se.SPACE_SAFETY_NOTE


class TestNeedResponseGeneral:
    def test_affection_without_context(self):
        response = _engine().generate_need_response(
            _need(NeedCategory.AFFECTION, urgency=Urgency.IMPORTANT), _profile(),
        )
        messages = response.suggested_messages
        assert messages[0].message == se.CATEGORY_MESSAGES[NeedCategory.AFFECTION]
        assert messages[1].message == se.LOVE_LANGUAGE_MESSAGES[LoveLanguage.WORDS]
        assert [m.confidence for m in messages] == [85, 85, 70, 70]
        assert all(m.suggestion_type is SuggestionType.AFFECTION for m in messages)
        assert response.safety_note == se.IMPORTANT_SAFETY_NOTE
        assert response.receiver_message == (
            f"{se.TONE_INTROS[CommunicationStyle.GENTLE]} "
            f"{se.CATEGORY_RECEIVER_MESSAGES[NeedCategory.AFFECTION]}"
        )

    def test_not_important_has_no_safety_note(self):
        response = _engine().generate_need_response(
            _need(NeedCategory.SUPPORT, urgency=Urgency.NOT_URGENT), _profile(),
        )
        assert response.safety_note is None

    def test_context_quoted_and_truncated(self):
        context = "I feel like we only talk about chores and schedules lately " * 2
        response = _engine().generate_need_response(
            _need(NeedCategory.COMMUNICATION, context=context), _profile(),
        )
        first = response.suggested_messages[0]
        assert first.confidence == 90
        assert context.strip()[:40] in first.message
        assert "..." in first.message
        assert response.receiver_message.startswith('Your partner shared: "')
        assert response.receiver_message.endswith('..."')

    def test_receiver_context_cut_at_fifty_chars(self):
        context = "a" * 60
        response = _engine().generate_need_response(
            _need(NeedCategory.SUPPORT, context=context), _profile(),
        )
        assert response.receiver_message == f'Your partner shared: "{"a" * 50}..."'

    def test_short_context_not_truncated(self):
        response = _engine().generate_need_response(
            _need(NeedCategory.SUPPORT, context="Rough week"), _profile(),
        )
        assert response.receiver_message == 'Your partner shared: "Rough week"'

    def test_context_gives_three_personalized_messages(self):
        response = _engine().generate_need_response(
            _need(NeedCategory.SUPPORT, context="Rough week"), _profile(),
        )
        assert [m.confidence for m in response.suggested_messages] == [90, 85, 85]
        assert "The suggestions reflect what your partner shared." in response.reasoning

    def test_other_category_uses_fallback_action(self):
        response = _engine().generate_need_response(_need(NeedCategory.OTHER), _profile())
        assert response.suggested_actions[0].type is ActionType.SEND_MESSAGE
        assert response.suggested_actions[0].description == se._FALLBACK_ACTION
        assert response.suggested_messages[0].message == se.LOVE_LANGUAGE_MESSAGES[LoveLanguage.WORDS]
        assert response.receiver_message.endswith(se.CATEGORY_RECEIVER_MESSAGES[NeedCategory.OTHER])

    def test_actions_capped_at_three(self):
        profile = _profile(
            favorite_activities=["hiking", "board games"],
            budget_comfort="low",
            energy_level="high",
        )
        response = _engine().generate_need_response(_need(NeedCategory.FUN), profile)
        actions = response.suggested_actions
        assert len(actions) == 3
        assert actions[0].type is ActionType.SCHEDULE_DATE
        assert "hiking" in actions[1].description
        assert actions[2].type is ActionType.SEND_GIFT
        assert "hiking, board games" in response.reasoning

    def test_unknown_budget_adds_no_gift(self):
        response = _engine().generate_need_response(
            _need(NeedCategory.APPRECIATION), _profile(budget_comfort="lavish"),
        )
        assert ActionType.SEND_GIFT not in [a.type for a in response.suggested_actions]

    def test_reasoning_mentions_love_language(self):
        response = _engine().generate_need_response(
            _need(NeedCategory.QUALITY_TIME), _profile(love_language=LoveLanguage.ACTS),
        )
        assert "Acts of Service" in response.reasoning
        assert "No extra context was shared" in response.reasoning


# ---------------------------------------------------------------------------
# generate_date_suggestion
# ---------------------------------------------------------------------------


class TestGenerateDateSuggestion:
    def test_default_template_matches_any_profile(self):
        result = _engine().generate_date_suggestion(_profile(love_language=LoveLanguage.GIFTS))
        assert result is not None
        assert result.love_language_focus is LoveLanguage.GIFTS
        assert result.steps

    def test_long_distance_filter(self, monkeypatch):
        template = dict(se.DATE_TEMPLATES[0], long_distance=True, title="Movie sync")
        monkeypatch.setattr(se, "DATE_TEMPLATES", [template])
        engine = _engine()
        assert engine.generate_date_suggestion(_profile(is_long_distance=False)) is None
        assert engine.generate_date_suggestion(_profile(is_long_distance=True)).title == "Movie sync"

    def test_love_language_filter(self, monkeypatch):
        template = dict(se.DATE_TEMPLATES[0], love_languages=[LoveLanguage.TOUCH])
        monkeypatch.setattr(se, "DATE_TEMPLATES", [template])
        assert _engine().generate_date_suggestion(_profile(love_language=LoveLanguage.WORDS)) is None

    def test_no_templates_returns_none(self, monkeypatch):
        monkeypatch.setattr(se, "DATE_TEMPLATES", [])
        assert _engine().generate_date_suggestion(_profile()) is None


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class TestStoreSuggestion:
    def _messages(self, engine):
        context = SuggestionContext(
            trigger_reason="Daily check-in",
            partner_love_language=LoveLanguage.WORDS,
            partner_communication_style=CommunicationStyle.DIRECT,
        )
        return context, engine.generate_message_suggestions(context, SuggestionType.CHECK_IN)

    @pytest.mark.asyncio
    async def test_returns_stored_id(self):
        store = _mock_store()
        engine = _engine(store=store)
        context, messages = self._messages(engine)
        result = await engine.store_suggestion("alice", "bob", SuggestionType.CHECK_IN, messages, context)
        assert result == "sugg-1"
        record = store.insert_suggestion.call_args[0][0]
        assert record["sender_id"] == "alice"
        assert record["was_used"] is False
        assert record["suggestion_type"] == "check_in"
        assert record["generated_messages"][0]["tone"] == "direct"
        assert record["context"]["partner_love_language"] == "words"

    @pytest.mark.asyncio
    async def test_store_error_propagates(self):
        store = _mock_store()
        store.insert_suggestion = AsyncMock(side_effect=StoreError("disk full"))
        engine = _engine(store=store)
        context, messages = self._messages(engine)
        with pytest.raises(StoreError):
            await engine.store_suggestion("alice", "bob", SuggestionType.CHECK_IN, messages, context)


class TestRecordSuggestionUsage:
    @pytest.mark.asyncio
    async def test_marks_used_and_logs_event(self):
        store = _mock_store()
        await _engine(store=store).record_suggestion_usage(
            "sugg-1", "msg-2", "alice",
            LoveLanguage.WORDS, CommunicationStyle.GENTLE, SuggestionType.SUPPORT,
        )
        store.update_suggestion.assert_awaited_once_with(
            "sugg-1", {"was_used": True, "used_message_id": "msg-2"},
        )
        event = store.insert_learning_event.call_args[0][0]
        assert event["event_type"] == "accepted"
        assert event["suggestion_id"] == "sugg-1"
        assert event["love_language"] == "words"
        assert event["communication_style"] == "gentle"

    @pytest.mark.asyncio
    async def test_update_failure_propagates(self):
        store = _mock_store()
        store.update_suggestion = AsyncMock(side_effect=StoreError("Suggestion sugg-1 not found"))
        with pytest.raises(StoreError):
            await _engine(store=store).record_suggestion_usage(
                "sugg-1", "msg-2", "alice",
                LoveLanguage.WORDS, CommunicationStyle.GENTLE, SuggestionType.SUPPORT,
            )
        store.insert_learning_event.assert_not_awaited()
