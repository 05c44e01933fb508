"""Tests for the deterministic (local) command parser.

These tests verify that parsing is deterministic for a fixed `now`, that invalid
or incomplete commands come back as clarifications, and that the result
invariants hold for every command.
"""

import pytest

from voicecal.interpreter.deterministic_parser import parse_command
from voicecal.models.command import Intent


def _populated_details(result):
    return [
        name
        for name in ("event_details", "query_details", "modify_details", "delete_details")
        if getattr(result, name) is not None
    ]


class TestCreateEvent:
    """CREATE_EVENT extraction."""

    def test_meeting_tomorrow_at_3pm(self, now):
        result = parse_command("schedule a meeting tomorrow at 3 PM", now=now)

        assert result.intent == Intent.CREATE_EVENT
        assert result.use_local_fallback is True
        assert result.clarification_needed is None
        details = result.event_details
        assert details.title == "meeting"
        assert details.date == "2025-10-24"
        assert details.start_time == "15:00:00"
        assert details.end_time is None

    def test_range_and_description(self, now):
        result = parse_command(
            "Schedule Design Review on 10/27 from 2 pm to 3:30 pm about the new mockups", now=now
        )

        details = result.event_details
        assert details.title == "Design Review"
        assert details.date == "2025-10-27"
        assert details.start_time == "14:00:00"
        assert details.end_time == "15:30:00"
        assert details.description == "the new mockups"

    def test_start_defaults_to_nine(self, now):
        result = parse_command("set up a call with Priya for next monday", now=now)

        details = result.event_details
        assert details.title == "call with Priya"
        assert details.date == "2025-10-27"
        assert details.start_time == "09:00:00"

    def test_called_phrase_becomes_title(self, now):
        result = parse_command("create an event called Budget Review tomorrow at 10am", now=now)

        assert result.event_details.title == "Budget Review"
        assert result.event_details.start_time == "10:00:00"

    def test_title_keeps_original_case(self, now):
        result = parse_command("Schedule QBR Prep today at 4:30 pm", now=now)

        assert result.event_details.title == "QBR Prep"
        assert result.event_details.start_time == "16:30:00"

    def test_invalid_range_needs_clarification(self, now):
        result = parse_command("schedule team sync today from 6 pm to 5 pm", now=now)

        assert result.intent == Intent.CREATE_EVENT
        assert result.event_details is None
        assert result.clarification_needed is not None
        assert '"6 pm"' in result.clarification_needed.message
        assert '"5 pm"' in result.clarification_needed.message

    def test_weekday_inside_title_is_not_the_date(self, now):
        result = parse_command("schedule monday standup tomorrow at 9", now=now)

        details = result.event_details
        assert details.title == "monday standup"
        assert details.date == "2025-10-24"
        assert details.start_time == "09:00:00"

    def test_bare_end_follows_evening_start(self, now):
        result = parse_command("schedule dinner tomorrow from 7:30 pm to 9", now=now)

        assert result.event_details.start_time == "19:30:00"
        assert result.event_details.end_time == "21:00:00"

    def test_missing_date_needs_clarification(self, now):
        result = parse_command("schedule a dentist appointment", now=now)

        assert result.intent == Intent.CREATE_EVENT
        assert result.event_details is None
        assert "a date" in result.clarification_needed.message

    def test_unreadable_time_needs_clarification(self, now):
        result = parse_command("schedule lunch tomorrow at 13 pm", now=now)

        assert result.event_details is None
        assert result.clarification_needed is not None


class TestQueryEvents:
    """QUERY_EVENTS extraction."""

    def test_date_after_for(self, now):
        result = parse_command("What do I have on my calendar for tomorrow?", now=now)

        assert result.intent == Intent.QUERY_EVENTS
        assert result.query_details.target_date == "2025-10-24"

    def test_date_anywhere(self, now):
        result = parse_command("what's on my calendar today", now=now)

        assert result.query_details.target_date == "2025-10-23"

    def test_missing_date_needs_clarification(self, now):
        result = parse_command("What's on my calendar?", now=now)

        assert result.intent == Intent.QUERY_EVENTS
        assert result.query_details is None
        assert result.clarification_needed.message


class TestModifyEvent:
    """MODIFY_EVENT extraction."""

    def test_with_qualifier_is_stripped(self, now):
        result = parse_command("modify the product call with Sharan to start at 4 PM", now=now)

        assert result.intent == Intent.MODIFY_EVENT
        assert result.modify_details.event_name == "product call"
        assert result.modify_details.start_time == "16:00:00"
        assert result.modify_details.end_time is None

    def test_moved_to_time_sets_start(self, now):
        result = parse_command("update my dentist appointment to 4pm", now=now)

        assert result.modify_details.event_name == "dentist appointment"
        assert result.modify_details.start_time == "16:00:00"
        assert result.modify_details.end_time is None

    def test_range_and_new_date(self, now):
        result = parse_command("change the standup to between 10 am and 11 am tomorrow", now=now)

        details = result.modify_details
        assert details.event_name == "standup"
        assert details.date == "2025-10-24"
        assert details.start_time == "10:00:00"
        assert details.end_time == "11:00:00"

    def test_weekday_inside_name_is_not_an_update(self, now):
        result = parse_command("change the monday standup to 10am", now=now)

        assert result.modify_details.event_name == "monday standup"
        assert result.modify_details.date is None
        assert result.modify_details.start_time == "10:00:00"

    def test_invalid_range_needs_clarification(self, now):
        result = parse_command("change the review to start at 5 pm and end at 4 pm", now=now)

        assert result.modify_details is None
        assert '"5 pm"' in result.clarification_needed.message
        assert '"4 pm"' in result.clarification_needed.message

    def test_missing_name_needs_clarification(self, now):
        result = parse_command("please update", now=now)

        assert result.intent == Intent.MODIFY_EVENT
        assert result.modify_details is None
        assert result.clarification_needed is not None

    def test_ambiguous_candidates_need_clarification(self, now, candidate_events):
        result = parse_command(
            "modify the product call with Sharan to start at 4 PM", candidate_events, now=now
        )

        assert result.modify_details is None
        options = result.clarification_needed.options
        assert [o.id for o in options] == ["evt-1", "evt-2"]
        assert options[0].start_time == "15:00:00"

    def test_single_candidate_match_resolves(self, now, candidate_events):
        result = parse_command("change lunch to 1 pm", candidate_events, now=now)

        assert result.clarification_needed is None
        assert result.modify_details.event_name == "lunch"
        assert result.modify_details.start_time == "13:00:00"


class TestDeleteEvents:
    """DELETE_EVENTS extraction."""

    def test_window_today(self, now):
        result = parse_command("cancel all my meetings between 4 pm and 6 pm today", now=now)

        assert result.intent == Intent.DELETE_EVENTS
        assert result.use_local_fallback is True
        details = result.delete_details
        assert details.target_date == "2025-10-23"
        assert details.start_time == "16:00:00"
        assert details.end_time == "18:00:00"

    def test_bare_start_borrows_meridiem(self, now):
        result = parse_command("cancel my meetings between 4 and 6 pm today", now=now)

        assert result.delete_details.start_time == "16:00:00"
        assert result.delete_details.end_time == "18:00:00"

    def test_whole_day(self, now):
        result = parse_command("delete everything on 10/30", now=now)

        assert result.delete_details.target_date == "2025-10-30"
        assert result.delete_details.start_time is None
        assert result.delete_details.end_time is None

    def test_missing_date_needs_clarification(self, now):
        result = parse_command("cancel my dentist appointment", now=now)

        assert result.delete_details is None
        assert "specify the date" in result.clarification_needed.message

    def test_invalid_range_needs_clarification(self, now):
        result = parse_command("delete my meetings between 6 pm and 5 pm on friday", now=now)

        assert result.delete_details is None
        assert '"6 pm"' in result.clarification_needed.message
        assert '"5 pm"' in result.clarification_needed.message

    def test_inverted_bare_start_needs_clarification(self, now):
        result = parse_command("cancel my meetings between 6 and 5 pm today", now=now)

        assert result.intent == Intent.DELETE_EVENTS
        assert result.delete_details is None
        assert '"6"' in result.clarification_needed.message
        assert '"5 pm"' in result.clarification_needed.message

    def test_cancel_beats_change(self, now):
        result = parse_command("cancel and change my meetings tomorrow", now=now)

        assert result.intent == Intent.DELETE_EVENTS
        assert result.delete_details.target_date == "2025-10-24"


class TestUnresolvedAndInvariants:
    """Unresolved commands and result invariants."""

    def test_no_intent_is_silent(self, now):
        result = parse_command("hello there", now=now)

        assert result.intent is None
        assert result.clarification_needed is None
        assert _populated_details(result) == []
        assert result.use_local_fallback is True

    def test_is_deterministic(self, now):
        text = "schedule a meeting tomorrow at 3 PM"
        assert parse_command(text, now=now) == parse_command(text, now=now)

    @pytest.mark.parametrize(
        "text",
        [
            "schedule a meeting tomorrow at 3 PM",
            "schedule team sync today from 6 pm to 5 pm",
            "Schedule Design Review on 10/27 from 2 pm to 3:30 pm",
            "what do I have on my calendar for friday",
            "modify the product call with Sharan to start at 4 PM",
            "change the review to start at 5 pm and end at 4 pm",
            "cancel all my meetings between 4 pm and 6 pm today",
            "cancel my meetings between 6 and 5 today",
            "cancel my dentist appointment",
            "good morning",
        ],
    )
    def test_result_invariants(self, now, text):
        result = parse_command(text, now=now)
        populated = _populated_details(result)

        assert len(populated) <= 1
        if populated:
            assert result.details is getattr(result, populated[0])
            assert result.clarification_needed is None
        details = result.details
        start = getattr(details, "start_time", None)
        end = getattr(details, "end_time", None)
        if start and end:
            assert start < end
