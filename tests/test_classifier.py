"""Tests for keyword intent classification (first match wins)."""

import pytest

from voicecal.interpreter.classifier import classify_intent
from voicecal.models.command import Intent


class TestClassifyIntent:
    """Test classify_intent()."""

    @pytest.mark.parametrize(
        "text",
        [
            "cancel all my meetings between 4 pm and 6 pm today",
            "Delete the event I created yesterday",
            "cancel and change my 3pm meeting",
            "please update my calendar and delete the standup",
        ],
    )
    def test_cancel_or_delete_always_wins(self, text):
        """Deletion keywords take precedence over every other keyword."""
        assert classify_intent(text) == Intent.DELETE_EVENTS

    @pytest.mark.parametrize(
        "text",
        ["Schedule a meeting tomorrow at 3 PM", "create an event for friday", "set up a call with Priya"],
    )
    def test_create(self, text):
        assert classify_intent(text) == Intent.CREATE_EVENT

    @pytest.mark.parametrize(
        "text",
        ["What do I have on my calendar tomorrow?", "what's on my calendar for 10/27"],
    )
    def test_query(self, text):
        assert classify_intent(text) == Intent.QUERY_EVENTS

    def test_query_requires_calendar(self):
        assert classify_intent("what do I have tomorrow") is None

    @pytest.mark.parametrize(
        "text",
        [
            "modify the product call with Sharan to start at 4 PM",
            "Change the standup to 10am",
            "update my dentist appointment to friday",
            "I want the review modified",
        ],
    )
    def test_modify(self, text):
        assert classify_intent(text) == Intent.MODIFY_EVENT

    @pytest.mark.parametrize("text", ["hello there", "what's the weather like", "", None])
    def test_no_keyword_is_unresolved(self, text):
        assert classify_intent(text) is None
