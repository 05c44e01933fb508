"""Pytest fixtures and configuration for voicecal tests."""

import pytest
from datetime import datetime
from unittest.mock import MagicMock
from fastapi.testclient import TestClient

from voicecal.integrations.google_calendar import GoogleCalendarClient
from voicecal.integrations.openai_client import OpenAIClient
from voicecal.interpreter.interpret import InterpreterChain, LocalInterpreter, RemoteInterpreter
from voicecal.models.command import EventMatchCandidate


@pytest.fixture
def now():
    """Fixed reference moment: Thursday 2025-10-23, 10:00."""
    return datetime(2025, 10, 23, 10, 0, 0)


@pytest.fixture
def candidate_events():
    """Existing events the caller can pass for disambiguation."""
    return [
        EventMatchCandidate(id="evt-1", title="Product call with Sharan", date="2025-10-23", start_time="15:00:00"),
        EventMatchCandidate(id="evt-2", title="Product Call - roadmap", date="2025-10-24", start_time="11:00:00"),
        EventMatchCandidate(id="evt-3", title="Lunch with Dana", date="2025-10-23", start_time="12:30:00"),
    ]


@pytest.fixture
def remote_client():
    """OpenAIClient double; tests set parse_command's return value or side effect."""
    return MagicMock(spec=OpenAIClient)


@pytest.fixture
def chain(remote_client):
    """Remote-then-local chain around the OpenAIClient double."""
    return InterpreterChain([RemoteInterpreter(remote_client), LocalInterpreter()])


@pytest.fixture
def local_chain():
    """Chain with only the deterministic parser (no network)."""
    return InterpreterChain([LocalInterpreter()])


@pytest.fixture
def mock_calendar():
    """GoogleCalendarClient double with no events."""
    calendar = MagicMock(spec=GoogleCalendarClient)
    calendar.list_events_in_range.return_value = []
    return calendar


@pytest.fixture
def test_client(local_chain, mock_calendar):
    """Create a FastAPI test client with the interpreter and calendar dependencies overridden."""
    from voicecal.api.app import app, get_calendar_client, get_interpreter_chain

    app.dependency_overrides[get_interpreter_chain] = lambda: local_chain
    app.dependency_overrides[get_calendar_client] = lambda: mock_calendar

    with TestClient(app) as client:
        yield client

    # Clean up dependency overrides
    app.dependency_overrides.clear()
