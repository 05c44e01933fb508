"""Calendar executor for voicecal.

Turns an interpreted CommandResult into Google Calendar calls. The interpreter
never touches the calendar; everything that mutates it lives here.
"""

import logging
import os
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from voicecal.integrations.google_calendar import GoogleCalendarClient
from voicecal.interpreter.matching import title_matches, to_options
from voicecal.models.command import (
    ClarificationOption,
    CommandResult,
    DeleteDetails,
    EventDetails,
    EventMatchCandidate,
    Intent,
    ModifyDetails,
    QueryDetails,
)
from voicecal.models.constants import (
    DEFAULT_EVENT_DURATION_MINUTES,
    DEFAULT_TIMEZONE,
    MAX_QUERY_RESULTS,
    MODIFY_SEARCH_WINDOW_DAYS,
)

load_dotenv()

logger = logging.getLogger(__name__)

CALENDAR_TIMEZONE = os.getenv("VOICECAL_TIMEZONE", DEFAULT_TIMEZONE)


class ExecutionStatus(str, Enum):
    SUCCESS = "success"
    CLARIFICATION = "clarification"
    ERROR = "error"


class ExecutionResult(BaseModel):
    """Outcome of executing one command against the calendar."""
    status: ExecutionStatus
    message: str
    data: Optional[Dict[str, Any]] = None
    options: List[ClarificationOption] = Field(default_factory=list)


def _day_bounds(target_date: str) -> tuple:
    return f"{target_date}T00:00:00Z", f"{target_date}T23:59:59Z"


def _event_start_time(event: Dict[str, Any]) -> Optional[str]:
    """HH:MM:SS of a timed event's start, None for all-day events."""
    dt = event.get("start", {}).get("dateTime")
    return dt[11:19] if dt else None


def _event_naive_datetime(boundary: Dict[str, Any]) -> Optional[datetime]:
    dt = boundary.get("dateTime")
    return datetime.fromisoformat(dt[:19]) if dt else None


def _format_clock(hhmmss: str) -> str:
    return datetime.strptime(hhmmss, "%H:%M:%S").strftime("%I:%M %p").lstrip("0")


def event_to_candidate(event: Dict[str, Any]) -> EventMatchCandidate:
    start = event.get("start", {})
    day = start.get("date") or (start.get("dateTime") or "")[:10] or None
    return EventMatchCandidate(
        id=event["id"],
        title=event.get("summary", ""),
        date=day,
        start_time=_event_start_time(event),
    )


def _create(details: EventDetails, calendar: GoogleCalendarClient) -> ExecutionResult:
    start_dt = datetime.fromisoformat(f"{details.date}T{details.start_time}")
    if details.end_time:
        end_dt = datetime.fromisoformat(f"{details.date}T{details.end_time}")
    else:
        end_dt = start_dt + timedelta(minutes=DEFAULT_EVENT_DURATION_MINUTES)

    event_body = {
        'summary': details.title,
        'description': details.description,
        'start': {'dateTime': start_dt.isoformat(), 'timeZone': CALENDAR_TIMEZONE},
        'end': {'dateTime': end_dt.isoformat(), 'timeZone': CALENDAR_TIMEZONE},
    }
    event = calendar.insert_event(event_body)
    logger.info(f"Created calendar event {event.get('id')}")
    return ExecutionResult(
        status=ExecutionStatus.SUCCESS,
        message=(
            f'Okay, I\'ve scheduled "{details.title}" on {details.date} '
            f"starting at {_format_clock(details.start_time)}."
        ),
        data={"id": event.get("id"), "htmlLink": event.get("htmlLink"), "start": start_dt.isoformat()},
    )


def _query(details: QueryDetails, calendar: GoogleCalendarClient) -> ExecutionResult:
    events = calendar.list_events_in_range(*_day_bounds(details.target_date), max_results=MAX_QUERY_RESULTS)
    day_label = date.fromisoformat(details.target_date).strftime("%a %b %d %Y")
    if not events:
        message = f"I found no events on your calendar for {day_label}. You are free!"
    else:
        parts = []
        for index, event in enumerate(events, start=1):
            start = _event_start_time(event)
            when = f"starting at {_format_clock(start)}" if start else "all day"
            parts.append(f"{index}. {event.get('summary', '(no title)')} {when}.")
        message = f"On {day_label}, you have {len(events)} events: " + " ".join(parts)
    return ExecutionResult(
        status=ExecutionStatus.SUCCESS,
        message=message,
        data={"targetDate": details.target_date, "events": [event_to_candidate(e).model_dump(by_alias=True) for e in events]},
    )


def _modify(details: ModifyDetails, calendar: GoogleCalendarClient, now: datetime) -> ExecutionResult:
    window_end = now + timedelta(days=MODIFY_SEARCH_WINDOW_DAYS)
    found = calendar.list_events_in_range(
        now.strftime("%Y-%m-%dT00:00:00Z"),
        window_end.strftime("%Y-%m-%dT23:59:59Z"),
        query=details.event_name,
    )
    matches = [e for e in found if title_matches(details.event_name, e.get("summary", ""))]

    if not matches:
        return ExecutionResult(
            status=ExecutionStatus.ERROR,
            message=f'I couldn\'t find an upcoming event matching "{details.event_name}".',
        )
    if len(matches) > 1:
        return ExecutionResult(
            status=ExecutionStatus.CLARIFICATION,
            message=f'I found {len(matches)} events matching "{details.event_name}". Which one did you mean?',
            options=to_options([event_to_candidate(e) for e in matches]),
        )

    event = matches[0]
    changes: Dict[str, Any] = {}
    if details.description is not None:
        changes["description"] = details.description

    old_start = _event_naive_datetime(event.get("start", {}))
    old_end = _event_naive_datetime(event.get("end", {}))
    if old_start and (details.date or details.start_time or details.end_time):
        new_date = details.date or old_start.date().isoformat()
        new_start = datetime.fromisoformat(f"{new_date}T{details.start_time or old_start.time().isoformat()}")
        if details.end_time:
            new_end = datetime.fromisoformat(f"{new_date}T{details.end_time}")
        else:
            duration = (old_end - old_start) if old_end else timedelta(minutes=DEFAULT_EVENT_DURATION_MINUTES)
            new_end = new_start + duration
        if new_end <= new_start:
            return ExecutionResult(
                status=ExecutionStatus.ERROR,
                message="The new end time must be after the new start time.",
            )
        changes["start"] = {"dateTime": new_start.isoformat(), "timeZone": CALENDAR_TIMEZONE}
        changes["end"] = {"dateTime": new_end.isoformat(), "timeZone": CALENDAR_TIMEZONE}

    if not changes:
        return ExecutionResult(
            status=ExecutionStatus.ERROR,
            message=f'What would you like to change about "{event.get("summary", details.event_name)}"?',
        )

    updated = calendar.patch_event(event["id"], changes)
    logger.info(f"Updated calendar event {event['id']}")
    return ExecutionResult(
        status=ExecutionStatus.SUCCESS,
        message=f'Okay, I\'ve updated "{updated.get("summary", event.get("summary"))}".',
        data={"id": event["id"], "changes": changes},
    )


def _delete(details: DeleteDetails, calendar: GoogleCalendarClient) -> ExecutionResult:
    events = calendar.list_events_in_range(*_day_bounds(details.target_date))
    doomed = []
    for event in events:
        start = _event_start_time(event)
        if details.start_time or details.end_time:
            if start is None:
                continue
            if details.start_time and start < details.start_time:
                continue
            if details.end_time and start >= details.end_time:
                continue
        doomed.append(event)

    for event in doomed:
        calendar.delete_event(event["id"])
    logger.info(f"Deleted {len(doomed)} calendar events on {details.target_date}")

    if not doomed:
        message = f"There were no events to cancel on {details.target_date}."
    else:
        titles = ", ".join(e.get("summary", "(no title)") for e in doomed)
        message = f"Okay, I've cancelled {len(doomed)} events on {details.target_date}: {titles}."
    return ExecutionResult(
        status=ExecutionStatus.SUCCESS,
        message=message,
        data={"deletedIds": [e["id"] for e in doomed]},
    )


def execute_command(
    result: CommandResult,
    calendar: GoogleCalendarClient,
    *,
    now: Optional[datetime] = None,
) -> ExecutionResult:
    """Execute an interpreted command.

    Args:
        result: Interpreter output
        calendar: Authenticated calendar client
        now: Reference moment for the modify search window (defaults to wall clock)

    Returns:
        ExecutionResult with status success, clarification or error

    Raises:
        CalendarError: if a Google Calendar call fails
    """
    if result.clarification_needed is not None:
        return ExecutionResult(
            status=ExecutionStatus.CLARIFICATION,
            message=result.clarification_needed.message,
            options=result.clarification_needed.options,
        )

    if not result.is_resolved or result.details is None:
        return ExecutionResult(
            status=ExecutionStatus.ERROR,
            message="I could not identify a calendar action in your request. Please try again.",
            data=result.to_json_dict(),
        )

    if result.intent == Intent.CREATE_EVENT:
        return _create(result.event_details, calendar)
    if result.intent == Intent.QUERY_EVENTS:
        return _query(result.query_details, calendar)
    if result.intent == Intent.MODIFY_EVENT:
        return _modify(result.modify_details, calendar, now or datetime.now())
    return _delete(result.delete_details, calendar)
