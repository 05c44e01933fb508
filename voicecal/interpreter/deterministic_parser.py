"""Deterministic parser for calendar commands.

This is the local interpreter used when the model-backed interpreter is
unavailable. It converts casual command text into a CommandResult using the
keyword classifier and the per-intent extraction rules.
It must be deterministic: same input and `now` -> same output. It never raises;
incomplete or invalid commands come back with a clarification instead.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from voicecal.interpreter.classifier import classify_intent
from voicecal.interpreter.datetime_resolver import (
    TimeParseError,
    convert_time_range,
    convert_to_24_hour,
    is_valid_range,
    resolve_date,
)
from voicecal.interpreter.matching import match_candidates, to_options
from voicecal.interpreter.rules import (
    CALLED_RE,
    CREATE_RULES,
    CREATE_TITLE_RULE,
    DELETE_RULES,
    MODIFY_NAME_RULE,
    MODIFY_OVERLAY_RULES,
    QUERY_RULES,
    WITH_QUALIFIER_RE,
    extract,
)
from voicecal.models.command import (
    Clarification,
    ClarificationOption,
    CommandResult,
    DeleteDetails,
    EventDetails,
    EventMatchCandidate,
    Intent,
    ModifyDetails,
    QueryDetails,
)
from voicecal.models.constants import DEFAULT_START_TIME

logger = logging.getLogger(__name__)


def _clarify(
    intent: Intent, message: str, options: Optional[List[ClarificationOption]] = None
) -> CommandResult:
    logger.debug(f"Local interpreter needs clarification for {intent.value}: {message}")
    return CommandResult(
        intent=intent,
        use_local_fallback=True,
        clarification_needed=Clarification(message=message, options=options or []),
    )


def _invalid_range(intent: Intent, start_label: str, end_label: str) -> CommandResult:
    return _clarify(
        intent,
        f'The start time "{start_label}" must be before the end time "{end_label}". '
        "Please give a valid time range.",
    )


def _bad_time(intent: Intent, error: TimeParseError) -> CommandResult:
    return _clarify(intent, f"I couldn't understand the time in your request ({error}). Please say it again.")


def _resolve_times(slots: Dict[str, str]) -> Tuple[Optional[str], Optional[str]]:
    """Convert the start/end slots (either may be missing) to 24-hour strings."""
    start_text = slots.get("start")
    end_text = slots.get("end")
    if start_text and end_text:
        return convert_time_range(start_text, end_text)
    start = convert_to_24_hour(start_text) if start_text else None
    end = convert_to_24_hour(end_text) if end_text else None
    return start, end


def _clean_title(title: str) -> str:
    m = CALLED_RE.match(title)
    if m:
        title = m.group("title")
    return title.strip().strip("\"'“”").rstrip(".,;:!?").strip()


def _parse_create(text: str, candidates: Sequence[EventMatchCandidate], now: datetime) -> CommandResult:
    intent = Intent.CREATE_EVENT
    m = CREATE_TITLE_RULE.search(text)
    title = _clean_title(m.group("title")) if m else ""
    rest = f"{text[:m.start()]} {text[m.end():]}" if m else text
    slots = extract(CREATE_RULES, rest)

    missing = []
    if not title:
        missing.append("a title")
    if not slots.get("date"):
        missing.append("a date")
    if missing:
        return _clarify(intent, f"Please tell me {' and '.join(missing)} for the new event.")

    try:
        start, end = _resolve_times(slots)
    except TimeParseError as e:
        return _bad_time(intent, e)
    start = start or DEFAULT_START_TIME

    if not is_valid_range(start, end):
        return _invalid_range(intent, slots.get("start", start), slots.get("end", end))

    return CommandResult(
        intent=intent,
        use_local_fallback=True,
        event_details=EventDetails(
            title=title,
            date=resolve_date(slots["date"], now),
            start_time=start,
            end_time=end,
            description=slots.get("description"),
        ),
    )


def _parse_query(text: str, candidates: Sequence[EventMatchCandidate], now: datetime) -> CommandResult:
    intent = Intent.QUERY_EVENTS
    slots = extract(QUERY_RULES, text)
    if not slots.get("date"):
        return _clarify(intent, "Which day would you like me to check?")
    return CommandResult(
        intent=intent,
        use_local_fallback=True,
        query_details=QueryDetails(target_date=resolve_date(slots["date"], now)),
    )


def _parse_modify(text: str, candidates: Sequence[EventMatchCandidate], now: datetime) -> CommandResult:
    intent = Intent.MODIFY_EVENT
    m = MODIFY_NAME_RULE.search(text)
    event_name = WITH_QUALIFIER_RE.sub("", m.group("event_name")).strip() if m else ""
    if not event_name:
        return _clarify(intent, "Which event would you like to change?")

    slots = extract(MODIFY_OVERLAY_RULES, text[m.end():])
    try:
        start, end = _resolve_times(slots)
    except TimeParseError as e:
        return _bad_time(intent, e)
    if not is_valid_range(start, end):
        return _invalid_range(intent, slots["start"], slots["end"])

    if candidates:
        matches = match_candidates(event_name, candidates)
        if len(matches) > 1:
            return _clarify(
                intent,
                f'I found {len(matches)} events matching "{event_name}". Which one did you mean?',
                to_options(matches),
            )

    return CommandResult(
        intent=intent,
        use_local_fallback=True,
        modify_details=ModifyDetails(
            event_name=event_name,
            date=resolve_date(slots["date"], now) if slots.get("date") else None,
            start_time=start,
            end_time=end,
            description=slots.get("description"),
        ),
    )


def _parse_delete(text: str, candidates: Sequence[EventMatchCandidate], now: datetime) -> CommandResult:
    intent = Intent.DELETE_EVENTS
    slots = extract(DELETE_RULES, text)
    if not slots.get("date"):
        return _clarify(intent, "Please specify the date of the events you want to cancel.")

    try:
        start, end = _resolve_times(slots)
    except TimeParseError as e:
        return _bad_time(intent, e)
    if not is_valid_range(start, end):
        return _invalid_range(intent, slots["start"], slots["end"])

    return CommandResult(
        intent=intent,
        use_local_fallback=True,
        delete_details=DeleteDetails(
            target_date=resolve_date(slots["date"], now),
            start_time=start,
            end_time=end,
        ),
    )


_PARSERS: Dict[Intent, Callable[[str, Sequence[EventMatchCandidate], datetime], CommandResult]] = {
    Intent.CREATE_EVENT: _parse_create,
    Intent.QUERY_EVENTS: _parse_query,
    Intent.MODIFY_EVENT: _parse_modify,
    Intent.DELETE_EVENTS: _parse_delete,
}


def parse_command(
    text: str,
    context_events: Optional[Sequence[EventMatchCandidate]] = None,
    *,
    now: datetime,
) -> CommandResult:
    """Parse a command into a CommandResult without any remote calls.

    Supported patterns:
    - "schedule a meeting tomorrow at 3 PM" -> CREATE_EVENT (start defaults to 09:00)
    - "what do I have on my calendar for friday" -> QUERY_EVENTS
    - "modify the product call with Sharan to start at 4 PM" -> MODIFY_EVENT ("product call")
    - "cancel all my meetings between 4 pm and 6 pm today" -> DELETE_EVENTS with a window

    Text matching no intent keyword yields a result with intent None and no clarification.
    """
    raw = (text or "").strip()
    intent = classify_intent(raw)
    if intent is None:
        logger.debug("Local interpreter found no intent keyword.")
        return CommandResult(use_local_fallback=True)
    return _PARSERS[intent](raw, context_events or [], now)
