"""Command models for voicecal.

`CommandResult` is the single output of the command interpreter. Both the
remote (model-backed) and the local (rule-based) paths produce it, and the
calendar executor consumes it.

Dates are ISO `YYYY-MM-DD` strings and times are 24-hour `HH:MM:SS` strings,
so they can be compared lexicographically. JSON field names are camelCase.
"""

from __future__ import annotations

import re
from datetime import date as _date
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_CLOCK_RE = re.compile(r"^(?P<h>\d{2}):(?P<m>\d{2}):(?P<s>\d{2})$")


def _check_iso_date(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    if not _ISO_DATE_RE.match(v):
        raise ValueError(f"date must be YYYY-MM-DD, got {v!r}")
    try:
        _date.fromisoformat(v)
    except ValueError:
        raise ValueError(f"{v!r} is not a calendar date")
    return v


def _check_clock(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    m = _CLOCK_RE.match(v)
    if not m or int(m.group("h")) > 23 or int(m.group("m")) > 59 or int(m.group("s")) > 59:
        raise ValueError(f"time must be 24-hour HH:MM:SS, got {v!r}")
    return v


class Intent(str, Enum):
    """Coarse category of calendar action a command requests."""
    CREATE_EVENT = "CREATE_EVENT"
    QUERY_EVENTS = "QUERY_EVENTS"
    MODIFY_EVENT = "MODIFY_EVENT"
    DELETE_EVENTS = "DELETE_EVENTS"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EventDetails(_CamelModel):
    """Details for a new calendar event."""
    title: str = Field(..., min_length=1, description="Event title")
    date: str = Field(..., description="Event date (YYYY-MM-DD)")
    start_time: str = Field(..., description="Start time (HH:MM:SS, 24-hour)")
    end_time: Optional[str] = Field(None, description="End time (HH:MM:SS, 24-hour)")
    description: Optional[str] = None

    @field_validator("date")
    @classmethod
    def _validate_date(cls, v):
        return _check_iso_date(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def _validate_times(cls, v):
        return _check_clock(v)


class QueryDetails(_CamelModel):
    target_date: str = Field(..., description="Date to list events for (YYYY-MM-DD)")

    @field_validator("target_date")
    @classmethod
    def _validate_target_date(cls, v):
        return _check_iso_date(v)


class ModifyDetails(_CamelModel):
    """Updates for an existing event located by a fuzzy title."""
    event_name: str = Field(..., min_length=1, description="Substring of the title to match")
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    description: Optional[str] = None

    @field_validator("date")
    @classmethod
    def _validate_date(cls, v):
        return _check_iso_date(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def _validate_times(cls, v):
        return _check_clock(v)


class DeleteDetails(_CamelModel):
    """Deletion window: every event on target_date starting inside [start_time, end_time)."""
    target_date: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    @field_validator("target_date")
    @classmethod
    def _validate_target_date(cls, v):
        return _check_iso_date(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def _validate_times(cls, v):
        return _check_clock(v)


class ClarificationOption(_CamelModel):
    id: str
    title: str
    start_time: Optional[str] = None


class Clarification(_CamelModel):
    message: str
    options: List[ClarificationOption] = Field(default_factory=list)


class EventMatchCandidate(_CamelModel):
    """An existing calendar entry supplied by the caller for disambiguation."""
    id: str
    title: str
    date: Optional[str] = None
    start_time: Optional[str] = None


_DETAILS_FIELD_BY_INTENT = {
    Intent.CREATE_EVENT: "event_details",
    Intent.QUERY_EVENTS: "query_details",
    Intent.MODIFY_EVENT: "modify_details",
    Intent.DELETE_EVENTS: "delete_details",
}


class CommandResult(_CamelModel):
    """Structured intent record for one command.

    Invariants (checked on construction):
    - at most one details object is populated, and it belongs to `intent`
    - a clarification replaces the details object for its intent
    - a start/end pair present together satisfies start < end
    """

    intent: Optional[Intent] = Field(None, description="None when the command was not understood")
    event_details: Optional[EventDetails] = None
    query_details: Optional[QueryDetails] = None
    modify_details: Optional[ModifyDetails] = None
    delete_details: Optional[DeleteDetails] = None
    use_local_fallback: bool = False
    clarification_needed: Optional[Clarification] = None

    @model_validator(mode="after")
    def _check_invariants(self) -> "CommandResult":
        populated = [name for name in _DETAILS_FIELD_BY_INTENT.values() if getattr(self, name) is not None]
        if len(populated) > 1:
            raise ValueError(f"Only one details object may be set, got {populated}")
        if populated:
            if self.intent is None or _DETAILS_FIELD_BY_INTENT[self.intent] != populated[0]:
                raise ValueError(f"{populated[0]} does not match intent {self.intent}")
            if self.clarification_needed is not None:
                raise ValueError("Details must be omitted when a clarification is needed")

        details = self.details
        start = getattr(details, "start_time", None)
        end = getattr(details, "end_time", None)
        if start and end and start >= end:
            raise ValueError(f"start_time {start} must be before end_time {end}")
        return self

    @property
    def details(self) -> Optional[BaseModel]:
        """The populated details object, if any."""
        if self.intent is None:
            return None
        return getattr(self, _DETAILS_FIELD_BY_INTENT[self.intent])

    @property
    def is_resolved(self) -> bool:
        return self.intent is not None

    def to_json_dict(self) -> Dict[str, Any]:
        """Flat JSON-compatible dict with camelCase keys and no null fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
