"""Data models for voicecal."""

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

__all__ = [
    "Clarification",
    "ClarificationOption",
    "CommandResult",
    "DeleteDetails",
    "EventDetails",
    "EventMatchCandidate",
    "Intent",
    "ModifyDetails",
    "QueryDetails",
]
