"""Keyword intent classifier for the local interpreter."""

from typing import Callable, List, Optional, Tuple

from voicecal.models.command import Intent


def _has_any(text: str, *words: str) -> bool:
    return any(w in text for w in words)


# Ordered, first match wins. Deletion is checked first because cancellations
# often contain words like "change" in free text.
_INTENT_PREDICATES: List[Tuple[Intent, Callable[[str], bool]]] = [
    (Intent.DELETE_EVENTS, lambda t: _has_any(t, "cancel", "delete")),
    (Intent.CREATE_EVENT, lambda t: _has_any(t, "schedule", "create", "set up")),
    (
        Intent.QUERY_EVENTS,
        lambda t: "what" in t and _has_any(t, "have", "on") and "calendar" in t,
    ),
    (
        Intent.MODIFY_EVENT,
        lambda t: _has_any(t, "modify", "change", "update", "modified")
        and not _has_any(t, "cancel", "delete"),
    ),
]


def classify_intent(text: str) -> Optional[Intent]:
    """Pick the intent for a command, or None when no keyword rule applies."""
    lowered = (text or "").lower()
    for intent, predicate in _INTENT_PREDICATES:
        if predicate(lowered):
            return intent
    return None
