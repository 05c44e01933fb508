"""Fuzzy matching of spoken event names against candidate events."""

import re
from typing import List, Sequence

from voicecal.models.command import ClarificationOption, EventMatchCandidate

_WORD_RE = re.compile(r"[a-z0-9:]+")


def _words(text: str) -> List[str]:
    return _WORD_RE.findall((text or "").lower())


def title_matches(event_name: str, title: str) -> bool:
    """True if `title` contains `event_name` as a substring or contains all of its words."""
    name = (event_name or "").strip().lower()
    if not name:
        return False
    if name in (title or "").lower():
        return True
    title_words = set(_words(title))
    name_words = _words(name)
    return bool(name_words) and all(w in title_words for w in name_words)


def match_candidates(
    event_name: str, candidates: Sequence[EventMatchCandidate]
) -> List[EventMatchCandidate]:
    """Candidates whose title matches `event_name`, in the caller's order."""
    return [c for c in candidates if title_matches(event_name, c.title)]


def to_options(candidates: Sequence[EventMatchCandidate]) -> List[ClarificationOption]:
    return [
        ClarificationOption(id=c.id, title=c.title, start_time=c.start_time)
        for c in candidates
    ]
