"""Declarative extraction rules for the local interpreter.

Each intent owns an ordered table of `ExtractionRule`s. A rule is a regex whose
named groups are the slots it fills (title, date, start, end, ...). `extract`
runs a table over the command and keeps the first value found for each slot,
so range rules are listed before the single start/end rules they supersede.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from voicecal.interpreter.datetime_resolver import DATE_TOKEN_PATTERN, TIME_TOKEN_PATTERN

DATE = DATE_TOKEN_PATTERN
TIME = TIME_TOKEN_PATTERN


@dataclass(frozen=True)
class ExtractionRule:
    name: str
    pattern: re.Pattern

    @property
    def slots(self) -> Tuple[str, ...]:
        return tuple(self.pattern.groupindex)

    def search(self, text: str) -> Optional[re.Match]:
        return self.pattern.search(text)


def _rule(name: str, pattern: str) -> ExtractionRule:
    return ExtractionRule(name=name, pattern=re.compile(pattern, re.I))


def extract(rules: Iterable[ExtractionRule], text: str) -> Dict[str, str]:
    """Run `rules` in order over `text`; first value wins per slot."""
    slots: Dict[str, str] = {}
    for rule in rules:
        if all(slot in slots for slot in rule.slots):
            continue
        m = rule.search(text)
        if not m:
            continue
        for slot, value in m.groupdict().items():
            if value and slot not in slots:
                slots[slot] = value.strip()
    return slots


# Clause starters that end a free-text title or name.
_CLAUSE = r"(?:for|at|on|from|between|until|till|about|regarding|with\s+(?:the\s+)?(?:description|notes?))"
_END = r"\s*[.?!,]?\s*$"

TIME_RANGE = _rule(
    "time_range",
    rf"\b(?:from|between)\s+(?P<start>{TIME})\s*(?:to|and|until|till|through|-|–)\s*(?P<end>{TIME})",
)
START_TIME = _rule("start_time", rf"\b(?:at|from|starting(?:\s+at)?|start\s+at)\s+(?P<start>{TIME})")
END_TIME = _rule("end_time", rf"\b(?:to|until|till|ending(?:\s+at)?|ends?\s+at)\s+(?P<end>{TIME})")
ANY_DATE = _rule("date", rf"\b(?P<date>{DATE})\b")
DESCRIPTION = _rule(
    "description",
    r"\b(?:about|regarding|(?:with\s+)?(?:the\s+)?(?:description|notes?)(?:\s+(?:to|as|is))?:?)\s+"
    rf"(?P<description>.+?)(?=\s+(?:(?:at|from|between)\s+{TIME}|(?:on|for)\s+{DATE}\b|{DATE}\b)|{_END})",
)

# The title is matched alone; the remaining rules then run on the text around it
# so words inside the title ("monday standup") are not read as its date.
CREATE_TITLE_RULE = _rule(
    "title",
    r"\b(?:schedule|create|set\s+up)\s+(?:(?:an?|the|my)\s+)?"
    rf"(?P<title>.+?)(?=\s+(?:{_CLAUSE}\b|{DATE}\b)|{_END})",
)
CREATE_RULES = (
    ANY_DATE,
    TIME_RANGE,
    START_TIME,
    END_TIME,
    DESCRIPTION,
)

QUERY_RULES = (
    _rule("date_after_for", rf"\b(?:for|on)\s+(?P<date>{DATE})\b"),
    ANY_DATE,
)

# The event name is matched alone; the overlay rules then run on the text after it
# so words inside the name ("the monday standup") are not read as updates.
MODIFY_NAME_RULE = _rule(
    "event_name",
    r"\b(?:modify|change|update)\s+(?:(?:the|my)\s+)?"
    rf"(?P<event_name>.+?)(?=\s+(?:to|at|on|between|from)\b|{_END})",
)
# "move the standup to 4pm" sets the start; a bare "to" never sets the end here.
MODIFY_OVERLAY_RULES = (
    ANY_DATE,
    TIME_RANGE,
    START_TIME,
    _rule("moved_to", rf"\bto\s+(?P<start>{TIME})"),
    _rule("end_time", rf"\b(?:until|till|ending(?:\s+at)?|ends?\s+at)\s+(?P<end>{TIME})"),
    DESCRIPTION,
)

DELETE_RULES = (
    ANY_DATE,
    TIME_RANGE,
)

# "product call with Sharan" -> "product call"
WITH_QUALIFIER_RE = re.compile(r"\s+with\s+.+$", re.I)
# "event called Design Review" -> "Design Review"
CALLED_RE = re.compile(r"^(?:.*?\s)?(?:called|named|titled)\s+(?P<title>.+)$", re.I)
