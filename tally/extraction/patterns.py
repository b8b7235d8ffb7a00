"""
Line patterns used by the action-item parser.

Patterns are kept as an ordered table of (kind, regex) pairs. The parser
walks the table top to bottom and the first matching row decides how a
line is treated, so order matters: headers are checked before terminators.
"""
from __future__ import annotations

import re
from enum import Enum
from typing import Iterable, Optional, Pattern


class LineKind(str, Enum):
    HEADER = "header"
    TERMINATOR = "terminator"


# Section headers: "Next Steps", "Action Items", "Follow-ups", "To-do", "Tasks:", ...
HEADER_PATTERNS: list[Pattern[str]] = [
    re.compile(r"^next[\s-]?steps\b", re.IGNORECASE),
    re.compile(r"^action[\s-]?items\b", re.IGNORECASE),
    re.compile(r"^follow[\s-]?ups?\b", re.IGNORECASE),
    re.compile(r"^to[\s-]?dos?\b", re.IGNORECASE),
    re.compile(r"^tasks?\s*:", re.IGNORECASE),
    re.compile(r"^deliverables\b", re.IGNORECASE),
]

# Section terminators, only honoured while inside a section
TERMINATOR_PATTERNS: list[Pattern[str]] = [
    re.compile(r"^chat with meeting transcript", re.IGNORECASE),
    re.compile(r"^#{1,3}\s"),
    re.compile(r"^[A-Z][a-z]+ [A-Z][a-z]+ &"),
]

LINE_TABLE: list[tuple[LineKind, Pattern[str]]] = [
    *((LineKind.HEADER, p) for p in HEADER_PATTERNS),
    *((LineKind.TERMINATOR, p) for p in TERMINATOR_PATTERNS),
]

# "Blake:" or "Blake Smith: send the deck"
OWNER_PREFIX = re.compile(r"^(\w+(?:\s\w+)?)\s*:")

BULLET = re.compile(r"^[-*•]\s*")

_MODALS = r"(?:to|will|should|needs?\s+to)"


def classify(line: str, inside_section: bool) -> Optional[LineKind]:
    """Return the structural kind of a line, or None for ordinary content."""
    for kind, pattern in LINE_TABLE:
        if kind is LineKind.TERMINATOR and not inside_section:
            continue
        if pattern.search(line):
            return kind
    return None


def strip_bullet(text: str) -> str:
    return BULLET.sub("", text.strip(), count=1).strip()


def build_modal_pattern(names: Iterable[str]) -> Optional[Pattern[str]]:
    """
    Compile the "<Name> to/will/should/need(s) to <task>" matcher for a set of
    first names. Returns None when there are no names to look for.
    """
    unique = {n.strip() for n in names if n and n.strip()}
    if not unique:
        return None
    # Longest first so "Jennifer" is tried before "Jenn"
    alternation = "|".join(
        re.escape(n) for n in sorted(unique, key=lambda n: (-len(n), n.lower()))
    )
    return re.compile(
        rf"\b(?P<name>{alternation})\s+{_MODALS}\s+(?P<task>\S.*)",
        re.IGNORECASE,
    )
