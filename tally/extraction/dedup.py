"""
Deduplication for parsed action items.

The same action often shows up twice in a Granola summary: once under
"Next Steps" and again as a sentence in the discussion notes. Items are
treated as duplicates when the start of their text matches, ignoring case.
"""
from __future__ import annotations

from typing import Protocol, Sequence, TypeVar


class _HasText(Protocol):
    text: str


T = TypeVar("T", bound=_HasText)


def dedup_key(text: str, prefix: int = 50) -> str:
    """Lowercased leading characters of the text."""
    return text.lower()[:prefix]


def deduplicate(items: Sequence[T], prefix: int = 50) -> list[T]:
    """
    Remove items whose dedup key was already seen.
    The first occurrence wins and the original order is kept.
    """
    seen: set[str] = set()
    unique: list[T] = []
    for item in items:
        key = dedup_key(item.text, prefix)
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique
