"""
Turns a Granola meeting into parser input: panel HTML → plain lines,
people records → attendee display names.
"""
from __future__ import annotations

import html
import re
from typing import Iterable

from ..extraction.patterns import LineKind, classify
from .cache import Panel

_BR = re.compile(r"<br\s*/?>", re.IGNORECASE)
_LI_OPEN = re.compile(r"<li\b[^>]*>", re.IGNORECASE)
_HEADING = re.compile(r"<h([1-6])\b[^>]*>(.*?)</h\1\s*>", re.IGNORECASE | re.DOTALL)
_BLOCK = re.compile(
    r"</?(?:p|div|ul|ol|li|blockquote|tr|table|section|article|h[1-6])\b[^>]*>",
    re.IGNORECASE,
)
_TAG = re.compile(r"<[^>]+>")
_SPACES = re.compile(r"[ \t\r\f\v\xa0]+")


def _render_heading(match: re.Match) -> str:
    level = min(int(match.group(1)), 3)
    text = _SPACES.sub(" ", html.unescape(_TAG.sub(" ", match.group(2)))).strip()
    # A heading that names an action section must stay a section header
    if classify(text, inside_section=False) is LineKind.HEADER:
        return f"\n{text}\n"
    return f"\n{'#' * level} {text}\n"


def strip_html(content: str) -> str:
    """
    Reduce panel HTML to plain text, one line per block element.
    List items become "- " bullets and headings become markdown headings.
    """
    text = _HEADING.sub(_render_heading, content)
    text = _BR.sub("\n", text)
    text = _LI_OPEN.sub("\n- ", text)
    text = _BLOCK.sub("\n", text)
    text = _TAG.sub(" ", text)
    text = html.unescape(text)

    lines: list[str] = []
    pending_bullet = False
    for raw in text.split("\n"):
        line = _SPACES.sub(" ", raw).strip()
        if not line:
            continue
        if line == "-":
            pending_bullet = True
            continue
        if pending_bullet:
            line = f"- {line}"
            pending_bullet = False
        lines.append(line)
    return "\n".join(lines)


def assemble_panel_text(panels: Iterable[Panel]) -> str:
    """Join panels in display order as "Title:\\ncontent", blank line between."""
    ordered = sorted(panels, key=lambda p: p.order or 0)
    return "\n\n".join(f"{p.title}:\n{strip_html(p.content_html)}" for p in ordered)


def _dig(obj, *keys):
    for key in keys:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


def attendee_names(people: dict) -> list[str]:
    """Creator first, then attendees; duplicates dropped, order kept."""
    if not isinstance(people, dict):
        return []
    names: list[str] = []
    creator_name = _dig(people, "creator", "name")
    if creator_name and isinstance(creator_name, str):
        names.append(creator_name)

    attendees = people.get("attendees")
    for a in attendees if isinstance(attendees, list) else []:
        if not isinstance(a, dict):
            continue
        full_name = _dig(a, "details", "person", "name", "fullName")
        if not isinstance(full_name, str):
            full_name = None
        names.append(full_name or a.get("email") or "Unknown")

    return list(dict.fromkeys(names))
