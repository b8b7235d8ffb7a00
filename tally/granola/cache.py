"""
Reader for Granola's local cache file (cache-v3.json).

The file wraps the app state twice: the top-level JSON object has a "cache"
key whose value is itself a JSON string. Inside that, "state.documents" holds
the meetings and "state.documentPanels" the AI-generated panels per meeting.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


class CacheError(Exception):
    """The Granola cache is missing or could not be decoded."""


@dataclass
class Panel:
    """AI-generated summary panel (e.g. 'Summary', 'Next Steps')."""

    title: str = ""
    order: float = 0
    content_html: str = ""


@dataclass
class GranolaMeeting:
    id: str
    title: str
    created_at: datetime
    deleted: bool = False
    people: dict = field(default_factory=dict)
    panels: list[Panel] = field(default_factory=list)

    @property
    def date(self) -> str:
        """Meeting day as YYYY-MM-DD (UTC)."""
        return self.created_at.astimezone(timezone.utc).date().isoformat()


@dataclass
class GranolaCache:
    meetings: list[GranolaMeeting] = field(default_factory=list)

    def get(self, meeting_id: str) -> Optional[GranolaMeeting]:
        for m in self.meetings:
            if m.id == meeting_id:
                return m
        return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _parse_panels(raw: Any) -> list[Panel]:
    if not isinstance(raw, dict):
        return []
    panels = []
    for p in raw.values():
        if not isinstance(p, dict):
            continue
        panels.append(
            Panel(
                title=p.get("title") or "",
                order=p.get("order") or 0,
                content_html=p.get("original_content") or "",
            )
        )
    return panels


def parse_state(state: dict) -> GranolaCache:
    """Build meetings from the decoded "state" object."""
    docs = state.get("documents") or {}
    all_panels = state.get("documentPanels") or {}

    meetings = []
    for doc_id, doc in docs.items():
        if not isinstance(doc, dict):
            continue
        created = parse_timestamp(doc.get("created_at"))
        if created is None:
            logger.warning(f"Skipping document {doc_id}: no usable created_at")
            continue
        meetings.append(
            GranolaMeeting(
                id=doc.get("id") or doc_id,
                title=doc.get("title") or "Untitled",
                created_at=created,
                deleted=bool(doc.get("deleted_at")),
                people=doc.get("people") or {},
                panels=_parse_panels(all_panels.get(doc_id)),
            )
        )
    return GranolaCache(meetings=meetings)


def load_cache(path: Path) -> GranolaCache:
    """
    Read and decode the Granola cache file.
    Raises CacheError if the file is missing or malformed.
    """
    if not path.exists():
        raise CacheError(f"Granola cache not found at {path}")

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        inner = raw["cache"]
        if isinstance(inner, str):
            inner = json.loads(inner)
        state = inner["state"]
    except (OSError, ValueError, KeyError, TypeError) as exc:
        raise CacheError(f"Could not read Granola cache at {path}: {exc}") from exc

    if not isinstance(state, dict):
        raise CacheError(f"Unexpected Granola cache layout in {path}")

    cache = parse_state(state)
    logger.debug(f"Loaded {len(cache.meetings)} meeting(s) from {path}")
    return cache
