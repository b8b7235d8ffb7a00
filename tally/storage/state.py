"""
Sync state: which Granola meetings have already been processed.
Stored next to data.json as .sync-state.json so re-runs skip old meetings.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from .dataset import DatasetError, write_json


class SyncState:
    def __init__(self, path: Path, processed: Optional[list[str]] = None):
        self.path = path
        self._processed: dict[str, None] = dict.fromkeys(processed or [])

    @classmethod
    def load(cls, path: Path) -> "SyncState":
        if not path.exists():
            return cls(path)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            processed = list(raw.get("processedMeetings") or [])
        except (OSError, ValueError, AttributeError, TypeError) as exc:
            raise DatasetError(f"Could not read sync state {path}: {exc}") from exc
        return cls(path, processed)

    def is_processed(self, meeting_id: str) -> bool:
        return meeting_id in self._processed

    def mark_processed(self, meeting_id: str) -> None:
        self._processed[meeting_id] = None

    @property
    def processed(self) -> list[str]:
        return list(self._processed)

    def save(self) -> None:
        write_json(self.path, {"processedMeetings": self.processed})
