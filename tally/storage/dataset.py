"""
JSON storage layer for the dashboard dataset.

data.json layout:
  {
    "actionItems": [ {id, item, owner, dueDate, status, ...}, ... ],
    "meetings":    [ {title, date, participants, actionItemCount}, ... ],
    "lastUpdated": "2026-10-18T09:00:00.000Z"
  }

Action item ids are sequential integers. Keys this module does not know
about are carried through untouched.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from .models import ActionRecord, ActionStatus, MeetingRecord

logger = logging.getLogger(__name__)


class DatasetError(Exception):
    """data.json exists but is not a usable dataset."""


def _utc_now_iso() -> str:
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def write_json(path: Path, payload: Any) -> None:
    """
    Write JSON (indent 2, trailing newline) via a temp file in the same
    directory and os.replace, so readers never see a partial file.
    Raises DatasetError on any OS-level failure.
    """
    tmp: Optional[str] = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
            f.write("\n")
        os.chmod(tmp, path.stat().st_mode & 0o777 if path.exists() else 0o644)
        os.replace(tmp, path)
    except OSError as exc:
        if tmp is not None:
            Path(tmp).unlink(missing_ok=True)
        raise DatasetError(f"Could not write {path}: {exc}") from exc


class Dataset:
    def __init__(self, path: Path):
        self.path = path
        self.actions: list[ActionRecord] = []
        self.meetings: list[MeetingRecord] = []
        self.last_updated: Optional[str] = None
        self._extra: dict[str, Any] = {}

    @classmethod
    def load(cls, path: Path) -> "Dataset":
        """Read data.json. A missing file gives an empty dataset."""
        ds = cls(path)
        if not path.exists():
            logger.info(f"{path} not found — starting an empty dataset")
            return ds

        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise DatasetError(f"Could not read {path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise DatasetError(f"{path} does not contain a JSON object")

        try:
            ds.actions = [ActionRecord.from_dict(a) for a in raw.get("actionItems") or []]
            ds.meetings = [MeetingRecord.from_dict(m) for m in raw.get("meetings") or []]
        except (AttributeError, TypeError, ValueError) as exc:
            raise DatasetError(f"Malformed record in {path}: {exc}") from exc

        ds.last_updated = raw.get("lastUpdated")
        ds._extra = {
            k: v for k, v in raw.items()
            if k not in ("actionItems", "meetings", "lastUpdated")
        }
        return ds

    def to_dict(self) -> dict[str, Any]:
        return {
            **self._extra,
            "actionItems": [a.to_dict() for a in self.actions],
            "meetings": [m.to_dict() for m in self.meetings],
            "lastUpdated": self.last_updated,
        }

    def save(self) -> None:
        self.last_updated = _utc_now_iso()
        write_json(self.path, self.to_dict())
        logger.debug(f"Saved {len(self.actions)} action item(s) to {self.path}")

    # ------------------------------------------------------------------
    # Action items
    # ------------------------------------------------------------------

    def next_id(self) -> int:
        if not self.actions:
            return 1
        return max(a.id or 0 for a in self.actions) + 1

    def add_action(
        self,
        item: str,
        owner: str,
        *,
        due_date: Optional[str] = None,
        meeting_title: Optional[str] = None,
        meeting_date: Optional[str] = None,
        notes: str = "",
    ) -> ActionRecord:
        record = ActionRecord(
            id=self.next_id(),
            item=item,
            owner=owner,
            due_date=due_date,
            meeting_title=meeting_title,
            meeting_date=meeting_date,
            notes=notes,
        )
        self.actions.append(record)
        return record

    def add_raw_action(self, raw: dict[str, Any]) -> ActionRecord:
        """
        Append a record given as a JSON object. The id is always assigned here;
        status and dateAdded are kept if provided, completedDate is cleared.
        """
        record = ActionRecord.from_dict({**raw, "id": self.next_id()})
        record.completed_date = None
        self.actions.append(record)
        return record

    def get_action(self, action_id: int) -> Optional[ActionRecord]:
        for a in self.actions:
            if a.id == action_id:
                return a
        return None

    def complete_action(self, action_id: int, on: Optional[str] = None) -> Optional[ActionRecord]:
        record = self.get_action(action_id)
        if record:
            record.complete(on)
        return record

    def list_actions(
        self,
        status: Optional[ActionStatus] = None,
        owner: Optional[str] = None,
    ) -> list[ActionRecord]:
        actions = self.actions
        if status:
            actions = [a for a in actions if a.status == status]
        if owner:
            needle = owner.lower()
            actions = [a for a in actions if needle in (a.owner or "").lower()]
        return actions

    # ------------------------------------------------------------------
    # Meetings
    # ------------------------------------------------------------------

    def has_meeting(self, title: str, date: str) -> bool:
        return any(m.title == title and m.date == date for m in self.meetings)

    def log_meeting(self, meeting: MeetingRecord, dedupe: bool = True) -> bool:
        """Append a meeting entry. Returns False if skipped as a duplicate."""
        if dedupe and self.has_meeting(meeting.title, meeting.date):
            logger.debug(f"Meeting already logged: {meeting.title} ({meeting.date})")
            return False
        self.meetings.append(meeting)
        return True
