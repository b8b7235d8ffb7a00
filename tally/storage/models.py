"""
Data models for the dashboard dataset (data.json).
Plain dataclasses. JSON keys are camelCase because the dashboard front end
reads the file directly.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Optional, Union


class ActionStatus(str, Enum):
    OPEN = "open"
    COMPLETED = "completed"


def _today() -> str:
    return date.today().isoformat()


@dataclass
class ActionRecord:
    id: int
    item: str
    owner: str
    due_date: Optional[str] = None
    # Statuses set elsewhere (e.g. "in-progress" from the dashboard) stay raw strings
    status: Union[ActionStatus, str] = ActionStatus.OPEN
    meeting_title: Optional[str] = None
    meeting_date: Optional[str] = None
    date_added: str = field(default_factory=_today)
    completed_date: Optional[str] = None
    notes: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def status_value(self) -> str:
        return self.status.value if isinstance(self.status, ActionStatus) else self.status

    def complete(self, on: Optional[str] = None) -> None:
        self.status = ActionStatus.COMPLETED
        self.completed_date = on or _today()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "item": self.item,
            "owner": self.owner,
            "dueDate": self.due_date,
            "status": self.status_value,
            "meetingTitle": self.meeting_title,
            "meetingDate": self.meeting_date,
            "dateAdded": self.date_added,
            "completedDate": self.completed_date,
            "notes": self.notes,
            **self.extra,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "ActionRecord":
        known = {
            "id", "item", "owner", "dueDate", "status", "meetingTitle",
            "meetingDate", "dateAdded", "completedDate", "notes",
        }
        status = raw.get("status") or ActionStatus.OPEN.value
        return cls(
            id=int(raw.get("id") or 0),
            item=raw.get("item", ""),
            owner=raw.get("owner", ""),
            due_date=raw.get("dueDate"),
            status=ActionStatus(status) if status in _STATUS_VALUES else str(status),
            meeting_title=raw.get("meetingTitle"),
            meeting_date=raw.get("meetingDate"),
            date_added=raw.get("dateAdded") or _today(),
            completed_date=raw.get("completedDate"),
            notes=raw.get("notes") or "",
            extra={k: v for k, v in raw.items() if k not in known},
        )


_STATUS_VALUES = {s.value for s in ActionStatus}


@dataclass
class MeetingRecord:
    title: str
    date: str
    participants: list[str] = field(default_factory=list)
    action_item_count: int = 0
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "date": self.date,
            "participants": list(self.participants),
            "actionItemCount": self.action_item_count,
            **self.extra,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "MeetingRecord":
        known = {"title", "date", "participants", "actionItemCount"}
        return cls(
            title=raw.get("title", ""),
            date=raw.get("date", ""),
            participants=list(raw.get("participants") or []),
            action_item_count=int(raw.get("actionItemCount") or 0),
            extra={k: v for k, v in raw.items() if k not in known},
        )
