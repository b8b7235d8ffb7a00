from __future__ import annotations

import json
from pathlib import Path

import pytest

from tally.config import (
    Config,
    DashboardConfig,
    ExtractionConfig,
    GranolaConfig,
    PublishConfig,
)

_ENV_KEYS = (
    "TALLY_CACHE_PATH",
    "TALLY_REPO_DIR",
    "TALLY_DEFAULT_OWNER",
    "TALLY_KNOWN_NAMES",
    "TALLY_PUBLISH",
    "TALLY_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def write_cache(path: Path, documents: dict, panels: dict) -> Path:
    """Write a Granola-style cache file (state double-encoded as a JSON string)."""
    inner = {"state": {"documents": documents, "documentPanels": panels}}
    path.write_text(json.dumps({"cache": json.dumps(inner)}), encoding="utf-8")
    return path


@pytest.fixture
def granola_state() -> tuple[dict, dict]:
    """Five documents: two new, one deleted, one without panels, one already processed."""
    documents = {
        "m-a": {
            "id": "m-a",
            "title": "Pricing sync",
            "created_at": "2026-03-02T15:00:00.000Z",
            "people": {
                "creator": {"name": "Blake Holt"},
                "attendees": [
                    {
                        "email": "jacob@example.com",
                        "details": {"person": {"name": {"fullName": "Jacob Reed"}}},
                    }
                ],
            },
        },
        "m-b": {
            "id": "m-b",
            "title": "Standup",
            "created_at": "2026-03-01T10:00:00.000Z",
        },
        "m-c": {
            "id": "m-c",
            "title": "Deleted meeting",
            "created_at": "2026-02-20T10:00:00.000Z",
            "deleted_at": "2026-02-21T10:00:00.000Z",
        },
        "m-d": {
            "id": "m-d",
            "title": "No notes yet",
            "created_at": "2026-03-03T10:00:00.000Z",
        },
        "m-e": {
            "id": "m-e",
            "title": "Old meeting",
            "created_at": "2026-01-05T10:00:00.000Z",
        },
    }
    panels = {
        "m-a": {
            "p1": {
                "title": "Summary",
                "order": 0,
                "original_content": (
                    "<p>Reviewed pricing tiers.</p>"
                    "<p>Jacob to review the contract by Friday</p>"
                ),
            },
            "p2": {
                "title": "Next Steps",
                "order": 1,
                "original_content": (
                    "<ul><li><p>Blake: send the deck</p></li>"
                    "<li><p>Update the pricing page copy</p></li></ul>"
                ),
            },
        },
        "m-b": {
            "p": {
                "title": "Action Items",
                "order": 0,
                "original_content": "<p>Cole will fix the login bug</p>",
            }
        },
        "m-c": {
            "p": {
                "title": "Action Items",
                "order": 0,
                "original_content": "<p>Nobody should see this item</p>",
            }
        },
        "m-d": {},
        "m-e": {
            "p": {
                "title": "Action Items",
                "order": 0,
                "original_content": "<p>Already imported last month</p>",
            }
        },
    }
    return documents, panels


@pytest.fixture
def config(tmp_path: Path, granola_state: tuple[dict, dict]) -> Config:
    repo = tmp_path / "repo"
    repo.mkdir()
    cache = write_cache(tmp_path / "cache-v3.json", *granola_state)
    (repo / ".sync-state.json").write_text(json.dumps({"processedMeetings": ["m-e"]}))
    return Config(
        granola=GranolaConfig(cache_path=str(cache)),
        dashboard=DashboardConfig(repo_dir=str(repo)),
        extraction=ExtractionConfig(default_owner="Blake", known_names=["Jacob"]),
        publish=PublishConfig(enabled=False),
    )
