"""
Sync pipeline (shared by `tally sync` and the watcher):
  1. Read the Granola cache
  2. Pick meetings not seen before that have AI panels
  3. Parse action items from each meeting's panel text
  4. Merge items and meeting log entries into data.json
  5. Commit and push the dataset
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from .config import Config
from .extraction.parser import ActionExtractor, ActionItem
from .granola.cache import GranolaCache, GranolaMeeting, load_cache
from .granola.panels import assemble_panel_text, attendee_names
from .integrations.publisher import PublishResult, publish
from .storage.dataset import Dataset
from .storage.models import MeetingRecord
from .storage.state import SyncState

logger = logging.getLogger(__name__)


@dataclass
class MeetingSummary:
    meeting_id: str
    title: str
    date: str
    attendees: list[str]
    items: list[ActionItem]
    added_ids: list[int] = field(default_factory=list)


@dataclass
class SyncResult:
    meetings: list[MeetingSummary] = field(default_factory=list)
    publish: Optional[PublishResult] = None
    dry_run: bool = False

    @property
    def items_added(self) -> int:
        return sum(len(m.items) for m in self.meetings)

    @property
    def commit_message(self) -> str:
        return (
            f"Auto-sync: {len(self.meetings)} meeting(s), "
            f"{self.items_added} action item(s)"
        )


def select_new_meetings(cache: GranolaCache, state: SyncState) -> list[GranolaMeeting]:
    """Unprocessed, not deleted, with at least one panel; oldest first."""
    fresh = [
        m for m in cache.meetings
        if not m.deleted and not state.is_processed(m.id) and m.panels
    ]
    return sorted(fresh, key=lambda m: m.created_at)


def process_meeting(
    meeting: GranolaMeeting,
    extractor: ActionExtractor,
    dataset: Dataset,
) -> MeetingSummary:
    """Extract one meeting's items and merge them into the dataset."""
    attendees = attendee_names(meeting.people)
    panel_text = assemble_panel_text(meeting.panels)
    items = extractor.extract(panel_text, attendees)

    summary = MeetingSummary(
        meeting_id=meeting.id,
        title=meeting.title,
        date=meeting.date,
        attendees=attendees,
        items=items,
    )

    for ai in items:
        record = dataset.add_action(
            ai.text,
            ai.owner,
            meeting_title=meeting.title,
            meeting_date=meeting.date,
        )
        summary.added_ids.append(record.id)
        logger.info(f"  + #{record.id}: {ai.text[:60]}")

    dataset.log_meeting(
        MeetingRecord(
            title=meeting.title,
            date=meeting.date,
            participants=attendees,
            action_item_count=len(items),
        )
    )
    return summary


def run_sync(config: Config, dry_run: bool = False, push: Optional[bool] = None) -> SyncResult:
    """
    Run one sync pass. Raises CacheError/DatasetError (including a failed
    write, which leaves the meetings unprocessed); publish failures are
    reported in the result instead.
    """
    logger.info("Starting sync...")
    cache = load_cache(config.granola.cache_file)
    dataset = Dataset.load(config.data_path)
    state = SyncState.load(config.state_path)

    result = SyncResult(dry_run=dry_run)
    new_meetings = select_new_meetings(cache, state)
    if not new_meetings:
        logger.info("No new meetings to process.")
        return result

    logger.info(f"Found {len(new_meetings)} new meeting(s) to process.")
    extractor = ActionExtractor(config.extraction)

    for meeting in new_meetings:
        logger.info(f'Processing: "{meeting.title}" ({meeting.date})')
        summary = process_meeting(meeting, extractor, dataset)
        if not summary.items:
            logger.info("  No action items found in panel content.")
        result.meetings.append(summary)
        state.mark_processed(meeting.id)

    if dry_run:
        logger.info("Dry run — nothing saved.")
        return result

    # Dataset first: if it cannot be written the meetings stay unprocessed
    dataset.save()
    state.save()
    logger.info(
        f"Saved {result.items_added} new action item(s), "
        f"{len(result.meetings)} meeting(s) logged."
    )

    should_push = config.publish.enabled if push is None else push
    if should_push:
        result.publish = publish(
            config.dashboard.repo_path,
            [config.data_path],
            result.commit_message,
            remote=config.publish.remote,
            branch=config.publish.branch,
        )

    logger.info("Sync complete.")
    return result
