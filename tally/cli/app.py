"""
tally CLI — all commands.

Commands:
  sync          Import new Granola meetings, update data.json, push
  extract       Run the action-item parser over a text file (or stdin)
  list          List action items in data.json
  add           Add an action item by hand
  complete      Mark an action item as completed
  add-meeting   Log a processed meeting
  push          Commit and push the current data.json
  watch         Re-sync whenever the Granola cache changes (blocks forever)
  doctor        Diagnose setup issues
  config        Show configuration
"""
from __future__ import annotations

import json
import logging
import shutil
import sys
from pathlib import Path
from typing import List, Optional

import typer
import yaml
from rich.console import Console

from ..config import CONFIG_FILE, Config, load_config
from ..extraction.parser import extract_action_items
from ..granola.cache import CacheError, load_cache
from ..integrations.publisher import is_git_repo, publish
from ..pipeline import run_sync
from ..storage.dataset import Dataset, DatasetError
from ..storage.models import ActionStatus, MeetingRecord
from . import display

app = typer.Typer(
    name="tally",
    help="Meeting action items from Granola notes, synced to a dashboard repo.",
    no_args_is_help=True,
    add_completion=False,
    pretty_exceptions_enable=False,
)
console = Console()
logger = logging.getLogger(__name__)

_UPDATE_MESSAGE = "Update action items dashboard"


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _load_dataset(config: Config) -> Dataset:
    try:
        return Dataset.load(config.data_path)
    except DatasetError as exc:
        display.print_error(str(exc))
        raise typer.Exit(1)


def _save_and_publish(config: Config, dataset: Dataset, no_push: bool) -> None:
    try:
        dataset.save()
    except DatasetError as exc:
        display.print_error(str(exc))
        raise typer.Exit(1)
    display.print_success(f"Saved {config.data_path}")
    if no_push or not config.publish.enabled:
        return
    result = publish(
        config.dashboard.repo_path,
        [config.data_path],
        _UPDATE_MESSAGE,
        remote=config.publish.remote,
        branch=config.publish.branch,
    )
    display.print_publish_result(result)


# ── sync ──────────────────────────────────────────────────────────────────────

@app.command()
def sync(
    dry_run: bool = typer.Option(False, "--dry-run", help="Extract and report, write nothing"),
    no_push: bool = typer.Option(False, "--no-push", help="Save locally but skip git push"),
) -> None:
    """Import action items from new Granola meetings and publish the dataset."""
    config = load_config()
    _setup_logging(config.display.log_level)

    try:
        result = run_sync(config, dry_run=dry_run, push=False if no_push else None)
    except (CacheError, DatasetError) as exc:
        logger.error(str(exc))
        display.print_error(str(exc))
        raise typer.Exit(1)

    display.print_sync_result(result)


# ── extract ───────────────────────────────────────────────────────────────────

@app.command()
def extract(
    source: Optional[Path] = typer.Argument(
        None, help="Text file with panel content (default: stdin)"
    ),
    attendee: Optional[List[str]] = typer.Option(
        None, "--attendee", "-a", help="Meeting attendee full name (repeatable)"
    ),
    known_name: Optional[List[str]] = typer.Option(
        None, "--name", "-n", help="Extra first name to recognise (repeatable)"
    ),
    default_owner: Optional[str] = typer.Option(
        None, "--default-owner", help="Owner when no one else is identified"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print items as JSON"),
) -> None:
    """Run the action-item parser over plain text and print what it finds."""
    config = load_config()

    if source is None or str(source) == "-":
        text = sys.stdin.read()
    else:
        if not source.exists():
            display.print_error(f"File not found: {source}")
            raise typer.Exit(1)
        text = source.read_text(encoding="utf-8")

    items = extract_action_items(
        text,
        attendee or [],
        default_owner=default_owner or config.extraction.default_owner,
        known_names=[*config.extraction.known_names, *(known_name or [])],
        min_line_length=config.extraction.min_line_length,
        dedup_prefix=config.extraction.dedup_prefix,
    )

    if as_json:
        typer.echo(json.dumps(
            [{"item": i.text, "owner": i.owner} for i in items], indent=2, ensure_ascii=False
        ))
    else:
        display.print_extracted(items)


# ── list ──────────────────────────────────────────────────────────────────────

@app.command(name="list")
def list_actions(
    status: str = typer.Option("open", "--status", "-s", help="open, completed or all"),
    owner: Optional[str] = typer.Option(None, "--owner", "-o", help="Filter by owner"),
    limit: int = typer.Option(50, "--limit", "-n", help="Number of items to show"),
) -> None:
    """List action items in the dataset."""
    config = load_config()
    dataset = _load_dataset(config)

    if status == "all":
        wanted = None
    else:
        try:
            wanted = ActionStatus(status)
        except ValueError:
            display.print_error(f"Unknown status '{status}'. Use open, completed or all.")
            raise typer.Exit(1)

    actions = dataset.list_actions(status=wanted, owner=owner)
    display.print_action_list(actions[-limit:] if limit > 0 else actions)


# ── add / complete / add-meeting / push ───────────────────────────────────────

@app.command()
def add(
    item: Optional[str] = typer.Option(None, "--item", "-i", help="Action item text"),
    owner: Optional[str] = typer.Option(None, "--owner", "-o", help="Who owns it"),
    due: Optional[str] = typer.Option(None, "--due", help="Due date (YYYY-MM-DD)"),
    meeting: Optional[str] = typer.Option(None, "--meeting", help="Meeting title"),
    meeting_date: Optional[str] = typer.Option(None, "--meeting-date", help="Meeting date"),
    notes: str = typer.Option("", "--notes", help="Free-form notes"),
    raw_json: Optional[str] = typer.Option(None, "--json", help="Full record as a JSON object"),
    no_push: bool = typer.Option(False, "--no-push", help="Save locally but skip git push"),
) -> None:
    """Add an action item to the dataset."""
    config = load_config()
    _setup_logging(config.display.log_level)
    dataset = _load_dataset(config)

    if raw_json:
        try:
            raw = json.loads(raw_json)
        except ValueError as exc:
            display.print_error(f"Invalid JSON: {exc}")
            raise typer.Exit(1)
        if not isinstance(raw, dict) or not raw.get("item"):
            display.print_error("JSON record needs at least an \"item\" field.")
            raise typer.Exit(1)
        record = dataset.add_raw_action(raw)
    else:
        if not item or not item.strip():
            display.print_error("Provide --item (or --json).")
            raise typer.Exit(1)
        record = dataset.add_action(
            item.strip(),
            owner or config.extraction.default_owner,
            due_date=due,
            meeting_title=meeting,
            meeting_date=meeting_date,
            notes=notes,
        )

    display.print_success(f"Added action item #{record.id}: {record.item}")
    _save_and_publish(config, dataset, no_push)


@app.command()
def complete(
    action_id: int = typer.Argument(..., help="Action item id"),
    no_push: bool = typer.Option(False, "--no-push", help="Save locally but skip git push"),
) -> None:
    """Mark an action item as completed."""
    config = load_config()
    _setup_logging(config.display.log_level)
    dataset = _load_dataset(config)

    record = dataset.complete_action(action_id)
    if record is None:
        display.print_error(f"Action item #{action_id} not found")
        raise typer.Exit(1)

    display.print_success(f"Completed action item #{action_id}: {record.item}")
    _save_and_publish(config, dataset, no_push)


@app.command(name="add-meeting")
def add_meeting(
    title: Optional[str] = typer.Option(None, "--title", help="Meeting title"),
    date: Optional[str] = typer.Option(None, "--date", help="Meeting date (YYYY-MM-DD)"),
    participant: Optional[List[str]] = typer.Option(
        None, "--participant", "-p", help="Participant name (repeatable)"
    ),
    raw_json: Optional[str] = typer.Option(None, "--json", help="Full record as a JSON object"),
    no_push: bool = typer.Option(False, "--no-push", help="Save locally but skip git push"),
) -> None:
    """Log a processed meeting."""
    config = load_config()
    _setup_logging(config.display.log_level)
    dataset = _load_dataset(config)

    if raw_json:
        try:
            raw = json.loads(raw_json)
        except ValueError as exc:
            display.print_error(f"Invalid JSON: {exc}")
            raise typer.Exit(1)
        if not isinstance(raw, dict):
            display.print_error("Meeting JSON must be an object.")
            raise typer.Exit(1)
        meeting = MeetingRecord.from_dict(raw)
    else:
        if not title or not date:
            display.print_error("Provide --title and --date (or --json).")
            raise typer.Exit(1)
        meeting = MeetingRecord(title=title, date=date, participants=participant or [])

    if dataset.log_meeting(meeting):
        display.print_success(f"Logged meeting: {meeting.title}")
    else:
        display.print_info(f"Meeting already logged: {meeting.title} ({meeting.date})")
    _save_and_publish(config, dataset, no_push)


@app.command()
def push() -> None:
    """Commit and push the current dataset."""
    config = load_config()
    _setup_logging(config.display.log_level)
    if not config.data_path.exists():
        display.print_error(f"Nothing to push: {config.data_path} does not exist.")
        raise typer.Exit(1)

    result = publish(
        config.dashboard.repo_path,
        [config.data_path],
        _UPDATE_MESSAGE,
        remote=config.publish.remote,
        branch=config.publish.branch,
    )
    display.print_publish_result(result)


# ── watch ─────────────────────────────────────────────────────────────────────

@app.command()
def watch(
    interval: Optional[int] = typer.Option(
        None, "--interval", help="Seconds between cache checks (default: from config)"
    ),
) -> None:
    """
    Watch the Granola cache and sync whenever it changes (blocks forever).
    Stop with Ctrl+C.
    """
    config = load_config()
    _setup_logging(config.display.log_level)
    if interval is not None:
        config.watch.poll_interval = interval

    from ..watcher.watcher import CacheWatcher
    display.print_banner()
    CacheWatcher(config).run()


# ── doctor ────────────────────────────────────────────────────────────────────

@app.command()
def doctor() -> None:
    """Diagnose tally setup — cache, dataset, git."""
    config = load_config()
    console.print("\n[bold]tally doctor[/bold]\n")
    all_ok = True

    # Granola cache
    cache_file = config.granola.cache_file
    try:
        cache = load_cache(cache_file)
        display.print_check(
            f"Granola cache ({cache_file})", True, f"{len(cache.meetings)} meeting(s)"
        )
    except CacheError as exc:
        display.print_check("Granola cache", False, str(exc))
        all_ok = False

    # Dataset
    try:
        ds = Dataset.load(config.data_path)
        note = f"{len(ds.actions)} item(s)" if config.data_path.exists() else "will be created"
        display.print_check(f"Dataset ({config.data_path})", True, note)
    except DatasetError as exc:
        display.print_check("Dataset", False, str(exc))
        all_ok = False

    # git
    git_ok = shutil.which("git") is not None
    display.print_check("git installed", git_ok, "" if git_ok else "git not found on PATH")
    all_ok = all_ok and git_ok
    if git_ok and config.publish.enabled:
        repo_ok = is_git_repo(config.dashboard.repo_path)
        display.print_check(
            f"Dashboard repo ({config.dashboard.repo_path})",
            repo_ok,
            "" if repo_ok else "not a git repository",
        )
        all_ok = all_ok and repo_ok

    # Config
    config_exists = CONFIG_FILE.exists()
    display.print_check(
        f"Config file ({CONFIG_FILE})",
        config_exists,
        "using defaults" if not config_exists else "",
    )

    console.print()
    if all_ok:
        display.print_success("All checks passed. Run 'tally sync' to import meetings.")
    else:
        display.print_error("Some checks failed. Fix issues above, then re-run 'tally doctor'.")
        raise typer.Exit(1)


# ── config ────────────────────────────────────────────────────────────────────

config_app = typer.Typer(name="config", help="View configuration.", no_args_is_help=True)
app.add_typer(config_app)


@config_app.command("show")
def config_show() -> None:
    """Print current configuration."""
    config = load_config()
    console.print(yaml.safe_dump(config.model_dump(), default_flow_style=False), markup=False)


@config_app.command("path")
def config_path() -> None:
    """Show path to the config file."""
    console.print(str(CONFIG_FILE))
