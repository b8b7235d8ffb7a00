"""
Rich display helpers for tally CLI.
All terminal output goes through this module for consistency.
"""
from __future__ import annotations

from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..storage.models import ActionStatus

console = Console()


# ── Banners ───────────────────────────────────────────────────────────────────

def print_banner() -> None:
    console.print()
    console.print(Panel.fit(
        "[bold]tally[/bold]  ·  meeting action items from Granola",
        border_style="dim",
        padding=(0, 2),
    ))
    console.print()


def _table() -> Table:
    return Table(
        show_header=True,
        header_style="bold",
        box=None,
        padding=(0, 1),
        show_edge=False,
    )


# ── Extraction ────────────────────────────────────────────────────────────────

def print_extracted(items: Sequence) -> None:
    """Items straight from the parser (text + owner)."""
    if not items:
        console.print("[dim]No action items detected.[/dim]")
        return

    table = _table()
    table.add_column("#", style="dim", width=3, no_wrap=True)
    table.add_column("Owner", style="cyan", width=16, no_wrap=True)
    table.add_column("Task", min_width=30)
    for i, item in enumerate(items, 1):
        table.add_row(str(i), escape(item.owner[:16]), escape(item.text))
    console.print(table)


# ── Sync ──────────────────────────────────────────────────────────────────────

def print_sync_result(result) -> None:
    console.print()
    console.print("─" * 48)

    if not result.meetings:
        console.print("[dim]No new meetings to process.[/dim]")
        return

    for m in result.meetings:
        count = len(m.items)
        console.print(
            f"[bold]{escape(m.title)}[/bold]  [dim]{m.date}[/dim]  "
            f"[cyan]{count}[/cyan] item{'s' if count != 1 else ''}"
        )
        for item_id, item in zip(m.added_ids or [None] * count, m.items):
            prefix = f"#{item_id}" if item_id is not None else "·"
            console.print(f"  [dim]{prefix}[/dim] {escape(item.text)}  [cyan]({escape(item.owner)})[/cyan]")
    console.print()

    verb = "Would add" if result.dry_run else "Added"
    console.print(
        f"[bold green]✓[/bold green] {verb} {result.items_added} action item(s) "
        f"from {len(result.meetings)} meeting(s)"
    )
    if result.publish is not None:
        print_publish_result(result.publish)
    console.print()


def print_publish_result(publish) -> None:
    if publish.pushed:
        print_success("Pushed to GitHub. Dashboard will update shortly.")
    elif publish.ok:
        print_info("No changes to commit.")
    else:
        print_warn(publish.warning)


# ── Dataset ───────────────────────────────────────────────────────────────────

def print_action_list(actions: Sequence) -> None:
    if not actions:
        console.print("[dim]No action items found. Run 'tally sync' to import meetings.[/dim]")
        return

    table = _table()
    table.add_column("ID", style="dim", width=4, no_wrap=True)
    table.add_column("Status", width=10, no_wrap=True)
    table.add_column("Owner", style="cyan", width=16, no_wrap=True)
    table.add_column("Task", min_width=30)
    table.add_column("Meeting", width=24)
    table.add_column("Due", style="yellow", width=10, no_wrap=True)

    for a in actions:
        status_color = "green" if a.status == ActionStatus.COMPLETED else "yellow"
        meeting = a.meeting_title or "—"
        if a.meeting_date:
            meeting = f"{meeting} ({a.meeting_date})"
        table.add_row(
            str(a.id),
            Text(a.status_value, style=status_color),
            escape((a.owner or "—")[:16]),
            escape(a.item),
            escape(meeting),
            a.due_date or "—",
        )
    console.print(table)


# ── Doctor ────────────────────────────────────────────────────────────────────

def print_check(label: str, ok: bool, note: str = "") -> None:
    icon = "[green]✓[/green]" if ok else "[red]✗[/red]"
    line = f"  {icon}  {escape(label)}"
    if note:
        line += f"  [dim]{escape(note)}[/dim]"
    console.print(line)


# ── Utility ───────────────────────────────────────────────────────────────────

def print_error(msg: str) -> None:
    console.print(f"\n[bold red]Error:[/bold red] {escape(msg)}\n")


def print_success(msg: str) -> None:
    console.print(f"[bold green]✓[/bold green]  {escape(msg)}")


def print_warn(msg: Optional[str]) -> None:
    console.print(f"[yellow]⚠[/yellow]   {escape(str(msg))}")


def print_info(msg: str) -> None:
    console.print(f"[dim]{escape(msg)}[/dim]")
