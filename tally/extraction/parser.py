"""
Heuristic action-item parser for Granola AI panel text.

No model calls: the panel text Granola already generated is scanned line by
line with a two-state machine.

  OUTSIDE ──(header: "Next Steps", "Action Items", ...)──► INSIDE
  INSIDE  ──(terminator: "## Heading", transcript marker, ...)──► OUTSIDE

Inside a section every meaningful line is an action item. "Name:" lines set
the owner for the lines that follow. Anywhere in the text, a sentence like
"Jacob to review the contract" is also picked up.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional, Pattern, Sequence, Union

from ..config import ExtractionConfig
from .dedup import deduplicate
from .patterns import OWNER_PREFIX, LineKind, build_modal_pattern, classify, strip_bullet

logger = logging.getLogger(__name__)

PanelText = Union[str, Sequence[str]]


@dataclass(frozen=True)
class Candidate:
    text: str
    owner: Optional[str] = None


@dataclass(frozen=True)
class ActionItem:
    text: str
    owner: str


@dataclass(frozen=True)
class ScanState:
    inside_section: bool = False
    current_owner: Optional[str] = None


@dataclass(frozen=True)
class ScanContext:
    """Per-meeting inputs that stay fixed for the whole scan."""

    default_owner: str
    attendees: tuple[str, ...] = ()
    modal_pattern: Optional[Pattern[str]] = None
    min_line_length: int = 10

    @classmethod
    def build(
        cls,
        default_owner: str,
        attendees: Iterable[str] = (),
        known_names: Iterable[str] = (),
        min_line_length: int = 10,
    ) -> "ScanContext":
        attendees = tuple(attendees)
        names = [*known_names, *(_first_name(a) for a in attendees), _first_name(default_owner)]
        return cls(
            default_owner=default_owner,
            attendees=attendees,
            modal_pattern=build_modal_pattern(names),
            min_line_length=min_line_length,
        )


def _first_name(name: str) -> str:
    parts = name.split()
    return parts[0] if parts else ""


def resolve_owner(line: str, ctx: ScanContext) -> str:
    """
    Best guess at who owns a section line: the first attendee whose first name
    appears as "<first> to", "<first> will" or starts the line, else the
    default owner.
    """
    lowered = line.lower()
    for name in ctx.attendees:
        first = _first_name(name).lower()
        if not first:
            continue
        if (
            f"{first} to " in lowered
            or f"{first} will " in lowered
            or lowered.startswith(first)
        ):
            return name
    return ctx.default_owner


def step(state: ScanState, line: str, ctx: ScanContext) -> tuple[ScanState, list[Candidate]]:
    """
    Advance the scan by one line.
    Returns the next state and the candidates this line produced.
    """
    line = line.strip()
    if not line:
        return state, []

    kind = classify(line, state.inside_section)
    if kind is LineKind.HEADER:
        return replace(state, inside_section=True), []
    if kind is LineKind.TERMINATOR:
        return replace(state, inside_section=False), []

    candidates: list[Candidate] = []
    text = strip_bullet(line)

    prefix = OWNER_PREFIX.match(text) if state.inside_section else None
    if prefix:
        state = replace(state, current_owner=prefix.group(1))
        rest = text[prefix.end():].strip()
        if rest:
            candidates.append(Candidate(rest, state.current_owner))
    elif state.inside_section and len(line) > ctx.min_line_length:
        owner = state.current_owner or resolve_owner(text, ctx)
        candidates.append(Candidate(text, owner))

    if ctx.modal_pattern is not None:
        match = ctx.modal_pattern.search(line)
        if match:
            candidates.append(Candidate(match.group(0).strip(), match.group("name")))

    return state, candidates


def scan(lines: Iterable[str], ctx: ScanContext) -> list[Candidate]:
    """Run the state machine over all lines. Candidates are not deduplicated."""
    state = ScanState()
    candidates: list[Candidate] = []
    for line in lines:
        state, found = step(state, line, ctx)
        candidates.extend(found)
    return candidates


def _finalize(candidates: Iterable[Candidate], default_owner: str) -> list[ActionItem]:
    items = []
    for c in candidates:
        text = strip_bullet(c.text)
        if text:
            items.append(ActionItem(text=text, owner=c.owner or default_owner))
    return items


def extract_action_items(
    panel_text: PanelText,
    attendees: Iterable[str] = (),
    *,
    default_owner: str,
    known_names: Iterable[str] = (),
    min_line_length: int = 10,
    dedup_prefix: int = 50,
) -> list[ActionItem]:
    """
    Extract owned action items from one meeting's panel text.

    Pure and deterministic. Never raises for well-formed input; text with no
    sections and no "<Name> to ..." sentences yields an empty list.
    """
    lines = panel_text.split("\n") if isinstance(panel_text, str) else list(panel_text)
    ctx = ScanContext.build(
        default_owner=default_owner,
        attendees=attendees,
        known_names=known_names,
        min_line_length=min_line_length,
    )
    items = _finalize(scan(lines, ctx), default_owner)
    unique = deduplicate(items, prefix=dedup_prefix)
    logger.debug(f"Parsed {len(lines)} lines → {len(items)} candidates, {len(unique)} unique")
    return unique


@dataclass
class ActionExtractor:
    """Extraction settings bound once, applied to many meetings."""

    config: ExtractionConfig = field(default_factory=ExtractionConfig)

    def extract(self, panel_text: PanelText, attendees: Iterable[str] = ()) -> list[ActionItem]:
        return extract_action_items(
            panel_text,
            attendees,
            default_owner=self.config.default_owner,
            known_names=self.config.known_names,
            min_line_length=self.config.min_line_length,
            dedup_prefix=self.config.dedup_prefix,
        )
