"""Tests for the line pattern table and prefix deduplication."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from tally.extraction.dedup import dedup_key, deduplicate
from tally.extraction.patterns import (
    LINE_TABLE,
    LineKind,
    build_modal_pattern,
    classify,
    strip_bullet,
)


class TestClassify:
    @pytest.mark.parametrize(
        "line",
        [
            "Next Steps",
            "next steps:",
            "Next-Steps",
            "NextSteps",
            "Action Items",
            "ACTION ITEMS:",
            "Follow up",
            "Follow-ups",
            "followups",
            "To-do",
            "TODO",
            "To dos",
            "Tasks:",
            "Task :",
            "Deliverables",
        ],
    )
    def test_headers(self, line: str) -> None:
        assert classify(line, inside_section=False) is LineKind.HEADER
        assert classify(line, inside_section=True) is LineKind.HEADER

    @pytest.mark.parametrize(
        "line",
        [
            "Today we covered pricing",
            "Tasks are on track",
            "Actionable insights from the call",
            "Tomorrow is the deadline",
            "Next week we ship",
        ],
    )
    def test_not_headers(self, line: str) -> None:
        assert classify(line, inside_section=False) is None

    @pytest.mark.parametrize(
        "line",
        [
            "Chat with meeting transcript",
            "chat with meeting transcript: open",
            "# Summary",
            "## Key Decisions",
            "### Notes",
            "Product Review & Planning",
        ],
    )
    def test_terminators_only_inside(self, line: str) -> None:
        assert classify(line, inside_section=True) is LineKind.TERMINATOR
        assert classify(line, inside_section=False) is None

    def test_deep_heading_is_not_terminator(self) -> None:
        assert classify("#### Appendix", inside_section=True) is None

    def test_table_lists_headers_first(self) -> None:
        kinds = [kind for kind, _ in LINE_TABLE]
        assert kinds == sorted(kinds, key=lambda k: k is LineKind.TERMINATOR)


class TestHelpers:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("- send the deck", "send the deck"),
            ("* send the deck", "send the deck"),
            ("• send the deck", "send the deck"),
            ("-send the deck", "send the deck"),
            ("  send the deck  ", "send the deck"),
            ("- - nested", "- nested"),
        ],
    )
    def test_strip_bullet(self, raw: str, expected: str) -> None:
        assert strip_bullet(raw) == expected

    def test_modal_pattern_none_without_names(self) -> None:
        assert build_modal_pattern([]) is None
        assert build_modal_pattern(["", "  "]) is None

    def test_modal_pattern_escapes_names(self) -> None:
        pattern = build_modal_pattern(["J.R."])
        assert pattern is not None
        assert pattern.search("JxR. will call") is None

    def test_modal_pattern_captures_name_and_task(self) -> None:
        pattern = build_modal_pattern(["Jenn", "Jennifer"])
        match = pattern.search("Then Jennifer will send the agenda")
        assert match.group("name") == "Jennifer"
        assert match.group("task") == "send the agenda"
        assert match.group(0) == "Jennifer will send the agenda"


@dataclass
class _Item:
    text: str
    owner: str = ""


class TestDeduplicate:
    def test_key_is_lowercased_prefix(self) -> None:
        assert dedup_key("ABC def", prefix=5) == "abc d"
        assert dedup_key("x" * 80) == "x" * 50

    def test_first_occurrence_wins(self) -> None:
        items = [_Item("Send the deck", "Blake"), _Item("send THE deck", "Cole")]
        assert deduplicate(items) == [items[0]]

    def test_trailing_detail_beyond_prefix_collapses(self) -> None:
        head = "a" * 50
        items = [_Item(head + " by Friday"), _Item(head + " by Monday")]
        assert len(deduplicate(items)) == 1

    def test_order_preserved(self) -> None:
        items = [_Item("one"), _Item("two"), _Item("ONE"), _Item("three")]
        assert [i.text for i in deduplicate(items)] == ["one", "two", "three"]

    def test_idempotent(self) -> None:
        items = [_Item("one"), _Item("One"), _Item("two")]
        once = deduplicate(items)
        assert deduplicate(once) == once

    def test_empty(self) -> None:
        assert deduplicate([]) == []
