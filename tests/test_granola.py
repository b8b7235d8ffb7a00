"""Tests for reading the Granola cache and assembling panel text."""

from __future__ import annotations

import json
from datetime import timezone
from pathlib import Path

import pytest

from conftest import write_cache
from tally.extraction.parser import ActionItem, extract_action_items
from tally.granola.cache import CacheError, Panel, load_cache, parse_timestamp
from tally.granola.panels import assemble_panel_text, attendee_names, strip_html

# ---------------------------------------------------------------------------
# Cache file
# ---------------------------------------------------------------------------


class TestLoadCache:
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(CacheError, match="not found"):
            load_cache(tmp_path / "nope.json")

    def test_malformed_json(self, tmp_path: Path) -> None:
        path = tmp_path / "cache.json"
        path.write_text("{not json")
        with pytest.raises(CacheError):
            load_cache(path)

    def test_missing_state(self, tmp_path: Path) -> None:
        path = tmp_path / "cache.json"
        path.write_text(json.dumps({"cache": json.dumps({"other": {}})}))
        with pytest.raises(CacheError):
            load_cache(path)

    def test_decodes_double_encoded_state(
        self, tmp_path: Path, granola_state: tuple[dict, dict]
    ) -> None:
        cache = load_cache(write_cache(tmp_path / "cache.json", *granola_state))
        assert {m.id for m in cache.meetings} == {"m-a", "m-b", "m-c", "m-d", "m-e"}

        pricing = cache.get("m-a")
        assert pricing.title == "Pricing sync"
        assert pricing.date == "2026-03-02"
        assert [p.title for p in pricing.panels] == ["Summary", "Next Steps"]
        assert cache.get("m-c").deleted is True
        assert cache.get("m-d").panels == []

    def test_accepts_already_decoded_cache(self, tmp_path: Path) -> None:
        path = tmp_path / "cache.json"
        state = {
            "documents": {"x": {"title": "", "created_at": "2026-03-01T10:00:00Z"}},
            "documentPanels": {},
        }
        path.write_text(json.dumps({"cache": {"state": state}}))
        cache = load_cache(path)
        assert cache.meetings[0].id == "x"
        assert cache.meetings[0].title == "Untitled"

    def test_skips_documents_without_timestamp(self, tmp_path: Path) -> None:
        path = write_cache(
            tmp_path / "cache.json",
            {"bad": {"title": "No date"}, "ok": {"created_at": "2026-03-01T10:00:00Z"}},
            {},
        )
        assert [m.id for m in load_cache(path).meetings] == ["ok"]


class TestTimestamps:
    def test_zulu(self) -> None:
        ts = parse_timestamp("2026-03-02T23:30:00.000Z")
        assert ts.tzinfo is not None
        assert ts.astimezone(timezone.utc).hour == 23

    def test_offset_date_is_utc_day(self, tmp_path: Path) -> None:
        path = write_cache(
            tmp_path / "cache.json",
            {"late": {"created_at": "2026-03-02T20:30:00-05:00"}},
            {},
        )
        assert load_cache(path).meetings[0].date == "2026-03-03"

    @pytest.mark.parametrize("value", [None, "", "yesterday", 42])
    def test_invalid(self, value) -> None:
        assert parse_timestamp(value) is None


# ---------------------------------------------------------------------------
# HTML → lines
# ---------------------------------------------------------------------------


class TestStripHtml:
    def test_entities_and_spaces(self) -> None:
        assert strip_html("<p>Hello&nbsp;world &amp; <b>friends</b></p>") == "Hello world & friends"

    def test_lt_gt(self) -> None:
        assert strip_html("<p>a &lt; b &gt; c</p>") == "a < b > c"

    def test_block_elements_become_lines(self) -> None:
        assert strip_html("<p>one</p><p>two</p>three<br>four") == "one\ntwo\nthree\nfour"

    def test_list_items_become_bullets(self) -> None:
        html = "<ul><li><p>Blake: send the deck</p></li><li>Cole to book travel</li></ul>"
        assert strip_html(html) == "- Blake: send the deck\n- Cole to book travel"

    def test_headings(self) -> None:
        html = "<h1>Overview</h1><h2>Key <em>Decisions</em></h2><h5>Deep</h5>"
        assert strip_html(html) == "# Overview\n## Key Decisions\n### Deep"

    def test_action_heading_stays_a_section_header(self) -> None:
        assert strip_html("<h3>Next Steps</h3><ul><li>Ship it today</li></ul>") == (
            "Next Steps\n- Ship it today"
        )

    def test_empty(self) -> None:
        assert strip_html("") == ""


class TestAssemblePanelText:
    def test_order_title_and_blank_line(self) -> None:
        panels = [
            Panel(title="Summary", order=2, content_html="<p>Talked</p>"),
            Panel(title="Next Steps", order=1, content_html="<ul><li>Blake: send deck</li></ul>"),
        ]
        assert assemble_panel_text(panels) == (
            "Next Steps:\n- Blake: send deck\n\nSummary:\nTalked"
        )

    def test_missing_order_sorts_first(self) -> None:
        panels = [
            Panel(title="B", order=1, content_html="b"),
            Panel(title="A", order=None, content_html="a"),
        ]
        assert assemble_panel_text(panels).startswith("A:\na")

    def test_feeds_parser(self) -> None:
        panels = [
            Panel(title="Summary", order=0, content_html="<p>Jacob to review the contract</p>"),
            Panel(
                title="Next Steps",
                order=1,
                content_html="<h2>Owners</h2><ul><li>Blake: send the deck</li></ul>",
            ),
        ]
        items = extract_action_items(
            assemble_panel_text(panels),
            ["Jacob Reed"],
            default_owner="Blake",
        )
        # "## Owners" closes the section opened by the panel title
        assert items == [ActionItem(text="Jacob to review the contract", owner="Jacob")]


class TestAttendeeNames:
    def test_creator_then_attendees(self) -> None:
        people = {
            "creator": {"name": "Blake Holt"},
            "attendees": [
                {
                    "email": "jacob@example.com",
                    "details": {"person": {"name": {"fullName": "Jacob Reed"}}},
                },
                {"email": "cole@example.com"},
                {},
                {"details": {"person": {"name": {"fullName": "Blake Holt"}}}},
            ],
        }
        assert attendee_names(people) == [
            "Blake Holt",
            "Jacob Reed",
            "cole@example.com",
            "Unknown",
        ]

    def test_empty(self) -> None:
        assert attendee_names({}) == []

    def test_malformed_records_are_skipped(self) -> None:
        people = {
            "creator": "Blake Holt",
            "attendees": [
                "jacob@example.com",
                None,
                {"email": "cole@example.com", "details": "n/a"},
                {"details": {"person": {"name": {"fullName": ["Jenna"]}}}},
            ],
        }
        assert attendee_names(people) == ["cole@example.com", "Unknown"]

    @pytest.mark.parametrize("people", [None, [], "Blake", {"attendees": "Jacob"}])
    def test_non_dict_people(self, people) -> None:
        assert attendee_names(people) == []
