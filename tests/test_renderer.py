"""Tests for report rendering."""

import sys
from datetime import datetime, timezone

import pytest

sys.path.insert(0, "scripts")

from aggregator import aggregate_events, sort_summaries
from events import Event, RepoSection
from renderer import RENDERERS, column_widths, render_report, render_section
from report_config import ReportFormat


def ts(day):
    return datetime(2024, 1, day, tzinfo=timezone.utc)


def make_event(event_type, created_at, issue, actor="octocat", state="open", repo="acme/widgets"):
    return Event(
        type=event_type,
        created_at=created_at,
        actor=actor,
        issue_number=issue,
        issue_state=state,
        assignees=(),
        repo_full_name=repo,
    )


def example_section():
    events = [
        make_event("labeled", ts(3), 5, actor="alice"),
        make_event("assigned", ts(8), 5, actor="bob"),
    ]
    return RepoSection("acme/widgets", sort_summaries(aggregate_events(events)))


def two_issue_section():
    events = [
        make_event("labeled", ts(3), 5),
        make_event("closed", ts(4), 123, state="closed"),
    ]
    return RepoSection("acme/widgets", sort_summaries(aggregate_events(events)))


class TestMarkdownList:
    """Test the nested bullet list layout."""

    def test_example_section(self):
        text = render_section(example_section(), ReportFormat.MARKDOWN_LIST, "%Y-%m-%d")
        assert text == (
            "## acme/widgets\n"
            "\n"
            "- acme/widgets#5\n"
            "  - labeled by alice\n"
            "  - assigned by bob\n"
        )

    def test_missing_actor_shown_as_ghost(self):
        section = RepoSection("acme/widgets", aggregate_events([make_event("closed", ts(4), 1, actor=None)]))
        text = render_section(section, ReportFormat.MARKDOWN_LIST, "%Y-%m-%d")
        assert "  - closed by ghost\n" in text

    def test_empty_section_is_heading_only(self):
        text = render_section(RepoSection("acme/empty"), ReportFormat.MARKDOWN_LIST, "%Y-%m-%d")
        assert text == "## acme/empty\n"


class TestTerminal:
    """Test the fixed-width plain text layout."""

    def test_example_section(self):
        text = render_section(example_section(), ReportFormat.TERMINAL, "%Y-%m-%d")
        assert text == (
            "acme/widgets\n"
            "LINK           | STATE | LATEST     | EVENTS\n"
            "acme/widgets#5 | open  | 2024-01-08 | labeled, assigned\n"
        )

    def test_columns_aligned(self):
        text = render_section(two_issue_section(), ReportFormat.TERMINAL, "%Y-%m-%d")
        lines = text.splitlines()[1:]
        separators = {tuple(i for i, c in enumerate(line) if c == "|") for line in lines}
        assert len(separators) == 1

    def test_date_format_applied(self):
        text = render_section(example_section(), ReportFormat.TERMINAL, "%d/%m/%Y %H:%M")
        assert "08/01/2024 00:00" in text

    def test_empty_section_header_only(self):
        text = render_section(RepoSection("acme/empty"), ReportFormat.TERMINAL, "%Y-%m-%d")
        assert text == "acme/empty\nLINK | STATE | LATEST | EVENTS\n"


class TestMarkdownTable:
    """Test the Markdown table layout."""

    def test_example_section(self):
        text = render_section(example_section(), ReportFormat.MARKDOWN_TABLE, "%Y-%m-%d")
        assert text == (
            "## acme/widgets\n"
            "\n"
            "| LINK           | STATE | LATEST     | EVENTS |\n"
            "| -------------- | ----- | ---------- | ------ |\n"
            "| acme/widgets#5 | open  | 2024-01-08 | labeled, assigned |\n"
        )

    def test_one_row_per_summary(self):
        text = render_section(two_issue_section(), ReportFormat.MARKDOWN_TABLE, "%Y-%m-%d")
        rows = [line for line in text.splitlines() if line.startswith("| acme/")]
        assert len(rows) == 2
        assert rows[1].startswith("| acme/widgets#123 | closed | ")


class TestColumnWidths:
    """Test per-field width computation."""

    def test_widths_computed_per_field(self):
        """The longest link and the longest state come from different rows."""
        events = [
            make_event("labeled", ts(3), 123, state="open"),
            make_event("closed", ts(4), 5, state="closed"),
        ]
        widths = column_widths(aggregate_events(events), "%Y-%m-%d")
        assert widths == {"link": len("acme/widgets#123"), "state": len("closed"), "latest": 10}

    def test_empty_summaries(self):
        assert column_widths([], "%Y-%m-%d") == {"link": 0, "state": 0, "latest": 0}


class TestRenderReport:
    """Test multi-section reports and format selection."""

    def test_sections_separated_by_blank_line(self):
        sections = [example_section(), RepoSection("acme/empty")]
        text = render_report(sections, ReportFormat.MARKDOWN_LIST, "%Y-%m-%d")
        assert text.endswith("  - assigned by bob\n\n## acme/empty\n")
        assert text.index("## acme/widgets") < text.index("## acme/empty")

    def test_every_format_has_a_renderer(self):
        assert set(RENDERERS) == set(ReportFormat)

    @pytest.mark.parametrize("fmt", list(ReportFormat))
    def test_rendering_is_deterministic(self, fmt):
        first = render_report([two_issue_section()], fmt, "%Y-%m-%d")
        second = render_report([two_issue_section()], fmt, "%Y-%m-%d")
        assert first == second

    def test_formats_differ(self):
        outputs = {render_report([example_section()], fmt, "%Y-%m-%d") for fmt in ReportFormat}
        assert len(outputs) == 3
