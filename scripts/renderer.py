"""Report rendering from Jinja2 templates."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from events import IssueSummary, RepoSection
from report_config import ReportFormat

REPO_ROOT = Path(__file__).parent.parent
DEFAULT_TEMPLATE_DIR = REPO_ROOT / "templates"

HEADERS = {"link": "LINK", "state": "STATE", "latest": "LATEST"}


def make_environment(template_dir: Path = DEFAULT_TEMPLATE_DIR) -> Environment:
    return Environment(
        loader=FileSystemLoader(template_dir),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )


def table_row(summary: IssueSummary, date_format: str) -> dict:
    """Rendered cell strings for one summary."""
    return {
        "link": summary.link,
        "state": summary.state,
        "latest": summary.latest_event_at.strftime(date_format),
        "events": ", ".join(summary.event_types),
    }


def column_widths(summaries: list[IssueSummary], date_format: str) -> dict[str, int]:
    """Longest rendered value per padded column, computed per field."""
    rows = [table_row(s, date_format) for s in summaries]
    return {key: max((len(row[key]) for row in rows), default=0) for key in HEADERS}


def layout_widths(widths: dict[str, int]) -> dict[str, int]:
    # Never cut a header label short
    return {key: max(width, len(HEADERS[key])) for key, width in widths.items()}


def render_markdown_list(env: Environment, section: RepoSection, date_format: str) -> str:
    template = env.get_template("markdown_list.md.j2")
    return template.render(section=section)


def _render_table(env: Environment, template_name: str, section: RepoSection, date_format: str) -> str:
    template = env.get_template(template_name)
    widths = layout_widths(column_widths(section.summaries, date_format))
    return template.render(
        repo=section.repo_full_name,
        widths=widths,
        rows=[table_row(s, date_format) for s in section.summaries],
    )


def render_markdown_table(env: Environment, section: RepoSection, date_format: str) -> str:
    return _render_table(env, "markdown_table.md.j2", section, date_format)


def render_terminal(env: Environment, section: RepoSection, date_format: str) -> str:
    return _render_table(env, "terminal.txt.j2", section, date_format)


RENDERERS = {
    ReportFormat.MARKDOWN_LIST: render_markdown_list,
    ReportFormat.MARKDOWN_TABLE: render_markdown_table,
    ReportFormat.TERMINAL: render_terminal,
}


def render_section(
    section: RepoSection,
    report_format: ReportFormat,
    date_format: str,
    env: Environment | None = None,
) -> str:
    """Render one repository section, ending in a single newline."""
    env = env or make_environment()
    text = RENDERERS[report_format](env, section, date_format)
    return text.rstrip("\n") + "\n"


def render_report(
    sections: list[RepoSection],
    report_format: ReportFormat,
    date_format: str,
    env: Environment | None = None,
) -> str:
    """Render all sections in order, separated by a blank line."""
    env = env or make_environment()
    return "\n".join(render_section(s, report_format, date_format, env) for s in sections)
