#!/usr/bin/env python3
"""Main entry point for generating repository issue activity digests."""

import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

import requests

from aggregator import aggregate_events, sort_summaries
from artifact_cache import CacheDir, cached_json
from event_filter import filter_events, recency_cutoff
from events import EVENT_TYPES, RepoSection, events_from_records, summary_from_dict, summary_to_dict
from fetcher import fetch_repo_events
from renderer import make_environment, render_section
from report_config import ConfigError, ReportConfig, ReportFormat, build_config, load_config

# Resolve paths relative to repo root
REPO_ROOT = Path(__file__).parent.parent
DEFAULT_CONFIG = REPO_ROOT / "config.yml"

log = logging.getLogger(__name__)


def setup_logging(debug: bool = False):
    """Configure logging for all modules. Stdout is reserved for the report."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)]
    )
    # basicConfig is a no-op once handlers exist; the level still applies
    logging.getLogger().setLevel(level)


def repo_name(value: str) -> str:
    owner, sep, name = value.partition("/")
    if not sep or not owner or not name or "/" in name:
        raise argparse.ArgumentTypeError(f"expected owner/name, got '{value}'")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="issue-digest",
        description="Summarize recent issue and pull request events per repository",
    )
    parser.add_argument("repos", nargs="+", type=repo_name, metavar="OWNER/NAME", help="Repositories to report on")
    parser.add_argument("--cache-dir", help="Directory for intermediate artifacts (default: temporary)")
    parser.add_argument("--config", help=f"YAML defaults file (default: {DEFAULT_CONFIG.name} if present)")
    parser.add_argument("--date-format", help="strftime pattern for rendered timestamps")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging, including API calls")
    parser.add_argument(
        "--exclude-event",
        action="append",
        metavar="TYPE",
        help="Drop events of this type (repeatable)",
    )
    parser.add_argument(
        "--include-event",
        action="append",
        metavar="TYPE",
        help="Keep only events of this type (repeatable)",
    )
    parser.add_argument(
        "--format",
        choices=[f.value for f in ReportFormat],
        help="Report format (default: terminal)",
    )
    parser.add_argument("--hostname", help="GitHub host (default: github.com)")
    parser.add_argument("--output-path", help="Write the report here instead of stdout")
    parser.add_argument(
        "--preserve",
        action="store_true",
        help="Keep the temporary cache directory after the run",
    )
    parser.add_argument("--since", type=int, help="Recency window in days (default: 7)")
    return parser


def load_file_config(config_arg: str | None) -> dict:
    """Explicit --config must exist; the default file is optional."""
    if config_arg:
        return load_config(Path(config_arg))
    if DEFAULT_CONFIG.exists():
        return load_config(DEFAULT_CONFIG)
    return {}


def warn_unknown_event_types(config: ReportConfig):
    unknown = sorted(config.event_types - EVENT_TYPES)
    if unknown:
        log.warning(f"Unrecognized event types will match nothing: {', '.join(unknown)}")


def build_repo_section(repo: str, config: ReportConfig, cache: CacheDir, now: datetime) -> RepoSection:
    """Fetch (or reuse) one repository's events and reduce them to ordered summaries."""
    cutoff = recency_cutoff(config.since_days, now)

    def fetch():
        log.info(f"Fetching events for {repo}...")
        return fetch_repo_events(repo, config.hostname, config.api, stop_before=cutoff)

    def summarize():
        raw = cached_json(cache.raw_path(repo), fetch)
        events = events_from_records(raw, repo)
        kept = filter_events(events, config.filter_mode, config.event_types, config.since_days, now)
        log.info(f"{repo}: {len(kept)} of {len(events)} events since {cutoff:%Y-%m-%d %H:%M} UTC")
        summaries = sort_summaries(aggregate_events(kept))
        return [summary_to_dict(s) for s in summaries]

    data = cached_json(cache.filtered_path(repo), summarize)
    return RepoSection(repo_full_name=repo, summaries=[summary_from_dict(d) for d in data])


def run(config: ReportConfig, now: datetime | None = None) -> str:
    """Process every repository in order and return the accumulated report."""
    now = now or datetime.now(timezone.utc)
    env = make_environment()

    with CacheDir(config.cache_dir, config.preserve) as cache:
        cache.reset_report()
        for index, repo in enumerate(config.repos):
            section = build_repo_section(repo, config, cache, now)
            text = render_section(section, config.report_format, config.date_format, env)
            cache.append_report(text if index == 0 else "\n" + text)
        return cache.read_report()


def write_report(report: str, output_path: Path | None):
    if output_path is None:
        sys.stdout.write(report)
        return
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(report, encoding="utf-8")
    log.info(f"Output written to: {output_path}")


def main(argv: list[str] | None = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.debug)

    try:
        config = build_config(args, load_file_config(args.config))
    except ConfigError as e:
        parser.error(str(e))
    except (OSError, ValueError) as e:
        log.error(f"Config error: {e}")
        sys.exit(1)

    warn_unknown_event_types(config)
    log.debug(f"Config: {config}")

    try:
        report = run(config)
    except (ValueError, KeyError, TypeError) as e:
        # Missing token, or a cache artifact that is not valid JSON or has the wrong shape
        log.error(f"Error: {type(e).__name__}: {e}")
        sys.exit(1)
    except requests.exceptions.RequestException as e:
        log.error(f"GitHub API error: {e}")
        sys.exit(1)

    write_report(report, config.output_path)


if __name__ == "__main__":
    main()
