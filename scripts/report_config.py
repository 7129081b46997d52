"""Run configuration: defaults file, format and filter variants."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import yaml

log = logging.getLogger(__name__)

DEFAULT_HOSTNAME = "github.com"
DEFAULT_SINCE_DAYS = 7
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M"

CONFIG_KEYS = ["hostname", "since", "format", "date_format", "api"]


class ConfigError(ValueError):
    """Invalid or conflicting configuration."""


class ReportFormat(Enum):
    MARKDOWN_LIST = "markdown-list"
    MARKDOWN_TABLE = "markdown-table"
    TERMINAL = "terminal"

    @classmethod
    def parse(cls, value: str) -> "ReportFormat":
        try:
            return cls(value)
        except ValueError:
            choices = ", ".join(f.value for f in cls)
            raise ConfigError(f"Unknown format '{value}' (choose from {choices})") from None


DEFAULT_FORMAT = ReportFormat.TERMINAL


class FilterMode(Enum):
    NONE = "none"
    INCLUDE = "include"
    EXCLUDE = "exclude"


@dataclass(frozen=True)
class ReportConfig:
    """Resolved settings for one run, passed explicitly to each stage."""

    repos: tuple[str, ...]
    hostname: str = DEFAULT_HOSTNAME
    since_days: int = DEFAULT_SINCE_DAYS
    report_format: ReportFormat = DEFAULT_FORMAT
    date_format: str = DEFAULT_DATE_FORMAT
    filter_mode: FilterMode = FilterMode.NONE
    event_types: frozenset[str] = frozenset()
    cache_dir: Path | None = None
    preserve: bool = False
    output_path: Path | None = None
    debug: bool = False
    api: dict = field(default_factory=dict)


def load_config(config_path: Path) -> dict:
    """Load the optional YAML defaults file."""
    with open(config_path) as f:
        try:
            config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"{config_path}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigError(f"{config_path}: expected a mapping at top level")

    unknown = [k for k in config if k not in CONFIG_KEYS]
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")

    config.setdefault("api", {})
    return config


def resolve_filter(include: list[str] | None, exclude: list[str] | None) -> tuple[FilterMode, frozenset[str]]:
    """Turn the include/exclude options into a filter mode and type set."""
    if include and exclude:
        raise ConfigError("--include-event and --exclude-event are mutually exclusive")
    if include:
        return FilterMode.INCLUDE, frozenset(include)
    if exclude:
        return FilterMode.EXCLUDE, frozenset(exclude)
    return FilterMode.NONE, frozenset()


def build_config(args, file_config: dict | None = None) -> ReportConfig:
    """Merge parsed arguments over file defaults over built-in defaults."""
    file_config = file_config or {}

    def pick(arg_value, key, default):
        if arg_value is not None:
            return arg_value
        return file_config.get(key, default)

    since = pick(args.since, "since", DEFAULT_SINCE_DAYS)
    try:
        since = int(since)
    except (TypeError, ValueError):
        raise ConfigError(f"since must be an integer number of days, got {since!r}") from None
    if since <= 0:
        raise ConfigError(f"since must be positive, got {since}")

    mode, types = resolve_filter(args.include_event, args.exclude_event)

    return ReportConfig(
        repos=tuple(args.repos),
        hostname=pick(args.hostname, "hostname", DEFAULT_HOSTNAME),
        since_days=since,
        report_format=ReportFormat.parse(pick(args.format, "format", DEFAULT_FORMAT.value)),
        date_format=pick(args.date_format, "date_format", DEFAULT_DATE_FORMAT),
        filter_mode=mode,
        event_types=types,
        cache_dir=Path(args.cache_dir) if args.cache_dir else None,
        preserve=args.preserve,
        output_path=Path(args.output_path) if args.output_path else None,
        debug=args.debug,
        api=dict(file_config.get("api") or {}),
    )
