"""Event and summary records shared by every pipeline stage."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Shown in place of a missing actor (deleted accounts)
GHOST_ACTOR = "ghost"

# Event names delivered by the issue events endpoint
EVENT_TYPES = frozenset({
    "added_to_project",
    "assigned",
    "automatic_base_change_failed",
    "automatic_base_change_succeeded",
    "base_ref_changed",
    "closed",
    "comment_deleted",
    "connected",
    "convert_to_draft",
    "converted_note_to_issue",
    "converted_to_discussion",
    "demilestoned",
    "deployed",
    "deployment_environment_changed",
    "disconnected",
    "head_ref_deleted",
    "head_ref_force_pushed",
    "head_ref_restored",
    "labeled",
    "locked",
    "marked_as_duplicate",
    "mentioned",
    "merged",
    "milestoned",
    "moved_columns_in_project",
    "pinned",
    "ready_for_review",
    "referenced",
    "removed_from_project",
    "renamed",
    "reopened",
    "review_dismissed",
    "review_request_removed",
    "review_requested",
    "subscribed",
    "transferred",
    "unassigned",
    "unlabeled",
    "unlocked",
    "unmarked_as_duplicate",
    "unpinned",
    "unsubscribed",
    "user_blocked",
})


def parse_timestamp(value: str) -> datetime:
    """Parse a source timestamp (``2024-01-08T00:00:00Z``) into an aware UTC datetime."""
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


@dataclass(frozen=True)
class Event:
    type: str
    created_at: datetime
    actor: str | None
    issue_number: int
    issue_state: str
    assignees: tuple[str, ...]
    repo_full_name: str

    @property
    def link(self) -> str:
        return f"{self.repo_full_name}#{self.issue_number}"

    @property
    def actor_label(self) -> str:
        return self.actor or GHOST_ACTOR


@dataclass(frozen=True)
class IssueSummary:
    link: str
    repo_full_name: str
    state: str
    latest_event_at: datetime
    assignees: tuple[str, ...]
    events: tuple[Event, ...]

    @property
    def event_types(self) -> list[str]:
        return [e.type for e in self.events]


@dataclass
class RepoSection:
    """One repository's portion of the report."""

    repo_full_name: str
    summaries: list[IssueSummary] = field(default_factory=list)


def event_from_record(record: dict, repo_full_name: str) -> Event:
    """Build an Event from one raw issue-events record.

    The issue state and assignees come from the issue embedded in the
    record, i.e. as they were when the page was fetched.
    """
    issue = record["issue"]
    actor = record.get("actor")
    return Event(
        type=record["event"],
        created_at=parse_timestamp(record["created_at"]),
        actor=actor["login"] if actor else None,
        issue_number=int(issue["number"]),
        issue_state=issue["state"],
        assignees=tuple(a["login"] for a in issue.get("assignees") or []),
        repo_full_name=repo_full_name,
    )


def events_from_records(records: list[dict], repo_full_name: str) -> list[Event]:
    return [event_from_record(r, repo_full_name) for r in records]


def event_to_dict(event: Event) -> dict:
    return {
        "type": event.type,
        "created_at": format_timestamp(event.created_at),
        "actor": event.actor,
        "issue_number": event.issue_number,
        "issue_state": event.issue_state,
        "assignees": list(event.assignees),
        "repo_full_name": event.repo_full_name,
    }


def event_from_dict(data: dict) -> Event:
    return Event(
        type=data["type"],
        created_at=parse_timestamp(data["created_at"]),
        actor=data["actor"],
        issue_number=data["issue_number"],
        issue_state=data["issue_state"],
        assignees=tuple(data["assignees"]),
        repo_full_name=data["repo_full_name"],
    )


def summary_to_dict(summary: IssueSummary) -> dict:
    """Serialize a summary for the filtered cache artifact."""
    return {
        "link": summary.link,
        "repo_full_name": summary.repo_full_name,
        "state": summary.state,
        "latest_event_at": format_timestamp(summary.latest_event_at),
        "assignees": list(summary.assignees),
        "events": [event_to_dict(e) for e in summary.events],
    }


def summary_from_dict(data: dict) -> IssueSummary:
    return IssueSummary(
        link=data["link"],
        repo_full_name=data["repo_full_name"],
        state=data["state"],
        latest_event_at=parse_timestamp(data["latest_event_at"]),
        assignees=tuple(data["assignees"]),
        events=tuple(event_from_dict(e) for e in data["events"]),
    )
