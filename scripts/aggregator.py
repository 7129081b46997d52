"""Per-issue grouping and summary ordering."""

from events import Event, IssueSummary


def group_by_link(events: list[Event]) -> dict[str, list[Event]]:
    """Group events by issue link, keeping input order within each group."""
    groups = {}
    for event in events:
        groups.setdefault(event.link, []).append(event)
    return groups


def summarize_group(link: str, group: list[Event]) -> IssueSummary:
    """Build the summary for one issue's events.

    ``state`` comes from the first event in input order. Pages arrive
    newest-first, so that is normally the most recently fetched issue state.
    """
    first = group[0]
    assignees = set()
    for event in group:
        assignees.update(event.assignees)

    return IssueSummary(
        link=link,
        repo_full_name=first.repo_full_name,
        state=first.issue_state,
        latest_event_at=max(e.created_at for e in group),
        assignees=tuple(sorted(assignees)),
        # sorted() is stable, so equal timestamps stay in fetch order
        events=tuple(sorted(group, key=lambda e: e.created_at)),
    )


def aggregate_events(events: list[Event]) -> list[IssueSummary]:
    """One summary per distinct link."""
    return [summarize_group(link, group) for link, group in group_by_link(events).items()]


def sort_summaries(summaries: list[IssueSummary]) -> list[IssueSummary]:
    """Longest-idle issues first, most recently active last."""
    return sorted(summaries, key=lambda s: (s.latest_event_at, s.link))
