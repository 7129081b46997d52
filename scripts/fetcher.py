"""GitHub API interactions for fetching repository issue events."""

import logging
import os
import time
from datetime import datetime

import requests

from events import parse_timestamp

log = logging.getLogger(__name__)

DEFAULT_HOSTNAME = "github.com"
GITHUB_API = "https://api.github.com"

# Defaults (can be overridden via the config file's api section)
DEFAULT_TIMEOUT = 30
DEFAULT_MAX_RETRIES = 3
DEFAULT_RATE_LIMIT_DELAY = 0.1
DEFAULT_PER_PAGE = 100


def api_base(hostname: str = DEFAULT_HOSTNAME) -> str:
    """REST API root for github.com or a GitHub Enterprise host."""
    if hostname == DEFAULT_HOSTNAME:
        return GITHUB_API
    return f"https://{hostname}/api/v3"


def get_token(hostname: str = DEFAULT_HOSTNAME) -> str | None:
    names = ["GITHUB_TOKEN", "GH_TOKEN"]
    if hostname != DEFAULT_HOSTNAME:
        names.insert(0, "GH_ENTERPRISE_TOKEN")
    for name in names:
        token = os.environ.get(name)
        if token:
            return token
    return None


def get_headers(hostname: str = DEFAULT_HOSTNAME):
    token = get_token(hostname)
    if not token:
        raise ValueError("GITHUB_TOKEN environment variable required")
    return {
        "Authorization": f"Bearer {token}",
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }


def handle_rate_limit(response, max_retries=DEFAULT_MAX_RETRIES):
    """Check rate limit headers and wait if necessary. Returns True if should retry."""
    remaining = response.headers.get("X-RateLimit-Remaining")
    reset_time = response.headers.get("X-RateLimit-Reset")

    if remaining is not None and int(remaining) == 0:
        if reset_time:
            wait_seconds = int(reset_time) - int(time.time()) + 1
            if wait_seconds > 0 and wait_seconds < 300:  # Max 5 min wait
                log.warning(f"Rate limit hit, waiting {wait_seconds}s")
                time.sleep(wait_seconds)
                return True
        log.error("Rate limit exceeded, no reset time available")
    return False


def request_with_retry(method, url, max_retries=DEFAULT_MAX_RETRIES, timeout=DEFAULT_TIMEOUT, **kwargs):
    """Make HTTP request with exponential backoff retry."""
    last_error = None
    for attempt in range(max_retries):
        log.debug(f"{method.upper()} {url} params={kwargs.get('params')}")
        try:
            if method == "get":
                resp = requests.get(url, timeout=timeout, **kwargs)
            else:
                resp = requests.post(url, timeout=timeout, **kwargs)

            # Handle rate limiting
            if resp.status_code == 403 and handle_rate_limit(resp, max_retries):
                continue

            return resp
        except requests.exceptions.Timeout as e:
            last_error = e
            log.warning(f"Request timeout (attempt {attempt + 1}/{max_retries}): {url}")
        except requests.exceptions.RequestException as e:
            last_error = e
            log.warning(f"Request error (attempt {attempt + 1}/{max_retries}): {e}")

        # Exponential backoff: 1s, 2s, 4s
        if attempt < max_retries - 1:
            delay = 2 ** attempt
            log.debug(f"Retrying in {delay}s...")
            time.sleep(delay)

    raise last_error or requests.exceptions.RequestException(f"Failed after {max_retries} retries")


def fetch_repo_events(
    repo: str,
    hostname: str = DEFAULT_HOSTNAME,
    api_config: dict = None,
    stop_before: datetime | None = None,
) -> list[dict]:
    """Fetch raw issue events for ``owner/name``, newest first.

    Paging stops early once a page ends at or before ``stop_before``;
    later pages only hold older events.
    """
    headers = get_headers(hostname)

    api_cfg = api_config or {}
    timeout = api_cfg.get("request_timeout", DEFAULT_TIMEOUT)
    max_retries = api_cfg.get("max_retries", DEFAULT_MAX_RETRIES)
    rate_delay = api_cfg.get("rate_limit_delay", DEFAULT_RATE_LIMIT_DELAY)
    per_page = api_cfg.get("per_page", DEFAULT_PER_PAGE)

    url = f"{api_base(hostname)}/repos/{repo}/issues/events"
    params = {"per_page": per_page}
    records = []

    page = 1
    while True:
        params["page"] = page
        resp = request_with_retry(
            "get", url, max_retries=max_retries, timeout=timeout,
            headers=headers, params=params
        )
        resp.raise_for_status()
        items = resp.json()

        if not items:
            break

        records.extend(items)
        log.debug(f"{repo}: page {page} returned {len(items)} events")

        if len(items) < per_page:
            break
        if stop_before is not None and parse_timestamp(items[-1]["created_at"]) <= stop_before:
            log.debug(f"{repo}: reached events older than {stop_before}, stopping")
            break

        page += 1
        time.sleep(rate_delay)

    return records
