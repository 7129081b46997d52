"""Cache directory lifecycle and per-repository JSON artifacts."""

import json
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Callable

log = logging.getLogger(__name__)

REPORT_FILENAME = "report.txt"


def repo_slug(repo: str) -> str:
    """``owner/name`` -> ``owner-name``"""
    return repo.replace("/", "-")


class CacheDir:
    """Directory holding intermediate artifacts for one run.

    An explicit directory is created if missing and always kept. Without
    one, a temporary directory is created and removed on exit, whether
    or not the run succeeded, unless ``preserve`` is set.
    """

    def __init__(self, path: Path | None = None, preserve: bool = False):
        self.requested = path
        self.preserve = preserve
        self.path = None
        self.temporary = path is None

    def __enter__(self) -> "CacheDir":
        if self.temporary:
            self.path = Path(tempfile.mkdtemp(prefix="issue-digest-"))
        else:
            self.path = Path(self.requested)
            self.path.mkdir(parents=True, exist_ok=True)
        log.debug(f"Cache directory: {self.path}")
        return self

    def __exit__(self, exc_type, exc, tb):
        if not self.temporary:
            return False
        if self.preserve:
            log.info(f"Cache directory preserved at {self.path}")
        else:
            shutil.rmtree(self.path, ignore_errors=True)
        return False

    def raw_path(self, repo: str) -> Path:
        return self.path / f"{repo_slug(repo)}-01-raw.json"

    def filtered_path(self, repo: str) -> Path:
        return self.path / f"{repo_slug(repo)}-02-filtered.json"

    @property
    def report_path(self) -> Path:
        return self.path / REPORT_FILENAME

    def reset_report(self):
        self.report_path.write_text("", encoding="utf-8")

    def append_report(self, text: str):
        with open(self.report_path, "a", encoding="utf-8") as f:
            f.write(text)

    def read_report(self) -> str:
        if not self.report_path.exists():
            return ""
        return self.report_path.read_text(encoding="utf-8")


def load_json(path: Path):
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def save_json(path: Path, data):
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
        f.write("\n")


def cached_json(path: Path, compute: Callable[[], object]):
    """Return the artifact at ``path``, computing and saving it only if absent.

    Existing files are reused as-is; contents are never checked for staleness.
    """
    if path.exists():
        log.info(f"Reusing {path.name}")
        return load_json(path)
    data = compute()
    save_json(path, data)
    return data
