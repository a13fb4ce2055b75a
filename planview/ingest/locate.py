"""Source-location lookup for change records.

Finds the ``.tf`` file that declares a record's resource block and, when git
attribution is requested, the last commit touching that file. Lookups never
raise: missing files yield ``None`` and git failures are reported through
``Location.error``.
"""

from __future__ import annotations

import logging
import os
import subprocess
from datetime import datetime
from pathlib import Path

from ..models import ChangeRecord, Location
from ..tree_model.build import LocateFn

logger = logging.getLogger(__name__)

GIT_TIMEOUT_SECONDS = 5.0
GIT_LOG_FORMAT = "%H|%an|%ae|%at|%s"
TERRAFORM_SUFFIX = ".tf"


def _strip_index(part: str) -> str:
    bracket = part.find("[")
    return part[:bracket] if bracket >= 0 else part


def resource_type_and_name(record: ChangeRecord) -> tuple[str, str] | None:
    """Return the ``(type, name)`` a record is declared under.

    Falls back to parsing the address; for module addresses the last two
    segments are used.
    """
    if record.type and record.name:
        return record.type, record.name
    parts = [_strip_index(part) for part in record.address.split(".")]
    if parts and parts[0] == "module":
        if len(parts) < 4:
            return None
        return parts[-2], parts[-1]
    if parts and parts[0] == "data":
        parts = parts[1:]
    if len(parts) < 2:
        return None
    return parts[0], parts[1]


def find_terraform_files(root: Path) -> list[Path]:
    """Return every ``.tf`` file under ``root``, skipping hidden directories."""
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if not name.startswith("."))
        for filename in sorted(filenames):
            if filename.endswith(TERRAFORM_SUFFIX):
                found.append(Path(dirpath) / filename)
    return found


def _run_git(repo_root: Path, args: list[str], timeout_seconds: float) -> subprocess.CompletedProcess[str] | None:
    try:
        return subprocess.run(
            ["git", "-C", str(repo_root), *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=timeout_seconds,
        )
    except Exception:
        logger.debug("git %s failed", " ".join(args), exc_info=True)
        return None


class TerraformLocator:
    """Callable ``record -> Location | None`` backed by a directory of ``.tf`` files."""

    def __init__(self, root: Path, *, git: bool = False, timeout_seconds: float = GIT_TIMEOUT_SECONDS) -> None:
        self.root = root.resolve()
        self.git = git
        self.timeout_seconds = timeout_seconds
        self._sources: list[tuple[Path, str]] | None = None
        self._is_repo: bool | None = None
        self._branch: str | None = None
        self._git_cache: dict[Path, Location] = {}

    def _load_sources(self) -> list[tuple[Path, str]]:
        if self._sources is None:
            sources: list[tuple[Path, str]] = []
            for path in find_terraform_files(self.root):
                try:
                    sources.append((path, path.read_text(encoding="utf-8", errors="replace")))
                except OSError:
                    logger.debug("skipping unreadable %s", path)
            self._sources = sources
            logger.debug("indexed %d terraform files under %s", len(sources), self.root)
        return self._sources

    def find_definition(self, record: ChangeRecord) -> Path | None:
        """Return the first ``.tf`` file declaring the record's block."""
        type_and_name = resource_type_and_name(record)
        if type_and_name is None:
            return None
        block = "data" if record.mode == "data" else "resource"
        resource_type, resource_name = type_and_name
        needles = (
            f'{block} "{resource_type}" "{resource_name}"',
            f"{block} '{resource_type}' '{resource_name}'",
        )
        for path, text in self._load_sources():
            if any(needle in text for needle in needles):
                return path
        return None

    def _relative(self, path: Path) -> Path:
        try:
            return path.relative_to(self.root)
        except ValueError:
            return path

    def locate(self, record: ChangeRecord) -> Location | None:
        path = self.find_definition(record)
        if path is None:
            return None
        relative = self._relative(path)
        if not self.git:
            return Location(file_path=relative.as_posix())
        cached = self._git_cache.get(relative)
        if cached is None:
            cached = self._git_location(relative)
            self._git_cache[relative] = cached
        return cached

    __call__ = locate

    def _git(self, args: list[str]) -> subprocess.CompletedProcess[str] | None:
        return _run_git(self.root, args, self.timeout_seconds)

    def is_repository(self) -> bool:
        if self._is_repo is None:
            proc = self._git(["rev-parse", "--git-dir"])
            self._is_repo = proc is not None and proc.returncode == 0
        return self._is_repo

    def current_branch(self) -> str:
        if self._branch is None:
            proc = self._git(["rev-parse", "--abbrev-ref", "HEAD"])
            self._branch = proc.stdout.strip() if proc is not None and proc.returncode == 0 else ""
        return self._branch

    def _git_location(self, relative: Path) -> Location:
        file_path = relative.as_posix()
        if not self.is_repository():
            return Location(file_path=file_path, error="Not a git repository")

        tracked = self._git(["ls-files", "--error-unmatch", "--", file_path])
        if tracked is None or tracked.returncode != 0:
            return Location(file_path=file_path, error="File not tracked by git")

        status = self._git(["status", "--porcelain", "--", file_path])
        if status is None or status.returncode != 0:
            return Location(file_path=file_path, is_tracked=True, error="Failed to check for uncommitted changes")
        dirty = bool(status.stdout.strip())

        log = self._git(["log", "-1", f"--format={GIT_LOG_FORMAT}", "--", file_path])
        line = log.stdout.strip() if log is not None and log.returncode == 0 else ""
        parts = line.split("|", 4)
        if len(parts) != 5:
            return Location(
                file_path=file_path,
                is_tracked=True,
                has_uncommitted_changes=dirty,
                branch=self.current_branch(),
                error="No commit history found for file",
            )
        commit_id, author_name, author_email, timestamp, message = parts
        try:
            commit_date: datetime | None = datetime.fromtimestamp(int(timestamp))
        except (ValueError, OverflowError, OSError):
            commit_date = None
        return Location(
            file_path=file_path,
            commit_id=commit_id,
            branch=self.current_branch(),
            author_name=author_name,
            author_email=author_email,
            commit_date=commit_date,
            commit_message=message,
            is_tracked=True,
            has_uncommitted_changes=dirty,
        )


def make_locator(root: Path, *, git: bool = False) -> LocateFn:
    """Return a ``locate`` callable for tree building."""
    return TerraformLocator(root, git=git)
