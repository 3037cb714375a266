"""Version-control status lookups backed by git."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Iterable, Mapping, Optional, Protocol, Set

from ..logging import get_logger
from ..models import VcsStatus

logger = get_logger("git.status")


class StatusOracle(Protocol):
    """Answers whether a repo-relative path is tracked, untracked or ignored."""

    def status(self, path: str) -> VcsStatus:
        ...


class GitStatusOracle:
    """Classifies paths using two `git ls-files` listings taken once per scan.

    Any git failure (not a repository, git missing, non-zero exit) degrades to
    reporting every path as untracked.
    """

    def __init__(
        self,
        repo_path: Path | str,
        runner: Callable[..., str] | None = None,
    ) -> None:
        self._repo = Path(repo_path)
        self._runner = runner or self._default_runner
        self._tracked: Optional[Set[str]] = None
        self._ignored: Set[str] = set()
        self._available = True

    @property
    def available(self) -> bool:
        self._ensure_loaded()
        return self._available

    def status(self, path: str) -> VcsStatus:
        self._ensure_loaded()
        if not self._available or self._tracked is None:
            return VcsStatus.UNTRACKED
        normalized = path.replace("\\", "/")
        if normalized in self._tracked:
            return VcsStatus.TRACKED
        if normalized in self._ignored:
            return VcsStatus.IGNORED
        return VcsStatus.UNTRACKED

    # ------------------------------------------------------------------
    # Internals

    def _ensure_loaded(self) -> None:
        if self._tracked is not None or not self._available:
            return
        try:
            tracked = self._run(["git", "ls-files", "-z"])
            ignored = self._run(
                ["git", "ls-files", "-z", "--others", "--ignored", "--exclude-standard"]
            )
        except (OSError, subprocess.SubprocessError) as exc:
            logger.debug("git status unavailable for %s: %s", self._repo, exc)
            self._available = False
            return
        self._tracked = set(_split_nul(tracked))
        self._ignored = set(_split_nul(ignored))
        logger.debug(
            "git reports %d tracked and %d ignored files under %s",
            len(self._tracked),
            len(self._ignored),
            self._repo,
        )

    def _run(self, args: Iterable[str]) -> str:
        return self._runner(args, cwd=self._repo, capture_output=True)

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        capture_output: bool = False,
    ) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            text=True,
            capture_output=capture_output,
        )
        return completed.stdout if capture_output else ""


class StaticStatusOracle:
    """Serves statuses from a fixed mapping; unknown paths get ``default``."""

    def __init__(
        self,
        statuses: Mapping[str, VcsStatus] | None = None,
        *,
        default: VcsStatus = VcsStatus.UNTRACKED,
    ) -> None:
        self._statuses = dict(statuses or {})
        self._default = default

    def status(self, path: str) -> VcsStatus:
        return self._statuses.get(path, self._default)


def _split_nul(output: str) -> list[str]:
    return [entry for entry in output.split("\0") if entry.strip()]


__all__ = ["GitStatusOracle", "StaticStatusOracle", "StatusOracle"]
