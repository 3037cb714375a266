"""Corpus loading: enumerate eligible files and read them once."""

from __future__ import annotations

import hashlib
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import UTC, datetime
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from .config import ScanConfig
from .deadline import Deadline
from .git.status import StatusOracle
from .logging import get_logger
from .models import Corpus, FileRecord, LoadFailure, VcsStatus

logger = get_logger("loader")

_EXCLUDED_FILES = {
    ".DS_Store",
    "Thumbs.db",
    "desktop.ini",
}


@dataclass
class IgnoreRule:
    """An exclusion pattern from .gitignore or the scan configuration."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            if self.directory_only and rel_path.startswith(f"{self.pattern}/"):
                return True
            return False

        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def _build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def _parse_gitignore(path: Path) -> List[IgnoreRule]:
    if not path.exists():
        return []

    rules: List[IgnoreRule] = []
    for raw_line in path.read_text(encoding="utf-8", errors="replace").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = _build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


class CorpusLoader:
    """Walks the configured roots and produces immutable file records."""

    def __init__(self, config: ScanConfig | None = None) -> None:
        self.config = config or ScanConfig()
        self._extensions = {ext.lower() for ext in self.config.extensions}
        self._excluded_dirs = set(self.config.exclude_dirs)

    def load(
        self,
        root: str | Path,
        *,
        oracle: StatusOracle | None = None,
        deadline: Deadline | None = None,
    ) -> Corpus:
        """Return every eligible file under the configured roots of ``root``.

        Raises FileNotFoundError / NotADirectoryError / PermissionError when the
        repository root or any scan root is unusable; individual unreadable
        files are reported as :class:`LoadFailure` entries instead.
        """
        repo_root = _require_directory(Path(root).expanduser().resolve(), label="Repository")
        deadline = deadline or Deadline.never()
        scan_roots = [
            _require_directory((repo_root / entry).resolve(), label="Scan root")
            for entry in self.config.roots
        ]

        rules = self._ignore_rules(repo_root)
        discovered: Dict[str, Path] = {}
        complete = True
        for scan_root in scan_roots:
            for path in self._iter_files(repo_root, scan_root, rules):
                if deadline.expired():
                    complete = False
                    break
                discovered.setdefault(_relative_id(repo_root, scan_root, path), path)
            if not complete:
                break

        ordered = sorted(discovered.items())
        statuses = {rel: _safe_status(oracle, rel) for rel, _ in ordered}
        logger.debug("Discovered %d candidate files under %s", len(ordered), repo_root)

        results = self._read_all(ordered, statuses, deadline)
        if len(results) < len(ordered):
            complete = False

        records: List[FileRecord] = []
        failures: List[LoadFailure] = []
        for item in results:
            if isinstance(item, FileRecord):
                records.append(item)
            else:
                failures.append(item)

        if not complete:
            logger.warning(
                "Time budget exhausted while loading; %d of %d files read",
                len(results),
                len(ordered),
            )

        return Corpus(
            root=str(repo_root),
            records=tuple(sorted(records, key=lambda record: record.path)),
            failures=tuple(sorted(failures, key=lambda failure: failure.path)),
            complete=complete,
        )

    # ------------------------------------------------------------------
    # Internals

    def _ignore_rules(self, repo_root: Path) -> List[IgnoreRule]:
        rules: List[IgnoreRule] = []
        if self.config.respect_gitignore:
            rules.extend(_parse_gitignore(repo_root / ".gitignore"))
        for pattern in self.config.exclude_paths:
            rule = _build_ignore_rule(pattern)
            if rule is not None:
                rules.append(rule)
        return rules

    def _iter_files(
        self, repo_root: Path, scan_root: Path, rules: Sequence[IgnoreRule]
    ) -> Iterator[Path]:
        for dirpath, dirnames, filenames in os.walk(scan_root):
            current_dir = Path(dirpath)
            rel_dir = _relative_id(repo_root, scan_root, current_dir) if current_dir != repo_root else ""

            kept_dirs = []
            for name in sorted(dirnames):
                if name in self._excluded_dirs:
                    continue
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if _should_ignore(rel_path, True, rules):
                    continue
                kept_dirs.append(name)
            dirnames[:] = kept_dirs

            for filename in sorted(filenames):
                if filename in _EXCLUDED_FILES:
                    continue
                if Path(filename).suffix.lower() not in self._extensions:
                    continue
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                if _should_ignore(rel_path, False, rules):
                    continue
                yield current_dir / filename

    def _read_all(
        self,
        ordered: Sequence[Tuple[str, Path]],
        statuses: Dict[str, VcsStatus],
        deadline: Deadline,
    ) -> List[Union[FileRecord, LoadFailure]]:
        def _task(item: Tuple[str, Path]) -> Union[FileRecord, LoadFailure, None]:
            if deadline.expired():
                return None
            rel, path = item
            return _read_record(rel, path, statuses[rel])

        if self.config.workers > 1 and len(ordered) > 1:
            with ThreadPoolExecutor(
                max_workers=self.config.workers, thread_name_prefix="cruftscan-read"
            ) as pool:
                outcomes = list(pool.map(_task, ordered))
        else:
            outcomes = [_task(item) for item in ordered]
        return [outcome for outcome in outcomes if outcome is not None]


def _read_record(rel: str, path: Path, status: VcsStatus) -> Union[FileRecord, LoadFailure]:
    modified_at: Optional[datetime] = None
    try:
        modified_at = datetime.fromtimestamp(path.stat().st_mtime, tz=UTC)
        raw = path.read_bytes()
    except OSError as exc:
        logger.warning("Skipping %s: %s", rel, exc.strerror or exc)
        return LoadFailure(
            path=rel,
            message=f"Could not read file: {exc.strerror or exc}",
            modified_at=modified_at,
            vcs_status=status,
        )
    try:
        content = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        logger.warning("Skipping %s: not valid UTF-8 (%s)", rel, exc.reason)
        return LoadFailure(
            path=rel,
            message=f"Could not decode file as UTF-8: {exc.reason}",
            modified_at=modified_at,
            vcs_status=status,
        )
    return FileRecord(
        path=rel,
        content=content,
        digest=hashlib.sha256(raw).hexdigest(),
        modified_at=modified_at,
        vcs_status=status,
    )


def _safe_status(oracle: StatusOracle | None, rel: str) -> VcsStatus:
    if oracle is None:
        return VcsStatus.UNTRACKED
    try:
        return oracle.status(rel)
    except Exception as exc:  # any oracle failure means untracked
        logger.debug("Status lookup failed for %s: %s", rel, exc)
        return VcsStatus.UNTRACKED


def _require_directory(path: Path, *, label: str) -> Path:
    if not path.exists():
        raise FileNotFoundError(f"{label} path not found: {path}")
    if not path.is_dir():
        raise NotADirectoryError(f"{label} path is not a directory: {path}")
    if not os.access(path, os.R_OK | os.X_OK):
        raise PermissionError(f"{label} path is not readable: {path}")
    return path


def _relative_id(repo_root: Path, scan_root: Path, path: Path) -> str:
    try:
        return path.relative_to(repo_root).as_posix()
    except ValueError:
        rel = path.relative_to(scan_root).as_posix()
        return scan_root.name if rel == "." else f"{scan_root.name}/{rel}"


__all__ = ["CorpusLoader", "IgnoreRule"]
