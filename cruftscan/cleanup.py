"""Deletion of high-confidence backup/copy files; dry run unless told otherwise."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence

from .logging import get_logger
from .models import Classification, FileType, VcsStatus
from .recommendations import CLEANUP_CONFIDENCE

logger = get_logger("cleanup")

_DELETABLE_TYPES = (FileType.BACKUP, FileType.COPY)


@dataclass
class CleanupResult:
    dry_run: bool
    planned: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def is_deletable(classification: Classification) -> bool:
    return (
        classification.file_type in _DELETABLE_TYPES
        and classification.confidence > CLEANUP_CONFIDENCE
        and classification.vcs_status is not VcsStatus.TRACKED
    )


def plan_cleanup(classifications: Sequence[Classification]) -> List[Classification]:
    return sorted(
        (item for item in classifications if is_deletable(item)),
        key=lambda item: item.path,
    )


def execute_cleanup(
    root: Path,
    classifications: Sequence[Classification],
    *,
    dry_run: bool = True,
) -> CleanupResult:
    """Delete planned files under ``root``; only logs them when ``dry_run``."""
    root = root.resolve()
    result = CleanupResult(dry_run=dry_run)
    for item in plan_cleanup(classifications):
        result.planned.append(item.path)
        target = (root / item.path).resolve()
        if root not in target.parents:
            logger.warning("Refusing to delete %s: outside %s", item.path, root)
            result.failed.append(item.path)
            continue
        if dry_run:
            logger.info("Would delete %s (%s, confidence %d)", item.path, item.file_type.value, item.confidence)
            continue
        try:
            target.unlink()
        except OSError as exc:
            logger.warning("Could not delete %s: %s", item.path, exc)
            result.failed.append(item.path)
            continue
        logger.info("Deleted %s", item.path)
        result.deleted.append(item.path)
    return result


__all__ = ["CleanupResult", "execute_cleanup", "is_deletable", "plan_cleanup"]
