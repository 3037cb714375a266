"""Remediation suggestions derived from final classifications."""

from __future__ import annotations

import posixpath
from typing import List, Sequence

from .models import Classification, FileType, VcsStatus

CLEANUP_CONFIDENCE = 80
COPY_CONFIDENCE = 70


def recommendations_for(classification: Classification) -> List[str]:
    """Per-file suggestions; only the final ``file_type`` is consulted."""
    related = posixpath.basename(classification.related_file) if classification.related_file else None
    file_type = classification.file_type
    suggestions: List[str] = []

    if file_type is FileType.BACKUP:
        if related:
            suggestions.append(f"Delete if {related} is working correctly")
        else:
            suggestions.append("Review and delete if no longer needed")
        suggestions.append("Archive to backup directory if historically important")
    elif file_type is FileType.COPY:
        if related:
            suggestions.append(f"Merge useful changes into {related} and delete")
        suggestions.append("Compare with original to identify differences")
        suggestions.append("Delete after confirming no unique changes")
    elif file_type is FileType.ABANDONED:
        suggestions.append("Review for useful code before deletion")
        suggestions.append("Archive or move to deprecated folder")
        suggestions.append("Remove from active codebase")
    elif file_type is FileType.TEMPLATE:
        suggestions.append("Move to templates or examples directory")
        suggestions.append("Document as template/example in README")
    elif file_type is FileType.ACTIVE:
        if classification.vcs_status is VcsStatus.UNTRACKED:
            suggestions.append("Add to git if this is an active file")
        if any("similar" in reason for reason in classification.reasons):
            suggestions.append("Review for potential consolidation with similar files")
    elif file_type is FileType.ERROR:
        suggestions.append("Fix the read error and re-run the scan")

    if (
        file_type not in (FileType.ACTIVE, FileType.ERROR)
        and classification.vcs_status is not VcsStatus.TRACKED
    ):
        suggestions.append("Safe to delete (not tracked in git)")
    return suggestions


def global_recommendations(classifications: Sequence[Classification]) -> List[str]:
    """Repository-wide suggestions built from classification counts."""
    backups = [
        item
        for item in classifications
        if item.file_type is FileType.BACKUP and item.confidence > CLEANUP_CONFIDENCE
    ]
    copies = [
        item
        for item in classifications
        if item.file_type is FileType.COPY and item.confidence > COPY_CONFIDENCE
    ]
    abandoned = [item for item in classifications if item.file_type is FileType.ABANDONED]
    untracked_active = [
        item
        for item in classifications
        if item.file_type is FileType.ACTIVE and item.vcs_status is VcsStatus.UNTRACKED
    ]
    failures = [item for item in classifications if item.file_type is FileType.ERROR]

    suggestions: List[str] = []
    if backups:
        suggestions.append(f"Review and clean up {len(backups)} backup files")
    if copies:
        suggestions.append(f"Merge or delete {len(copies)} duplicate copies")
    if abandoned:
        suggestions.append(f"Archive or remove {len(abandoned)} abandoned files")
    if untracked_active:
        suggestions.append(f"Add {len(untracked_active)} untracked active files to git")
    if failures:
        suggestions.append(f"Investigate {len(failures)} files that could not be analyzed")
    return suggestions


__all__ = ["global_recommendations", "recommendations_for"]
