"""Similarity correlation signal: decides which side of a near-duplicate pair is the copy."""

from __future__ import annotations

import posixpath
from typing import Iterable

from ..models import FileType, SignalOutcome
from ..similarity import EXACT_SCORE, NEAR_IDENTICAL_SCORE
from .base import ClassificationContext, SignalEvaluator

BACKUP_COPY_WEIGHT = 90
OLDER_DUPLICATE_WEIGHT = 70
NOTEWORTHY_SCORE = 0.8


class SimilaritySignal(SignalEvaluator):
    """Looks only at the file's strongest match."""

    name = "similarity"

    def evaluate(self, context: ClassificationContext) -> Iterable[SignalOutcome]:
        record = context.record
        edge = context.similarity.best_match(record.path)
        if edge is None:
            return []

        other_path = edge.other(record.path)
        other_name = posixpath.basename(other_path)
        percent = round(edge.score * 100)

        if edge.score <= NEAR_IDENTICAL_SCORE:
            if edge.score > NOTEWORTHY_SCORE:
                return [SignalOutcome(reason=f"{percent}% similar to {other_name}", similarity=edge.score)]
            return []

        this_backup = context.is_backup_named
        other_backup = context.names.is_backup_name(other_name)

        if this_backup and not other_backup:
            file_type = FileType.BACKUP if edge.score >= EXACT_SCORE else FileType.COPY
            return [
                SignalOutcome(
                    confidence_delta=BACKUP_COPY_WEIGHT,
                    reason=f"{percent}% similar to active file {other_name}",
                    type_override=file_type,
                    related_file=other_path,
                    similarity=edge.score,
                )
            ]

        if other_backup and not this_backup:
            return [
                SignalOutcome(
                    reason=f"Original file (backup found: {other_name})",
                    related_file=other_path,
                    similarity=edge.score,
                )
            ]

        other = context.records.get(other_path)
        if other is not None and record.modified_at < other.modified_at:
            return [
                SignalOutcome(
                    confidence_delta=OLDER_DUPLICATE_WEIGHT,
                    reason=f"Older duplicate of {other_name}",
                    type_override=FileType.COPY,
                    related_file=other_path,
                    similarity=edge.score,
                )
            ]
        return [SignalOutcome(reason=f"{percent}% similar to {other_name}", similarity=edge.score)]
