"""Reference-graph and modification-recency signals.

Age alone does not make a file abandoned: past the abandoned threshold a file
is promoted from ``active`` only when the reference graph shows nothing
importing it. A year-old module that is still imported keeps its type and only
gains the extra confidence, so stable shared code is not reported as dead.
"""

from __future__ import annotations

import posixpath
from typing import Iterable, List

from ..models import FileType, SignalOutcome
from .base import ClassificationContext, SignalEvaluator

STALE_WEIGHT = 30
ABANDONED_WEIGHT = 40

_IMPORTABLE_SUFFIXES = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".css", ".scss", ".py")


class ReferenceSignal(SignalEvaluator):
    """Notes importable files that nothing references, with their orphaned exports.

    Carries no weight on its own.
    """

    name = "reference"

    def evaluate(self, context: ClassificationContext) -> Iterable[SignalOutcome]:
        path = context.record.path
        if posixpath.splitext(path)[1].lower() not in _IMPORTABLE_SUFFIXES:
            return []
        if context.graph.is_referenced_anywhere(path):
            return []
        outcomes = [SignalOutcome(reason="Not referenced by any other file")]
        exports = sorted(context.graph.exports_of(path))
        if exports:
            outcomes.append(SignalOutcome(reason=f"Exports unused elsewhere: {', '.join(exports)}"))
        return outcomes


class RecencySignal(SignalEvaluator):
    """Scores files by age; very old unreferenced active files become abandoned."""

    name = "recency"

    def evaluate(self, context: ClassificationContext) -> Iterable[SignalOutcome]:
        age_days = (context.now - context.record.modified_at).total_seconds() / 86400
        if age_days <= context.recency.stale_days:
            return []

        outcomes: List[SignalOutcome] = [
            SignalOutcome(
                confidence_delta=STALE_WEIGHT,
                reason=f"Not modified for {round(age_days)} days",
            )
        ]
        if age_days <= context.recency.abandoned_days:
            return outcomes

        referenced = context.graph.is_referenced_anywhere(context.record.path)
        if referenced:
            outcomes.append(
                SignalOutcome(
                    confidence_delta=ABANDONED_WEIGHT,
                    reason="Unchanged for over a year but still referenced",
                )
            )
            return outcomes

        promote = context.current_type is FileType.ACTIVE
        outcomes.append(
            SignalOutcome(
                confidence_delta=ABANDONED_WEIGHT,
                reason="File appears to be abandoned (>1 year old)",
                type_override=FileType.ABANDONED if promote else None,
            )
        )
        return outcomes
