"""Content marker signal: explicit BACKUP / DEPRECATED annotations."""

from __future__ import annotations

import re
from typing import Iterable, List

from ..models import FileType, SignalOutcome
from .base import ClassificationContext, SignalEvaluator

BACKUP_MARKER_WEIGHT = 70
DEPRECATION_MARKER_WEIGHT = 80

_WORK_IN_PROGRESS = re.compile(r"\b(?:TODO|FIXME|HACK)\b")
_BACKUP_MARKER = re.compile(r"(?://|/\*|<!--|#)[ \t]*BACKUP\b")
_DEPRECATION_MARKER = re.compile(r"@deprecated\b|\bDEPRECATED\b")


class ContentMarkerSignal(SignalEvaluator):
    name = "content-markers"

    def evaluate(self, context: ClassificationContext) -> Iterable[SignalOutcome]:
        content = context.record.content
        outcomes: List[SignalOutcome] = []
        if _WORK_IN_PROGRESS.search(content):
            outcomes.append(SignalOutcome(reason="Contains TODO/FIXME comments - may be incomplete"))
        if _BACKUP_MARKER.search(content):
            outcomes.append(
                SignalOutcome(
                    confidence_delta=BACKUP_MARKER_WEIGHT,
                    reason="Contains backup markers in comments",
                    type_override=FileType.BACKUP,
                )
            )
        if _DEPRECATION_MARKER.search(content):
            outcomes.append(
                SignalOutcome(
                    confidence_delta=DEPRECATION_MARKER_WEIGHT,
                    reason="Marked as deprecated in code",
                    type_override=FileType.ABANDONED,
                )
            )
        return outcomes
