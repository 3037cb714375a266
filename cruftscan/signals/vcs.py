"""Version-control status signal."""

from __future__ import annotations

from typing import Iterable

from ..models import SignalOutcome, VcsStatus
from .base import ClassificationContext, SignalEvaluator

UNTRACKED_WEIGHT = 20


class VcsStatusSignal(SignalEvaluator):
    name = "vcs-status"

    def evaluate(self, context: ClassificationContext) -> Iterable[SignalOutcome]:
        status = context.record.vcs_status
        if status is VcsStatus.UNTRACKED:
            return [SignalOutcome(confidence_delta=UNTRACKED_WEIGHT, reason="File is not tracked in git")]
        if status is VcsStatus.IGNORED:
            return [SignalOutcome(reason="File is ignored by git")]
        return []
