"""Ordered signal evaluators folded by the classifier."""

from __future__ import annotations

from typing import Tuple

from .base import ClassificationContext, SignalEvaluator
from .markers import ContentMarkerSignal
from .naming import BackupNameSignal, TemplateNameSignal
from .recency import RecencySignal, ReferenceSignal
from .similarity import SimilaritySignal
from .vcs import VcsStatusSignal


def default_evaluators() -> Tuple[SignalEvaluator, ...]:
    """Evaluators in their fixed order: name, similarity, vcs, recency, template, markers."""
    return (
        BackupNameSignal(),
        SimilaritySignal(),
        VcsStatusSignal(),
        ReferenceSignal(),
        RecencySignal(),
        TemplateNameSignal(),
        ContentMarkerSignal(),
    )


__all__ = [
    "BackupNameSignal",
    "ClassificationContext",
    "ContentMarkerSignal",
    "RecencySignal",
    "ReferenceSignal",
    "SignalEvaluator",
    "SimilaritySignal",
    "TemplateNameSignal",
    "VcsStatusSignal",
    "default_evaluators",
]
