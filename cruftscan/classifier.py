"""Ordered signal accumulation producing one classification per file."""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Sequence

from .config import RecencyConfig
from .graph import ReferenceGraph
from .logging import get_logger
from .models import (
    Classification,
    Corpus,
    FileRecord,
    FileType,
    LoadFailure,
)
from .naming import BackupNameMatcher
from .recommendations import recommendations_for
from .signals import ClassificationContext, SignalEvaluator, default_evaluators
from .similarity import SimilarityIndex

logger = get_logger("classifier")

MIN_CONFIDENCE = 0
MAX_CONFIDENCE = 100


def clamp_confidence(value: int) -> int:
    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, value))


class Classifier:
    """Folds the ordered signal evaluators over every record in a corpus."""

    def __init__(
        self,
        evaluators: Optional[Iterable[SignalEvaluator]] = None,
        *,
        recency: RecencyConfig | None = None,
        names: BackupNameMatcher | None = None,
    ) -> None:
        self.evaluators: Sequence[SignalEvaluator] = (
            tuple(evaluators) if evaluators is not None else default_evaluators()
        )
        self.recency = recency or RecencyConfig()
        self.names = names or BackupNameMatcher()

    def classify(
        self,
        corpus: Corpus,
        graph: ReferenceGraph,
        similarity: SimilarityIndex,
        *,
        now: datetime | None = None,
    ) -> List[Classification]:
        """Classify every record and load failure, most actionable first."""
        now = now or datetime.now(UTC)
        records: Mapping[str, FileRecord] = MappingProxyType(corpus.by_path())
        results = [
            self.classify_record(record, records, graph, similarity, now=now)
            for record in corpus.records
        ]
        results.extend(self.classify_failure(failure) for failure in corpus.failures)
        results.sort(key=Classification.sort_key)
        logger.debug("Classified %d files", len(results))
        return results

    def classify_record(
        self,
        record: FileRecord,
        records: Mapping[str, FileRecord],
        graph: ReferenceGraph,
        similarity: SimilarityIndex,
        *,
        now: datetime,
    ) -> Classification:
        context = ClassificationContext(
            record=record,
            records=records,
            graph=graph,
            similarity=similarity,
            names=self.names,
            recency=self.recency,
            now=now,
        )
        file_type = FileType.ACTIVE
        confidence = 0
        reasons: List[str] = []
        related_file: Optional[str] = None
        best_similarity: Optional[float] = None

        for evaluator in self.evaluators:
            for outcome in evaluator.evaluate(context):
                if outcome.type_override is not None:
                    file_type = outcome.type_override
                confidence += outcome.confidence_delta
                if outcome.reason:
                    reasons.append(outcome.reason)
                if outcome.related_file is not None:
                    related_file = outcome.related_file
                if outcome.similarity is not None:
                    best_similarity = _max_score(best_similarity, outcome.similarity)
            context = replace(context, current_type=file_type, related_file=related_file)

        classification = Classification(
            path=record.path,
            file_type=file_type,
            confidence=clamp_confidence(confidence),
            reasons=reasons,
            related_file=related_file,
            similarity=best_similarity,
            vcs_status=record.vcs_status,
            modified_at=record.modified_at,
        )
        classification.recommendations = recommendations_for(classification)
        return classification

    def classify_failure(self, failure: LoadFailure) -> Classification:
        classification = Classification(
            path=failure.path,
            file_type=FileType.ERROR,
            confidence=0,
            reasons=[failure.message],
            vcs_status=failure.vcs_status,
            modified_at=failure.modified_at,
        )
        classification.recommendations = recommendations_for(classification)
        return classification


def _max_score(current: Optional[float], candidate: float) -> float:
    return candidate if current is None else max(current, candidate)


__all__ = ["Classifier", "clamp_confidence"]
