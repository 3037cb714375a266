"""Base classes for classification signal evaluators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Mapping, Optional

from ..config import RecencyConfig
from ..graph import ReferenceGraph
from ..models import FileRecord, FileType, SignalOutcome
from ..naming import BackupNameMatcher
from ..similarity import SimilarityIndex


@dataclass(frozen=True)
class ClassificationContext:
    """Read-only view handed to each evaluator.

    ``current_type`` and ``related_file`` reflect the outcomes of the
    evaluators that already ran for this file.
    """

    record: FileRecord
    records: Mapping[str, FileRecord]
    graph: ReferenceGraph
    similarity: SimilarityIndex
    names: BackupNameMatcher
    recency: RecencyConfig
    now: datetime
    current_type: FileType = FileType.ACTIVE
    related_file: Optional[str] = None

    @property
    def is_backup_named(self) -> bool:
        return self.names.is_backup_name(self.record.name)


class SignalEvaluator(ABC):
    """Contract for one step of the ordered classification fold."""

    name: str = "signal"

    @abstractmethod
    def evaluate(self, context: ClassificationContext) -> Iterable[SignalOutcome]:
        """Return the outcomes this signal contributes for ``context.record``."""
