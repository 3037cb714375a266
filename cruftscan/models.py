"""Core data models shared across cruftscan components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class VcsStatus(str, Enum):
    """Version-control state of a file as reported by the status oracle."""

    TRACKED = "tracked"
    UNTRACKED = "untracked"
    IGNORED = "ignored"


class FileType(str, Enum):
    """Final classification of a scanned file."""

    BACKUP = "backup"
    COPY = "copy"
    ABANDONED = "abandoned"
    TEMPLATE = "template"
    ACTIVE = "active"
    ERROR = "error"


# Most actionable first.
TYPE_PRIORITY: Dict[FileType, int] = {
    FileType.BACKUP: 0,
    FileType.COPY: 1,
    FileType.ABANDONED: 2,
    FileType.TEMPLATE: 3,
    FileType.ACTIVE: 4,
    FileType.ERROR: 5,
}


class SimilarityKind(str, Enum):
    EXACT = "exact"
    NEAR_IDENTICAL = "near-identical"
    SIMILAR = "similar"


@dataclass(frozen=True)
class FileRecord:
    """One discovered file, immutable for the duration of a scan."""

    path: str
    content: str
    digest: str
    modified_at: datetime
    vcs_status: VcsStatus = VcsStatus.UNTRACKED

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def directory(self) -> str:
        return self.path.rsplit("/", 1)[0] if "/" in self.path else ""


@dataclass(frozen=True)
class LoadFailure:
    """A file the loader could not read or decode."""

    path: str
    message: str
    modified_at: Optional[datetime] = None
    vcs_status: VcsStatus = VcsStatus.UNTRACKED


@dataclass(frozen=True)
class Corpus:
    """Output of the loader pass."""

    root: str
    records: Tuple[FileRecord, ...]
    failures: Tuple[LoadFailure, ...] = ()
    complete: bool = True

    def by_path(self) -> Dict[str, FileRecord]:
        return {record.path: record for record in self.records}


@dataclass(frozen=True)
class SimilarityEdge:
    """Unordered pair of files above the similarity threshold (``file_a < file_b``)."""

    file_a: str
    file_b: str
    score: float
    kind: SimilarityKind

    def other(self, path: str) -> str:
        return self.file_b if path == self.file_a else self.file_a

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fileA": self.file_a,
            "fileB": self.file_b,
            "score": round(self.score, 4),
            "kind": self.kind.value,
        }


@dataclass(frozen=True)
class SignalOutcome:
    """Partial contribution of one signal evaluator to a classification."""

    confidence_delta: int = 0
    reason: Optional[str] = None
    type_override: Optional[FileType] = None
    related_file: Optional[str] = None
    similarity: Optional[float] = None


@dataclass
class Classification:
    """Final per-file output unit."""

    path: str
    file_type: FileType
    confidence: int
    reasons: List[str] = field(default_factory=list)
    related_file: Optional[str] = None
    similarity: Optional[float] = None
    vcs_status: VcsStatus = VcsStatus.UNTRACKED
    modified_at: Optional[datetime] = None
    recommendations: List[str] = field(default_factory=list)

    def sort_key(self) -> Tuple[int, int, str]:
        return (TYPE_PRIORITY[self.file_type], -self.confidence, self.path)

    def to_dict(self) -> Dict[str, Any]:
        modified = None
        if self.modified_at is not None:
            modified = self.modified_at.isoformat().replace("+00:00", "Z")
        return {
            "path": self.path,
            "fileType": self.file_type.value,
            "confidence": self.confidence,
            "reasons": list(self.reasons),
            "relatedFile": self.related_file,
            "similarity": None if self.similarity is None else round(self.similarity, 4),
            "vcsStatus": self.vcs_status.value,
            "modifiedAt": modified,
            "recommendations": list(self.recommendations),
        }
