"""Pairwise near-duplicate detection using line-set Jaccard similarity.

Every unordered pair of loaded files is compared, so the cost grows with the
square of the corpus size. That is acceptable for an offline pass; callers
with very large trees should narrow the extension allow-list or scan roots
first. A locality-sensitive hashing pre-filter would lift the limit but is not
implemented.

Files with no non-blank lines are left out of the comparison entirely, so two
identical empty files never produce an edge. Every blank file would otherwise
pair with every other one as an exact duplicate.
"""

from __future__ import annotations

from concurrent.futures import Future, ProcessPoolExecutor
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from .config import SimilarityConfig
from .deadline import Deadline
from .logging import get_logger
from .models import FileRecord, SimilarityEdge, SimilarityKind

logger = get_logger("similarity")

EXACT_SCORE = 1.0
NEAR_IDENTICAL_SCORE = 0.95


def normalized_lines(content: str) -> FrozenSet[str]:
    """Distinct non-empty lines with surrounding whitespace removed."""
    return frozenset(line.strip() for line in content.split("\n") if line.strip())


def line_set_similarity(content_a: str, content_b: str) -> float:
    """Jaccard similarity of the normalised line sets; identical text scores 1.0."""
    if content_a == content_b:
        return EXACT_SCORE
    return _jaccard(normalized_lines(content_a), normalized_lines(content_b))


def similarity_kind(score: float, threshold: float) -> Optional[SimilarityKind]:
    if score >= EXACT_SCORE:
        return SimilarityKind.EXACT
    if score > NEAR_IDENTICAL_SCORE:
        return SimilarityKind.NEAR_IDENTICAL
    if score > threshold:
        return SimilarityKind.SIMILAR
    return None


def _jaccard(lines_a: FrozenSet[str], lines_b: FrozenSet[str]) -> float:
    union = len(lines_a | lines_b)
    if union == 0:
        return 0.0
    return len(lines_a & lines_b) / union


class SimilarityIndex:
    """Edges above the threshold, one per unordered pair, strongest first."""

    def __init__(self, edges: Sequence[SimilarityEdge], *, complete: bool = True) -> None:
        self.edges: Tuple[SimilarityEdge, ...] = tuple(
            sorted(edges, key=lambda edge: (-edge.score, edge.file_a, edge.file_b))
        )
        self.complete = complete
        by_path: Dict[str, List[SimilarityEdge]] = {}
        for edge in self.edges:
            by_path.setdefault(edge.file_a, []).append(edge)
            by_path.setdefault(edge.file_b, []).append(edge)
        self._by_path = {path: tuple(items) for path, items in by_path.items()}

    def __len__(self) -> int:
        return len(self.edges)

    def edges_for(self, path: str) -> Tuple[SimilarityEdge, ...]:
        return self._by_path.get(path, ())

    def best_match(self, path: str) -> Optional[SimilarityEdge]:
        """Highest scoring edge touching ``path``; ties go to the smaller counterpart path."""
        candidates = self.edges_for(path)
        if not candidates:
            return None
        return min(candidates, key=lambda edge: (-edge.score, edge.other(path)))


# (path, digest, content, normalised lines)
_Entry = Tuple[str, str, str, FrozenSet[str]]

_WORKER_ENTRIES: Tuple[_Entry, ...] = ()
_WORKER_THRESHOLD = 0.0


class SimilarityDetector:
    """Computes the similarity index for a corpus."""

    def __init__(self, config: SimilarityConfig | None = None) -> None:
        self.config = config or SimilarityConfig()

    def detect(
        self,
        records: Sequence[FileRecord],
        *,
        deadline: Deadline | None = None,
    ) -> SimilarityIndex:
        deadline = deadline or Deadline.never()
        entries: List[_Entry] = []
        for record in sorted(records, key=lambda item: item.path):
            lines = normalized_lines(record.content)
            if not lines:
                continue
            entries.append((record.path, record.digest, record.content, lines))

        rows = max(len(entries) - 1, 0)
        if self.config.workers > 1 and rows > 1:
            edges, completed = self._detect_parallel(tuple(entries), rows, deadline)
        else:
            edges, completed = self._detect_serial(entries, rows, deadline)

        complete = completed == rows
        if not complete:
            logger.warning(
                "Time budget exhausted during similarity pass; %d of %d rows compared",
                completed,
                rows,
            )
        logger.debug("Found %d similar pairs among %d files", len(edges), len(entries))
        return SimilarityIndex(edges, complete=complete)

    def _detect_serial(
        self, entries: Sequence[_Entry], rows: int, deadline: Deadline
    ) -> Tuple[List[SimilarityEdge], int]:
        edges: List[SimilarityEdge] = []
        completed = 0
        for index in range(rows):
            if deadline.expired():
                break
            edges.extend(_score_row(entries, index, self.config.threshold))
            completed += 1
        return edges, completed

    def _detect_parallel(
        self, entries: Tuple[_Entry, ...], rows: int, deadline: Deadline
    ) -> Tuple[List[SimilarityEdge], int]:
        edges: List[SimilarityEdge] = []
        completed = 0
        with ProcessPoolExecutor(
            max_workers=self.config.workers,
            initializer=_init_worker,
            initargs=(entries, self.config.threshold),
        ) as pool:
            futures: List[Future] = [pool.submit(_score_worker_row, index) for index in range(rows)]
            for position, future in enumerate(futures):
                if deadline.expired():
                    for pending in futures[position:]:
                        pending.cancel()
                    break
                edges.extend(future.result())
                completed += 1
        return edges, completed


def _score_row(entries: Sequence[_Entry], index: int, threshold: float) -> List[SimilarityEdge]:
    path_a, digest_a, content_a, lines_a = entries[index]
    edges: List[SimilarityEdge] = []
    for path_b, digest_b, content_b, lines_b in entries[index + 1 :]:
        if digest_a == digest_b and content_a == content_b:
            score = EXACT_SCORE
        else:
            score = _jaccard(lines_a, lines_b)
        kind = similarity_kind(score, threshold)
        if kind is None:
            continue
        first, second = sorted((path_a, path_b))
        edges.append(SimilarityEdge(file_a=first, file_b=second, score=score, kind=kind))
    return edges


def _init_worker(entries: Tuple[_Entry, ...], threshold: float) -> None:
    global _WORKER_ENTRIES, _WORKER_THRESHOLD
    _WORKER_ENTRIES = entries
    _WORKER_THRESHOLD = threshold


def _score_worker_row(index: int) -> List[SimilarityEdge]:
    return _score_row(_WORKER_ENTRIES, index, _WORKER_THRESHOLD)


__all__ = [
    "SimilarityDetector",
    "SimilarityIndex",
    "line_set_similarity",
    "normalized_lines",
    "similarity_kind",
]
