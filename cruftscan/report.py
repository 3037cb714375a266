"""Structured report and human summary over a classification list."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader

from .logging import get_logger
from .models import Classification, FileType, VcsStatus
from .recommendations import CLEANUP_CONFIDENCE, global_recommendations
from .similarity import SimilarityIndex

logger = get_logger("report")

DUPLICATE_GROUP_SCORE = 0.9
HIGH_CONFIDENCE = 80
MEDIUM_CONFIDENCE = 50
MAX_CLEANUPS = 20


@dataclass
class Report:
    """Read-only aggregation of one scan."""

    timestamp: datetime
    root: str
    summary: Dict[str, Any]
    classifications: List[Classification]
    duplicate_groups: List[List[str]]
    high_confidence_cleanups: List[Classification]
    recommendations: List[str]
    complete: bool = True
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": _iso(self.timestamp),
            "root": self.root,
            "summary": self.summary,
            "classifications": [item.to_dict() for item in self.classifications],
            "duplicateGroups": [{"members": list(group)} for group in self.duplicate_groups],
            "highConfidenceCleanups": [item.to_dict() for item in self.high_confidence_cleanups],
            "recommendations": list(self.recommendations),
            "complete": self.complete,
            "warnings": list(self.warnings),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    def save(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json() + "\n", encoding="utf-8")
        logger.info("Report written to %s", path)
        return path


class ReportGenerator:
    """Builds :class:`Report` objects and renders the console summary."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir or Path(__file__).with_name("templates")
        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def generate(
        self,
        classifications: Sequence[Classification],
        similarity: SimilarityIndex | None = None,
        *,
        root: str = "",
        timestamp: datetime | None = None,
        complete: bool = True,
        warnings: Optional[Sequence[str]] = None,
    ) -> Report:
        items = list(classifications)
        cleanups = [
            item
            for item in items
            if item.file_type in (FileType.BACKUP, FileType.COPY)
            and item.confidence > CLEANUP_CONFIDENCE
        ]
        cleanups.sort(key=lambda item: (-item.confidence, item.path))
        return Report(
            timestamp=timestamp or datetime.now(UTC),
            root=root,
            summary=summarize(items),
            classifications=items,
            duplicate_groups=duplicate_groups(items, similarity),
            high_confidence_cleanups=cleanups[:MAX_CLEANUPS],
            recommendations=global_recommendations(items),
            complete=complete,
            warnings=list(warnings or ()),
        )

    def render_summary(self, report: Report, *, top: int = 10) -> str:
        """Counts per type plus the ``top`` highest-confidence cleanups."""
        template = self._env.get_template("summary.j2")
        return template.render(
            report=report,
            by_type=report.summary["byType"],
            bands=report.summary["byConfidenceBand"],
            top_items=report.high_confidence_cleanups[: max(top, 0)],
        ).rstrip() + "\n"


def summarize(classifications: Sequence[Classification]) -> Dict[str, Any]:
    by_type = {file_type.value: 0 for file_type in FileType}
    by_band = {"high": 0, "medium": 0, "low": 0}
    by_vcs = {status.value: 0 for status in VcsStatus}
    for item in classifications:
        by_type[item.file_type.value] += 1
        by_band[confidence_band(item.confidence)] += 1
        by_vcs[item.vcs_status.value] += 1
    return {
        "totalFiles": len(classifications),
        "byType": by_type,
        "byConfidenceBand": by_band,
        "byVcsStatus": by_vcs,
    }


def confidence_band(confidence: int) -> str:
    if confidence > HIGH_CONFIDENCE:
        return "high"
    if confidence >= MEDIUM_CONFIDENCE:
        return "medium"
    return "low"


def duplicate_groups(
    classifications: Sequence[Classification],
    similarity: SimilarityIndex | None = None,
) -> List[List[str]]:
    """Connected components over related-file links and strong similarity edges."""
    known = {item.path for item in classifications}
    parent: Dict[str, str] = {path: path for path in known}

    def find(path: str) -> str:
        while parent[path] != path:
            parent[path] = parent[parent[path]]
            path = parent[path]
        return path

    def union(left: str, right: str) -> None:
        if left not in parent or right not in parent:
            return
        root_left, root_right = find(left), find(right)
        if root_left != root_right:
            first, second = sorted((root_left, root_right))
            parent[second] = first

    for item in classifications:
        if item.related_file:
            union(item.path, item.related_file)
    if similarity is not None:
        for edge in similarity.edges:
            if edge.score > DUPLICATE_GROUP_SCORE:
                union(edge.file_a, edge.file_b)

    components: Dict[str, List[str]] = {}
    for path in sorted(known):
        components.setdefault(find(path), []).append(path)
    groups = [members for members in components.values() if len(members) > 1]
    groups.sort(key=lambda members: members[0])
    return groups


def _iso(value: datetime) -> str:
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


__all__ = ["Report", "ReportGenerator", "confidence_band", "duplicate_groups", "summarize"]
