"""Tests for cruftscan.report and cruftscan.recommendations."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Optional

from cruftscan.models import Classification, FileType, SimilarityEdge, SimilarityKind, VcsStatus
from cruftscan.recommendations import global_recommendations, recommendations_for
from cruftscan.report import ReportGenerator, confidence_band, duplicate_groups, summarize
from cruftscan.similarity import SimilarityIndex

STAMP = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


def _item(
    path: str,
    file_type: FileType,
    confidence: int,
    *,
    related: Optional[str] = None,
    status: VcsStatus = VcsStatus.TRACKED,
    reasons: Optional[list[str]] = None,
) -> Classification:
    return Classification(
        path=path,
        file_type=file_type,
        confidence=confidence,
        reasons=reasons or [],
        related_file=related,
        vcs_status=status,
        modified_at=STAMP,
    )


def _sample() -> list[Classification]:
    return [
        _item("src/a.backup.ts", FileType.BACKUP, 100, related="src/a.ts", status=VcsStatus.UNTRACKED),
        _item("src/b copy.ts", FileType.COPY, 90, related="src/b.ts", status=VcsStatus.UNTRACKED),
        _item("src/c.ts", FileType.COPY, 70, related="src/d.ts"),
        _item("src/legacy.ts", FileType.ABANDONED, 70),
        _item("example.ts", FileType.TEMPLATE, 60),
        _item("src/a.ts", FileType.ACTIVE, 0),
        _item("src/b.ts", FileType.ACTIVE, 20, status=VcsStatus.UNTRACKED),
        _item("src/d.ts", FileType.ACTIVE, 0),
        _item("src/e.ts", FileType.ACTIVE, 0),
        _item("src/f.ts", FileType.ACTIVE, 0, status=VcsStatus.IGNORED),
        _item("bin.ts", FileType.ERROR, 0, reasons=["Could not read file: Permission denied"]),
    ]


def test_summary_totals_reconcile() -> None:
    summary = summarize(_sample())

    assert summary["totalFiles"] == 11
    assert sum(summary["byType"].values()) == summary["totalFiles"]
    assert summary["byType"] == {
        "backup": 1,
        "copy": 2,
        "abandoned": 1,
        "template": 1,
        "active": 5,
        "error": 1,
    }
    assert summary["byConfidenceBand"] == {"high": 2, "medium": 3, "low": 6}
    assert summary["byVcsStatus"] == {"tracked": 7, "untracked": 3, "ignored": 1}


def test_confidence_band_edges() -> None:
    assert confidence_band(81) == "high"
    assert confidence_band(80) == "medium"
    assert confidence_band(50) == "medium"
    assert confidence_band(49) == "low"


def test_duplicate_groups_follow_links_and_strong_edges() -> None:
    similarity = SimilarityIndex(
        [
            SimilarityEdge("src/d.ts", "src/e.ts", 0.93, SimilarityKind.SIMILAR),
            SimilarityEdge("src/f.ts", "src/legacy.ts", 0.85, SimilarityKind.SIMILAR),
        ]
    )

    groups = duplicate_groups(_sample(), similarity)

    assert groups == [
        ["src/a.backup.ts", "src/a.ts"],
        ["src/b copy.ts", "src/b.ts"],
        ["src/c.ts", "src/d.ts", "src/e.ts"],
    ]


def test_report_contents_and_json(tmp_path: Path) -> None:
    report = ReportGenerator().generate(_sample(), root="/repo", timestamp=STAMP, warnings=["careful"])

    payload = report.to_dict()
    assert payload["timestamp"] == "2026-01-15T12:00:00Z"
    assert payload["summary"]["totalFiles"] == len(payload["classifications"])
    assert [item["path"] for item in payload["highConfidenceCleanups"]] == ["src/a.backup.ts", "src/b copy.ts"]
    assert payload["duplicateGroups"][0] == {"members": ["src/a.backup.ts", "src/a.ts"]}
    assert payload["complete"] is True
    assert payload["warnings"] == ["careful"]
    first = payload["classifications"][0]
    assert first["fileType"] == "backup"
    assert first["relatedFile"] == "src/a.ts"
    assert first["vcsStatus"] == "untracked"
    assert first["modifiedAt"] == "2026-01-15T12:00:00Z"

    written = report.save(tmp_path / "out" / "report.json")
    assert json.loads(written.read_text(encoding="utf-8")) == payload


def test_render_summary_lists_counts_and_top_items() -> None:
    generator = ReportGenerator()
    report = generator.generate(_sample(), root="/repo", timestamp=STAMP, complete=False)

    text = generator.render_summary(report, top=1)

    assert "Scanned 11 files (incomplete: time budget exhausted)" in text
    assert "backup     1" in text
    assert "active     5" in text
    assert "[100] backup src/a.backup.ts -> src/a.ts" in text
    assert "src/b copy.ts" not in text
    assert "Review and clean up 1 backup files" in text


def test_per_file_recommendations() -> None:
    backup_without_original = _item("x.bak.ts", FileType.BACKUP, 80, status=VcsStatus.UNTRACKED)
    assert recommendations_for(backup_without_original) == [
        "Review and delete if no longer needed",
        "Archive to backup directory if historically important",
        "Safe to delete (not tracked in git)",
    ]

    abandoned = _item("old.ts", FileType.ABANDONED, 70)
    assert recommendations_for(abandoned) == [
        "Review for useful code before deletion",
        "Archive or move to deprecated folder",
        "Remove from active codebase",
    ]

    active = _item("x.ts", FileType.ACTIVE, 20, status=VcsStatus.UNTRACKED, reasons=["91% similar to y.ts"])
    assert recommendations_for(active) == [
        "Add to git if this is an active file",
        "Review for potential consolidation with similar files",
    ]

    assert recommendations_for(_item("ok.ts", FileType.ACTIVE, 0)) == []


def test_global_recommendations() -> None:
    assert global_recommendations(_sample()) == [
        "Review and clean up 1 backup files",
        "Merge or delete 1 duplicate copies",
        "Archive or remove 1 abandoned files",
        "Add 1 untracked active files to git",
        "Investigate 1 files that could not be analyzed",
    ]
