"""Per-signal tests for cruftscan.signals."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Dict, List, Optional

from cruftscan.config import RecencyConfig
from cruftscan.graph import ReferenceGraphBuilder
from cruftscan.models import FileRecord, FileType, SignalOutcome, VcsStatus
from cruftscan.naming import BackupNameMatcher
from cruftscan.signals import (
    BackupNameSignal,
    ClassificationContext,
    ContentMarkerSignal,
    RecencySignal,
    ReferenceSignal,
    SignalEvaluator,
    SimilaritySignal,
    TemplateNameSignal,
    VcsStatusSignal,
    default_evaluators,
)
from cruftscan.similarity import SimilarityDetector

NOW = datetime(2026, 1, 15, tzinfo=UTC)


def _record(
    path: str,
    content: str = "export const value = 1;\n",
    *,
    age_days: float = 1,
    status: VcsStatus = VcsStatus.TRACKED,
) -> FileRecord:
    return FileRecord(
        path=path,
        content=content,
        digest=f"{path}:{content}",
        modified_at=NOW - timedelta(days=age_days),
        vcs_status=status,
    )


def _context(
    target: str,
    records: List[FileRecord],
    *,
    current_type: FileType = FileType.ACTIVE,
) -> ClassificationContext:
    by_path: Dict[str, FileRecord] = {record.path: record for record in records}
    return ClassificationContext(
        record=by_path[target],
        records=by_path,
        graph=ReferenceGraphBuilder().build(records),
        similarity=SimilarityDetector().detect(records),
        names=BackupNameMatcher(),
        recency=RecencyConfig(),
        now=NOW,
        current_type=current_type,
    )


def _evaluate(signal: SignalEvaluator, context: ClassificationContext) -> List[SignalOutcome]:
    return list(signal.evaluate(context))


def _reasons(outcomes: List[SignalOutcome]) -> List[Optional[str]]:
    return [outcome.reason for outcome in outcomes]


def test_default_evaluator_order() -> None:
    names = [evaluator.name for evaluator in default_evaluators()]
    assert names == [
        "backup-name",
        "similarity",
        "vcs-status",
        "reference",
        "recency",
        "template-name",
        "content-markers",
    ]


def test_backup_name_signal_finds_sibling_original() -> None:
    records = [_record("src/a.ts"), _record("src/a.backup.ts")]

    outcomes = _evaluate(BackupNameSignal(), _context("src/a.backup.ts", records))

    assert outcomes[0].type_override is FileType.BACKUP
    assert outcomes[0].confidence_delta == 80
    assert outcomes[0].reason == "File name matches backup pattern"
    assert outcomes[1].related_file == "src/a.ts"
    assert outcomes[1].confidence_delta == 0


def test_backup_name_signal_reports_missing_original() -> None:
    records = [_record("lib/api_old.ts")]

    outcomes = _evaluate(BackupNameSignal(), _context("lib/api_old.ts", records))

    assert _reasons(outcomes) == [
        "File name matches backup pattern",
        "Probable original api.ts not found",
    ]
    assert all(outcome.related_file is None for outcome in outcomes)


def test_backup_name_signal_ignores_regular_names() -> None:
    records = [_record("src/a.ts")]
    assert _evaluate(BackupNameSignal(), _context("src/a.ts", records)) == []


def test_similarity_signal_backup_named_side_is_copy() -> None:
    shared = "".join(f"line {index}\n" for index in range(100))
    records = [
        _record("Widget.tsx", shared),
        _record("Widget (1).tsx", shared.replace("line 5\n", "line five\n")),
    ]

    [outcome] = _evaluate(SimilaritySignal(), _context("Widget (1).tsx", records))

    assert outcome.type_override is FileType.COPY
    assert outcome.confidence_delta == 90
    assert outcome.related_file == "Widget.tsx"
    assert outcome.reason == "98% similar to active file Widget.tsx"


def test_similarity_signal_exact_backup_stays_backup() -> None:
    records = [_record("a.ts", "same\ncontent\n"), _record("a.backup.ts", "same\ncontent\n")]

    [outcome] = _evaluate(SimilaritySignal(), _context("a.backup.ts", records))

    assert outcome.type_override is FileType.BACKUP
    assert outcome.confidence_delta == 90


def test_similarity_signal_original_side_gets_note_only() -> None:
    records = [_record("a.ts", "same\ncontent\n"), _record("a.backup.ts", "same\ncontent\n")]

    [outcome] = _evaluate(SimilaritySignal(), _context("a.ts", records))

    assert outcome.type_override is None
    assert outcome.confidence_delta == 0
    assert outcome.reason == "Original file (backup found: a.backup.ts)"
    assert outcome.related_file == "a.backup.ts"


def test_similarity_signal_older_duplicate_is_copy() -> None:
    content = "alpha\nbeta\ngamma\n"
    records = [_record("old/util.ts", content, age_days=30), _record("new/util.ts", content, age_days=2)]

    [older] = _evaluate(SimilaritySignal(), _context("old/util.ts", records))
    [newer] = _evaluate(SimilaritySignal(), _context("new/util.ts", records))

    assert older.type_override is FileType.COPY
    assert older.confidence_delta == 70
    assert older.related_file == "new/util.ts"
    assert older.reason == "Older duplicate of util.ts"
    assert newer.type_override is None
    assert newer.confidence_delta == 0


def test_similarity_signal_moderate_match_is_informational() -> None:
    base = "".join(f"line {index}\n" for index in range(10))
    records = [_record("a.ts", base), _record("b.ts", base + "extra\n")]

    [outcome] = _evaluate(SimilaritySignal(), _context("a.ts", records))

    assert outcome.reason == "91% similar to b.ts"
    assert outcome.type_override is None
    assert outcome.confidence_delta == 0


def test_vcs_signal_weights() -> None:
    records = [
        _record("a.ts", status=VcsStatus.UNTRACKED),
        _record("b.ts", status=VcsStatus.TRACKED),
        _record("c.ts", status=VcsStatus.IGNORED),
    ]

    [untracked] = _evaluate(VcsStatusSignal(), _context("a.ts", records))
    assert untracked.confidence_delta == 20
    assert _evaluate(VcsStatusSignal(), _context("b.ts", records)) == []
    [ignored] = _evaluate(VcsStatusSignal(), _context("c.ts", records))
    assert ignored.confidence_delta == 0


def test_reference_signal_only_for_unreferenced_sources() -> None:
    records = [
        _record("src/used.ts"),
        _record("src/main.ts", "import { value } from './used';\n"),
        _record("src/orphan.ts"),
        _record("docs/guide.md", "# Guide\n"),
    ]

    assert _evaluate(ReferenceSignal(), _context("src/used.ts", records)) == []
    assert _evaluate(ReferenceSignal(), _context("docs/guide.md", records)) == []
    assert _reasons(_evaluate(ReferenceSignal(), _context("src/orphan.ts", records))) == [
        "Not referenced by any other file",
        "Exports unused elsewhere: value",
    ]


def test_recency_signal_bands() -> None:
    records = [
        _record("fresh.ts", age_days=10),
        _record("stale.ts", "stale\n", age_days=120),
        _record("ancient.ts", "ancient\n", age_days=400),
    ]

    assert _evaluate(RecencySignal(), _context("fresh.ts", records)) == []

    [stale] = _evaluate(RecencySignal(), _context("stale.ts", records))
    assert stale.confidence_delta == 30
    assert stale.reason == "Not modified for 120 days"

    outcomes = _evaluate(RecencySignal(), _context("ancient.ts", records))
    assert [outcome.confidence_delta for outcome in outcomes] == [30, 40]
    assert outcomes[1].type_override is FileType.ABANDONED


def test_recency_signal_keeps_referenced_and_non_active_types() -> None:
    records = [
        _record("src/lib.ts", age_days=400),
        _record("src/main.ts", "import { value } from './lib';\n"),
        _record("src/old.backup.ts", "other\n", age_days=400),
    ]

    referenced = _evaluate(RecencySignal(), _context("src/lib.ts", records))
    assert [outcome.type_override for outcome in referenced] == [None, None]
    assert sum(outcome.confidence_delta for outcome in referenced) == 70

    backup = _evaluate(
        RecencySignal(), _context("src/old.backup.ts", records, current_type=FileType.BACKUP)
    )
    assert [outcome.type_override for outcome in backup] == [None, None]


def test_template_signal() -> None:
    records = [_record("example-usage.ts")]

    [outcome] = _evaluate(TemplateNameSignal(), _context("example-usage.ts", records))

    assert outcome.type_override is FileType.TEMPLATE
    assert outcome.confidence_delta == 60


def test_content_marker_signal() -> None:
    records = [
        _record("a.ts", "// BACKUP of the old header\nexport {}\n"),
        _record("b.py", "# TODO: finish\n\"\"\"DEPRECATED: use c instead.\"\"\"\n"),
        _record("c.ts", "const BACKUPS = 1;\n"),
    ]

    [backup] = _evaluate(ContentMarkerSignal(), _context("a.ts", records))
    assert backup.type_override is FileType.BACKUP
    assert backup.confidence_delta == 70

    todo, deprecated = _evaluate(ContentMarkerSignal(), _context("b.py", records))
    assert todo.confidence_delta == 0
    assert todo.reason == "Contains TODO/FIXME comments - may be incomplete"
    assert deprecated.type_override is FileType.ABANDONED
    assert deprecated.confidence_delta == 80

    assert _evaluate(ContentMarkerSignal(), _context("c.ts", records)) == []
