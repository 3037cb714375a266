"""Tests for cruftscan.orchestrator."""

from __future__ import annotations

import json
import threading
from pathlib import Path

import pytest

from cruftscan.config import ConfigError
from cruftscan.git.status import StaticStatusOracle
from cruftscan.models import FileType, VcsStatus
from cruftscan.orchestrator import Orchestrator
from tests._fixtures.repo_builder import NOW, RepoBuilder


def _orchestrator(repo_builder: RepoBuilder) -> Orchestrator:
    return Orchestrator(
        oracle_factory=lambda _root: repo_builder.oracle(),
        clock=lambda: NOW,
    )


def _populate(repo_builder: RepoBuilder) -> None:
    content = "export function add(a: number, b: number) {\n  return a + b;\n}\n"
    repo_builder.write({"src/a.ts": content}, age_days=1, status=VcsStatus.TRACKED)
    repo_builder.write({"src/a.backup.ts": content}, age_days=400)
    repo_builder.write(
        {"src/app/page.tsx": "import { add } from '@/a';\nexport default function Page() {}\n"},
        age_days=1,
        status=VcsStatus.TRACKED,
    )


def test_run_scan_writes_report(repo_builder: RepoBuilder) -> None:
    _populate(repo_builder)

    result = _orchestrator(repo_builder).run_scan(repo_builder.root)

    assert result.report_path == repo_builder.root / ".cruftscan" / "report.json"
    payload = json.loads(result.report_path.read_text(encoding="utf-8"))
    assert payload["timestamp"] == "2026-01-15T12:00:00Z"
    assert payload["summary"]["totalFiles"] == 3
    assert payload["summary"]["byType"]["backup"] == 1
    assert payload["complete"] is True
    assert payload["classifications"][0]["path"] == "src/a.backup.ts"
    assert payload["duplicateGroups"] == [{"members": ["src/a.backup.ts", "src/a.ts"]}]
    assert result.graph.importers_of("src/a.ts") == {"src/app/page.tsx"}


def test_rescanning_ignores_previous_report(repo_builder: RepoBuilder) -> None:
    _populate(repo_builder)
    orchestrator = _orchestrator(repo_builder)

    first = orchestrator.run_scan(repo_builder.root)
    second = orchestrator.run_scan(repo_builder.root)

    assert first.report.to_dict() == second.report.to_dict()


def test_run_scan_honours_config_and_overrides(repo_builder: RepoBuilder) -> None:
    _populate(repo_builder)
    repo_builder.write({"lib/helper_old.ts": "export const h = 1;\n"})
    (repo_builder.root / ".cruftscan.yml").write_text(
        "report:\n  path: reports/cruft.json\n  top: 1\nscan:\n  roots: [lib]\n",
        encoding="utf-8",
    )
    orchestrator = _orchestrator(repo_builder)

    configured = orchestrator.run_scan(repo_builder.root)
    assert configured.report_path == repo_builder.root / "reports" / "cruft.json"
    assert [item.path for item in configured.classifications] == ["lib/helper_old.ts"]

    overridden = orchestrator.run_scan(repo_builder.root, roots=["src"], write_report=False)
    assert overridden.report_path is None
    assert {item.path for item in overridden.classifications} == {
        "src/a.ts",
        "src/a.backup.ts",
        "src/app/page.tsx",
    }


def test_run_scan_collects_warnings(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"src/ok.ts": "export const ok = 1;\n"})
    (repo_builder.root / "src" / "bad.ts").write_bytes(b"\xff\xfe")

    result = _orchestrator(repo_builder).run_scan(repo_builder.root, write_report=False)

    errors = [item for item in result.classifications if item.file_type is FileType.ERROR]
    assert [item.path for item in errors] == ["src/bad.ts"]
    assert any("src/bad.ts" in message for message in result.report.warnings)


def test_concurrent_scans_keep_warnings_separate(tmp_path: Path) -> None:
    (tmp_path / "clean").mkdir()
    (tmp_path / "broken").mkdir()
    clean = RepoBuilder(tmp_path / "clean")
    clean.write({"src/ok.ts": "export const ok = 1;\n"})
    broken = RepoBuilder(tmp_path / "broken")
    broken.write({"src/ok.ts": "export const ok = 1;\n"})
    (broken.root / "src" / "bad.ts").write_bytes(b"\xff\xfe")

    started = threading.Event()
    release = threading.Event()

    def _blocking_oracle(_root: Path) -> StaticStatusOracle:
        started.set()
        assert release.wait(timeout=10)
        return clean.oracle()

    results = {}

    def _scan_clean() -> None:
        orchestrator = Orchestrator(oracle_factory=_blocking_oracle, clock=lambda: NOW)
        results["clean"] = orchestrator.run_scan(clean.root, write_report=False)

    worker = threading.Thread(target=_scan_clean)
    worker.start()
    assert started.wait(timeout=10)
    try:
        results["broken"] = _orchestrator(broken).run_scan(broken.root, write_report=False)
    finally:
        release.set()
        worker.join(timeout=10)

    assert results["clean"].report.warnings == []
    assert results["broken"].report.warnings == [
        "Skipping src/bad.ts: Could not decode file as UTF-8: invalid start byte"
    ]


def test_run_scan_reports_time_budget(repo_builder: RepoBuilder) -> None:
    _populate(repo_builder)

    result = _orchestrator(repo_builder).run_scan(repo_builder.root, time_budget=0, write_report=False)

    assert result.report.complete is False
    assert result.corpus.complete is False
    assert "Time budget exhausted while loading; some files were not read" in result.report.warnings


def test_run_scan_rejects_missing_root(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        Orchestrator(oracle_factory=lambda _root: StaticStatusOracle()).run_scan(tmp_path / "nope")


def test_run_scan_rejects_bad_config(repo_builder: RepoBuilder) -> None:
    (repo_builder.root / ".cruftscan.yml").write_text("similarity:\n  threshold: 2\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        _orchestrator(repo_builder).run_scan(repo_builder.root)
    assert not (repo_builder.root / ".cruftscan").exists()


def test_render_summary_uses_configured_top(repo_builder: RepoBuilder) -> None:
    _populate(repo_builder)
    orchestrator = _orchestrator(repo_builder)
    result = orchestrator.run_scan(repo_builder.root, write_report=False)

    text = orchestrator.render_summary(result)

    assert "Scanned 3 files" in text
    assert "src/a.backup.ts -> src/a.ts" in text
