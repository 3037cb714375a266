"""Pipeline orchestration for a single scan run."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .classifier import Classifier
from .config import CruftScanConfig, load_config
from .deadline import Deadline
from .git.status import GitStatusOracle, StatusOracle
from .graph import ReferenceGraph, ReferenceGraphBuilder
from .loader import CorpusLoader
from .logging import get_logger
from .models import Classification, Corpus
from .report import Report, ReportGenerator
from .similarity import SimilarityDetector, SimilarityIndex


@dataclass
class ScanResult:
    """Every artifact produced by one scan, in pipeline order."""

    root: Path
    config: CruftScanConfig
    corpus: Corpus
    graph: ReferenceGraph
    similarity: SimilarityIndex
    classifications: List[Classification]
    report: Report
    report_path: Optional[Path] = None


class Orchestrator:
    """Runs loader -> graph/similarity -> classifier -> report.

    Stage implementations are injectable; anything left as None is built
    from the repository's ``.cruftscan.yml`` at the start of each run.
    """

    def __init__(
        self,
        loader: CorpusLoader | None = None,
        graph_builder: ReferenceGraphBuilder | None = None,
        detector: SimilarityDetector | None = None,
        classifier: Classifier | None = None,
        report_generator: ReportGenerator | None = None,
        oracle_factory: Callable[[Path], StatusOracle] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.loader = loader
        self.graph_builder = graph_builder
        self.detector = detector
        self.classifier = classifier
        self.report_generator = report_generator or ReportGenerator()
        self.oracle_factory = oracle_factory or GitStatusOracle
        self.clock = clock or (lambda: datetime.now(UTC))
        self.logger = get_logger("orchestrator")

    def run_scan(
        self,
        path: str | Path,
        *,
        roots: Sequence[str] | None = None,
        time_budget: float | None = None,
        write_report: bool = True,
        report_path: str | Path | None = None,
    ) -> ScanResult:
        """Scan ``path`` and return all stage outputs.

        Raises FileNotFoundError / NotADirectoryError / PermissionError for
        unusable roots and ConfigError for a malformed ``.cruftscan.yml``;
        nothing is written in those cases.
        """
        repo_path = Path(path).expanduser().resolve()
        if not repo_path.exists():
            raise FileNotFoundError(f"Repository path not found: {repo_path}")
        if not repo_path.is_dir():
            raise NotADirectoryError(f"Repository path is not a directory: {repo_path}")

        config = load_config(repo_path)
        if roots:
            config.scan.roots = list(roots)
        budget = time_budget if time_budget is not None else config.time_budget_seconds
        deadline = Deadline(budget)
        now = self.clock()

        self.logger.info("Scanning %s", repo_path)
        oracle = self.oracle_factory(repo_path)
        corpus = self._loader(config).load(repo_path, oracle=oracle, deadline=deadline)
        self.logger.debug(
            "Loaded %d files (%d failures)", len(corpus.records), len(corpus.failures)
        )
        graph = self._graph_builder(config).build(corpus.records)
        similarity = self._detector(config).detect(corpus.records, deadline=deadline)
        classifications = self._classifier(config).classify(
            corpus, graph, similarity, now=now
        )
        complete = corpus.complete and similarity.complete
        report = self.report_generator.generate(
            classifications,
            similarity,
            root=str(repo_path),
            timestamp=now,
            complete=complete,
            warnings=scan_warnings(corpus, similarity),
        )

        written: Optional[Path] = None
        if write_report:
            target = Path(report_path) if report_path is not None else Path(config.report.path)
            if not target.is_absolute():
                target = repo_path / target
            written = report.save(target)

        self.logger.info(
            "Classified %d files: %s",
            report.summary["totalFiles"],
            ", ".join(f"{count} {name}" for name, count in report.summary["byType"].items() if count),
        )
        return ScanResult(
            root=repo_path,
            config=config,
            corpus=corpus,
            graph=graph,
            similarity=similarity,
            classifications=classifications,
            report=report,
            report_path=written,
        )

    def render_summary(self, result: ScanResult, *, top: int | None = None) -> str:
        limit = result.config.report.top if top is None else top
        return self.report_generator.render_summary(result.report, top=limit)

    # ------------------------------------------------------------------
    # Stage factories

    def _loader(self, config: CruftScanConfig) -> CorpusLoader:
        return self.loader or CorpusLoader(config.scan)

    def _graph_builder(self, config: CruftScanConfig) -> ReferenceGraphBuilder:
        return self.graph_builder or ReferenceGraphBuilder(config.graph)

    def _detector(self, config: CruftScanConfig) -> SimilarityDetector:
        return self.detector or SimilarityDetector(config.similarity)

    def _classifier(self, config: CruftScanConfig) -> Classifier:
        return self.classifier or Classifier(recency=config.recency)


def scan_warnings(corpus: Corpus, similarity: SimilarityIndex) -> List[str]:
    """Report warnings derived from this scan's own stage outputs."""
    warnings = [f"Skipping {failure.path}: {failure.message}" for failure in corpus.failures]
    if not corpus.complete:
        warnings.append("Time budget exhausted while loading; some files were not read")
    if not similarity.complete:
        warnings.append("Time budget exhausted during similarity pass; some pairs were not compared")
    return warnings


__all__ = ["Orchestrator", "ScanResult", "scan_warnings"]
