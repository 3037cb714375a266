"""Configuration loading for cruftscan (.cruftscan.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".cruftscan.yml"

DEFAULT_EXTENSIONS: tuple[str, ...] = (
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    ".mjs",
    ".cjs",
    ".css",
    ".scss",
    ".json",
    ".md",
    ".py",
)

DEFAULT_EXCLUDED_DIRS: tuple[str, ...] = (
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "venv",
    "node_modules",
    "bower_components",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".idea",
    ".next",
    ".turbo",
    ".cache",
    "build",
    "dist",
    "out",
    "coverage",
    "target",
    ".cruftscan",
)

DEFAULT_ALIASES: Dict[str, str] = {"@/": "src/", "~/": "src/"}


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ScanConfig:
    """Which files the corpus loader picks up."""

    roots: List[str] = field(default_factory=lambda: ["."])
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    exclude_dirs: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDED_DIRS))
    exclude_paths: List[str] = field(default_factory=list)
    respect_gitignore: bool = False
    workers: int = 4


@dataclass
class GraphConfig:
    """Import resolution settings for the reference graph."""

    source_dir: str = "src"
    aliases: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ALIASES))
    entry_points: List[str] = field(default_factory=list)


@dataclass
class SimilarityConfig:
    threshold: float = 0.7
    workers: int = 1


@dataclass
class RecencyConfig:
    stale_days: int = 90
    abandoned_days: int = 365


@dataclass
class ReportConfig:
    path: str = ".cruftscan/report.json"
    top: int = 10


@dataclass
class CruftScanConfig:
    """Represents the settings defined in .cruftscan.yml."""

    root: Path
    scan: ScanConfig = field(default_factory=ScanConfig)
    graph: GraphConfig = field(default_factory=GraphConfig)
    similarity: SimilarityConfig = field(default_factory=SimilarityConfig)
    recency: RecencyConfig = field(default_factory=RecencyConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    time_budget_seconds: Optional[float] = None


def load_config(config_path: Path) -> CruftScanConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return CruftScanConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    scan = ScanConfig()
    scan_data = _as_dict(data.get("scan"))
    if scan_data:
        scan.roots = _as_str_list(scan_data.get("roots")) or scan.roots
        extensions = _as_str_list(scan_data.get("extensions"))
        if extensions:
            scan.extensions = [_normalise_extension(ext) for ext in extensions]
        extra_dirs = _as_str_list(scan_data.get("exclude_dirs"))
        scan.exclude_dirs = sorted(set(scan.exclude_dirs).union(extra_dirs))
        scan.exclude_paths = _as_str_list(scan_data.get("exclude_paths"))
        respect = _as_bool(scan_data.get("respect_gitignore"))
        if respect is not None:
            scan.respect_gitignore = respect
        workers = _as_int(scan_data.get("workers"))
        if workers is not None:
            scan.workers = max(workers, 1)

    graph = GraphConfig()
    graph_data = _as_dict(data.get("graph"))
    if graph_data:
        source_dir = _as_str(graph_data.get("source_dir"))
        if source_dir:
            graph.source_dir = source_dir.strip("/")
        aliases = _as_dict(graph_data.get("aliases"))
        if aliases:
            graph.aliases = {
                str(prefix): str(target)
                for prefix, target in aliases.items()
                if isinstance(target, str)
            }
        graph.entry_points = _as_str_list(graph_data.get("entry_points"))

    similarity = SimilarityConfig()
    similarity_data = _as_dict(data.get("similarity"))
    if similarity_data:
        threshold = _as_float(similarity_data.get("threshold"))
        if threshold is not None:
            if not 0.0 <= threshold < 1.0:
                raise ConfigError("similarity.threshold must be within [0, 1)")
            similarity.threshold = threshold
        workers = _as_int(similarity_data.get("workers"))
        if workers is not None:
            similarity.workers = max(workers, 1)

    recency = RecencyConfig()
    recency_data = _as_dict(data.get("recency"))
    if recency_data:
        stale = _as_int(recency_data.get("stale_days"))
        abandoned = _as_int(recency_data.get("abandoned_days"))
        if stale is not None:
            recency.stale_days = stale
        if abandoned is not None:
            recency.abandoned_days = abandoned
        if recency.abandoned_days < recency.stale_days:
            raise ConfigError("recency.abandoned_days must not be lower than recency.stale_days")

    report = ReportConfig()
    report_data = _as_dict(data.get("report"))
    if report_data:
        report.path = _as_str(report_data.get("path")) or report.path
        top = _as_int(report_data.get("top"))
        if top is not None:
            report.top = max(top, 0)

    return CruftScanConfig(
        root=root,
        scan=scan,
        graph=graph,
        similarity=similarity,
        recency=recency,
        report=report,
        time_budget_seconds=_as_float(data.get("time_budget_seconds")),
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _normalise_extension(value: str) -> str:
    value = value.strip().lower()
    return value if value.startswith(".") else f".{value}"


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []
