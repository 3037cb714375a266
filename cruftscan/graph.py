"""Cross-file reference graph built from statically declared imports.

Import extraction is pattern based (regular expressions over the file text),
not a parser. Specifiers are normalised into repo-relative identifiers:

* root-aliased prefixes (``@/components/Button``) map under the source dir,
* relative specifiers (``./util``, ``../lib/api``, ``from .models import``)
  resolve against the importing file's directory,
* bare specifiers (``react``, ``lodash/merge``) are recorded as external and
  never resolve, except Python dotted modules that name a file in the corpus.

``is_referenced_anywhere`` also accepts a match on base name alone. That is a
known approximation: it tolerates alias rewriting that the resolver does not
model, trading some missed "unused file" findings for fewer false alarms.
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass
from fnmatch import fnmatchcase
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Set

from .config import GraphConfig
from .logging import get_logger
from .models import FileRecord

logger = get_logger("graph")

_SCRIPT_SUFFIXES = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs")
_STYLE_SUFFIXES = (".css", ".scss", ".sass", ".less")
_PYTHON_SUFFIXES = (".py", ".pyi")

# Candidate suffixes tried, in order, when a specifier omits its extension.
_RESOLUTION_SUFFIXES = _SCRIPT_SUFFIXES + (".json",) + _STYLE_SUFFIXES

_ES_FROM = re.compile(
    r"""(?:^|[\s;])(?:import|export)\s+(?:type\s+)?[^'"`;]*?\bfrom\s*['"`]([^'"`\n]+)['"`]""",
    re.MULTILINE,
)
_ES_SIDE_EFFECT = re.compile(r"""(?:^|[\s;])import\s*['"`]([^'"`\n]+)['"`]""", re.MULTILINE)
_ES_CALL = re.compile(r"""\b(?:require|import)\s*\(\s*['"`]([^'"`\n]+)['"`]\s*\)""")
_CSS_IMPORT = re.compile(r"""@(?:import|use|forward)\s+(?:url\(\s*)?['"]([^'"\n]+)['"]""")
_PY_FROM = re.compile(r"^[ \t]*from[ \t]+(\.+[\w.]*|[A-Za-z_][\w.]*)[ \t]+import[ \t]+(\([^)]*\)|[^\n#]+)", re.MULTILINE)
_PY_IMPORT = re.compile(r"^[ \t]*import[ \t]+([A-Za-z_][\w.]*(?:[ \t]+as[ \t]+\w+)?(?:[ \t]*,[ \t]*[A-Za-z_][\w.]*(?:[ \t]+as[ \t]+\w+)?)*)", re.MULTILINE)

_ES_EXPORT = re.compile(
    r"\bexport\s+(?:default\s+)?(?:declare\s+)?(?:abstract\s+)?(?:async\s+)?"
    r"(?:const|let|var|function\*?|class|interface|type|enum)\s+([A-Za-z_$][\w$]*)"
)
_ES_EXPORT_LIST = re.compile(r"\bexport\s*\{([^}]*)\}")
_PY_EXPORT = re.compile(r"^(?:async[ \t]+)?(?:def|class)[ \t]+([A-Za-z_]\w*)", re.MULTILINE)

DEFAULT_ENTRY_POINTS: tuple[str, ...] = (
    "page.*",
    "layout.*",
    "loading.*",
    "error.*",
    "not-found.*",
    "global-error.*",
    "route.ts",
    "route.js",
    "middleware.ts",
    "middleware.js",
    "app.tsx",
    "app.jsx",
    "index.*",
    "main.*",
    "_app.*",
    "_document.*",
    "*.config.*",
    "*.test.*",
    "*.spec.*",
    "*.stories.*",
    "__main__.py",
    "__init__.py",
    "manage.py",
    "setup.py",
    "conftest.py",
    "test_*.py",
    "*_test.py",
    "wsgi.py",
    "asgi.py",
    "package.json",
    "tsconfig.json",
    "README.md",
)


@dataclass(frozen=True)
class ImportSpec:
    """A single import statement after normalisation."""

    raw: str
    kind: str  # "alias" | "relative" | "module" | "bare"
    target: str
    python: bool = False


class ReferenceGraph:
    """Read-only file -> referenced files graph plus its transpose."""

    def __init__(
        self,
        nodes: Iterable[str],
        imports: Mapping[str, FrozenSet[str]],
        targets: Mapping[str, FrozenSet[str]],
        external: Mapping[str, FrozenSet[str]],
        exports: Mapping[str, FrozenSet[str]],
        entry_points: FrozenSet[str],
    ) -> None:
        self._nodes = frozenset(nodes)
        self._imports = MappingProxyType(dict(imports))
        self._external = MappingProxyType(dict(external))
        self._exports = MappingProxyType(dict(exports))
        self._entry_points = entry_points

        importers: Dict[str, Set[str]] = {}
        for source, resolved in imports.items():
            for target in resolved:
                importers.setdefault(target, set()).add(source)
        self._importers = MappingProxyType(
            {target: frozenset(sources) for target, sources in importers.items()}
        )

        by_basename: Dict[str, Set[str]] = {}
        for source, normalised in targets.items():
            for target in normalised:
                by_basename.setdefault(_base_name(target), set()).add(source)
        self._importers_by_basename = MappingProxyType(
            {name: frozenset(sources) for name, sources in by_basename.items()}
        )

    @property
    def nodes(self) -> FrozenSet[str]:
        return self._nodes

    def imports_of(self, path: str) -> FrozenSet[str]:
        """Repo files that ``path`` statically imports."""
        return self._imports.get(path, frozenset())

    def importers_of(self, path: str) -> FrozenSet[str]:
        """Repo files whose resolved imports include ``path``."""
        return self._importers.get(path, frozenset())

    def external_imports_of(self, path: str) -> FrozenSet[str]:
        return self._external.get(path, frozenset())

    def exports_of(self, path: str) -> FrozenSet[str]:
        return self._exports.get(path, frozenset())

    def is_entry_point(self, path: str) -> bool:
        return path in self._entry_points

    def is_referenced_anywhere(self, path: str) -> bool:
        if path in self._entry_points:
            return True
        if self.importers_of(path) - {path}:
            return True
        loose = self._importers_by_basename.get(_base_name(path), frozenset())
        return bool(loose - {path})

    def edge_count(self) -> int:
        return sum(len(targets) for targets in self._imports.values())


class ReferenceGraphBuilder:
    """Extracts imports/exports from file records and builds a ReferenceGraph."""

    def __init__(self, config: GraphConfig | None = None) -> None:
        self.config = config or GraphConfig()
        # Longest alias first so "@/lib/" wins over "@/".
        self._aliases = sorted(self.config.aliases.items(), key=lambda item: -len(item[0]))
        self._entry_patterns = DEFAULT_ENTRY_POINTS + tuple(self.config.entry_points)
        self._entry_dirs = (f"{self.config.source_dir}/app/",) if self.config.source_dir else ("app/",)

    def build(self, records: Sequence[FileRecord]) -> ReferenceGraph:
        files = {record.path for record in records}
        imports: Dict[str, FrozenSet[str]] = {}
        targets: Dict[str, FrozenSet[str]] = {}
        external: Dict[str, FrozenSet[str]] = {}
        exports: Dict[str, FrozenSet[str]] = {}

        for record in records:
            specs = self.extract_imports(record, files)
            resolved: Set[str] = set()
            internal: Set[str] = set()
            outside: Set[str] = set()
            for spec in specs:
                if spec.kind == "bare":
                    outside.add(spec.target)
                    continue
                internal.add(spec.target)
                match = self._resolve(spec.target, files, python=spec.python)
                if match is not None:
                    resolved.add(match)
                else:
                    logger.debug("Unresolved import %r in %s", spec.raw, record.path)
            imports[record.path] = frozenset(resolved - {record.path})
            targets[record.path] = frozenset(internal)
            external[record.path] = frozenset(outside)
            exports[record.path] = frozenset(self.extract_exports(record))

        entry_points = frozenset(path for path in files if self._is_entry_point(path))
        graph = ReferenceGraph(files, imports, targets, external, exports, entry_points)
        logger.debug(
            "Reference graph: %d nodes, %d edges, %d entry points",
            len(files),
            graph.edge_count(),
            len(entry_points),
        )
        return graph

    # ------------------------------------------------------------------
    # Extraction

    def extract_imports(
        self, record: FileRecord, files: Set[str] | None = None
    ) -> List[ImportSpec]:
        suffix = _suffix(record.path)
        specs: List[ImportSpec] = []
        if suffix in _SCRIPT_SUFFIXES:
            raws: List[str] = []
            for pattern in (_ES_FROM, _ES_SIDE_EFFECT, _ES_CALL):
                raws.extend(match.group(1).strip() for match in pattern.finditer(record.content))
            for raw in _unique(raws):
                specs.append(self.normalize(raw, record.path))
        elif suffix in _STYLE_SUFFIXES:
            for raw in _unique(m.group(1).strip() for m in _CSS_IMPORT.finditer(record.content)):
                if raw.startswith(("http://", "https://", "//")):
                    continue
                # Style imports without a leading dot are still file relative.
                if not raw.startswith((".", "/")) and not self._alias_for(raw):
                    raw = f"./{raw}"
                specs.append(self.normalize(raw, record.path))
        elif suffix in _PYTHON_SUFFIXES:
            specs.extend(self._python_imports(record, files or set()))
        return specs

    def extract_exports(self, record: FileRecord) -> Set[str]:
        suffix = _suffix(record.path)
        names: Set[str] = set()
        if suffix in _SCRIPT_SUFFIXES:
            names.update(match.group(1) for match in _ES_EXPORT.finditer(record.content))
            for match in _ES_EXPORT_LIST.finditer(record.content):
                for item in match.group(1).split(","):
                    parts = item.strip().split()
                    if parts:
                        names.add(parts[-1])
            if "export default" in record.content:
                names.add(_stem(record.name))
        elif suffix in _PYTHON_SUFFIXES:
            names.update(
                name
                for name in (match.group(1) for match in _PY_EXPORT.finditer(record.content))
                if not name.startswith("_")
            )
        return names

    def normalize(self, raw: str, importer: str) -> ImportSpec:
        """Normalise a script/style specifier relative to ``importer``."""
        alias = self._alias_for(raw)
        if alias is not None:
            prefix, target = alias
            joined = posixpath.normpath(posixpath.join(target, raw[len(prefix):]))
            return ImportSpec(raw=raw, kind="alias", target=joined)
        if raw in {".", ".."} or raw.startswith(("./", "../")):
            base = posixpath.dirname(importer)
            joined = posixpath.normpath(posixpath.join(base, raw))
            return ImportSpec(raw=raw, kind="relative", target=joined)
        return ImportSpec(raw=raw, kind="bare", target=raw)

    def _alias_for(self, raw: str) -> Optional[tuple[str, str]]:
        for prefix, target in self._aliases:
            if raw.startswith(prefix):
                return prefix, target
        return None

    def _python_imports(self, record: FileRecord, files: Set[str]) -> List[ImportSpec]:
        specs: List[ImportSpec] = []
        base = posixpath.dirname(record.path)
        for match in _PY_FROM.finditer(record.content):
            module = match.group(1)
            names = _python_names(match.group(2))
            if not module.startswith("."):
                specs.append(self._python_absolute(module, files))
                for name in names:
                    # "from pkg import sub" names a module only when one exists.
                    spec = self._python_absolute(f"{module}.{name}", files)
                    if spec.kind == "module":
                        specs.append(spec)
                continue

            dots = len(module) - len(module.lstrip("."))
            package = base
            for _ in range(dots - 1):
                package = posixpath.dirname(package)
            remainder = module[dots:].replace(".", "/")
            anchor = posixpath.join(package, remainder) if remainder else package
            if anchor:
                specs.append(ImportSpec(raw=module, kind="relative", target=anchor, python=True))
            for name in names:
                target = posixpath.join(anchor, name) if anchor else name
                if remainder and self._resolve(target, files, python=True) is None:
                    continue
                raw = f"{module}.{name}" if remainder else f"{module}{name}"
                specs.append(ImportSpec(raw=raw, kind="relative", target=target, python=True))
        for match in _PY_IMPORT.finditer(record.content):
            for part in match.group(1).split(","):
                specs.append(self._python_absolute(part.strip().split()[0], files))
        return specs

    def _python_absolute(self, module: str, files: Set[str]) -> ImportSpec:
        target = module.replace(".", "/")
        candidates = [target]
        if self.config.source_dir:
            candidates.append(f"{self.config.source_dir}/{target}")
        for candidate in candidates:
            if self._resolve(candidate, files, python=True) is not None:
                return ImportSpec(raw=module, kind="module", target=candidate, python=True)
        return ImportSpec(raw=module, kind="bare", target=module)

    # ------------------------------------------------------------------
    # Resolution

    def _resolve(self, target: str, files: Set[str], *, python: bool = False) -> Optional[str]:
        if target.startswith("../") or target == "..":
            return None
        if python:
            for candidate in (f"{target}.py", f"{target}/__init__.py", f"{target}.pyi"):
                if candidate in files:
                    return candidate
            return None
        if target in files:
            return target
        for ext in _RESOLUTION_SUFFIXES + _PYTHON_SUFFIXES:
            candidate = f"{target}{ext}"
            if candidate in files:
                return candidate
        for ext in _RESOLUTION_SUFFIXES:
            candidate = f"{target}/index{ext}"
            if candidate in files:
                return candidate
        for candidate in (f"{target}/__init__.py",):
            if candidate in files:
                return candidate
        # SCSS partials: "./mixins" may live in "_mixins.scss".
        head, tail = posixpath.split(target)
        partial = posixpath.join(head, f"_{tail}") if head else f"_{tail}"
        for ext in (".scss", ".sass"):
            if f"{partial}{ext}" in files:
                return f"{partial}{ext}"
        return None

    def _is_entry_point(self, path: str) -> bool:
        name = path.rsplit("/", 1)[-1]
        if any(path.startswith(prefix) for prefix in self._entry_dirs):
            return True
        for pattern in self._entry_patterns:
            if fnmatchcase(name, pattern) or fnmatchcase(path, pattern):
                return True
        return False


_STRIPPABLE_SUFFIXES = frozenset(
    _SCRIPT_SUFFIXES + _STYLE_SUFFIXES + _PYTHON_SUFFIXES + (".json", ".md")
)


def _suffix(path: str) -> str:
    return posixpath.splitext(path)[1].lower()


def _stem(name: str) -> str:
    return posixpath.splitext(name)[0]


def _base_name(path: str) -> str:
    name = posixpath.basename(path.rstrip("/"))
    root, ext = posixpath.splitext(name)
    return root if ext.lower() in _STRIPPABLE_SUFFIXES else name


def _python_names(clause: str) -> List[str]:
    names: List[str] = []
    for part in clause.strip().strip("()").replace("\n", " ").split(","):
        tokens = part.split()
        if tokens and tokens[0] != "*" and tokens[0].isidentifier():
            names.append(tokens[0])
    return names


def _unique(values: Iterable[str]) -> List[str]:
    seen: Set[str] = set()
    ordered: List[str] = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


__all__ = ["DEFAULT_ENTRY_POINTS", "ImportSpec", "ReferenceGraph", "ReferenceGraphBuilder"]
