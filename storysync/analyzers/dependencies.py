"""Import classification, dependency graphs and cycle detection."""

from __future__ import annotations

import json
from collections import deque
from pathlib import Path
from typing import Deque, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from ..errors import DependencyAnalysisError
from ..frameworks import is_framework_specifier
from ..logging import get_logger
from ..models import DependencyKind, DependencyRecord, ItemFailure
from ..parser import StoryParser
from ..probe import FileProbe
from ..utils import normalize_path

RESOLVE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".json")
_SOURCE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs")

DependencyGraph = Dict[str, List[DependencyRecord]]


def classify_specifier(specifier: str) -> DependencyKind:
    """Classify a non-framework specifier by its lexical form."""
    if specifier.startswith("."):
        return DependencyKind.INTERNAL
    if specifier.startswith("@") or "/" not in specifier:
        return DependencyKind.NPM
    return DependencyKind.REGISTRY_EXTERNAL


def package_name(specifier: str) -> str:
    """Return the installable package for a specifier (``@scope/pkg`` or ``pkg``)."""
    parts = specifier.split("/")
    if specifier.startswith("@") and len(parts) >= 2:
        return "/".join(parts[:2])
    return parts[0]


class DependencyAnalyzer:
    """Classifies imports and builds internal dependency graphs."""

    def __init__(
        self,
        root_dir: str | Path,
        *,
        parser: StoryParser | None = None,
        probe: FileProbe | None = None,
    ) -> None:
        self.root_dir = Path(root_dir).expanduser().resolve()
        self.parser = parser or StoryParser()
        self.probe = probe or FileProbe()
        self.logger = get_logger("analyzers.dependencies")
        self._versions: Dict[str, Optional[str]] = {}

    def analyze_dependencies(self, file_path: str | Path) -> List[DependencyRecord]:
        """Read ``file_path``, collect its imports and classify them."""
        path = str(file_path)
        try:
            source = self.probe.read_text(path)
        except (OSError, UnicodeDecodeError) as exc:
            raise DependencyAnalysisError(f"Failed to analyze dependencies: {exc}", file=path) from exc
        imports = self.parser.collect_imports(path, source)
        return self.classify_imports(imports, path)

    def classify_imports(self, raw_imports: Iterable[str], from_file: str) -> List[DependencyRecord]:
        records: List[DependencyRecord] = []
        for specifier in raw_imports:
            record = self.classify(specifier, from_file)
            if record is not None:
                records.append(record)
        return records

    def classify(self, specifier: str, from_file: str) -> Optional[DependencyRecord]:
        """Return the record for ``specifier`` or ``None`` for framework imports."""
        if is_framework_specifier(specifier):
            return None
        kind = classify_specifier(specifier)
        if kind is DependencyKind.INTERNAL:
            return DependencyRecord(
                specifier=specifier,
                kind=kind,
                resolved_path=self.resolve_relative(specifier, from_file),
            )
        if kind is DependencyKind.NPM:
            return DependencyRecord(
                specifier=specifier,
                kind=kind,
                version=self.installed_version(specifier),
            )
        return DependencyRecord(specifier=specifier, kind=kind)

    def resolve_relative(self, specifier: str, from_file: str) -> str:
        """Resolve a relative specifier; unresolvable targets return the normalized path."""
        base = normalize_path(Path(from_file).parent / specifier)
        for extension in RESOLVE_EXTENSIONS:
            candidate = base + extension
            if self.probe.exists(candidate):
                return candidate
        for extension in RESOLVE_EXTENSIONS:
            candidate = f"{base}/index{extension}"
            if self.probe.exists(candidate):
                return candidate
        return base

    def installed_version(self, specifier: str) -> Optional[str]:
        """Find the installed version by walking ancestor ``node_modules`` folders."""
        name = package_name(specifier)
        if name in self._versions:
            return self._versions[name]

        version: Optional[str] = None
        for directory in (self.root_dir, *self.root_dir.parents):
            manifest = directory / "node_modules" / name / "package.json"
            if not self.probe.exists(manifest):
                continue
            try:
                payload = json.loads(self.probe.read_text(manifest))
            except (OSError, ValueError) as exc:
                self.logger.debug("Unreadable package manifest %s: %s", manifest, exc)
                break
            if isinstance(payload, dict) and isinstance(payload.get("version"), str):
                version = payload["version"]
            break

        self._versions[name] = version
        return version

    def build_graph(
        self,
        file_paths: Iterable[str | Path],
        *,
        follow_internal: bool = False,
        failures: List[ItemFailure] | None = None,
    ) -> DependencyGraph:
        """Map each normalized file path to its dependency records.

        A file whose imports cannot be read contributes an empty list and a
        warning; when ``failures`` is given the error is also appended there.
        With ``follow_internal`` resolved internal targets that exist on disk
        are analyzed as well.
        """
        graph: DependencyGraph = {}
        pending: Deque[str] = deque(normalize_path(path) for path in file_paths)
        while pending:
            key = pending.popleft()
            if key in graph:
                continue
            try:
                dependencies = self.analyze_dependencies(key)
            except DependencyAnalysisError as exc:
                self.logger.warning("Failed to analyze dependencies for %s: %s", key, exc)
                if failures is not None:
                    failures.append(ItemFailure(item=key, error=exc))
                dependencies = []
            graph[key] = dependencies

            if not follow_internal:
                continue
            for record in dependencies:
                target = record.resolved_path
                if (
                    record.kind is DependencyKind.INTERNAL
                    and target
                    and target not in graph
                    and target.endswith(_SOURCE_EXTENSIONS)
                    and self.probe.exists(target)
                ):
                    pending.append(target)
        return graph


def find_cycles(graph: Mapping[str, Sequence[DependencyRecord]]) -> List[List[str]]:
    """Return every cycle reachable through internal edges.

    Depth-first search with an explicit stack; reaching a node already on the
    current path records the path slice from that node's first occurrence.
    """
    visited: Set[str] = set()
    cycles: List[List[str]] = []

    for start in graph:
        if start in visited:
            continue
        visited.add(start)
        path: List[str] = [start]
        on_path: Set[str] = {start}
        frames = [iter(_internal_targets(graph, start))]

        while frames:
            target = next(frames[-1], None)
            if target is None:
                frames.pop()
                on_path.discard(path.pop())
                continue
            if target in on_path:
                cycles.append(path[path.index(target) :])
                continue
            if target in visited:
                continue
            visited.add(target)
            path.append(target)
            on_path.add(target)
            frames.append(iter(_internal_targets(graph, target)))

    return cycles


def _internal_targets(graph: Mapping[str, Sequence[DependencyRecord]], node: str) -> List[str]:
    return [
        record.resolved_path
        for record in graph.get(node, ())
        if record.kind is DependencyKind.INTERNAL and record.resolved_path
    ]


__all__ = [
    "DependencyAnalyzer",
    "DependencyGraph",
    "RESOLVE_EXTENSIONS",
    "classify_specifier",
    "find_cycles",
    "package_name",
]
