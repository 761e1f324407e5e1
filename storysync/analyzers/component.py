"""Complexity, prop, quality and registry-type analysis per component."""

from __future__ import annotations

import math
import re
from dataclasses import replace
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..discovery import find_component_file
from ..logging import get_logger
from ..models import (
    ComplexityMetrics,
    ComponentAnalysis,
    ComponentFile,
    Opaque,
    ParsedStoryFile,
    PropInfo,
    QualityIssue,
    QualityMetrics,
    RegistryItemType,
    StoryInfo,
    Value,
)
from ..probe import FileProbe
from ..utils import normalize_path
from .dependencies import DependencyAnalyzer

# Deliberately rough: counts ``identifier: identifier`` occurrences in source.
_PROP_PATTERN = re.compile(r"\w+:\s*\w+")
_HOOK_MARKER = re.compile(r"(?:^|/)(?:hooks?(?:/|$)|use[A-Z0-9_-])")
_LIB_MARKER = re.compile(r"(?:^|/)(?:lib|libs|utils?)(?:/|\.|$)")
_UI_MARKER = re.compile(r"(?:^|/)ui(?:/|$)")

_DEFAULT_LINE_ESTIMATE = 100
_MAX_COUNTED_LINES = 1000

ClassificationRule = Tuple[Callable[[ComplexityMetrics, Sequence[ComponentFile]], bool], RegistryItemType]


def _any_path(pattern: re.Pattern[str]) -> Callable[[ComplexityMetrics, Sequence[ComponentFile]], bool]:
    def _matches(_complexity: ComplexityMetrics, files: Sequence[ComponentFile]) -> bool:
        return any(pattern.search(file.path) for file in files)

    return _matches


# Evaluated in order; the first predicate that holds decides the type.
CLASSIFICATION_RULES: Tuple[ClassificationRule, ...] = (
    (lambda complexity, files: complexity.score > 70 or len(files) > 3, RegistryItemType.BLOCK),
    (_any_path(_HOOK_MARKER), RegistryItemType.HOOK),
    (_any_path(_LIB_MARKER), RegistryItemType.LIB),
    (_any_path(_UI_MARKER), RegistryItemType.UI),
)


def complexity_score(
    file_count: int,
    line_count: int,
    dependency_count: int,
    prop_count: int,
    story_count: int,
) -> int:
    """Weighted size score clamped to ``[0, 100]``."""
    raw = (
        file_count * 10
        + min(line_count, _MAX_COUNTED_LINES) / 10
        + dependency_count * 5
        + prop_count * 2
        + story_count * 3
    )
    return _round_half_up(min(100.0, max(0.0, raw)))


def classify_component(
    complexity: ComplexityMetrics,
    files: Sequence[ComponentFile],
    rules: Sequence[ClassificationRule] = CLASSIFICATION_RULES,
) -> RegistryItemType:
    for predicate, item_type in rules:
        if predicate(complexity, files):
            return item_type
    return RegistryItemType.COMPONENT


class ComponentAnalyzer:
    """Derives :class:`ComponentAnalysis` records from parsed story files."""

    def __init__(
        self,
        *,
        dependency_analyzer: DependencyAnalyzer | None = None,
        probe: FileProbe | None = None,
        components_path: str | Path | None = None,
    ) -> None:
        self.probe = probe or FileProbe()
        self.dependency_analyzer = dependency_analyzer or DependencyAnalyzer(Path.cwd(), probe=self.probe)
        self.components_path = Path(components_path) if components_path else None
        self.logger = get_logger("analyzers.component")

    def analyze_components(self, story_files: Iterable[ParsedStoryFile]) -> List[ComponentAnalysis]:
        """Analyze each file; a failing file yields a degraded analysis instead."""
        analyses: List[ComponentAnalysis] = []
        for story_file in story_files:
            try:
                analyses.append(self.analyze_component(story_file))
            except Exception as exc:
                self.logger.warning("Failed to analyze component %s: %s", story_file.component_name, exc)
                analyses.append(degraded_analysis(story_file))
        return analyses

    def analyze_component(self, story_file: ParsedStoryFile) -> ComponentAnalysis:
        component_file = self.locate_component_file(story_file)
        complexity = self._complexity(story_file, component_file)
        dependencies = self.dependency_analyzer.classify_imports(story_file.dependencies, story_file.file_path)
        files = self._files(story_file, component_file)
        props = merge_props(story_file)
        stories = story_infos(story_file)
        quality = assess_quality(story_file, complexity, stories)
        component_type = classify_component(complexity, self._project_relative(files))

        return ComponentAnalysis(
            name=story_file.component_name,
            type=component_type,
            complexity=complexity,
            dependencies=dependencies,
            files=files,
            props=props,
            stories=stories,
            quality=quality,
        )

    def locate_component_file(self, story_file: ParsedStoryFile) -> Optional[str]:
        """Resolve the component source; best-effort and possibly ``None``."""
        specifier = story_file.component_path
        if specifier:
            if specifier.startswith("."):
                resolved = self.dependency_analyzer.resolve_relative(specifier, story_file.file_path)
            else:
                resolved = specifier
            if self.probe.exists(resolved):
                return resolved
        return find_component_file(
            story_file.file_path,
            self.components_path,
            names=[story_file.component_name] if story_file.component_name else (),
            probe=self.probe,
        )

    def _project_relative(self, files: Sequence[ComponentFile]) -> List[ComponentFile]:
        root = normalize_path(self.dependency_analyzer.root_dir)
        relative: List[ComponentFile] = []
        for file in files:
            path = file.path
            if path.startswith(root + "/"):
                path = path[len(root) + 1 :]
            relative.append(replace(file, path=path))
        return relative

    def _complexity(self, story_file: ParsedStoryFile, component_file: Optional[str]) -> ComplexityMetrics:
        file_count = 1
        prop_count = 0
        try:
            line_count = _count_lines(self.probe.read_text(story_file.file_path))
        except (OSError, UnicodeDecodeError):
            line_count = _DEFAULT_LINE_ESTIMATE

        if component_file:
            try:
                component_source = self.probe.read_text(component_file)
            except (OSError, UnicodeDecodeError) as exc:
                self.logger.debug("Component file %s not readable: %s", component_file, exc)
            else:
                line_count += _count_lines(component_source)
                file_count += 1
                prop_count = len(_PROP_PATTERN.findall(component_source))

        dependency_count = len(story_file.dependencies)
        story_count = len(story_file.stories)
        return ComplexityMetrics(
            file_count=file_count,
            line_count=line_count,
            dependency_count=dependency_count,
            prop_count=prop_count,
            story_count=story_count,
            score=complexity_score(file_count, line_count, dependency_count, prop_count, story_count),
        )

    def _files(self, story_file: ParsedStoryFile, component_file: Optional[str]) -> List[ComponentFile]:
        files = [
            ComponentFile(
                path=story_file.file_path,
                kind="story",
                size=self.probe.size(story_file.file_path),
                exports=list(story_file.stories),
            )
        ]
        if component_file:
            files.append(
                ComponentFile(
                    path=component_file,
                    kind="component",
                    size=self.probe.size(component_file),
                    exports=[story_file.component_name],
                )
            )
        return files


def merge_props(story_file: ParsedStoryFile) -> List[PropInfo]:
    """Merge meta args, story args and argTypes into one prop table.

    Meta args seed the table, story args only add missing names, and argTypes
    override type/description/required or add new entries.
    """
    props: Dict[str, PropInfo] = {}

    for name, value in (story_file.meta.args or {}).items():
        props[name] = PropInfo(name=name, type=infer_type(value), default_value=value)

    for story in story_file.stories.values():
        for name, value in (story.args or {}).items():
            if name not in props:
                props[name] = PropInfo(name=name, type=infer_type(value), default_value=value)

    for name, arg_type in (story_file.meta.arg_types or {}).items():
        declared = arg_type if isinstance(arg_type, dict) else {}
        declared_type = _declared_type(declared)
        description = declared.get("description")
        required = _declared_required(declared)
        existing = props.get(name)
        if existing is None:
            props[name] = PropInfo(
                name=name,
                type=declared_type or "unknown",
                required=required,
                description=description if isinstance(description, str) else None,
            )
            continue
        if not isinstance(arg_type, dict):
            continue
        if declared_type:
            existing.type = declared_type
        if isinstance(description, str):
            existing.description = description
        existing.required = required

    return list(props.values())


def infer_type(value: Value) -> str:
    """Primitive type name for a default arg value."""
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if value is None:
        return "null"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, Opaque) and ("=>" in value.source or value.source.startswith("function")):
        return "function"
    return "unknown"


def _declared_type(declared: Dict[str, Value]) -> Optional[str]:
    value = declared.get("type")
    if isinstance(value, str) and value:
        return value
    if isinstance(value, dict) and isinstance(value.get("name"), str):
        return value["name"]
    return None


def _declared_required(declared: Dict[str, Value]) -> bool:
    if declared.get("required") is True:
        return True
    nested = declared.get("type")
    return isinstance(nested, dict) and nested.get("required") is True


def story_infos(story_file: ParsedStoryFile) -> List[StoryInfo]:
    infos: List[StoryInfo] = []
    for export_name, story in story_file.stories.items():
        infos.append(
            StoryInfo(
                name=story.name or export_name,
                args=dict(story.args or {}),
                description=docs_description(story.parameters, "story"),
                tags=list(story.tags or []),
            )
        )
    return infos


def docs_description(parameters: Optional[Dict[str, Value]], field: str) -> Optional[str]:
    """Read ``parameters.docs.description`` as a string or ``{field: str}`` mapping."""
    docs = (parameters or {}).get("docs")
    if not isinstance(docs, dict):
        return None
    description = docs.get("description")
    if isinstance(description, str) and description:
        return description
    if isinstance(description, dict):
        nested = description.get(field)
        if isinstance(nested, str) and nested:
            return nested
    return None


def assess_quality(
    story_file: ParsedStoryFile,
    complexity: ComplexityMetrics,
    stories: Sequence[StoryInfo],
) -> QualityMetrics:
    meta = story_file.meta
    has_arg_types = bool(meta.arg_types)
    docs = (meta.parameters or {}).get("docs")

    documentation = 0
    if meta.title:
        documentation += 20
    if isinstance(docs, dict) and docs.get("description"):
        documentation += 30
    if any(story.description for story in stories):
        documentation += 25
    if has_arg_types:
        documentation += 25

    coverage = min(100, len(stories) * 25)
    completeness = min(100, len(stories) * 20) if stories else 0
    type_definitions = 100 if has_arg_types else 0
    overall = _round_half_up((documentation + coverage + completeness + type_definitions) / 4)

    issues: List[QualityIssue] = []
    if documentation < 50:
        issues.append(QualityIssue("warning", "Component lacks sufficient documentation", story_file.file_path))
    if not stories:
        issues.append(QualityIssue("error", "No stories found for component", story_file.file_path))
    if not has_arg_types:
        issues.append(
            QualityIssue("info", "Consider adding argTypes for better prop documentation", story_file.file_path)
        )
    if complexity.score > 80:
        issues.append(
            QualityIssue("warning", "Component has high complexity, consider breaking it down", story_file.file_path)
        )

    return QualityMetrics(
        documentation_score=documentation,
        test_coverage=coverage,
        story_completeness=completeness,
        type_definitions=type_definitions,
        overall_score=overall,
        issues=issues,
    )


def degraded_analysis(story_file: ParsedStoryFile) -> ComponentAnalysis:
    """All-zero analysis carrying a single error issue."""
    return ComponentAnalysis(
        name=story_file.component_name,
        type=RegistryItemType.COMPONENT,
        complexity=ComplexityMetrics(
            file_count=0,
            line_count=0,
            dependency_count=0,
            prop_count=0,
            story_count=0,
            score=0,
        ),
        dependencies=[],
        files=[],
        props=[],
        stories=[],
        quality=QualityMetrics(
            documentation_score=0,
            test_coverage=0,
            story_completeness=0,
            type_definitions=0,
            overall_score=0,
            issues=[QualityIssue("error", "Failed to analyze component", story_file.file_path)],
        ),
    )


def _count_lines(text: str) -> int:
    return text.count("\n") + 1


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


__all__ = [
    "CLASSIFICATION_RULES",
    "ComponentAnalyzer",
    "assess_quality",
    "classify_component",
    "complexity_score",
    "degraded_analysis",
    "docs_description",
    "infer_type",
    "merge_props",
    "story_infos",
]
