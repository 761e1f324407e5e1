"""Core data models shared across storysync stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Generic, List, Optional, TypeVar, Union


@dataclass(frozen=True)
class Opaque:
    """Raw source text for an expression the extractor does not interpret."""

    source: str

    def __str__(self) -> str:
        return self.source


Value = Union[str, int, float, bool, None, List["Value"], Dict[str, "Value"], Opaque]


class RegistryItemType(str, Enum):
    """Closed set of registry item and file types."""

    COMPONENT = "registry:component"
    UI = "registry:ui"
    LIB = "registry:lib"
    HOOK = "registry:hook"
    BLOCK = "registry:block"
    PAGE = "registry:page"
    FILE = "registry:file"
    STYLE = "registry:style"
    THEME = "registry:theme"


class DependencyKind(str, Enum):
    """Lexical classification of an import specifier."""

    INTERNAL = "internal"
    NPM = "npm"
    REGISTRY_EXTERNAL = "registryExternal"


@dataclass(frozen=True)
class MetaRecord:
    """Default export of a story file."""

    title: Optional[str] = None
    component: Value = None
    decorators: Value = None
    parameters: Optional[Dict[str, Value]] = None
    args: Optional[Dict[str, Value]] = None
    arg_types: Optional[Dict[str, Value]] = None
    tags: Optional[List[str]] = None


@dataclass
class StoryRecord:
    """One named story export."""

    name: Optional[str] = None
    args: Optional[Dict[str, Value]] = None
    parameters: Optional[Dict[str, Value]] = None
    decorators: Value = None
    render: Value = None
    play: Value = None
    tags: Optional[List[str]] = None


@dataclass
class ParsedStoryFile:
    """Structured view of one story file produced by the parser."""

    file_path: str
    meta: MetaRecord
    stories: Dict[str, StoryRecord]
    raw_imports: List[str]
    component_name: str
    component_path: str
    dependencies: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class DependencyRecord:
    """Classified import specifier."""

    specifier: str
    kind: DependencyKind
    resolved_path: Optional[str] = None
    version: Optional[str] = None


@dataclass
class ComplexityMetrics:
    file_count: int
    line_count: int
    dependency_count: int
    prop_count: int
    story_count: int
    score: int


@dataclass
class ComponentFile:
    path: str
    kind: str
    size: int
    exports: List[str] = field(default_factory=list)


@dataclass
class PropInfo:
    name: str
    type: str
    required: bool = False
    default_value: Value = None
    description: Optional[str] = None


@dataclass
class StoryInfo:
    name: str
    args: Dict[str, Value] = field(default_factory=dict)
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)


@dataclass
class QualityIssue:
    """Advisory finding attached to a component analysis."""

    severity: str
    message: str
    file: Optional[str] = None


@dataclass
class QualityMetrics:
    documentation_score: int
    test_coverage: int
    story_completeness: int
    type_definitions: int
    overall_score: int
    issues: List[QualityIssue] = field(default_factory=list)


@dataclass
class ComponentAnalysis:
    """Derived metrics for one component; recomputed every run."""

    name: str
    type: RegistryItemType
    complexity: ComplexityMetrics
    dependencies: List[DependencyRecord]
    files: List[ComponentFile]
    props: List[PropInfo]
    stories: List[StoryInfo]
    quality: QualityMetrics


T = TypeVar("T")


@dataclass
class ItemFailure:
    """Pairs a batch item identifier with the error it raised."""

    item: str
    error: Exception


@dataclass
class BatchResult(Generic[T]):
    """Successes and failures of a batch stage, kept side by side."""

    successes: List[T] = field(default_factory=list)
    failures: List[ItemFailure] = field(default_factory=list)

    @property
    def errors(self) -> List[Exception]:
        return [failure.error for failure in self.failures]


__all__ = [
    "BatchResult",
    "ComplexityMetrics",
    "ComponentAnalysis",
    "ComponentFile",
    "DependencyKind",
    "DependencyRecord",
    "ItemFailure",
    "MetaRecord",
    "Opaque",
    "ParsedStoryFile",
    "PropInfo",
    "QualityIssue",
    "QualityMetrics",
    "RegistryItemType",
    "StoryInfo",
    "StoryRecord",
    "Value",
]
