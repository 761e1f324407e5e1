"""Dependency and component analyzers."""

from .component import ComponentAnalyzer, classify_component, complexity_score, merge_props
from .dependencies import DependencyAnalyzer, classify_specifier, find_cycles

__all__ = [
    "ComponentAnalyzer",
    "DependencyAnalyzer",
    "classify_component",
    "classify_specifier",
    "complexity_score",
    "find_cycles",
    "merge_props",
]
