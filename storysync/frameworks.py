"""Import specifiers that belong to the story host rather than the component."""

from __future__ import annotations

from typing import Iterable, List

FRAMEWORK_PREFIXES = ("@storybook/",)
FRAMEWORK_PACKAGES = frozenset({"storybook"})
HOST_RUNTIME_PACKAGES = frozenset({"react", "react-dom"})


def is_framework_specifier(specifier: str) -> bool:
    """True for the story framework's own namespace."""
    return specifier in FRAMEWORK_PACKAGES or specifier.startswith(FRAMEWORK_PREFIXES)


def component_dependencies(specifiers: Iterable[str]) -> List[str]:
    """Drop framework and host-runtime specifiers, keeping source order."""
    return [
        spec
        for spec in specifiers
        if not is_framework_specifier(spec) and spec not in HOST_RUNTIME_PACKAGES
    ]


__all__ = [
    "FRAMEWORK_PACKAGES",
    "FRAMEWORK_PREFIXES",
    "HOST_RUNTIME_PACKAGES",
    "component_dependencies",
    "is_framework_specifier",
]
