"""Best-effort guesses about which component a story file documents.

Nothing here is guaranteed correct: names come from a pattern match over the
textual form of the meta ``component`` reference and paths from scanning
import specifiers. Callers receive ``None`` when no guess is possible.
"""

from __future__ import annotations

import re
from typing import Optional, Sequence

from ..models import Value
from .values import value_text

UNKNOWN_COMPONENT = "UnknownComponent"

_UPPER_CAMEL = re.compile(r"[A-Z][a-zA-Z0-9]*")


def guess_component_name(component: Value) -> Optional[str]:
    """Return the first upper-camel-case token in the reference's text."""
    match = _UPPER_CAMEL.search(value_text(component))
    return match.group(0) if match else None


def guess_component_path(imports: Sequence[str], component_name: str) -> Optional[str]:
    """Pick the relative import most likely to hold the component source.

    Prefers a relative specifier mentioning the component name or the word
    ``component`` (both case-insensitive), then the first relative specifier.
    """
    relative = [spec for spec in imports if spec.startswith(".")]
    needle = component_name.lower()
    for spec in relative:
        lowered = spec.lower()
        if (needle and needle in lowered) or "component" in lowered:
            return spec
    return relative[0] if relative else None


__all__ = ["UNKNOWN_COMPONENT", "guess_component_name", "guess_component_path"]
