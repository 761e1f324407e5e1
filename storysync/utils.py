"""String, path and JSON helpers shared across stages."""

from __future__ import annotations

import json
import posixpath
import re
from pathlib import Path
from typing import Any

_LOWER_UPPER = re.compile(r"([a-z])([A-Z])")
_KEBAB_SEPARATORS = re.compile(r"[\s_]+")
_START_SEPARATORS = re.compile(r"[-_\s]+")
_WORD_START = re.compile(r"\b\w")


def kebab_case(value: str) -> str:
    """Hyphenate lower/upper boundaries, collapse whitespace and underscores, lowercase."""
    hyphenated = _LOWER_UPPER.sub(r"\1-\2", value)
    return _KEBAB_SEPARATORS.sub("-", hyphenated).lower()


def start_case(value: str) -> str:
    """Render ``MyButton`` or ``my-button`` as ``My Button``."""
    spaced = _LOWER_UPPER.sub(r"\1 \2", value)
    spaced = _START_SEPARATORS.sub(" ", spaced)
    return _WORD_START.sub(lambda match: match.group(0).upper(), spaced).strip()


def normalize_path(path: str | Path) -> str:
    """Return a forward-slash, normalized form of ``path``."""
    text = str(path).replace("\\", "/")
    if not text:
        return text
    return posixpath.normpath(text)


def write_json_file(path: Path, data: Any, *, pretty: bool = True) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if pretty:
        content = json.dumps(data, indent=2, ensure_ascii=False)
    else:
        content = json.dumps(data, ensure_ascii=False)
    path.write_text(content + "\n", encoding="utf-8")


__all__ = ["kebab_case", "normalize_path", "start_case", "write_json_file"]
