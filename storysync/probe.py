"""Minimal filesystem probe used by analyzers."""

from __future__ import annotations

import os
from pathlib import Path


class FileProbe:
    """Answers existence, content and size questions about files."""

    def exists(self, path: str | Path) -> bool:
        return Path(path).is_file()

    def read_text(self, path: str | Path) -> str:
        return Path(path).read_text(encoding="utf-8")

    def size(self, path: str | Path) -> int:
        try:
            return os.stat(path).st_size
        except OSError:
            return 0


__all__ = ["FileProbe"]
