"""Story file discovery and conventional component lookup."""

from __future__ import annotations

import re
from datetime import datetime
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .config import SyncConfig
from .logging import get_logger
from .probe import FileProbe
from .utils import normalize_path

COMPONENT_EXTENSIONS = (".tsx", ".ts", ".jsx", ".js")

_EXTGLOB = re.compile(r"@\(([^()]*)\)")
_BRACES = re.compile(r"\{([^{}]*)\}")

_DEFAULT_EXPORT = re.compile(r"export\s+default\s+")
_NAMED_EXPORT = re.compile(r"export\s+(?:const|let|var)\s+\w+")
_STORYBOOK_IMPORT = re.compile(r"@storybook/")

_STORY_DIR_CANDIDATES = ("src/stories", "stories", ".storybook", "src")
_COMPONENT_DIR_CANDIDATES = ("src/components", "components", "src/ui", "ui", "src")
_TSCONFIG_CANDIDATES = ("tsconfig.json", "tsconfig.app.json", "tsconfig.base.json")


def expand_pattern(pattern: str) -> List[str]:
    """Expand ``@(a|b)`` and ``{a,b}`` alternations into plain glob patterns."""
    match = _EXTGLOB.search(pattern)
    separator = "|"
    if match is None:
        match = _BRACES.search(pattern)
        separator = ","
    if match is None:
        return [pattern]

    expanded: List[str] = []
    for option in match.group(1).split(separator):
        candidate = pattern[: match.start()] + option + pattern[match.end() :]
        for item in expand_pattern(candidate):
            if item not in expanded:
                expanded.append(item)
    return expanded


def find_component_file(
    story_path: str | Path,
    components_path: str | Path | None,
    *,
    names: Sequence[str] = (),
    probe: FileProbe | None = None,
) -> Optional[str]:
    """Look for ``<Name>.{tsx,ts,jsx,js}`` beside the story, then under ``components_path``."""
    probe = probe or FileProbe()
    story = Path(story_path)
    base = story.name.split(".stories.")[0] if ".stories." in story.name else story.stem

    candidates: List[str] = []
    for name in (base, *names):
        if name and name not in candidates:
            candidates.append(name)

    directories = [story.parent]
    if components_path is not None:
        directories.append(Path(components_path))

    for directory in directories:
        for name in candidates:
            for extension in COMPONENT_EXTENSIONS:
                candidate = normalize_path(directory / f"{name}{extension}")
                if probe.exists(candidate):
                    return candidate
    return None


def looks_like_story_file(source: str) -> bool:
    """Cheap textual check for a default export plus a story export or framework import."""
    if not _DEFAULT_EXPORT.search(source):
        return False
    return bool(_NAMED_EXPORT.search(source) or _STORYBOOK_IMPORT.search(source))


class StoryDiscovery:
    """Finds story files under the configured storybook path."""

    def __init__(self, config: SyncConfig, *, probe: FileProbe | None = None) -> None:
        self.config = config
        self.probe = probe or FileProbe()
        self.logger = get_logger("discovery")

    def discover_story_files(self) -> List[str]:
        root = self.config.input.storybook_path
        if not root.is_dir():
            self.logger.warning("Storybook path %s does not exist", root)
            return []

        found = set()
        for pattern in self.config.input.stories_pattern:
            for expanded in expand_pattern(pattern):
                for path in root.glob(expanded):
                    if path.is_file():
                        found.add(normalize_path(path.resolve()))

        excludes = self.config.mapping.exclude_patterns
        results = sorted(path for path in found if not _is_excluded(path, excludes))
        self.logger.debug("Discovered %d story files under %s", len(results), root)
        return results

    def filter_changed(self, paths: Iterable[str], since: datetime) -> List[str]:
        """Keep files modified after ``since``; files that cannot be stat'ed are kept."""
        threshold = since.timestamp()
        changed: List[str] = []
        for path in paths:
            try:
                modified = Path(path).stat().st_mtime
            except OSError:
                changed.append(path)
                continue
            if modified > threshold:
                changed.append(path)
        return changed

    def looks_like_story_file(self, path: str | Path) -> bool:
        try:
            source = self.probe.read_text(path)
        except (OSError, UnicodeDecodeError):
            return False
        return looks_like_story_file(source)


def detect_project_structure(root: Path) -> Dict[str, Optional[str]]:
    """Probe conventional story, component and tsconfig locations under ``root``."""
    structure: Dict[str, Optional[str]] = {
        "storybookPath": None,
        "componentsPath": None,
        "tsconfigPath": None,
    }
    for candidate in _STORY_DIR_CANDIDATES:
        if (root / candidate).is_dir():
            structure["storybookPath"] = f"./{candidate}"
            break
    for candidate in _COMPONENT_DIR_CANDIDATES:
        if (root / candidate).is_dir():
            structure["componentsPath"] = f"./{candidate}"
            break
    for candidate in _TSCONFIG_CANDIDATES:
        if (root / candidate).is_file():
            structure["tsconfigPath"] = f"./{candidate}"
            break
    return structure


def _is_excluded(path: str, patterns: Sequence[str]) -> bool:
    return any(fnmatchcase(path, pattern) for pattern in patterns)


__all__ = [
    "COMPONENT_EXTENSIONS",
    "StoryDiscovery",
    "detect_project_structure",
    "expand_pattern",
    "find_component_file",
    "looks_like_story_file",
]
