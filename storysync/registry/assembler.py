"""Render parsed story files and analyses into registry documents."""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..analyzers.component import docs_description
from ..config import ComponentTypeRule, SyncConfig
from ..errors import RegistryValidationError
from ..logging import get_logger
from ..models import ComponentAnalysis, ParsedStoryFile, RegistryItemType, Value
from ..parser import to_jsonable
from ..utils import kebab_case, normalize_path, start_case, write_json_file
from .schema import (
    REGISTRY_ITEM_SCHEMA_URL,
    REGISTRY_SCHEMA_URL,
    to_document,
    validate_item,
    validate_registry,
)

# Foundational primitives a story import can reference by name.
KNOWN_REGISTRY_COMPONENTS = (
    "button",
    "input",
    "label",
    "card",
    "dialog",
    "dropdown-menu",
    "select",
    "checkbox",
    "radio-group",
    "switch",
    "textarea",
    "tooltip",
    "popover",
    "accordion",
    "alert",
    "badge",
    "avatar",
)

REGISTRY_FILENAME = "registry.json"
# Item documents are written beside registry.json as <name>.json.
RESERVED_ITEM_NAMES = frozenset({"registry"})
REGISTRY_BASE_PATH = "registry/default"

_CSS_VAR_SCOPES = ("theme", "light", "dark")


class RegistryAssembler:
    """Builds validated registry items and the registry document."""

    def __init__(self, config: SyncConfig) -> None:
        self.config = config
        self.logger = get_logger("registry.assembler")

    def assemble_registry(
        self,
        parsed_files: Sequence[ParsedStoryFile],
        analyses: Sequence[Optional[ComponentAnalysis]] = (),
    ) -> Dict[str, Any]:
        """Assemble every item and the registry document around them.

        ``analyses`` is matched to ``parsed_files`` by position. Items that
        fail validation, or whose name an earlier file already produced, are
        logged and left out; a registry document that fails validation raises
        :class:`RegistryValidationError`.
        """
        items: List[Dict[str, Any]] = []
        claimed: Dict[str, str] = {}
        for index, parsed in enumerate(parsed_files):
            analysis = analyses[index] if index < len(analyses) else None
            try:
                item = self.assemble_item(parsed, analysis)
            except RegistryValidationError as exc:
                self.logger.warning(
                    "Failed to generate registry item for %s: %s (%s)",
                    parsed.file_path,
                    exc,
                    "; ".join(exc.issues),
                )
                continue
            if item is None:
                continue
            owner = claimed.get(item["name"])
            if owner is not None:
                self.logger.warning(
                    "Skipping %s: item name '%s' already generated from %s",
                    parsed.file_path,
                    item["name"],
                    owner,
                )
                continue
            claimed[item["name"]] = parsed.file_path
            items.append(item)

        document: Dict[str, Any] = {
            "$schema": REGISTRY_SCHEMA_URL,
            "name": self.config.output.registry_name,
        }
        if self.config.output.homepage:
            document["homepage"] = self.config.output.homepage
        document["items"] = items
        return to_document(validate_registry(document))

    def assemble_item(
        self,
        parsed: ParsedStoryFile,
        analysis: Optional[ComponentAnalysis] = None,
    ) -> Optional[Dict[str, Any]]:
        """Return a validated item document, or ``None`` when the component is unnamed."""
        if not parsed.component_name:
            self.logger.info("Skipping %s: no component reference in meta", parsed.file_path)
            return None

        name = kebab_case(parsed.component_name)
        if name in RESERVED_ITEM_NAMES:
            raise RegistryValidationError(
                f"Item name '{name}' is reserved",
                [f"name: '{name}' would overwrite {REGISTRY_FILENAME}"],
                code="REGISTRY_ITEM_VALIDATION_ERROR",
                file=parsed.file_path,
            )
        item_type = self.determine_type(parsed, analysis)
        document: Dict[str, Any] = {
            "$schema": REGISTRY_ITEM_SCHEMA_URL,
            "name": name,
            "type": item_type.value,
            "title": item_title(parsed),
            "description": item_description(parsed),
        }

        dependencies = self.npm_dependencies(parsed)
        if dependencies:
            document["dependencies"] = dependencies
        registry_dependencies = registry_dependencies_for(parsed, exclude=name)
        if registry_dependencies:
            document["registryDependencies"] = registry_dependencies

        document["files"] = conventional_files(name, item_type)

        parameters = parsed.meta.parameters or {}
        css_vars = _css_vars(parameters.get("cssVars"))
        if css_vars:
            document["cssVars"] = css_vars
        tailwind = _tailwind(parameters.get("tailwind"))
        if tailwind:
            document["tailwind"] = tailwind

        return to_document(validate_item(document, file=parsed.file_path))

    def determine_type(
        self,
        parsed: ParsedStoryFile,
        analysis: Optional[ComponentAnalysis] = None,
    ) -> RegistryItemType:
        """Analysis type first; a plain-component analysis defers to the configured rules."""
        if analysis is not None and analysis.type is not RegistryItemType.COMPONENT:
            return analysis.type

        relative = self._relative_path(parsed.file_path)
        for rule in self.config.mapping.component_type_rules:
            if not rule_matches(rule.pattern, relative):
                continue
            if rule.condition and rule.threshold is not None:
                if meets_condition(rule, parsed, analysis):
                    return rule.type
                continue
            return rule.type
        return RegistryItemType.COMPONENT

    def npm_dependencies(self, parsed: ParsedStoryFile) -> List[str]:
        """Non-relative imports after the rename table, deduplicated and sorted."""
        renames = self.config.mapping.dependency_mapping
        dependencies = set()
        for specifier in parsed.dependencies:
            if specifier.startswith("."):
                continue
            mapped = renames.get(specifier) or specifier
            if mapped:
                dependencies.add(mapped)
        return sorted(dependencies)

    def write_registry(self, registry: Mapping[str, Any], directory: Path | None = None) -> Path:
        target = (directory or self.config.output.registry_path) / REGISTRY_FILENAME
        write_json_file(target, registry)
        self.logger.info("Wrote registry with %d items to %s", len(registry.get("items", [])), target)
        return target

    def write_items(self, items: Sequence[Mapping[str, Any]], directory: Path | None = None) -> List[Path]:
        directory = directory or self.config.output.registry_path
        written: List[Path] = []
        for item in items:
            target = directory / f"{item['name']}.json"
            write_json_file(target, item)
            written.append(target)
        self.logger.debug("Wrote %d item documents to %s", len(written), directory)
        return written

    def _relative_path(self, file_path: str) -> str:
        path = normalize_path(file_path)
        root = normalize_path(self.config.root)
        if path.startswith(root + "/"):
            return path[len(root) + 1 :]
        return path


def rule_matches(pattern: str, path: str) -> bool:
    """Glob match: ``*`` and ``?`` stay within one segment, ``**`` spans segments."""
    return _glob_regex(pattern).fullmatch(path) is not None


@lru_cache(maxsize=None)
def _glob_regex(pattern: str) -> re.Pattern[str]:
    parts: List[str] = []
    index = 0
    while index < len(pattern):
        if pattern.startswith("**/", index):
            parts.append("(?:.*/)?")
            index += 3
        elif pattern.startswith("**", index):
            parts.append(".*")
            index += 2
        elif pattern[index] == "*":
            parts.append("[^/]*")
            index += 1
        elif pattern[index] == "?":
            parts.append("[^/]")
            index += 1
        else:
            parts.append(re.escape(pattern[index]))
            index += 1
    return re.compile("".join(parts))


def meets_condition(
    rule: ComponentTypeRule,
    parsed: ParsedStoryFile,
    analysis: Optional[ComponentAnalysis],
) -> bool:
    threshold = rule.threshold if rule.threshold is not None else 0
    if rule.condition == "fileCount":
        file_count = len(analysis.files) if analysis is not None and analysis.files else 1
        return file_count >= threshold
    if rule.condition == "complexity":
        score = analysis.complexity.score if analysis is not None else 0
        return score >= threshold
    if rule.condition == "dependencies":
        return len(parsed.dependencies) >= threshold
    return False


def item_title(parsed: ParsedStoryFile) -> str:
    title = parsed.meta.title
    if title:
        last = title.split("/")[-1].strip()
        return last or parsed.component_name
    return start_case(parsed.component_name)


def item_description(parsed: ParsedStoryFile) -> str:
    description = docs_description(parsed.meta.parameters, "component")
    return description or f"A {parsed.component_name} component."


def registry_dependencies_for(parsed: ParsedStoryFile, *, exclude: str = "") -> List[str]:
    """Catalog names mentioned (case-insensitively) by any raw import.

    Names contained in ``exclude`` (the item's own name) are left out, so
    ``icon-button`` does not depend on ``button``.
    """
    found = set()
    for specifier in parsed.raw_imports:
        lowered = specifier.lower()
        for component in KNOWN_REGISTRY_COMPONENTS:
            if component in lowered and component not in exclude:
                found.add(component)
    return sorted(found)


def conventional_files(name: str, item_type: RegistryItemType) -> List[Dict[str, str]]:
    base = f"{REGISTRY_BASE_PATH}/{name}"
    if item_type is RegistryItemType.HOOK:
        main = {"path": f"{base}/use-{name}.ts", "type": RegistryItemType.HOOK.value}
    elif item_type is RegistryItemType.LIB:
        main = {"path": f"{base}/{name}.ts", "type": RegistryItemType.LIB.value}
    elif item_type is RegistryItemType.UI:
        main = {"path": f"{base}/{name}.tsx", "type": RegistryItemType.UI.value}
    else:
        main = {"path": f"{base}/{name}.tsx", "type": RegistryItemType.COMPONENT.value}

    files = [main]
    if item_type is RegistryItemType.BLOCK:
        files.append({"path": f"{base}/index.ts", "type": RegistryItemType.COMPONENT.value})
    return files


def _css_vars(value: Value) -> Optional[Dict[str, Dict[str, str]]]:
    if not isinstance(value, dict):
        return None
    css_vars: Dict[str, Dict[str, str]] = {}
    for scope in _CSS_VAR_SCOPES:
        entries = value.get(scope)
        if isinstance(entries, dict):
            css_vars[scope] = {key: str(to_jsonable(item)) for key, item in entries.items()}
    return css_vars or None


def _tailwind(value: Value) -> Optional[Dict[str, Any]]:
    if not isinstance(value, dict):
        return None
    config = value.get("config") if isinstance(value.get("config"), dict) else value
    return {"config": to_jsonable(config)} if config else None


__all__ = [
    "KNOWN_REGISTRY_COMPONENTS",
    "REGISTRY_FILENAME",
    "RegistryAssembler",
    "conventional_files",
    "item_description",
    "item_title",
    "meets_condition",
    "registry_dependencies_for",
    "rule_matches",
]
