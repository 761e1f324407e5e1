"""Configuration loading for storysync (storysync.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .models import RegistryItemType

CONFIG_FILENAMES = ("storysync.yml", "storysync.yaml", "storybook-sync.config.json")
RULE_CONDITIONS = ("fileCount", "complexity", "dependencies")

DEFAULT_STORIES_PATTERN = "**/*.stories.@(js|jsx|ts|tsx)"
DEFAULT_REGISTRY_NAME = "my-components"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class InputConfig:
    """Where story and component sources live."""

    storybook_path: Path
    components_path: Path
    stories_pattern: List[str] = field(default_factory=lambda: [DEFAULT_STORIES_PATTERN])
    tsconfig_path: Optional[Path] = None


@dataclass
class OutputConfig:
    """Registry output location and identity."""

    registry_path: Path
    registry_name: str = DEFAULT_REGISTRY_NAME
    homepage: Optional[str] = None


@dataclass(frozen=True)
class ComponentTypeRule:
    """Glob-matched registry type override, optionally gated by a threshold."""

    pattern: str
    type: RegistryItemType
    condition: Optional[str] = None
    threshold: Optional[float] = None


@dataclass
class MappingConfig:
    """Type rules, dependency renames and discovery exclusions."""

    component_type_rules: List[ComponentTypeRule] = field(default_factory=list)
    dependency_mapping: Dict[str, str] = field(default_factory=dict)
    exclude_patterns: List[str] = field(default_factory=list)


@dataclass
class GenerationConfig:
    """Switches for optional output steps."""

    include_story_examples: bool = True
    generate_individual_items: bool = True
    validate_output: bool = True


@dataclass
class SyncConfig:
    """Represents the settings defined in storysync.yml."""

    root: Path
    input: InputConfig
    output: OutputConfig
    mapping: MappingConfig = field(default_factory=MappingConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)


def default_rules() -> List[ComponentTypeRule]:
    return [
        ComponentTypeRule(pattern="**/ui/**", type=RegistryItemType.UI),
        ComponentTypeRule(pattern="**/blocks/**", type=RegistryItemType.BLOCK),
        ComponentTypeRule(pattern="**/hooks/**", type=RegistryItemType.HOOK),
    ]


def default_config(root: Path) -> SyncConfig:
    """Defaults used when no configuration file exists."""
    root = root.resolve()
    return SyncConfig(
        root=root,
        input=InputConfig(
            storybook_path=root / "src" / "stories",
            components_path=root / "src" / "components",
            tsconfig_path=root / "tsconfig.json",
        ),
        output=OutputConfig(registry_path=root / "registry"),
        mapping=MappingConfig(
            component_type_rules=default_rules(),
            exclude_patterns=["**/node_modules/**", "**/dist/**"],
        ),
    )


def load_config(config_path: Path | None = None) -> SyncConfig:
    """Load configuration from disk, overlaying it on the defaults."""
    config_file = resolve_config_path(config_path or Path.cwd())
    root = config_file.parent.resolve()
    config = default_config(root)

    if not config_file.exists():
        return config

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    input_data = _as_dict(data.get("input"))
    if input_data:
        storybook_path = _as_str(input_data.get("storybookPath"))
        components_path = _as_str(input_data.get("componentsPath"))
        tsconfig_path = _as_str(input_data.get("tsconfigPath"))
        if storybook_path:
            config.input.storybook_path = root / storybook_path
        if components_path:
            config.input.components_path = root / components_path
        if tsconfig_path:
            config.input.tsconfig_path = root / tsconfig_path
        patterns = _as_str_list(input_data.get("storiesPattern"))
        if patterns:
            config.input.stories_pattern = patterns

    output_data = _as_dict(data.get("output"))
    if output_data:
        registry_path = _as_str(output_data.get("registryPath"))
        if registry_path:
            config.output.registry_path = root / registry_path
        registry_name = _as_str(output_data.get("registryName"))
        if registry_name:
            config.output.registry_name = registry_name
        config.output.homepage = _as_str(output_data.get("homepage")) or config.output.homepage

    mapping_data = _as_dict(data.get("mapping"))
    if mapping_data:
        if "componentTypeRules" in mapping_data:
            config.mapping.component_type_rules = _parse_rules(mapping_data.get("componentTypeRules"))
        renames = _as_dict(mapping_data.get("dependencyMapping"))
        for source, target in renames.items():
            target_name = _as_str(target)
            if target_name:
                config.mapping.dependency_mapping[str(source)] = target_name
        if "excludePatterns" in mapping_data:
            config.mapping.exclude_patterns = _as_str_list(mapping_data.get("excludePatterns"))

    generation_data = _as_dict(data.get("generation"))
    if generation_data:
        generation = config.generation
        include = _as_bool(generation_data.get("includeStoryExamples"))
        individual = _as_bool(generation_data.get("generateIndividualItems"))
        validate = _as_bool(generation_data.get("validateOutput"))
        if include is not None:
            generation.include_story_examples = include
        if individual is not None:
            generation.generate_individual_items = individual
        if validate is not None:
            generation.validate_output = validate

    return config


def resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        for name in CONFIG_FILENAMES:
            candidate = config_path / name
            if candidate.exists():
                return candidate.resolve()
        return (config_path / CONFIG_FILENAMES[0]).resolve()
    return config_path.resolve()


def config_to_dict(config: SyncConfig) -> Dict[str, Any]:
    """Serialise ``config`` with paths relative to its root."""
    root = config.root

    def _rel(path: Optional[Path]) -> Optional[str]:
        if path is None:
            return None
        relative = os.path.relpath(path, root).replace("\\", "/")
        return relative if relative.startswith(".") else f"./{relative}"

    rules: List[Dict[str, Any]] = []
    for rule in config.mapping.component_type_rules:
        entry: Dict[str, Any] = {"pattern": rule.pattern, "type": rule.type.value}
        if rule.condition is not None:
            entry["condition"] = rule.condition
        if rule.threshold is not None:
            entry["threshold"] = rule.threshold
        rules.append(entry)

    output: Dict[str, Any] = {
        "registryPath": _rel(config.output.registry_path),
        "registryName": config.output.registry_name,
    }
    if config.output.homepage:
        output["homepage"] = config.output.homepage

    input_section: Dict[str, Any] = {
        "storybookPath": _rel(config.input.storybook_path),
        "componentsPath": _rel(config.input.components_path),
        "storiesPattern": list(config.input.stories_pattern),
    }
    if config.input.tsconfig_path is not None:
        input_section["tsconfigPath"] = _rel(config.input.tsconfig_path)

    return {
        "input": input_section,
        "output": output,
        "mapping": {
            "componentTypeRules": rules,
            "dependencyMapping": dict(config.mapping.dependency_mapping),
            "excludePatterns": list(config.mapping.exclude_patterns),
        },
        "generation": {
            "includeStoryExamples": config.generation.include_story_examples,
            "generateIndividualItems": config.generation.generate_individual_items,
            "validateOutput": config.generation.validate_output,
        },
    }


def write_config(path: Path, config: SyncConfig) -> Path:
    """Write ``config`` as YAML to ``path`` and return the path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(config_to_dict(config), sort_keys=False), encoding="utf-8")
    return path


def parse_item_type(value: Any) -> RegistryItemType:
    """Accept ``registry:ui`` or the short ``ui`` form."""
    text = _as_str(value)
    if not text:
        raise ConfigError("componentTypeRules entries require a type")
    if not text.startswith("registry:"):
        text = f"registry:{text}"
    try:
        return RegistryItemType(text)
    except ValueError as exc:
        raise ConfigError(f"Unknown registry type '{value}'") from exc


def _parse_rules(value: Any) -> List[ComponentTypeRule]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError("mapping.componentTypeRules must be a list")

    rules: List[ComponentTypeRule] = []
    for index, entry in enumerate(value):
        if not isinstance(entry, dict):
            raise ConfigError(f"componentTypeRules[{index}] must be a mapping")
        pattern = _as_str(entry.get("pattern"))
        if not pattern:
            raise ConfigError(f"componentTypeRules[{index}] requires a pattern")
        condition = _as_str(entry.get("condition"))
        if condition is not None and condition not in RULE_CONDITIONS:
            raise ConfigError(
                f"componentTypeRules[{index}] condition must be one of {', '.join(RULE_CONDITIONS)}"
            )
        rules.append(
            ComponentTypeRule(
                pattern=pattern,
                type=parse_item_type(entry.get("type")),
                condition=condition,
                threshold=_as_float(entry.get("threshold")),
            )
        )
    return rules


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "ComponentTypeRule",
    "ConfigError",
    "GenerationConfig",
    "InputConfig",
    "MappingConfig",
    "OutputConfig",
    "SyncConfig",
    "config_to_dict",
    "default_config",
    "default_rules",
    "load_config",
    "parse_item_type",
    "resolve_config_path",
    "write_config",
]
