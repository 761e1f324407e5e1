"""Tests for storysync.registry.assembler."""

from __future__ import annotations

import json

import pytest

from storysync.analyzers import ComponentAnalyzer, DependencyAnalyzer
from storysync.config import ComponentTypeRule
from storysync.errors import RegistryValidationError
from storysync.models import MetaRecord, ParsedStoryFile, RegistryItemType
from storysync.parser import StoryParser
from storysync.registry import REGISTRY_ITEM_SCHEMA_URL, REGISTRY_SCHEMA_URL, RegistryAssembler
from storysync.registry.assembler import rule_matches
from tests._fixtures.story_builder import StoryProjectBuilder

BUTTON_STORY = """
import type { Meta, StoryObj } from "@storybook/react";
import { Button } from "./Button";

const meta: Meta<typeof Button> = {
  title: "Components/Button",
  component: Button,
};

export default meta;

export const Primary: StoryObj<typeof Button> = {
  args: { variant: "primary" },
};
"""


def _parsed(project: StoryProjectBuilder, relative: str, name: str, **overrides) -> ParsedStoryFile:
    fields = {
        "file_path": str(project.path(relative)),
        "meta": MetaRecord(),
        "stories": {},
        "raw_imports": [],
        "component_name": name,
        "component_path": "",
    }
    fields.update(overrides)
    return ParsedStoryFile(**fields)


def test_button_story_becomes_default_component_item(project: StoryProjectBuilder) -> None:
    project.write({"src/stories/Button.stories.tsx": BUTTON_STORY})
    parsed = StoryParser().parse_story_file(project.path("src/stories/Button.stories.tsx"))
    analyzer = ComponentAnalyzer(dependency_analyzer=DependencyAnalyzer(project.root))
    [analysis] = analyzer.analyze_components([parsed])

    item = RegistryAssembler(project.config()).assemble_item(parsed, analysis)

    assert item == {
        "$schema": REGISTRY_ITEM_SCHEMA_URL,
        "name": "button",
        "type": "registry:component",
        "title": "Button",
        "description": "A Button component.",
        "files": [{"path": "registry/default/button/button.tsx", "type": "registry:component"}],
    }


def test_title_and_description_sources(project: StoryProjectBuilder) -> None:
    assembler = RegistryAssembler(project.config())
    documented = _parsed(
        project,
        "src/stories/DatePicker.stories.tsx",
        "DatePicker",
        meta=MetaRecord(parameters={"docs": {"description": "Pick a date."}}),
    )
    nested = _parsed(
        project,
        "src/stories/Tabs.stories.tsx",
        "Tabs",
        meta=MetaRecord(
            title="Navigation/Tabs Group",
            parameters={"docs": {"description": {"component": "Tabbed panels."}}},
        ),
    )

    first = assembler.assemble_item(documented)
    second = assembler.assemble_item(nested)

    assert first["name"] == "date-picker"
    assert first["title"] == "Date Picker"
    assert first["description"] == "Pick a date."
    assert second["title"] == "Tabs Group"
    assert second["description"] == "Tabbed panels."


def test_first_matching_rule_wins(project: StoryProjectBuilder) -> None:
    config = project.config()
    config.mapping.component_type_rules = [
        ComponentTypeRule(pattern="**/components/**", type=RegistryItemType.UI),
        ComponentTypeRule(pattern="**/components/forms/**", type=RegistryItemType.BLOCK),
    ]
    parsed = _parsed(project, "src/components/forms/Input.stories.tsx", "Input")

    assert RegistryAssembler(config).determine_type(parsed) is RegistryItemType.UI


def test_threshold_rule_that_does_not_hold_falls_through(project: StoryProjectBuilder) -> None:
    config = project.config()
    config.mapping.component_type_rules = [
        ComponentTypeRule(pattern="**", type=RegistryItemType.BLOCK, condition="complexity", threshold=50),
        ComponentTypeRule(pattern="**", type=RegistryItemType.LIB, condition="dependencies", threshold=2),
    ]
    assembler = RegistryAssembler(config)
    light = _parsed(project, "src/Format.stories.ts", "Format", dependencies=["clsx"])
    heavy = _parsed(project, "src/Format.stories.ts", "Format", dependencies=["clsx", "date-fns"])

    assert assembler.determine_type(light) is RegistryItemType.COMPONENT
    assert assembler.determine_type(heavy) is RegistryItemType.LIB


def test_default_rules_match_directories_under_root(project: StoryProjectBuilder) -> None:
    assembler = RegistryAssembler(project.config())

    ui = _parsed(project, "src/ui/Chip.stories.tsx", "Chip")
    plain = _parsed(project, "src/stories/Chip.stories.tsx", "Chip")

    assert assembler.determine_type(ui) is RegistryItemType.UI
    assert assembler.determine_type(plain) is RegistryItemType.COMPONENT


def test_dependencies_are_renamed_deduplicated_and_sorted(project: StoryProjectBuilder) -> None:
    config = project.config()
    config.mapping.dependency_mapping = {"clsx": "clsx-compat"}
    parsed = _parsed(
        project,
        "src/stories/Card.stories.tsx",
        "Card",
        dependencies=["lucide-react", "clsx", "./Card", "clsx", "@radix-ui/react-slot"],
        raw_imports=["@/components/ui/button", "@/components/ui/dropdown-menu", "./Card"],
    )

    item = RegistryAssembler(config).assemble_item(parsed)

    assert item["dependencies"] == ["@radix-ui/react-slot", "clsx-compat", "lucide-react"]
    assert item["registryDependencies"] == ["button", "dropdown-menu"]


@pytest.mark.parametrize(
    ("item_type", "paths"),
    [
        (RegistryItemType.BLOCK, ["registry/default/hero/hero.tsx", "registry/default/hero/index.ts"]),
        (RegistryItemType.HOOK, ["registry/default/hero/use-hero.ts"]),
        (RegistryItemType.LIB, ["registry/default/hero/hero.ts"]),
        (RegistryItemType.UI, ["registry/default/hero/hero.tsx"]),
    ],
)
def test_conventional_files_follow_type(
    project: StoryProjectBuilder, item_type: RegistryItemType, paths: list
) -> None:
    config = project.config()
    config.mapping.component_type_rules = [ComponentTypeRule(pattern="**", type=item_type)]
    parsed = _parsed(project, "src/Hero.stories.tsx", "Hero")

    item = RegistryAssembler(config).assemble_item(parsed)

    assert item["type"] == item_type.value
    assert [entry["path"] for entry in item["files"]] == paths


def test_css_vars_and_tailwind_come_from_parameters(project: StoryProjectBuilder) -> None:
    parsed = _parsed(
        project,
        "src/Theme.stories.tsx",
        "Theme",
        meta=MetaRecord(
            parameters={
                "cssVars": {"light": {"primary": "222 47% 11%"}, "ignored": 1},
                "tailwind": {"config": {"theme": {"extend": {}}}},
            }
        ),
    )

    item = RegistryAssembler(project.config()).assemble_item(parsed)

    assert item["cssVars"] == {"light": {"primary": "222 47% 11%"}}
    assert item["tailwind"] == {"config": {"theme": {"extend": {}}}}


def test_unnamed_component_is_skipped(project: StoryProjectBuilder) -> None:
    parsed = _parsed(project, "src/Intro.stories.tsx", "")

    assert RegistryAssembler(project.config()).assemble_item(parsed) is None


def test_registry_skips_invalid_items(project: StoryProjectBuilder) -> None:
    config = project.config()
    config.output.homepage = "https://example.com"
    good = _parsed(project, "src/Alert.stories.tsx", "Alert")
    bad = _parsed(project, "src/Odd.stories.tsx", "Odd.Widget")

    registry = RegistryAssembler(config).assemble_registry([bad, good], [None, None])

    assert registry["$schema"] == REGISTRY_SCHEMA_URL
    assert registry["name"] == "my-components"
    assert registry["homepage"] == "https://example.com"
    assert [item["name"] for item in registry["items"]] == ["alert"]


def test_duplicate_item_names_keep_the_first_and_skip_later(project: StoryProjectBuilder) -> None:
    first = _parsed(project, "src/stories/Button.stories.tsx", "Button")
    second = _parsed(project, "src/stories/legacy/Button.stories.tsx", "Button")
    card = _parsed(project, "src/stories/Card.stories.tsx", "Card")

    registry = RegistryAssembler(project.config()).assemble_registry([first, second, card])

    assert [item["name"] for item in registry["items"]] == ["button", "card"]


def test_item_named_registry_is_rejected(project: StoryProjectBuilder) -> None:
    assembler = RegistryAssembler(project.config())
    reserved = _parsed(project, "src/Registry.stories.tsx", "Registry")

    with pytest.raises(RegistryValidationError) as excinfo:
        assembler.assemble_item(reserved)

    assert excinfo.value.code == "REGISTRY_ITEM_VALIDATION_ERROR"
    registry = assembler.assemble_registry([reserved, _parsed(project, "src/Badge.stories.tsx", "Badge")])
    assert [item["name"] for item in registry["items"]] == ["badge"]


def test_registry_dependencies_skip_names_inside_the_item_name(project: StoryProjectBuilder) -> None:
    parsed = _parsed(
        project,
        "src/IconButton.stories.tsx",
        "IconButton",
        raw_imports=["./icon-button", "@/components/ui/tooltip"],
    )

    item = RegistryAssembler(project.config()).assemble_item(parsed)

    assert item["registryDependencies"] == ["tooltip"]


@pytest.mark.parametrize(
    ("pattern", "path", "expected"),
    [
        ("src/*.stories.tsx", "src/Button.stories.tsx", True),
        ("src/*.stories.tsx", "src/forms/Input.stories.tsx", False),
        ("src/**/*.stories.tsx", "src/forms/deep/Input.stories.tsx", True),
        ("**/ui/**", "src/ui/Chip.stories.tsx", True),
        ("**/ui/**", "ui/Chip.stories.tsx", True),
        ("**/ui/**", "src/build/Chip.stories.tsx", False),
        ("src/?.stories.tsx", "src/A.stories.tsx", True),
        ("src/?.stories.tsx", "src/AB.stories.tsx", False),
    ],
)
def test_rule_patterns_keep_single_star_within_a_segment(pattern: str, path: str, expected: bool) -> None:
    assert rule_matches(pattern, path) is expected


def test_write_registry_and_items(project: StoryProjectBuilder) -> None:
    config = project.config()
    assembler = RegistryAssembler(config)
    registry = assembler.assemble_registry([_parsed(project, "src/Avatar.stories.tsx", "Avatar")])

    registry_file = assembler.write_registry(registry)
    [item_file] = assembler.write_items(registry["items"])

    assert registry_file == config.output.registry_path / "registry.json"
    assert json.loads(registry_file.read_text(encoding="utf-8"))["items"][0]["name"] == "avatar"
    assert item_file.name == "avatar.json"
    assert item_file.read_text(encoding="utf-8").startswith('{\n  "$schema"')
