"""Tests for storysync.orchestrator."""

from __future__ import annotations

import json
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from storysync.config import ConfigError, load_config
from storysync.errors import BatchFailedError, StorySyncError
from storysync.orchestrator import SyncOrchestrator, initialize_project
from storysync.registry import REGISTRY_SCHEMA_URL
from storysync.utils import normalize_path
from tests._fixtures.story_builder import StoryProjectBuilder

BUTTON_STORY = """
import type { Meta, StoryObj } from "@storybook/react";
import { Button } from "../components/Button";

const meta: Meta<typeof Button> = {
  title: "Components/Button",
  component: Button,
  args: { size: "md" },
  parameters: { docs: { description: { component: "Triggers an action." } } },
};

export default meta;

export const Primary: StoryObj<typeof Button> = {
  args: { variant: "primary" },
};
"""

BUTTON_COMPONENT = """
import { clsx } from "clsx";

export interface ButtonProps {
  size?: string;
  variant?: string;
}

export const Button = (props: ButtonProps) => null;
"""

BROKEN_STORY = """
export const Orphan = {};
"""


class RecordingExampleGenerator:
    """Test double that records documentation requests."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, Path]] = []

    def write_documentation(self, parsed, item, directory: Path) -> list[Path]:  # pragma: no cover - simple recorder
        self.calls.append((parsed.component_name, item["name"], directory))
        return []


def _button_project(project: StoryProjectBuilder) -> None:
    project.write(
        {
            "src/stories/Button.stories.tsx": BUTTON_STORY,
            "src/components/Button.tsx": BUTTON_COMPONENT,
        }
    )


def test_sync_writes_registry_items_and_examples(project: StoryProjectBuilder) -> None:
    _button_project(project)

    result = SyncOrchestrator(project.config()).sync()

    assert result.success is True
    assert result.errors == []
    assert result.stats.files_processed == 1
    assert result.stats.components_generated == 1
    assert result.stats.errors_count == 0
    assert result.stats.duration >= 0

    registry_dir = project.path("registry")
    registry = json.loads((registry_dir / "registry.json").read_text(encoding="utf-8"))
    assert registry["$schema"] == REGISTRY_SCHEMA_URL
    assert registry["name"] == "my-components"
    [item] = registry["items"]
    assert item["name"] == "button"
    assert item["title"] == "Button"
    assert item["description"] == "Triggers an action."
    assert result.items == [item]

    assert json.loads((registry_dir / "button.json").read_text(encoding="utf-8")) == item
    markdown = (registry_dir / "examples" / "button.md").read_text(encoding="utf-8")
    assert markdown.startswith("# Button")
    assert '<Button size="md" variant="primary" />' in markdown


def test_sync_respects_generation_switches(project: StoryProjectBuilder) -> None:
    _button_project(project)
    config = project.config()
    config.generation.generate_individual_items = False
    generator = RecordingExampleGenerator()

    result = SyncOrchestrator(config, example_generator=generator).sync(generate_examples=False)

    assert result.success is True
    assert (project.path("registry") / "registry.json").exists()
    assert not (project.path("registry") / "button.json").exists()
    assert generator.calls == []


def test_sync_with_no_story_files_succeeds_with_nothing_written(project: StoryProjectBuilder) -> None:
    result = SyncOrchestrator(project.config()).sync()

    assert result.success is True
    assert result.registry is None
    assert result.stats.files_processed == 0
    assert result.stats.components_generated == 0
    assert not project.path("registry").exists()


def test_sync_reports_partial_parse_failures(project: StoryProjectBuilder) -> None:
    _button_project(project)
    project.write({"src/stories/Orphan.stories.tsx": BROKEN_STORY})

    result = SyncOrchestrator(project.config()).sync()

    assert result.success is True
    assert result.stats.files_processed == 1
    assert result.stats.errors_count == 1
    assert [error.code for error in result.errors] == ["NO_META_EXPORT"]


def test_sync_fails_when_every_story_fails(project: StoryProjectBuilder) -> None:
    project.write({"src/stories/Orphan.stories.tsx": BROKEN_STORY})

    result = SyncOrchestrator(project.config()).sync()

    assert result.success is False
    assert len(result.errors) == 1
    assert isinstance(result.errors[0], BatchFailedError)
    assert result.errors[0].code == "PARSE_ALL_FAILED"
    assert not (project.path("registry") / "registry.json").exists()


def test_sync_surfaces_circular_dependencies(project: StoryProjectBuilder) -> None:
    project.write(
        {
            "src/stories/Panel.stories.tsx": """
            import { Panel } from "./Panel";
            export default { component: Panel };
            export const Basic = {};
            """,
            "src/stories/Panel.tsx": 'import { layout } from "./layout";\nexport const Panel = () => null;\n',
            "src/stories/layout.ts": 'import { Panel } from "./Panel";\nexport const layout = {};\n',
        }
    )
    panel = normalize_path(project.path("src/stories/Panel.tsx"))
    layout = normalize_path(project.path("src/stories/layout.ts"))

    result = SyncOrchestrator(project.config()).sync()

    assert result.success is True
    assert result.cycles == [[panel, layout]]
    assert result.stats.warnings_count >= 1


def test_sync_keeps_other_items_when_names_collide(project: StoryProjectBuilder) -> None:
    story = """
    import { {name} } from "./{name}";
    export default { component: {name} };
    export const Default = {};
    """
    project.write(
        {
            "src/stories/Button.stories.tsx": story.replace("{name}", "Button"),
            "src/stories/legacy/Button.stories.tsx": story.replace("{name}", "Button"),
            "src/stories/Card.stories.tsx": story.replace("{name}", "Card"),
        }
    )

    result = SyncOrchestrator(project.config()).sync(generate_examples=False)

    assert result.success is True
    assert [item["name"] for item in result.items] == ["button", "card"]
    assert (project.path("registry") / "card.json").exists()


def test_incremental_sync_skips_unchanged_files(project: StoryProjectBuilder) -> None:
    _button_project(project)

    result = SyncOrchestrator(project.config()).sync(
        incremental=True, since=datetime.now() + timedelta(hours=1)
    )

    assert result.success is True
    assert result.stats.files_processed == 0
    assert not project.path("registry").exists()


def test_export_individual_items_to_custom_directory(project: StoryProjectBuilder) -> None:
    _button_project(project)
    target = project.path("out")

    result = SyncOrchestrator(project.config()).export(format="individual", output_path=target)

    assert result.success is True
    assert (target / "button.json").exists()
    assert not (target / "registry.json").exists()


def test_export_rejects_unknown_format(project: StoryProjectBuilder) -> None:
    with pytest.raises(StorySyncError) as excinfo:
        SyncOrchestrator(project.config()).export(format="zip")

    assert excinfo.value.code == "EXPORT_FAILED"


def test_export_wraps_pipeline_failures(project: StoryProjectBuilder) -> None:
    project.write({"src/stories/Orphan.stories.tsx": BROKEN_STORY})

    with pytest.raises(StorySyncError) as excinfo:
        SyncOrchestrator(project.config()).export()

    assert excinfo.value.code == "EXPORT_FAILED"
    assert isinstance(excinfo.value.__cause__, BatchFailedError)


def test_validate_reports_missing_storybook_path(project: StoryProjectBuilder) -> None:
    report = SyncOrchestrator(project.config()).validate()

    assert report.valid is False
    severities = {(issue.severity, issue.message.split(":")[0]) for issue in report.issues}
    assert ("error", "Storybook path does not exist") in severities
    assert ("warning", "No story files found with current pattern") in severities


def test_validate_flags_files_that_do_not_look_like_stories(project: StoryProjectBuilder) -> None:
    _button_project(project)
    project.write({"tsconfig.json": "{}", "src/stories/Plain.stories.ts": "export const value = 1;\n"})

    report = SyncOrchestrator(project.config()).validate()

    assert report.valid is True
    messages = [issue.message for issue in report.issues]
    assert "Found 2 story files" in messages
    flagged = [issue.file for issue in report.issues if issue.message.startswith("Story file may not")]
    assert flagged == [normalize_path(project.path("src/stories/Plain.stories.ts"))]


def test_initialize_project_writes_detected_structure(project: StoryProjectBuilder) -> None:
    project.write({"stories/.keep": "", "components/.keep": "", "tsconfig.json": "{}"})

    config_path = initialize_project(project.root, output_path="public/r")

    assert config_path == project.path("storysync.yml")
    config = load_config(config_path)
    assert config.input.storybook_path == project.path("stories")
    assert config.input.components_path == project.path("components")
    assert config.input.tsconfig_path == project.path("tsconfig.json")
    assert config.output.registry_path == project.path("public/r")


def test_initialize_project_refuses_to_overwrite_without_force(project: StoryProjectBuilder) -> None:
    initialize_project(project.root)

    with pytest.raises(ConfigError, match="already exists"):
        initialize_project(project.root)

    initialize_project(project.root, force=True, storybook_path="docs/stories")
    assert load_config(project.root).input.storybook_path == project.path("docs/stories")
