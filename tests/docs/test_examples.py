"""Tests for storysync.docs.examples."""

from __future__ import annotations

import json
from pathlib import Path

from storysync.docs import ComponentDocumentation, ExampleGenerator, jsx_element
from storysync.models import MetaRecord, Opaque, ParsedStoryFile, StoryRecord

BUTTON_ITEM = {
    "name": "button",
    "type": "registry:ui",
    "title": "Button",
    "description": "A clickable button.",
    "dependencies": ["@radix-ui/react-slot", "clsx"],
    "files": [
        {"path": "registry/default/button/button.tsx", "type": "registry:ui"},
        {"path": "registry/default/button/use-press-state.ts", "type": "registry:hook"},
    ],
}


def _parsed() -> ParsedStoryFile:
    return ParsedStoryFile(
        file_path="src/stories/Button.stories.tsx",
        meta=MetaRecord(title="Components/Button", args={"size": "md"}),
        stories={
            "Primary": StoryRecord(args={"variant": "primary"}),
            "WithIcon": StoryRecord(args={"size": "lg", "disabled": True}),
        },
        raw_imports=["./Button"],
        component_name="Button",
        component_path="./Button",
    )


def test_jsx_element_renders_props_by_value_kind() -> None:
    element = jsx_element(
        "Button",
        {
            "label": "Save",
            "disabled": True,
            "loading": False,
            "count": 3,
            "items": [1, "two"],
            "onClick": Opaque("() => save()"),
        },
    )

    assert element == (
        '<Button label="Save" disabled loading={false} count={3} items={[1,"two"]} onClick={() => save()} />'
    )
    assert jsx_element("Divider", {}) == "<Divider />"


def test_generate_examples_starts_with_meta_args_then_stories() -> None:
    examples = ExampleGenerator().generate_examples(_parsed())

    assert examples == [
        '<Button size="md" />',
        '// Primary example\n<Button size="md" variant="primary" />',
        '// With Icon example\n<Button size="lg" disabled />',
    ]


def test_generate_examples_without_component_is_empty() -> None:
    parsed = _parsed()
    parsed.component_name = ""

    assert ExampleGenerator().generate_examples(parsed) == []


def test_installation_and_imports() -> None:
    generator = ExampleGenerator()

    assert generator.installation_instructions(BUTTON_ITEM) == [
        "npx shadcn@latest add button",
        "npm install @radix-ui/react-slot clsx",
    ]
    assert generator.installation_instructions({"name": "card"}) == ["npx shadcn@latest add card"]
    assert generator.import_statements(BUTTON_ITEM) == [
        'import { Button } from "@/components/ui/button"',
        'import { usePressState } from "@/hooks/usePressState"',
    ]


def test_render_markdown_sections() -> None:
    documentation = ComponentDocumentation(
        title="Button",
        description="A clickable button.",
        installation=["npx shadcn@latest add button"],
        imports=['import { Button } from "@/components/ui/button"'],
        examples=["<Button />"],
    )

    markdown = ExampleGenerator().render_markdown(documentation)

    assert markdown.startswith("# Button\n\nA clickable button.\n")
    assert "## Installation\n\n```bash\nnpx shadcn@latest add button\n```" in markdown
    assert '## Usage\n\n```tsx\nimport { Button } from "@/components/ui/button"\n```' in markdown
    assert "## Examples" in markdown
    assert "```tsx\n<Button />\n```" in markdown
    assert markdown.endswith("```\n")


def test_render_markdown_omits_empty_sections() -> None:
    markdown = ExampleGenerator().render_markdown(
        ComponentDocumentation(title="Card", description="", installation=["npx shadcn@latest add card"])
    )

    assert "## Usage" not in markdown
    assert "## Examples" not in markdown


def test_write_documentation(tmp_path: Path) -> None:
    paths = ExampleGenerator().write_documentation(_parsed(), BUTTON_ITEM, tmp_path / "examples")

    assert [path.name for path in paths] == ["button.md", "button.examples.json"]
    payload = json.loads(paths[1].read_text(encoding="utf-8"))
    assert payload["title"] == "Button"
    assert payload["description"] == "A clickable button."
    assert payload["examples"][0] == '<Button size="md" />'
    assert paths[0].read_text(encoding="utf-8").startswith("# Button")
