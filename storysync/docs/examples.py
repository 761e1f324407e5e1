"""Usage snippets and Markdown pages for registry items."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping

from jinja2 import Environment, FileSystemLoader

from ..models import Opaque, ParsedStoryFile, Value
from ..parser import to_jsonable
from ..utils import start_case, write_json_file

_SOURCE_SUFFIX = re.compile(r"\.(tsx?|jsx?)$")


@dataclass
class ComponentDocumentation:
    """Everything needed to render one component page."""

    title: str
    description: str
    installation: List[str] = field(default_factory=list)
    imports: List[str] = field(default_factory=list)
    examples: List[str] = field(default_factory=list)


class ExampleGenerator:
    """Turns story args into JSX snippets and renders documentation pages."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir or Path(__file__).with_name("templates")
        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def generate_examples(self, parsed: ParsedStoryFile) -> List[str]:
        """Basic usage from meta args, then one example per story."""
        if not parsed.component_name:
            return []

        meta_args = parsed.meta.args or {}
        examples = [jsx_element(parsed.component_name, meta_args)]
        for story_name, story in parsed.stories.items():
            merged: Dict[str, Value] = {**meta_args, **(story.args or {})}
            comment = f"// {start_case(story_name)} example"
            examples.append(f"{comment}\n{jsx_element(parsed.component_name, merged)}")
        return examples

    def installation_instructions(self, item: Mapping[str, Any]) -> List[str]:
        instructions = [f"npx shadcn@latest add {item['name']}"]
        dependencies = item.get("dependencies") or []
        if dependencies:
            instructions.append(f"npm install {' '.join(dependencies)}")
        return instructions

    def import_statements(self, item: Mapping[str, Any]) -> List[str]:
        imports: List[str] = []
        files = item.get("files") or []
        component_file = next(
            (entry for entry in files if entry.get("type") in {"registry:component", "registry:ui"}),
            None,
        )
        if component_file is not None:
            name = _pascal_from_path(component_file["path"])
            imports.append(f'import {{ {name} }} from "@/components/ui/{item["name"]}"')
        for entry in files:
            if entry.get("type") == "registry:hook":
                hook = _hook_from_path(entry["path"])
                imports.append(f'import {{ {hook} }} from "@/hooks/{hook}"')
        return imports

    def documentation(self, parsed: ParsedStoryFile, item: Mapping[str, Any]) -> ComponentDocumentation:
        return ComponentDocumentation(
            title=item.get("title", parsed.component_name),
            description=item.get("description", ""),
            installation=self.installation_instructions(item),
            imports=self.import_statements(item),
            examples=self.generate_examples(parsed),
        )

    def render_markdown(self, documentation: ComponentDocumentation) -> str:
        template = self._env.get_template("component.md.j2")
        return template.render(doc=documentation).strip() + "\n"

    def write_documentation(
        self,
        parsed: ParsedStoryFile,
        item: Mapping[str, Any],
        directory: Path,
    ) -> List[Path]:
        """Write ``<name>.md`` and ``<name>.examples.json`` under ``directory``."""
        documentation = self.documentation(parsed, item)
        directory.mkdir(parents=True, exist_ok=True)
        markdown_path = directory / f"{item['name']}.md"
        markdown_path.write_text(self.render_markdown(documentation), encoding="utf-8")
        json_path = directory / f"{item['name']}.examples.json"
        write_json_file(
            json_path,
            {
                "title": documentation.title,
                "description": documentation.description,
                "installation": documentation.installation,
                "imports": documentation.imports,
                "examples": documentation.examples,
            },
        )
        return [markdown_path, json_path]


def jsx_element(component_name: str, args: Mapping[str, Value]) -> str:
    props = " ".join(_render_prop(key, value) for key, value in args.items())
    return f"<{component_name}{' ' + props if props else ''} />"


def _render_prop(key: str, value: Value) -> str:
    if isinstance(value, str):
        return f'{key}="{value}"'
    if isinstance(value, bool):
        return key if value else f"{key}={{false}}"
    if isinstance(value, Opaque):
        return f"{key}={{{value.source}}}"
    return f"{key}={{{_json(value)}}}"


def _json(value: Value) -> str:
    return json.dumps(to_jsonable(value), ensure_ascii=False, separators=(",", ":"))


def _pascal_from_path(path: str) -> str:
    stem = _SOURCE_SUFFIX.sub("", path.rsplit("/", 1)[-1])
    return "".join(part[:1].upper() + part[1:] for part in stem.split("-"))


def _hook_from_path(path: str) -> str:
    stem = _SOURCE_SUFFIX.sub("", path.rsplit("/", 1)[-1])
    if not stem.startswith("use-"):
        return stem
    head, *rest = stem.split("-")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


__all__ = ["ComponentDocumentation", "ExampleGenerator", "jsx_element"]
