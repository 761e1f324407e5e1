"""Tree-sitter powered parser for component story files."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from ..errors import BatchFailedError, ParseError
from ..frameworks import component_dependencies
from ..logging import get_logger
from ..models import BatchResult, ItemFailure, MetaRecord, ParsedStoryFile, StoryRecord, Value
from ..utils import normalize_path
from .heuristics import UNKNOWN_COMPONENT, guess_component_name, guess_component_path
from .nodes import NodeKind, classify, peel
from .values import ValueExtractor

_TYPESCRIPT_SUFFIXES = {".ts", ".mts", ".cts"}


class _StoryFileVisitor:
    """Pre-order walk collecting imports, top-level bindings and exports."""

    def __init__(self, source_bytes: bytes) -> None:
        self.extractor = ValueExtractor(source_bytes)
        self.imports: List[str] = []
        self.bindings: Dict[str, Node] = {}
        self.functions: Dict[str, Node] = {}
        self.exported: List[Tuple[str, str]] = []
        self.default_node: Optional[Node] = None
        self.default_local: Optional[str] = None
        self.assignments: Dict[str, Dict[str, Node]] = {}

    def visit(self, node: Node, top_level: bool = False) -> None:
        kind = classify(node)
        if kind is NodeKind.IMPORT:
            self._visit_import(node)
        elif kind is NodeKind.CALL:
            self._visit_call(node)
        elif top_level and kind is NodeKind.EXPORT:
            self._visit_export(node)
        elif top_level and kind is NodeKind.VARIABLE_DECLARATION:
            self._record_bindings(node)
        elif top_level and kind is NodeKind.FUNCTION_DECLARATION:
            self._record_function(node)
        elif top_level and kind is NodeKind.EXPRESSION_STATEMENT:
            self._visit_statement(node)

        child_top_level = node.type == "program"
        for child in node.children:
            self.visit(child, child_top_level)

    def _visit_import(self, node: Node) -> None:
        source = node.child_by_field_name("source")
        if source is not None and classify(source) is NodeKind.STRING:
            self.imports.append(self.extractor.string_literal(source))

    def _visit_call(self, node: Node) -> None:
        function = node.child_by_field_name("function")
        if function is None or function.type != "import":
            return
        arguments = node.child_by_field_name("arguments")
        if arguments is None:
            return
        literal = [child for child in arguments.named_children if classify(child) is not NodeKind.COMMENT]
        if not literal:
            return
        value = self.extractor.extract(literal[0])
        if classify(literal[0]) in {NodeKind.STRING, NodeKind.TEMPLATE} and isinstance(value, str):
            self.imports.append(value)

    def _visit_export(self, node: Node) -> None:
        if node.child_by_field_name("source") is not None:
            return
        is_default = any(child.type == "default" for child in node.children)
        declaration = node.child_by_field_name("declaration")
        if is_default:
            self.default_node = node.child_by_field_name("value") or declaration
            return
        if declaration is not None:
            declaration_kind = classify(declaration)
            if declaration_kind is NodeKind.VARIABLE_DECLARATION:
                for name in self._record_bindings(declaration):
                    self.exported.append((name, name))
            elif declaration_kind is NodeKind.FUNCTION_DECLARATION:
                name = self._record_function(declaration)
                if name:
                    self.exported.append((name, name))
            return
        for clause in node.named_children:
            if clause.type != "export_clause":
                continue
            for specifier in clause.named_children:
                if specifier.type != "export_specifier":
                    continue
                name_node = specifier.child_by_field_name("name")
                alias_node = specifier.child_by_field_name("alias")
                if name_node is None:
                    continue
                local = self.extractor.text(name_node)
                exported = self.extractor.text(alias_node) if alias_node is not None else local
                if exported == "default":
                    self.default_local = local
                else:
                    self.exported.append((exported, local))

    def _record_bindings(self, declaration: Node) -> List[str]:
        names: List[str] = []
        for declarator in declaration.named_children:
            if declarator.type != "variable_declarator":
                continue
            name_node = declarator.child_by_field_name("name")
            value_node = declarator.child_by_field_name("value")
            if name_node is None or name_node.type != "identifier" or value_node is None:
                continue
            name = self.extractor.text(name_node)
            self.bindings.setdefault(name, value_node)
            names.append(name)
        return names

    def _record_function(self, declaration: Node) -> Optional[str]:
        name_node = declaration.child_by_field_name("name")
        if name_node is None:
            return None
        name = self.extractor.text(name_node)
        self.functions.setdefault(name, declaration)
        return name

    def _visit_statement(self, node: Node) -> None:
        expression = node.named_children[0] if node.named_children else None
        if expression is None or classify(expression) is not NodeKind.ASSIGNMENT:
            return
        left = expression.child_by_field_name("left")
        right = expression.child_by_field_name("right")
        if left is None or right is None or classify(left) is not NodeKind.MEMBER:
            return
        target = left.child_by_field_name("object")
        prop = left.child_by_field_name("property")
        if target is None or prop is None or target.type != "identifier":
            return
        story_fields = self.assignments.setdefault(self.extractor.text(target), {})
        story_fields[self.extractor.text(prop)] = right


class StoryParser:
    """Parses story files into :class:`ParsedStoryFile` records."""

    def __init__(self) -> None:
        self._parsers: Dict[str, Parser] = {}
        self.logger = get_logger("parser")

    def parse_story_file(self, file_path: str | Path) -> ParsedStoryFile:
        """Read and parse a single story file."""
        path = Path(file_path).expanduser().resolve()
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ParseError(f"Failed to parse story file: {exc}", file=str(path)) from exc
        return self.parse_source(str(path), source)

    def parse_story_files(self, file_paths: Iterable[str | Path]) -> BatchResult[ParsedStoryFile]:
        """Parse every path, isolating per-file failures.

        Raises :class:`BatchFailedError` only when at least one file failed and
        none succeeded.
        """
        result: BatchResult[ParsedStoryFile] = BatchResult()
        for file_path in file_paths:
            try:
                result.successes.append(self.parse_story_file(file_path))
            except ParseError as exc:
                self.logger.warning("Failed to parse %s: %s", file_path, exc)
                result.failures.append(ItemFailure(item=str(file_path), error=exc))

        if result.failures and not result.successes:
            messages = "; ".join(str(error) for error in result.errors)
            raise BatchFailedError(
                f"Failed to parse any story files. Errors: {messages}",
                result.errors,
                code="PARSE_ALL_FAILED",
            )
        return result

    def parse_source(self, file_path: str, source_text: str) -> ParsedStoryFile:
        """Parse already-loaded source text attributed to ``file_path``."""
        visitor = self._walk(file_path, source_text)

        meta_node, meta_local = _resolve_meta(visitor)
        if meta_node is None:
            raise ParseError(
                "No default export (meta) found in story file",
                code="NO_META_EXPORT",
                file=file_path,
            )
        meta = _build_meta(visitor.extractor.extract(meta_node))
        stories = self._collect_stories(visitor, meta_local, file_path)

        component_name = ""
        component_path = ""
        if meta.component is not None:
            component_name = guess_component_name(meta.component) or UNKNOWN_COMPONENT
            component_path = guess_component_path(visitor.imports, component_name) or ""

        return ParsedStoryFile(
            file_path=normalize_path(file_path),
            meta=meta,
            stories=stories,
            raw_imports=list(visitor.imports),
            component_name=component_name,
            component_path=component_path,
            dependencies=component_dependencies(visitor.imports),
        )

    def collect_imports(self, file_path: str, source_text: str) -> List[str]:
        """Return static and literal dynamic import specifiers in source order."""
        return list(self._walk(file_path, source_text).imports)

    def _walk(self, file_path: str, source_text: str) -> _StoryFileVisitor:
        source_bytes = source_text.encode("utf-8")
        tree = self._parser_for(file_path).parse(source_bytes)
        if tree.root_node.has_error:
            self.logger.debug("Syntax errors in %s; using the recovered tree", file_path)
        visitor = _StoryFileVisitor(source_bytes)
        visitor.visit(tree.root_node)
        return visitor

    def _parser_for(self, file_path: str) -> Parser:
        grammar = "typescript" if Path(file_path).suffix.lower() in _TYPESCRIPT_SUFFIXES else "tsx"
        parser = self._parsers.get(grammar)
        if parser is not None:
            return parser
        if grammar == "typescript":
            language = Language(tree_sitter_typescript.language_typescript())
        else:
            language = Language(tree_sitter_typescript.language_tsx())
        parser = Parser(language)
        self._parsers[grammar] = parser
        return parser

    def _collect_stories(
        self, visitor: _StoryFileVisitor, meta_local: Optional[str], file_path: str
    ) -> Dict[str, StoryRecord]:
        stories: Dict[str, StoryRecord] = {}
        for exported, local in visitor.exported:
            if local == meta_local:
                continue
            story = _story_for(visitor, local)
            if story is None:
                self.logger.debug("Skipping export %s in %s: not a story shape", exported, file_path)
                continue
            stories[exported] = story
        return stories


def _resolve_meta(visitor: _StoryFileVisitor) -> Tuple[Optional[Node], Optional[str]]:
    has_default = visitor.default_node is not None or visitor.default_local is not None
    if not has_default:
        return None, None

    local = visitor.default_local
    default_node = peel(visitor.default_node)
    if default_node is not None:
        kind = classify(default_node)
        if kind is NodeKind.OBJECT:
            return default_node, None
        if kind is NodeKind.IDENTIFIER:
            local = visitor.extractor.text(default_node)

    if local is not None:
        candidate = peel(visitor.bindings.get(local))
        if candidate is not None and classify(candidate) is NodeKind.OBJECT:
            return candidate, local

    for name, value in visitor.bindings.items():
        if "meta" not in name.lower():
            continue
        candidate = peel(value)
        if candidate is not None and classify(candidate) is NodeKind.OBJECT:
            return candidate, name
    return None, None


def _story_for(visitor: _StoryFileVisitor, local: str) -> Optional[StoryRecord]:
    initializer = peel(visitor.bindings.get(local))
    declaration = visitor.functions.get(local)
    extractor = visitor.extractor

    if initializer is not None:
        kind = classify(initializer)
        if kind is NodeKind.OBJECT:
            story = StoryRecord()
            extracted = extractor.extract(initializer)
            if isinstance(extracted, dict):
                for key, value in extracted.items():
                    _apply_story_field(story, key, value)
        elif kind in {NodeKind.FUNCTION, NodeKind.CALL}:
            story = StoryRecord(render=extractor.opaque(initializer))
        else:
            return None
    elif declaration is not None:
        story = StoryRecord(render=extractor.opaque(declaration))
    else:
        return None

    for key, node in visitor.assignments.get(local, {}).items():
        _apply_story_field(story, key, extractor.extract(node))
    return story


def _apply_story_field(story: StoryRecord, key: str, value: Value) -> None:
    if key in {"name", "storyName"}:
        if isinstance(value, str):
            story.name = value
    elif key == "args":
        story.args = _as_mapping(value)
    elif key == "parameters":
        story.parameters = _as_mapping(value)
    elif key == "decorators":
        story.decorators = value
    elif key == "render":
        story.render = value
    elif key == "play":
        story.play = value
    elif key == "tags":
        story.tags = _as_str_list(value)


def _build_meta(extracted: Value) -> MetaRecord:
    fields = extracted if isinstance(extracted, dict) else {}
    title = fields.get("title")
    return MetaRecord(
        title=title if isinstance(title, str) else None,
        component=fields.get("component"),
        decorators=fields.get("decorators"),
        parameters=_as_mapping(fields.get("parameters")),
        args=_as_mapping(fields.get("args")),
        arg_types=_as_mapping(fields.get("argTypes")),
        tags=_as_str_list(fields.get("tags")),
    )


def _as_mapping(value: Value) -> Optional[Dict[str, Value]]:
    return value if isinstance(value, dict) else None


def _as_str_list(value: Value) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, str)]


__all__ = ["StoryParser"]
