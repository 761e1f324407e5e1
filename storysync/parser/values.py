"""Conversion of expression nodes into plain values.

Literals, arrays and object literals become ordinary Python values
(``str``/``int``/``float``/``bool``/``None``/``list``/``dict``). Every other
expression shape, including functions, JSX, member access, calls and bare
identifiers, becomes an :class:`~storysync.models.Opaque` holding the verbatim
source text. Opaque values are never evaluated or inspected further.
"""

from __future__ import annotations

import json
import re
from typing import Callable, Dict, List, Optional

from tree_sitter import Node

from ..models import Opaque, Value
from .nodes import NodeKind, classify, node_text

_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}
_HEX_ESCAPE = re.compile(r"\\(?:x([0-9a-fA-F]{2})|u\{([0-9a-fA-F]+)\}|u([0-9a-fA-F]{4}))")


class ValueExtractor:
    """Walks a single expression node and returns its value model."""

    def __init__(self, source_bytes: bytes) -> None:
        self._source = source_bytes
        self._handlers: Dict[NodeKind, Callable[[Node], Value]] = {
            NodeKind.STRING: self._string,
            NodeKind.TEMPLATE: self._template,
            NodeKind.NUMBER: self._number,
            NodeKind.TRUE: lambda node: True,
            NodeKind.FALSE: lambda node: False,
            NodeKind.NULL: lambda node: None,
            NodeKind.UNARY: self._unary,
            NodeKind.ARRAY: self._array,
            NodeKind.OBJECT: self._object,
        }

    def extract(self, node: Node) -> Value:
        handler = self._handlers.get(classify(node))
        if handler is None:
            return self.opaque(node)
        return handler(node)

    def opaque(self, node: Node) -> Opaque:
        return Opaque(node_text(node, self._source))

    def text(self, node: Node) -> str:
        return node_text(node, self._source)

    def string_literal(self, node: Node) -> str:
        """Decode a string literal node, resolving escape sequences."""
        parts: List[str] = []
        for child in node.children:
            if child.type == "string_fragment":
                parts.append(self.text(child))
            elif child.type == "escape_sequence":
                parts.append(_decode_escape(self.text(child)))
        return "".join(parts)

    def _string(self, node: Node) -> Value:
        return self.string_literal(node)

    def _template(self, node: Node) -> Value:
        if any(child.type == "template_substitution" for child in node.children):
            return self.opaque(node)
        return self.string_literal(node)

    def _number(self, node: Node) -> Value:
        number = _parse_number(self.text(node))
        if number is None:
            return self.opaque(node)
        return number

    def _unary(self, node: Node) -> Value:
        operator = node.child_by_field_name("operator")
        argument = node.child_by_field_name("argument")
        if operator is None or argument is None or classify(argument) is not NodeKind.NUMBER:
            return self.opaque(node)
        number = _parse_number(self.text(argument))
        op = self.text(operator)
        if number is None or op not in {"-", "+"}:
            return self.opaque(node)
        return -number if op == "-" else number

    def _array(self, node: Node) -> Value:
        items: List[Value] = []
        for child in node.named_children:
            if classify(child) is NodeKind.COMMENT:
                continue
            items.append(self.extract(child))
        return items

    def _object(self, node: Node) -> Value:
        mapping: Dict[str, Value] = {}
        for child in node.named_children:
            if child.type == "pair":
                key = self.property_key(child.child_by_field_name("key"))
                value_node = child.child_by_field_name("value")
                if key is None or value_node is None:
                    continue
                mapping[key] = self.extract(value_node)
            elif child.type == "shorthand_property_identifier":
                mapping[self.text(child)] = self.opaque(child)
            elif child.type == "method_definition":
                key = self.property_key(child.child_by_field_name("name"))
                if key is not None:
                    mapping[key] = self.opaque(child)
        return mapping

    def property_key(self, node: Optional[Node]) -> Optional[str]:
        """Return the key text for identifier or string-literal property names."""
        if node is None:
            return None
        if node.type == "property_identifier":
            return self.text(node)
        if node.type == "string":
            return self.string_literal(node)
        return None


def _decode_escape(sequence: str) -> str:
    body = sequence[1:]
    if not body:
        return ""
    if body in _SIMPLE_ESCAPES:
        return _SIMPLE_ESCAPES[body]
    match = _HEX_ESCAPE.fullmatch(sequence)
    if match:
        digits = next(group for group in match.groups() if group)
        try:
            return chr(int(digits, 16))
        except (ValueError, OverflowError):
            return sequence
    if body.startswith(("\r\n", "\n", "\r")):
        return ""
    return body


def _parse_number(text: str) -> Optional[int | float]:
    cleaned = text.replace("_", "")
    if cleaned.endswith("n"):
        return None
    lower = cleaned.lower()
    try:
        if lower.startswith(("0x", "0o", "0b")):
            return int(lower, 0)
        if "." in lower or "e" in lower:
            return float(cleaned)
        return int(cleaned, 10)
    except ValueError:
        return None


def to_jsonable(value: Value) -> object:
    """Return a JSON-serialisable copy of ``value``; Opaque becomes its source text."""
    if isinstance(value, Opaque):
        return value.source
    if isinstance(value, list):
        return [to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    return value


def value_text(value: Value) -> str:
    """Textual form of a value, used by best-effort name heuristics."""
    if isinstance(value, Opaque):
        return value.source
    if isinstance(value, str):
        return value
    return json.dumps(to_jsonable(value))


__all__ = ["ValueExtractor", "to_jsonable", "value_text"]
