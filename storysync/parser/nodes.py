"""Closed set of syntax node categories the story parser understands."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from tree_sitter import Node


class NodeKind(Enum):
    IMPORT = "import"
    EXPORT = "export"
    VARIABLE_DECLARATION = "variable_declaration"
    FUNCTION_DECLARATION = "function_declaration"
    EXPRESSION_STATEMENT = "expression_statement"
    ASSIGNMENT = "assignment"
    CALL = "call"
    MEMBER = "member"
    IDENTIFIER = "identifier"
    STRING = "string"
    TEMPLATE = "template"
    NUMBER = "number"
    TRUE = "true"
    FALSE = "false"
    NULL = "null"
    UNARY = "unary"
    ARRAY = "array"
    OBJECT = "object"
    FUNCTION = "function"
    WRAPPER = "wrapper"
    COMMENT = "comment"
    OTHER = "other"


_KIND_BY_TYPE: Dict[str, NodeKind] = {
    "import_statement": NodeKind.IMPORT,
    "export_statement": NodeKind.EXPORT,
    "lexical_declaration": NodeKind.VARIABLE_DECLARATION,
    "variable_declaration": NodeKind.VARIABLE_DECLARATION,
    "function_declaration": NodeKind.FUNCTION_DECLARATION,
    "expression_statement": NodeKind.EXPRESSION_STATEMENT,
    "assignment_expression": NodeKind.ASSIGNMENT,
    "call_expression": NodeKind.CALL,
    "member_expression": NodeKind.MEMBER,
    "identifier": NodeKind.IDENTIFIER,
    "string": NodeKind.STRING,
    "template_string": NodeKind.TEMPLATE,
    "number": NodeKind.NUMBER,
    "true": NodeKind.TRUE,
    "false": NodeKind.FALSE,
    "null": NodeKind.NULL,
    "unary_expression": NodeKind.UNARY,
    "array": NodeKind.ARRAY,
    "object": NodeKind.OBJECT,
    "arrow_function": NodeKind.FUNCTION,
    "function_expression": NodeKind.FUNCTION,
    "function": NodeKind.FUNCTION,
    "generator_function": NodeKind.FUNCTION,
    "as_expression": NodeKind.WRAPPER,
    "satisfies_expression": NodeKind.WRAPPER,
    "parenthesized_expression": NodeKind.WRAPPER,
    "non_null_expression": NodeKind.WRAPPER,
    "comment": NodeKind.COMMENT,
}


def classify(node: Node) -> NodeKind:
    """Map a tree-sitter node onto its category; unknown shapes are ``OTHER``."""
    return _KIND_BY_TYPE.get(node.type, NodeKind.OTHER)


def node_text(node: Node, source_bytes: bytes) -> str:
    return source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def peel(node: Optional[Node]) -> Optional[Node]:
    """Strip ``as``/``satisfies``/parentheses/non-null wrappers around an expression."""
    while node is not None and classify(node) is NodeKind.WRAPPER:
        inner = node.named_children[0] if node.named_children else None
        if inner is None:
            break
        node = inner
    return node


__all__ = ["NodeKind", "classify", "node_text", "peel"]
