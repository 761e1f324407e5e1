"""Story file parsing: syntax-tree walking and value extraction."""

from .heuristics import UNKNOWN_COMPONENT, guess_component_name, guess_component_path
from .story_parser import StoryParser
from .values import ValueExtractor, to_jsonable, value_text

__all__ = [
    "StoryParser",
    "UNKNOWN_COMPONENT",
    "ValueExtractor",
    "guess_component_name",
    "guess_component_path",
    "to_jsonable",
    "value_text",
]
