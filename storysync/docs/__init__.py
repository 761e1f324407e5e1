"""Usage examples and Markdown documentation for registry items."""

from .examples import ComponentDocumentation, ExampleGenerator, jsx_element

__all__ = ["ComponentDocumentation", "ExampleGenerator", "jsx_element"]
