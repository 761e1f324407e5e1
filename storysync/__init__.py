"""Convert component story files into an installable component registry."""

__version__ = "0.1.0"
