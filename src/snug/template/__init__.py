"""snug Template package: compiled template objects ready for rendering."""

from snug.template.core import Template

__all__ = ["Template"]
