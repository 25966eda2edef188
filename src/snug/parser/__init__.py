"""Parser for snug templates: tokens → immutable template tree."""

from snug.parser.core import Parser
from snug.parser.errors import ParseError

__all__ = ["ParseError", "Parser"]
