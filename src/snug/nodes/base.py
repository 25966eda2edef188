"""Base node class for the snug template tree."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Node:
    """Base class for all template nodes.

    All nodes track their source location for error reporting.
    Nodes are immutable so a parsed template can be shared between threads.

    """

    lineno: int
    col_offset: int
