"""snug Environment: configuration, template loading and caching.

The Environment is the entry point for rendering. It owns the loader, the
globals shared by every render, and an LRU cache of compiled templates.

Compilation Pipeline:
    ```
    source ─► Lexer ─► Parser ─► Compiler ─► Template
              tokens   tree      code object
    ```
The Compiler resolves pipe-block indentation before it generates code, so a
cached Template only realigns text at render time.

Thread-Safety:
- ``globals`` is replaced, never mutated, by ``add_global()``
- the template cache is guarded by a lock
- compiled Templates are immutable

"""

from __future__ import annotations

import logging
import re
import threading
from collections import OrderedDict
from typing import TYPE_CHECKING, Any

from snug.compiler import Compiler
from snug.environment.exceptions import TemplateNotFoundError
from snug.lexer import tokenize
from snug.parser import Parser
from snug.render_context import DEFAULT_MAX_INCLUDE_DEPTH
from snug.template import Template

if TYPE_CHECKING:
    from snug.environment.loaders import Loader

logger = logging.getLogger(__name__)

DEFAULT_CACHE_SIZE = 400

_TRAILING_LINE = re.compile(r"\n[ \t]*\Z")


class Environment:
    """Central configuration and template factory.

    Attributes:
        loader: Where ``get_template()`` and ``include()`` find templates
        globals: Bindings available in every render (lowest precedence)
        keep_trailing_newline: When False, one trailing ``\\n[ \\t]*`` is
            removed from every source before compiling, so a template
            written as an indented heredoc does not end in a stray line
        max_include_depth: Limit on nested ``include()`` calls
        cache_size: Number of loaded templates kept; 0 disables caching

    Example:
        >>> from snug import DictLoader, Environment
        >>> env = Environment(loader=DictLoader({"row": "<td><%= cell %></td>"}))
        >>> env.render("row", cell=1)
        '<td>1</td>'

    """

    def __init__(
        self,
        loader: Loader | None = None,
        globals: dict[str, Any] | None = None,
        keep_trailing_newline: bool = True,
        max_include_depth: int = DEFAULT_MAX_INCLUDE_DEPTH,
        cache_size: int = DEFAULT_CACHE_SIZE,
    ):
        self.loader = loader
        self.globals: dict[str, Any] = dict(globals or {})
        self.keep_trailing_newline = keep_trailing_newline
        self.max_include_depth = max_include_depth
        self.cache_size = cache_size
        self._cache: OrderedDict[str, Template] = OrderedDict()
        self._cache_lock = threading.Lock()

    def add_global(self, name: str, value: Any) -> None:
        """Bind ``name`` in every future render (copy-on-write)."""
        new = self.globals.copy()
        new[name] = value
        self.globals = new

    def from_string(self, source: str, name: str | None = None) -> Template:
        """Compile a template from a source string. Not cached.

        The Template holds only a weak reference to this Environment, so keep
        the Environment alive while rendering:
        ``Environment().from_string(s).render()`` raises RuntimeError.

        Raises:
            TemplateSyntaxError: If the source does not compile.
        """
        return self._compile(source, name, None)

    def get_template(self, name: str) -> Template:
        """Load, compile and cache a template by name.

        Raises:
            TemplateNotFoundError: If no loader is configured or the loader
                does not know ``name``.
            TemplateSyntaxError: If the source does not compile.
        """
        with self._cache_lock:
            cached = self._cache.get(name)
            if cached is not None:
                self._cache.move_to_end(name)
                return cached

        if self.loader is None:
            raise TemplateNotFoundError(f"Template '{name}' not found (no loader configured)")

        logger.debug(f"Template cache miss: {name}")
        source, filename = self.loader.get_source(name)
        template = self._compile(source, name, filename)

        if self.cache_size > 0:
            with self._cache_lock:
                self._cache[name] = template
                self._cache.move_to_end(name)
                while len(self._cache) > self.cache_size:
                    self._cache.popitem(last=False)
        return template

    def render(self, template_name: str, *args: Any, **kwargs: Any) -> str:
        """Shortcut for ``get_template(template_name).render(...)``."""
        return self.get_template(template_name).render(*args, **kwargs)

    def list_templates(self) -> list[str]:
        """Names the loader can enumerate."""
        if self.loader is None:
            return []
        return self.loader.list_templates()

    def clear_cache(self) -> None:
        """Drop every cached template."""
        with self._cache_lock:
            self._cache.clear()

    def cache_info(self) -> dict[str, int]:
        """Current cache occupancy."""
        with self._cache_lock:
            return {"size": len(self._cache), "max_size": self.cache_size}

    def _compile(self, source: str, name: str | None, filename: str | None) -> Template:
        if not self.keep_trailing_newline:
            source = _TRAILING_LINE.sub("", source, count=1)

        tokens = tokenize(source, filename=filename)
        tree = Parser(tokens, name=name, filename=filename, source=source).parse()
        code = Compiler(name=name, filename=filename, source=source).compile(tree)
        return Template(self, code, name, filename, source=source)

    def __repr__(self) -> str:
        return f"<Environment loader={type(self.loader).__name__} cache_size={self.cache_size}>"
