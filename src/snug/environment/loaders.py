"""Template loaders for the snug Environment.

Loaders provide template source to the Environment. They implement
``get_source(name)`` returning ``(source, filename)`` and
``list_templates()``.

Built-in Loaders:
- ``FileSystemLoader``: Load from filesystem directories
- ``DictLoader``: Load from an in-memory dictionary (tests, partials)
- ``ChoiceLoader``: Try multiple loaders in order
- ``FunctionLoader``: Wrap a callable as a loader

Custom Loaders:
Any object with the same two methods works:
    ```python
    class DatabaseLoader:
        def get_source(self, name: str) -> tuple[str, str | None]:
            row = db.query("SELECT source FROM templates WHERE name = ?", name)
            if not row:
                raise TemplateNotFoundError(f"Template '{name}' not found")
            return row.source, f"db://{name}"

        def list_templates(self) -> list[str]:
            return [r.name for r in db.query("SELECT name FROM templates")]
    ```

Thread-Safety:
All built-in loaders are safe for concurrent ``get_source()`` calls.

"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Protocol

from snug.environment.exceptions import TemplateNotFoundError


class Loader(Protocol):
    """What the Environment needs from a loader."""

    def get_source(self, name: str) -> tuple[str, str | None]: ...

    def list_templates(self) -> list[str]: ...


class FileSystemLoader:
    """Load templates from filesystem directories.

    Directories are searched in order and the first matching file wins.
    Any file is a template; snug does not care about extensions.

    Example:
            >>> loader = FileSystemLoader(["site/", "shared/"])
            >>> source, filename = loader.get_source("partials/card.txt")
            >>> filename
            'site/partials/card.txt'

    Raises:
        TemplateNotFoundError: If template not found in any search path

    """

    __slots__ = ("_encoding", "_paths")

    def __init__(
        self,
        paths: str | Path | Sequence[str | Path],
        encoding: str = "utf-8",
    ):
        if isinstance(paths, (str, Path)):
            paths = [paths]
        self._paths = [Path(p) for p in paths]
        self._encoding = encoding

    def get_source(self, name: str) -> tuple[str, str]:
        """Load template source from the first directory that has it."""
        for base in self._paths:
            path = base / name
            if path.is_file():
                return path.read_text(self._encoding), str(path)

        raise TemplateNotFoundError(
            f"Template '{name}' not found in: {', '.join(str(p) for p in self._paths)}"
        )

    def list_templates(self) -> list[str]:
        """Relative paths of all files under the search paths."""
        templates = set()
        for base in self._paths:
            if base.is_dir():
                for path in base.rglob("*"):
                    if path.is_file():
                        templates.add(path.relative_to(base).as_posix())
        return sorted(templates)


class DictLoader:
    """Load templates from an in-memory dictionary.

    Returns ``None`` as filename since templates are not file-backed.

    Example:
            >>> env = Environment(loader=DictLoader({
            ...     "card": "<div>\\n  <%= include('title') %>\\n</div>",
            ...     "title": "<h1><%= title %></h1>",
            ... }))
            >>> env.render("card", title="Hi")
            '<div>\\n  <h1>Hi</h1>\\n</div>'

    Raises:
        TemplateNotFoundError: If template name not in mapping

    """

    __slots__ = ("_mapping",)

    def __init__(self, mapping: dict[str, str]):
        self._mapping = mapping

    def get_source(self, name: str) -> tuple[str, None]:
        if name not in self._mapping:
            from difflib import get_close_matches

            available = sorted(self._mapping.keys())
            msg = f"Template '{name}' not found"
            matches = get_close_matches(name, available, n=1, cutoff=0.6)
            if matches:
                msg += f". Did you mean '{matches[0]}'?"
            elif available:
                msg += f". Available: {', '.join(available[:10])}"
                if len(available) > 10:
                    msg += f" ... ({len(available)} total)"
            raise TemplateNotFoundError(msg)
        return self._mapping[name], None

    def list_templates(self) -> list[str]:
        return sorted(self._mapping.keys())


class ChoiceLoader:
    """Try multiple loaders in order, returning the first match.

    Example:
            >>> loader = ChoiceLoader([
            ...     DictLoader({"footer": "custom"}),
            ...     FileSystemLoader("templates/"),
            ... ])

    Raises:
        TemplateNotFoundError: If no loader can find the template

    Thread-Safety:
        Safe if all child loaders are thread-safe.
    """

    __slots__ = ("_loaders",)

    def __init__(self, loaders: Sequence[Loader]):
        self._loaders = list(loaders)

    def get_source(self, name: str) -> tuple[str, str | None]:
        """Try each loader in order, return first match."""
        for loader in self._loaders:
            try:
                return loader.get_source(name)
            except TemplateNotFoundError:
                continue
        raise TemplateNotFoundError(
            f"Template '{name}' not found in any of {len(self._loaders)} loaders"
        )

    def list_templates(self) -> list[str]:
        """Merge template lists from all loaders (deduplicated, sorted)."""
        templates: set[str] = set()
        for loader in self._loaders:
            templates.update(loader.list_templates())
        return sorted(templates)


class FunctionLoader:
    """Wrap a callable as a template loader.

    The function takes a template name and returns:
        - ``str``: Template source (filename will be ``"<function>"``)
        - ``tuple[str, str | None]``: ``(source, filename)``
        - ``None``: Template not found

    Example:
            >>> def load(name):
            ...     if name == "greeting":
            ...         return "Hello, <%= name %>!"
            ...     return None
            >>> Environment(loader=FunctionLoader(load)).render("greeting", name="World")
            'Hello, World!'

    Raises:
        TemplateNotFoundError: If ``load_func`` returns ``None``

    Thread-Safety:
        Safe if ``load_func`` is thread-safe.
    """

    __slots__ = ("_load_func",)

    def __init__(self, load_func: Callable[[str], str | tuple[str, str | None] | None]):
        self._load_func = load_func

    def get_source(self, name: str) -> tuple[str, str | None]:
        """Call the load function and normalize the result."""
        result = self._load_func(name)

        if result is None:
            raise TemplateNotFoundError(f"Template '{name}' not found")

        if isinstance(result, str):
            return result, "<function>"

        return result

    def list_templates(self) -> list[str]:
        """A function loader cannot enumerate its templates."""
        return []
