"""Exceptions for snug templates.

Exception Hierarchy:
TemplateError (base)
├── TemplateNotFoundError     # No loader knows the template name
├── TemplateSyntaxError       # Compile-time error in template source
│   └── ParseError            # Lexer/parser error tied to a token
├── TemplateRuntimeError      # Expression failed during render
└── UndefinedError            # Expression referenced a missing binding

Every error carries an ErrorCode and, where the template source is known,
a snippet of the offending line:

    ```
    S-RUN-001: Undefined variable 'titel' in page.txt:3
       |
    >  3 |   <%= titel %>
       |
      Hint: Pass titel=... to render() or to include()
    ```

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from snug.environment import terminal


class ErrorCode(Enum):
    """Searchable error codes.

    Format: S-{CATEGORY}-{NUMBER}
    Categories: LEX (lexer), PAR (parser), RUN (runtime), TPL (template loading)
    """

    # Lexer errors (S-LEX-xxx)
    UNTERMINATED_MARKER = "S-LEX-001"

    # Parser errors (S-PAR-xxx)
    UNEXPECTED_CLAUSE = "S-PAR-001"
    UNEXPECTED_END = "S-PAR-002"
    UNCLOSED_BLOCK = "S-PAR-003"
    INVALID_EXPRESSION = "S-PAR-004"

    # Runtime errors (S-RUN-xxx)
    UNDEFINED_VARIABLE = "S-RUN-001"
    INCLUDE_DEPTH = "S-RUN-002"
    RUNTIME_ERROR = "S-RUN-003"

    # Template loading errors (S-TPL-xxx)
    TEMPLATE_NOT_FOUND = "S-TPL-001"
    SYNTAX_ERROR = "S-TPL-002"

    @property
    def category(self) -> str:
        """Error category (e.g., 'runtime', 'lexer', 'parser', 'template')."""
        prefix = self.value.split("-")[1]
        return {
            "LEX": "lexer",
            "PAR": "parser",
            "RUN": "runtime",
            "TPL": "template",
        }.get(prefix, "unknown")


def format_template_stack(stack: list[tuple[str, int]] | None) -> str:
    """Format the include chain that led to an error.

    Example:
        >>> print(format_template_stack([("page.txt", 4), ("nav.txt", 2)]))
        Template stack:
          • page.txt:4
          • nav.txt:2
    """
    if not stack:
        return ""

    lines = [terminal.dim_text("Template stack:")]
    for template_name, line_num in stack:
        lines.append(f"  • {terminal.location(f'{template_name}:{line_num}')}")
    return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class SourceSnippet:
    """Template source lines around an error.

    Attributes:
        lines: (line_number, line_content) pairs around the error.
        error_line: The 1-based line number where the error occurred.
        column: Optional column offset for a caret pointer.
    """

    lines: tuple[tuple[int, str], ...]
    error_line: int
    column: int | None = None

    def format(self) -> str:
        parts: list[str] = [terminal.dim_text("   |")]
        for lineno, content in self.lines:
            is_error = lineno == self.error_line
            parts.append(terminal.format_source_line(lineno, content, is_error=is_error))
            if is_error and self.column is not None:
                caret = " " * self.column + "^"
                parts.append(f"{terminal.dim_text('   |')} {terminal.error_line(caret)}")
        parts.append(terminal.dim_text("   |"))
        return "\n".join(parts)


def build_source_snippet(
    source: str,
    error_line: int,
    *,
    context_lines: int = 2,
    column: int | None = None,
) -> SourceSnippet:
    """Build a SourceSnippet showing ``context_lines`` around ``error_line``."""
    all_lines = source.splitlines()
    start = max(0, error_line - 1 - context_lines)
    end = min(len(all_lines), error_line + context_lines)
    lines = tuple((i + 1, all_lines[i]) for i in range(start, end))
    return SourceSnippet(lines=lines, error_line=error_line, column=column)


class TemplateError(Exception):
    """Base exception for all snug template errors.

    Attributes:
        code: Optional ErrorCode identifying the failure.
    """

    code: ErrorCode | None = None

    def format_compact(self) -> str:
        """Format the error as a terminal diagnostic prefixed by its code."""
        header = str(self)
        if self.code and self.code.value not in header:
            header = terminal.format_error_header(self.code.value, header)
        return header


class TemplateNotFoundError(TemplateError):
    """Template name not known to any configured loader.

    Raised by loaders and therefore by ``Environment.get_template()`` and
    by ``include()`` calls inside templates.
    """

    code: ErrorCode | None = ErrorCode.TEMPLATE_NOT_FOUND


class TemplateSyntaxError(TemplateError):
    """Compile-time error in template source.

    When ``source`` and ``lineno`` are provided the message includes the
    offending line, and a caret when ``col_offset`` is known too.
    """

    code: ErrorCode | None = ErrorCode.SYNTAX_ERROR

    def __init__(
        self,
        message: str,
        lineno: int | None = None,
        name: str | None = None,
        filename: str | None = None,
        source: str | None = None,
        col_offset: int | None = None,
        code: ErrorCode | None = None,
    ):
        self.message = message
        self.lineno = lineno
        self.name = name
        self.filename = filename
        self.source = source
        self.col_offset = col_offset
        if code is not None:
            self.code = code
        super().__init__(self._format_message())

    @property
    def location(self) -> str:
        location = self.filename or self.name or "<template>"
        if self.lineno:
            location += f":{self.lineno}"
            if self.col_offset is not None:
                location += f":{self.col_offset}"
        return location

    def _source_lines(self) -> list[str]:
        if not (self.source and self.lineno):
            return []
        lines = self.source.splitlines()
        if not 0 < self.lineno <= len(lines):
            return []
        snippet = ["   |", f"{self.lineno:>3} | {lines[self.lineno - 1]}"]
        if self.col_offset is not None:
            snippet.append(f"   | {' ' * self.col_offset}^")
        return snippet

    def _format_message(self) -> str:
        return "\n".join(
            [f"Syntax Error: {self.message}", f"  --> {self.location}", *self._source_lines()]
        )

    def format_compact(self) -> str:
        code_prefix = f"{self.code.value}: " if self.code else ""
        parts = [f"{code_prefix}{self.message}", f"  --> {self.location}"]
        source_lines = self._source_lines()
        if source_lines:
            parts.extend(source_lines)
            parts.append("   |")
        return "\n".join(parts)


class TemplateRuntimeError(TemplateError):
    """Render-time failure of an embedded expression.

    The original exception is chained as ``__cause__`` and its message is
    kept verbatim:

        ```
        Runtime Error: division by zero
          Location: invoice.txt:12
           |
        > 12 |   <%= total / count %>
           |
        ```

    Attributes:
        message: Error description
        template_name: Name of the template
        lineno: Line number in template source
        suggestion: Actionable fix suggestion
        source_snippet: Source lines around the failure
        template_stack: Include chain, outermost first
    """

    code: ErrorCode | None = ErrorCode.RUNTIME_ERROR

    def __init__(
        self,
        message: str,
        *,
        template_name: str | None = None,
        lineno: int | None = None,
        suggestion: str | None = None,
        source_snippet: SourceSnippet | None = None,
        template_stack: list[tuple[str, int]] | None = None,
        code: ErrorCode | None = None,
    ):
        self.message = message
        self.template_name = template_name
        self.lineno = lineno
        self.suggestion = suggestion
        self.source_snippet = source_snippet
        self.template_stack = template_stack or []
        if code is not None:
            self.code = code
        super().__init__(self._format_message())

    def _location(self) -> str:
        loc = self.template_name or "<template>"
        if self.lineno:
            loc += f":{self.lineno}"
        return loc

    def _details(self) -> list[str]:
        parts = []
        if self.source_snippet:
            parts.append(self.source_snippet.format())
        if self.template_stack:
            parts.append("")
            parts.append(format_template_stack(self.template_stack))
        return parts

    def _format_message(self) -> str:
        parts = [f"Runtime Error: {self.message}"]
        if self.template_name or self.lineno:
            parts.append(f"  Location: {terminal.location(self._location())}")
        parts.extend(self._details())
        if self.suggestion:
            parts.append(f"\n  {terminal.hint('Suggestion:')} {self.suggestion}")
        return "\n".join(parts)

    def format_compact(self) -> str:
        parts = [
            terminal.format_error_header(self.code.value if self.code else None, self.message),
            f"  Location: {terminal.location(self._location())}",
            *self._details(),
        ]
        if self.suggestion:
            parts.append(f"  {terminal.hint('Hint:')} {self.suggestion}")
        return "\n".join(parts)


class UndefinedError(TemplateError):
    """An expression referenced a name that is not bound.

    If ``available_names`` is provided, a "Did you mean?" suggestion is
    added when a close match exists.

    Example:
        >>> env.from_string("<%= missing %>").render()
        UndefinedError: Undefined variable 'missing' in <template>:1
    """

    code: ErrorCode | None = ErrorCode.UNDEFINED_VARIABLE

    def __init__(
        self,
        name: str,
        template: str | None = None,
        lineno: int | None = None,
        available_names: frozenset[str] | None = None,
        source_snippet: SourceSnippet | None = None,
        template_stack: list[tuple[str, int]] | None = None,
    ):
        self.name = name
        self.template = template or "<template>"
        self.lineno = lineno
        self._available_names = available_names
        self.source_snippet = source_snippet
        self.template_stack = template_stack or []
        super().__init__(self._format_message(compact=False))

    def _headline(self) -> str:
        location = self.template
        if self.lineno:
            location += f":{self.lineno}"
        msg = f"Undefined variable '{self.name}' in {terminal.location(location)}"
        if self._available_names:
            from difflib import get_close_matches

            matches = get_close_matches(self.name, self._available_names, n=1, cutoff=0.6)
            if matches:
                msg += f". Did you mean '{terminal.suggestion(matches[0])}'?"
        return msg

    def _format_message(self, *, compact: bool) -> str:
        parts = [
            terminal.format_error_header(self.code.value, self._headline())
            if compact and self.code
            else self._headline()
        ]
        if self.source_snippet:
            parts.append(self.source_snippet.format())
        if self.template_stack:
            parts.append("")
            parts.append(format_template_stack(self.template_stack))
        parts.append(
            f"  {terminal.hint('Hint:')} Pass {self.name}=... to render() or to include()"
        )
        return "\n".join(parts)

    def format_compact(self) -> str:
        return self._format_message(compact=True)

