"""Parser error handling for snug.

Provides ParseError, a syntax error anchored to a token, with the offending
source line and an optional suggestion.
"""

from __future__ import annotations

from snug._types import Token
from snug.environment.exceptions import ErrorCode, TemplateSyntaxError


class ParseError(TemplateSyntaxError):
    """Syntax error raised while lexing or parsing a template.

    Displays the source line of ``token`` with a caret under its column:

        ```
        Syntax Error: Unterminated marker '<%='
          --> page.txt:3:2
           |
          3 |   <%= name
           |   ^

        Suggestion: Close the marker with '%>'
        ```
    """

    def __init__(
        self,
        message: str,
        token: Token,
        source: str | None = None,
        filename: str | None = None,
        suggestion: str | None = None,
        code: ErrorCode | None = None,
        name: str | None = None,
    ):
        self.token = token
        self.suggestion = suggestion
        super().__init__(
            message,
            lineno=token.lineno,
            name=name,
            filename=filename,
            source=source,
            col_offset=token.col_offset,
            code=code,
        )

    def _format_message(self) -> str:
        msg = super()._format_message()
        if self.suggestion:
            msg += f"\n\nSuggestion: {self.suggestion}"
        return msg
