"""Errors for query compilation and execution."""

from __future__ import annotations

from spath.diagnostics import Span, render_diagnostic


class QueryLanguageError(Exception):
    """Base exception for query language failures."""

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        span: Span | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.source = source
        self.span = span

    def __str__(self) -> str:
        if self.source is None or self.span is None:
            return self.message
        return render_diagnostic(self.source, self.span, self.message)


class QueryLexError(QueryLanguageError):
    """Raised when query text cannot be split into tokens."""

    @property
    def offset(self) -> int | None:
        """Offset of the first character that could not be tokenized."""
        return None if self.span is None else self.span.start


class QueryParseError(QueryLanguageError):
    """Raised when query tokens do not form a valid query."""

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        span: Span | None = None,
        expected: tuple[str, ...] = (),
    ) -> None:
        super().__init__(message, source=source, span=span)
        self.expected = expected

    def __str__(self) -> str:
        if self.source is None or self.span is None:
            return self.message
        return render_diagnostic(self.source, self.span, self.message, self.expected)


class FunctionRegistrationError(QueryLanguageError):
    """Raised when a function cannot be added to a registry."""


class QueryRuntimeError(QueryLanguageError):
    """Raised when query execution fails at runtime."""

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        span: Span | None = None,
        expression: str | None = None,
    ) -> None:
        super().__init__(message, source=source, span=span)
        self.expression = expression

    def __str__(self) -> str:
        if self.source is None and self.expression is not None:
            return f"{self.message} in {self.expression}"
        return super().__str__()


class NodeCountError(QueryLanguageError):
    """Raised when a node list does not hold the expected number of nodes."""

    def __init__(self, message: str, count: int) -> None:
        super().__init__(message)
        self.count = count
