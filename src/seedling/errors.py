"""Custom exception types used by seedling."""

from __future__ import annotations


class TemplateError(Exception):
    """Base class for template failures raised by seedling itself."""


class TemplateSyntaxError(TemplateError):
    """Raised when a template cannot be tokenized or compiled."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ExpressionSyntaxError(TemplateSyntaxError):
    """Raised when the source inside a ``<% %>`` or ``<%= %>`` block is malformed."""

    def __init__(self, message: str, source: str = "", position: int | None = None) -> None:
        self.source = source
        self.position = position
        if source:
            where = f" at offset {position}" if position is not None else ""
            message = f"{message}{where} in {source!r}"
        super().__init__(message)


class VersionLookupError(RuntimeError):
    """Raised when the package index cannot report a release."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
