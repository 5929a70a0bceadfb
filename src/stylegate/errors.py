# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Exception classes for stylegate.

Errors raised while prefixing a stylesheet propagate out of the middleware so
the hosting framework renders its standard 500 response. Nothing here is ever
converted into a partial or "best effort" CSS body.
"""


class StylegateError(Exception):
    """Base class for all stylegate errors."""


class BrowserQueryError(StylegateError, ValueError):
    """A browser query could not be understood."""

    def __init__(self, query: str, reason: str = "Unknown browser query"):
        self.query = query
        self.reason = reason
        super().__init__(f"{reason}: {query!r}")


class CssSyntaxError(StylegateError):
    """The stylesheet is malformed and cannot be prefixed.

    Line and column are 1-based and point at the offending character.
    """

    def __init__(self, reason: str, line: int | None = None, column: int | None = None):
        self.reason = reason
        self.line = line
        self.column = column
        if line is not None and column is not None:
            message = f"{line}:{column}: {reason}"
        else:
            message = reason
        super().__init__(message)


class TransformError(StylegateError):
    """Prefixing a response body failed.

    Wraps the underlying cause (a ``CssSyntaxError`` or a decoding error)
    together with the request path that produced it.
    """

    def __init__(self, path: str, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to prefix {path}: {cause}")
