"""
Error types for the Agent Standards MCP Server.

Everything that can go wrong while serving a standard is a ToolError carrying
a short error code. The tool handlers report these errors to the agent as
tool-error results; the protocol layer maps any that escape to JSON-RPC codes.

==================  ===========================================================
error_code          Raised when
==================  ===========================================================
invalid_argument    a tool argument is missing or has the wrong type
validation_failed   a path leaves the standards folder, or a size/count limit
not_found           a named standard has no file
parse_error         frontmatter is malformed, or its description/body is empty
io_error            the folder or a standard file cannot be read
cancelled           the client cancelled the call before it finished
internal            anything unexpected
==================  ===========================================================
"""

from __future__ import annotations

from typing import Any, ClassVar


class ToolError(Exception):
    """
    Base class of every error reported to the MCP client.

    Attributes:
        error_code: One of the codes listed in the module docstring.
        message: Text shown to the agent.
        details: Structured context for logs, such as the offending path.
    """

    def __init__(
        self,
        error_code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        self.details = details or {}

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(error_code={self.error_code!r}, "
            f"message={self.message!r}, details={self.details!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class _CodedError(ToolError):
    """A ToolError whose code is fixed by its class."""

    code: ClassVar[str] = "internal"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(self.code, message, details)


class InvalidArgumentError(_CodedError):
    """A tool was called with a missing or mistyped argument."""

    code = "invalid_argument"


class ValidationError(_CodedError):
    """A standard file breaks the folder's path, type, size or count rules."""

    code = "validation_failed"


class PathTraversalError(ValidationError):
    """A standard name resolves outside the standards folder."""


class StandardNotFoundError(ValidationError):
    """
    No file exists for a standard name.

    get_standards skips such names instead of failing the call.
    """

    code = "not_found"


class ParseError(_CodedError):
    """The frontmatter header of a standard cannot be used."""

    code = "parse_error"


class StandardsIOError(_CodedError):
    """A standard file or the standards folder cannot be read."""

    code = "io_error"


class RequestCancelledError(_CodedError):
    """The client cancelled a tool call with notifications/cancelled."""

    code = "cancelled"


class InternalError(_CodedError):
    """An unexpected exception, wrapped before it reaches the client."""

    code = "internal"
