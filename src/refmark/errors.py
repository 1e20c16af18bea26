"""Exception hierarchy for refmark.

Every error raised by the library derives from RefmarkError, which carries a
stable machine-readable code alongside the human message so the CLI can emit
structured errors with --json-errors.
"""

from __future__ import annotations

import json
from typing import Any


def format_error_json(code: str, message: str, details: dict[str, Any] | None = None) -> str:
    """Format an error as a JSON object string."""
    payload: dict[str, Any] = {"error": code, "message": message}
    if details:
        payload["details"] = details
    return json.dumps(payload)


class RefmarkError(Exception):
    """Base class for refmark errors."""

    code = "REFMARK_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_json(self) -> str:
        return format_error_json(self.code, self.message, self.details or None)


class ConfigurationError(RefmarkError):
    """Raised when required configuration is missing or invalid."""

    code = "CONFIGURATION_ERROR"


class FragmentParseError(RefmarkError):
    """Raised when the HTML parser rejects a fragment outright.

    The original markup is kept on the exception so callers can fall back
    to escaped plain text.
    """

    code = "FRAGMENT_PARSE_ERROR"

    def __init__(self, markup: str, reason: str) -> None:
        self.markup = markup
        super().__init__(
            f"Could not parse HTML fragment: {reason}",
            details={"length": len(markup)},
        )


class RenderError(RefmarkError):
    """Raised when the markdown renderer fails on its input."""

    code = "RENDER_ERROR"

    def __init__(self, text: str, reason: str) -> None:
        self.text = text
        super().__init__(f"Markdown rendering failed: {reason}")
