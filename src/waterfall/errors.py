"""Waterfall error code registry.

Provides structured error codes with helpful messages and next steps.
Each error has:
- Code: WFL-EXXX format
- Message: Human-readable description
- Next step: Actionable command or instruction
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional
import sys


class ErrorCode(Enum):
    """Waterfall error codes."""

    # Configuration errors (E001-E099)
    E001 = "E001"  # Invalid configuration value
    E005 = "E005"  # Trace file not found

    # Input errors (E100-E199)
    E106 = "E106"  # No spans found

    # Validation errors (E200-E299)
    E200 = "E200"  # Layout diagnostics in strict mode
    E201 = "E201"  # Trace payload invalid
    E203 = "E203"  # Span data invalid
    E206 = "E206"  # Schema validation failed

    # File/IO errors (E300-E399)
    E302 = "E302"  # Cannot read file
    E303 = "E303"  # Cannot write file


class SpanDataError(ValueError):
    """A span record cannot be turned into a :class:`Span`."""


class TracePayloadError(ValueError):
    """A trace payload file could not be parsed."""


@dataclass
class WaterfallError:
    """Structured error with code, message, and next step."""

    code: ErrorCode
    message: str
    next_step: str
    details: Optional[str] = None

    def __str__(self) -> str:
        lines = [
            f"WFL-{self.code.value}: {self.message}",
        ]
        if self.details:
            lines.append(f"  Details: {self.details}")
        lines.append(f"  Next step: {self.next_step}")
        return "\n".join(lines)

    def print(self, file=None) -> None:
        """Print the error to stderr (or specified file)."""
        print(str(self), file=file or sys.stderr)


# (message_template, next_step)
ERROR_TEMPLATES: dict[ErrorCode, tuple[str, str]] = {
    ErrorCode.E001: (
        "Invalid configuration value: {details}",
        "Run 'waterfall show-config' and check WATERFALL_* settings"
    ),
    ErrorCode.E005: (
        "Trace file not found: {details}",
        "Check the --trace path"
    ),
    ErrorCode.E106: (
        "No spans found in trace",
        "Check that the payload has a non-empty 'spans' list"
    ),
    ErrorCode.E200: (
        "Layout produced diagnostics: {details}",
        "Inspect the span parent links, or drop --strict to render anyway"
    ),
    ErrorCode.E201: (
        "Trace payload is invalid: {details}",
        "Run 'waterfall validate --trace <file>' to see details"
    ),
    ErrorCode.E203: (
        "Span data is invalid: {details}",
        "Check span structure against trace.schema.json"
    ),
    ErrorCode.E206: (
        "Schema validation failed",
        "Run 'waterfall validate --trace <file>' to see details"
    ),
    ErrorCode.E302: (
        "Cannot read file: {details}",
        "Check file permissions and path"
    ),
    ErrorCode.E303: (
        "Cannot write file: {details}",
        "Check directory permissions"
    ),
}


def make_error(code: ErrorCode, details: Optional[str] = None) -> WaterfallError:
    """Create a WaterfallError from a code with optional details.

    Args:
        code: The error code
        details: Optional details to include in the message

    Returns:
        WaterfallError instance ready to print
    """
    template = ERROR_TEMPLATES.get(code, ("Unknown error", "Run with --verbose"))
    message_template, next_step = template

    if details and "{details}" in message_template:
        message = message_template.format(details=details)
    elif details:
        message = f"{message_template}: {details}"
    else:
        message = message_template.replace(": {details}", "")

    return WaterfallError(
        code=code,
        message=message,
        next_step=next_step,
        details=details if "{details}" not in message_template else None,
    )


# Verbose mode flag (set by CLI)
_verbose_mode: bool = False


def set_verbose(verbose: bool) -> None:
    """Set verbose mode for error output."""
    global _verbose_mode
    _verbose_mode = verbose


def is_verbose() -> bool:
    """Check if verbose mode is enabled."""
    return _verbose_mode


def handle_exception(exc: Exception, code: ErrorCode, details: Optional[str] = None) -> None:
    """Handle an exception with proper error formatting.

    In verbose mode, prints the full traceback.
    Otherwise, prints a formatted error message.
    """
    import traceback

    err = make_error(code, details or str(exc))
    err.print()

    if _verbose_mode:
        print("\n--- Full Traceback ---", file=sys.stderr)
        traceback.print_exception(type(exc), exc, exc.__traceback__)
