"""Output formatting helpers for Mepris CLI commands."""

from __future__ import annotations

__all__ = [
    "format_error",
    "format_warning",
]


def format_error(
    message: str, details: list[str] | None = None, suggestion: str | None = None
) -> str:
    """Format an error message with optional details and suggestion.

    Args:
        message: Primary error message.
        details: Optional list of detail lines to include.
        suggestion: Optional suggestion for resolving the error.

    Returns:
        Formatted error string with details and suggestion if provided.

    Example:
        >>> print(format_error(
        ...     "No saved run to resume",
        ...     suggestion="Run 'mepris run -f FILE' first",
        ... ))
        Error: No saved run to resume
        Suggestion: Run 'mepris run -f FILE' first
    """
    lines = [f"Error: {message}"]

    if details:
        for detail in details:
            lines.append(f"  {detail}")

    if suggestion:
        lines.append(f"Suggestion: {suggestion}")

    return "\n".join(lines)


def format_warning(message: str) -> str:
    """Format a warning message.

    Example:
        >>> format_warning("Discarding the saved run")
        'Warning: Discarding the saved run'
    """
    return f"Warning: {message}"
