"""Text helpers for terminal output."""

from typing import Optional

ELLIPSIS = "…"


def limit_str_len(text: Optional[str], max_length: int) -> str:
    """
    Truncate text to max_length characters, ending with an ellipsis if cut.

    Args:
        text: Text to shorten
        max_length: Maximum length of the result

    Returns:
        Text of at most max_length characters

    Examples:
        >>> limit_str_len("Short", 20)
        'Short'
        >>> limit_str_len("Robin Smith-Jones", 10)
        'Robin Smi…'
    """
    if not text:
        return ""

    if len(text) <= max_length:
        return text

    return text[: max_length - 1] + ELLIPSIS


def plural(n: int, one: str, other: str) -> str:
    """Pick the singular or plural word for a count."""
    return one if n == 1 else other
