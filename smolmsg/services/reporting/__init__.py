"""Terminal reporting services."""

from .list_formatter import MessageListFormatter, format_time

__all__ = ["MessageListFormatter", "format_time"]
