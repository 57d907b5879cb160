"""Inbox indexing services."""

from .inbox_scanner import InboxScanner, ScanResult

__all__ = ["InboxScanner", "ScanResult"]
