"""Data persistence layer"""

from .database import DatabaseConnection, MessageRepository
from .audit_log import AuditLog

__all__ = [
    "DatabaseConnection",
    "MessageRepository",
    "AuditLog",
]
