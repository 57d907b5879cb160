"""Data models for messages"""

from .message import Attachment, Author, Message

__all__ = [
    "Attachment",
    "Author",
    "Message",
]
