"""Business logic services"""

from .codec import encode_id, decode_id, parse_message, parse_message_file
from .indexing import InboxScanner, ScanResult
from .reporting import MessageListFormatter

__all__ = [
    "encode_id",
    "decode_id",
    "parse_message",
    "parse_message_file",
    "InboxScanner",
    "ScanResult",
    "MessageListFormatter",
]
