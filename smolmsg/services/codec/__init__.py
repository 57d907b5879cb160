"""Message and identifier codecs."""

from .identifier import (
    ID_EPOCH,
    ID_EPOCH_BASE,
    ID_SIZE,
    Uint192,
    decode_id,
    decode_time,
    encode_id,
    encode_time,
    make_id,
)
from .message_codec import (
    MAX_BODY_SIZE,
    format_message,
    message_filename,
    parse_message,
    parse_message_file,
    read_attachment,
    time_from_filename,
    write_message,
)
from .reader import HashingReader, LineReader

__all__ = [
    "ID_EPOCH",
    "ID_EPOCH_BASE",
    "ID_SIZE",
    "Uint192",
    "decode_id",
    "decode_time",
    "encode_id",
    "encode_time",
    "make_id",
    "MAX_BODY_SIZE",
    "format_message",
    "message_filename",
    "parse_message",
    "parse_message_file",
    "read_attachment",
    "time_from_filename",
    "write_message",
    "HashingReader",
    "LineReader",
]
