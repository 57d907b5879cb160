"""
Streaming message codec.

A message is a sequence of newline-terminated headers "<key> <value>".
The "body" and "file" headers are followed right away by exactly the
declared number of raw bytes. Example:

    subject Hello hej
    from robin@address Robin Smith
    time 2022-08-08 11:09:03 -0700
    to sam@address
    body 5
    Hello
    file 11 hello.txt
    Hello
    world

Here the body is "Hello" and the attachment holds the 11 bytes of "Hello",
newline, "world". The newline after each payload ends an empty line, and
empty lines are skipped.

Parsing is a single forward pass. Every byte read is hashed; at the end of
the stream the digest and the message time make up the message id.
"""

import io
import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import BinaryIO, Iterable, List, Optional, Tuple, Union

from smolmsg.errors import (
    BodyTooLargeError,
    FieldTooLongError,
    InvalidAddressError,
    InvalidFilenameError,
    InvalidLeadingSpaceError,
    InvalidSizeError,
    InvalidTimeFormatError,
    MessageError,
    TimestampInPastError,
    TruncatedAttachmentError,
    TruncatedBodyError,
    UnknownFieldError,
)
from smolmsg.models.message import Attachment, Author, Message
from .identifier import ID_EPOCH, make_id
from .reader import HashingReader, LineReader, LineTooLong, buffer_size_for

logger = logging.getLogger(__name__)

MAX_BODY_SIZE = 8 * 1024 * 1024  # 8 MiB
EXTENSION_PREFIX = "x-"
FIELD_SEPARATOR = " "

TIME_FORMAT = "%Y-%m-%d %H:%M:%S %z"
TIME_FORMAT_UTC = "%Y-%m-%d %H:%M:%S"
TIME_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}( [+-]\d{4})?", re.ASCII)
FILENAME_TIME_FORMAT = "%Y%m%d-%H%M%S"
MESSAGE_SUFFIX = ".msg"


class Field(Enum):
    """Known header fields."""

    SUBJECT = "subject"
    FROM = "from"
    TO = "to"
    TIME = "time"
    BODY = "body"
    FILE = "file"


FIELDS = MappingProxyType({f.value: f for f in Field})


@dataclass
class _ParseState:
    """Field values collected while a parse is in progress."""

    time: Optional[datetime]
    subject: str = ""
    sender: Optional[Author] = None
    recipient: Optional[Author] = None
    body: bytes = b""
    files: List[Attachment] = field(default_factory=list)


def parse_time(value: str) -> datetime:
    """
    Parse a time header value.

    "2022-08-08 11:09:03 -0700" carries its own offset;
    "2022-08-08 11:09:03" is taken as UTC. Every field has a fixed width,
    so "2022-8-8 1:9:3" is rejected.

    Raises:
        InvalidTimeFormatError: If value matches neither format
    """
    value = value.strip()
    if not TIME_PATTERN.fullmatch(value):
        raise _time_format_error(value)
    try:
        return datetime.strptime(value, TIME_FORMAT)
    except ValueError:
        pass
    try:
        return datetime.strptime(value, TIME_FORMAT_UTC).replace(tzinfo=timezone.utc)
    except ValueError:
        raise _time_format_error(value) from None


def _time_format_error(value: str) -> InvalidTimeFormatError:
    return InvalidTimeFormatError(
        f"invalid time format {value!r} (expected \"YYYY-MM-DD HH:MM:SS [+-ZZZZ]\")"
    )


def format_time(t: datetime) -> str:
    """Format a time for the time header."""
    if t.tzinfo is None:
        t = t.replace(tzinfo=timezone.utc)
    return t.strftime(TIME_FORMAT)


def _parse_size(value: str) -> int:
    value = value.strip()
    if not value.isascii() or not value.isdigit():
        raise InvalidSizeError(f"invalid integer size {value!r}")
    return int(value)


def parse_message(
    stream: BinaryIO,
    approximate_size: Optional[int] = None,
    source_name: str = "<stream>",
    time: Optional[datetime] = None,
) -> Message:
    """
    Parse a message from a binary stream in one forward pass.

    Args:
        stream: Readable binary source; it is read to the end but not closed
        approximate_size: Rough size of the source, used to size reads from
            the source; it does not limit line length
        source_name: Name used in error messages
        time: Message time known from context (e.g. the file name); a time
            header in the message overrides it

    Returns:
        Message with its id computed from the content digest and time

    Raises:
        MessageParseError: If the message is malformed (annotated with
            source_name and line number)
        IdentifierError: If the message time cannot be stored in an id
        OSError: If reading the source fails
    """
    hashing = HashingReader(stream)
    reader = LineReader(hashing, buffer_size_for(approximate_size))
    state = _ParseState(time=time)
    lineno = 0

    while True:
        lineno += 1
        try:
            raw = reader.readline()
        except LineTooLong:
            raise FieldTooLongError("field too long", source_name, lineno) from None
        if raw is None:
            break

        line = raw.decode("utf-8", errors="replace")
        if not line:
            continue
        if line.startswith(FIELD_SEPARATOR):
            raise InvalidLeadingSpaceError("invalid leading space", source_name, lineno)

        key, _, value = line.partition(FIELD_SEPARATOR)
        kind = FIELDS.get(key)
        if kind is None:
            if key.startswith(EXTENSION_PREFIX):
                logger.debug("%s:%d: ignoring extension field %r", source_name, lineno, key)
                continue
            raise UnknownFieldError(f"unknown field {key!r}", source_name, lineno)

        try:
            _handle_field(kind, value, reader, state, len(state.files) + 1)
        except MessageError as e:
            if e.source_name is None:
                raise e.with_location(source_name, lineno) from e
            raise

    try:
        identifier = _finish_id(state.time, hashing)
    except MessageError as e:
        raise e.with_location(source_name) from e
    return Message(
        id=identifier,
        time=state.time,
        subject=state.subject,
        sender=state.sender,
        recipient=state.recipient,
        body=state.body,
        files=tuple(state.files),
    )


def _handle_field(
    kind: Field,
    value: str,
    reader: LineReader,
    state: _ParseState,
    fileno: int,
) -> None:
    if kind is Field.SUBJECT:
        state.subject = value.strip()

    elif kind is Field.FROM:
        state.sender = _parse_author(value)

    elif kind is Field.TO:
        state.recipient = _parse_author(value)

    elif kind is Field.TIME:
        state.time = parse_time(value)

    elif kind is Field.BODY:
        size = _parse_size(value)
        if size > MAX_BODY_SIZE:
            raise BodyTooLargeError(f"body too large ({size})")
        body = reader.read_exact(size)
        if len(body) != size:
            raise TruncatedBodyError(
                f"invalid body size {size} (beyond end of message file)"
            )
        state.body = body

    elif kind is Field.FILE:
        value = value.strip()
        size_text, _, name = value.partition(FIELD_SEPARATOR)
        name = name.strip()
        size = _parse_size(size_text)
        data_start = reader.tell()
        if reader.discard(size) < size:
            raise TruncatedAttachmentError(
                f"file {fileno} {name!r}: invalid size {size} (beyond end of message file)",
                index=fileno,
                name=name,
            )
        state.files.append(Attachment(name=name, data_start=data_start, data_len=size))


def _parse_author(value: str) -> Author:
    try:
        return Author.parse(value)
    except InvalidAddressError as e:
        raise InvalidAddressError(f"{e.reason} ({value.strip()!r})") from e


def _finish_id(time: Optional[datetime], hashing: HashingReader) -> bytes:
    if time is None:
        raise TimestampInPastError(
            f"invalid timestamp; message has no time (expected after {ID_EPOCH.isoformat()})"
        )
    return make_id(time, hashing.digest())


def time_from_filename(filename: Union[str, Path]) -> datetime:
    """
    Read the message time from a file name like "20220808-180903.msg" (UTC).

    Raises:
        InvalidFilenameError: If the name does not start with a timestamp
    """
    name = Path(filename).name
    stem, dot, _ = name.partition(".")
    if not dot:
        raise InvalidFilenameError(f"invalid message filename {name!r}")
    try:
        return datetime.strptime(stem, FILENAME_TIME_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        raise InvalidFilenameError(f"invalid message filename {name!r}") from None


def message_filename(t: datetime) -> str:
    """File name for a message written at time t."""
    if t.tzinfo is not None:
        t = t.astimezone(timezone.utc)
    return t.strftime(FILENAME_TIME_FORMAT) + MESSAGE_SUFFIX


def parse_message_file(path: Union[str, Path]) -> Message:
    """
    Parse a message file.

    The file name provides the message time unless the message has a time
    header; the file size is used as the buffer size hint.

    Raises:
        InvalidFilenameError: If the file name does not encode a time
        MessageParseError: If the file content is malformed
        OSError: If the file cannot be read
    """
    path = Path(path)
    time = time_from_filename(path)
    with open(path, "rb") as f:
        try:
            size: Optional[int] = os.fstat(f.fileno()).st_size
        except OSError:
            size = None
        return parse_message(f, approximate_size=size, source_name=str(path), time=time)


def write_message(
    out: BinaryIO,
    subject: str = "",
    sender: Optional[Author] = None,
    recipient: Optional[Author] = None,
    time: Optional[datetime] = None,
    body: bytes = b"",
    files: Iterable[Tuple[str, bytes]] = (),
) -> int:
    """
    Write a message in the section format.

    Headers are written in the order subject, from, to, time, body, file...
    Each payload follows its header directly and is followed by a newline,
    which the parser reads as an empty line.

    Args:
        out: Writable binary stream
        subject: Subject line (must not contain a newline)
        sender: Author for the "from" header
        recipient: Author for the "to" header
        time: Message time
        body: Body bytes (written only when non-empty)
        files: (name, payload) pairs

    Returns:
        Number of bytes written
    """
    written = 0

    def header(key: str, value: str) -> None:
        nonlocal written
        if "\n" in value:
            raise ValueError(f"{key} value must not contain a newline")
        written += out.write(f"{key}{FIELD_SEPARATOR}{value}\n".encode("utf-8"))

    def author(a: Author) -> str:
        return f"{a.address} {a.name}" if a.name else a.address

    if subject:
        header(Field.SUBJECT.value, subject)
    if sender is not None:
        header(Field.FROM.value, author(sender))
    if recipient is not None:
        header(Field.TO.value, author(recipient))
    if time is not None:
        header(Field.TIME.value, format_time(time))
    if body:
        if len(body) > MAX_BODY_SIZE:
            raise BodyTooLargeError(f"body too large ({len(body)})")
        header(Field.BODY.value, str(len(body)))
        written += out.write(body)
        written += out.write(b"\n")
    for name, payload in files:
        header(Field.FILE.value, f"{len(payload)} {name}" if name else str(len(payload)))
        written += out.write(payload)
        written += out.write(b"\n")
    return written


def format_message(**kwargs) -> bytes:
    """Encode a message in memory; takes the same arguments as write_message."""
    buf = io.BytesIO()
    write_message(buf, **kwargs)
    return buf.getvalue()


def open_attachment(path: Union[str, Path], attachment: Attachment) -> BinaryIO:
    """
    Open a message file positioned at an attachment's payload.

    The caller reads attachment.data_len bytes and closes the file.
    """
    f = open(path, "rb")
    try:
        f.seek(attachment.data_start)
    except OSError:
        f.close()
        raise
    return f


def read_attachment(path: Union[str, Path], attachment: Attachment) -> bytes:
    """
    Read an attachment's payload from its message file.

    Raises:
        TruncatedAttachmentError: If the file is shorter than the descriptor
    """
    with open_attachment(path, attachment) as f:
        data = f.read(attachment.data_len)
    if len(data) != attachment.data_len:
        raise TruncatedAttachmentError(
            f"file {attachment.name!r}: expected {attachment.data_len} bytes, got {len(data)}",
            source_name=str(path),
            name=attachment.name,
        )
    return data
