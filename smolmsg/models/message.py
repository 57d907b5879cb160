"""Message data model."""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from smolmsg.errors import InvalidAddressError
from smolmsg.utils.address_utils import normalize_address


@dataclass(frozen=True)
class Author:
    """
    Sender or recipient of a message.

    Attributes:
        address: Normalized address (NFC, lower case, exactly one "@")
        name: Display name, may be empty
    """

    address: str
    name: str = ""

    @classmethod
    def parse(cls, value: str) -> "Author":
        """
        Parse a header value of the form "<address> [<name>]".

        Args:
            value: Header value after the field keyword

        Returns:
            Author with normalized address

        Raises:
            InvalidAddressError: If the address is missing or invalid
        """
        value = value.strip()
        if not value:
            raise InvalidAddressError("missing address")

        address, _, name = value.partition(" ")
        return cls(address=normalize_address(address), name=name.strip())

    def short_string(self) -> str:
        """Display name if there is one, otherwise the address."""
        return self.name or self.address

    def __str__(self) -> str:
        if not self.name:
            return self.address
        return f"{json.dumps(self.name, ensure_ascii=False)} {self.address}"


@dataclass(frozen=True)
class Attachment:
    """
    Lazy reference to an attachment payload inside a message file.

    The payload is not copied; it stays in the source at
    [data_start, data_start + data_len).

    Attributes:
        name: Attachment name, may be empty
        data_start: Byte offset of the first payload byte in the source
        data_len: Declared payload length in bytes
    """

    name: str
    data_start: int
    data_len: int

    def __post_init__(self):
        """Validate fields after initialization."""
        if self.data_start < 0:
            raise ValueError(f"Invalid data_start: {self.data_start}")
        if self.data_len < 0:
            raise ValueError(f"Invalid data_len: {self.data_len}")

    @property
    def data_end(self) -> int:
        return self.data_start + self.data_len


@dataclass(frozen=True)
class Message:
    """
    A parsed message.

    Attributes:
        id: 24-byte identifier (time + truncated content digest); None until
            the whole source has been read
        time: Message time
        subject: Subject line
        sender: Author from the "from" header, None if absent
        recipient: Author from the "to" header, None if absent
        body: Body bytes
        files: Attachment descriptors in declaration order
    """

    id: Optional[bytes] = None
    time: Optional[datetime] = None
    subject: str = ""
    sender: Optional[Author] = None
    recipient: Optional[Author] = None
    body: bytes = b""
    files: Tuple[Attachment, ...] = ()

    def __post_init__(self):
        """Validate fields after initialization."""
        from smolmsg.services.codec.identifier import ID_SIZE

        if self.id is not None and len(self.id) != ID_SIZE:
            raise ValueError(f"Invalid id size: {len(self.id)}")

    def id_string(self) -> str:
        """Base-62 text form of the id."""
        from smolmsg.services.codec.identifier import encode_id

        if self.id is None:
            raise ValueError("message has no id")
        return encode_id(self.id)

    def id_time(self) -> datetime:
        """Time stored in the id."""
        from smolmsg.services.codec.identifier import decode_time

        if self.id is None:
            raise ValueError("message has no id")
        return decode_time(self.id)

    def __str__(self) -> str:
        stamp = self.time.strftime("%Y%m%d-%H%M%S") if self.time else "?"
        address = self.sender.address if self.sender else ""
        return f"{stamp}<{address}>"
