"""
Message identifiers.

An identifier is a 192-bit big-endian value: a 32-bit time offset (seconds
since ID_EPOCH_BASE) followed by the first 160 bits of the SHA-256 digest of
the message content. For display and lookup it is rendered in base 62.

Time range of the 32-bit field (UTC):
    0x00000000 -> 2020-09-13 12:26:40
    0xFFFFFFFF -> 2156-10-20 18:54:55
"""

import struct
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import List, Sequence, Tuple

from smolmsg.errors import (
    InvalidIdentifierError,
    TimestampInPastError,
    TimestampOutOfRangeError,
)

ID_SIZE = 24
ID_TIME_SIZE = 4
ID_DIGEST_SIZE = ID_SIZE - ID_TIME_SIZE

ID_EPOCH_BASE = 1_600_000_000
ID_EPOCH = datetime.fromtimestamp(ID_EPOCH_BASE, tz=timezone.utc)
MAX_TIME_OFFSET = 0xFFFFFFFF

BASE62_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
BASE = len(BASE62_ALPHABET)
MAX_ENCODED_LENGTH = 50

WORD_COUNT = 6
WORD_BITS = 32
WORD_MASK = 0xFFFFFFFF

_ALPHABET_BYTES = BASE62_ALPHABET.encode("ascii")
_DIGIT_VALUES = MappingProxyType({c: i for i, c in enumerate(BASE62_ALPHABET)})
_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _divide_words(words: Sequence[int], divisor: int) -> Tuple[List[int], int]:
    """Long-divide big-endian 32-bit words, dropping leading zero words of the quotient."""
    quotient: List[int] = []
    remainder = 0
    for word in words:
        value = (remainder << WORD_BITS) | word
        digit, remainder = divmod(value, divisor)
        if quotient or digit:
            quotient.append(digit)
    return quotient, remainder


class Uint192:
    """Fixed-width 192-bit unsigned integer stored as six big-endian 32-bit words."""

    __slots__ = ("words",)

    def __init__(self, words: Sequence[int] = (0,) * WORD_COUNT):
        if len(words) != WORD_COUNT:
            raise ValueError(f"expected {WORD_COUNT} words, got {len(words)}")
        if any(w < 0 or w > WORD_MASK for w in words):
            raise ValueError("word out of range")
        self.words = tuple(words)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Uint192":
        if len(data) != ID_SIZE:
            raise InvalidIdentifierError(f"invalid id size {len(data)} (expected {ID_SIZE})")
        return cls(struct.unpack(">6I", data))

    def to_bytes(self) -> bytes:
        return struct.pack(">6I", *self.words)

    def is_zero(self) -> bool:
        return not any(self.words)

    def divmod_small(self, divisor: int) -> Tuple["Uint192", int]:
        """
        Divide by a small positive integer.

        Args:
            divisor: Divisor, 1 <= divisor < 2**32

        Returns:
            Tuple of (quotient, remainder)
        """
        if not 0 < divisor <= WORD_MASK:
            raise ValueError(f"divisor out of range: {divisor}")
        quotient, remainder = _divide_words(self.words, divisor)
        padded = [0] * (WORD_COUNT - len(quotient)) + quotient
        return Uint192(padded), remainder

    def muladd_small(self, multiplier: int, addend: int) -> "Uint192":
        """
        Compute self * multiplier + addend.

        Raises:
            OverflowError: If the result does not fit in 192 bits
        """
        out = [0] * WORD_COUNT
        carry = addend
        for i in range(WORD_COUNT - 1, -1, -1):
            value = self.words[i] * multiplier + carry
            out[i] = value & WORD_MASK
            carry = value >> WORD_BITS
        if carry:
            raise OverflowError("value exceeds 192 bits")
        return Uint192(out)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Uint192):
            return NotImplemented
        return self.words == other.words

    def __hash__(self) -> int:
        return hash(self.words)

    def __repr__(self) -> str:
        return f"Uint192(0x{self.to_bytes().hex()})"


def encode_id(identifier: bytes) -> str:
    """
    Encode a 24-byte identifier as base-62 text.

    The digits are produced least significant first by repeated
    Uint192.divmod_small calls, so they are written back to front. A single '0'
    sentinel precedes the digits.

    Args:
        identifier: 24-byte identifier

    Returns:
        Base-62 string of at most MAX_ENCODED_LENGTH characters

    Examples:
        >>> encode_id(bytes(24))
        '00'
        >>> encode_id(bytes(23) + b"\\x3d")
        '0z'
    """
    value = Uint192.from_bytes(identifier)
    buf = bytearray(MAX_ENCODED_LENGTH)
    n = len(buf)
    while not value.is_zero():
        value, remainder = value.divmod_small(BASE)
        n -= 1
        buf[n] = _ALPHABET_BYTES[remainder]
    n -= 1
    buf[n] = ord("0")
    return buf[n:].decode("ascii")


def decode_id(text: str) -> bytes:
    """
    Decode base-62 text produced by encode_id back into a 24-byte identifier.

    Raises:
        InvalidIdentifierError: If the text is empty, too long, contains a
            character outside the alphabet or exceeds 192 bits
    """
    if not text:
        raise InvalidIdentifierError("empty identifier")
    if len(text) > MAX_ENCODED_LENGTH:
        raise InvalidIdentifierError(f"identifier too long ({len(text)} characters)")

    value = Uint192()
    for ch in text:
        digit = _DIGIT_VALUES.get(ch)
        if digit is None:
            raise InvalidIdentifierError(f"invalid character {ch!r} in identifier {text!r}")
        try:
            value = value.muladd_small(BASE, digit)
        except OverflowError:
            raise InvalidIdentifierError(f"identifier {text!r} out of range") from None
    return value.to_bytes()


def encode_time(t: datetime) -> bytes:
    """
    Encode a time as the 4-byte time field of an identifier.

    Naive datetimes are taken to be UTC.

    Raises:
        TimestampInPastError: If t is earlier than ID_EPOCH
        TimestampOutOfRangeError: If t does not fit in 32 bits past ID_EPOCH
    """
    if t.tzinfo is None:
        t = t.replace(tzinfo=timezone.utc)
    seconds = (t - _UNIX_EPOCH) // timedelta(seconds=1)
    offset = seconds - ID_EPOCH_BASE
    if offset < 0:
        raise TimestampInPastError(f"invalid timestamp; {t.isoformat()} is in the past")
    if offset > MAX_TIME_OFFSET:
        raise TimestampOutOfRangeError(f"invalid timestamp; {t.isoformat()} is out of range")
    return offset.to_bytes(ID_TIME_SIZE, "big")


def id_timestamp(identifier: bytes) -> int:
    """Return the raw 32-bit time offset stored in an identifier."""
    if len(identifier) < ID_TIME_SIZE:
        raise InvalidIdentifierError(f"invalid id size {len(identifier)}")
    return struct.unpack_from(">I", identifier)[0]


def decode_time(identifier: bytes) -> datetime:
    """Return the time stored in an identifier as an aware UTC datetime."""
    return ID_EPOCH + timedelta(seconds=id_timestamp(identifier))


def make_id(t: datetime, digest: bytes) -> bytes:
    """Build an identifier from a time and a content digest (truncated to 160 bits)."""
    if len(digest) < ID_DIGEST_SIZE:
        raise InvalidIdentifierError(f"digest too short ({len(digest)} bytes)")
    return encode_time(t) + digest[:ID_DIGEST_SIZE]
