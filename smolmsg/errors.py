"""Exceptions raised while parsing messages and encoding identifiers."""

from typing import Optional


class MessageError(Exception):
    """
    Base exception for message codec errors.

    Attributes:
        reason: Human-readable description of the failure
        source_name: Name of the source being parsed (file path or label)
        lineno: 1-based line number of the offending header, if known
    """

    def __init__(
        self,
        reason: str,
        source_name: Optional[str] = None,
        lineno: Optional[int] = None,
    ):
        self.reason = reason
        self.source_name = source_name
        self.lineno = lineno
        super().__init__(self._format())

    def _format(self) -> str:
        if self.source_name and self.lineno:
            return f"{self.source_name}:{self.lineno}: {self.reason}"
        if self.source_name:
            return f"{self.source_name}: {self.reason}"
        return self.reason

    def with_location(self, source_name: str, lineno: Optional[int] = None) -> "MessageError":
        """
        Return a copy of this error annotated with a source location.

        Args:
            source_name: Name of the source being parsed
            lineno: 1-based line number

        Returns:
            New error of the same type carrying the location
        """
        err = type(self).__new__(type(self))
        err.__dict__.update(self.__dict__)
        MessageError.__init__(err, self.reason, source_name, lineno)
        return err


class MessageParseError(MessageError):
    """Raised when a message stream is malformed."""

    pass


class InvalidLeadingSpaceError(MessageParseError):
    """Raised when a header line starts with a space (empty field name)."""

    pass


class UnknownFieldError(MessageParseError):
    """Raised for a header keyword that is neither known nor an x- extension."""

    pass


class FieldTooLongError(MessageParseError):
    """Raised when a header line does not fit in the line buffer."""

    pass


class InvalidAddressError(MessageParseError):
    """Raised when an author address is missing or malformed."""

    pass


class InvalidTimeFormatError(MessageParseError):
    """Raised when a time header matches none of the accepted formats."""

    pass


class InvalidSizeError(MessageParseError):
    """Raised when a body or file size is not a non-negative integer."""

    pass


class BodyTooLargeError(MessageParseError):
    """Raised when a declared body size exceeds the body limit."""

    pass


class TruncatedBodyError(MessageParseError):
    """Raised when the stream ends before the declared body size."""

    pass


class TruncatedAttachmentError(MessageParseError):
    """Raised when the stream ends before the declared attachment size."""

    def __init__(
        self,
        reason: str,
        source_name: Optional[str] = None,
        lineno: Optional[int] = None,
        index: int = 0,
        name: str = "",
    ):
        self.index = index
        self.name = name
        super().__init__(reason, source_name, lineno)


class InvalidFilenameError(MessageParseError):
    """Raised when a message file name does not encode a timestamp."""

    pass


class IdentifierError(MessageError):
    """Base exception for identifier encoding errors."""

    pass


class TimestampInPastError(IdentifierError):
    """Raised when a message time precedes the identifier epoch."""

    pass


class TimestampOutOfRangeError(IdentifierError):
    """Raised when a message time does not fit the 32-bit time field."""

    pass


class InvalidIdentifierError(IdentifierError):
    """Raised when an identifier has the wrong size or encoding."""

    pass
