"""Author address normalization."""

import unicodedata

from smolmsg.errors import InvalidAddressError

ADDRESS_SEPARATOR = "@"


def normalize_address(address: str) -> str:
    """
    Normalize and validate an author address.

    The address is NFC-normalized so that e.g. "café" written with a
    combining accent and with a precomposed "é" compare equal, then
    lower-cased. Only the presence of a single "@" is checked.

    Args:
        address: Raw address (e.g. "Robin@Example")

    Returns:
        Normalized address

    Raises:
        InvalidAddressError: If the address is empty or does not contain
            exactly one "@"

    Examples:
        >>> normalize_address("Robin@Address")
        'robin@address'
        >>> normalize_address("cafe\\u0301@x") == "caf\\u00e9@x"
        True
    """
    if not address or not address.strip():
        raise InvalidAddressError("missing address")

    address = unicodedata.normalize("NFC", address)
    address = address.lower()

    if address.count(ADDRESS_SEPARATOR) != 1:
        raise InvalidAddressError(f"invalid address {address!r}")

    return address
