"""Utility functions"""

from .address_utils import normalize_address
from .logging_utils import configure_logging
from .text_utils import limit_str_len, plural

__all__ = ["normalize_address", "configure_logging", "limit_str_len", "plural"]
