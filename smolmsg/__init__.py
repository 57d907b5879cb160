"""smolmsg - small local message files with content-derived identifiers."""

__version__ = "0.1.0"
