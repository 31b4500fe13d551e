"""
exceptions.py - Custom exceptions for the chainy package.
"""
from typing import Any, Optional


class ChainyError(Exception):
    """Base exception for chainy errors."""

    def __init__(self, message: Optional[str] = None, details: Any = None):
        super().__init__(message or self.__doc__)
        self.details = details


class ClockError(ChainyError):
    """System clock could not be read as seconds since the Unix epoch."""


class DataTooLong(ChainyError, ValueError):
    """Block data is longer than 64 characters."""


class OffsetOverflow(ChainyError, OverflowError):
    """Block offset does not fit in an unsigned 64-bit integer."""


class BlockNotValid(ChainyError):
    """Block is not valid."""

    def __init__(self, message: Optional[str] = None, details: Any = None, offset: Optional[int] = None):
        super().__init__(message, details)
        self.offset = offset


class ChainNotValid(ChainyError):
    """Chain is not valid."""

    def __init__(self, message: Optional[str] = None, details: Any = None, offset: Optional[int] = None):
        super().__init__(message, details)
        self.offset = offset


class ChainIOError(ChainyError, OSError):
    """Chain file could not be read or written."""


class DecodeError(ChainyError, ValueError):
    """Chain file content does not match the expected structure."""
