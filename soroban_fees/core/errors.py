"""
Error taxonomy for fee computation.

Usage and configuration errors are raised before any arithmetic happens.
Snapshot errors are recoverable per entry; trace errors are not.
"""


class FeeError(Exception):
    """Base class for all fee computation errors."""


class InvalidUsage(FeeError, ValueError):
    """Raised when a usage counter or ledger field is negative or not an integer."""


class DivisionByZero(FeeError, ZeroDivisionError):
    """Raised when a rate table carries a zero or negative denominator."""


class MalformedEntrySnapshot(FeeError, ValueError):
    """Raised by a codec when a ledger-entry snapshot cannot be decoded."""


class MalformedTrace(FeeError, ValueError):
    """Raised when a simulation trace lacks its cost metrics or resources."""
