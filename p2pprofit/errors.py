"""Exceptions raised by P2P Profit."""


class P2PProfitError(Exception):
    """Base class for all P2P Profit errors."""


class InvalidMethodError(P2PProfitError, ValueError):
    """Raised when an accounting method name is not recognised."""


class InvalidPeriodError(P2PProfitError, ValueError):
    """Raised when a time-series period is not recognised."""


class ImportFormatError(P2PProfitError):
    """Raised when an import file cannot be read at all."""
