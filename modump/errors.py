"""
Exception types for modump.
"""


class DumpError(Exception):
    """Base class for errors raised by modump itself."""


class InvalidInputError(DumpError, ValueError):
    """Bad option value or a database/table name that does not exist."""


class NotSupportedError(DumpError):
    """Catalog object of a kind the dumper cannot serialize."""


class ConnectivityTimeoutError(DumpError):
    """The initial connectivity probe did not finish in time."""
