"""
Error types raised by the birthday sources
"""


class BirthdaySourceError(Exception):
    """Base class for failures while reading a birthday source"""


class SourceUnavailable(BirthdaySourceError):
    """Network failure, missing file or non-2xx response"""


class MalformedDocument(BirthdaySourceError):
    """The whole calendar or address book payload could not be parsed"""


class MalformedRecord(BirthdaySourceError, ValueError):
    """A single entry has a missing field, an invalid date or a future birth year"""
