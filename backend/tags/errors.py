"""
TagWeave Tag Errors.

Exceptions raised while expanding directive tags. Each one aborts the
expansion of the current file only.
Requires Python 3.11+.
"""

from tags.models import ErrorKind


class TagError(Exception):
    """Base exception for directive errors."""

    kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(self, message: str, *, tag: str = "") -> None:
        """
        Initialize with error message and the offending tag text.

        Args:
            message: Human-readable description
            tag: Raw text of the tag that caused the failure
        """
        super().__init__(message)
        self.tag = tag


class MalformedTagError(TagError):
    """A directive is missing its required argument."""

    kind = ErrorKind.MALFORMED_TAG


class UnknownTagError(TagError):
    """A directive name is not recognised."""

    kind = ErrorKind.UNKNOWN_TAG


class CircularIncludeError(TagError):
    """An include path repeats within one expansion chain."""

    kind = ErrorKind.CIRCULAR_INCLUDE


class IncludeNotFoundError(TagError):
    """An include target does not exist."""

    kind = ErrorKind.INCLUDE_NOT_FOUND
