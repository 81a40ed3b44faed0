"""
TagWeave Tags Package.

Directive scanning, include resolution and reference tracking.
Requires Python 3.11+.
"""

from tags.models import (
    TAG_PATTERN,
    TagKind,
    ErrorKind,
    Tag,
    ResolvedInclude,
    ExpansionResult,
    ProcessResult,
)
from tags.errors import (
    TagError,
    MalformedTagError,
    UnknownTagError,
    CircularIncludeError,
    IncludeNotFoundError,
)
from tags.resolver import IncludeResolver
from tags.processor import TagProcessor, scan
from tags.references import ReferenceIndex

__all__ = [
    # Enums
    "TagKind",
    "ErrorKind",
    # Data classes
    "TAG_PATTERN",
    "Tag",
    "ResolvedInclude",
    "ExpansionResult",
    "ProcessResult",
    # Errors
    "TagError",
    "MalformedTagError",
    "UnknownTagError",
    "CircularIncludeError",
    "IncludeNotFoundError",
    # Processing classes
    "IncludeResolver",
    "TagProcessor",
    "ReferenceIndex",
    "scan",
]
