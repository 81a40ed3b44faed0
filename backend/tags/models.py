"""
TagWeave Tag Data Models.

Defines the data structures produced while scanning and expanding
directive tags.
Requires Python 3.11+.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

# <!--@ name argument -->
# The argument is lazy and single-line so it can never swallow a closing
# marker or run across a newline.
TAG_PATTERN = re.compile(r"<!--[ \t]*@[ \t]*(\w+)[ \t]*([^\r\n]*?)[ \t]*-->")


class TagKind(str, Enum):
    """Directive names understood by the tag processor."""

    PARTIAL = "partial"
    OUTPUT = "output"
    INCLUDE = "include"

    @classmethod
    def parse(cls, name: str) -> "TagKind | None":
        """Look up a directive name case-insensitively."""
        try:
            return cls(name.strip().lower())
        except ValueError:
            return None

    @property
    def requires_argument(self) -> bool:
        """Whether the directive needs an argument."""
        return self is not TagKind.PARTIAL


class ErrorKind(str, Enum):
    """Reasons a file failed to process."""

    MALFORMED_TAG = "malformed_tag"
    UNKNOWN_TAG = "unknown_tag"
    CIRCULAR_INCLUDE = "circular_include"
    INCLUDE_NOT_FOUND = "include_not_found"
    UNEXPECTED = "unexpected"


@dataclass(slots=True, frozen=True)
class Tag:
    """A directive occurrence found in a text."""

    name: str
    argument: str
    start: int
    end: int
    raw: str

    @property
    def kind(self) -> TagKind | None:
        """Recognised directive kind, or None for unknown names."""
        return TagKind.parse(self.name)

    @classmethod
    def from_match(cls, match: re.Match[str]) -> "Tag":
        """Build a tag from a TAG_PATTERN match."""
        return cls(
            name=match.group(1),
            argument=(match.group(2) or "").strip(),
            start=match.start(),
            end=match.end(),
            raw=match.group(0),
        )


@dataclass(slots=True, frozen=True)
class ResolvedInclude:
    """An include target found on disk."""

    path: Path
    content: str = ""


@dataclass(slots=True, frozen=True)
class ExpansionResult:
    """Output of a single expansion pass over one file."""

    text: str
    output_paths: tuple[Path, ...] = ()
    is_partial: bool = False


@dataclass(slots=True, frozen=True)
class ProcessResult:
    """Outcome of processing one source file."""

    path: Path
    success: bool
    error: str = ""
    error_kind: ErrorKind | None = None
    output_paths: tuple[Path, ...] = field(default_factory=tuple)
    is_partial: bool = False

    @property
    def as_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "path": str(self.path),
            "success": self.success,
            "error": self.error,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "output_paths": [str(p) for p in self.output_paths],
            "is_partial": self.is_partial,
        }
