"""
TagWeave Tag Processor.

Expands directive tags embedded in HTML comments.
Requires Python 3.11+.
"""

from collections.abc import Iterator
from pathlib import Path

from tags.errors import (
    CircularIncludeError,
    IncludeNotFoundError,
    MalformedTagError,
    UnknownTagError,
)
from tags.models import TAG_PATTERN, ExpansionResult, Tag, TagKind
from tags.resolver import IncludeResolver
from utils.logger import LoggerMixin
from utils.paths import resolve_relative


def find_first_tag(text: str) -> Tag | None:
    """Return the first directive tag in a text, if any."""
    match = TAG_PATTERN.search(text)
    if match is None:
        return None
    return Tag.from_match(match)


def replace_tag(text: str, tag: Tag, replacement: str) -> str:
    """Return a copy of text with the tag's span replaced."""
    return text[: tag.start] + replacement + text[tag.end :]


def scan(text: str) -> Iterator[Tag]:
    """
    Yield every directive tag of a text without expanding it.

    Spans refer to the original, unmodified text.
    """
    for match in TAG_PATTERN.finditer(text):
        yield Tag.from_match(match)


class TagProcessor(LoggerMixin):
    """
    Expands ``partial``, ``output`` and ``include`` directives.

    Expansion re-scans from the start of the text after every
    substitution, so tags spliced in by an include are expanded in the
    same pass. The include chain guarantees termination: an include
    argument may only be expanded once per call to ``expand``.
    """

    def __init__(self, resolver: IncludeResolver | None = None) -> None:
        """
        Initialize the processor.

        Args:
            resolver: Include resolver; a default one is created if omitted
        """
        self._resolver = resolver or IncludeResolver()

    def expand(self, path: Path | str, text: str) -> ExpansionResult:
        """
        Expand every directive in a file's text.

        Args:
            path: Path of the file being expanded; anchors relative paths
            text: Full contents of the file

        Returns:
            ExpansionResult with the expanded text, the requested output
            paths in declaration order and the partial flag

        Raises:
            MalformedTagError: A directive lacks its required argument
            UnknownTagError: A directive name is not recognised
            CircularIncludeError: An include repeats within this expansion
            IncludeNotFoundError: An include target does not exist
        """
        source = Path(path)
        output_paths: list[Path] = []
        include_chain: list[str] = []
        is_partial = False
        first_match = True

        tag = find_first_tag(text)
        while tag is not None:
            kind = tag.kind

            if kind is None:
                raise UnknownTagError(f"Unknown tag {tag.raw}", tag=tag.raw)

            if kind.requires_argument and not tag.argument:
                raise MalformedTagError(f"Malformed tag {tag.raw}", tag=tag.raw)

            if kind is TagKind.PARTIAL:
                # Only the very first tag of the outermost file counts;
                # partial tags pulled in by includes must not mark the parent
                if first_match:
                    is_partial = True
                text = replace_tag(text, tag, "")

            elif kind is TagKind.OUTPUT:
                output_paths.append(resolve_relative(source, tag.argument))
                text = replace_tag(text, tag, "")

            elif kind is TagKind.INCLUDE:
                text = self._include(source, text, tag, include_chain)

            tag = find_first_tag(text)
            first_match = False

        self.log.debug(
            "file_expanded",
            path=str(source),
            includes=len(include_chain),
            outputs=len(output_paths),
            is_partial=is_partial,
        )

        return ExpansionResult(
            text=text,
            output_paths=tuple(output_paths),
            is_partial=is_partial,
        )

    def _include(
        self,
        source: Path,
        text: str,
        tag: Tag,
        include_chain: list[str],
    ) -> str:
        """Splice an include target into the text in place of its tag."""
        key = tag.argument.strip().lower()
        if key in include_chain:
            raise CircularIncludeError(
                f"Circular reference detected {tag.argument}", tag=tag.raw
            )

        resolved = self._resolver.resolve(source, tag.argument)
        if resolved is None:
            raise IncludeNotFoundError(
                f"Include file not found {tag.argument}", tag=tag.raw
            )

        include_chain.append(key)
        return replace_tag(text, tag, resolved.content)

    def resolved_includes(self, path: Path | str, text: str) -> set[Path]:
        """
        Collect the include targets a file refers to directly.

        Runs the same scan-and-delete loop as ``expand`` but records the
        resolved path of each include instead of splicing it in. Output
        and partial tags have no effect; unknown or unresolvable tags are
        skipped.

        Args:
            path: Path of the file being scanned
            text: Full contents of the file

        Returns:
            Set of absolute paths of existing include targets
        """
        targets: set[Path] = set()

        tag = find_first_tag(text)
        while tag is not None:
            text = replace_tag(text, tag, "")
            if tag.kind is TagKind.INCLUDE and tag.argument:
                resolved = self._resolver.resolve(path, tag.argument, want_content=False)
                if resolved is not None:
                    targets.add(resolved.path)
            tag = find_first_tag(text)

        return targets
