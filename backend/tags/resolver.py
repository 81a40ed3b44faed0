"""
TagWeave Include Resolver.

Locates include targets relative to the including file.
Requires Python 3.11+.
"""

from pathlib import Path

from tags.models import ResolvedInclude
from utils.paths import resolve_relative


class IncludeResolver:
    """
    Resolves ``include`` arguments to files on disk.

    The directory of the including file is the only lookup location.
    A missing file is an expected outcome and is reported as None.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding

    def resolve(
        self,
        from_path: Path | str,
        include_path: str,
        want_content: bool = True,
    ) -> ResolvedInclude | None:
        """
        Find an include target.

        Args:
            from_path: File containing the include directive
            include_path: Relative path given in the directive
            want_content: Read the target's text; False only checks existence

        Returns:
            The resolved include, or None if no such file exists
        """
        candidate = resolve_relative(from_path, include_path)
        try:
            if not candidate.is_file():
                return None
        except OSError:
            # Name too long or not accessible
            return None

        if not want_content:
            return ResolvedInclude(path=candidate)

        return ResolvedInclude(
            path=candidate,
            content=candidate.read_text(encoding=self._encoding),
        )
