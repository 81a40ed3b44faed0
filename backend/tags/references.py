"""
TagWeave Reference Index.

Reverse lookup from an included file to the files that include it,
used to cascade re-rendering when a shared fragment changes.
Requires Python 3.11+.
"""

from collections.abc import Iterable, Iterator
from pathlib import Path

from tags.processor import TagProcessor
from utils.logger import LoggerMixin
from utils.paths import is_ignored, matches_extension, path_key


class ReferenceIndex(LoggerMixin):
    """
    Finds the files under a monitor root that include a given file.

    The index is rebuilt from disk on every query, so it always reflects
    the current contents of the tree.
    """

    def __init__(
        self,
        root_path: Path,
        extensions: Iterable[str],
        processor: TagProcessor | None = None,
        ignore_patterns: list[str] | None = None,
        encoding: str = "utf-8",
    ) -> None:
        """
        Initialize the reference index.

        Args:
            root_path: Root directory to scan
            extensions: Monitored filename extensions
            processor: Tag processor used to scan directives
            ignore_patterns: Directory names or filename globs to skip
            encoding: Text encoding of monitored files
        """
        self._root_path = Path(root_path)
        self._extensions = list(extensions)
        self._processor = processor or TagProcessor()
        self._ignore_patterns = ignore_patterns or []
        self._encoding = encoding

    def monitored_files(self) -> Iterator[Path]:
        """Yield every file under the root matching a monitored extension."""
        if not self._root_path.is_dir():
            return

        for file_path in sorted(self._root_path.rglob("*")):
            if not file_path.is_file():
                continue
            if is_ignored(file_path.relative_to(self._root_path), self._ignore_patterns):
                continue
            if any(matches_extension(file_path, ext) for ext in self._extensions):
                yield file_path

    def resolved_includes(self, file_path: Path) -> set[Path]:
        """
        Get the resolved include targets of one file.

        Args:
            file_path: File to scan

        Returns:
            Set of absolute include targets; empty if the file is unreadable
        """
        try:
            text = file_path.read_text(encoding=self._encoding)
            return self._processor.resolved_includes(file_path, text)
        except (OSError, UnicodeDecodeError) as e:
            self.log.warning("reference_scan_skipped", path=str(file_path), error=str(e))
            return set()

    def build(self) -> dict[str, set[Path]]:
        """
        Build the reverse map from include target to includers.

        Returns:
            Mapping of case-folded target path key to the files including it
        """
        index: dict[str, set[Path]] = {}
        scanned = 0

        for file_path in self.monitored_files():
            scanned += 1
            for target in self.resolved_includes(file_path):
                index.setdefault(path_key(target), set()).add(file_path)

        self.log.debug("reference_index_built", files=scanned, targets=len(index))
        return index

    def find_dependents(self, include_path: Path | str, transitive: bool = False) -> set[Path]:
        """
        Find files that include the given file.

        Args:
            include_path: Absolute path of the included file
            transitive: Also follow includers of includers

        Returns:
            Set of source paths depending on the file
        """
        if not str(include_path).strip():
            return set()

        index = self.build()
        dependents = set(index.get(path_key(include_path), set()))

        if transitive:
            visited = {path_key(include_path)}
            frontier = list(dependents)
            while frontier:
                current = frontier.pop()
                key = path_key(current)
                if key in visited:
                    continue
                visited.add(key)
                for includer in index.get(key, set()):
                    if path_key(includer) not in visited:
                        dependents.add(includer)
                        frontier.append(includer)

        # A file never depends on itself
        dependents = {p for p in dependents if path_key(p) != path_key(include_path)}

        if dependents:
            self.log.info(
                "dependents_found",
                path=str(include_path),
                count=len(dependents),
                transitive=transitive,
            )

        return dependents
