"""
TagWeave File Watcher Package.

File system monitoring and change debouncing.
Requires Python 3.11+.
"""

from watcher.file_watcher import FolderWatcher, ExtensionFileHandler
from watcher.debouncer import ChangeDebouncer, DebounceEntry

__all__ = ["FolderWatcher", "ExtensionFileHandler", "ChangeDebouncer", "DebounceEntry"]
