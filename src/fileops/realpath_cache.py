"""Reusable cache for case-aware realpath resolution."""

from pathlib import Path
from typing import Dict, Set


class RealpathCache:
    """
    Memo of directory scans used when re-casing symlink paths.

    Maps the ASCII-lowercased form of a path to the path as it is actually
    cased on disk, and remembers which parent directories have already been
    scanned so that each parent is listed at most once per cache lifetime.

    The cache is owned by the caller and may be reused across many
    resolutions. It is not safe for concurrent mutation; callers resolving
    in parallel must serialise access or use one cache per caller.
    """

    def __init__(self) -> None:
        """Initialize an empty cache."""
        self._entries: Dict[str, Path] = {}
        self._scanned: Set[str] = set()
        self._scan_count = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, lowercased: object) -> bool:
        return str(lowercased) in self._entries

    @property
    def scan_count(self) -> int:
        """Number of parent directories that have been scanned into this cache."""
        return self._scan_count

    def is_scanned(self, parent: Path) -> bool:
        """
        Check whether a parent directory's children are already cached.

        Args:
            parent: Parent directory path

        Returns:
            True if the parent has been scanned into this cache
        """
        return str(parent) in self._scanned

    def commit_scan(self, parent: Path, entries: Dict[str, Path]) -> None:
        """
        Record the result of scanning a parent directory.

        The parent is marked as scanned even if `entries` is empty.

        Args:
            parent: Parent directory that was listed
            entries: Lowercased child path to true-cased child path
        """
        self._entries.update(entries)
        self._scanned.add(str(parent))
        self._scan_count += 1

    def get(self, lowercased: Path) -> Path | None:
        """
        Look up the true-cased form of a lowercased path.

        Args:
            lowercased: ASCII-lowercased path

        Returns:
            The true-cased path, or None if no better casing is known
        """
        return self._entries.get(str(lowercased))

    def clear(self) -> None:
        """Forget all cached entries and scanned parents."""
        self._entries.clear()
        self._scanned.clear()
        self._scan_count = 0
