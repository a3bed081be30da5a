"""Symlink realpath resolution for case-insensitive filesystems."""

import asyncio
import logging
import os
from pathlib import Path
import stat
import string
from typing import Dict

from fileops.realpath_cache import RealpathCache


_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


def ascii_lower(path: Path) -> Path:
    """Lowercase the ASCII letters of a path, leaving everything else alone."""
    return Path(str(path).translate(_ASCII_LOWER))


def has_ascii_upper(text: str) -> bool:
    """Check whether a string contains any ASCII uppercase letter."""
    return any('A' <= c <= 'Z' for c in text)


class RealpathResolver:
    """
    Resolves symlink paths to the casing used on disk.

    This is realpath(3) without following the final symlink: each component
    is re-cased to match the directory entry that actually exists, which
    matters on case-insensitive filesystems where lookups succeed whatever
    casing the caller used.
    """

    def __init__(self) -> None:
        """Initialize the resolver."""
        self._logger = logging.getLogger("RealpathResolver")

    async def resolve_symlink_realpath(self, path: Path) -> Path:
        """
        Resolve a path that is known to exist.

        Symlinks are re-cased without being followed, using a cache scoped to
        this call. Anything else is fully canonicalised, symlinks included.

        Args:
            path: Existing path to resolve

        Returns:
            Resolved path

        Raises:
            OSError: If metadata cannot be read or canonicalisation fails
        """
        path = Path(path)
        st = await asyncio.to_thread(os.lstat, path)
        if stat.S_ISLNK(st.st_mode):
            return await self.resolve_with_cache(path, RealpathCache())

        return await asyncio.to_thread(path.resolve, True)

    async def resolve_with_cache(self, path: Path, cache: RealpathCache) -> Path:
        """
        Re-case a symlink path using a caller-owned cache.

        Args:
            path: Path of an existing symlink
            cache: Cache to consult and fill; may be shared across calls

        Returns:
            The true-cased path, or `path` itself if no better casing is known

        Raises:
            OSError: If the parent directory cannot be listed
        """
        path = Path(path)
        lowercased = ascii_lower(path)

        # Compare as strings: Windows path equality already ignores case
        if str(lowercased) == str(path):
            return path

        parent = path.parent
        if parent == path:
            return path

        if not cache.is_scanned(parent):
            entries = await asyncio.to_thread(self._scan_parent, parent)
            cache.commit_scan(parent, entries)
            self._logger.debug("Scanned %s: %d re-cased entries", parent, len(entries))

        resolved = cache.get(lowercased)
        if resolved is None:
            return path

        return resolved

    def _scan_parent(self, parent: Path) -> Dict[str, Path]:
        """
        List a parent directory and collect entries that need re-casing.

        Entries that are entirely lowercase under an entirely lowercase parent
        are skipped since lowercasing them changes nothing.

        Args:
            parent: Directory to list

        Returns:
            Lowercased child path to true-cased child path

        Raises:
            OSError: If the directory cannot be listed
        """
        parent_has_upper = has_ascii_upper(str(parent))
        entries: Dict[str, Path] = {}
        with os.scandir(parent) as it:
            for entry in it:
                if parent_has_upper or has_ascii_upper(entry.name):
                    child = parent / entry.name
                    entries[str(ascii_lower(child))] = child

        return entries


_resolver = RealpathResolver()


async def resolve_symlink_realpath(path: Path) -> Path:
    """Resolve an existing path; see `RealpathResolver.resolve_symlink_realpath`."""
    return await _resolver.resolve_symlink_realpath(path)


async def resolve_with_cache(path: Path, cache: RealpathCache) -> Path:
    """Re-case a symlink path; see `RealpathResolver.resolve_with_cache`."""
    return await _resolver.resolve_with_cache(path, cache)
