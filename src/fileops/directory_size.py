"""Iterative size accumulation for files and directory trees."""

import asyncio
from collections import deque
import logging
import os
from pathlib import Path
import stat
from typing import Deque, List, Tuple


class DirectorySizeCalculator:
    """
    Sums the sizes of everything under a path.

    Traversal uses an explicit work queue so directory depth never turns into
    call depth. Symlinks are not followed: each one counts its own length.
    Entries that cannot be read count as zero, so a tree that changes while
    it is being measured is undercounted rather than reported as an error.
    """

    def __init__(self) -> None:
        """Initialize the calculator."""
        self._logger = logging.getLogger("DirectorySizeCalculator")

    async def calculate(self, path: Path) -> int:
        """
        Calculate the total size of a file or directory tree.

        Args:
            path: File or directory to measure

        Returns:
            Total size in bytes; 0 if nothing could be read
        """
        root = Path(path)
        try:
            st = await asyncio.to_thread(os.lstat, root)

        except OSError as e:
            self._logger.debug("Skipping unreadable path %s: %s", root, e)
            return 0

        if not stat.S_ISDIR(st.st_mode):
            return st.st_size

        total = 0
        pending: Deque[Path] = deque([root])
        while pending:
            directory = pending.popleft()
            size, subdirectories = await asyncio.to_thread(self._scan_directory, directory)
            total += size
            pending.extend(subdirectories)

        return total

    def _scan_directory(self, directory: Path) -> Tuple[int, List[Path]]:
        """
        Sum the non-directory entries of one directory and collect its subdirectories.

        Args:
            directory: Directory to list

        Returns:
            Tuple of (bytes found in this directory, subdirectories still to visit)
        """
        total = 0
        subdirectories: List[Path] = []
        try:
            with os.scandir(directory) as it:
                for entry in it:
                    try:
                        st = entry.stat(follow_symlinks=False)

                    except OSError as e:
                        self._logger.debug("Skipping unreadable entry %s: %s", entry.path, e)
                        continue

                    if stat.S_ISDIR(st.st_mode):
                        subdirectories.append(Path(entry.path))
                        continue

                    total += st.st_size

        except OSError as e:
            # Keep whatever was summed before the listing failed
            self._logger.debug("Skipping unreadable directory %s: %s", directory, e)

        return total, subdirectories


_calculator = DirectorySizeCalculator()


async def directory_size(path: Path) -> int:
    """Total size of a file or directory tree; see `DirectorySizeCalculator.calculate`."""
    return await _calculator.calculate(path)
