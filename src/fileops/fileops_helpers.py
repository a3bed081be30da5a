"""Small stateless filesystem helpers."""

import asyncio
from contextlib import contextmanager
import os
from pathlib import Path
import stat
from typing import Iterator


async def must_exist(path: Path) -> bool:
    """True if the path's own metadata can be read (symlinks are not followed)."""
    try:
        await asyncio.to_thread(os.lstat, path)

    except OSError:
        return False

    return True


async def maybe_exist(path: Path) -> bool:
    """
    True unless the path is definitely missing.

    Errors other than "not found", such as permission errors, mean the path
    may exist and so count as True.
    """
    try:
        await asyncio.to_thread(os.lstat, path)

    except FileNotFoundError:
        return False

    except OSError:
        return True

    return True


@contextmanager
def ok_or_not_found() -> Iterator[None]:
    """
    Treat "not found" as success for the enclosed filesystem mutation.

    Used where a path vanishing under us means the work is already done,
    e.g. removing a file another process removed first. Other errors propagate.
    """
    try:
        yield

    except FileNotFoundError:
        pass


def permissions(mode: int) -> str:
    """
    Render a mode as the ten-character string shown by `ls -l`.

    Args:
        mode: File mode, as in `os.stat_result.st_mode`

    Returns:
        File type letter followed by owner, group and other permission triplets
    """
    return stat.filemode(mode)
