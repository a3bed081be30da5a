"""Deepest shared ancestor of a set of paths."""

from pathlib import PurePath, Path
from typing import Iterable, List, Tuple


def common_root(paths: Iterable[PurePath | str]) -> Path:
    """
    Find the deepest directory that contains the parents of all the given paths.

    Comparison is component-wise, so "/aa" is not considered a prefix of
    "/aab". A path without a parent, such as a bare filename, contributes an
    empty parent, and so does a filesystem root.

    e.g. /a/b/c, /a/b/d       -> /a/b
         /aa/bb/cc, /aa/dd/ee -> /aa

    Args:
        paths: Paths to compare

    Returns:
        The common root, or `Path()` if there are no paths or nothing is shared
    """
    root: List[str] | None = None
    for path in paths:
        pure = PurePath(path)
        # A filesystem root has no parent
        components: Tuple[str, ...] = () if pure.parent == pure else pure.parent.parts
        if root is None:
            root = list(components)
            continue

        matched = 0
        for a, b in zip(root, components):
            if a != b:
                break

            matched += 1

        del root[matched:]

    if not root:
        return Path()

    return Path(*root)
