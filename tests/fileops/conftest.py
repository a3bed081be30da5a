"""Shared fixtures and utilities for filesystem operation tests."""

from pathlib import Path
from types import SimpleNamespace
from typing import Callable, Dict, List

import pytest

from fileops import FileOpsSettings


@pytest.fixture
def fast_settings():
    """Fixture providing settings with a short poll interval so copies report quickly."""
    return FileOpsSettings(progress_interval=0.01, channel_capacity=1)


@pytest.fixture
def make_tree(tmp_path):
    """
    Factory that builds a directory tree under the test's temporary directory.

    Keys are relative paths. A bytes value creates a file with that content,
    None creates a directory.
    """
    def _make_tree(layout: Dict[str, bytes | None], root_name: str = "tree") -> Path:
        root = tmp_path / root_name
        root.mkdir()
        for relative, content in layout.items():
            target = root / relative
            if content is None:
                target.mkdir(parents=True, exist_ok=True)
                continue

            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)

        return root

    return _make_tree


@pytest.fixture
def fake_entries() -> Callable[[List[str]], List[SimpleNamespace]]:
    """Factory for directory entries as returned by os.scandir, with only a name."""
    def _fake_entries(names: List[str]) -> List[SimpleNamespace]:
        return [SimpleNamespace(name=name) for name in names]

    return _fake_entries
