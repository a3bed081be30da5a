"""
Filesystem primitives for file managers.

This package provides case-aware symlink realpath resolution, iterative
directory size calculation, file copying with live progress reporting, and
common-root computation for sets of paths.
"""

from fileops.common_root import common_root
from fileops.directory_size import DirectorySizeCalculator, directory_size
from fileops.file_copier import FileCopier, FileTimes, copy_with_progress
from fileops.file_copy_progress import FileCopyProgress, FileCopyProgressKind
from fileops.fileops_exceptions import (
    FileOpsChannelClosedError,
    FileOpsCopyError,
    FileOpsError,
    FileOpsSettingsError,
)
from fileops.fileops_helpers import maybe_exist, must_exist, ok_or_not_found, permissions
from fileops.fileops_settings import FileOpsSettings
from fileops.progress_channel import ProgressChannel, ProgressSender
from fileops.realpath_cache import RealpathCache
from fileops.realpath_resolver import RealpathResolver, resolve_symlink_realpath, resolve_with_cache

__all__ = [
    # Exceptions
    'FileOpsError',
    'FileOpsCopyError',
    'FileOpsChannelClosedError',
    'FileOpsSettingsError',
    # Types
    'FileCopyProgress',
    'FileCopyProgressKind',
    'FileOpsSettings',
    'FileTimes',
    'ProgressChannel',
    'ProgressSender',
    'RealpathCache',
    # Core classes
    'DirectorySizeCalculator',
    'FileCopier',
    'RealpathResolver',
    # Operations
    'common_root',
    'copy_with_progress',
    'directory_size',
    'resolve_symlink_realpath',
    'resolve_with_cache',
    # Helpers
    'maybe_exist',
    'must_exist',
    'ok_or_not_found',
    'permissions',
]
