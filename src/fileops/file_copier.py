"""File copying with live progress reporting."""

import asyncio
from dataclasses import dataclass
import logging
import os
from pathlib import Path
import shutil
import sys
from typing import Coroutine, Any, Set

from fileops.file_copy_progress import FileCopyProgress
from fileops.fileops_exceptions import FileOpsCopyError
from fileops.fileops_settings import FileOpsSettings
from fileops.progress_channel import ProgressChannel, ProgressSender


# Seconds between 1601-01-01 (Windows FILETIME epoch) and 1970-01-01
_FILETIME_EPOCH_OFFSET = 11644473600


@dataclass(frozen=True)
class FileTimes:
    """Timestamps to carry from a copy's source to its destination."""
    accessed_ns: int
    modified_ns: int
    created: float | None = None

    @classmethod
    def from_stat(cls, source_stat: os.stat_result) -> "FileTimes":
        """
        Capture the timestamps of a source file.

        Args:
            source_stat: Metadata of the source file

        Returns:
            Timestamps to apply to the destination
        """
        created = getattr(source_stat, "st_birthtime", None)
        if created is None and sys.platform == "win32":
            # Before Python 3.12, st_ctime is the creation time on Windows
            created = source_stat.st_ctime

        return cls(
            accessed_ns=source_stat.st_atime_ns,
            modified_ns=source_stat.st_mtime_ns,
            created=created
        )


@dataclass(frozen=True)
class _CopyOutcome:
    """Result passed from the copier task to the poller task."""
    length: int = 0
    error: FileOpsCopyError | None = None


class FileCopier:
    """
    Copies files while reporting progress to a consumer.

    Each copy runs as two background tasks. The copier task does the work and
    resolves a one-shot completion future exactly once. The poller task wakes
    on completion, on the consumer closing its channel, or on a periodic tick,
    and reports growth of the destination file as progress deltas.

    Closing the channel only stops the reports: the copy itself, including
    the timestamp update, always runs to completion or failure.
    """

    def __init__(self, settings: FileOpsSettings | None = None) -> None:
        """
        Initialize the copier.

        Args:
            settings: Settings controlling the poll interval and channel capacity

        Raises:
            FileOpsSettingsError: If the settings hold unusable values
        """
        self._settings = settings if settings is not None else FileOpsSettings.create_default()
        self._settings.validate()
        self._tasks: Set[asyncio.Task[None]] = set()
        self._logger = logging.getLogger("FileCopier")

    def copy_with_progress(self, source: Path, destination: Path, source_stat: os.stat_result) -> ProgressChannel:
        """
        Start copying a file and return the channel its progress is reported on.

        Must be called while an event loop is running. Returns immediately.

        Args:
            source: File to copy
            destination: Path to copy to
            source_stat: Metadata of the source, used to preserve its timestamps

        Returns:
            Channel yielding progress messages until the copy finishes
        """
        source = Path(source)
        destination = Path(destination)
        channel = ProgressChannel(self._settings.channel_capacity)
        done: asyncio.Future[_CopyOutcome] = asyncio.get_running_loop().create_future()

        self._logger.debug("Copy requested: %s -> %s", source, destination)
        self._create_tracked_task(self._copy(source, destination, FileTimes.from_stat(source_stat), done))
        self._create_tracked_task(self._poll(destination, channel.sender, done))
        return channel

    async def wait_idle(self) -> None:
        """Wait until every copy started by this copier has finished; cancelling the wait leaves the copies running."""
        while self._tasks:
            await asyncio.wait(set(self._tasks))

    def _create_tracked_task(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        """
        Create a tracked asyncio task.

        Args:
            coro: Coroutine to create task from

        Returns:
            Created task
        """
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _copy(
        self,
        source: Path,
        destination: Path,
        times: FileTimes,
        done: "asyncio.Future[_CopyOutcome]"
    ) -> None:
        """Copy the bytes, then the timestamps, and resolve the completion future."""
        try:
            length = await asyncio.to_thread(self._copy_file_sync, source, destination)

        except Exception as e:
            self._logger.warning("Copy failed: %s -> %s: %s", source, destination, str(e))
            error = FileOpsCopyError(
                f"Failed to copy file: {str(e)}",
                {"source": str(source), "destination": str(destination), "errno": getattr(e, "errno", None)}
            )
            error.__cause__ = e
            done.set_result(_CopyOutcome(error=error))
            return

        try:
            await asyncio.to_thread(self._apply_file_times, destination, times)

        except Exception as e:
            # Timestamp failures never fail the copy
            self._logger.warning("Failed to preserve timestamps on %s: %s", destination, str(e), exc_info=True)

        self._logger.debug("Copy finished: %s -> %s (%d bytes)", source, destination, length)
        done.set_result(_CopyOutcome(length=length))

    async def _poll(
        self,
        destination: Path,
        sender: ProgressSender,
        done: "asyncio.Future[_CopyOutcome]"
    ) -> None:
        """Report destination growth until the copy completes or the consumer goes away."""
        last = 0
        try:
            while True:
                await self._wait_for_event(sender, done)
                if sender.is_closed():
                    self._logger.debug("Progress consumer closed or dropped its channel; copy to %s continues unreported", destination)
                    return

                if done.done():
                    outcome = done.result()
                    if outcome.error is not None:
                        await sender.send(FileCopyProgress.failed(outcome.error))
                        return

                    if outcome.length > last:
                        await sender.send(FileCopyProgress.progressed(outcome.length - last))

                    await sender.send(FileCopyProgress.completed())
                    return

                length = await asyncio.to_thread(self._sample_length, destination)
                if length > last:
                    await sender.send(FileCopyProgress.progressed(length - last))
                    last = length

        finally:
            sender.close_sender()

    async def _wait_for_event(self, sender: ProgressSender, done: "asyncio.Future[_CopyOutcome]") -> None:
        """Wait for completion, the consumer closing, or the next tick, whichever comes first."""
        closed_task = asyncio.ensure_future(sender.wait_closed())
        tick_task = asyncio.ensure_future(asyncio.sleep(self._settings.progress_interval))
        try:
            await asyncio.wait({done, closed_task, tick_task}, return_when=asyncio.FIRST_COMPLETED)

        finally:
            closed_task.cancel()
            tick_task.cancel()

    def _copy_file_sync(self, source: Path, destination: Path) -> int:
        """Synchronous helper for copying file contents and permission bits."""
        shutil.copyfile(source, destination)
        shutil.copymode(source, destination)
        return os.stat(destination).st_size

    def _sample_length(self, destination: Path) -> int:
        """Current size of the destination, or 0 if it cannot be read yet."""
        try:
            return os.lstat(destination).st_size

        except OSError:
            return 0

    def _apply_file_times(self, destination: Path, times: FileTimes) -> None:
        """Apply source timestamps to the destination; failures are logged, not raised."""
        try:
            os.utime(destination, ns=(times.accessed_ns, times.modified_ns))

        except OSError as e:
            self._logger.warning("Failed to set timestamps on %s: %s", destination, str(e))
            return

        if sys.platform == "win32" and times.created is not None:
            self._set_creation_time_windows(destination, times.created)

    def _set_creation_time_windows(self, destination: Path, created: float) -> None:
        """Use the Windows API to set a file's creation time."""
        # pylint: disable=import-outside-toplevel
        import ctypes
        from ctypes import wintypes

        filetime = ctypes.c_ulonglong(int((created + _FILETIME_EPOCH_OFFSET) * 10_000_000))
        kernel32 = ctypes.windll.kernel32  # type: ignore[attr-defined]
        kernel32.CreateFileW.restype = wintypes.HANDLE
        handle = kernel32.CreateFileW(
            str(destination),
            wintypes.DWORD(0x40000000),  # GENERIC_WRITE
            wintypes.DWORD(0x00000001 | 0x00000002),  # FILE_SHARE_READ | FILE_SHARE_WRITE
            None,
            wintypes.DWORD(3),  # OPEN_EXISTING
            wintypes.DWORD(0x80),  # FILE_ATTRIBUTE_NORMAL
            None
        )
        if handle == wintypes.HANDLE(-1).value:
            self._logger.warning("Failed to open %s to set its creation time", destination)
            return

        try:
            if not kernel32.SetFileTime(handle, ctypes.byref(filetime), None, None):
                self._logger.warning("Failed to set creation time on %s", destination)

        finally:
            kernel32.CloseHandle(handle)


_copier = FileCopier()


def copy_with_progress(source: Path, destination: Path, source_stat: os.stat_result) -> ProgressChannel:
    """Start a progress-reporting copy; see `FileCopier.copy_with_progress`."""
    return _copier.copy_with_progress(source, destination, source_stat)
