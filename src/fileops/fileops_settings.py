"""Settings for filesystem operations."""

from dataclasses import dataclass

from fileops.fileops_exceptions import FileOpsSettingsError


@dataclass
class FileOpsSettings:
    """
    Tunables for the filesystem operations.

    Attributes:
        progress_interval: Seconds between destination size samples while a copy runs
        channel_capacity: Number of progress messages that may be pending before the poller waits
    """
    progress_interval: float = 3.0
    channel_capacity: int = 1

    @classmethod
    def create_default(cls) -> "FileOpsSettings":
        """Create settings with the default values."""
        return cls(
            progress_interval=3.0,
            channel_capacity=1
        )

    def validate(self) -> None:
        """
        Check that all values are usable.

        Raises:
            FileOpsSettingsError: If any value is out of range
        """
        # bool is an int subclass, so reject it explicitly
        if isinstance(self.progress_interval, bool) or not isinstance(self.progress_interval, (int, float)) \
                or self.progress_interval <= 0:
            raise FileOpsSettingsError(
                f"progress_interval must be a positive number, got {self.progress_interval!r}",
                {"key": "progress_interval"}
            )

        if isinstance(self.channel_capacity, bool) or not isinstance(self.channel_capacity, int) \
                or self.channel_capacity <= 0:
            raise FileOpsSettingsError(
                f"channel_capacity must be a positive integer, got {self.channel_capacity!r}",
                {"key": "channel_capacity"}
            )
