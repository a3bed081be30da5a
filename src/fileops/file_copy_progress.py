"""Progress messages reported while a file is copied."""

from dataclasses import dataclass
from enum import Enum, auto

from fileops.fileops_exceptions import FileOpsCopyError


class FileCopyProgressKind(Enum):
    """Kinds of progress message."""
    DELTA = auto()
    ERROR = auto()


@dataclass(frozen=True)
class FileCopyProgress:
    """
    One progress report from a running copy.

    A DELTA message carries the bytes copied since the previous report. A
    DELTA of 0 is only ever sent once, as the last message of a successful
    copy. An ERROR message is the last message of a failed copy.
    """
    kind: FileCopyProgressKind
    delta: int = 0
    error: FileOpsCopyError | None = None

    @classmethod
    def progressed(cls, delta: int) -> "FileCopyProgress":
        """
        Create a message reporting newly copied bytes.

        Args:
            delta: Bytes copied since the last report; must be positive

        Returns:
            DELTA progress message

        Raises:
            ValueError: If delta is zero or negative; a zero delta is reserved for completion
        """
        if delta <= 0:
            raise ValueError(f"Progress delta must be positive: {delta}")

        return cls(kind=FileCopyProgressKind.DELTA, delta=delta)

    @classmethod
    def completed(cls) -> "FileCopyProgress":
        """Create the message that ends a successful copy."""
        return cls(kind=FileCopyProgressKind.DELTA, delta=0)

    @classmethod
    def failed(cls, error: FileOpsCopyError) -> "FileCopyProgress":
        """
        Create the message that ends a failed copy.

        Args:
            error: Why the copy failed

        Returns:
            ERROR progress message
        """
        return cls(kind=FileCopyProgressKind.ERROR, error=error)

    @property
    def is_complete(self) -> bool:
        """True if this message marks successful completion."""
        return self.kind == FileCopyProgressKind.DELTA and self.delta == 0

    @property
    def is_error(self) -> bool:
        """True if this message reports a failure."""
        return self.kind == FileCopyProgressKind.ERROR
