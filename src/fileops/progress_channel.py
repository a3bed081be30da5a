"""Bounded mailbox carrying copy progress from a poller to its consumer."""

import asyncio
from types import TracebackType
from typing import Type
import weakref

from fileops.file_copy_progress import FileCopyProgress
from fileops.fileops_exceptions import FileOpsChannelClosedError


class _ChannelState:
    """Mailbox and end-of-stream flags shared by both ends of a channel."""

    def __init__(self, capacity: int) -> None:
        self.queue: asyncio.Queue[FileCopyProgress] = asyncio.Queue(maxsize=capacity)
        self.closed = asyncio.Event()
        self.sender_done = asyncio.Event()
        self.loop: asyncio.AbstractEventLoop | None = None
        try:
            self.loop = asyncio.get_running_loop()

        except RuntimeError:
            pass

    def bind_loop(self) -> None:
        """Remember the loop the channel is used on."""
        if self.loop is None:
            self.loop = asyncio.get_running_loop()

    def receiver_dropped(self) -> None:
        """Close the channel after its receiving end has been garbage collected."""
        loop = self.loop
        if loop is None:
            self.closed.set()
            return

        if loop.is_closed():
            return

        try:
            running = asyncio.get_running_loop()

        except RuntimeError:
            running = None

        if running is loop:
            self.closed.set()
            return

        loop.call_soon_threadsafe(self.closed.set)


class ProgressSender:
    """
    Producing end of a progress channel.

    A sender holds no reference to its `ProgressChannel`, so a consumer that
    drops the channel without closing it still releases the producer.
    """

    def __init__(self, state: _ChannelState) -> None:
        self._state = state

    async def send(self, message: FileCopyProgress) -> bool:
        """
        Deliver a message, waiting while the mailbox is full.

        Args:
            message: Progress message to deliver

        Returns:
            True if the message was queued, False if the consumer has closed or dropped the channel

        Raises:
            RuntimeError: If the sending side has already been closed
        """
        state = self._state
        if state.sender_done.is_set():
            raise RuntimeError("Cannot send on a progress channel after close_sender()")

        if state.closed.is_set():
            return False

        state.bind_loop()
        if not state.queue.full():
            state.queue.put_nowait(message)
            return True

        put_task = asyncio.ensure_future(state.queue.put(message))
        closed_task = asyncio.ensure_future(state.closed.wait())
        try:
            await asyncio.wait({put_task, closed_task}, return_when=asyncio.FIRST_COMPLETED)

        finally:
            closed_task.cancel()
            if not put_task.done():
                put_task.cancel()

        return put_task.done() and not put_task.cancelled()

    def close_sender(self) -> None:
        """Mark the end of the stream; the consumer sees it after draining pending messages."""
        self._state.sender_done.set()

    def is_closed(self) -> bool:
        """Check whether the consumer has closed or dropped the channel."""
        return self._state.closed.is_set()

    async def wait_closed(self) -> None:
        """Wait until the consumer closes or drops the channel."""
        self._state.bind_loop()
        await self._state.closed.wait()


class ProgressChannel:
    """
    Single-producer, single-consumer progress mailbox with backpressure.

    This object is the consumer's end. The producer works through `sender`,
    waiting in `send()` while the mailbox is full and calling `close_sender()`
    when it has nothing more to report. The consumer reads with `recv()` or
    `async for`, and calls `close()` when it no longer wants reports; any
    blocked or later `send()` then returns False. Dropping the last reference
    to the channel closes it the same way.
    """

    def __init__(self, capacity: int = 1) -> None:
        """
        Initialize the channel.

        Args:
            capacity: Number of messages that may be pending before `send()` waits
        """
        self._state = _ChannelState(capacity)
        self._sender = ProgressSender(self._state)
        self._finalizer = weakref.finalize(self, self._state.receiver_dropped)
        self._finalizer.atexit = False

    @property
    def sender(self) -> ProgressSender:
        """The producing end of this channel."""
        return self._sender

    async def send(self, message: FileCopyProgress) -> bool:
        """Deliver a message through the producing end; see `ProgressSender.send`."""
        return await self._sender.send(message)

    def close_sender(self) -> None:
        """Mark the end of the stream through the producing end."""
        self._sender.close_sender()

    async def recv(self) -> FileCopyProgress | None:
        """
        Receive the next message.

        Returns:
            The next progress message, or None once the stream has ended

        Raises:
            FileOpsChannelClosedError: If the consumer has already closed the channel
        """
        state = self._state
        if state.closed.is_set():
            raise FileOpsChannelClosedError("Progress channel has been closed")

        if not state.queue.empty():
            return state.queue.get_nowait()

        if state.sender_done.is_set():
            return None

        state.bind_loop()
        get_task = asyncio.ensure_future(state.queue.get())
        done_task = asyncio.ensure_future(state.sender_done.wait())
        try:
            await asyncio.wait({get_task, done_task}, return_when=asyncio.FIRST_COMPLETED)

        finally:
            done_task.cancel()
            if not get_task.done():
                get_task.cancel()

        if get_task.done() and not get_task.cancelled():
            return get_task.result()

        # The stream ended while we waited; nothing can have been queued after that
        if not state.queue.empty():
            return state.queue.get_nowait()

        return None

    def close(self) -> None:
        """Stop receiving; the producer stops reporting but any work behind it carries on."""
        self._state.closed.set()

    def is_closed(self) -> bool:
        """Check whether the consumer has closed the channel."""
        return self._state.closed.is_set()

    async def wait_closed(self) -> None:
        """Wait until the consumer closes the channel."""
        await self._sender.wait_closed()

    def __aiter__(self) -> "ProgressChannel":
        return self

    async def __anext__(self) -> FileCopyProgress:
        message = await self.recv()
        if message is None:
            raise StopAsyncIteration

        return message

    async def __aenter__(self) -> "ProgressChannel":
        return self

    async def __aexit__(
        self,
        exc_type: Type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None
    ) -> None:
        self.close()
