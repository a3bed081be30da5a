"""
Tests for the bounded progress channel.
"""
import asyncio
import gc

import pytest

from fileops import FileCopyProgress, FileOpsChannelClosedError, ProgressChannel


class TestProgressChannelDelivery:
    """Test normal message flow."""

    def test_messages_arrive_in_order(self):
        """Test that messages are received in the order they were sent."""
        async def run():
            channel = ProgressChannel()

            async def produce():
                for delta in (5, 7, 11):
                    await channel.send(FileCopyProgress.progressed(delta))

                await channel.send(FileCopyProgress.completed())
                channel.close_sender()

            producer = asyncio.create_task(produce())
            received = [message async for message in channel]
            await producer
            return received

        received = asyncio.run(run())

        assert [m.delta for m in received] == [5, 7, 11, 0]
        assert received[-1].is_complete

    def test_recv_after_end_returns_none(self):
        """Test that an ended stream keeps returning None."""
        async def run():
            channel = ProgressChannel()
            await channel.send(FileCopyProgress.completed())
            channel.close_sender()
            return [await channel.recv(), await channel.recv(), await channel.recv()]

        first, second, third = asyncio.run(run())

        assert first == FileCopyProgress.completed()
        assert second is None
        assert third is None

    def test_recv_waits_for_end_of_stream(self):
        """Test that a pending recv wakes with None when the sender closes."""
        async def run():
            channel = ProgressChannel()
            receiver = asyncio.create_task(channel.recv())
            await asyncio.sleep(0)
            assert not receiver.done()
            channel.close_sender()
            return await receiver

        assert asyncio.run(run()) is None

    def test_send_waits_while_full(self):
        """Test backpressure: a second send waits until the first message is taken."""
        async def run():
            channel = ProgressChannel(capacity=1)
            assert await channel.send(FileCopyProgress.progressed(1))

            sender = asyncio.create_task(channel.send(FileCopyProgress.progressed(2)))
            await asyncio.sleep(0.01)
            blocked = not sender.done()

            first = await channel.recv()
            delivered = await sender
            second = await channel.recv()
            return blocked, first, delivered, second

        blocked, first, delivered, second = asyncio.run(run())

        assert blocked
        assert first.delta == 1
        assert delivered
        assert second.delta == 2

    def test_send_after_close_sender_is_an_error(self):
        """Test that the producer cannot send after ending the stream."""
        async def run():
            channel = ProgressChannel()
            channel.close_sender()
            await channel.send(FileCopyProgress.progressed(1))

        with pytest.raises(RuntimeError):
            asyncio.run(run())


class TestProgressChannelConsumerClose:
    """Test the consumer closing the channel."""

    def test_send_after_close_returns_false(self):
        """Test that sending to a closed channel reports non-delivery."""
        async def run():
            channel = ProgressChannel()
            channel.close()
            return await channel.send(FileCopyProgress.progressed(3))

        assert asyncio.run(run()) is False

    def test_blocked_send_released_by_close(self):
        """Test that a send waiting on a full channel returns False once the consumer closes."""
        async def run():
            channel = ProgressChannel(capacity=1)
            await channel.send(FileCopyProgress.progressed(1))
            sender = asyncio.create_task(channel.send(FileCopyProgress.progressed(2)))
            await asyncio.sleep(0)
            channel.close()
            return await sender

        assert asyncio.run(run()) is False

    def test_dropping_channel_releases_blocked_send(self):
        """Test that garbage collecting an unclosed channel closes it for the producer."""
        async def run():
            channel = ProgressChannel(capacity=1)
            sender = channel.sender
            await sender.send(FileCopyProgress.progressed(1))
            pending = asyncio.create_task(sender.send(FileCopyProgress.progressed(2)))
            await asyncio.sleep(0)
            del channel
            gc.collect()
            delivered = await asyncio.wait_for(pending, timeout=1.0)
            return delivered, sender.is_closed()

        assert asyncio.run(run()) == (False, True)

    def test_sender_sees_explicit_close(self):
        """Test that the producing end observes the consumer closing."""
        async def run():
            channel = ProgressChannel()
            sender = channel.sender
            waiter = asyncio.create_task(sender.wait_closed())
            await asyncio.sleep(0)
            channel.close()
            await asyncio.wait_for(waiter, timeout=1.0)
            return sender.is_closed(), await sender.send(FileCopyProgress.progressed(1))

        assert asyncio.run(run()) == (True, False)

    def test_recv_after_close_raises(self):
        """Test that reading a closed channel raises."""
        async def run():
            channel = ProgressChannel()
            channel.close()
            await channel.recv()

        with pytest.raises(FileOpsChannelClosedError):
            asyncio.run(run())

    def test_close_is_idempotent(self):
        """Test that closing twice is harmless."""
        channel = ProgressChannel()
        channel.close()
        channel.close()

        assert channel.is_closed()

    def test_wait_closed(self):
        """Test that wait_closed wakes when the consumer closes."""
        async def run():
            channel = ProgressChannel()
            waiter = asyncio.create_task(channel.wait_closed())
            await asyncio.sleep(0)
            assert not waiter.done()
            channel.close()
            await asyncio.wait_for(waiter, timeout=1.0)
            return channel.is_closed()

        assert asyncio.run(run())

    def test_async_context_manager_closes(self):
        """Test that leaving an async with block closes the channel."""
        async def run():
            async with ProgressChannel() as channel:
                assert not channel.is_closed()

            return channel.is_closed()

        assert asyncio.run(run())
