"""Tests for the local terminal endpoints."""

import asyncio
import io
import os
import pty
import signal
import threading
import tty

import pytest

from quarantine.terminal import Terminal, _FdReader, _FileReader, install_interrupt_handler


@pytest.fixture
def pty_pair():
    """(master, slave) descriptors of a raw-mode pseudo terminal."""
    master, slave = pty.openpty()
    tty.setraw(slave)
    yield master, slave
    os.close(master)
    os.close(slave)


async def read_exactly(reader, size: int) -> bytes:
    data = b""
    while len(data) < size:
        data += await asyncio.wait_for(reader.read(1024), 5)
    return data


class TestTerminal:
    """Test stdin handling."""

    @pytest.mark.asyncio
    async def test_file_reader(self, tmp_path):
        path = tmp_path / "input.txt"
        path.write_bytes(b"ls -la\n")
        fd = os.open(path, os.O_RDONLY)
        try:
            reader = _FileReader(fd)
            assert await reader.read(1024) == b"ls -la\n"
            assert await reader.read(1024) == b""
        finally:
            os.close(fd)

    @pytest.mark.asyncio
    async def test_redirected_file_uses_file_reader(self, tmp_path):
        path = tmp_path / "input.txt"
        path.write_bytes(b"exit\n")
        with open(path, "rb") as stdin:
            terminal = await Terminal.open(stdin=stdin, stdout=io.BytesIO(), stderr=io.BytesIO())
            assert isinstance(terminal.stdin, _FileReader)
            assert await terminal.stdin.read(1024) == b"exit\n"

    @pytest.mark.asyncio
    async def test_tty_stays_blocking(self, pty_pair):
        """Opening the terminal must not switch the shared tty to non-blocking."""
        master, slave = pty_pair
        with open(slave, "rb", buffering=0, closefd=False) as stdin:
            terminal = await Terminal.open(stdin=stdin, stdout=io.BytesIO(), stderr=io.BytesIO())

            assert isinstance(terminal.stdin, _FdReader)
            assert os.get_blocking(slave) is True

            os.write(master, b"ls\n")
            assert await read_exactly(terminal.stdin, 3) == b"ls\n"
            assert os.get_blocking(slave) is True

    @pytest.mark.asyncio
    async def test_output_burst_is_not_lost(self, pty_pair):
        """A burst larger than the tty buffer reaches the terminal in full."""
        master, slave = pty_pair
        payload = b"x" * (1 << 20)
        received = bytearray()

        def drain():
            while len(received) < len(payload):
                received.extend(os.read(master, 65536))

        with open(slave, "rb", buffering=0, closefd=False) as stdin, open(
            slave, "wb", closefd=False
        ) as stdout:
            terminal = await Terminal.open(stdin=stdin, stdout=stdout, stderr=io.BytesIO())
            reader = threading.Thread(target=drain, daemon=True)
            reader.start()

            terminal.stdout.write(payload)
            terminal.stdout.flush()
            reader.join(10)

        assert len(received) == len(payload)

    @pytest.mark.asyncio
    async def test_cancelled_read_releases_descriptor(self, pty_pair):
        master, slave = pty_pair
        reader = _FdReader(slave)

        pending = asyncio.ensure_future(reader.read(1024))
        await asyncio.sleep(0.05)
        pending.cancel()
        with pytest.raises(asyncio.CancelledError):
            await pending

        os.write(master, b"pwd\n")
        assert await read_exactly(reader, 4) == b"pwd\n"


class TestInterruptHandler:
    """Test Ctrl-C handling."""

    @pytest.mark.asyncio
    async def test_sigint_sets_cancel(self):
        cancel = asyncio.Event()
        install_interrupt_handler(cancel)
        try:
            os.kill(os.getpid(), signal.SIGINT)
            await asyncio.wait_for(cancel.wait(), 5)
        finally:
            asyncio.get_running_loop().remove_signal_handler(signal.SIGINT)
        assert cancel.is_set()
