"""Local terminal endpoints for the relay."""

import asyncio
import logging
import os
import signal
import sys
from dataclasses import dataclass
from typing import BinaryIO, Optional

logger = logging.getLogger(__name__)


class _FdReader:
    """Reads stdin once the event loop reports it readable.

    The descriptor stays in blocking mode: stdin and stdout usually share one
    open tty, and a non-blocking stdout silently drops output bursts.
    """

    def __init__(self, fd: int):
        self._fd = fd

    async def read(self, n: int) -> bytes:
        loop = asyncio.get_event_loop()
        readable = loop.create_future()

        def on_readable():
            if not readable.done():
                readable.set_result(None)

        loop.add_reader(self._fd, on_readable)
        try:
            await readable
        finally:
            loop.remove_reader(self._fd)
        return os.read(self._fd, n)


class _FileReader:
    """Executor-backed reader for stdin redirected from a regular file."""

    def __init__(self, fd: int):
        self._fd = fd

    async def read(self, n: int) -> bytes:
        return await asyncio.get_event_loop().run_in_executor(None, os.read, self._fd, n)


def _can_watch(loop: asyncio.AbstractEventLoop, fd: int) -> bool:
    # epoll refuses regular files; Windows loops only watch sockets
    try:
        loop.add_reader(fd, lambda: None)
    except (PermissionError, NotImplementedError, ValueError):
        return False
    loop.remove_reader(fd)
    return True


@dataclass
class Terminal:
    """Input reader plus binary output streams of the invoking terminal."""
    stdin: "_FdReader | _FileReader"
    stdout: BinaryIO
    stderr: BinaryIO

    @classmethod
    async def open(
        cls,
        stdin: Optional[BinaryIO] = None,
        stdout: Optional[BinaryIO] = None,
        stderr: Optional[BinaryIO] = None,
    ) -> "Terminal":
        """Wrap the given streams, by default the process's stdin/stdout/stderr."""
        loop = asyncio.get_event_loop()
        fd = (stdin or sys.stdin).fileno()
        reader = _FdReader(fd) if _can_watch(loop, fd) else _FileReader(fd)

        return cls(
            stdin=reader,
            stdout=stdout or sys.stdout.buffer,
            stderr=stderr or sys.stderr.buffer,
        )


def install_interrupt_handler(cancel: asyncio.Event) -> None:
    """Set `cancel` when the user presses Ctrl-C."""
    loop = asyncio.get_event_loop()

    def handle_signal(sig):
        logger.info(f"Received signal {sig}, ending session...")
        cancel.set()

    try:
        loop.add_signal_handler(signal.SIGINT, handle_signal, signal.SIGINT)
    except NotImplementedError:
        # no add_signal_handler on Windows event loops
        signal.signal(
            signal.SIGINT,
            lambda sig, frame: loop.call_soon_threadsafe(handle_signal, sig),
        )
