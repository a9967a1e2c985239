"""Interactive exec session and the terminal <-> container relay."""

import asyncio
import logging

import docker

from quarantine import engine
from quarantine.errors import SessionAttachError
from quarantine.models import (
    INPUT_CHUNK_SIZE,
    SHELL_COMMAND,
    ContainerHandle,
    ExecSession,
    FrameKind,
    OutputFrame,
)
from quarantine.terminal import Terminal

logger = logging.getLogger(__name__)


class SessionRelay:
    """Attaches a shell to a running container and pipes it to the terminal.

    The relay races three tasks: stdin -> container, container -> stdout,
    and the cancellation event. The first one to finish ends the relay and
    the others are cancelled without draining, so bytes still in flight on
    the losing side can be dropped.
    """

    def __init__(
        self,
        docker_client: docker.DockerClient,
        shell_command: list[str] = SHELL_COMMAND,
        input_chunk_size: int = INPUT_CHUNK_SIZE,
    ):
        self.docker_client = docker_client
        self.shell_command = list(shell_command)
        self.input_chunk_size = input_chunk_size

    async def attach(self, container: ContainerHandle) -> ExecSession:
        """Start an interactive shell in `container` and return its stream."""
        api = self.docker_client.api
        logger.info("creating an exec instance to run a shell in the container")
        exec_instance = await engine.call(
            "create exec",
            api.exec_create,
            container.name,
            self.shell_command,
            stdin=True,
            stdout=True,
            stderr=True,
            tty=True,
        )
        exec_id = exec_instance["Id"]

        sock = await engine.call(
            "start exec",
            api.exec_start,
            exec_id,
            detach=False,
            tty=True,
            socket=True,
        )
        if sock is None or isinstance(sock, (bytes, str)):
            raise SessionAttachError("failed to execute shell inside container")

        return ExecSession(exec_id=exec_id, container=container, sock=sock, tty=True)

    async def run(
        self,
        session: ExecSession,
        terminal: Terminal,
        cancel: asyncio.Event,
    ) -> None:
        """Relay until stdin ends, the container output ends, or `cancel` is set.

        Raises the error of the first finished task, if it failed.
        """
        logger.info("redirecting inputs and outputs")
        tasks = [
            asyncio.ensure_future(self._pump_input(session, terminal)),
            asyncio.ensure_future(self._pump_output(session, terminal)),
            asyncio.ensure_future(cancel.wait()),
        ]
        try:
            done, pending = await asyncio.wait(
                tasks, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        # let the cancellations land; the streams themselves are not drained
        if pending:
            await asyncio.wait(pending)

        if tasks[2] in done:
            logger.info("session interrupted")

        for task in tasks:
            if task in done and not task.cancelled() and task.exception() is not None:
                raise task.exception()

    async def _pump_input(self, session: ExecSession, terminal: Terminal) -> None:
        loop = asyncio.get_event_loop()
        while True:
            chunk = await terminal.stdin.read(self.input_chunk_size)
            if not chunk:
                logger.info("EOF reached on stdin")
                return
            await loop.run_in_executor(None, session.send, chunk)

    async def _pump_output(self, session: ExecSession, terminal: Terminal) -> None:
        loop = asyncio.get_event_loop()
        frames = session.frames()
        end = object()
        while True:
            frame = await loop.run_in_executor(None, next, frames, end)
            if frame is end:
                return
            self._write_frame(frame, terminal)
            terminal.stdout.flush()
            terminal.stderr.flush()

    @staticmethod
    def _write_frame(frame: OutputFrame, terminal: Terminal) -> None:
        if frame.kind in (FrameKind.STDOUT, FrameKind.CONSOLE):
            terminal.stdout.write(frame.data)
        elif frame.kind == FrameKind.STDERR:
            terminal.stderr.write(frame.data)
        elif frame.kind == FrameKind.ERROR:
            logger.error(f"error reading output: {frame.message}")
        else:
            logger.info(f"{frame}")
