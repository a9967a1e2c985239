"""Quarantine session lifecycle."""

import asyncio
import logging

import docker

from quarantine import engine
from quarantine.container_manager import ContainerManager
from quarantine.images import ImageProvisioner
from quarantine.models import BindMount, ContainerHandle, SessionConfig
from quarantine.relay import SessionRelay
from quarantine.runtime import resolve, runtimes_from_info
from quarantine.terminal import Terminal

logger = logging.getLogger(__name__)


async def _unless_cancelled(coro, cancel: asyncio.Event):
    """Await `coro` unless `cancel` fires first, in which case return None.

    A blocking engine call already handed to the executor still runs to
    completion in its thread; only the stages after it are skipped.
    """
    work = asyncio.ensure_future(coro)
    interrupted = asyncio.ensure_future(cancel.wait())
    try:
        await asyncio.wait([work, interrupted], return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (work, interrupted):
            if not task.done():
                task.cancel()
        await asyncio.wait([work, interrupted])

    if work.cancelled():
        return None
    return work.result()


class QuarantineSession:
    """Runs one disposable shell session.

    Stages run strictly in order: runtime selection, image pull, removal of
    any stale container with the same name, create and start, the relay,
    and teardown. Once the container has started, teardown runs whatever
    the relay's outcome, unless the session was asked to persist.
    """

    def __init__(self, docker_client: docker.DockerClient, config: SessionConfig):
        self.docker_client = docker_client
        self.config = config
        self.images = ImageProvisioner(docker_client)
        self.containers = ContainerManager(docker_client)
        self.relay = SessionRelay(
            docker_client,
            shell_command=config.shell_command,
            input_chunk_size=config.input_chunk_size,
        )

    async def select_runtime(self) -> str:
        info = await engine.call("query daemon info", self.docker_client.info)
        default_runtime, available = runtimes_from_info(info)
        return resolve(self.config.runtime, available, default_runtime)

    async def prepare(self) -> tuple[str, BindMount]:
        """Every stage before the container exists; safe to abandon midway."""
        runtime = await self.select_runtime()
        await self.images.ensure(self.config.image_name)
        await self.containers.ensure_clean(self.config.container_name)
        return runtime, BindMount.from_cwd()

    async def run(self, terminal: Terminal, cancel: asyncio.Event) -> None:
        prepared = await _unless_cancelled(self.prepare(), cancel)
        if prepared is None:
            logger.info("session interrupted before the container was created")
            return
        runtime, bind = prepared

        # not interruptible: a half-finished create would leak the container
        container = await self.containers.create_and_start(
            self.config.container_name, self.config.image_name, runtime, bind
        )
        try:
            if cancel.is_set():
                logger.info("session interrupted before the shell was attached")
            else:
                session = await self.relay.attach(container)
                try:
                    await self.relay.run(session, terminal, cancel)
                finally:
                    session.close()
        finally:
            await self.teardown(container)
        logger.info("done")

    async def teardown(self, container: ContainerHandle) -> None:
        if self.config.persist:
            logger.info(f"persist requested, leaving container running: {container.name}")
            return
        await self.containers.cleanup(container.name)
