"""Container lifecycle: reconciliation, creation and teardown."""

import logging

import docker

from quarantine import engine
from quarantine.models import MOUNT_TARGET, BindMount, ContainerHandle

logger = logging.getLogger(__name__)


def _matches(container: dict, name: str) -> bool:
    for candidate in container.get("Names") or []:
        if candidate.startswith("/"):
            candidate = candidate[1:]
        if candidate == name:
            return True
    return False


class ContainerManager:
    """Keeps at most one container per identity and owns its lifecycle.

    Listing and removal are separate engine calls, so two invocations for
    the same image can race. That is acceptable for a single-operator CLI.
    """

    def __init__(self, docker_client: docker.DockerClient):
        self.docker_client = docker_client

    async def ensure_clean(self, name: str) -> None:
        """Stop and remove any earlier container called `name`."""
        api = self.docker_client.api
        containers = await engine.call("list containers", api.containers, all=True)

        logger.info(
            f"checking for any previously running containers with the name: {name}"
        )
        for container in containers:
            if not _matches(container, name):
                continue
            state = container.get("State")
            if state is None:
                continue
            if state.lower() == "running":
                logger.info(f"stopping running container: {name}")
                await engine.call(f"stop {name}", api.stop, name)
            logger.info(f"removing container: {name}")
            await engine.call(f"remove {name}", api.remove_container, name)

    async def create_and_start(
        self,
        name: str,
        image_name: str,
        runtime: str,
        bind: BindMount,
    ) -> ContainerHandle:
        """Create the container under `name` and start it."""
        api = self.docker_client.api
        # the SDK validates runtime support against the daemon's API version here
        host_config = await engine.call(
            f"configure {name}",
            api.create_host_config,
            binds=[bind.bind_string],
            runtime=runtime or None,
        )
        container = await engine.call(
            f"create {name}",
            api.create_container,
            image_name,
            name=name,
            tty=True,
            working_dir=MOUNT_TARGET,
            # keeps the mount point present even if the bind fails to attach
            volumes=[MOUNT_TARGET],
            host_config=host_config,
        )
        handle = ContainerHandle(container_id=container["Id"], name=name)

        logger.info(f"starting new container: {handle.container_id} :: name: {name}")
        await engine.call(f"start {name}", api.start, handle.container_id)
        logger.info(f"container started: {handle.container_id} :: name: {name}")
        return handle

    async def cleanup(self, name: str) -> None:
        """Stop and remove the session container."""
        api = self.docker_client.api
        logger.info(f"stopping container: {name}")
        await engine.call(f"stop {name}", api.stop, name)

        logger.info(f"removing container: {name}")
        await engine.call(f"remove {name}", api.remove_container, name)
