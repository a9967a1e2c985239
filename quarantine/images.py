"""Image provisioning."""

import logging

import docker

from quarantine import engine

logger = logging.getLogger(__name__)


class ImageProvisioner:
    """Pulls the session image, tolerating per-layer errors.

    Engines report benign warnings through the same channel as real layer
    errors, so only a broken stream is treated as a failure.
    """

    def __init__(self, docker_client: docker.DockerClient):
        self.docker_client = docker_client

    async def ensure(self, image_name: str) -> None:
        """Pull `image_name`; raises TransportError if the stream breaks."""
        logger.info(f"pulling image: {image_name}")
        events = await engine.call(
            f"pull {image_name}",
            self.docker_client.api.pull,
            image_name,
            stream=True,
            decode=True,
        )
        events = iter(events)

        errors = 0
        while True:
            event = await engine.next_item(f"pull {image_name}", events)
            if event is None:
                break
            if self._log_event(event):
                errors += 1

        if errors:
            logger.warning(f"image pull finished with {errors} error event(s)")

    @staticmethod
    def _log_event(event: dict) -> bool:
        """Log one pull progress event. Returns True for error events."""
        error = event.get("error")
        if error:
            logger.error(f"{error}")
            detail = event.get("errorDetail") or {}
            code, message = detail.get("code"), detail.get("message")
            if code is not None and message is not None:
                logger.error(f"{code} :: {message}")
            return True

        logger.info(
            f"{event.get('id', '')} {event.get('status', '')} {event.get('progress', '')}"
        )
        return False
