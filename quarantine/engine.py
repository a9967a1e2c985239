"""Access to the Docker engine.

The docker SDK is synchronous; every call is pushed onto the event loop's
default executor so the relay keeps running while the engine works.
"""

import asyncio
import logging
from typing import Any, Callable, Iterator, Optional

import docker
import requests
from docker.errors import DockerException

from quarantine.errors import TransportError

logger = logging.getLogger(__name__)

TRANSPORT_ERRORS = (DockerException, requests.exceptions.RequestException)

_SENTINEL = object()


def connect() -> docker.DockerClient:
    """Connect to the engine configured by the environment (DOCKER_HOST etc.)."""
    try:
        return docker.from_env()
    except TRANSPORT_ERRORS as e:
        raise TransportError(f"cannot connect to the docker engine: {e}") from e


async def call(operation: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Run a blocking engine call in the executor.

    Engine and HTTP failures are raised as TransportError naming `operation`.
    """
    try:
        return await asyncio.get_event_loop().run_in_executor(
            None, lambda: fn(*args, **kwargs)
        )
    except TRANSPORT_ERRORS as e:
        raise TransportError(f"{operation} failed: {e}") from e


async def next_item(operation: str, iterator: Iterator[Any]) -> Optional[Any]:
    """Fetch the next item of a blocking stream, or None once it is exhausted."""
    item = await call(operation, next, iterator, _SENTINEL)
    if item is _SENTINEL:
        return None
    return item
