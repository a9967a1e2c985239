"""Shared fixtures for quarantine tests."""

import asyncio
import io
import socket
from unittest.mock import MagicMock

import pytest

from quarantine.models import ContainerHandle, ExecSession
from quarantine.terminal import Terminal


def make_terminal(stdout=None, stderr=None) -> Terminal:
    """Terminal backed by an in-memory stdin reader and byte buffers.

    Must be called from inside a running event loop.
    """
    return Terminal(
        stdin=asyncio.StreamReader(),
        stdout=stdout if stdout is not None else io.BytesIO(),
        stderr=stderr if stderr is not None else io.BytesIO(),
    )


async def wait_for_output(buffer: io.BytesIO, expected: bytes, timeout: float = 5.0) -> None:
    """Poll `buffer` until it contains `expected`."""
    async def poll():
        while expected not in buffer.getvalue():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(poll(), timeout)


@pytest.fixture
def docker_client():
    """A docker.DockerClient stand-in with an empty engine."""
    client = MagicMock()
    client.info.return_value = {"DefaultRuntime": "runc", "Runtimes": {"runc": {}}}
    client.api.pull.return_value = iter([])
    client.api.containers.return_value = []
    client.api.create_host_config.side_effect = lambda **kwargs: kwargs
    client.api.create_container.return_value = {"Id": "c0ffee" * 8}
    client.api.exec_create.return_value = {"Id": "exec-1"}
    return client


@pytest.fixture
def container():
    return ContainerHandle(container_id="c0ffee" * 8, name="quarantine-alpine-3.19")


@pytest.fixture
def socket_pair():
    """(session side, container side) of a connected socket pair."""
    local, remote = socket.socketpair()
    yield local, remote
    for sock in (local, remote):
        try:
            sock.close()
        except OSError:
            pass


@pytest.fixture
def exec_session(container, socket_pair):
    local, _ = socket_pair
    session = ExecSession(exec_id="exec-1", container=container, sock=local, tty=True)
    yield session
    session.close()
