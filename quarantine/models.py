"""Internal models for quarantine sessions."""

import logging
import os
import socket
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional

from docker.utils.socket import STDERR, STDOUT, frames_iter

from quarantine.errors import PathEncodingError

logger = logging.getLogger(__name__)

CONTAINER_PREFIX = "quarantine-"
MOUNT_TARGET = "/quarantine"
# stty -echo: the local terminal already echoes keystrokes
SHELL_COMMAND = ["sh", "-c", "stty -echo; exec sh"]
INPUT_CHUNK_SIZE = 1024


class FrameKind(str, Enum):
    """Origin of an output frame."""
    STDOUT = "stdout"
    STDERR = "stderr"
    CONSOLE = "console"
    ERROR = "error"
    OTHER = "other"


@dataclass(frozen=True)
class OutputFrame:
    """One unit of the container's output stream."""
    kind: FrameKind
    data: bytes = b""
    message: str = ""

    @classmethod
    def from_stream(cls, stream_id: int, data: bytes, tty: bool) -> "OutputFrame":
        """Tag a chunk read from the exec socket."""
        if tty:
            return cls(FrameKind.CONSOLE, data)
        if stream_id == STDOUT:
            return cls(FrameKind.STDOUT, data)
        if stream_id == STDERR:
            return cls(FrameKind.STDERR, data)
        return cls(FrameKind.OTHER, data)


def container_identity(image_name: str) -> str:
    """Deterministic container name for an image reference."""
    return CONTAINER_PREFIX + image_name.replace(":", "-")


@dataclass(frozen=True)
class BindMount:
    """Host directory exposed read-write at the container mount target."""
    source: str
    target: str = MOUNT_TARGET

    @classmethod
    def from_cwd(cls) -> "BindMount":
        return cls.from_path(os.getcwd())

    @classmethod
    def from_path(cls, path: str) -> "BindMount":
        """Bind `path`; it must be representable as UTF-8 text."""
        try:
            path.encode("utf-8")
        except UnicodeEncodeError as e:
            raise PathEncodingError(
                "current working directory path is not valid unicode"
            ) from e
        return cls(source=path)

    @property
    def bind_string(self) -> str:
        return f"{self.source}:{self.target}"


@dataclass(frozen=True)
class ContainerHandle:
    """A container created by this invocation."""
    container_id: str
    name: str


@dataclass
class SessionConfig:
    """Options for a single quarantine run."""
    image_name: str
    runtime: Optional[str] = None
    persist: bool = False
    shell_command: list[str] = field(default_factory=lambda: list(SHELL_COMMAND))
    input_chunk_size: int = INPUT_CHUNK_SIZE

    @property
    def container_name(self) -> str:
        return container_identity(self.image_name)


def _raw_socket(sock: Any) -> Any:
    # docker returns a SocketIO wrapper for unix sockets; the real socket is _sock
    return getattr(sock, "_sock", sock)


@dataclass
class ExecSession:
    """An attached, tty-enabled exec instance inside a container."""
    exec_id: str
    container: ContainerHandle
    sock: Any
    tty: bool = True

    def send(self, data: bytes) -> None:
        """Write bytes to the exec's stdin."""
        _raw_socket(self.sock).sendall(data)

    def frames(self) -> Iterator[OutputFrame]:
        """Yield output frames until the stream closes.

        A read failure is reported as a single ERROR frame, after which the
        stream is considered closed.
        """
        try:
            for stream_id, data in frames_iter(self.sock, self.tty):
                yield OutputFrame.from_stream(stream_id, data, self.tty)
        except OSError as e:
            yield OutputFrame(FrameKind.ERROR, message=str(e))

    def close(self) -> None:
        """Release the exec socket, waking any thread blocked reading it."""
        raw = _raw_socket(self.sock)
        try:
            raw.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.debug(f"exec socket already shut down: {e}")
        self.sock.close()
