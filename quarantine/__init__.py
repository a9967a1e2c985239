# quarantine - a throwaway shell for untrusted code
"""
quarantine - Disposable interactive shells in Docker containers.

Mounts the current directory into a fresh container (optionally under a
sandboxed runtime such as gVisor), relays the terminal to a shell inside
it, and removes the container when the session ends.
"""

from quarantine.errors import (
    PathEncodingError,
    QuarantineError,
    SessionAttachError,
    TransportError,
)
from quarantine.models import (
    BindMount,
    ContainerHandle,
    ExecSession,
    FrameKind,
    OutputFrame,
    SessionConfig,
    container_identity,
)
from quarantine.session import QuarantineSession

__all__ = [
    "QuarantineSession",
    "SessionConfig",
    "ExecSession",
    "ContainerHandle",
    "BindMount",
    "OutputFrame",
    "FrameKind",
    "container_identity",
    "QuarantineError",
    "TransportError",
    "PathEncodingError",
    "SessionAttachError",
]

__version__ = "0.1.0"
