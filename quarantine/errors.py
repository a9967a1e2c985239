"""Errors raised while running a quarantine session."""


class QuarantineError(Exception):
    """Base class for quarantine failures."""


class TransportError(QuarantineError):
    """The Docker engine is unreachable or a remote call failed."""


class PathEncodingError(QuarantineError):
    """The host working directory cannot be expressed as text."""


class SessionAttachError(QuarantineError):
    """The engine did not hand back an attached exec stream."""
