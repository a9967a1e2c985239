"""Container runtime selection."""

import logging
from typing import Iterable, Optional

logger = logging.getLogger(__name__)


def runtimes_from_info(info: dict) -> tuple[str, list[str]]:
    """Extract the default and available runtimes from `docker info`."""
    default_runtime = info.get("DefaultRuntime") or ""
    available = list((info.get("Runtimes") or {}).keys())
    return default_runtime, available


def resolve(
    requested: Optional[str],
    available: Iterable[str],
    default: str,
) -> str:
    """Pick the runtime for a new container.

    An unknown runtime is never an error: a warning is logged and the
    daemon's default runtime is used instead.
    """
    available = list(available)

    if requested is None:
        logger.info(f"using default runtime `{default}`")
        return default

    if requested in available:
        logger.info(f"using runtime `{requested}`")
        return requested

    logger.warning(
        f"runtime `{requested}` not found! reverting to the default `{default}`"
    )
    logger.warning(
        "available runtimes are " + " ".join(f"`{name}`" for name in available)
    )
    return default
