"""Process-wide identity directory handle.

Mirrors the limiter wiring in ``app.core.rate_limit``: the directory is built
lazily from settings, reused across requests (one HTTP connection pool), and
closed on shutdown.
"""

from __future__ import annotations

import logging

from app.adapters.identity.base import AbstractIdentityDirectory
from app.adapters.identity.factory import create_identity_directory

logger = logging.getLogger(__name__)

_directory: AbstractIdentityDirectory | None = None


def get_identity_directory() -> AbstractIdentityDirectory:
    """Return the shared identity directory, creating it on first use."""

    global _directory

    if _directory is None:
        _directory = create_identity_directory()
        logger.info(
            "identity.directory_created",
            extra={"adapter": type(_directory).__name__},
        )
    return _directory


async def close_identity_directory() -> None:
    global _directory

    if _directory is not None:
        await _directory.close()
    _directory = None
