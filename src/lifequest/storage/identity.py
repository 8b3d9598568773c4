"""Per-installation identifier used as the snapshot document key."""

from __future__ import annotations

import time
from pathlib import Path

from lifequest.logging import get_logger

logger = get_logger(__name__)


def generate_installation_id() -> str:
    """A fresh opaque id, ``user-<epoch millis>``."""
    return f"user-{int(time.time() * 1000)}"


def get_installation_id(path: Path, override: str | None = None) -> str:
    """Return the cached installation id, creating it on first use.

    Args:
        path: File the id is cached in
        override: Explicit id from settings; wins over the cache

    Returns:
        The installation id
    """
    if override:
        return override

    try:
        cached = path.read_text(encoding="utf-8").strip()
    except OSError:
        cached = ""
    if cached:
        return cached

    installation_id = generate_installation_id()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(installation_id, encoding="utf-8")
    except OSError as e:
        logger.warning("Could not cache installation id", path=str(path), error=str(e))
    else:
        logger.info("Generated installation id", installation_id=installation_id)
    return installation_id
