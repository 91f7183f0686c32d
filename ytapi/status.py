"""Lookup of the current processing status of a download."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from redis.exceptions import RedisError

from .redis_store import media_key

logger = logging.getLogger(__name__)

COMPLETED = "completed"
PROCESSING = "processing"


@dataclass
class StatusInfo:
    """What is known about a download and what to do with it."""

    status: str = ""
    should_start_processing: bool = False
    current_status_for_client: str = ""


def _touch(directory: Path) -> None:
    if directory.exists():
        try:
            os.utime(directory)
        except OSError as exc:
            logger.warning("Could not update timestamp of %s: %s", directory, exc)


async def get_download_status(client, download_id: str, downloads_dir="downloads") -> StatusInfo:
    """Read the stored status and decide whether processing must start.

    A completed download has its directory timestamp refreshed.
    """
    try:
        stored = await client.get(media_key(download_id))
    except RedisError as exc:
        logger.info("No status in Redis for %s (error: %s). Starting new processing.", download_id, exc)
        return StatusInfo(should_start_processing=True, current_status_for_client=PROCESSING)

    if stored is None:
        logger.info("No status in Redis for %s. Starting new processing.", download_id)
        return StatusInfo(should_start_processing=True, current_status_for_client=PROCESSING)

    logger.info("Status found in Redis for %s: %s", download_id, stored)
    if stored == COMPLETED:
        _touch(Path(downloads_dir) / download_id)
        return StatusInfo(stored, False, stored)
    if stored == PROCESSING:
        return StatusInfo(stored, False, stored)

    logger.info("Status for %s is '%s'. Starting new processing.", download_id, stored)
    return StatusInfo(stored, True, PROCESSING)


async def set_processing_status(client, download_id: str) -> None:
    """Mark a download as being processed."""
    await client.set(media_key(download_id), PROCESSING)