"""Running the external downloader for a media request."""

from __future__ import annotations

import asyncio
import logging
import subprocess
from pathlib import Path

from redis.exceptions import RedisError

from .cleanup import cleanup_downloads
from .redis_store import media_key

logger = logging.getLogger(__name__)

DOWNLOADER = "yt-dlp"
OUTPUT_TEMPLATE = "%(title)s.%(ext)s"
AUDIO_FORMATS = frozenset({"mp3", "wav", "aac", "webm"})
CLEANUP_LIMIT_MB = 2048


def build_download_command(url: str, fmt: str, directory: str) -> list[str]:
    """Return the downloader command line for the requested format."""
    if fmt in AUDIO_FORMATS:
        return [DOWNLOADER, "-x", "--audio-format", fmt, "-o", OUTPUT_TEMPLATE, "-P", str(directory), url]
    return [DOWNLOADER, "--recode-video", fmt, "-o", OUTPUT_TEMPLATE, "-P", str(directory), url]


async def _set_status(client, download_id: str, status: str) -> None:
    try:
        await client.set(media_key(download_id), status)
    except RedisError as exc:
        logger.error("Could not store status %s for %s: %s", status, download_id, exc)


async def process_download(client, url: str, fmt: str, download_id: str, downloads_dir="downloads") -> str:
    """Download the media into its own directory and record the outcome.

    Returns the final status stored: "completed" or "error".
    """
    directory = Path(downloads_dir) / download_id
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.error("Could not create directory %s: %s", directory, exc)
        await _set_status(client, download_id, "error")
        return "error"

    command = build_download_command(url, fmt, str(directory))
    logger.info("Starting download for %s: %s", download_id, " ".join(command))

    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
        return_code = await process.wait()
    except OSError as exc:
        logger.error("Could not run %s for %s: %s", DOWNLOADER, download_id, exc)
        await _set_status(client, download_id, "error")
        return "error"

    if return_code != 0:
        logger.error("%s exited with status %d for %s", DOWNLOADER, return_code, download_id)
        await _set_status(client, download_id, "error")
        return "error"

    logger.info("Download finished for %s.", download_id)
    await _set_status(client, download_id, "completed")
    await asyncio.to_thread(cleanup_downloads, CLEANUP_LIMIT_MB, downloads_dir)
    return "completed"