"""Size-bounded pruning of the downloads directory."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)

_MEGABYTE = 1024 * 1024


def dir_size(path) -> int:
    """Return the total size in bytes of all files below path."""
    total = 0
    for root, _dirs, files in os.walk(path):
        for name in files:
            try:
                total += os.path.getsize(os.path.join(root, name))
            except OSError:
                continue
    return total


def cleanup_downloads(max_size_mb: int, downloads_dir="downloads") -> None:
    """Remove download directories once their running size passes the limit.

    Directories are taken oldest first; each one's size is counted in whole
    megabytes, and every directory reached after the total exceeds
    max_size_mb is deleted.
    """
    base = Path(downloads_dir)
    try:
        entries = [entry for entry in base.iterdir() if entry.is_dir()]
    except OSError:
        return

    entries.sort(key=lambda entry: entry.stat().st_mtime)

    total_mb = 0
    for entry in entries:
        total_mb += dir_size(entry) // _MEGABYTE
        if total_mb > max_size_mb:
            logger.info("Removing %s to keep downloads under %d MB", entry, max_size_mb)
            shutil.rmtree(entry, ignore_errors=True)