"""
Module for pruning old backup snapshots.

Backups are plain files in one directory; anything older than the retention
window is removed on each backup cycle.
"""

import logging
import os
import time

logger = logging.getLogger(__name__)


def cleanup_old_files(directory: str, days: int = 7, suffix: str = "") -> int:
    """Deletes regular files in ``directory`` not modified for ``days`` days.

    Returns the number of deleted files. A missing directory is not an error.
    """
    if not os.path.isdir(directory):
        logger.debug(f"[CLEANUP] Directory {directory} does not exist, nothing to clean")
        return 0

    cutoff = time.time() - days * 24 * 60 * 60
    deleted = 0
    for name in os.listdir(directory):
        if suffix and not name.endswith(suffix):
            continue
        path = os.path.join(directory, name)
        try:
            if os.path.isfile(path) and os.path.getmtime(path) < cutoff:
                os.remove(path)
                deleted += 1
        except OSError as e:
            logger.error(f"[CLEANUP] Error deleting {path}: {e}")

    if deleted:
        logger.info(f"[CLEANUP] Deleted {deleted} files older than {days} days from {directory}")
    return deleted
