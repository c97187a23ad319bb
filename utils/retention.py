"""
Backup Retention

Deletes CSV backups older than the configured retention period.
"""

import logging
import time
from pathlib import Path

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 60 * 60 * 24


def sweep_old_backups(
    directory: str | Path,
    retention_days: int,
    pattern: str = "*.csv",
    now: float | None = None,
) -> int:
    """
    Delete backup files whose age exceeds `retention_days`.

    Age is measured from the file's last modification time. Only regular
    files directly inside `directory` that match `pattern` are considered.
    A file that cannot be deleted is logged and skipped.

    Args:
        directory: Backup directory; nothing happens if it does not exist
        retention_days: Maximum age in days
        pattern: Glob pattern of backup files
        now: Reference UNIX time, defaults to the current time

    Returns:
        Number of deleted files
    """
    backup_dir = Path(directory)
    if not backup_dir.is_dir():
        logger.info("Backup directory %s does not exist, nothing to clean", backup_dir)
        return 0

    now = time.time() if now is None else now
    deleted = 0
    skipped = 0

    for path in backup_dir.glob(pattern):
        if not path.is_file() or path.is_symlink():
            continue

        try:
            age_days = (now - path.stat().st_mtime) / SECONDS_PER_DAY
            if age_days > retention_days:
                path.unlink()
                deleted += 1
                logger.debug("Deleted old backup %s (%.1f days)", path.name, age_days)
        except OSError as e:
            skipped += 1
            logger.warning("Could not delete old backup %s: %s", path, e)

    logger.info(
        "Cleanup complete. %d old backup(s) deleted.",
        deleted,
        extra={"directory": str(backup_dir), "skipped": skipped},
    )
    return deleted
