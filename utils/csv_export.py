"""
CSV Export Utilities

Serializes API records to timestamped CSV backups.

The header row is taken from the first flattened record. Each following row
is flattened on its own and written positionally, so records whose flattened
keys differ from the first record's are NOT realigned to the header.
"""

import csv
import logging
from collections.abc import Mapping, Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

import orjson

from utils.flatten import flatten_record

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%d%m%Y_%H%M%S"


def backup_filename(prefix: str, now: datetime | None = None) -> str:
    """Build `{prefix}_{ddMMyyyy_HHmmss}.csv`."""
    now = now or datetime.now()
    return f"{prefix}_{now.strftime(TIMESTAMP_FORMAT)}.csv"


def _cell(value: Any) -> Any:
    if isinstance(value, (list, tuple, dict)):
        return orjson.dumps(value, default=str).decode("utf-8")
    return value


def write_records(records: Sequence[Mapping[str, Any]], path: str | Path) -> None:
    """
    Write records to a CSV file at `path`.

    Does nothing (no file is created) when `records` is empty.

    Args:
        records: Nested records to flatten and write
        path: Target CSV path; its parent directory must exist

    Raises:
        IOError: If the file cannot be opened or written
    """
    if not records:
        return

    header = list(flatten_record(records[0]).keys())

    try:
        with open(path, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(header)
            for record in records:
                writer.writerow([_cell(v) for v in flatten_record(record).values()])
    except OSError as e:
        raise IOError(f"Could not open file for writing: {path} - {e}") from e


def write_csv_backup(
    records: Sequence[Mapping[str, Any]],
    prefix: str,
    backup_dir: str | Path,
    now: datetime | None = None,
) -> Path | None:
    """
    Save a timestamped CSV backup of `records` under `backup_dir`.

    Args:
        records: Records to back up
        prefix: Filename prefix, usually the resource name
        backup_dir: Backup directory (created if missing)
        now: Timestamp for the filename, defaults to the current local time

    Returns:
        Path of the written file, or None when there were no records

    Raises:
        IOError: If the directory cannot be created or the file cannot be written
    """
    if not records:
        logger.info("No records to back up for %s, skipping CSV", prefix)
        return None

    directory = Path(backup_dir)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise IOError(f"Could not create backup directory {directory}: {e}") from e

    path = directory / backup_filename(prefix, now)
    write_records(records, path)

    logger.info("CSV backup written: %s (%d records)", path, len(records))
    return path
