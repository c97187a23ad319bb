"""
Media Synchronizer - Local Copies of Remote Media Assets

Downloads every media asset listed by the API and keeps a local copy under the
media directory. Local copies are matched by content hash, not by URL:

- no local file of that name: the download is written under the URL's filename
- a local copy with identical content exists: the download is discarded
- only different content exists: the download takes the plain filename if it
  is free, otherwise a timestamp is inserted before the extension; older
  copies are never overwritten

Each media item is annotated in place with `local_copy` (filename or None).

Precondition: at most one backup run touches the media directory at a time.
The check-exists / hash-compare / rename sequence is not atomic across
processes; the scheduler enforces a single running job.
"""

import hashlib
import logging
import os
import re
import tempfile
from collections.abc import Callable
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Any
from urllib.parse import unquote, urlsplit

from utils.listmonk import ListmonkClient
from utils.schemas import MediaSyncStats

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%d%m%Y_%H%M%S"
HASH_CHUNK_SIZE = 64 * 1024


def filename_from_url(url: str) -> str | None:
    """Return the decoded final path segment of `url`, or None if it has none."""
    name = unquote(PurePosixPath(urlsplit(url).path).name).strip()
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        return None
    return name


def file_digest(path: Path) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


class MediaSynchronizer:
    """Synchronize remote media assets into a local directory."""

    def __init__(
        self,
        client: ListmonkClient,
        media_dir: str | Path,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.client = client
        self.media_dir = Path(media_dir)
        self.now = now
        self.stats = MediaSyncStats()

    def sync(self, items: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """
        Download and deduplicate all media items.

        Args:
            items: Media descriptors from the API; each may carry a `url`

        Returns:
            The same items, each annotated with `local_copy`

        Raises:
            IOError: If the media directory cannot be created or a file
                cannot be written
        """
        self.stats = MediaSyncStats()
        try:
            self.media_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IOError(f"Could not create media directory {self.media_dir}: {e}") from e

        for item in items:
            item["local_copy"] = self._sync_item(item)

        logger.info(
            "Media sync complete: downloaded=%d, unchanged=%d, skipped=%d, failed=%d",
            self.stats.downloaded,
            self.stats.unchanged,
            self.stats.skipped,
            self.stats.failed,
        )
        return items

    def _sync_item(self, item: dict[str, Any]) -> str | None:
        url = item.get("url")
        if not url or not isinstance(url, str):
            logger.debug("Media item without URL skipped", extra={"media_id": item.get("id")})
            self.stats.skipped += 1
            return None

        filename = filename_from_url(url)
        if filename is None:
            logger.warning("Cannot derive a filename from media URL: %s", url)
            self.stats.failed += 1
            return None

        data = self.client.download_binary(url)
        if data is None:
            self.stats.failed += 1
            return None

        existing = self._existing_copies(filename)
        if existing:
            digest = hashlib.sha256(data).hexdigest()
            for path in existing:
                if file_digest(path) == digest:
                    self.stats.unchanged += 1
                    return path.name
            if (self.media_dir / filename).exists():
                filename = self._timestamped_name(filename)

        self._write(self.media_dir / filename, data)
        self.stats.downloaded += 1
        logger.info("Media saved: %s", filename)
        return filename

    def _existing_copies(self, filename: str) -> list[Path]:
        """Local copies of `filename`: the file itself and its timestamped variants, newest first."""
        name = PurePosixPath(filename)
        pattern = re.compile(
            rf"^{re.escape(name.stem)}_\d{{8}}_\d{{6}}(?:_\d+)?{re.escape(name.suffix)}$"
        )
        copies = [
            path
            for path in self.media_dir.iterdir()
            if path.is_file() and (path.name == filename or pattern.match(path.name))
        ]
        return sorted(copies, key=lambda p: p.stat().st_mtime, reverse=True)

    def _timestamped_name(self, filename: str) -> str:
        name = PurePosixPath(filename)
        base = f"{name.stem}_{self.now().strftime(TIMESTAMP_FORMAT)}"
        candidate = f"{base}{name.suffix}"
        counter = 1
        while (self.media_dir / candidate).exists():
            candidate = f"{base}_{counter}{name.suffix}"
            counter += 1
        return candidate

    def _write(self, target: Path, data: bytes) -> None:
        fd, temp_path = tempfile.mkstemp(dir=self.media_dir, prefix=".media_")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(temp_path, target)
        except OSError as e:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise IOError(f"Could not write media file {target}: {e}") from e
