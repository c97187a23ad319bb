import os
import time
from pathlib import Path

from utils.retention import SECONDS_PER_DAY, sweep_old_backups


def touch(path: Path, age_days: float, now: float) -> Path:
    path.write_text("id,name\n1,A\n")
    mtime = now - age_days * SECONDS_PER_DAY
    os.utime(path, (mtime, mtime))
    return path


def test_old_backups_deleted_recent_kept(tmp_path: Path):
    now = time.time()
    old = touch(tmp_path / "lists_01012026_020000.csv", 31, now)
    recent = touch(tmp_path / "lists_01032026_020000.csv", 2, now)

    assert sweep_old_backups(tmp_path, 30, now=now) == 1
    assert not old.exists()
    assert recent.exists()


def test_file_just_inside_window_is_kept(tmp_path: Path):
    now = time.time()
    edge = touch(tmp_path / "lists_edge.csv", 29.9, now)

    assert sweep_old_backups(tmp_path, 30, now=now) == 0
    assert edge.exists()


def test_only_backup_extension_is_swept(tmp_path: Path):
    now = time.time()
    report = touch(tmp_path / "notes.txt", 90, now)
    media_dir = tmp_path / "media"
    media_dir.mkdir()
    asset = touch(media_dir / "old.csv", 90, now)

    assert sweep_old_backups(tmp_path, 30, now=now) == 0
    assert report.exists()
    assert asset.exists()


def test_missing_directory_is_a_noop(tmp_path: Path):
    assert sweep_old_backups(tmp_path / "does-not-exist", 30) == 0


def test_delete_failure_is_skipped(tmp_path: Path, monkeypatch):
    now = time.time()
    stuck = touch(tmp_path / "stuck.csv", 60, now)

    def refuse(self, missing_ok=False):
        raise PermissionError("read-only file system")

    monkeypatch.setattr(Path, "unlink", refuse)

    assert sweep_old_backups(tmp_path, 30, now=now) == 0
    assert stuck.exists()
