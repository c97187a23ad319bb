from pathlib import Path

import pytest
from pydantic import ValidationError

from utils.config import Settings, load_settings
from utils.errors import ConfigError

REQUIRED = {
    "LISTMONK_URL": "https://lists.acme-newsletters.org/",
    "LISTMONK_USER": "backup",
    "LISTMONK_PASS": "s3cret",
    "MAIL_TO": "ops@acme-newsletters.org",
    "MAIL_FROM": "backup@acme-newsletters.org",
    "SMTP_HOST": "smtp.acme-newsletters.org",
    "SMTP_USER": "backup@acme-newsletters.org",
    "SMTP_PASS": "smtp-secret",
}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path: Path):
    for key in list(REQUIRED) + ["BACKUP_RETENTION_DAYS", "SMTP_PORT", "BACKUP_CONFIG_FILE", "LOG_FORMAT"]:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


def write_config(path: Path, values: dict[str, str]) -> Path:
    path.write_text("".join(f"{key}={value}\n" for key, value in values.items()), encoding="utf-8")
    return path


def test_load_from_config_file(tmp_path: Path):
    config = write_config(tmp_path / "backup.ini", {**REQUIRED, "BACKUP_RETENTION_DAYS": "7"})

    settings = load_settings(config)

    assert settings.LISTMONK_URL == "https://lists.acme-newsletters.org"
    assert settings.BACKUP_RETENTION_DAYS == 7
    assert settings.SMTP_PORT == 465
    assert settings.MAIL_SUBJECT == "Listmonk Backup Report"


def test_default_config_ini_in_working_directory(tmp_path: Path):
    write_config(tmp_path / "config.ini", REQUIRED)

    settings = load_settings()

    assert settings.LISTMONK_USER == "backup"
    assert settings.BACKUP_RETENTION_DAYS == 30


def test_config_file_from_environment(tmp_path: Path, monkeypatch):
    config = write_config(tmp_path / "elsewhere.env", REQUIRED)
    monkeypatch.setenv("BACKUP_CONFIG_FILE", str(config))

    assert load_settings().SMTP_HOST == "smtp.acme-newsletters.org"


def test_environment_overrides_file(tmp_path: Path, monkeypatch):
    config = write_config(tmp_path / "backup.ini", REQUIRED)
    monkeypatch.setenv("SMTP_PORT", "2465")

    assert load_settings(config).SMTP_PORT == 2465


def test_missing_required_key_fails(tmp_path: Path):
    values = dict(REQUIRED)
    del values["LISTMONK_PASS"]
    config = write_config(tmp_path / "backup.ini", values)

    with pytest.raises(ConfigError, match="LISTMONK_PASS"):
        load_settings(config)


def test_config_error_does_not_expose_secrets(tmp_path: Path):
    values = {**REQUIRED, "LISTMONK_PASS": "TOPSECRETPW", "SMTP_PASS": "SMTPSECRET"}
    del values["SMTP_HOST"]
    config = write_config(tmp_path / "backup.ini", values)

    with pytest.raises(ConfigError) as excinfo:
        load_settings(config)

    message = str(excinfo.value)
    assert "SMTP_HOST" in message
    assert "TOPSECRETPW" not in message
    assert "SMTPSECRET" not in message
    assert excinfo.value.__cause__ is None


def test_unreadable_config_file_fails(tmp_path: Path):
    with pytest.raises(ConfigError, match="Could not load config file"):
        load_settings(tmp_path / "missing.ini")


def test_invalid_retention_fails(tmp_path: Path):
    config = write_config(tmp_path / "backup.ini", {**REQUIRED, "BACKUP_RETENTION_DAYS": "-1"})

    with pytest.raises(ConfigError):
        load_settings(config)


def test_settings_are_immutable():
    settings = Settings(_env_file=None, **REQUIRED)

    with pytest.raises(ValidationError):
        settings.BACKUP_RETENTION_DAYS = 1
