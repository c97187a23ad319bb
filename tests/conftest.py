from datetime import datetime
from pathlib import Path
from typing import Any

import pytest

from utils.config import Settings
from utils.schemas import ApiResponse, MailMessage, MailResult

FIXED_NOW = datetime(2026, 3, 5, 14, 7, 9)


def results_body(records: list[dict[str, Any]]) -> dict[str, Any]:
    return {"data": {"results": records, "total": len(records)}}


class FakeListmonkClient:
    """In-memory stand-in for ListmonkClient.

    `responses` maps endpoint -> ApiResponse or an exception to raise.
    `downloads` maps URL -> bytes (or None for a failed download).
    """

    def __init__(
        self,
        responses: dict[str, Any] | None = None,
        downloads: dict[str, bytes | None] | None = None,
    ) -> None:
        self.responses = responses or {}
        self.downloads = downloads or {}
        self.calls: list[tuple[str, str, dict[str, Any] | None]] = []
        self.downloaded: list[str] = []

    def call(self, method: str, endpoint: str, query: dict[str, Any] | None = None, payload=None) -> ApiResponse:
        self.calls.append((method, endpoint, query))
        response = self.responses.get(endpoint, ApiResponse(status=404, body=None))
        if isinstance(response, Exception):
            raise response
        return response

    def download_binary(self, url: str) -> bytes | None:
        self.downloaded.append(url)
        return self.downloads.get(url)


class FakeMailer:
    def __init__(self, result: MailResult | None = None) -> None:
        self.result = result or MailResult.success()
        self.sent: list[MailMessage] = []

    def send(self, message: MailMessage) -> MailResult:
        self.sent.append(message)
        return self.result


def make_settings(tmp_path: Path, **overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "LISTMONK_URL": "https://lists.acme-newsletters.org/",
        "LISTMONK_USER": "backup",
        "LISTMONK_PASS": "s3cret",
        "MAIL_TO": "ops@acme-newsletters.org",
        "MAIL_FROM": "backup@acme-newsletters.org",
        "SMTP_HOST": "smtp.acme-newsletters.org",
        "SMTP_USER": "backup@acme-newsletters.org",
        "SMTP_PASS": "smtp-secret",
        "BACKUP_DIR": str(tmp_path / "backup"),
        "MEDIA_DIR": str(tmp_path / "backup" / "media"),
        "REPORTS_DIR": str(tmp_path / "reports"),
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def fixed_now():
    return lambda: FIXED_NOW
