"""
Backup Error Taxonomy

Exceptions raised across the backup pipeline. The orchestrator catches them at
resource granularity so that one failing resource does not stop the run.

Categories:
- ConfigError: missing or unreadable configuration (fatal, raised at startup)
- TransportError: connection-level failure on an API call (aborts one resource)
- ResponseShapeError: API body does not match the declared resource shape
- SoftDownloadFailure: a single media download failed (item skipped)
- MailError: the report email could not be sent (logged, never raised)
"""


class BackupError(Exception):
    """Base class for all backup pipeline errors."""


class ConfigError(BackupError):
    """Configuration is missing, unreadable or invalid."""


class TransportError(BackupError):
    """Connection-level failure (refused, DNS, TLS, timeout) on an API request."""

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class ResponseShapeError(BackupError):
    """API response body does not have the shape declared for the resource."""


class SoftDownloadFailure(BackupError):
    """A media download returned a non-200 status or failed in transport.

    Never propagated past the media synchronizer; the item is marked
    with no local copy instead.
    """

    def __init__(self, url: str, status: int | None = None, detail: str = "") -> None:
        message = f"Download failed: {url} (HTTP {status})" if status else f"Download failed: {url}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.url = url
        self.status = status


class MailError(BackupError):
    """The report email could not be delivered."""
