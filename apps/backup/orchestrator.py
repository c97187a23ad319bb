"""
Backup Orchestrator - One Complete Backup Run

Sequences the resource backups, the media synchronization, the retention
sweep, the report and the report email.

Failures are isolated per resource: a transport error, an unexpected response
shape, a file system error or any unexpected exception is recorded in the
run log for that resource and the run moves on to the next one.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from utils.config import Settings
from utils.csv_export import write_csv_backup
from utils.errors import BackupError
from utils.listmonk import ListmonkClient
from utils.mailer import MailSender
from utils.media import MediaSynchronizer
from utils.report import ReportBuilder
from utils.retention import sweep_old_backups
from utils.schemas import BackupArtifact, MailMessage, Resource, ResourceOutcome, ResponseShape, RunLog

logger = logging.getLogger(__name__)

RESOURCES: tuple[Resource, ...] = (
    Resource(name="lists", endpoint="lists"),
    Resource(name="subscribers", endpoint="subscribers"),
    Resource(name="campaigns", endpoint="campaigns"),
    Resource(name="templates", endpoint="templates", shape=ResponseShape.LIST),
    Resource(name="bounces", endpoint="bounces"),
    Resource(name="import", endpoint="import", shape=ResponseShape.LIST),
)

MEDIA_RESOURCE = Resource(name="media", endpoint="media")


class BackupOrchestrator:
    """
    Drive an end-to-end backup run.

    Handles:
    - Per-resource fetch and CSV export
    - Media download and deduplication
    - Retention sweep of old CSV backups
    - Report rendering, saving and emailing
    """

    def __init__(
        self,
        settings: Settings,
        client: ListmonkClient,
        synchronizer: MediaSynchronizer,
        reporter: ReportBuilder,
        mailer: MailSender,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.settings = settings
        self.client = client
        self.synchronizer = synchronizer
        self.reporter = reporter
        self.mailer = mailer
        self.now = now
        self.artifacts: list[BackupArtifact] = []

    @classmethod
    def from_settings(cls, settings: Settings) -> "BackupOrchestrator":
        """Wire all components from settings."""
        client = ListmonkClient.from_settings(settings)
        return cls(
            settings=settings,
            client=client,
            synchronizer=MediaSynchronizer(client, settings.MEDIA_DIR),
            reporter=ReportBuilder(settings.REPORTS_DIR),
            mailer=MailSender.from_settings(settings),
        )

    def backup_resource(self, resource: Resource) -> ResourceOutcome:
        """
        Fetch one resource and write its CSV backup.

        Raises:
            TransportError: On connection-level failure
            ResponseShapeError: If the body does not match the resource's shape
            IOError: If the backup file cannot be written
        """
        response = self.client.call("GET", resource.endpoint, resource.query)
        if not response.ok:
            logger.warning("Backup of %s skipped: HTTP %d", resource.name, response.status)
            return ResourceOutcome(error=f"HTTP {response.status}")

        records = response.records(resource.shape)
        path = self._export(resource.name, records)

        logger.info(
            "Backed up %s",
            resource.name,
            extra={"resource": resource.name, "count": len(records), "file": path},
        )
        return ResourceOutcome(count=len(records), file=path)

    def backup_media(self) -> ResourceOutcome:
        """List media, synchronize local copies and export the annotated listing."""
        response = self.client.call("GET", MEDIA_RESOURCE.endpoint, MEDIA_RESOURCE.query)
        if not response.ok:
            logger.warning("Media backup skipped: HTTP %d", response.status)
            return ResourceOutcome(error=f"HTTP {response.status}")

        items = self.synchronizer.sync(response.records(MEDIA_RESOURCE.shape))
        path = self._export(MEDIA_RESOURCE.name, items)

        return ResourceOutcome(
            count=len(items),
            file=path,
            media_downloaded=self.synchronizer.stats.local_copies,
            media_failed=self.synchronizer.stats.failed,
        )

    def _export(self, name: str, records: list[dict]) -> str | None:
        created_at = self.now()
        path = write_csv_backup(records, name, self.settings.BACKUP_DIR, created_at)
        if path is None:
            return None

        self.artifacts.append(
            BackupArtifact(resource_name=name, file_path=str(path), record_count=len(records), created_at=created_at)
        )
        return str(path)

    def _isolated(self, name: str, step: Callable[[], ResourceOutcome]) -> ResourceOutcome:
        try:
            return step()
        except (BackupError, OSError) as e:
            logger.error("Backup of %s failed: %s", name, e, exc_info=True)
            return ResourceOutcome(error=str(e))
        except Exception as e:
            logger.error("Unexpected failure backing up %s: %s", name, e, exc_info=True)
            return ResourceOutcome(error=f"{type(e).__name__}: {e}")

    def send_report(self, log: RunLog) -> None:
        body = self.reporter.render_email(log)
        message = MailMessage(
            to=self.settings.MAIL_TO,
            sender=self.settings.MAIL_FROM,
            subject=self.settings.MAIL_SUBJECT,
            html_body=body.html,
            text_body=body.text,
        )
        result = self.mailer.send(message)
        if not result.ok:
            logger.error("%s", result.error)

    def run(self) -> RunLog:
        """
        Execute one full backup run.

        Returns:
            The run log, one entry per resource in backup order
        """
        logger.info("Starting backup run", extra={"base_url": self.settings.LISTMONK_URL})
        log = RunLog()
        self.artifacts = []

        for resource in RESOURCES:
            log.record(resource.name, self._isolated(resource.name, lambda r=resource: self.backup_resource(r)))

        log.record(MEDIA_RESOURCE.name, self._isolated(MEDIA_RESOURCE.name, self.backup_media))

        sweep_old_backups(self.settings.BACKUP_DIR, self.settings.BACKUP_RETENTION_DAYS)

        report = self.reporter.render(log)
        try:
            self.reporter.save(report)
        except OSError as e:
            logger.error("Could not save report: %s", e)

        self.send_report(log)

        logger.info("Backup run finished", extra={"resources": len(log), "errors": log.has_errors})
        return log
