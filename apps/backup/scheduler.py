"""
Backup Scheduler - Cron and On-Demand Execution

Runs the backup either once (default) or on a cron schedule using APScheduler.

Features:
- RUN_ONCE mode for invocation from an external cron or systemd timer
- Cron-based scheduling (configurable via BACKUP_SCHEDULE_CRON)
- Never more than one backup job at a time (missed runs are coalesced)
- Graceful shutdown on SIGINT/SIGTERM

Usage:
    # Run once and exit
    python -m apps.backup

    # Scheduled mode
    RUN_ONCE=false python -m apps.backup
"""

import logging
import signal
import sys

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from apps.backup.orchestrator import BackupOrchestrator
from utils.config import Settings, load_settings
from utils.errors import ConfigError
from utils.logging import setup_logging

logger = logging.getLogger(__name__)

JOB_ID = "backup_job"


class BackupScheduler:
    """
    Scheduler for periodic or on-demand backup runs.

    Handles:
    - APScheduler setup and management
    - Cron-based scheduling
    - RUN_ONCE immediate execution
    - Signal handling for graceful shutdown
    """

    def __init__(self, settings: Settings, orchestrator: BackupOrchestrator | None = None) -> None:
        self.settings = settings
        self.orchestrator = orchestrator or BackupOrchestrator.from_settings(settings)
        self.scheduler: BlockingScheduler | None = None

        logger.info(
            "BackupScheduler initialized",
            extra={
                "run_once": settings.RUN_ONCE,
                "cron_schedule": settings.BACKUP_SCHEDULE_CRON,
            },
        )

    def execute_backup(self) -> None:
        """Execute one backup run, logging instead of raising so the schedule survives."""
        logger.info("Starting backup execution")
        try:
            log = self.orchestrator.run()
            logger.info(
                "Backup execution completed",
                extra={"resources": list(log), "errors": log.has_errors},
            )
        except Exception as e:
            logger.error("Backup execution failed", extra={"error": str(e)}, exc_info=True)
            if self.settings.RUN_ONCE:
                raise

    def setup_signal_handlers(self) -> None:
        """Setup handlers for graceful shutdown on SIGINT/SIGTERM."""

        def signal_handler(signum: int, frame: object) -> None:
            logger.info(f"Received signal {signum}, initiating graceful shutdown")
            if self.scheduler and self.scheduler.running:
                self.scheduler.shutdown(wait=False)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def start(self) -> None:
        """
        Start scheduler or execute once.

        In scheduled mode, blocks until a shutdown signal.
        In RUN_ONCE mode, executes immediately and returns.
        """
        if self.settings.RUN_ONCE:
            logger.info("Running in RUN_ONCE mode")
            self.execute_backup()
            return

        logger.info("Running in scheduled mode")
        self.setup_signal_handlers()

        self.scheduler = BlockingScheduler()
        trigger = CronTrigger.from_crontab(self.settings.BACKUP_SCHEDULE_CRON)
        self.scheduler.add_job(
            self.execute_backup,
            trigger=trigger,
            id=JOB_ID,
            name="Periodic listmonk Backup",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )

        logger.info(
            "Scheduled backup job",
            extra={"schedule": self.settings.BACKUP_SCHEDULE_CRON},
        )
        logger.info("Waiting for jobs...")
        self.scheduler.start()
        logger.info("Scheduler shutdown complete")


def main() -> None:
    """Main entry point for the backup."""
    try:
        settings = load_settings()
    except ConfigError as e:
        setup_logging()
        logger.error("Configuration error: %s", e)
        sys.exit(1)

    setup_logging(level=settings.LOG_LEVEL, format_type=settings.LOG_FORMAT)

    try:
        BackupScheduler(settings).start()
    except Exception as e:
        logger.error("Backup failed", extra={"error": str(e)}, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
