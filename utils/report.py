"""
Backup Report Builder

Renders the run log into a human-readable text report (saved under the
reports directory) and into the HTML/plain-text bodies of the report email.

Sections follow the run log's insertion order, i.e. the order in which
resources were backed up.
"""

import html
import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import NamedTuple

from utils.schemas import RunLog

logger = logging.getLogger(__name__)

REPORT_TITLE = "Listmonk Backup Report"
SECTION_RULE = "-" * 26
DISPLAY_TIME_FORMAT = "%d.%m.%Y %H:%M:%S"
FILE_TIME_FORMAT = "%d%m%Y_%H%M%S"


class EmailBody(NamedTuple):
    html: str
    text: str


class ReportBuilder:
    """Render run logs as text reports and email bodies."""

    def __init__(self, reports_dir: str | Path, now: Callable[[], datetime] = datetime.now) -> None:
        self.reports_dir = Path(reports_dir)
        self.now = now

    def render(self, log: RunLog) -> str:
        """
        Render the text report.

        For each resource: an upper-cased header, then the record count, the
        backup file name and size (only if the file exists on disk), the
        downloaded media count and the error, each only when present.
        """
        lines = [REPORT_TITLE, f"Date and Time: {self.now().strftime(DISPLAY_TIME_FORMAT)}", ""]

        for name, entry in log.items():
            lines.append(name.upper())
            lines.append(SECTION_RULE)

            if entry.count is not None:
                lines.append(f"Number of records: {entry.count}")

            if entry.file is not None:
                path = Path(entry.file)
                if path.is_file():
                    size_kb = path.stat().st_size / 1024
                    lines.append(f"Backup file: {path.name} ({size_kb:,.2f} KB)")

            if entry.media_downloaded is not None:
                lines.append(f"Downloaded media: {entry.media_downloaded}")

            if entry.media_failed:
                lines.append(f"Failed media downloads: {entry.media_failed}")

            if entry.error is not None:
                lines.append(f"ERROR: {entry.error}")

            lines.append("")

        return "\n".join(lines) + "\n"

    def render_email(self, log: RunLog) -> EmailBody:
        """Render the email bodies: HTML with line breaks and a plain-text fallback."""
        lines = [f"Backup report - {self.now().strftime(DISPLAY_TIME_FORMAT)}", ""]

        for name, entry in log.items():
            lines.append(f"{name.upper()}:")
            for key, value in entry.model_dump(exclude_none=True).items():
                if key == "file":
                    value = Path(value).name
                lines.append(f"  - {key}: {value}")
            lines.append("")

        text = "\n".join(lines) + "\n"
        body = html.escape(text).replace("\n", "<br />\n")
        return EmailBody(html=body, text=text)

    def save(self, report: str) -> Path:
        """
        Write the report to `backup_report_{ddMMyyyy_HHmmss}.txt`.

        Raises:
            IOError: If the reports directory or file cannot be written
        """
        path = self.reports_dir / f"backup_report_{self.now().strftime(FILE_TIME_FORMAT)}.txt"
        try:
            self.reports_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(report, encoding="utf-8")
        except OSError as e:
            raise IOError(f"Could not save report {path}: {e}") from e

        logger.info("Report saved as: %s", path)
        return path
