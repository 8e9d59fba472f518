"""
Exchange Backup Report - daily backup freshness check for Exchange databases.

This package queries the Exchange management shell for database backup
timestamps, flags databases whose last backup is older than a threshold and
emails an HTML status report.
"""

__version__ = "1.0.0"

from .core.monitor import BackupReportRunner
from .reporters.email_reporter import EmailReporter
from .reporters.html_report import HtmlReportRenderer

__all__ = ["BackupReportRunner", "EmailReporter", "HtmlReportRenderer"]
