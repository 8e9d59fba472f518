"""Main backup report coordinator."""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from .evaluator import evaluate_all
from .exchange import DatabaseEnumerator, ExchangeShell, MailboxCounter
from .models import RunReport
from ..config.config_manager import ConfigManager
from ..reporters.email_reporter import EmailReporter
from ..reporters.html_report import HtmlReportRenderer
from ..utils.formatters import pluralize


class BackupReportRunner:
    """Runs one backup check: enumerate, evaluate, render and notify."""

    def __init__(self, config_path: Optional[str] = None, log_file: Optional[str] = None,
                 shell: Optional[ExchangeShell] = None):
        """Initialize the runner.

        Args:
            config_path: Optional path to configuration file.
            log_file: Log file to attach to the report email, if logging is enabled.
            shell: Management shell to use instead of one built from config.

        Raises:
            ConfigNotFound: If the configuration cannot be loaded.
        """
        self.logger = logging.getLogger(__name__)
        self.config_manager = ConfigManager(config_path)
        self.config_manager.load_config()
        self.config = self.config_manager.build_configuration()
        self.log_file = log_file

        if shell is None:
            management_config = self.config_manager.get_management_config()
            shell = ExchangeShell(
                shell=management_config.get('shell', 'powershell'),
                snapin=management_config.get('snapin'),
                timeout_seconds=management_config.get('timeout_seconds', 300)
            )
        self.shell = shell

        self.enumerator = DatabaseEnumerator(self.shell, self.config.excluded_databases)
        self.mailbox_counter = MailboxCounter(self.shell)
        self.renderer = HtmlReportRenderer(title=self.config.subject)
        self.email_reporter = EmailReporter(
            smtp_server=self.config.smtp_server,
            smtp_port=self.config.smtp_port,
            smtp_user=self.config.smtp_user,
            smtp_pass=self.config.smtp_pass,
            from_address=self.config.from_address,
            to_addresses=[self.config.to_address],
            use_tls=self.config.use_tls
        )

    def build_report(self, now: datetime, threshold: int) -> RunReport:
        """Enumerate and evaluate all monitored databases.

        Raises:
            ExternalServiceUnavailable: If the management shell cannot be queried.
        """
        databases = self.enumerator.list_databases()
        mailbox_counts = self.mailbox_counter.count(databases)
        return evaluate_all(databases, mailbox_counts, now, threshold)

    def build_subject(self, report: RunReport, now: datetime) -> str:
        count = report.alert_count
        return f"{self.config.subject} - {count} {pluralize(count, 'alert')} - {now.strftime('%Y-%m-%d')}"

    def run(self, always_send: bool = False, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Run a complete backup check.

        Args:
            always_send: Send the report even when there are no alerts.
            now: Reference time, defaults to the current local time.

        Returns:
            Dictionary with the report, rendered HTML and delivery outcome.
        """
        now = now or datetime.now().astimezone()
        threshold = self.config.threshold_for(now)
        self.logger.info(f"Starting backup check, threshold is {threshold} hours")

        report = self.build_report(now, threshold)
        html_content = self.renderer.render(report, threshold, now)

        email_sent = False
        if report.has_alerts or always_send:
            email_sent = self.email_reporter.send_report(
                subject=self.build_subject(report, now),
                html_content=html_content,
                attachment_path=self.log_file
            )
            self.logger.info(f"Email report sent: {email_sent}")
        else:
            self.logger.info("No backup alerts, report not sent")

        self.logger.info("Backup check completed")

        return {
            'report': report,
            'html': html_content,
            'threshold': threshold,
            'email_sent': email_sent,
            'timestamp': now
        }
