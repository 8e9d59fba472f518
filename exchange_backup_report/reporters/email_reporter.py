"""Email reporter for sending backup status reports."""

import logging
import os
import smtplib
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional

from ..exceptions import SendError


class EmailReporter:
    """Handles sending backup reports via an SMTP relay."""

    def __init__(self, smtp_server: str = None, smtp_port: int = 25, smtp_user: str = None,
                 smtp_pass: str = None, from_address: str = None,
                 to_addresses: List[str] = None, use_tls: bool = False):
        """Initialize email reporter.

        Args:
            smtp_server: SMTP relay hostname.
            smtp_port: SMTP relay port.
            smtp_user: SMTP username, if the relay requires authentication.
            smtp_pass: SMTP password.
            from_address: From email address.
            to_addresses: List of recipient email addresses.
            use_tls: Whether to use STARTTLS.
        """
        self.smtp_server = smtp_server
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_pass = smtp_pass
        self.from_address = from_address
        self.to_addresses = to_addresses or []
        self.use_tls = use_tls
        self.logger = logging.getLogger(__name__)

    def send_report(self, subject: str, html_content: str,
                    attachment_path: Optional[str] = None) -> bool:
        """Send backup report via email.

        Delivery problems are logged as warnings and never raised.

        Args:
            subject: Email subject line.
            html_content: HTML email content.
            attachment_path: Optional file to attach, e.g. the run log.

        Returns:
            True if email sent successfully.
        """
        if not self.to_addresses:
            self.logger.warning("No recipient addresses configured")
            return False

        try:
            msg = self._create_message(subject, html_content, attachment_path)
            self._send_message(msg)
        except SendError as e:
            self.logger.warning(f"Failed to send email report: {e}")
            return False

        self.logger.info(f"Email report sent successfully to {len(self.to_addresses)} recipients")
        return True

    def _create_message(self, subject: str, html_content: str,
                        attachment_path: Optional[str]) -> MIMEMultipart:
        """Create email message.

        Args:
            subject: Email subject.
            html_content: HTML content.
            attachment_path: Optional file to attach.

        Returns:
            Configured email message.
        """
        msg = MIMEMultipart('mixed')
        msg['Subject'] = subject
        msg['From'] = self.from_address
        msg['To'] = ', '.join(self.to_addresses)

        msg.attach(MIMEText(html_content, 'html', 'utf-8'))

        if attachment_path:
            try:
                with open(attachment_path, 'rb') as f:
                    part = MIMEApplication(f.read(), Name=os.path.basename(attachment_path))
            except OSError as e:
                self.logger.warning(f"Could not attach {attachment_path}: {e}")
            else:
                part['Content-Disposition'] = f'attachment; filename="{os.path.basename(attachment_path)}"'
                msg.attach(part)

        return msg

    def _send_message(self, msg: MIMEMultipart) -> None:
        """Send email message via SMTP.

        Args:
            msg: Email message to send.

        Raises:
            SendError: If the relay cannot be reached or rejects the message.
        """
        self.logger.debug(f"Connecting to SMTP server {self.smtp_server}:{self.smtp_port}")

        try:
            with smtplib.SMTP(self.smtp_server, self.smtp_port) as server:
                if self.use_tls:
                    server.starttls()
                    self.logger.debug("Started TLS encryption")

                if self.smtp_user and self.smtp_pass:
                    server.login(self.smtp_user, self.smtp_pass)
                    self.logger.debug(f"Authenticated as {self.smtp_user}")

                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise SendError(str(e)) from e

        self.logger.debug("Email message sent successfully")
