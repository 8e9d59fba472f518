"""Tests for the email reporter."""

import smtplib
from unittest import mock

import pytest

from exchange_backup_report.reporters.email_reporter import EmailReporter


@pytest.fixture
def reporter():
    return EmailReporter(
        smtp_server="relay.example.com",
        smtp_port=25,
        from_address="reports@example.com",
        to_addresses=["admins@example.com"],
    )


@pytest.fixture
def smtp():
    with mock.patch("smtplib.SMTP") as smtp_class:
        yield smtp_class.return_value.__enter__.return_value


class TestEmailReporter:
    """Tests for sending reports."""

    def test_sends_html(self, reporter, smtp):
        assert reporter.send_report("Subject", "<p>report</p>") is True

        msg = smtp.send_message.call_args[0][0]
        assert msg["Subject"] == "Subject"
        assert msg["From"] == "reports@example.com"
        assert msg["To"] == "admins@example.com"
        html_part = msg.get_payload()[0]
        assert html_part.get_content_type() == "text/html"
        assert html_part.get_content_charset() == "utf-8"
        assert "<p>report</p>" in html_part.get_payload(decode=True).decode("utf-8")
        smtp.starttls.assert_not_called()
        smtp.login.assert_not_called()

    def test_attaches_log_file(self, reporter, smtp, tmp_path):
        log_file = tmp_path / "run.log"
        log_file.write_text("line one\n", encoding="utf-8")

        assert reporter.send_report("Subject", "<p>report</p>", attachment_path=str(log_file))

        parts = smtp.send_message.call_args[0][0].get_payload()
        assert len(parts) == 2
        assert parts[1].get_filename() == "run.log"
        assert parts[1].get_payload(decode=True) == b"line one\n"

    def test_missing_attachment_still_sends(self, reporter, smtp, tmp_path):
        assert reporter.send_report("Subject", "<p/>", attachment_path=str(tmp_path / "missing.log"))
        assert len(smtp.send_message.call_args[0][0].get_payload()) == 1

    def test_tls_and_login(self, smtp):
        reporter = EmailReporter(smtp_server="relay", smtp_user="user", smtp_pass="secret",
                                 from_address="a@example.com", to_addresses=["b@example.com"],
                                 use_tls=True)
        assert reporter.send_report("Subject", "<p/>")
        smtp.starttls.assert_called_once()
        smtp.login.assert_called_once_with("user", "secret")

    def test_smtp_failure_returns_false(self, reporter, caplog):
        with mock.patch("smtplib.SMTP", side_effect=smtplib.SMTPConnectError(421, "unavailable")):
            assert reporter.send_report("Subject", "<p/>") is False
        assert any(r.levelname == "WARNING" and "Failed to send" in r.message for r in caplog.records)

    def test_connection_refused_returns_false(self, reporter):
        with mock.patch("smtplib.SMTP", side_effect=ConnectionRefusedError()):
            assert reporter.send_report("Subject", "<p/>") is False

    def test_no_recipients(self):
        assert EmailReporter(smtp_server="relay").send_report("Subject", "<p/>") is False
