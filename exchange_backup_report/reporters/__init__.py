"""Report rendering and delivery."""

from .email_reporter import EmailReporter
from .html_report import HtmlReportRenderer

__all__ = ["EmailReporter", "HtmlReportRenderer"]
