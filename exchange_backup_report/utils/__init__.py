"""Utility modules for the backup report."""

from .formatters import format_date, format_hours, format_mailbox_count, pluralize

__all__ = ["format_date", "format_hours", "format_mailbox_count", "pluralize"]
