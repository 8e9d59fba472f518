"""Exceptions raised by the backup report pipeline."""


class BackupReportError(Exception):
    """Base class for backup report errors."""


class ConfigNotFound(BackupReportError):
    """Configuration file is missing, unreadable or invalid."""


class ExternalServiceUnavailable(BackupReportError):
    """The Exchange management shell could not be queried."""


class SendError(BackupReportError):
    """The report email could not be delivered."""
