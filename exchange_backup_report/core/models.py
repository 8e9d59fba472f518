"""Data models for Exchange database backup reporting."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class DatabaseCategory(Enum):
    """Kind of Exchange database."""
    MAILBOX = "Mailbox"
    PUBLIC_FOLDER = "Public Folder"


class MountState(Enum):
    """Mount state reported by the management shell."""
    MOUNTED = "mounted"
    DISMOUNTED = "dismounted"
    UNREACHABLE = "unreachable"


class BackupKind(Enum):
    """Kind of the most recent backup."""
    FULL = "Full"
    INCREMENTAL = "Incremental"
    DIFFERENTIAL = "Differential"
    NONE = "None"


class BackupStatus(Enum):
    """Outcome of the freshness check."""
    OK = "OK"
    ALERT = "Alert"


@dataclass(frozen=True)
class DatabaseRecord:
    """Backup metadata for a single database, as fetched from Exchange."""
    name: str
    category: DatabaseCategory
    server: str
    mount_state: MountState
    last_full_backup: Optional[datetime] = None
    last_incremental_backup: Optional[datetime] = None
    last_differential_backup: Optional[datetime] = None
    backup_in_progress: bool = False


@dataclass(frozen=True)
class EvaluatedDatabase:
    """Result of checking one database against the backup threshold.

    ``mailbox_count`` is None when not applicable (public folder databases)
    and ``hours_since_backup`` is None when the database was never backed up.
    """
    server: str
    name: str
    category: DatabaseCategory
    mailbox_count: Optional[int]
    status: BackupStatus
    last_backup_kind: BackupKind
    hours_since_backup: Optional[int]
    last_backup_time: Optional[datetime]
    backup_in_progress: bool

    @property
    def is_alert(self) -> bool:
        return self.status is BackupStatus.ALERT


@dataclass(frozen=True)
class RunReport:
    """Evaluated databases split into alert and OK buckets."""
    alerts: Tuple[EvaluatedDatabase, ...] = ()
    ok: Tuple[EvaluatedDatabase, ...] = ()

    @property
    def alert_count(self) -> int:
        return len(self.alerts)

    @property
    def ok_count(self) -> int:
        return len(self.ok)

    @property
    def has_alerts(self) -> bool:
        return bool(self.alerts)
