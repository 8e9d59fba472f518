"""Backup freshness evaluation."""

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from .models import (BackupKind, BackupStatus, DatabaseCategory, DatabaseRecord,
                     EvaluatedDatabase, MountState, RunReport)

logger = logging.getLogger(__name__)

# Order decides ties between kinds with equal elapsed hours.
KIND_PRIORITY = (BackupKind.FULL, BackupKind.DIFFERENTIAL, BackupKind.INCREMENTAL)


def _to_utc(value: datetime) -> datetime:
    # naive datetimes are local time
    return value.astimezone(timezone.utc)


def hours_between(now: datetime, then: datetime) -> int:
    """Whole hours from ``then`` to ``now``, truncated toward zero."""
    delta = _to_utc(now) - _to_utc(then)
    return int(delta.total_seconds() / 3600)


def _backup_times(db: DatabaseRecord) -> Dict[BackupKind, Optional[datetime]]:
    return {
        BackupKind.FULL: db.last_full_backup,
        BackupKind.DIFFERENTIAL: db.last_differential_backup,
        BackupKind.INCREMENTAL: db.last_incremental_backup,
    }


def most_recent_backup(db: DatabaseRecord, now: datetime) -> Tuple[BackupKind, Optional[int], Optional[datetime]]:
    """Find the most recent backup of a database.

    Args:
        db: Database to inspect.
        now: Reference time.

    Returns:
        Tuple of (kind, elapsed hours, timestamp). Kind is ``BackupKind.NONE``
        with None for hours and timestamp when no backup was ever recorded.
    """
    times = _backup_times(db)
    candidates = []
    for priority, kind in enumerate(KIND_PRIORITY):
        timestamp = times[kind]
        if timestamp is None:
            continue
        candidates.append((hours_between(now, timestamp), priority, kind, timestamp))

    if not candidates:
        return BackupKind.NONE, None, None

    hours, _, kind, timestamp = min(candidates)
    return kind, hours, timestamp


def evaluate(db: DatabaseRecord, now: datetime, threshold: int,
             mailbox_count: Optional[int] = None) -> Optional[EvaluatedDatabase]:
    """Check one database against the backup threshold.

    Args:
        db: Database record from the management shell.
        now: Reference time for elapsed hours.
        threshold: Maximum tolerated hours since the most recent backup.
        mailbox_count: Mailbox count for display, None if not applicable.

    Returns:
        The evaluated database, or None if the database is not mounted and
        cannot be evaluated this run.
    """
    if db.mount_state is not MountState.MOUNTED:
        logger.info(f"Database {db.name} is {db.mount_state.value}, skipping")
        return None

    kind, hours, timestamp = most_recent_backup(db, now)
    if kind is BackupKind.NONE:
        logger.info(f"Database {db.name} has never been backed up")
        status = BackupStatus.ALERT
    elif hours > threshold:
        logger.info(f"Database {db.name} last {kind.value.lower()} backup was {hours} hours ago")
        status = BackupStatus.ALERT
    else:
        logger.debug(f"Database {db.name} last {kind.value.lower()} backup was {hours} hours ago")
        status = BackupStatus.OK

    if db.category is not DatabaseCategory.MAILBOX:
        mailbox_count = None

    return EvaluatedDatabase(
        server=db.server,
        name=db.name,
        category=db.category,
        mailbox_count=mailbox_count,
        status=status,
        last_backup_kind=kind,
        hours_since_backup=hours,
        last_backup_time=timestamp,
        backup_in_progress=db.backup_in_progress,
    )


def evaluate_all(databases: Iterable[DatabaseRecord], mailbox_counts: Dict[str, Optional[int]],
                 now: datetime, threshold: int) -> RunReport:
    """Evaluate every database and split the results into alert and OK buckets."""
    alerts: List[EvaluatedDatabase] = []
    ok: List[EvaluatedDatabase] = []

    for db in databases:
        result = evaluate(db, now, threshold, mailbox_counts.get(db.name))
        if result is None:
            continue
        if result.is_alert:
            alerts.append(result)
        else:
            ok.append(result)

    logger.info(f"Evaluation complete: {len(alerts)} alerts, {len(ok)} OK")
    return RunReport(alerts=tuple(alerts), ok=tuple(ok))
