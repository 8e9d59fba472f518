"""Core reporting functionality."""

from .evaluator import evaluate, evaluate_all
from .exchange import DatabaseEnumerator, ExchangeShell, MailboxCounter
from .models import (BackupKind, BackupStatus, DatabaseCategory, DatabaseRecord,
                     EvaluatedDatabase, MountState, RunReport)
from .monitor import BackupReportRunner

__all__ = [
    "BackupReportRunner", "DatabaseEnumerator", "ExchangeShell", "MailboxCounter",
    "evaluate", "evaluate_all", "BackupKind", "BackupStatus", "DatabaseCategory",
    "DatabaseRecord", "EvaluatedDatabase", "MountState", "RunReport",
]
