"""Test configuration and fixtures."""

from datetime import datetime, timedelta, timezone

import pytest
import yaml

from exchange_backup_report.core.exchange import ExchangeShell
from exchange_backup_report.core.models import DatabaseCategory, DatabaseRecord, MountState

# A Wednesday
NOW = datetime(2024, 1, 3, 12, 0, tzinfo=timezone.utc)


def hours_ago(hours, minutes=0):
    return NOW - timedelta(hours=hours, minutes=minutes)


def make_record(name="DB01", category=DatabaseCategory.MAILBOX, server="DAG01",
                mount_state=MountState.MOUNTED, full=None, incremental=None,
                differential=None, in_progress=False):
    return DatabaseRecord(
        name=name,
        category=category,
        server=server,
        mount_state=mount_state,
        last_full_backup=full,
        last_incremental_backup=incremental,
        last_differential_backup=differential,
        backup_in_progress=in_progress,
    )


def iso(dt):
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def database_json(name, full=None, incremental=None, differential=None, server="DAG01",
                  mounted=True, recovery=False, in_progress=False):
    """Database entry as emitted by the management shell."""
    return {
        "Name": name,
        "Server": server,
        "Mounted": mounted,
        "Recovery": recovery,
        "BackupInProgress": in_progress,
        "LastFullBackup": iso(full) if full else None,
        "LastIncrementalBackup": iso(incremental) if incremental else None,
        "LastDifferentialBackup": iso(differential) if differential else None,
    }


class FakeShell(ExchangeShell):
    """Management shell returning canned data."""

    def __init__(self, mailbox_databases=None, public_folder_databases=None, mailboxes=None):
        super().__init__()
        self.mailbox_databases = mailbox_databases or []
        self.public_folder_databases = public_folder_databases or []
        self.mailboxes = mailboxes or []
        self.mailbox_queries = []

    def get_mailbox_databases(self):
        return list(self.mailbox_databases)

    def get_public_folder_databases(self):
        return list(self.public_folder_databases)

    def get_mailboxes(self, database_names):
        names = list(database_names)
        self.mailbox_queries.append(names)
        return [m for m in self.mailboxes
                if m.get("Database") in names or m.get("ArchiveDatabase") in names]


@pytest.fixture
def settings():
    """Minimal valid configuration data."""
    return {
        "email": {
            "to_address": "admins@example.com",
            "from_address": "reports@example.com",
            "smtp_server": "relay.example.com",
        },
        "thresholds": {
            "lenient_day": "Monday",
            "lenient_day_hours": 72,
            "other_days_hours": 24,
        },
        "exclusions": ["TestDB"],
    }


@pytest.fixture
def write_config(tmp_path):
    """Write configuration data to a YAML file and return its path."""
    def _write(data, name="settings.yaml"):
        path = tmp_path / name
        path.write_text(yaml.safe_dump(data), encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture
def config_file(settings, write_config):
    return write_config(settings)
