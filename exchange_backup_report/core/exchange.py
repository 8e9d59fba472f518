"""Access to the Exchange management shell.

Each query runs a short PowerShell pipeline in a subprocess and reads the
result back as JSON. Timestamps are emitted as UTC ISO-8601 strings; the
legacy ``/Date(ms)/`` form written by older ConvertTo-Json versions is also
accepted.
"""

import base64
import json
import logging
import re
import subprocess
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from .models import DatabaseCategory, DatabaseRecord, MountState
from ..exceptions import ExternalServiceUnavailable

_LEGACY_DATE = re.compile(r"^/Date\((-?\d+)([+-]\d{4})?\)/$")

_DATABASE_FIELDS = (
    "Name,"
    "@{n='Server';e={if ($_.MasterServerOrAvailabilityGroup) {[string]$_.MasterServerOrAvailabilityGroup} else {[string]$_.Server}}},"
    "Mounted,Recovery,BackupInProgress,"
    "@{n='LastFullBackup';e={if ($_.LastFullBackup) {$_.LastFullBackup.ToUniversalTime().ToString('s') + 'Z'}}},"
    "@{n='LastIncrementalBackup';e={if ($_.LastIncrementalBackup) {$_.LastIncrementalBackup.ToUniversalTime().ToString('s') + 'Z'}}},"
    "@{n='LastDifferentialBackup';e={if ($_.LastDifferentialBackup) {$_.LastDifferentialBackup.ToUniversalTime().ToString('s') + 'Z'}}}"
)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a timestamp emitted by the management shell.

    Args:
        value: ISO-8601 string, ``/Date(ms)/`` string or None.

    Returns:
        Timezone-aware UTC datetime, or None if no timestamp was recorded.

    Raises:
        ExternalServiceUnavailable: If the value is not a recognised timestamp.
    """
    if value in (None, ""):
        return None

    text = str(value).strip()
    legacy = _LEGACY_DATE.match(text)
    if legacy:
        return datetime.fromtimestamp(int(legacy.group(1)) / 1000, tz=timezone.utc)

    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise ExternalServiceUnavailable(f"Unexpected timestamp from management shell: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


class ExchangeShell:
    """Runs Exchange management cmdlets through PowerShell."""

    def __init__(self, shell: str = "powershell", snapin: Optional[str] = None,
                 timeout_seconds: Optional[int] = 300):
        """Initialize the shell runner.

        Args:
            shell: PowerShell executable (``powershell`` or ``pwsh``).
            snapin: Exchange snap-in to load before each command, if any.
            timeout_seconds: Subprocess timeout, None to wait indefinitely.
        """
        self.shell = shell
        self.snapin = snapin
        self.timeout_seconds = timeout_seconds
        self.logger = logging.getLogger(__name__)

    def run_json(self, command: str) -> List[Dict[str, Any]]:
        """Run a PowerShell pipeline and return its JSON output as a list.

        Raises:
            ExternalServiceUnavailable: If the shell cannot be run, fails,
                times out or returns something that is not JSON.
        """
        script = f"{command} | ConvertTo-Json -Depth 3 -Compress"
        if self.snapin:
            script = f"Add-PSSnapin {self.snapin} -ErrorAction Stop; {script}"

        # -EncodedCommand expects the script as base64 of UTF-16LE
        encoded = base64.b64encode(script.encode("utf-16-le")).decode("ascii")
        cmd = [self.shell, "-NoProfile", "-NonInteractive", "-EncodedCommand", encoded]
        self.logger.debug(f"Running management shell command: {command}")

        try:
            result = subprocess.run(cmd, capture_output=True, text=True,
                                    timeout=self.timeout_seconds)
        except FileNotFoundError as e:
            raise ExternalServiceUnavailable(f"Management shell not found: {self.shell}") from e
        except subprocess.TimeoutExpired as e:
            raise ExternalServiceUnavailable(
                f"Management shell timed out after {self.timeout_seconds} seconds") from e

        if result.returncode != 0:
            raise ExternalServiceUnavailable(
                f"Management shell failed with return code {result.returncode}: {result.stderr.strip()}")

        output = result.stdout.strip()
        if not output:
            return []

        try:
            data = json.loads(output)
        except ValueError as e:
            raise ExternalServiceUnavailable(f"Unexpected management shell output: {e}") from e

        # ConvertTo-Json emits a bare object for single results
        if isinstance(data, dict):
            return [data]
        return list(data)

    def get_mailbox_databases(self) -> List[Dict[str, Any]]:
        return self.run_json(f"Get-MailboxDatabase -Status | Select-Object {_DATABASE_FIELDS}")

    def get_public_folder_databases(self) -> List[Dict[str, Any]]:
        return self.run_json(f"Get-PublicFolderDatabase -Status | Select-Object {_DATABASE_FIELDS}")

    def get_mailboxes(self, database_names: Iterable[str]) -> List[Dict[str, Any]]:
        """List primary and archive mailboxes homed on the given databases."""
        names = ",".join(_quote(name) for name in database_names)
        if not names:
            return []

        command = (
            f"$dbs = @({names}); "
            "@(Get-Mailbox -ResultSize Unlimited -IgnoreDefaultScope) + "
            "@(Get-Mailbox -Archive -ResultSize Unlimited -IgnoreDefaultScope) | "
            "Sort-Object -Property Guid -Unique | "
            "Where-Object { ($dbs -contains [string]$_.Database) -or ($dbs -contains [string]$_.ArchiveDatabase) } | "
            "Select-Object @{n='Database';e={[string]$_.Database}},"
            "@{n='ArchiveDatabase';e={if ($_.ArchiveDatabase) {[string]$_.ArchiveDatabase}}}"
        )
        return self.run_json(command)


class DatabaseEnumerator:
    """Lists the databases whose backups are monitored."""

    def __init__(self, shell: ExchangeShell, excluded_databases: Iterable[str] = ()):
        """Initialize the enumerator.

        Args:
            shell: Management shell used for queries.
            excluded_databases: Database names to leave out of the report.
        """
        self.shell = shell
        self.excluded = {name.lower() for name in excluded_databases}
        self.logger = logging.getLogger(__name__)

    def list_databases(self) -> List[DatabaseRecord]:
        """Fetch mailbox and public folder databases.

        Recovery databases and excluded names are dropped.

        Raises:
            ExternalServiceUnavailable: If the management shell cannot be queried.
        """
        raw = [(DatabaseCategory.MAILBOX, item) for item in self.shell.get_mailbox_databases()]
        raw += [(DatabaseCategory.PUBLIC_FOLDER, item) for item in self.shell.get_public_folder_databases()]

        databases = []
        for category, item in raw:
            name = str(item.get("Name", ""))
            if item.get("Recovery"):
                self.logger.info(f"Skipping recovery database {name}")
                continue
            if name.lower() in self.excluded:
                self.logger.info(f"Skipping excluded database {name}")
                continue
            databases.append(self._to_record(category, item))

        self.logger.info(f"Found {len(databases)} databases to check")
        return databases

    @staticmethod
    def _to_record(category: DatabaseCategory, item: Dict[str, Any]) -> DatabaseRecord:
        mounted = item.get("Mounted")
        if mounted is None:
            mount_state = MountState.UNREACHABLE
        elif mounted:
            mount_state = MountState.MOUNTED
        else:
            mount_state = MountState.DISMOUNTED

        return DatabaseRecord(
            name=str(item.get("Name", "")),
            category=category,
            server=str(item.get("Server") or ""),
            mount_state=mount_state,
            last_full_backup=parse_timestamp(item.get("LastFullBackup")),
            last_incremental_backup=parse_timestamp(item.get("LastIncrementalBackup")),
            last_differential_backup=parse_timestamp(item.get("LastDifferentialBackup")),
            backup_in_progress=bool(item.get("BackupInProgress")),
        )


class MailboxCounter:
    """Counts primary and archive mailboxes per mailbox database."""

    def __init__(self, shell: ExchangeShell):
        self.shell = shell
        self.logger = logging.getLogger(__name__)

    def count(self, databases: List[DatabaseRecord]) -> Dict[str, Optional[int]]:
        """Count mailboxes for each database.

        Args:
            databases: Databases already filtered for exclusions.

        Returns:
            Mapping of database name to mailbox count; None for public
            folder databases.
        """
        mailbox_dbs = [db.name for db in databases if db.category is DatabaseCategory.MAILBOX]
        mailboxes = self.shell.get_mailboxes(mailbox_dbs) if mailbox_dbs else []
        self.logger.debug(f"Retrieved {len(mailboxes)} mailboxes")

        counts: Dict[str, Optional[int]] = {}
        for db in databases:
            if db.category is not DatabaseCategory.MAILBOX:
                counts[db.name] = None
                continue
            primary = len([m for m in mailboxes if m.get("Database") == db.name])
            archive = len([m for m in mailboxes if m.get("ArchiveDatabase") == db.name])
            counts[db.name] = primary + archive
        return counts
