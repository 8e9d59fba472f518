"""Tests for the Exchange management shell adapter."""

import base64
import subprocess
from datetime import datetime, timezone
from unittest import mock

import pytest

from conftest import FakeShell, database_json, hours_ago
from exchange_backup_report.core.exchange import (DatabaseEnumerator, ExchangeShell,
                                                  MailboxCounter, parse_timestamp)
from exchange_backup_report.core.models import DatabaseCategory, MountState
from exchange_backup_report.exceptions import ExternalServiceUnavailable


def decoded_script(cmd):
    assert cmd[-2] == "-EncodedCommand"
    return base64.b64decode(cmd[-1]).decode("utf-16-le")


def completed(stdout="", returncode=0, stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestParseTimestamp:
    """Tests for timestamp parsing."""

    def test_none(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None

    def test_iso_utc(self):
        assert parse_timestamp("2024-01-02T03:04:05Z") == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_iso_with_offset(self):
        parsed = parse_timestamp("2024-01-02T05:04:05+02:00")
        assert parsed == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert parsed.tzinfo == timezone.utc

    def test_legacy_json_date(self):
        assert parse_timestamp("/Date(1704164645000)/") == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_unrecognised_format(self):
        with pytest.raises(ExternalServiceUnavailable, match="Unexpected timestamp"):
            parse_timestamp("1/2/2024 3:04:05 AM")


class TestExchangeShell:
    """Tests for running management shell commands."""

    def test_returns_list(self):
        shell = ExchangeShell()
        with mock.patch("subprocess.run", return_value=completed('[{"Name": "DB01"}, {"Name": "DB02"}]')):
            assert [item["Name"] for item in shell.run_json("Get-Thing")] == ["DB01", "DB02"]

    def test_single_object_is_wrapped(self):
        shell = ExchangeShell()
        with mock.patch("subprocess.run", return_value=completed('{"Name": "DB01"}')):
            assert shell.run_json("Get-Thing") == [{"Name": "DB01"}]

    def test_empty_output(self):
        shell = ExchangeShell()
        with mock.patch("subprocess.run", return_value=completed("  \n")):
            assert shell.run_json("Get-Thing") == []

    def test_command_line(self):
        shell = ExchangeShell(shell="pwsh", snapin="Exchange.SnapIn", timeout_seconds=30)
        with mock.patch("subprocess.run", return_value=completed("[]")) as run:
            shell.run_json("Get-MailboxDatabase")

        cmd = run.call_args[0][0]
        assert cmd[0] == "pwsh"
        script = decoded_script(cmd)
        assert script.startswith("Add-PSSnapin Exchange.SnapIn")
        assert "Get-MailboxDatabase | ConvertTo-Json" in script
        assert run.call_args[1]["timeout"] == 30

    def test_missing_shell(self):
        shell = ExchangeShell(shell="no-such-shell")
        with mock.patch("subprocess.run", side_effect=FileNotFoundError()):
            with pytest.raises(ExternalServiceUnavailable, match="not found"):
                shell.run_json("Get-Thing")

    def test_timeout(self):
        shell = ExchangeShell(timeout_seconds=1)
        with mock.patch("subprocess.run", side_effect=subprocess.TimeoutExpired("powershell", 1)):
            with pytest.raises(ExternalServiceUnavailable, match="timed out"):
                shell.run_json("Get-Thing")

    def test_non_zero_exit(self):
        shell = ExchangeShell()
        with mock.patch("subprocess.run", return_value=completed(returncode=1, stderr="server down")):
            with pytest.raises(ExternalServiceUnavailable, match="server down"):
                shell.run_json("Get-Thing")

    def test_invalid_json(self):
        shell = ExchangeShell()
        with mock.patch("subprocess.run", return_value=completed("WARNING: not json")):
            with pytest.raises(ExternalServiceUnavailable):
                shell.run_json("Get-Thing")

    def test_mailbox_query_quotes_names(self):
        shell = ExchangeShell()
        with mock.patch("subprocess.run", return_value=completed("[]")) as run:
            shell.get_mailboxes(["DB01", "O'Brien DB"])
        script = decoded_script(run.call_args[0][0])
        assert "'DB01'" in script
        assert "'O''Brien DB'" in script

    def test_mailbox_query_skipped_without_databases(self):
        shell = ExchangeShell()
        with mock.patch("subprocess.run") as run:
            assert shell.get_mailboxes([]) == []
        run.assert_not_called()


class TestDatabaseEnumerator:
    """Tests for listing monitored databases."""

    def test_lists_both_categories(self):
        shell = FakeShell(
            mailbox_databases=[database_json("DB01", full=hours_ago(2))],
            public_folder_databases=[database_json("PF01", server="EX02")],
        )
        databases = DatabaseEnumerator(shell).list_databases()

        assert [(db.name, db.category) for db in databases] == [
            ("DB01", DatabaseCategory.MAILBOX),
            ("PF01", DatabaseCategory.PUBLIC_FOLDER),
        ]
        assert databases[0].last_full_backup == hours_ago(2)
        assert databases[1].server == "EX02"

    def test_drops_recovery_databases(self):
        shell = FakeShell(mailbox_databases=[
            database_json("DB01"),
            database_json("RDB01", recovery=True),
        ])
        assert [db.name for db in DatabaseEnumerator(shell).list_databases()] == ["DB01"]

    def test_exclusion_is_case_insensitive_exact_match(self):
        shell = FakeShell(mailbox_databases=[database_json("DB01"), database_json("DB02")])
        assert [db.name for db in DatabaseEnumerator(shell, ["db01"]).list_databases()] == ["DB02"]
        assert [db.name for db in DatabaseEnumerator(shell, ["DB0"]).list_databases()] == ["DB01", "DB02"]

    def test_mount_states(self):
        shell = FakeShell(mailbox_databases=[
            database_json("DB01", mounted=True),
            database_json("DB02", mounted=False),
            database_json("DB03", mounted=None),
        ])
        states = [db.mount_state for db in DatabaseEnumerator(shell).list_databases()]
        assert states == [MountState.MOUNTED, MountState.DISMOUNTED, MountState.UNREACHABLE]

    def test_backup_in_progress(self):
        shell = FakeShell(mailbox_databases=[database_json("DB01", in_progress=True)])
        assert DatabaseEnumerator(shell).list_databases()[0].backup_in_progress is True

    def test_malformed_timestamp_is_unavailable(self):
        item = database_json("DB01")
        item["LastFullBackup"] = "1/2/2024 3:04:05 AM"
        with pytest.raises(ExternalServiceUnavailable):
            DatabaseEnumerator(FakeShell(mailbox_databases=[item])).list_databases()

    def test_shell_failure_propagates(self):
        shell = ExchangeShell()
        with mock.patch("subprocess.run", side_effect=FileNotFoundError()):
            with pytest.raises(ExternalServiceUnavailable):
                DatabaseEnumerator(shell).list_databases()


class TestMailboxCounter:
    """Tests for mailbox counting."""

    def test_counts_primary_and_archive(self):
        shell = FakeShell(
            mailbox_databases=[database_json("DB01"), database_json("DB02")],
            public_folder_databases=[database_json("PF01")],
            mailboxes=[
                {"Database": "DB01", "ArchiveDatabase": None},
                {"Database": "DB01", "ArchiveDatabase": "DB02"},
                {"Database": "DB02", "ArchiveDatabase": "DB02"},
                {"Database": "DB03", "ArchiveDatabase": None},
            ],
        )
        databases = DatabaseEnumerator(shell).list_databases()
        counts = MailboxCounter(shell).count(databases)

        assert counts == {"DB01": 2, "DB02": 3, "PF01": None}

    def test_queries_only_listed_mailbox_databases(self):
        shell = FakeShell(
            mailbox_databases=[database_json("DB01"), database_json("DB02")],
            public_folder_databases=[database_json("PF01")],
        )
        databases = DatabaseEnumerator(shell, ["DB02"]).list_databases()
        MailboxCounter(shell).count(databases)
        assert shell.mailbox_queries == [["DB01"]]

    def test_no_mailbox_databases(self):
        shell = FakeShell(public_folder_databases=[database_json("PF01")])
        counts = MailboxCounter(shell).count(DatabaseEnumerator(shell).list_databases())
        assert counts == {"PF01": None}
        assert shell.mailbox_queries == []
