"""Command-line interface for the Exchange backup report."""

import logging
import sys
from typing import Optional

import click

from .core.monitor import BackupReportRunner
from .exceptions import BackupReportError
from .utils.formatters import pluralize


def setup_logging(level: str, log_file: Optional[str] = None):
    """Set up logging configuration.

    The log file, when given, is truncated so it only covers the current run.
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {level}')

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            click.echo(f"Warning: Could not set up file logging: {e}", err=True)
            return None

    return log_file


@click.command()
@click.option('--log', 'enable_log', is_flag=True, default=False,
              help='Write a log file for this run and attach it to the report')
@click.option('--always-send', is_flag=True, default=False,
              help='Send the report even when there are no backup alerts')
def cli(enable_log: bool, always_send: bool):
    """Exchange Backup Report - alert on Exchange databases with stale backups."""
    setup_logging('INFO')

    try:
        runner = BackupReportRunner()

        logging_config = runner.config_manager.get_logging_config()
        log_file = logging_config.get('file') if enable_log else None
        runner.log_file = setup_logging(logging_config.get('level') or 'INFO', log_file)

        results = runner.run(always_send=always_send)
    except BackupReportError as e:
        click.echo(f"Error running backup report: {e}", err=True)
        sys.exit(1)

    report = results['report']
    checked = report.alert_count + report.ok_count
    click.echo(f"Checked {checked} {pluralize(checked, 'database')} "
               f"(threshold {results['threshold']} hours)")
    click.echo(f"  Alerts: {report.alert_count}")
    click.echo(f"  OK: {report.ok_count}")

    if results['email_sent']:
        click.echo("  Email report sent")
    elif report.has_alerts or always_send:
        click.echo("  Email report could not be sent, see log for details")


def main():
    """Main CLI entry point."""
    cli()


if __name__ == '__main__':
    main()
