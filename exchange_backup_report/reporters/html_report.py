"""HTML rendering of backup status reports."""

from datetime import datetime
from html import escape
from typing import List, Sequence

from ..core.models import EvaluatedDatabase, RunReport
from ..utils.formatters import format_date, format_hours, format_mailbox_count, pluralize

PASS_COLOR = "#28a745"
FAIL_COLOR = "#dc3545"

COLUMNS = [
    "Server/DAG",
    "Database",
    "Database Type",
    "Mailboxes",
    "Status",
    "Last Backup Type",
    "Hours Since Last Backup",
    "Last Backup Time (UTC)",
    "Backup Currently Running",
]

CSS = '''
        body {
            font-family: 'Segoe UI', Arial, sans-serif;
            font-size: 10pt;
            color: #333;
            margin: 0;
            padding: 20px;
        }
        h1 { font-size: 14pt; }
        h2 { font-size: 12pt; margin-top: 24px; }
        table {
            border-collapse: collapse;
            width: 100%;
        }
        th {
            background-color: #f8f9fa;
            color: #555;
            text-align: left;
            border: 1px solid #ddd;
            padding: 6px;
        }
        td {
            border: 1px solid #ddd;
            padding: 6px;
        }
        .footer {
            margin-top: 24px;
            color: #6c757d;
            font-size: 8pt;
        }
'''


def summary_line(alert_count: int) -> str:
    """One-line alert count summary, e.g. "1 database backup alert today"."""
    return f"{alert_count} database backup {pluralize(alert_count, 'alert')} today"


class HtmlReportRenderer:
    """Renders a RunReport as a self-contained HTML email body."""

    def __init__(self, title: str = "Exchange Database Backup Report"):
        self.title = title

    def render(self, report: RunReport, threshold: int, now: datetime) -> str:
        """Render the report.

        Args:
            report: Evaluated databases split into alert and OK buckets.
            threshold: Threshold in hours used for this run.
            now: Time the report was generated.

        Returns:
            HTML document.
        """
        sections: List[str] = [
            f"<h1>{escape(self.title)}</h1>",
            f"<p><strong>{escape(summary_line(report.alert_count))}</strong></p>",
            f"<p>Databases without a backup in the last {threshold} "
            f"{pluralize(threshold, 'hour')} are reported as alerts.</p>",
        ]

        sections.append("<h2>Alerts</h2>")
        if report.alerts:
            sections.append(self._render_table(report.alerts, FAIL_COLOR))
        else:
            sections.append(f"<p>All databases have been backed up within the last {threshold} "
                            f"{pluralize(threshold, 'hour')}.</p>")

        sections.append("<h2>Healthy Databases</h2>")
        if report.ok:
            sections.append(self._render_table(report.ok, PASS_COLOR))
        else:
            sections.append("<p>No databases passed the backup check.</p>")

        sections.append(f'<p class="footer">Generated {format_date(now)}</p>')

        body = "\n".join(sections)
        return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{escape(self.title)}</title>
    <style>{CSS}</style>
</head>
<body>
{body}
</body>
</html>
"""

    def _render_table(self, rows: Sequence[EvaluatedDatabase], status_color: str) -> str:
        header = "".join(f"<th>{escape(column)}</th>" for column in COLUMNS)
        lines = ["<table>", f"<tr>{header}</tr>"]
        for row in rows:
            lines.append(self._render_row(row, status_color))
        lines.append("</table>")
        return "\n".join(lines)

    def _render_row(self, row: EvaluatedDatabase, status_color: str) -> str:
        status_style = f"background-color: {status_color}; color: white; font-weight: bold;"
        cells = [
            f"<td>{escape(row.server)}</td>",
            f"<td>{escape(row.name)}</td>",
            f"<td>{escape(row.category.value)}</td>",
            f"<td>{format_mailbox_count(row.mailbox_count)}</td>",
            f'<td style="{status_style}">{escape(row.status.value)}</td>',
            f"<td>{escape(row.last_backup_kind.value)}</td>",
            f"<td>{format_hours(row.hours_since_backup)}</td>",
            f"<td>{format_date(row.last_backup_time)}</td>",
            f"<td>{'Yes' if row.backup_in_progress else 'No'}</td>",
        ]
        return "<tr>" + "".join(cells) + "</tr>"
