"""Typed, read-only view of the loaded configuration."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, Optional

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


@dataclass(frozen=True)
class Configuration:
    """Settings for a single report run."""
    to_address: str
    from_address: str
    smtp_server: str
    lenient_day: str
    lenient_day_hours: int
    other_days_hours: int
    smtp_port: int = 25
    use_tls: bool = False
    smtp_user: Optional[str] = None
    smtp_pass: Optional[str] = None
    subject: str = "Exchange Database Backup Report"
    excluded_databases: FrozenSet[str] = field(default_factory=frozenset)

    def threshold_for(self, now: datetime) -> int:
        """Return the alert threshold in hours for the weekday of ``now``."""
        if WEEKDAYS[now.weekday()] == self.lenient_day.lower():
            return self.lenient_day_hours
        return self.other_days_hours
