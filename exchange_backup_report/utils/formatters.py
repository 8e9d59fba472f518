"""Formatting utilities for backup reports."""

from datetime import datetime, timezone
from typing import Optional


def format_date(dt: Optional[datetime], short: bool = True) -> str:
    """Format datetime for display.
    
    Aware datetimes are shown in UTC so output does not depend on the
    host timezone.
    
    Args:
        dt: Datetime to format.
        short: If True, omit seconds.
        
    Returns:
        Formatted date string, or "n/a" when no datetime is given.
    """
    if dt is None:
        return "n/a"
    
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    
    if short:
        return dt.strftime('%Y-%m-%d %H:%M')
    else:
        return dt.strftime('%Y-%m-%d %H:%M:%S')


def format_hours(hours: Optional[int]) -> str:
    """Format elapsed hours, "Never backed up" when there is no backup."""
    if hours is None:
        return "Never backed up"
    return str(hours)


def format_mailbox_count(count: Optional[int]) -> str:
    if count is None:
        return "n/a"
    return str(count)


def pluralize(count: int, singular: str, plural: Optional[str] = None) -> str:
    """Return ``singular`` for a count of one and the plural form otherwise.
    
    Args:
        count: Number of items.
        singular: Singular noun.
        plural: Plural noun, defaults to ``singular + "s"``.
        
    Returns:
        Noun matching the count.
    """
    if count == 1:
        return singular
    return plural or f"{singular}s"
