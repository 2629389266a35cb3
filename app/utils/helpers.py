"""
Helper utilities for Smart Organizer.

Common functions used across domains.
"""

import os
from datetime import datetime
from pathlib import Path
from typing import Optional


def now_local() -> datetime:
    """Get current timestamp as a timezone-aware local datetime."""
    return datetime.now().astimezone()


def date_stamp(moment: datetime) -> str:
    """Format a datetime as the YYYY-MM-DD stamp used in filenames."""
    return moment.strftime("%Y-%m-%d")


def get_file_extension(path: Path) -> str:
    """Get file extension without dot, lowercased."""
    return path.suffix.lstrip('.').lower()


def normalise_path(path: Path) -> Path:
    """Return a resolved version of ``path`` without forcing existence."""
    try:
        return path.expanduser().resolve()
    except (FileNotFoundError, RuntimeError):
        return path.expanduser().absolute()


def is_hidden(path: Path) -> bool:
    """Check if path is hidden (starts with dot)."""
    return path.name.startswith('.')


def file_creation_time(stats: os.stat_result) -> Optional[float]:
    """
    Best available creation timestamp for a stat result.

    Uses ``st_birthtime`` where the platform reports it and falls back to
    ``st_ctime`` (Linux does not expose birth time through ``os.stat``).

    Returns:
        POSIX timestamp or None if the stat result carries neither value
    """
    birth = getattr(stats, "st_birthtime", None)
    if birth:
        return float(birth)

    ctime = getattr(stats, "st_ctime", None)
    return float(ctime) if ctime else None


def format_bytes(bytes_count: int) -> str:
    """Format bytes as human-readable string."""
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if bytes_count < 1024.0:
            return f"{bytes_count:.1f} {unit}"
        bytes_count /= 1024.0
    return f"{bytes_count:.1f} PB"
