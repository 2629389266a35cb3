"""
Data models for the inbox organizer.

Shared data models across the monitor, organizer and API layers.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, computed_field


class Category(str, Enum):
    """Closed set of destination classifications; values are filename labels."""

    DOCUMENTS = "Documents"
    INVOICES = "Invoices"
    RECEIPTS = "Receipts"
    SCREENSHOTS = "Screenshots"
    PHOTOS = "Photos"
    VACATION_PHOTOS = "VacationPhotos"
    VIDEOS = "Videos"
    MUSIC = "Music"
    CODE = "Code"
    PRESENTATIONS = "Presentations"
    SPREADSHEETS = "Spreadsheets"
    ARCHIVES = "Archives"
    INSTALLERS = "Installers"
    MISC = "Misc"

    @classmethod
    def labels(cls) -> list[str]:
        return [category.value for category in cls]


@dataclass(frozen=True, slots=True)
class FileCandidate:
    """Eligible file produced by a monitor scan."""

    path: Path
    creation_time: datetime
    size_bytes: int
    detected_type: str


class OrganizeStatus(str, Enum):
    """Terminal state of one classify-and-rename attempt."""

    RECORDED = "recorded"
    SKIPPED = "skipped"
    FAILED = "failed"


class OrganizeOutcome(BaseModel):
    """Result of classifying and renaming one file."""
    status: OrganizeStatus
    source: str
    original_name: str
    new_name: Optional[str] = None
    category: Optional[Category] = None
    detail: Optional[str] = None

    @computed_field
    @property
    def success(self) -> bool:
        return self.status is OrganizeStatus.RECORDED
