"""
Append-only rename ledger.

The ledger is loaded once at startup and rewritten in full on every append
using write-to-temp-then-replace. The in-memory copy stays authoritative for
the running process if a write fails.
"""

import json
import os
import threading
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from domains.inbox_organizer.exceptions import LedgerError


class RenameRecord(BaseModel):
    """One performed rename; immutable once created."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    original_name: str = Field(alias="originalName")
    new_name: str = Field(alias="newName")
    date: datetime
    reason: str

    def as_json_ready(self) -> dict:
        """Payload with the persisted key names in field order."""
        return self.model_dump(mode="json", by_alias=True)


class Ledger:
    """Process-wide, single-writer store of RenameRecords."""

    def __init__(self, path: Path, autoload: bool = True):
        self.path = path
        self._records: List[RenameRecord] = []
        self._lock = threading.Lock()
        if autoload:
            self.load()

    def load(self) -> List[RenameRecord]:
        """
        Replace in-memory records with the persisted ones.

        A missing file yields an empty ledger; an unreadable or corrupt file is
        logged and also yields an empty ledger.
        """
        records: List[RenameRecord] = []
        if self.path.exists():
            try:
                payload = json.loads(self.path.read_text(encoding="utf-8"))
                records = [RenameRecord.model_validate(item) for item in payload]
            except (OSError, ValueError, TypeError, ValidationError) as e:
                logger.warning(f"Could not load rename history from {self.path}: {e}")
                records = []

        with self._lock:
            self._records = records

        logger.info(f"Loaded {len(records)} rename records from {self.path}")
        return list(records)

    @property
    def records(self) -> List[RenameRecord]:
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def append(self, record: RenameRecord) -> bool:
        """
        Append a record and persist the whole ledger.

        Returns:
            True if the on-disk copy was updated, False if persisting failed
            (the record is still kept in memory)
        """
        with self._lock:
            self._records.append(record)
            snapshot = list(self._records)
            return self._persist_quietly(snapshot)

    def clear(self) -> bool:
        """Drop all records and persist the empty ledger."""
        with self._lock:
            self._records = []
            return self._persist_quietly([])

    def was_renamed_to(self, name: str) -> bool:
        """Whether ``name`` is a filename this organizer produced."""
        return self.find_by_new_name(name) is not None

    def find_by_new_name(self, name: str) -> Optional[RenameRecord]:
        """Most recent record whose output was ``name``."""
        with self._lock:
            for record in reversed(self._records):
                if record.new_name == name:
                    return record
        return None

    def _persist_quietly(self, records: Iterable[RenameRecord]) -> bool:
        try:
            write_records(self.path, records)
            return True
        except LedgerError as e:
            logger.warning(f"Rename history not persisted: {e}")
            return False


def write_records(path: Path, records: Iterable[RenameRecord]) -> None:
    """
    Atomically persist ``records`` as a JSON array.

    Raises:
        LedgerError: If the temp file cannot be written or moved into place
    """
    payload = json.dumps([record.as_json_ready() for record in records], indent=2)
    tmp_path = path.with_name(path.name + ".tmp")

    try:
        tmp_path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8") as handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        tmp_path.replace(path)
    except OSError as e:
        raise LedgerError(f"Failed to write {path}: {e}") from e
