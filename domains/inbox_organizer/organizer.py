"""
Classify-and-rename orchestration.

Per file: Discovered -> Skipped, or Classifying -> Renaming -> Recorded, or
Classifying -> Failed. Analysis may run in parallel; the collision check and
the move for one directory always run under that directory's lock.
"""

import errno
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Union

from loguru import logger

from app.utils.helpers import get_file_extension, normalise_path, now_local
from domains.inbox_organizer.categorizer import categorize
from domains.inbox_organizer.context import Context
from domains.inbox_organizer.extractor import ContextExtractor
from domains.inbox_organizer.ledger import Ledger, RenameRecord
from domains.inbox_organizer.models import Category, FileCandidate, OrganizeOutcome, OrganizeStatus
from domains.inbox_organizer.naming import is_already_organized, is_generic, split_name, unique_target
from domains.inbox_organizer.synthesizer import synthesize

LINK_UNSUPPORTED_ERRNOS = frozenset({
    errno.EPERM, errno.EXDEV, errno.EMLINK, errno.ENOSYS, errno.EOPNOTSUPP, errno.ENOTSUP,
})


@dataclass
class ClassifiedFile:
    """Intermediate result of the Classifying state."""

    context: Context
    category: Category
    base_name: str
    extension: str
    now: datetime


def move_file(source: Path, target: Path) -> None:
    """
    Move ``source`` to ``target`` without overwriting an existing entry.

    Hard-links then unlinks so a target created by another process is never
    clobbered; falls back to a plain rename where hard links are unsupported.

    Raises:
        FileExistsError: If ``target`` already exists
        OSError: For any other move failure
    """
    if target.exists():
        raise FileExistsError(errno.EEXIST, "Target already exists", str(target))

    try:
        os.link(source, target)
    except FileExistsError:
        raise
    except OSError as e:
        if e.errno not in LINK_UNSUPPORTED_ERRNOS:
            raise
        source.rename(target)
        return

    try:
        source.unlink()
    except OSError:
        target.unlink()
        raise


class Organizer:
    """Ties extraction, categorization, naming, renaming and the ledger together."""

    def __init__(
        self,
        extractor: ContextExtractor,
        ledger: Ledger,
        clock: Callable[[], datetime] = now_local,
        max_workers: int = 4,
        mover: Callable[[Path, Path], None] = move_file,
    ):
        self.extractor = extractor
        self.ledger = ledger
        self.clock = clock
        self.max_workers = max(1, max_workers)
        self.mover = mover
        self._directory_locks: Dict[Path, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _directory_lock(self, directory: Path) -> threading.Lock:
        with self._locks_guard:
            lock = self._directory_locks.get(directory)
            if lock is None:
                lock = threading.Lock()
                self._directory_locks[directory] = lock
            return lock

    def should_skip(self, path: Path) -> bool:
        """
        Discovered -> Skipped decision; no analysis and no I/O.

        Generic names are always processed. Other names are skipped when they
        carry our naming structure or the ledger lists them as our output.
        """
        stem, _ = split_name(path.name)
        if is_generic(stem):
            return False
        return is_already_organized(stem) or self.ledger.was_renamed_to(path.name)

    def classify(self, path: Path) -> ClassifiedFile:
        """Classifying state: extraction, categorization and synthesis."""
        extension = get_file_extension(path)
        context = self.extractor.extract_context(path)
        category = categorize(context, extension, path.name.lower())
        now = self.clock()
        base_name = synthesize(context, category, now)

        logger.info(f"Analysis of {path.name} - Category: {category.value}, Context: {context.summary()}")
        _, suffix = split_name(path.name)
        return ClassifiedFile(context, category, base_name, suffix, now)

    def classify_and_rename(self, path: Union[Path, str]) -> OrganizeOutcome:
        """
        Run the full state machine for one file.

        Args:
            path: File to organize

        Returns:
            OrganizeOutcome with status recorded, skipped or failed
        """
        path = normalise_path(Path(path))

        if self.should_skip(path):
            logger.debug(f"Skipping {path.name} - already renamed by organizer")
            return self._outcome(OrganizeStatus.SKIPPED, path, detail="already organized")

        classification = self.classify(path)
        return self.rename(path, classification)

    def rename(self, path: Path, classification: ClassifiedFile) -> OrganizeOutcome:
        """Renaming state: collision resolution and move as one critical section."""
        with self._directory_lock(path.parent):
            if not path.exists():
                # Another batch already moved it.
                return self._outcome(OrganizeStatus.SKIPPED, path, detail="source no longer present")

            target = unique_target(path, classification.base_name, classification.extension)

            if target == path:
                logger.debug(f"{path.name} already has its synthesized name")
                return self._outcome(
                    OrganizeStatus.SKIPPED, path, category=classification.category, detail="name unchanged"
                )

            try:
                self.mover(path, target)
            except OSError as e:
                logger.error(f"Failed to rename {path.name}: {e}")
                return self._outcome(
                    OrganizeStatus.FAILED, path, category=classification.category, detail=str(e)
                )

        record = RenameRecord(
            original_name=path.name,
            new_name=target.name,
            date=classification.now,
            reason=f"Categorized as {classification.category.value}: {classification.context.summary()}",
        )
        if not self.ledger.append(record):
            logger.warning(f"Rename of {path.name} recorded in memory only")

        logger.success(f"Renamed: {path.name} -> {target.name}")
        return self._outcome(
            OrganizeStatus.RECORDED, path, new_name=target.name, category=classification.category
        )

    def process_candidates(
        self, candidates: Iterable[Union[FileCandidate, Path]]
    ) -> List[OrganizeOutcome]:
        """
        Organize a batch; analysis runs concurrently.

        A failure for one candidate never stops the others.
        """
        paths = [c.path if isinstance(c, FileCandidate) else Path(c) for c in candidates]
        if not paths:
            return []

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(paths))) as pool:
            outcomes = list(pool.map(self._safe_classify_and_rename, paths))

        renamed = sum(1 for outcome in outcomes if outcome.success)
        logger.info(f"Processed {len(outcomes)} files, renamed {renamed}")
        return outcomes

    def _safe_classify_and_rename(self, path: Path) -> OrganizeOutcome:
        try:
            return self.classify_and_rename(path)
        except Exception as e:
            logger.error(f"Unexpected error organizing {path.name}: {e}")
            return self._outcome(OrganizeStatus.FAILED, path, detail=str(e))

    @staticmethod
    def _outcome(
        status: OrganizeStatus,
        path: Path,
        new_name: Optional[str] = None,
        category: Optional[Category] = None,
        detail: Optional[str] = None,
    ) -> OrganizeOutcome:
        return OrganizeOutcome(
            status=status,
            source=str(path),
            original_name=path.name,
            new_name=new_name,
            category=category,
            detail=detail,
        )
