"""
Inbox directory monitor.

Feeds eligible files to a callback from two trigger sources:
1. A periodic timer performing a full eligibility scan
2. An optional watchdog observer whose events schedule a debounced scan

Callbacks always run on the monitor's own threads, never on the watchdog
notification thread, so event delivery is never blocked by organizing work.
"""

import mimetypes
import threading
import time
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from loguru import logger
from watchdog.events import DirModifiedEvent, FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from app.utils.helpers import file_creation_time, format_bytes, is_hidden, normalise_path
from domains.inbox_organizer.exceptions import MonitorError
from domains.inbox_organizer.models import FileCandidate

CandidateCallback = Callable[[List[FileCandidate]], None]


class MonitorState(str, Enum):
    """Lifecycle state of one monitor instance."""

    IDLE = "idle"
    RUNNING = "running"


class InboxEventHandler(FileSystemEventHandler):
    """Watchdog handler that turns any change into a debounced scan request."""

    def __init__(self, monitor: "DirectoryMonitor"):
        super().__init__()
        self.monitor = monitor

    def on_created(self, event: FileSystemEvent) -> None:
        self._changed(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        if isinstance(event, DirModifiedEvent):
            return
        self._changed(event)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._changed(event)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._changed(event)

    def _changed(self, event: FileSystemEvent) -> None:
        if is_hidden(Path(event.src_path)):
            return
        self.monitor.request_scan()


class DirectoryMonitor:
    """Watches one inbox directory and emits its eligible files."""

    _active_roots: set = set()
    _registry_lock = threading.Lock()

    def __init__(
        self,
        root: Path,
        scan_interval: float = 60.0,
        settle_seconds: float = 5.0,
        watch_events: bool = True,
        debounce_seconds: float = 2.0,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the monitor.

        Args:
            root: Inbox directory to watch (non-recursive)
            scan_interval: Seconds between periodic scans
            settle_seconds: Minimum file age before a file is eligible
            watch_events: Whether to react to filesystem events
            debounce_seconds: Quiet period before an event-triggered scan
            clock: Source of the current POSIX time
        """
        self.root = normalise_path(root)
        self.scan_interval = scan_interval
        self.settle_seconds = settle_seconds
        self.watch_events = watch_events
        self.debounce_seconds = debounce_seconds
        self.clock = clock

        self.state = MonitorState.IDLE
        self._callback: Optional[CandidateCallback] = None
        self._stop_event = threading.Event()
        self._state_lock = threading.Lock()
        self._scan_lock = threading.RLock()
        self._timer_thread: Optional[threading.Thread] = None
        self._debounce_timer: Optional[threading.Timer] = None
        self._observer: Optional[Observer] = None

    # Eligibility ---------------------------------------------------------------------

    def is_eligible(self, path: Path, now: Optional[float] = None) -> Optional[FileCandidate]:
        """Return a FileCandidate if ``path`` is safe to touch, otherwise None."""
        if is_hidden(path):
            return None

        try:
            if path.is_symlink() or not path.is_file():
                return None
            stats = path.stat()
        except OSError as e:
            logger.debug(f"Error getting file info for {path.name}: {e}")
            return None

        created = file_creation_time(stats)
        cutoff = (self.clock() if now is None else now) - self.settle_seconds
        if created is None or created > cutoff:
            logger.debug(f"File too new or no date: {path.name}")
            return None

        return FileCandidate(
            path=path,
            creation_time=datetime.fromtimestamp(created).astimezone(),
            size_bytes=stats.st_size,
            detected_type=mimetypes.guess_type(path.name)[0] or "unknown",
        )

    def scan(self) -> List[FileCandidate]:
        """
        List eligible files directly inside the root.

        Directories (including package bundles) are skipped, never descended.
        """
        try:
            entries = sorted(self.root.iterdir())
        except OSError as e:
            logger.error(f"Failed to list {self.root}: {e}")
            return []

        now = self.clock()
        eligible = []
        for entry in entries:
            candidate = self.is_eligible(entry, now)
            if candidate is not None:
                eligible.append(candidate)

        logger.debug(f"Total files examined: {len(entries)}, eligible: {len(eligible)}")
        return eligible

    # Triggers ------------------------------------------------------------------------

    def trigger_scan(self) -> List[FileCandidate]:
        """Scan now and hand the eligible set to the callback."""
        with self._scan_lock:
            if self._stop_event.is_set():
                return []
            candidates = self.scan()
            if not candidates:
                return candidates

            total = sum(candidate.size_bytes for candidate in candidates)
            logger.info(f"Found {len(candidates)} eligible files ({format_bytes(total)})")

            callback = self._callback
            if callback is not None:
                try:
                    callback(candidates)
                except Exception as e:
                    logger.error(f"Monitor callback failed: {e}")
            return candidates

    def request_scan(self) -> None:
        """Debounce an event-driven scan; cheap enough for the notification thread."""
        with self._state_lock:
            if self.state is not MonitorState.RUNNING:
                return
            if self._debounce_timer is not None:
                self._debounce_timer.cancel()
            timer = threading.Timer(self.debounce_seconds, self._debounced_scan)
            timer.daemon = True
            self._debounce_timer = timer
            timer.start()

    def _debounced_scan(self) -> None:
        if self._stop_event.is_set():
            return
        logger.debug("Filesystem change detected - scanning inbox")
        self.trigger_scan()

    def _run_timer(self) -> None:
        logger.info("Initial check for files...")
        self.trigger_scan()
        while not self._stop_event.wait(self.scan_interval):
            logger.debug("Timer fired - checking for new files...")
            self.trigger_scan()

    # Lifecycle -----------------------------------------------------------------------

    def start_monitoring(self, callback: CandidateCallback) -> None:
        """
        Start the timer and, if enabled, the filesystem watch.

        Raises:
            MonitorError: If this monitor is already running or the root is missing
        """
        with self._state_lock:
            if self.state is MonitorState.RUNNING:
                raise MonitorError(f"Monitor for {self.root} is already running")
            if not self.root.is_dir():
                raise MonitorError(f"Inbox directory does not exist: {self.root}")
            with self._registry_lock:
                if self.root in self._active_roots:
                    raise MonitorError(f"Another monitor is already watching {self.root}")
                self._active_roots.add(self.root)

            self._callback = callback
            self._stop_event.clear()
            self.state = MonitorState.RUNNING

            if self.watch_events:
                self._start_observer()

            self._timer_thread = threading.Thread(
                target=self._run_timer, name="inbox-monitor", daemon=True
            )
            self._timer_thread.start()

        logger.success(f"Started monitoring {self.root} (every {self.scan_interval:g}s)")

    def _start_observer(self) -> None:
        observer = Observer()
        try:
            observer.schedule(InboxEventHandler(self), str(self.root), recursive=False)
            observer.daemon = True
            observer.start()
        except Exception as e:
            logger.warning(f"Filesystem events unavailable for {self.root}, timer only: {e}")
            return
        self._observer = observer

    def stop_monitoring(self, timeout: Optional[float] = None) -> None:
        """
        Stop scheduling scans.

        An in-flight callback is allowed to finish; it is never interrupted.
        Once this returns no further callback starts, including one queued
        by a debounce timer that had already fired.
        """
        with self._state_lock:
            if self.state is MonitorState.IDLE:
                return
            self.state = MonitorState.IDLE
            self._stop_event.set()

            if self._debounce_timer is not None:
                self._debounce_timer.cancel()
                self._debounce_timer = None

            observer, self._observer = self._observer, None
            self._callback = None
            timer_thread, self._timer_thread = self._timer_thread, None

            with self._registry_lock:
                self._active_roots.discard(self.root)

        if observer is not None:
            observer.stop()
            observer.join(timeout)

        if timer_thread is not None and timer_thread is not threading.current_thread():
            timer_thread.join(timeout)

        # Wait out a scan that is still running on a debounce thread.
        if self._scan_lock.acquire(timeout=-1 if timeout is None else timeout):
            self._scan_lock.release()

        logger.info(f"Stopped monitoring {self.root}")
