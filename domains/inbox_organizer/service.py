"""
Process-wide wiring of the ledger, organizer and monitor.

Follows the global accessor pattern: components are created on first use from
settings and torn down by ``close_organizer_service``.
"""

from typing import List, Optional

from loguru import logger

from app.utils.config import Settings, get_settings
from domains.inbox_organizer.capabilities import Capabilities
from domains.inbox_organizer.extractor import ContextExtractor
from domains.inbox_organizer.ledger import Ledger
from domains.inbox_organizer.models import OrganizeOutcome
from domains.inbox_organizer.monitor import DirectoryMonitor
from domains.inbox_organizer.organizer import Organizer


class OrganizerService:
    """Owns one monitor, one organizer and the shared ledger."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        capabilities: Optional[Capabilities] = None,
    ):
        self.settings = settings or get_settings()
        self.capabilities = capabilities or Capabilities.defaults(
            ocr_language=self.settings.ocr_language,
            spacy_model=self.settings.spacy_model,
        )
        self.ledger = Ledger(self.settings.get_ledger_path())
        self.organizer = Organizer(
            extractor=ContextExtractor(self.capabilities),
            ledger=self.ledger,
            max_workers=self.settings.organizer_workers,
        )
        self.monitor = DirectoryMonitor(
            root=self.settings.get_inbox_dir(),
            scan_interval=self.settings.scan_interval,
            settle_seconds=self.settings.settle_seconds,
            watch_events=self.settings.watch_events,
            debounce_seconds=self.settings.debounce_seconds,
        )

        logger.info(f"Organizer service initialized for {self.monitor.root}")
        logger.info(f"Rename history: {self.ledger.path}")

    def start(self) -> None:
        self.monitor.start_monitoring(self.organizer.process_candidates)

    def stop(self) -> None:
        self.monitor.stop_monitoring()

    def run_once(self) -> List[OrganizeOutcome]:
        """Manual trigger: scan the inbox and organize every eligible file now."""
        return self.organizer.process_candidates(self.monitor.scan())


# Global service instance
_service: Optional[OrganizerService] = None


def get_organizer_service() -> OrganizerService:
    """Get global organizer service instance."""
    global _service
    if _service is None:
        _service = OrganizerService()
    return _service


def set_organizer_service(service: Optional[OrganizerService]) -> None:
    """Replace the global service (used by the CLI and tests)."""
    global _service
    _service = service


def close_organizer_service():
    """Stop monitoring and drop the global service."""
    global _service
    if _service:
        _service.stop()
        _service = None
