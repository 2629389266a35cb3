from datetime import datetime, timezone

import pytest

from domains.inbox_organizer.capabilities import Capabilities
from domains.inbox_organizer.extractor import ContextExtractor
from domains.inbox_organizer.ledger import Ledger
from domains.inbox_organizer.organizer import Organizer

FIXED_NOW = datetime(2025, 6, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def inbox(tmp_path):
    directory = tmp_path / "inbox"
    directory.mkdir()
    return directory


@pytest.fixture
def ledger(tmp_path):
    return Ledger(tmp_path / "state" / "history.json")


@pytest.fixture
def text_capabilities():
    """Capabilities whose only provider reads the file as UTF-8 text."""
    return Capabilities(
        text_extractor=lambda path: path.read_text(encoding="utf-8"),
        language_detector=None,
    )


@pytest.fixture
def organizer_factory(ledger):
    def build(capabilities, **kwargs):
        return Organizer(
            extractor=ContextExtractor(capabilities),
            ledger=ledger,
            clock=lambda: FIXED_NOW,
            **kwargs,
        )

    return build
