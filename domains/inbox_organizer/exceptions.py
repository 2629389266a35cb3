"""Exception types for the inbox organizer domain."""


class OrganizerError(Exception):
    """Base class for inbox organizer errors."""


class MonitorError(OrganizerError):
    """Raised on invalid monitor lifecycle transitions."""


class LedgerError(OrganizerError):
    """Raised when the rename ledger cannot be persisted."""


class CapabilityUnavailableError(OrganizerError):
    """Raised by a content capability whose backend could not be loaded."""
