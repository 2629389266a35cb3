"""
Context model shared by analyzers, the categorizer and the name synthesizer.

A Context is an ordered bag of semantic signals. Every signal is stored under
one of the ``SignalKey`` names; rendering a context emits ``"Key: value"``
fragments in insertion order so downstream rules can pattern-match on the key
prefixes without knowing which analyzer produced them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Generic, Iterator, List, Optional, TypeVar

from loguru import logger

T = TypeVar("T")


class SignalKey(str, Enum):
    """Key-prefix convention for context signals."""

    LANGUAGE = "Language"
    PEOPLE = "People"
    ORGANIZATIONS = "Organizations"
    PLACES = "Places"
    SENTIMENT = "Sentiment"
    KEYWORDS = "Keywords"
    TITLE = "Title"
    EXCERPT = "Excerpt"
    CLASSIFICATIONS = "Classifications"
    TEXT = "Text"
    FACES = "Faces"
    FILENAME = "Filename"


ENTITY_KEYS = (SignalKey.PEOPLE, SignalKey.ORGANIZATIONS, SignalKey.PLACES)


@dataclass(frozen=True, slots=True)
class Classification:
    """Ranked image classification label."""

    identifier: str
    confidence: float

    def __str__(self) -> str:
        return f"{self.identifier}: {self.confidence:.2f}"


class Context:
    """Ordered mapping of signal key to value for one classification attempt."""

    def __init__(self) -> None:
        self._signals: Dict[SignalKey, Any] = {}

    def set(self, key: SignalKey, value: Any) -> None:
        """Store a signal, ignoring empty values."""
        if value is None or value == "" or value == [] or value == set():
            return
        self._signals[key] = value

    def get(self, key: SignalKey, default: Any = None) -> Any:
        return self._signals.get(key, default)

    def merge(self, other: "Context") -> None:
        """Merge another context's signals; later values win per key."""
        for key, value in other.items():
            self._signals[key] = value

    def items(self) -> Iterator[tuple[SignalKey, Any]]:
        return iter(list(self._signals.items()))

    def __contains__(self, key: object) -> bool:
        return key in self._signals

    def __len__(self) -> int:
        return len(self._signals)

    def __bool__(self) -> bool:
        return bool(self._signals)

    @property
    def classifications(self) -> List[Classification]:
        return list(self.get(SignalKey.CLASSIFICATIONS, []))

    @property
    def face_count(self) -> int:
        return int(self.get(SignalKey.FACES, 0))

    def render(self, include_excerpt: bool = True) -> str:
        """Render signals as ``Key: value`` fragments joined by spaces."""
        fragments = []
        for key, value in self._signals.items():
            if key is SignalKey.EXCERPT and not include_excerpt:
                continue
            fragments.append(f"{key.value}: {_format_value(key, value)}")
        return " ".join(fragments)

    def summary(self) -> str:
        """Compact rendering used in ledger reasons."""
        return self.render(include_excerpt=False)

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"Context({self.summary()!r})"


def _format_value(key: SignalKey, value: Any) -> str:
    if key is SignalKey.FACES:
        return f"{value} face(s)"
    if isinstance(value, (set, frozenset)):
        return ", ".join(sorted(str(item) for item in value))
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    return str(value)


class AnalyzerStatus(str, Enum):
    """Outcome of a single capability call."""

    SUCCESS = "success"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class AnalyzerResult(Generic[T]):
    """Tri-state result of a best-effort capability call."""

    status: AnalyzerStatus
    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is AnalyzerStatus.SUCCESS

    @classmethod
    def success(cls, value: T) -> "AnalyzerResult[T]":
        return cls(AnalyzerStatus.SUCCESS, value=value)

    @classmethod
    def empty(cls) -> "AnalyzerResult[T]":
        return cls(AnalyzerStatus.EMPTY)

    @classmethod
    def failed(cls, error: str) -> "AnalyzerResult[T]":
        return cls(AnalyzerStatus.FAILED, error=error)


def run_capability(name: str, func: Optional[Callable[..., T]], *args: Any) -> AnalyzerResult[T]:
    """
    Invoke a capability and capture its outcome instead of raising.

    Args:
        name: Capability name used in log messages
        func: Capability callable, or None when the capability is not configured
        *args: Arguments forwarded to the capability

    Returns:
        SUCCESS with the value, EMPTY for falsy values or a missing capability,
        FAILED when the capability raised
    """
    if func is None:
        return AnalyzerResult.empty()

    try:
        value = func(*args)
    except Exception as e:
        logger.warning(f"{name} failed: {e}")
        return AnalyzerResult.failed(str(e))

    if not value:
        return AnalyzerResult.empty()

    return AnalyzerResult.success(value)
