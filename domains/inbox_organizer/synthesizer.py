"""Descriptive base-name synthesis from a Context and Category."""

from datetime import datetime
from typing import List

from app.utils.helpers import date_stamp
from domains.inbox_organizer.context import Context, SignalKey
from domains.inbox_organizer.models import Category
from domains.inbox_organizer.naming import MAX_BASE_NAME_LENGTH, sanitize_component, truncate_base_name

MIN_CONFIDENCE = 0.5
MAX_LABELS = 3
MAX_TEXT_WORDS = 3
MIN_WORD_LENGTH = 4
MAX_WORD_LENGTH = 15


def classification_components(context: Context) -> List[str]:
    """Top classification labels with confidence above the threshold."""
    labels = [
        sanitize_component(item.identifier)
        for item in context.classifications
        if item.confidence > MIN_CONFIDENCE
    ]
    return [label for label in labels if label][:MAX_LABELS]


def text_components(context: Context) -> List[str]:
    """Capitalized, length-bounded words from recognized on-image text."""
    text = context.get(SignalKey.TEXT, "")
    words = []
    for raw in str(text).split():
        word = sanitize_component(raw)
        if word[:1].isupper() and MIN_WORD_LENGTH <= len(word) <= MAX_WORD_LENGTH:
            words.append(word)
        if len(words) >= MAX_TEXT_WORDS:
            break
    return words


def synthesize(context: Context, category: Category, now: datetime) -> str:
    """
    Build the base name (without extension) for a classified file.

    Labels win over recognized text, which wins over the bare category label.
    The ``YYYY-MM-DD`` stamp always survives truncation.

    Args:
        context: Signals extracted from the file
        category: Category chosen for the file
        now: Timestamp whose date is appended

    Returns:
        Sanitized base name of at most 100 characters
    """
    components = classification_components(context) or text_components(context) or [category.value]
    descriptive = sanitize_component("_".join(components)) or category.value
    return truncate_base_name(descriptive, date_stamp(now), MAX_BASE_NAME_LENGTH)
