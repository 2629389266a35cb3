"""
Context extraction for inbox files.

Dispatches a file to a content analyzer chosen by extension and normalizes
whatever the capabilities return into a single Context. Extraction never
raises: a failing capability contributes nothing and the rest of the
context is kept.
"""

from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger
from spacy.lang.en.stop_words import STOP_WORDS

from app.utils.helpers import get_file_extension
from domains.inbox_organizer.capabilities import Capabilities, TextAnnotation, plain_tokens
from domains.inbox_organizer.context import (
    AnalyzerStatus,
    Classification,
    Context,
    SignalKey,
    run_capability,
)
from domains.inbox_organizer.naming import sanitize_component

MAX_KEYWORDS = 5
MIN_KEYWORD_LENGTH = 5
MAX_CLASSIFICATIONS = 3
EXCERPT_LENGTH = 500
SENTIMENT_THRESHOLD = 0.1

ENTITY_SIGNALS: Dict[str, SignalKey] = {
    "people": SignalKey.PEOPLE,
    "organizations": SignalKey.ORGANIZATIONS,
    "places": SignalKey.PLACES,
}


class AnalyzerKind(str, Enum):
    """Capability class a file is routed to."""

    DOCUMENT = "document"
    IMAGE = "image"
    OTHER = "other"


ANALYZER_BY_EXTENSION: Dict[str, AnalyzerKind] = {
    **{ext: AnalyzerKind.DOCUMENT for ext in ("pdf", "txt", "text", "md", "rtf", "doc", "docx")},
    **{ext: AnalyzerKind.IMAGE for ext in ("jpg", "jpeg", "png", "heic", "gif", "bmp", "tif", "tiff", "webp")},
}


def analyzer_kind_for(extension: str) -> AnalyzerKind:
    """Pure extension to analyzer lookup."""
    return ANALYZER_BY_EXTENSION.get(extension.lower().lstrip("."), AnalyzerKind.OTHER)


def sentiment_label(score: float) -> str:
    """Map a [-1, 1] sentiment score to a coarse label."""
    if score > SENTIMENT_THRESHOLD:
        return "positive"
    if score < -SENTIMENT_THRESHOLD:
        return "negative"
    return "neutral"


def first_title_line(text: str) -> Optional[str]:
    """First line longer than 10 and shorter than 100 characters."""
    for line in text.splitlines():
        stripped = line.strip()
        if 10 < len(stripped) < 100:
            return stripped
    return None


def select_keywords(tokens: List[tuple[str, str]], limit: int = MAX_KEYWORDS) -> List[str]:
    """
    Pick high-information keywords from (token, lemma) pairs.

    Tokens must be longer than 4 characters and not a stop word; lemmas are
    deduplicated in first-seen order and capped at ``limit``.
    """
    keywords: List[str] = []
    seen = set()
    for word, lemma in tokens:
        if len(word) < MIN_KEYWORD_LENGTH or word.lower() in STOP_WORDS:
            continue
        key = lemma.lower()
        if key in seen:
            continue
        seen.add(key)
        keywords.append(lemma)
        if len(keywords) >= limit:
            break
    return keywords


class ContentAnalyzer:
    """Capability-specific analyzer producing a partial Context."""

    kind = AnalyzerKind.OTHER

    def __init__(self, capabilities: Capabilities):
        self.capabilities = capabilities

    def analyze(self, path: Path) -> Context:
        raise NotImplementedError


class TextAnalyzer(ContentAnalyzer):
    """Documents: extract raw text, then run the shared text routine."""

    kind = AnalyzerKind.DOCUMENT

    def analyze(self, path: Path) -> Context:
        extracted = run_capability(f"Text extraction for {path.name}", self.capabilities.text_extractor, path)
        if not extracted.ok:
            return Context()
        return self.analyze_text(extracted.value)

    def analyze_text(self, text: str) -> Context:
        """Shared text-analysis routine."""
        context = Context()
        if not text.strip():
            return context

        caps = self.capabilities

        language = run_capability("Language detection", caps.language_detector, text)
        if language.ok:
            context.set(SignalKey.LANGUAGE, language.value)

        annotation = run_capability("Text annotation", caps.text_annotator, text)
        annotated: TextAnnotation = annotation.value if annotation.ok else TextAnnotation()
        for kind, signal in ENTITY_SIGNALS.items():
            context.set(signal, set(annotated.entities.get(kind, set())))

        sentiment = run_capability("Sentiment scoring", caps.sentiment_scorer, text)
        if sentiment.ok:
            context.set(SignalKey.SENTIMENT, sentiment_label(float(sentiment.value)))
        elif caps.sentiment_scorer is not None and sentiment.status is AnalyzerStatus.EMPTY:
            # A zero score is falsy but still a valid reading.
            context.set(SignalKey.SENTIMENT, "neutral")

        tokens = annotated.tokens or plain_tokens(text)
        context.set(SignalKey.KEYWORDS, select_keywords(tokens))
        context.set(SignalKey.TITLE, first_title_line(text))
        context.set(SignalKey.EXCERPT, " ".join(text[:EXCERPT_LENGTH].split()))
        return context


class ImageAnalyzer(ContentAnalyzer):
    """Raster images: classification, on-image text and face count."""

    kind = AnalyzerKind.IMAGE

    def analyze(self, path: Path) -> Context:
        context = Context()
        caps = self.capabilities

        classified = run_capability(f"Image classification for {path.name}", caps.image_classifier, path)
        if classified.ok:
            ranked = sorted(classified.value, key=lambda item: item.confidence, reverse=True)
            context.set(SignalKey.CLASSIFICATIONS, [
                Classification(item.identifier, float(item.confidence))
                for item in ranked[:MAX_CLASSIFICATIONS]
            ])

        recognized = run_capability(f"Text recognition for {path.name}", caps.text_recognizer, path)
        if recognized.ok:
            context.set(SignalKey.TEXT, " ".join(recognized.value).strip())

        faces = run_capability(f"Face detection for {path.name}", caps.face_detector, path)
        if faces.ok and int(faces.value) > 0:
            context.set(SignalKey.FACES, int(faces.value))

        return context


class FallbackAnalyzer(ContentAnalyzer):
    """Everything else: the sanitized filename is the only signal."""

    def analyze(self, path: Path) -> Context:
        context = Context()
        context.set(SignalKey.FILENAME, sanitize_component(path.name.lower()))
        return context


class ContextExtractor:
    """Routes files to analyzers and guarantees a Context comes back."""

    def __init__(self, capabilities: Optional[Capabilities] = None):
        self.capabilities = capabilities or Capabilities()
        self.analyzers: Dict[AnalyzerKind, ContentAnalyzer] = {
            AnalyzerKind.DOCUMENT: TextAnalyzer(self.capabilities),
            AnalyzerKind.IMAGE: ImageAnalyzer(self.capabilities),
            AnalyzerKind.OTHER: FallbackAnalyzer(self.capabilities),
        }

    def analyzer_for(self, path: Path) -> ContentAnalyzer:
        return self.analyzers[analyzer_kind_for(get_file_extension(path))]

    def extract_context(self, path: Path) -> Context:
        """
        Extract a Context for ``path``.

        Args:
            path: File to analyze

        Returns:
            Possibly empty Context; never raises
        """
        analyzer = self.analyzer_for(path)
        try:
            context = analyzer.analyze(path)
        except Exception as e:
            logger.warning(f"{type(analyzer).__name__} failed for {path.name}: {e}")
            return Context()

        logger.debug(f"Context for {path.name}: {context.summary()}")
        return context
