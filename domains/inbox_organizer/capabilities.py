"""
Content analysis capabilities consumed by the context extractor.

Each capability is a small protocol so the heavy analyzers stay pluggable.
Default providers wrap real libraries:

- PyMuPDF for PDF text, the docx XML part for Word files, UTF-8 for plain text
- langdetect for dominant language
- spaCy for named entities and lemmas
- pytesseract over Pillow for on-image text
- OpenCV Haar cascades for face detection

Image classification and sentiment scoring have no default provider; the
embedding application injects them through ``Capabilities``.
"""

import re
import threading
import xml.etree.ElementTree as ET
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Set, Tuple

import cv2
import pymupdf
import pytesseract
import spacy
from langdetect import DetectorFactory, detect
from langdetect.lang_detect_exception import LangDetectException
from loguru import logger
from PIL import Image

from domains.inbox_organizer.context import Classification
from domains.inbox_organizer.exceptions import CapabilityUnavailableError

ENTITY_LABELS: Dict[str, str] = {
    "PERSON": "people",
    "ORG": "organizations",
    "GPE": "places",
    "LOC": "places",
    "FAC": "places",
}

_WORD_NAMESPACE = "{http://schemas.openxmlformats.org/wordprocessingml/2006/main}"


@dataclass
class TextAnnotation:
    """Entities grouped by kind plus (token, lemma) pairs for one text, stop words excluded."""

    entities: Dict[str, Set[str]] = field(default_factory=dict)
    tokens: List[Tuple[str, str]] = field(default_factory=list)


class TextExtractor(Protocol):
    def __call__(self, path: Path) -> str: ...


class LanguageDetector(Protocol):
    def __call__(self, text: str) -> Optional[str]: ...


class TextAnnotator(Protocol):
    def __call__(self, text: str) -> TextAnnotation: ...


class SentimentScorer(Protocol):
    """Return a score in [-1, 1]."""

    def __call__(self, text: str) -> float: ...


class ImageClassifier(Protocol):
    """Return labels ranked by descending confidence."""

    def __call__(self, path: Path) -> List[Classification]: ...


class TextRecognizer(Protocol):
    def __call__(self, path: Path) -> List[str]: ...


class FaceDetector(Protocol):
    def __call__(self, path: Path) -> int: ...


# =====================================================
# Text extraction
# =====================================================

def extract_pdf_text(path: Path) -> str:
    """Extract the first page's text from a PDF."""
    with pymupdf.open(str(path)) as doc:
        if doc.page_count == 0:
            return ""
        return doc[0].get_text()


def extract_docx_text(path: Path) -> str:
    """Extract paragraph text from a .docx package."""
    with zipfile.ZipFile(path) as zf:
        xml_bytes = zf.read("word/document.xml")

    root = ET.fromstring(xml_bytes)
    paragraphs = []
    for paragraph in root.iter(f"{_WORD_NAMESPACE}p"):
        runs = [node.text or "" for node in paragraph.iter(f"{_WORD_NAMESPACE}t")]
        if runs:
            paragraphs.append("".join(runs))
    return "\n".join(paragraphs)


def extract_text(path: Path) -> str:
    """Default text extractor dispatching on the file extension."""
    suffix = path.suffix.lower()
    if suffix == ".pdf":
        return extract_pdf_text(path)
    if suffix == ".docx":
        return extract_docx_text(path)
    return path.read_text(encoding="utf-8")


# =====================================================
# Language and annotation
# =====================================================

def detect_language(text: str) -> Optional[str]:
    """Detect the dominant language code with langdetect."""
    DetectorFactory.seed = 0
    try:
        return detect(text)
    except LangDetectException:
        return None


class SpacyAnnotator:
    """Named-entity and lemma annotation backed by a lazily loaded spaCy model."""

    def __init__(self, model_name: str = "en_core_web_sm", max_chars: int = 100_000):
        self.model_name = model_name
        self.max_chars = max_chars
        self._nlp = None
        self._load_error: Optional[str] = None
        self._lock = threading.Lock()

    def _load(self):
        with self._lock:
            if self._nlp is None and self._load_error is None:
                try:
                    self._nlp = spacy.load(self.model_name)
                    logger.info(f"spaCy model loaded: {self.model_name}")
                except OSError as e:
                    self._load_error = str(e)
                    logger.warning(f"spaCy model {self.model_name} unavailable: {e}")

        if self._nlp is None:
            raise CapabilityUnavailableError(f"spaCy model {self.model_name} unavailable")
        return self._nlp

    def __call__(self, text: str) -> TextAnnotation:
        nlp = self._load()
        doc = nlp(text[: self.max_chars])

        entities: Dict[str, Set[str]] = {}
        for ent in doc.ents:
            kind = ENTITY_LABELS.get(ent.label_)
            if kind:
                entities.setdefault(kind, set()).add(ent.text.strip())

        tokens = [
            (token.text, token.lemma_ or token.text)
            for token in doc
            if not (token.is_punct or token.is_space or token.is_stop)
        ]
        return TextAnnotation(entities=entities, tokens=tokens)


def plain_tokens(text: str) -> List[Tuple[str, str]]:
    """Word tokens paired with their lowercase form, used when no annotator ran."""
    return [(word, word.lower()) for word in re.findall(r"[^\W\d_]+", text)]


# =====================================================
# Image capabilities
# =====================================================

class TesseractRecognizer:
    """On-image text recognition with Tesseract OCR."""

    def __init__(self, language: str = "eng", config: str = "--oem 1 --psm 3"):
        self.language = language
        self.config = config

    def __call__(self, path: Path) -> List[str]:
        with Image.open(path) as img:
            text = pytesseract.image_to_string(img, lang=self.language, config=self.config)

        return [line.strip() for line in text.splitlines() if line.strip()]


class CascadeFaceDetector:
    """Frontal face detection with the Haar cascade shipped by OpenCV."""

    def __init__(self, cascade_name: str = "haarcascade_frontalface_default.xml"):
        self.cascade_name = cascade_name
        self._classifier = None

    def _get_classifier(self):
        if self._classifier is None:
            classifier = cv2.CascadeClassifier(cv2.data.haarcascades + self.cascade_name)
            if classifier.empty():
                raise CapabilityUnavailableError(f"Could not load cascade {self.cascade_name}")
            self._classifier = classifier
        return self._classifier

    def __call__(self, path: Path) -> int:
        image = cv2.imread(str(path), cv2.IMREAD_GRAYSCALE)
        if image is None:
            raise ValueError(f"Unreadable image: {path.name}")

        faces = self._get_classifier().detectMultiScale(image, scaleFactor=1.1, minNeighbors=5)
        return len(faces)


@dataclass
class Capabilities:
    """Bundle of capability providers; ``None`` disables a capability."""

    text_extractor: Optional[TextExtractor] = extract_text
    language_detector: Optional[LanguageDetector] = detect_language
    text_annotator: Optional[TextAnnotator] = None
    sentiment_scorer: Optional[SentimentScorer] = None
    image_classifier: Optional[ImageClassifier] = None
    text_recognizer: Optional[TextRecognizer] = None
    face_detector: Optional[FaceDetector] = None

    @classmethod
    def defaults(cls, ocr_language: str = "eng", spacy_model: str = "en_core_web_sm") -> "Capabilities":
        """Library-backed providers for every capability that has one."""
        return cls(
            text_extractor=extract_text,
            language_detector=detect_language,
            text_annotator=SpacyAnnotator(spacy_model),
            text_recognizer=TesseractRecognizer(ocr_language),
            face_detector=CascadeFaceDetector(),
        )
