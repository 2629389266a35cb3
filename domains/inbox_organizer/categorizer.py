"""
Category inference from context signals.

Rules are kept as ordered data: semantic vocabulary rules run first and may
override the extension table, which is only the final fallback.
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, Tuple

from domains.inbox_organizer.context import Context, SignalKey
from domains.inbox_organizer.models import Category

CODE_EXTENSIONS = frozenset({
    "swift", "py", "js", "ts", "java", "cpp", "cc", "c", "h", "m", "go", "rs", "rb", "php",
})

EXTENSION_CATEGORIES: Dict[str, Category] = {
    **{ext: Category.DOCUMENTS for ext in ("doc", "docx", "txt", "rtf", "odt", "pdf", "md")},
    **{ext: Category.SPREADSHEETS for ext in ("xls", "xlsx", "csv", "numbers", "ods")},
    **{ext: Category.PRESENTATIONS for ext in ("ppt", "pptx", "key", "odp")},
    **{ext: Category.PHOTOS for ext in ("jpg", "jpeg", "png", "gif", "bmp", "tif", "tiff", "heic", "raw", "webp")},
    **{ext: Category.VIDEOS for ext in ("mp4", "avi", "mov", "wmv", "flv", "mkv", "webm")},
    **{ext: Category.MUSIC for ext in ("mp3", "wav", "flac", "aac", "m4a", "ogg")},
    **{ext: Category.ARCHIVES for ext in ("zip", "rar", "tar", "gz", "tgz", "bz2", "xz", "7z")},
    **{ext: Category.INSTALLERS for ext in ("dmg", "pkg", "app", "exe", "msi", "deb", "rpm")},
    **{ext: Category.CODE for ext in CODE_EXTENSIONS},
}

CODE_PATTERNS: Tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern)
    for pattern in (
        r"\bfunction\s+\w+\s*\(",
        r"\bclass\s+\w+",
        r"\bimport\s+\w+",
        r"\bvar\s+\w+\s*=",
        r"\blet\s+\w+\s*=",
        r"\bconst\s+\w+\s*=",
        r"\bif\s*\(",
        r"\bfor\s*\((?:[^)]*;|\s*(?:const|let|var|int|auto)\b)",
        r"\bwhile\s*\(",
        r"\bdef\s+\w+\s*\(",
        r"\bpublic\s+class",
        r"\bprivate\s+(?:static\s+|final\s+)*[\w<>\[\]]+\s+\w+\s*[;=(]",
    )
)


def _vocabulary(*words: str) -> re.Pattern[str]:
    return re.compile(r"\b(?:" + "|".join(words) + r")", re.IGNORECASE)


@dataclass(frozen=True)
class RuleInput:
    """Everything a categorization rule may look at."""

    context: Context
    text: str
    extension: str
    filename: str


@dataclass(frozen=True)
class CategoryRule:
    """One (predicate, category) row of the ordered rule table."""

    name: str
    category: Category
    matches: Callable[[RuleInput], bool]


INVOICE_VOCABULARY = _vocabulary(r"invoice", r"bill\b", r"billing", r"payment\s+due", r"amount\s+due")
RECEIPT_VOCABULARY = _vocabulary(r"receipt", r"transaction", r"purchase")
SCREENSHOT_VOCABULARY = _vocabulary(r"screen\s?shot", r"screencapture")
VACATION_VOCABULARY = _vocabulary(
    r"vacation", r"holiday", r"beach", r"mountain", r"seashore", r"coast",
    r"ocean", r"lake", r"landscape",
)


def _has_code_syntax(text: str) -> bool:
    return any(pattern.search(text) for pattern in CODE_PATTERNS)


CATEGORY_RULES: Tuple[CategoryRule, ...] = (
    CategoryRule("invoice-vocabulary", Category.INVOICES, lambda r: bool(INVOICE_VOCABULARY.search(r.text))),
    CategoryRule("receipt-vocabulary", Category.RECEIPTS, lambda r: bool(RECEIPT_VOCABULARY.search(r.text))),
    CategoryRule(
        "screenshot-mention",
        Category.SCREENSHOTS,
        lambda r: bool(SCREENSHOT_VOCABULARY.search(r.filename) or SCREENSHOT_VOCABULARY.search(r.text)),
    ),
    CategoryRule("vacation-vocabulary", Category.VACATION_PHOTOS, lambda r: bool(VACATION_VOCABULARY.search(r.text))),
    CategoryRule(
        "faces-or-people",
        Category.PHOTOS,
        lambda r: r.context.face_count > 0 or SignalKey.PEOPLE in r.context,
    ),
    CategoryRule(
        "code-syntax",
        Category.CODE,
        lambda r: _has_code_syntax(r.text) or r.extension in CODE_EXTENSIONS,
    ),
)


def categorize_by_extension(extension: str) -> Category:
    """Static extension table; unmatched extensions are Misc."""
    return EXTENSION_CATEGORIES.get(extension.lower().lstrip("."), Category.MISC)


def matching_rule(context: Context, extension: str, filename: str) -> CategoryRule | None:
    """Return the first semantic rule that matches, if any."""
    rule_input = RuleInput(
        context=context,
        text=context.render(),
        extension=extension.lower().lstrip("."),
        filename=filename,
    )
    for rule in CATEGORY_RULES:
        if rule.matches(rule_input):
            return rule
    return None


def categorize(context: Context, extension: str, filename: str) -> Category:
    """
    Map a context, extension and filename to exactly one Category.

    Args:
        context: Signals extracted from the file
        extension: File extension with or without the leading dot
        filename: Original filename

    Returns:
        First matching semantic rule's category, else the extension category
    """
    rule = matching_rule(context, extension, filename)
    if rule is not None:
        return rule.category
    return categorize_by_extension(extension)
