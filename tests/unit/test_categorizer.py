import pytest

from domains.inbox_organizer.categorizer import CATEGORY_RULES, categorize, categorize_by_extension
from domains.inbox_organizer.context import Classification, Context, SignalKey
from domains.inbox_organizer.models import Category


def context_with(**signals) -> Context:
    context = Context()
    for key, value in signals.items():
        context.set(SignalKey[key.upper()], value)
    return context


def test_rule_table_order_is_fixed():
    assert [rule.category for rule in CATEGORY_RULES] == [
        Category.INVOICES,
        Category.RECEIPTS,
        Category.SCREENSHOTS,
        Category.VACATION_PHOTOS,
        Category.PHOTOS,
        Category.CODE,
    ]


def test_invoice_outranks_code_syntax():
    context = context_with(excerpt="import os function render() { } Invoice 4411 payment due 30 days")

    assert categorize(context, "txt", "notes.txt") == Category.INVOICES


def test_receipt_vocabulary():
    context = context_with(title="Your purchase from Corner Shop")

    assert categorize(context, "pdf", "scan.pdf") == Category.RECEIPTS


def test_screenshot_from_filename_only():
    assert categorize(Context(), "png", "screenshot 2025-06-01 at 10.00.png") == Category.SCREENSHOTS


def test_vacation_from_classification_label():
    context = context_with(classifications=[Classification("Beach", 0.82)])

    assert categorize(context, "jpg", "img_0012.jpg") == Category.VACATION_PHOTOS


def test_faces_mean_photos():
    context = context_with(faces=2)

    assert categorize(context, "jpg", "img_0013.jpg") == Category.PHOTOS


def test_people_entities_mean_photos():
    context = context_with(people={"Ada Lovelace"})

    assert categorize(context, "txt", "letter.txt") == Category.PHOTOS


def test_code_by_extension_and_by_syntax():
    assert categorize(Context(), "rs", "main.rs") == Category.CODE
    assert categorize(context_with(excerpt="def main(): pass"), "txt", "snippet.txt") == Category.CODE


@pytest.mark.parametrize(
    "extension, expected",
    [
        ("pdf", Category.DOCUMENTS),
        ("XLSX", Category.SPREADSHEETS),
        (".key", Category.PRESENTATIONS),
        ("heic", Category.PHOTOS),
        ("mkv", Category.VIDEOS),
        ("flac", Category.MUSIC),
        ("7z", Category.ARCHIVES),
        ("dmg", Category.INSTALLERS),
        ("xyz", Category.MISC),
        ("", Category.MISC),
    ],
)
def test_extension_fallback(extension, expected):
    assert categorize_by_extension(extension) == expected


def test_vocabulary_is_word_anchored():
    # "billion" and "interface" must not trigger invoice or photo rules
    context = context_with(excerpt="A billion users share one interface")

    assert categorize(context, "md", "notes.md") == Category.DOCUMENTS


def test_code_syntax_needs_code_shaped_text():
    prose = context_with(excerpt="Thanks for (all) your help, private data stays private. Sent a gif (animated).")

    assert categorize(prose, "txt", "thanks.txt") == Category.DOCUMENTS


@pytest.mark.parametrize(
    "snippet",
    ["for (int i = 0; i < n; i++) {}", "for (const item of items) {}", "private int count;", "private static void run() {}"],
)
def test_code_syntax_still_detected(snippet):
    assert categorize(context_with(excerpt=snippet), "txt", "snippet.txt") == Category.CODE
