import zipfile

import pytest

from domains.inbox_organizer.capabilities import Capabilities, TextAnnotation, extract_docx_text, plain_tokens
from domains.inbox_organizer.context import AnalyzerStatus, Classification, SignalKey, run_capability
from domains.inbox_organizer.extractor import (
    AnalyzerKind,
    ContextExtractor,
    FallbackAnalyzer,
    ImageAnalyzer,
    TextAnalyzer,
    analyzer_kind_for,
    first_title_line,
    select_keywords,
)

LETTER = """Hi
Quarterly planning meeting notes
The marketing budget increases, marketing budgets grow and planning continues.
"""


def boom(*_args):
    raise RuntimeError("analyzer exploded")


@pytest.mark.parametrize(
    "extension, kind",
    [("pdf", AnalyzerKind.DOCUMENT), ("DOCX", AnalyzerKind.DOCUMENT), ("heic", AnalyzerKind.IMAGE),
     (".png", AnalyzerKind.IMAGE), ("zip", AnalyzerKind.OTHER), ("", AnalyzerKind.OTHER)],
)
def test_extension_dispatch(extension, kind):
    assert analyzer_kind_for(extension) == kind


def test_extractor_routes_to_analyzer_variants(tmp_path):
    extractor = ContextExtractor(Capabilities())

    assert isinstance(extractor.analyzer_for(tmp_path / "a.pdf"), TextAnalyzer)
    assert isinstance(extractor.analyzer_for(tmp_path / "a.JPG"), ImageAnalyzer)
    assert isinstance(extractor.analyzer_for(tmp_path / "a.dmg"), FallbackAnalyzer)


def test_text_routine_populates_signals(tmp_path):
    capabilities = Capabilities(
        text_extractor=lambda path: LETTER,
        language_detector=lambda text: "en",
        text_annotator=lambda text: TextAnnotation(
            entities={"people": {"Grace Hopper", "Grace Hopper"}, "organizations": {"Navy"}},
            tokens=[("planning", "plan"), ("meeting", "meeting"), ("budgets", "budget"), ("budget", "budget")],
        ),
        sentiment_scorer=lambda text: 0.6,
    )
    path = tmp_path / "notes.txt"
    path.write_text(LETTER)

    context = ContextExtractor(capabilities).extract_context(path)

    assert context.get(SignalKey.LANGUAGE) == "en"
    assert context.get(SignalKey.PEOPLE) == {"Grace Hopper"}
    assert context.get(SignalKey.ORGANIZATIONS) == {"Navy"}
    assert SignalKey.PLACES not in context
    assert context.get(SignalKey.SENTIMENT) == "positive"
    assert context.get(SignalKey.KEYWORDS) == ["plan", "meeting", "budget"]
    assert context.get(SignalKey.TITLE) == "Quarterly planning meeting notes"
    assert context.get(SignalKey.EXCERPT).startswith("Hi Quarterly planning")


def test_keywords_without_annotator_use_plain_tokens():
    keywords = select_keywords([(w, w.lower()) for w in "These Budget budget approvals about minutes".split()])

    assert keywords == ["budget", "approvals", "minutes"]


def test_keywords_are_capped_at_five():
    tokens = [(f"keyword{n}", f"keyword{n}") for n in range(10)]

    assert len(select_keywords(tokens)) == 5


def test_title_line_length_bounds():
    assert first_title_line("short\n" + "x" * 120 + "\nA proper title line\n") == "A proper title line"
    assert first_title_line("tiny\nlines\n") is None


def test_failed_capabilities_degrade_to_partial_context(tmp_path):
    capabilities = Capabilities(
        text_extractor=lambda path: LETTER,
        language_detector=boom,
        text_annotator=boom,
        sentiment_scorer=boom,
    )
    path = tmp_path / "notes.md"
    path.write_text(LETTER)

    context = ContextExtractor(capabilities).extract_context(path)

    assert SignalKey.LANGUAGE not in context
    assert SignalKey.SENTIMENT not in context
    assert context.get(SignalKey.TITLE) == "Quarterly planning meeting notes"
    assert "marketing" in context.get(SignalKey.KEYWORDS)


def test_failed_text_extraction_yields_empty_context(tmp_path):
    path = tmp_path / "broken.pdf"
    path.write_bytes(b"not a pdf")

    context = ContextExtractor(Capabilities(text_extractor=boom)).extract_context(path)

    assert len(context) == 0


def test_image_analysis_signals(tmp_path):
    capabilities = Capabilities(
        image_classifier=lambda path: [
            Classification("sand", 0.3),
            Classification("Beach", 0.82),
            Classification("sea", 0.7),
            Classification("sky", 0.6),
        ],
        text_recognizer=lambda path: ["WELCOME TO", "Sunny Bay"],
        face_detector=lambda path: 2,
    )
    path = tmp_path / "IMG_0012.jpg"
    path.write_bytes(b"\xff\xd8\xff")

    context = ContextExtractor(capabilities).extract_context(path)

    assert [c.identifier for c in context.classifications] == ["Beach", "sea", "sky"]
    assert context.get(SignalKey.TEXT) == "WELCOME TO Sunny Bay"
    assert context.face_count == 2
    assert context.render().startswith("Classifications: Beach: 0.82, sea: 0.70, sky: 0.60")


def test_image_without_faces_omits_face_signal(tmp_path):
    path = tmp_path / "IMG_0013.png"
    path.write_bytes(b"\x89PNG")

    context = ContextExtractor(Capabilities(face_detector=lambda path: 0, text_recognizer=boom)).extract_context(path)

    assert SignalKey.FACES not in context
    assert SignalKey.TEXT not in context


def test_fallback_uses_sanitized_filename(tmp_path):
    path = tmp_path / "My Setup, v2.dmg"
    path.write_bytes(b"")

    context = ContextExtractor(Capabilities()).extract_context(path)

    assert context.get(SignalKey.FILENAME) == "my_setup_v2.dmg"


def test_run_capability_tri_state():
    assert run_capability("ok", lambda: "value").status is AnalyzerStatus.SUCCESS
    assert run_capability("empty", lambda: "").status is AnalyzerStatus.EMPTY
    assert run_capability("missing", None).status is AnalyzerStatus.EMPTY

    failed = run_capability("broken", boom)
    assert failed.status is AnalyzerStatus.FAILED
    assert failed.error == "analyzer exploded"


def test_docx_text_extraction(tmp_path):
    path = tmp_path / "letter.docx"
    document = (
        '<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">'
        "<w:body><w:p><w:r><w:t>Invoice </w:t></w:r><w:r><w:t>2291</w:t></w:r></w:p>"
        "<w:p><w:r><w:t>Payment due</w:t></w:r></w:p></w:body></w:document>"
    )
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("word/document.xml", document)

    assert extract_docx_text(path) == "Invoice 2291\nPayment due"


def test_stop_words_never_crowd_out_keywords():
    keywords = select_keywords(plain_tokens("Through because without another however contract renewal"))

    assert keywords == ["contract", "renewal"]
