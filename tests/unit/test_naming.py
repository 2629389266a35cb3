from pathlib import Path

import pytest

from domains.inbox_organizer.naming import (
    is_already_organized,
    is_generic,
    sanitize_component,
    split_name,
    truncate_base_name,
    unique_target,
)


@pytest.mark.parametrize(
    "stem",
    [
        "IMG_0012",
        "DSC0042",
        "Screenshot 2025-06-01 at 10.15.22",
        "screencapture-example-com-2025-06-01-10_15_22",
        "ChatGPT Image Jun 1, 2025",
        "Untitled design",
        "Document3",
        "download (2)",
        "temp_export",
        "Invoice-AB12CD",
        "NXT84jf2",
        "1748771234",
        "d41d8cd98f00b204e9800998ecf8427e",
    ],
)
def test_generic_names(stem):
    assert is_generic(stem)


@pytest.mark.parametrize(
    "stem",
    ["Quarterly report", "Invoices_2025-06-01", "Screenshots_2025-06-01", "Documents_2025-06-01_3", "holiday-plan"],
)
def test_descriptive_and_organized_names_are_not_generic(stem):
    assert not is_generic(stem)


def test_already_organized_requires_prefix_and_date():
    assert is_already_organized("Invoices_2025-06-01")
    assert is_already_organized("VacationPhotos_2025-06-01_2")

    # date suffix with an unknown prefix is still a candidate
    assert not is_already_organized("Beach_Sand_2025-06-01")
    # category prefix without a date suffix
    assert not is_already_organized("Invoices_from_acme")
    # date not at the end
    assert not is_already_organized("Invoices_2025-06-01_final_v2")


def test_sanitize_component_replaces_unsafe_characters():
    assert sanitize_component("Dinner: Mom's place, 7/12") == "Dinner-_Moms_place_7-12"
    assert sanitize_component("  spaced  out ") == "spaced_out"


def test_truncate_keeps_date_suffix():
    name = truncate_base_name("x" * 200, "2025-06-01", 100)

    assert len(name) == 100
    assert name.endswith("_2025-06-01")


def test_unique_target_counts_up_past_existing_files(tmp_path):
    source = tmp_path / "IMG_0001.jpg"
    source.write_bytes(b"a")
    (tmp_path / "Photos_2025-06-01.jpg").write_bytes(b"b")
    (tmp_path / "Photos_2025-06-01_1.jpg").write_bytes(b"c")

    target = unique_target(source, "Photos_2025-06-01", "jpg")

    assert target == tmp_path / "Photos_2025-06-01_2.jpg"


def test_unique_target_has_no_fixed_ceiling():
    taken = {Path(f"/inbox/Misc_2025-06-01_{n}.bin") for n in range(1, 500)}
    taken.add(Path("/inbox/Misc_2025-06-01.bin"))

    target = unique_target(Path("/inbox/a.bin"), "Misc_2025-06-01", "bin", exists=lambda p: p in taken)

    assert target == Path("/inbox/Misc_2025-06-01_500.bin")


def test_unique_target_returns_source_when_name_is_unchanged(tmp_path):
    source = tmp_path / "Code_2025-06-01.py"
    source.write_text("print('hi')")

    assert unique_target(source, "Code_2025-06-01", "py") == source


@pytest.mark.parametrize(
    "name, expected",
    [
        ("backup.tar.gz", ("backup", "tar.gz")),
        ("Logs.TAR.XZ", ("Logs", "TAR.XZ")),
        ("report.pdf", ("report", "pdf")),
        ("archive.gz", ("archive", "gz")),
        ("Makefile", ("Makefile", "")),
    ],
)
def test_split_name_keeps_compound_suffixes(name, expected):
    assert split_name(name) == expected
