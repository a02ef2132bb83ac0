import pytest

from discord_roster_importer.classifier import (
    GENERIC_CSV,
    GENERIC_XLSX,
    LMS_GROUPMEMBERS,
    LMS_GROUPS,
    SIS_CLASSLIST,
    UNKNOWN,
    classify_filename,
)


def test_classify_sis_classlist():
    info = classify_filename("202601_36419_classlist.xlsx")
    assert info.file_type == SIS_CLASSLIST
    assert info.metadata["crn"] == "36419"
    assert info.metadata["term_code"] == "202601"
    assert info.metadata["term"].display == "Spring 2026"


def test_classify_is_case_insensitive():
    info = classify_filename("202609_1_CLASSLIST.XLSX")
    assert info.file_type == SIS_CLASSLIST
    assert info.metadata["term"].semester == "Fall"


def test_classify_lms_groupmembers():
    info = classify_filename("20251206114838_2509_itws_1100_01_groupmembers.csv")
    assert info.file_type == LMS_GROUPMEMBERS
    meta = info.metadata
    assert meta["timestamp"] == "20251206114838"
    assert meta["term_code"] == "2509"
    assert meta["term"].display == "Fall 2025"
    assert meta["department"] == "ITWS"
    assert meta["course_number"] == "1100"
    assert meta["section"] == "01"
    assert meta["course_code"] == "ITWS-1100"


def test_classify_lms_groups():
    info = classify_filename("20251206114838_2509_CSCI_2600_02_groups.csv")
    assert info.file_type == LMS_GROUPS
    assert info.metadata["course_code"] == "CSCI-2600"
    assert info.metadata["section"] == "02"


@pytest.mark.parametrize(
    "filename,expected",
    [
        # structured patterns are anchored
        ("copy of 202601_36419_classlist.xlsx", GENERIC_XLSX),
        ("202601_36419_classlist.xlsx.bak", UNKNOWN),
        ("2026_36419_classlist.xlsx", GENERIC_XLSX),
        ("202601_36419_classlist.csv", GENERIC_CSV),
        ("2025120611483_2509_ITWS_1100_01_groups.csv", GENERIC_CSV),
        ("20251206114838_2509_ITWS_1100_01_members.csv", GENERIC_CSV),
        ("roster.CSV", GENERIC_CSV),
        ("roster.xlsx", GENERIC_XLSX),
        ("old_roster.XLS", GENERIC_XLSX),
        ("notes.txt", UNKNOWN),
        ("", UNKNOWN),
        (None, UNKNOWN),
    ],
)
def test_classify_fallbacks(filename, expected):
    info = classify_filename(filename)
    assert info.file_type == expected
    if expected in (GENERIC_CSV, GENERIC_XLSX, UNKNOWN):
        assert info.metadata == {}


def test_supported_flag_and_metadata_dict():
    assert classify_filename("notes.txt").supported is False
    info = classify_filename("202601_36419_classlist.xlsx")
    assert info.supported is True
    assert info.metadata_dict()["term"]["display"] == "Spring 2026"
