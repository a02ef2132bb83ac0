from __future__ import annotations

"""Filename-based classification of roster exports.

The classifier never looks at file content. Structured exports are
recognized by their full (anchored) filename; anything else falls back to
a generic type chosen by extension.

Example
-------
>>> from discord_roster_importer.classifier import classify_filename
>>> c = classify_filename('202601_36419_classlist.xlsx')
>>> (c.file_type, c.metadata['crn'], c.metadata['term'].display)
('sis_classlist', '36419', 'Spring 2026')
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .terms import parse_lms_term_code, parse_term_code


SIS_CLASSLIST = "sis_classlist"
LMS_GROUPMEMBERS = "lms_groupmembers"
LMS_GROUPS = "lms_groups"
GENERIC_CSV = "generic_csv"
GENERIC_XLSX = "generic_xlsx"
UNKNOWN = "unknown"

SPREADSHEET_TYPES = frozenset({SIS_CLASSLIST, GENERIC_XLSX})


_SIS_RE = re.compile(r"^(\d{6})_(\d+)_classlist\.xlsx$", re.IGNORECASE)
_LMS_MEMBERS_RE = re.compile(
    r"^(\d{14})_(\d{4})_([A-Z]+)_(\d{4})_(\d{2})_groupmembers\.csv$", re.IGNORECASE
)
_LMS_GROUPS_RE = re.compile(
    r"^(\d{14})_(\d{4})_([A-Z]+)_(\d{4})_(\d{2})_groups\.csv$", re.IGNORECASE
)


@dataclass
class FileClassification:
    """Result of classifying a filename.

    Attributes
    ----------
    file_type : str
        One of the module-level type tags.
    metadata : dict
        Values captured from the filename; empty for generic types.
    """
    file_type: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def supported(self) -> bool:
        return self.file_type != UNKNOWN

    def metadata_dict(self) -> dict[str, Any]:
        return metadata_to_dict(self.metadata)


def metadata_to_dict(metadata: dict[str, Any]) -> dict[str, Any]:
    """Return a JSON-friendly copy of classification metadata."""
    out = dict(metadata)
    if out.get("term") is not None:
        out["term"] = out["term"].to_dict()
    return out


def _sis_metadata(m: re.Match) -> dict[str, Any]:
    return {
        "term_code": m.group(1),
        "term": parse_term_code(m.group(1)),
        "crn": m.group(2),
    }


def _lms_metadata(m: re.Match) -> dict[str, Any]:
    department = m.group(3).upper()
    return {
        "timestamp": m.group(1),
        "term_code": m.group(2),
        "term": parse_lms_term_code(m.group(2)),
        "department": department,
        "course_number": m.group(4),
        "section": m.group(5),
        "course_code": f"{department}-{m.group(4)}",
    }


# Ordered: first match wins.
_PATTERN_RULES: tuple[tuple[str, re.Pattern, Callable[[re.Match], dict[str, Any]]], ...] = (
    (SIS_CLASSLIST, _SIS_RE, _sis_metadata),
    (LMS_GROUPMEMBERS, _LMS_MEMBERS_RE, _lms_metadata),
    (LMS_GROUPS, _LMS_GROUPS_RE, _lms_metadata),
)

_SUFFIX_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    (GENERIC_CSV, (".csv",)),
    (GENERIC_XLSX, (".xlsx", ".xls")),
)


def classify_filename(filename: Optional[str]) -> FileClassification:
    """Classify an uploaded file by its name.

    Parameters
    ----------
    filename : str or None
        Base name of the file, e.g. ``'20251206114838_2509_ITWS_1100_01_groups.csv'``.

    Returns
    -------
    FileClassification
        Type tag plus any metadata captured from the name.
    """
    name = filename or ""
    for file_type, pattern, build in _PATTERN_RULES:
        m = pattern.match(name)
        if m:
            return FileClassification(file_type, build(m))

    lower = name.lower()
    for file_type, suffixes in _SUFFIX_RULES:
        if lower.endswith(suffixes):
            return FileClassification(file_type)
    return FileClassification(UNKNOWN)
