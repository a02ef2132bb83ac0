from __future__ import annotations

"""Entry point for parsing an uploaded roster file.

``parse_file`` classifies the file by name and hands the content to the
matching extractor. Callers fetch the bytes themselves (e.g. from a
Discord attachment); nothing here performs I/O.

Example
-------
>>> from discord_roster_importer.parser import parse_file
>>> parsed = parse_file('20251206114838_2509_ITWS_1100_01_groups.csv',
...                     b'Group Code,Title\\nG1,Team 1\\n')
>>> (parsed.file_type, parsed.metadata['course_code'], parsed.data.groups[0].team_number)
('lms_groups', 'ITWS-1100', 1)
"""

import logging
from dataclasses import dataclass
from typing import Any, Union

from .classifier import (
    GENERIC_CSV,
    GENERIC_XLSX,
    LMS_GROUPMEMBERS,
    LMS_GROUPS,
    SIS_CLASSLIST,
    classify_filename,
    metadata_to_dict,
)
from .extractors import (
    extract_generic_csv,
    extract_lms_group_members,
    extract_lms_groups,
    extract_sis_classlist,
)
from .models import ExtractedData

logger = logging.getLogger(__name__)


class UnsupportedFileType(ValueError):
    """Raised when a filename matches no known roster format."""

    def __init__(self, filename: str):
        super().__init__(f"Unsupported file type: {filename}")
        self.filename = filename


@dataclass
class ParsedFile:
    """Tagged result of ``parse_file``.

    Attributes
    ----------
    filename : str
        Name the file was classified by.
    file_type : str
        Classification tag, e.g. ``'sis_classlist'``.
    metadata : dict
        Values captured from the filename.
    data : SisClassList | LmsGroupMembers | LmsGroups | GenericCsv
        Extracted records.
    """
    filename: str
    file_type: str
    metadata: dict[str, Any]
    data: ExtractedData

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "type": self.file_type,
            "metadata": metadata_to_dict(self.metadata),
            "data": self.data.to_dict(),
        }


def _as_text(content: Union[bytes, str]) -> str:
    if isinstance(content, str):
        return content
    # utf-8-sig drops the BOM some LMS exports start with
    return content.decode("utf-8-sig", errors="replace")


def _as_bytes(content: Union[bytes, str]) -> bytes:
    if isinstance(content, str):
        raise TypeError("spreadsheet content must be bytes")
    return bytes(content)


def parse_file(filename: str, content: Union[bytes, str]) -> ParsedFile:
    """Classify ``filename`` and extract records from ``content``.

    Parameters
    ----------
    filename : str
        Original file name; drives format detection.
    content : bytes or str
        Raw file content. Spreadsheets must be bytes; CSV content may be
        either and is decoded as UTF-8.

    Returns
    -------
    ParsedFile
        Always populated for supported types, possibly with zero records.

    Raises
    ------
    UnsupportedFileType
        If the filename does not match any supported format.
    TypeError
        If spreadsheet content is passed as ``str``.
    """
    info = classify_filename(filename)
    file_type = info.file_type

    if file_type == SIS_CLASSLIST:
        data: ExtractedData = extract_sis_classlist(_as_bytes(content))
    elif file_type == LMS_GROUPMEMBERS:
        data = extract_lms_group_members(_as_text(content))
    elif file_type == LMS_GROUPS:
        data = extract_lms_groups(_as_text(content))
    elif file_type == GENERIC_CSV:
        data = extract_generic_csv(_as_text(content))
    elif file_type == GENERIC_XLSX:
        # Best effort: unknown spreadsheets are read with the class-list layout
        legacy = filename.lower().endswith(".xls")
        data = extract_sis_classlist(_as_bytes(content), legacy_format=legacy)
    else:
        logger.warning("Rejected unsupported file %r", filename)
        raise UnsupportedFileType(filename)

    logger.debug("Parsed %s as %s", filename, file_type)
    return ParsedFile(filename=filename, file_type=file_type, metadata=info.metadata, data=data)
