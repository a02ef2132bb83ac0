from __future__ import annotations

"""Row extractors for each supported roster export.

Each extractor takes raw file content and returns a result dataclass from
``discord_roster_importer.models``. Rows that lack the fields needed to
identify a student are skipped without raising; an empty or unreadable
file yields an empty result.

Example
-------
>>> from discord_roster_importer.extractors import extract_lms_group_members
>>> res = extract_lms_group_members('Group,User,ID,First,Last\\nG1,jdoe,1001,Jane,Doe')
>>> (res.students[0].rcs_id, res.students[0].full_name)
('jdoe', 'Jane Doe')
"""

import logging
import re
from typing import Callable, Optional, Sequence

from .models import (
    CourseInfo,
    DetectedColumns,
    EnrollmentCounts,
    GenericCsv,
    GroupRecord,
    LmsGroupMembers,
    LmsGroups,
    SisClassList,
    StudentRecord,
)
from .tokenizer import iter_csv_rows, split_csv_line, split_lines
from .workbook import WorkbookReadError, read_first_sheet

logger = logging.getLogger(__name__)


# "INTRO TO IT & WEB SCIENCE - ITWS 1100 01"
_COURSE_TITLE_RE = re.compile(r"^(.+?)\s*-\s*([A-Z]+)\s*(\d+)\s*(\d+)$")
# "Spring 2026 - 202601"
_TERM_RE = re.compile(r"^(.+?)\s*-\s*(\d{6})$")
# 'Last, "Preferred" First (pronouns)'
_STUDENT_NAME_RE = re.compile(r'^([^,]+),\s*(?:"([^"]+)"\s+)?([^(]+?)(?:\s*\([^)]+\))?$')
_PARENTHETICAL_RE = re.compile(r"\([^)]+\)")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_TEAM_NUMBER_RE = re.compile(r"Team\s*(\d+)", re.IGNORECASE)

STUDENT_HEADER_LABEL = "Student Name"


def _cell(row: Sequence[str], idx: int) -> str:
    if idx < len(row) and row[idx] is not None:
        return str(row[idx]).strip()
    return ""


def _to_int(value: str) -> int:
    """Parse a leading integer, falling back to 0."""
    m = _LEADING_INT_RE.match(value or "")
    if not m:
        return 0
    return int(m.group(1))


def parse_student_name(name: str) -> tuple[str, str, str]:
    """Split a registrar display name into ``(last, first, preferred)``.

    Parameters
    ----------
    name : str
        Name like ``'Smith, "Johnny" John (he/him)'``.

    Returns
    -------
    tuple of (str, str, str)
        Last, first and preferred name. Pronouns are discarded and the
        preferred name is ``''`` when not given.

    Examples
    --------
    >>> parse_student_name('Smith, "Johnny" John (he/him)')
    ('Smith', 'John', 'Johnny')
    >>> parse_student_name('Doe, Jane')
    ('Doe', 'Jane', '')
    """
    m = _STUDENT_NAME_RE.match(name)
    if m:
        return m.group(1).strip(), m.group(3).strip(), (m.group(2) or "").strip()

    # Fallback for names the pattern cannot handle, e.g. "Doe, Jane (x) Extra"
    logger.debug("Falling back to comma split for student name %r", name)
    parts = name.split(",")
    last = parts[0].strip()
    first = _PARENTHETICAL_RE.sub("", parts[1]).strip() if len(parts) > 1 else ""
    return last, first, ""


def _apply_course_title(info: CourseInfo, value: str) -> None:
    m = _COURSE_TITLE_RE.match(value)
    if not m:
        info.full_title = value
        return
    info.full_title = m.group(1).strip()
    info.department = m.group(2)
    info.course_number = m.group(3)
    info.section = m.group(4)
    info.course_code = f"{m.group(2)}-{m.group(3)}"


def _apply_term(info: CourseInfo, value: str) -> None:
    m = _TERM_RE.match(value)
    if m:
        info.term_display = m.group(1).strip()
        info.term_code = m.group(2)


def _parse_header_row(result: SisClassList, row: Sequence[str]) -> None:
    label = _cell(row, 0)
    value = _cell(row, 1)
    info = result.course_info
    if label == "Course Title" and value:
        _apply_course_title(info, value)
    elif label == "Term" and value:
        _apply_term(info, value)
    elif label == "CRN" and value:
        info.crn = value
    elif label == "Duration" and value:
        info.duration = value
    elif label == "Status" and value:
        info.status = value
    elif label == "Enrollment" and len(row) >= 4:
        result.enrollment_counts = EnrollmentCounts(
            maximum=_to_int(_cell(row, 1)),
            actual=_to_int(_cell(row, 2)),
            remaining=_to_int(_cell(row, 3)),
        )


def _parse_student_row(row: Sequence[str]) -> Optional[StudentRecord]:
    name = _cell(row, 0)
    student_id = _cell(row, 1)
    if not name or not student_id:
        return None
    last, first, preferred = parse_student_name(name)
    return StudentRecord(
        full_name=name,
        last_name=last,
        first_name=first,
        preferred_name=preferred,
        student_id=student_id,
        registration_status=_cell(row, 2),
        level=_cell(row, 3),
        credit_hours=_cell(row, 4),
        # columns 5-6 are unused by the registrar export
        class_year=_cell(row, 7),
    )


def parse_sis_rows(rows: Sequence[Sequence[str]]) -> SisClassList:
    """Run the class-list state machine over pre-read sheet rows.

    Rows before the first ``Student Name`` header are course metadata; rows
    after it are students. Repeated header rows are skipped.
    """
    result = SisClassList()
    in_students = False
    for row in rows:
        if not row or not any(str(c).strip() for c in row if c is not None):
            continue
        # exports repeat the header row on every printed page
        if _cell(row, 0) == STUDENT_HEADER_LABEL:
            in_students = True
            continue
        if not in_students:
            _parse_header_row(result, row)
            continue
        student = _parse_student_row(row)
        if student is not None:
            result.students.append(student)

    logger.info(
        "Parsed SIS class list: %d students, course: %s",
        len(result.students),
        result.course_info.course_code,
    )
    return result


def extract_sis_classlist(data: bytes, legacy_format: bool = False) -> SisClassList:
    """Extract course info and students from a registrar class-list workbook.

    Parameters
    ----------
    data : bytes
        Workbook file content.
    legacy_format : bool, default False
        Treat ``data`` as a BIFF ``.xls`` file.

    Returns
    -------
    SisClassList
        Possibly empty when the workbook cannot be read or has no rows.
    """
    try:
        rows = read_first_sheet(data, legacy_format=legacy_format)
    except WorkbookReadError as e:
        logger.warning("Could not read class list workbook: %s", e)
        return SisClassList()
    return parse_sis_rows(rows)


def extract_lms_group_members(text: str) -> LmsGroupMembers:
    """Extract students from an LMS group-members export.

    Columns are positional: group code, username, student ID, first name,
    last name. The header line is skipped.
    """
    students: list[StudentRecord] = []
    for row in iter_csv_rows(text):
        if len(row) < 5 or not row[1].strip():
            continue
        group_code, username, student_id, first, last = (c.strip() for c in row[:5])
        students.append(
            StudentRecord(
                group_code=group_code,
                rcs_id=username,
                student_id=student_id,
                first_name=first,
                last_name=last,
                full_name=f"{first} {last}",
            )
        )
    logger.info("Parsed LMS group members: %d students", len(students))
    return LmsGroupMembers(students=students)


def extract_lms_groups(text: str) -> LmsGroups:
    """Extract groups (teams) from an LMS groups export."""
    groups: list[GroupRecord] = []
    for row in iter_csv_rows(text):
        if len(row) < 2 or not row[0].strip() or not row[1].strip():
            continue
        title = row[1].strip()
        m = _TEAM_NUMBER_RE.search(title)
        groups.append(
            GroupRecord(
                group_code=row[0].strip(),
                title=title,
                team_number=int(m.group(1)) if m else None,
            )
        )
    logger.info("Parsed LMS groups: %d groups", len(groups))
    return LmsGroups(groups=groups)


# Ordered per field; the first header satisfying the predicate wins.
_COLUMN_RULES: tuple[tuple[str, Callable[[str], bool]], ...] = (
    ("username", lambda h: "username" in h or "user name" in h or "rcs" in h or h == "user"),
    ("email", lambda h: "email" in h),
    ("student_id", lambda h: "student id" in h or "studentid" in h or h == "id"),
    ("first_name", lambda h: "first" in h or h in ("firstname", "given")),
    ("last_name", lambda h: "last" in h or h in ("lastname", "surname", "family")),
    ("full_name", lambda h: "name" in h and "first" not in h and "last" not in h),
    ("team", lambda h: "team" in h or "group" in h),
    ("discord_username", lambda h: "discord" in h),
)


def detect_columns(headers: Sequence[str]) -> DetectedColumns:
    """Guess which header holds each known field.

    Parameters
    ----------
    headers : sequence of str
        Lower-cased, trimmed header cells.

    Returns
    -------
    DetectedColumns
        Index per field, ``None`` where nothing matched.
    """
    found: dict[str, int] = {}
    for field_name, predicate in _COLUMN_RULES:
        for idx, header in enumerate(headers):
            if predicate(header):
                found[field_name] = idx
                break
    return DetectedColumns(**found)


def _pick(row: Sequence[str], idx: Optional[int]) -> Optional[str]:
    if idx is None or idx >= len(row):
        return None
    return row[idx].strip()


def _map_generic_row(row: list[str], cols: DetectedColumns) -> StudentRecord:
    student = StudentRecord(
        rcs_id=_pick(row, cols.username),
        email=_pick(row, cols.email),
        student_id=_pick(row, cols.student_id),
        first_name=_pick(row, cols.first_name),
        last_name=_pick(row, cols.last_name),
        full_name=_pick(row, cols.full_name),
        team=_pick(row, cols.team),
        discord_username=_pick(row, cols.discord_username),
        raw=row,
    )
    if not student.full_name and (student.first_name or student.last_name):
        student.full_name = f"{student.first_name or ''} {student.last_name or ''}".strip()
    return student


def extract_generic_csv(text: str) -> GenericCsv:
    """Extract students from an arbitrary CSV using header heuristics.

    Needs a header and at least one data line; otherwise the result is
    empty. Rows without a username, email, student ID or Discord handle
    are dropped.
    """
    lines = split_lines(text)
    if len(lines) < 2:
        return GenericCsv()

    headers = [h.strip().lower() for h in split_csv_line(lines[0])]
    cols = detect_columns(headers)
    logger.debug("Detected generic CSV columns: %s", cols.found())

    students = []
    for line in lines[1:]:
        student = _map_generic_row(split_csv_line(line), cols)
        if student.has_handle:
            students.append(student)

    logger.info("Parsed generic CSV: %d entries", len(students))
    return GenericCsv(headers=headers, students=students, detected_columns=cols)
