from __future__ import annotations

"""Record types produced by the extractors.

All extractors return small dataclasses rather than loose mappings so
that downstream import code can rely on attribute names. Each result type
offers ``to_dict`` for JSON output.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Optional, Union


@dataclass
class StudentRecord:
    """One enrollee as read from a roster file.

    Attributes
    ----------
    full_name : str or None
        Name as displayed in the source (SIS keeps the raw cell).
    first_name, last_name, preferred_name : str or None
        Parsed name parts. SIS rows use ``''`` for a missing preferred name.
    student_id : str or None
        Institutional numeric identifier.
    rcs_id : str or None
        Institutional username.
    email : str or None
        Contact address, generic CSV only.
    registration_status, level, credit_hours, class_year : str or None
        SIS registration columns.
    group_code : str or None
        LMS group code the student belongs to.
    team : str or None
        Free-form team column from a generic CSV.
    discord_username : str or None
        Discord handle, generic CSV only.
    raw : list of str or None
        Original cells for generic CSV rows.
    """
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    preferred_name: Optional[str] = None
    student_id: Optional[str] = None
    rcs_id: Optional[str] = None
    email: Optional[str] = None
    registration_status: Optional[str] = None
    level: Optional[str] = None
    credit_hours: Optional[str] = None
    class_year: Optional[str] = None
    group_code: Optional[str] = None
    team: Optional[str] = None
    discord_username: Optional[str] = None
    raw: Optional[list[str]] = None

    @property
    def has_handle(self) -> bool:
        """Whether any identifier usable for matching a member is set."""
        return any((self.rcs_id, self.email, self.student_id, self.discord_username))

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class GroupRecord:
    group_code: str
    title: str
    team_number: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class CourseInfo:
    """Course header block of a SIS class list."""
    full_title: Optional[str] = None
    department: Optional[str] = None
    course_number: Optional[str] = None
    section: Optional[str] = None
    course_code: Optional[str] = None
    term_display: Optional[str] = None
    term_code: Optional[str] = None
    crn: Optional[str] = None
    duration: Optional[str] = None
    status: Optional[str] = None


@dataclass
class EnrollmentCounts:
    maximum: int = 0
    actual: int = 0
    remaining: int = 0


@dataclass
class DetectedColumns:
    """Header positions found in a generic CSV; ``None`` means not found."""
    username: Optional[int] = None
    email: Optional[int] = None
    student_id: Optional[int] = None
    first_name: Optional[int] = None
    last_name: Optional[int] = None
    full_name: Optional[int] = None
    team: Optional[int] = None
    discord_username: Optional[int] = None

    def found(self) -> dict[str, int]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class SisClassList:
    course_info: CourseInfo = field(default_factory=CourseInfo)
    enrollment_counts: Optional[EnrollmentCounts] = None
    students: list[StudentRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "course_info": {k: v for k, v in asdict(self.course_info).items() if v is not None},
            "enrollment_counts": asdict(self.enrollment_counts) if self.enrollment_counts else {},
            "students": [s.to_dict() for s in self.students],
        }


@dataclass
class LmsGroupMembers:
    students: list[StudentRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"students": [s.to_dict() for s in self.students]}


@dataclass
class LmsGroups:
    groups: list[GroupRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"groups": [g.to_dict() for g in self.groups]}


@dataclass
class GenericCsv:
    headers: list[str] = field(default_factory=list)
    students: list[StudentRecord] = field(default_factory=list)
    detected_columns: DetectedColumns = field(default_factory=DetectedColumns)

    def to_dict(self) -> dict[str, Any]:
        return {
            "headers": list(self.headers),
            "students": [s.to_dict() for s in self.students],
            "detected_columns": self.detected_columns.found(),
        }


ExtractedData = Union[SisClassList, LmsGroupMembers, LmsGroups, GenericCsv]
