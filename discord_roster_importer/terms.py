from __future__ import annotations

"""Academic term code helpers.

Registrar exports encode a term as ``YYYYSS`` (e.g. ``202609``) while
LMS exports use the shorter ``YYSS`` form (e.g. ``2509``). Both share the
same two-digit semester codes.

Examples
--------
>>> from discord_roster_importer.terms import parse_term_code, parse_lms_term_code
>>> parse_term_code('202601').display
'Spring 2026'
>>> parse_lms_term_code('2509').registrar_code
'202509'
>>> parse_term_code('2026') is None
True
"""

from dataclasses import dataclass
from typing import Optional


SEMESTER_NAMES = {
    "01": "Spring",
    "05": "Summer",
    "09": "Fall",
}

UNKNOWN_SEMESTER = "Unknown"


@dataclass(frozen=True)
class TermCode:
    """Decoded academic term.

    Attributes
    ----------
    year : int
        Four-digit calendar year.
    semester : str
        ``'Spring'``, ``'Summer'``, ``'Fall'`` or ``'Unknown'``.
    semester_code : str
        Raw two-digit semester code as found in the source.
    """
    year: int
    semester: str
    semester_code: str

    @property
    def display(self) -> str:
        return f"{self.semester} {self.year}"

    @property
    def registrar_code(self) -> str:
        """Canonical six-digit ``YYYYSS`` form."""
        return f"{self.year:04d}{self.semester_code}"

    def to_dict(self) -> dict:
        return {
            "year": self.year,
            "semester": self.semester,
            "semester_code": self.semester_code,
            "display": self.display,
        }


def _build(year: int, semester_code: str) -> TermCode:
    return TermCode(
        year=year,
        semester=SEMESTER_NAMES.get(semester_code, UNKNOWN_SEMESTER),
        semester_code=semester_code,
    )


def parse_term_code(code: Optional[str]) -> Optional[TermCode]:
    """Decode a six-digit registrar term code.

    Parameters
    ----------
    code : str or None
        Term code such as ``'202601'``.

    Returns
    -------
    TermCode or None
        ``None`` when the code is missing, not six characters long or not
        numeric. Unrecognized semester digits decode as ``'Unknown'``.
    """
    if not code or len(code) != 6 or not code.isdigit():
        return None
    return _build(int(code[0:4]), code[4:6])


def parse_lms_term_code(code: Optional[str]) -> Optional[TermCode]:
    """Decode a four-digit LMS term code (``YYSS``, years since 2000)."""
    if not code or len(code) != 4 or not code.isdigit():
        return None
    return _build(2000 + int(code[0:2]), code[2:4])
