from __future__ import annotations

"""Roster import workflows and CLI entrypoint.

This module implements the workflows shared by the CLI and the bot:

1. Parse a roster export and render a short preview of what was found.
2. Optionally store the parsed roster in MySQL, keyed by course and term.

Usage
-----
``discord-roster-importer classify 202601_36419_classlist.xlsx``
``discord-roster-importer parse-file exports/202601_36419_classlist.xlsx --store``
"""

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .classifier import GENERIC_CSV, GENERIC_XLSX, LMS_GROUPMEMBERS, LMS_GROUPS, classify_filename
from .config import load_config
from .db import get_conn, init_schema, insert_roster_entry, upsert_course, upsert_group
from .logging_config import setup_logging
from .models import GenericCsv, LmsGroupMembers, LmsGroups, SisClassList
from .parser import ParsedFile, UnsupportedFileType, parse_file
from .terms import parse_lms_term_code

logger = logging.getLogger(__name__)

PREVIEW_LIMIT = 10


@dataclass
class CourseKey:
    """Identity of the course a roster belongs to."""
    course_code: str
    term_code: str
    section: Optional[str] = None
    crn: Optional[str] = None
    title: Optional[str] = None


@dataclass
class StoreResult:
    course_id: int
    groups: int = 0
    inserted: int = 0
    duplicates: int = 0


def _normalize_term(term_code: Optional[str]) -> Optional[str]:
    """Accept six-digit registrar or four-digit LMS codes; return six digits."""
    if not term_code:
        return None
    if len(term_code) == 4:
        term = parse_lms_term_code(term_code)
        return term.registrar_code if term else None
    return term_code


def course_key_for(
    parsed: ParsedFile,
    course_code: Optional[str] = None,
    term_code: Optional[str] = None,
) -> Optional[CourseKey]:
    """Work out which course a parsed file belongs to.

    Parameters
    ----------
    parsed : ParsedFile
        Result of ``parse_file``.
    course_code : str, optional
        Explicit course code; overrides anything found in the file.
    term_code : str, optional
        Explicit six-digit (or four-digit LMS) term; overrides the file.

    Returns
    -------
    CourseKey or None
        ``None`` when the course or term cannot be determined, which is
        always the case for generic files without overrides.
    """
    meta = parsed.metadata
    section = crn = title = None
    found_code = found_term = None

    if isinstance(parsed.data, SisClassList):
        info = parsed.data.course_info
        found_code = info.course_code
        found_term = info.term_code or meta.get("term_code")
        section = info.section
        crn = info.crn or meta.get("crn")
        title = info.full_title
    elif parsed.file_type in (LMS_GROUPMEMBERS, LMS_GROUPS):
        found_code = meta.get("course_code")
        term = meta.get("term")
        found_term = term.registrar_code if term else None
        section = meta.get("section")

    code = course_code or found_code
    term_value = _normalize_term(term_code) or found_term
    if not code or not term_value:
        return None
    return CourseKey(course_code=code.upper(), term_code=term_value, section=section, crn=crn, title=title)


def store_parsed_file(conn, parsed: ParsedFile, key: CourseKey) -> StoreResult:
    """Persist a parsed roster under ``key``.

    Parameters
    ----------
    conn : pymysql.connections.Connection
        Open connection with the schema initialized.
    parsed : ParsedFile
        Result of ``parse_file``.
    key : CourseKey
        Course the roster belongs to.

    Returns
    -------
    StoreResult
        Counts of groups upserted and entries inserted or skipped as duplicates.
    """
    course_id = upsert_course(conn, key.course_code, key.term_code, key.section, key.crn, key.title)
    result = StoreResult(course_id=course_id)

    data = parsed.data
    if isinstance(data, LmsGroups):
        for group in data.groups:
            upsert_group(conn, course_id, group.group_code, group.title, group.team_number)
            result.groups += 1
        return result

    for student in data.students:
        if insert_roster_entry(conn, course_id, parsed.file_type, student):
            result.inserted += 1
        else:
            result.duplicates += 1
    logger.info(
        "Stored %s for %s %s: %d new, %d duplicate",
        parsed.filename,
        key.course_code,
        key.term_code,
        result.inserted,
        result.duplicates,
    )
    return result


def _term_display(parsed: ParsedFile) -> Optional[str]:
    term = parsed.metadata.get("term")
    if term is not None:
        return term.display
    if isinstance(parsed.data, SisClassList):
        return parsed.data.course_info.term_display
    return None


def summarize(parsed: ParsedFile) -> str:
    """Render a short human-readable preview of a parsed file."""
    data = parsed.data
    term = _term_display(parsed)
    term_part = f" ({term})" if term else ""
    lines: list[str] = []

    if isinstance(data, SisClassList):
        info = data.course_info
        label = "Spreadsheet" if parsed.file_type == GENERIC_XLSX else "SIS class list"
        course = info.course_code or info.full_title or "unknown course"
        lines.append(f"{label} for {course}{term_part}: {len(data.students)} student(s)")
        if data.enrollment_counts:
            counts = data.enrollment_counts
            lines.append(f"Enrollment: {counts.actual}/{counts.maximum} ({counts.remaining} seats remaining)")
        for s in data.students[:PREVIEW_LIMIT]:
            name = f"{s.first_name} {s.last_name}".strip() or s.full_name
            lines.append(f"- {name} ({s.student_id})")
    elif isinstance(data, LmsGroupMembers):
        groups = {s.group_code for s in data.students if s.group_code}
        lines.append(
            f"LMS group members for {parsed.metadata.get('course_code')}{term_part}: "
            f"{len(data.students)} student(s) in {len(groups)} group(s)"
        )
        for s in data.students[:PREVIEW_LIMIT]:
            lines.append(f"- {s.full_name} ({s.rcs_id}) -> {s.group_code}")
    elif isinstance(data, LmsGroups):
        lines.append(f"LMS groups for {parsed.metadata.get('course_code')}{term_part}: {len(data.groups)} group(s)")
        for g in data.groups[:PREVIEW_LIMIT]:
            team = f" [team {g.team_number}]" if g.team_number is not None else ""
            lines.append(f"- {g.group_code}: {g.title}{team}")
    elif isinstance(data, GenericCsv):
        detected = ", ".join(data.detected_columns.found()) or "none"
        lines.append(f"CSV roster: {len(data.students)} usable row(s); detected columns: {detected}")
        for s in data.students[:PREVIEW_LIMIT]:
            handle = s.rcs_id or s.email or s.student_id or s.discord_username
            lines.append(f"- {s.full_name or handle} ({handle})")

    total = len(data.groups) if isinstance(data, LmsGroups) else len(data.students)
    if total > PREVIEW_LIMIT:
        lines.append(f"... and {total - PREVIEW_LIMIT} more")
    return "\n".join(lines)


def cmd_classify(args) -> None:
    """CLI command: print the classification of each filename."""
    for name in args.names:
        info = classify_filename(Path(name).name)
        print(json.dumps({"filename": name, "type": info.file_type, "metadata": info.metadata_dict()}))


def cmd_parse_file(args) -> None:
    """CLI command: parse a local roster export.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed arguments; must contain ``path``. May include ``--json``,
        ``--store``, ``--course-code`` and ``--term-code``.
    """
    p = Path(args.path)
    if not p.exists():
        print(f"File not found: {p}", file=sys.stderr)
        sys.exit(1)
    try:
        parsed = parse_file(p.name, p.read_bytes())
    except UnsupportedFileType as e:
        print(str(e), file=sys.stderr)
        sys.exit(2)

    if args.json:
        print(json.dumps(parsed.to_dict(), indent=2))
    else:
        print(summarize(parsed))

    if not args.store:
        return
    key = course_key_for(parsed, course_code=args.course_code, term_code=args.term_code)
    if key is None:
        print("Cannot determine course/term; pass --course-code and --term-code", file=sys.stderr)
        sys.exit(1)
    cfg = load_config()
    conn = get_conn(cfg.db)
    try:
        init_schema(conn)
        result = store_parsed_file(conn, parsed, key)
    finally:
        conn.close()
    if parsed.file_type == LMS_GROUPS:
        print(f"Stored {result.groups} group(s) for {key.course_code} {key.term_code}")
    else:
        print(f"Stored {result.inserted} new entries ({result.duplicates} already present) for {key.course_code} {key.term_code}")


def build_argparser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    Returns
    -------
    argparse.ArgumentParser
        Configured argument parser with subcommands.
    """
    p = argparse.ArgumentParser(prog="discord-roster-importer", description="Parse SIS/LMS roster exports")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_cls = sub.add_parser("classify", help="Show how filenames are classified")
    p_cls.add_argument("names", nargs="+", help="File names or paths")
    p_cls.set_defaults(func=cmd_classify)

    p_file = sub.add_parser("parse-file", help="Parse a local roster export")
    p_file.add_argument("path", help="Path to an SIS class list, LMS export or CSV/XLSX roster")
    p_file.add_argument("--json", action="store_true", help="Print the full parse result as JSON")
    p_file.add_argument("--store", action="store_true", help="Store the roster in MySQL")
    p_file.add_argument("--course-code", default=None, help=f"Course code for {GENERIC_CSV}/{GENERIC_XLSX} files, e.g. ITWS-1100")
    p_file.add_argument("--term-code", default=None, help="Term code, e.g. 202601 or 2601")
    p_file.set_defaults(func=cmd_parse_file)

    return p


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint.

    Parameters
    ----------
    argv : list of str, optional
        Argument vector for parsing. If ``None``, defaults to
        ``sys.argv[1:]``.
    """
    p = build_argparser()
    args = p.parse_args(argv)
    setup_logging(load_config().log_level)
    args.func(args)


if __name__ == "__main__":
    main()
