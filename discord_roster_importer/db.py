from __future__ import annotations

"""MySQL schema and persistence utilities for imported rosters.

This module initializes the roster store and provides helpers for
upserting courses and course groups (teams) and for inserting roster
entries. Entries are deduplicated with a stable content hash so the same
export can be imported repeatedly.

Examples
--------
>>> from discord_roster_importer.config import load_config
>>> from discord_roster_importer.db import get_conn, init_schema
>>> cfg = load_config()
>>> conn = get_conn(cfg.db)
>>> init_schema(conn)
>>> conn.close()
"""

import hashlib
from contextlib import contextmanager
from typing import Optional

import pymysql

from .config import DBConfig
from .models import StudentRecord


def get_conn(cfg: DBConfig) -> pymysql.connections.Connection:
    """Create a new MySQL connection.

    Parameters
    ----------
    cfg : DBConfig
        Database configuration.

    Returns
    -------
    pymysql.connections.Connection
        A live connection with ``autocommit=True`` and ``DictCursor``.
    """
    return pymysql.connect(
        host=cfg.host,
        port=cfg.port,
        user=cfg.user,
        password=cfg.password,
        database=cfg.database,
        autocommit=True,
        charset="utf8mb4",
        cursorclass=pymysql.cursors.DictCursor,
    )


@contextmanager
def cursor(conn):
    """Context-managed cursor.

    Parameters
    ----------
    conn : pymysql.connections.Connection
        Open database connection.

    Yields
    ------
    pymysql.cursors.Cursor
        A cursor configured per ``get_conn``.
    """
    cur = conn.cursor()
    try:
        yield cur
    finally:
        cur.close()


def init_schema(conn) -> None:
    """Create required tables if they do not exist."""
    with cursor(conn) as cur:
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS courses (
              id BIGINT AUTO_INCREMENT PRIMARY KEY,
              course_code VARCHAR(32) NOT NULL,
              term_code CHAR(6) NOT NULL,
              section VARCHAR(8) NOT NULL DEFAULT '',
              crn VARCHAR(16) NULL,
              title VARCHAR(255) NULL,
              created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
              updated_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP,
              UNIQUE KEY uniq_course (course_code, term_code, section)
            ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci;
            """
        )

        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS course_groups (
              id BIGINT AUTO_INCREMENT PRIMARY KEY,
              course_id BIGINT NOT NULL,
              group_code VARCHAR(64) NOT NULL,
              title VARCHAR(255) NOT NULL,
              team_number INT NULL,
              created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
              UNIQUE KEY uniq_group (course_id, group_code),
              CONSTRAINT fk_group_course FOREIGN KEY (course_id) REFERENCES courses(id) ON DELETE CASCADE
            ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci;
            """
        )

        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS roster_entries (
              id BIGINT AUTO_INCREMENT PRIMARY KEY,
              course_id BIGINT NOT NULL,
              source_type VARCHAR(32) NOT NULL,
              student_id VARCHAR(32) NULL,
              rcs_id VARCHAR(64) NULL,
              email VARCHAR(255) NULL,
              full_name VARCHAR(255) NULL,
              first_name VARCHAR(128) NULL,
              last_name VARCHAR(128) NULL,
              preferred_name VARCHAR(128) NULL,
              registration_status VARCHAR(64) NULL,
              class_year VARCHAR(16) NULL,
              group_code VARCHAR(64) NULL,
              team VARCHAR(128) NULL,
              discord_username VARCHAR(128) NULL,
              entry_hash CHAR(64) NOT NULL,
              created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
              UNIQUE KEY uniq_entry_hash (entry_hash),
              INDEX idx_course_student (course_id, student_id),
              INDEX idx_rcs (rcs_id),
              CONSTRAINT fk_entry_course FOREIGN KEY (course_id) REFERENCES courses(id) ON DELETE CASCADE
            ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci;
            """
        )


def upsert_course(
    conn,
    course_code: str,
    term_code: str,
    section: Optional[str] = None,
    crn: Optional[str] = None,
    title: Optional[str] = None,
) -> int:
    """Insert or update a course and return its primary key.

    Parameters
    ----------
    conn : pymysql.connections.Connection
        Open database connection.
    course_code : str
        Code like ``'ITWS-1100'``.
    term_code : str
        Six-digit registrar term code.
    section : str or None
        Section number; stored as ``''`` when unknown.
    crn : str or None
        Course reference number; existing values are kept when ``None``.
    title : str or None
        Course title; existing values are kept when ``None``.

    Returns
    -------
    int
        The ``courses.id`` of the upserted row.
    """
    section = section or ""
    with cursor(conn) as cur:
        cur.execute(
            """
            INSERT INTO courses (course_code, term_code, section, crn, title)
            VALUES (%s, %s, %s, %s, %s)
            ON DUPLICATE KEY UPDATE
              crn = COALESCE(VALUES(crn), courses.crn),
              title = COALESCE(VALUES(title), courses.title)
            """,
            (course_code, term_code, section, crn, title),
        )
        cur.execute(
            "SELECT id FROM courses WHERE course_code=%s AND term_code=%s AND section=%s",
            (course_code, term_code, section),
        )
        row = cur.fetchone()
        return int(row["id"])  # type: ignore


def upsert_group(conn, course_id: int, group_code: str, title: str, team_number: Optional[int]) -> int:
    """Insert or update a course group and return its primary key."""
    with cursor(conn) as cur:
        cur.execute(
            """
            INSERT INTO course_groups (course_id, group_code, title, team_number)
            VALUES (%s, %s, %s, %s)
            ON DUPLICATE KEY UPDATE
              title = VALUES(title),
              team_number = VALUES(team_number)
            """,
            (course_id, group_code, title, team_number),
        )
        cur.execute(
            "SELECT id FROM course_groups WHERE course_id=%s AND group_code=%s",
            (course_id, group_code),
        )
        row = cur.fetchone()
        return int(row["id"])  # type: ignore


def _entry_hash(course_id: int, source_type: str, student: StudentRecord) -> str:
    """Compute a stable content hash for a roster entry.

    Parameters
    ----------
    course_id : int
        Owning course key.
    source_type : str
        Classification tag of the file the entry came from.
    student : StudentRecord
        Parsed entry.

    Returns
    -------
    str
        Hex-encoded SHA-256 digest.
    """
    parts = [
        str(course_id),
        source_type,
        student.student_id or "",
        (student.rcs_id or "").lower(),
        (student.email or "").lower(),
        student.discord_username or "",
        student.group_code or "",
        student.team or "",
        student.full_name or "",
    ]
    return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()


def insert_roster_entry(conn, course_id: int, source_type: str, student: StudentRecord) -> bool:
    """Insert a roster entry if not already present.

    Returns
    -------
    bool
        ``True`` if a new row was inserted, ``False`` if a duplicate was detected.
    """
    h = _entry_hash(course_id, source_type, student)
    with cursor(conn) as cur:
        try:
            cur.execute(
                """
                INSERT INTO roster_entries
                (course_id, source_type, student_id, rcs_id, email, full_name, first_name, last_name,
                 preferred_name, registration_status, class_year, group_code, team, discord_username, entry_hash)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    course_id,
                    source_type,
                    student.student_id or None,
                    student.rcs_id or None,
                    student.email or None,
                    student.full_name or None,
                    student.first_name or None,
                    student.last_name or None,
                    student.preferred_name or None,
                    student.registration_status or None,
                    student.class_year or None,
                    student.group_code or None,
                    student.team or None,
                    student.discord_username or None,
                    h,
                ),
            )
            return True
        except pymysql.err.IntegrityError:
            # likely duplicate entry_hash
            return False
