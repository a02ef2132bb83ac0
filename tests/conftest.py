import os
import time
import zipfile
from io import BytesIO
from typing import Callable, Iterator

import openpyxl
import pytest
import pymysql

from discord_roster_importer.config import load_config
from discord_roster_importer.db import get_conn, init_schema, cursor


def _wait_for_mysql(host: str, port: int, user: str, password: str, database: str, timeout: int = 60) -> None:
    start = time.time()
    last_err = None
    while time.time() - start < timeout:
        try:
            conn = pymysql.connect(host=host, port=port, user=user, password=password, database=database)
            conn.close()
            return
        except Exception as e:  # noqa: BLE001 - broad during boot-up
            last_err = e
            time.sleep(1)
    pytest.skip(f"MySQL not ready after {timeout}s: {last_err}")


@pytest.fixture(scope="function")
def db_conn() -> Iterator[pymysql.connections.Connection]:
    """Yield a ready MySQL connection against the configured database.

    Skips if the connection cannot be established within
    ``MYSQL_WAIT_TIMEOUT`` seconds. In CI and docker-compose, env variables
    are set so the connection should succeed.
    """
    cfg = load_config()
    timeout = int(os.getenv("MYSQL_WAIT_TIMEOUT", "3"))
    _wait_for_mysql(cfg.db.host, cfg.db.port, cfg.db.user, cfg.db.password, cfg.db.database, timeout=timeout)
    conn = get_conn(cfg.db)
    init_schema(conn)
    try:
        yield conn
    finally:
        # Cleanup tables between tests
        with cursor(conn) as cur:
            cur.execute("SET FOREIGN_KEY_CHECKS=0")
            for tbl in ("roster_entries", "course_groups", "courses"):
                cur.execute(f"TRUNCATE TABLE {tbl}")
            cur.execute("SET FOREIGN_KEY_CHECKS=1")
        conn.close()


@pytest.fixture
def make_xlsx() -> Callable[[list], bytes]:
    """Build an in-memory ``.xlsx`` whose first sheet holds ``rows``."""

    def _make(rows: list) -> bytes:
        wb = openpyxl.Workbook()
        ws = wb.active
        for row in rows:
            ws.append(list(row))
        buf = BytesIO()
        wb.save(buf)
        return buf.getvalue()

    return _make


@pytest.fixture
def classlist_rows() -> list:
    return [
        ["Class List"],
        [],
        ["Course Title", "INTRO TO IT & WEB SCIENCE - ITWS 1100 01"],
        ["Term", "Spring 2026 - 202601"],
        ["CRN", "36419"],
        ["Duration", "01/12/2026 - 04/29/2026"],
        ["Status", "Active"],
        ["Enrollment", "Maximum", "Actual", "Remaining"],
        ["Enrollment", 120, 98, 22],
        [],
        ["Student Name", "ID", "Registration Status", "Level", "Credits", None, None, "Class"],
        ["Smith, John (he/him)", "123456", "Registered", "UG", "4", None, None, "2027"],
        ['Doe, "Janie" Jane (she/her)', 654321, "Registered", "UG", 4, None, None, "2028"],
        ["Nobody, Without Id", None, "Dropped"],
        [None, "999999", "Registered"],
    ]


@pytest.fixture
def corrupt_xlsx(make_xlsx, classlist_rows) -> Callable[[str], bytes]:
    """Build a class list ``.xlsx`` with one archive member replaced by broken XML."""

    def _make(member: str) -> bytes:
        src = zipfile.ZipFile(BytesIO(make_xlsx(classlist_rows)))
        buf = BytesIO()
        with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as dst:
            for info in src.infolist():
                body = b"<not valid xml" if info.filename == member else src.read(info.filename)
                dst.writestr(info, body)
        return buf.getvalue()

    return _make
