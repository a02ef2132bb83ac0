from discord_roster_importer.db import cursor, insert_roster_entry, upsert_course, upsert_group
from discord_roster_importer.models import StudentRecord


def test_db_roundtrip(db_conn):
    # Upsert a course twice; the key is code + term + section
    course_id = upsert_course(db_conn, "ITWS-1100", "202601", "01", "36419", "INTRO TO IT & WEB SCIENCE")
    assert isinstance(course_id, int)
    assert upsert_course(db_conn, "ITWS-1100", "202601", "01") == course_id

    group_id = upsert_group(db_conn, course_id, "G1", "Team 1", 1)
    assert upsert_group(db_conn, course_id, "G1", "Team One", 1) == group_id

    student = StudentRecord(full_name="Smith, John", first_name="John", last_name="Smith", student_id="123456")
    assert insert_roster_entry(db_conn, course_id, "sis_classlist", student) is True
    # Duplicate insert should be ignored
    assert insert_roster_entry(db_conn, course_id, "sis_classlist", student) is False
    # Same student from another source is a separate entry
    assert insert_roster_entry(db_conn, course_id, "generic_csv", student) is True

    with cursor(db_conn) as cur:
        cur.execute("SELECT crn, title FROM courses WHERE id=%s", (course_id,))
        row = cur.fetchone()
        # crn/title are kept when the second upsert omits them
        assert row["crn"] == "36419"
        assert row["title"] == "INTRO TO IT & WEB SCIENCE"
        cur.execute("SELECT title FROM course_groups WHERE id=%s", (group_id,))
        assert cur.fetchone()["title"] == "Team One"
        cur.execute("SELECT COUNT(*) AS c FROM roster_entries")
        assert cur.fetchone()["c"] == 2
