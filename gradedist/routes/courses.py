from flask import Blueprint, request, jsonify, abort

from .. import config
from ..db import get_conn_ro
from ..scripts.ingest_grades import GRADE_SQL_COLUMNS
from . import resolve_period

courses_bp = Blueprint("courses", __name__)

COURSE_FIELDS = ["Semester", "Section", "Department", "Department_Code",
                 "Course_Number", "Course_Title", "Course_Full_Title"]

DEFAULT_LIMIT = 50
MAX_LIMIT = 500

def _row_to_course(row):
    """sqlite row (descriptive fields then grade columns) -> API dict."""
    course = {k.lower(): v for k, v in zip(COURSE_FIELDS, row)}
    grade_counts = row[len(COURSE_FIELDS):]
    # list, not dict: keeps the canonical bucket order through jsonify
    course["grades"] = [{"grade": g, "count": n} for g, n in zip(config.GRADE_LABELS, grade_counts)]
    course["total"] = sum(grade_counts)
    return course

@courses_bp.get("/periods/<period>/courses")
def list_courses(period):
    table = resolve_period(period)
    search = (request.args.get("search") or "").strip()
    department = (request.args.get("department") or "").strip()
    limit = request.args.get("limit", default=DEFAULT_LIMIT, type=int)
    offset = request.args.get("offset", default=0, type=int)
    limit = min(max(limit, 0), MAX_LIMIT)
    offset = max(offset, 0)

    where = ["1=1"]
    params = []

    if search:
        where.append("(Course_Full_Title LIKE ? OR Course_Title LIKE ?)")
        like = f"%{search}%"
        params.extend([like, like])

    if department:
        where.append("(Department_Code = ? OR Department = ?)")
        params.extend([department, department])

    where_sql = " AND ".join(where)
    cols = ", ".join(COURSE_FIELDS + GRADE_SQL_COLUMNS)

    conn = get_conn_ro()
    cur = conn.cursor()
    cur.execute(f"""
        SELECT {cols}
        FROM "{table}"
        WHERE {where_sql}
        ORDER BY Department_Code, Course_Number, Section
        LIMIT ? OFFSET ?
    """, params + [limit, offset])
    rows = [_row_to_course(r) for r in cur.fetchall()]
    conn.close()
    return jsonify(rows)

@courses_bp.get("/periods/<period>/courses/<path:full_title>")
def get_course(period, full_title):
    table = resolve_period(period)
    cols = ", ".join(COURSE_FIELDS + GRADE_SQL_COLUMNS)

    conn = get_conn_ro()
    row = conn.execute(
        f'SELECT {cols} FROM "{table}" WHERE Course_Full_Title = ?', (full_title,)
    ).fetchone()
    conn.close()
    if row is None:
        abort(404, description=f"no course {full_title!r} in {period}")
    return jsonify(_row_to_course(row))
