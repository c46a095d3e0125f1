from flask import Blueprint, jsonify

from .. import config
from ..db import get_conn_ro
from ..scripts.ingest_grades import GRADE_SQL_COLUMNS
from . import resolve_period

analytics_bp = Blueprint("analytics", __name__)

@analytics_bp.get("/periods/<period>/departments")
def department_totals(period):
    """
    Grade totals per department for one period:
      - SUM of every grade bucket, COUNT of course rows
    """
    table = resolve_period(period)
    sums = ", ".join(f"SUM({c})" for c in GRADE_SQL_COLUMNS)

    conn = get_conn_ro()
    cur = conn.cursor()
    cur.execute(f"""
      SELECT Department, Department_Code, COUNT(*) AS courses, {sums}
      FROM "{table}"
      GROUP BY Department, Department_Code
      ORDER BY Department_Code
    """)
    out = []
    for r in cur.fetchall():
        counts = r[3:]
        out.append({
            "department": r[0],
            "department_code": r[1],
            "courses": r[2],
            "grades": [{"grade": g, "count": n} for g, n in zip(config.GRADE_LABELS, counts)],
            "total": sum(counts),
        })
    conn.close()
    return jsonify(out)
