from flask import Blueprint, jsonify
from ..db import get_conn_ro, period_tables

periods_bp = Blueprint("periods", __name__)

@periods_bp.get("/periods")
def list_periods():
    tables = period_tables()
    conn = get_conn_ro()
    rows = []
    for period, table in sorted(tables.items()):
        (n,) = conn.execute(f'SELECT COUNT(*) FROM "{table}"').fetchone()
        rows.append({"period": period, "table": table, "courses": n})
    conn.close()
    return jsonify(rows)
