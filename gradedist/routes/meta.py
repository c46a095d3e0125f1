from flask import Blueprint, jsonify
from ..db import get_conn_ro

meta_bp = Blueprint("meta", __name__)

@meta_bp.get("/health")
def health():
    return {"status": "ok"}

@meta_bp.get("/schema")
def schema():
    """Return tables and their columns using PRAGMA."""
    conn = get_conn_ro()
    cur = conn.cursor()
    tables = cur.execute(
        "SELECT name FROM sqlite_master WHERE type IN ('table','view') AND name NOT LIKE 'sqlite_%' ORDER BY name"
    ).fetchall()
    out = []
    for (tname,) in tables:
        cols = conn.execute(f"PRAGMA table_info('{tname}')").fetchall()
        out.append({
            "table": tname,
            "columns": [{"name": c[1], "type": c[2]} for c in cols],
        })
    conn.close()
    return jsonify(out)
