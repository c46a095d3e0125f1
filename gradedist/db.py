import re
import sqlite3

from . import config

RE_PERIOD_TABLE = re.compile(r"^grade_distributions_(\d{4})_(\d{4})$")

def get_conn_ro():
    # read-only: if path is wrong, this will error instead of making an empty DB
    return sqlite3.connect(f"file:{config.DB_PATH}?mode=ro", uri=True)

def rows_to_dicts(rows):
    cols = [c[0] for c in rows.description]
    return [dict(zip(cols, r)) for r in rows.fetchall()]

def query(sql, params=()):
    conn = get_conn_ro()
    try:
        cur = conn.cursor()
        cur.execute(sql, params)
        return rows_to_dicts(cur)
    finally:
        conn.close()

def period_tables():
    """{'2010-2011': 'grade_distributions_2010_2011', ...} for every loaded period table."""
    rows = query("SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name")
    out = {}
    for r in rows:
        m = RE_PERIOD_TABLE.match(r["name"])
        if m:
            out[f"{m.group(1)}-{m.group(2)}"] = r["name"]
    return out
