#!/usr/bin/env python3
"""
Load aggregated grade CSVs into SQLite, one table per period file.

- Scans <processed dir>/*.csv
- Table name = file stem with '-' -> '_' (grade_distributions_2010-2011.csv -> grade_distributions_2010_2011)
- Destructive: the database file is deleted and rebuilt on every run.
"""

import csv, re, sqlite3
from pathlib import Path
from typing import Dict, List

from .. import config
from ..errors import ExportIOError, GradeDistError

RE_TABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# ---- Column map --------------------------------------------------------------
# (csv header, sql column, sql type)
COLUMNS: List[tuple] = [
    ("Semester",          "Semester",          "TEXT"),
    ("Section",           "Section",           "INTEGER"),
    ("Department",        "Department",        "TEXT"),
    ("Department Code",   "Department_Code",   "TEXT"),
    ("Course Number",     "Course_Number",     "TEXT"),
    ("Course Title",      "Course_Title",      "TEXT"),
    ("Course Full Title", "Course_Full_Title", "TEXT"),
    ("A",     "A",       "INTEGER"),
    ("A-",    "A_Minus", "INTEGER"),
    ("B+",    "B_Plus",  "INTEGER"),
    ("B",     "B",       "INTEGER"),
    ("B-",    "B_Minus", "INTEGER"),
    ("C+",    "C_Plus",  "INTEGER"),
    ("C",     "C",       "INTEGER"),
    ("C-",    "C_Minus", "INTEGER"),
    ("D+",    "D_Plus",  "INTEGER"),
    ("D",     "D",       "INTEGER"),
    ("D-",    "D_Minus", "INTEGER"),
    ("F",     "F",       "INTEGER"),
    ("Other", "Other",   "INTEGER"),
]
SQL_COLUMNS = [c[1] for c in COLUMNS]
GRADE_SQL_COLUMNS = SQL_COLUMNS[len(config.DESCRIPTIVE_COLUMNS):]


def table_name_for(path) -> str:
    name = Path(path).stem.replace("-", "_")
    if not RE_TABLE_NAME.match(name):
        raise GradeDistError(f"cannot derive a table name from {Path(path).name!r}")
    return name

# ---- DB schema helpers -------------------------------------------------------

def create_grade_table(conn: sqlite3.Connection, table: str):
    cols = ",\n      ".join(f"{sql} {typ}" for _, sql, typ in COLUMNS)
    conn.execute(f'CREATE TABLE "{table}" (\n      {cols}\n    )')

def to_row(record: List[str]) -> list:
    out = []
    for value, (_, _, typ) in zip(record, COLUMNS):
        out.append(int(value) if typ == "INTEGER" else value)
    return out

# ---- Ingest one CSV ----------------------------------------------------------

def ingest_file(conn: sqlite3.Connection, csv_path: Path) -> int:
    table = table_name_for(csv_path)
    try:
        with open(csv_path, newline="", encoding="utf-8") as f:
            reader = csv.reader(f, delimiter="\t", quoting=csv.QUOTE_NONE)
            header = next(reader, None)
            records = list(reader)
    except OSError as e:
        raise ExportIOError(csv_path, str(e)) from e

    expected = [c[0] for c in COLUMNS]
    if header != expected:
        raise GradeDistError(f"{csv_path.name}: unexpected header {header!r}")

    rows = []
    for line_no, record in enumerate(records, start=2):
        if len(record) != len(COLUMNS):
            raise GradeDistError(f"{csv_path.name}: line {line_no} has {len(record)} fields, expected {len(COLUMNS)}")
        try:
            rows.append(to_row(record))
        except ValueError as e:
            raise GradeDistError(f"{csv_path.name}: line {line_no}: {e}") from e

    placeholders = ",".join("?" * len(COLUMNS))
    try:
        create_grade_table(conn, table)
        conn.executemany(
            f'INSERT INTO "{table}" ({", ".join(SQL_COLUMNS)}) VALUES ({placeholders})',
            rows,
        )
    except sqlite3.Error as e:
        raise GradeDistError(f"{csv_path.name}: cannot load into table {table}: {e}") from e
    return len(rows)

# ---- Main --------------------------------------------------------------------

def reset_database(db_path: Path):
    try:
        if db_path.exists():
            db_path.unlink()
        db_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ExportIOError(db_path, str(e)) from e

def ingest_directory(input_dir, db_path=None) -> Dict[str, int]:
    input_dir = Path(input_dir)
    db_path = Path(db_path or config.DB_PATH)
    try:
        csv_files = sorted(input_dir.glob("*.csv"))
    except OSError as e:
        raise ExportIOError(input_dir, str(e)) from e

    reset_database(db_path)
    conn = sqlite3.connect(db_path)
    loaded: Dict[str, int] = {}
    try:
        for f in csv_files:
            table = table_name_for(f)
            if table in loaded:
                raise GradeDistError(f"{f.name}: table {table} was already loaded from another file")
            print(f"Inserting data into database from: {f}")
            n = ingest_file(conn, f)
            conn.commit()
            print(f"[ingested] {f.name}: {n} rows")
            loaded[table] = n
    finally:
        conn.close()

    print(f"Done. Total rows loaded: {sum(loaded.values())} into {db_path}")
    return loaded

if __name__ == "__main__":
    ingest_directory(config.PROCESSED_DIR, config.DB_PATH)
