"""
Turn raw dashboard exports into one row per course.

Raw export (UTF-16LE, tab-separated, header line first), one row per
(course, grade):

    Semester  Section  Department  Dept Code  Course Nbr  Title  Full Title  Grade  Count

Aggregated output (UTF-8, tab-separated), one row per Course Full Title with
the 13 grade buckets in canonical order:

    Semester ... Course Full Title  A  A-  B+  B  B-  C+  C  C-  D+  D  D-  F  Other

"A+" is not a bucket; its count is folded into "A". Any other unknown grade
label fails the file.
"""

from __future__ import annotations

import csv
import os
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import pandas as pd

from .. import config
from ..errors import ExportIOError, ParseError

RE_UNSIGNED = re.compile(r"^[0-9]+$")


@dataclass(frozen=True)
class RawRow:
    semester: str
    section: int
    department: str
    department_code: str
    course_number: str
    course_title: str
    course_full_title: str
    grade: str
    grade_count: int
    line_no: Optional[int] = field(default=None, compare=False)

    def descriptive(self) -> Tuple:
        return (self.semester, self.section, self.department, self.department_code,
                self.course_number, self.course_title, self.course_full_title)


@dataclass
class AggregatedCourse:
    semester: str
    section: int
    department: str
    department_code: str
    course_number: str
    course_title: str
    course_full_title: str
    grades: Dict[str, int] = field(default_factory=dict)
    # rows whose descriptive fields disagreed with the first-seen row
    mismatches: int = 0

    @classmethod
    def seed(cls, row: RawRow, grade_labels: Sequence[str]) -> "AggregatedCourse":
        return cls(*row.descriptive(), grades={label: 0 for label in grade_labels})

    def descriptive(self) -> Tuple:
        return (self.semester, self.section, self.department, self.department_code,
                self.course_number, self.course_title, self.course_full_title)

    def to_row(self, grade_labels: Sequence[str]) -> list:
        return list(self.descriptive()) + [self.grades[label] for label in grade_labels]


# ---------- external decoder ----------
def decode_export(data: bytes) -> str:
    """The dashboard serves exports as UTF-16LE, usually with a BOM."""
    return data.decode(config.RAW_ENCODING, errors="replace").lstrip("\ufeff")


# ---------- row parser ----------
def parse_unsigned(text: str, what: str) -> int:
    if not RE_UNSIGNED.match(text):
        raise ParseError(ParseError.INVALID_INTEGER, f"{what} is not an unsigned integer: {text!r}")
    return int(text)


def parse_row(line: str) -> RawRow:
    tokens = line.split("\t")
    if len(tokens) != config.RAW_FIELD_COUNT:
        raise ParseError(
            ParseError.FIELD_COUNT_MISMATCH,
            f"expected {config.RAW_FIELD_COUNT} fields, got {len(tokens)}",
            expected=config.RAW_FIELD_COUNT,
            actual=len(tokens),
        )

    return RawRow(
        semester=tokens[0],
        section=parse_unsigned(tokens[1], "section"),
        department=tokens[2],
        department_code=tokens[3],
        course_number=tokens[4].strip(),
        course_title=tokens[5],
        course_full_title=tokens[6],
        grade=tokens[7],
        grade_count=parse_unsigned(tokens[8].replace(",", ""), "grade count"),
    )


def iter_rows(text: str) -> Iterator[RawRow]:
    """
    Parse every data line of a decoded export. Line 1 is the header.
    Lines end at LF or CRLF only; other Unicode line breaks stay inside fields.
    """
    for line_no, line in enumerate(text.split("\n"), start=1):
        line = line.rstrip("\r")
        if line_no == 1 or not line:
            continue
        try:
            row = parse_row(line)
        except ParseError as e:
            raise e.located(line_no=line_no) from e
        yield replace(row, line_no=line_no)


# ---------- aggregator ----------
def bucket_for(grade: str, grade_labels: Sequence[str]) -> str:
    if grade == config.ANOMALOUS_GRADE:
        grade = config.ANOMALOUS_GRADE_TARGET
    if grade not in grade_labels:
        raise ParseError(ParseError.UNKNOWN_GRADE_LABEL, f"unknown grade label {grade!r}")
    return grade


def aggregate(rows: Iterable[RawRow], grade_labels: Sequence[str] = config.GRADE_LABELS) -> Dict[str, AggregatedCourse]:
    """
    Group rows by Course Full Title and sum their counts into fixed grade buckets.
    First-seen descriptive fields win; later disagreements are only counted.
    """
    courses: Dict[str, AggregatedCourse] = {}
    for row in rows:
        try:
            bucket = bucket_for(row.grade, grade_labels)
        except ParseError as e:
            raise e.located(line_no=row.line_no) from e

        course = courses.get(row.course_full_title)
        if course is None:
            course = AggregatedCourse.seed(row, grade_labels)
            courses[row.course_full_title] = course
        elif course.descriptive() != row.descriptive():
            course.mismatches += 1

        course.grades[bucket] += row.grade_count
    return courses


# ---------- writer ----------
def to_dataframe(courses: Iterable[AggregatedCourse], grade_labels: Sequence[str] = config.GRADE_LABELS) -> pd.DataFrame:
    columns = list(config.DESCRIPTIVE_COLUMNS) + list(grade_labels)
    return pd.DataFrame([c.to_row(grade_labels) for c in courses], columns=columns)


def write_aggregated(courses: Dict[str, AggregatedCourse], path,
                     grade_labels: Sequence[str] = config.GRADE_LABELS) -> None:
    """Write via a temp file + rename so a failed write never leaves a partial file."""
    path = Path(path)
    tmp_path = path.with_name(path.name + ".tmp")
    df = to_dataframe(courses.values(), grade_labels)
    try:
        # no quoting: titles go out exactly as the dashboard sent them
        df.to_csv(tmp_path, sep="\t", index=False, encoding="utf-8", lineterminator="\n",
                  quoting=csv.QUOTE_NONE)
        os.replace(tmp_path, path)
    except (OSError, csv.Error) as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise ExportIOError(path, str(e)) from e


def parse_export_file(input_path, output_path, grade_labels: Sequence[str] = config.GRADE_LABELS) -> int:
    """Aggregate one raw export. Returns the number of courses written."""
    input_path = Path(input_path)
    try:
        data = input_path.read_bytes()
    except OSError as e:
        raise ExportIOError(input_path, str(e)) from e

    try:
        courses = aggregate(iter_rows(decode_export(data)), grade_labels)
    except ParseError as e:
        raise e.located(source=input_path.name) from e

    for title, course in courses.items():
        if course.mismatches:
            print(f"[warn] {input_path.name}: {course.mismatches} row(s) for {title!r} "
                  f"disagree with first-seen course fields; keeping first-seen values")

    write_aggregated(courses, output_path, grade_labels)
    return len(courses)


def parse_export_directory(input_dir, output_dir, grade_labels: Sequence[str] = config.GRADE_LABELS) -> List[Path]:
    input_dir, output_dir = Path(input_dir), Path(output_dir)
    try:
        os.makedirs(output_dir, exist_ok=True)
        raw_files = sorted(p for p in input_dir.iterdir() if p.suffix.lower() == ".csv")
    except OSError as e:
        raise ExportIOError(input_dir, str(e)) from e

    written = []
    for raw_path in raw_files:
        output_path = output_dir / raw_path.name
        print(f"🔧 Aggregating {raw_path.name}...")
        n = parse_export_file(raw_path, output_path, grade_labels)
        print(f"✅ {n} course(s) -> {output_path}")
        written.append(output_path)
    return written


if __name__ == "__main__":
    parse_export_directory(config.RAW_DIR, config.PROCESSED_DIR)
