"""
Error taxonomy for the export pipeline.

Every failure the pipeline can hit is one of four kinds:

- TransportError: the HTTP call itself failed (connection, timeout, non-2xx).
- ProtocolError: the dashboard answered, but not in the shape we expect.
- ParseError: a raw export row could not be turned into a grade record.
- ExportIOError: reading or writing a file on disk failed.

None of these are retried. Callers re-run the whole step instead.
"""

from __future__ import annotations

from typing import Optional, Sequence


class GradeDistError(Exception):
    """Base class for all pipeline failures."""


class TransportError(GradeDistError):
    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"request to {url} failed: {reason}")


class ProtocolError(GradeDistError):
    MISSING_ELEMENT = "missing_element"
    MALFORMED_JSON = "malformed_json"
    MISSING_FIELD = "missing_field"
    UNEXPECTED_SHAPE = "unexpected_shape"

    def __init__(self, kind: str, detail: str, path: Optional[Sequence] = None):
        self.kind = kind
        self.detail = detail
        self.path = list(path) if path is not None else None
        msg = f"{kind}: {detail}"
        if self.path is not None:
            msg += f" (at {format_path(self.path)})"
        super().__init__(msg)


class ParseError(GradeDistError):
    FIELD_COUNT_MISMATCH = "field_count_mismatch"
    INVALID_INTEGER = "invalid_integer"
    UNKNOWN_GRADE_LABEL = "unknown_grade_label"

    def __init__(self, kind: str, detail: str, line_no: Optional[int] = None,
                 expected: Optional[int] = None, actual: Optional[int] = None,
                 source: Optional[str] = None):
        self.kind = kind
        self.detail = detail
        self.line_no = line_no
        self.expected = expected
        self.actual = actual
        self.source = source
        where = [s for s in (source, f"line {line_no}" if line_no is not None else None) if s]
        prefix = ": ".join(where) + ": " if where else ""
        super().__init__(f"{prefix}{kind}: {detail}")

    def located(self, line_no: Optional[int] = None, source: Optional[str] = None) -> "ParseError":
        """Return a copy tagged with a 1-based line number and/or file name; existing tags are kept."""
        return ParseError(self.kind, self.detail,
                          line_no=self.line_no if line_no is None else line_no,
                          expected=self.expected, actual=self.actual,
                          source=self.source if source is None else source)


class ExportIOError(GradeDistError):
    def __init__(self, path, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


def format_path(path: Sequence) -> str:
    """['a', 0, 'b'] -> 'a[0].b'"""
    out = ""
    for seg in path:
        if isinstance(seg, int):
            out += f"[{seg}]"
        else:
            out += ("." if out else "") + str(seg)
    return out
