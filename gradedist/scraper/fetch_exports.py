"""
Download one raw crosstab export per academic-year period.

Fail-fast: the first transport/protocol/IO error aborts the run. Output files
are overwritten by name, so re-running the whole thing is always safe.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Optional

from .. import config
from ..errors import ExportIOError
from .dashboard_client import DashboardClient


def period_label(index: int) -> str:
    """0 -> '2010-2011'"""
    start = config.FIRST_ACADEMIC_YEAR + index
    return f"{start}-{start + 1}"


def export_filename(index: int) -> str:
    return f"grade_distributions_{period_label(index)}.csv"


def prepare_session(client: DashboardClient, verbose: int = 0) -> str:
    """Open a session and apply the run-wide filters. Returns the session id."""
    session_id = client.acquire_session()
    if verbose:
        print(f"Session ID: {session_id}")

    client.bootstrap(session_id)
    client.apply_filter_all(session_id, config.GROUPING_FIELD)
    client.apply_filter_all(session_id, config.COURSE_PREFIX_FIELD)
    client.set_expanded(session_id)
    return session_id


def export_period(client: DashboardClient, session_id: str, index: int, verbose: int = 0) -> bytes:
    client.apply_filter_index(session_id, config.PERIOD_FIELD, index)

    sheet_doc_id = client.request_export(session_id)
    if verbose:
        print(f"Sheet Doc ID: {sheet_doc_id}")
    result_key = client.start_export(session_id, sheet_doc_id)
    if verbose:
        print(f"Result Key: {result_key}")
    return client.download(session_id, result_key)


def write_export(data: bytes, path: Path) -> None:
    """Write to a temp sibling, then rename over the target; a failed write leaves no partial .csv."""
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        with open(tmp_path, "wb") as f:
            f.write(data)
        os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise ExportIOError(path, str(e)) from e


def run(period_indices: Iterable[int], output_dir, client: Optional[DashboardClient] = None,
        verbose: int = 0) -> int:
    """
    Export every period in `period_indices` (in order) into `output_dir`.
    Returns the number of files written.
    """
    indices = list(period_indices)
    output_dir = Path(output_dir)
    try:
        os.makedirs(output_dir, exist_ok=True)
    except OSError as e:
        raise ExportIOError(output_dir, str(e)) from e

    client = client or DashboardClient()

    print("📚 Opening dashboard session...")
    session_id = prepare_session(client, verbose=verbose)

    written = 0
    for index in indices:
        filepath = output_dir / export_filename(index)
        print(f"⬇️  Exporting {period_label(index)} -> {filepath}")
        data = export_period(client, session_id, index, verbose=verbose)
        write_export(data, filepath)
        written += 1

    print(f"✅ {written} raw export(s) saved to {output_dir}")
    return written


if __name__ == "__main__":
    run(config.DEFAULT_PERIODS, config.RAW_DIR)
