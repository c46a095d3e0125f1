# tests/conftest.py
import json

import pytest
import requests

from gradedist import config
from gradedist.app import create_app
from gradedist.scripts import ingest_grades

SESSION_ID = "4F1C2D0A9B-0:1"
SHEET_DOC_ID = "{ABC-123-SHEET}"
RESULT_KEY = "res-key-42"

EMBED_CONFIG = json.dumps({"sessionid": SESSION_ID, "sheetId": "External dashboard-Crosstab"})
EMBED_HTML = f"""
<html><body>
<textarea id="tsConfigContainer">{EMBED_CONFIG}</textarea>
</body></html>
"""

DIALOG_JSON = {
    "vqlCmdResponse": {"layoutStatus": {"applicationPresModel": {"presentationLayerNotification": [
        {"presModelHolder": {"genExportCrosstabOptionsDialogPresModel": {
            "thumbnailSheetPickerItems": [{"sheetdocId": SHEET_DOC_ID}]
        }}}
    ]}}}
}

EXPORT_JSON = {
    "vqlCmdResponse": {"cmdResultList": [
        {"commandReturn": {"exportResult": {"resultKey": RESULT_KEY}}}
    ]}
}

RAW_HEADER = "Semester\tSection\tDepartment\tDepartment Code\tCourse Nbr\tCourse Title\tCourse Full Title\tLetter Grade\tCount of letter grade"


def raw_export_bytes(lines, bom=True):
    """Build a raw export the way the dashboard serves it: UTF-16LE with a header line."""
    text = "\r\n".join([RAW_HEADER] + list(lines)) + "\r\n"
    data = text.encode("utf-16-le")
    return (b"\xff\xfe" + data) if bom else data


# ------------------------------
# Fake HTTP layer
# ------------------------------
class FakeResponse:
    def __init__(self, text="", content=None, status_code=200):
        self.text = text
        self.content = content if content is not None else text.encode("utf-8")
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")


class FakeHttp:
    """Stands in for requests.Session. Routes by URL fragment; records every call in order."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def _dispatch(self, method, url, kwargs):
        self.calls.append((method, url, kwargs))
        for fragment, resp in self.routes.items():
            if fragment in url:
                if isinstance(resp, Exception):
                    raise resp
                return resp
        raise AssertionError(f"unexpected {method.upper()} {url}")

    def get(self, url, **kwargs):
        return self._dispatch("get", url, kwargs)

    def post(self, url, **kwargs):
        return self._dispatch("post", url, kwargs)

    def commands(self):
        """Short names of the calls made, in order."""
        out = []
        for method, url, _ in self.calls:
            if "/views/" in url:
                out.append("embed")
            elif "bootstrapSession" in url:
                out.append("bootstrap")
            elif "tempfile" in url:
                out.append("download")
            else:
                out.append(url.split("/commands/")[-1])
        return out


def default_routes(download=b"raw-bytes"):
    # more specific fragments first
    return {
        "/views/": FakeResponse(text=EMBED_HTML),
        "bootstrapSession": FakeResponse(),
        "categorical-filter-by-index": FakeResponse(text="{}"),
        "categorical-filter": FakeResponse(text="{}"),
        "set-parameter-value": FakeResponse(text="{}"),
        "export-crosstab-server-dialog": FakeResponse(text=json.dumps(DIALOG_JSON)),
        "export-crosstab-to-csvserver": FakeResponse(text=json.dumps(EXPORT_JSON)),
        "tempfile": FakeResponse(content=download),
    }


@pytest.fixture
def fake_http():
    return FakeHttp(default_routes())


# ------------------------------
# Loaded database + Flask app
# ------------------------------
AGG_HEADER = "\t".join(config.OUTPUT_COLUMNS)

AGG_2021 = [
    "Fall 2021\t10\tMathematics\tM\t301\tCalc I\tM-301: CALC I, Sec 10\t25\t3\t0\t4\t0\t0\t1\t0\t0\t0\t0\t2\t0",
    "Fall 2021\t11\tMathematics\tM\t302\tCalc II\tM-302: CALC II, Sec 11\t10\t0\t5\t0\t0\t0\t0\t0\t0\t0\t0\t0\t1",
    "Fall 2021\t5\tComputer Science\tC S\t312\tIntro Prog\tC S-312: INTRO PROG, Sec 5\t40\t10\t0\t0\t0\t0\t0\t0\t0\t0\t0\t3\t0",
]


@pytest.fixture
def loaded_db(tmp_path, monkeypatch):
    processed = tmp_path / "processed"
    processed.mkdir()
    (processed / "grade_distributions_2021-2022.csv").write_text(
        "\n".join([AGG_HEADER] + AGG_2021) + "\n", encoding="utf-8")
    (processed / "grade_distributions_2020-2021.csv").write_text(AGG_HEADER + "\n", encoding="utf-8")

    db_path = tmp_path / "grade_distributions.db"
    ingest_grades.ingest_directory(processed, db_path)
    monkeypatch.setattr(config, "DB_PATH", db_path)
    return db_path


@pytest.fixture
def app(loaded_db):
    """Return a Flask app instance for testing."""
    flask_app = create_app()
    flask_app.config.update({"TESTING": True})
    yield flask_app


@pytest.fixture
def client(app):
    return app.test_client()


# ------------------------------
# Markers for pytest
# ------------------------------
def pytest_configure(config):
    config.addinivalue_line("markers", "protocol: dashboard session client and export orchestrator")
    config.addinivalue_line("markers", "parse: row parsing and aggregation")
    config.addinivalue_line("markers", "db: sqlite loader")
    config.addinivalue_line("markers", "web: Flask query API")
    config.addinivalue_line("markers", "cli: command line entry point")
