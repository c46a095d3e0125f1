"""
Client for the grade distribution dashboard's server-side session.

The dashboard keeps all filter state on the server, keyed by a session id,
so the calls below are strictly ordered:

    session = client.acquire_session()
    client.bootstrap(session)
    client.apply_filter_all(session, GROUPING_FIELD)
    client.apply_filter_all(session, COURSE_PREFIX_FIELD)
    client.set_expanded(session)
    for each period:
        client.apply_filter_index(session, PERIOD_FIELD, index)
        sheet_doc_id = client.request_export(session)
        result_key = client.start_export(session, sheet_doc_id)
        data = client.download(session, result_key)

The client holds no state of its own besides the HTTP session; every value a
call depends on is passed in explicitly.
"""

from __future__ import annotations

import json
from typing import Any, Optional, Sequence

import requests
from bs4 import BeautifulSoup

from .. import config
from ..errors import ProtocolError, TransportError

SHEET_DOC_ID_PATH = (
    "vqlCmdResponse", "layoutStatus", "applicationPresModel",
    "presentationLayerNotification", 0, "presModelHolder",
    "genExportCrosstabOptionsDialogPresModel", "thumbnailSheetPickerItems", 0, "sheetdocId",
)
RESULT_KEY_PATH = (
    "vqlCmdResponse", "cmdResultList", 0, "commandReturn", "exportResult", "resultKey",
)


# ---------- JSON helpers ----------
def walk_json(doc: Any, path: Sequence) -> Any:
    """
    Follow `path` (dict keys and list indices) into `doc`.
    Raises ProtocolError(unexpected_shape) naming the first segment that is missing.
    """
    node = doc
    for depth, seg in enumerate(path):
        walked = list(path[:depth + 1])
        if isinstance(seg, int):
            if not isinstance(node, list) or seg >= len(node):
                raise ProtocolError(ProtocolError.UNEXPECTED_SHAPE, f"missing index {seg}", walked)
        elif not isinstance(node, dict) or seg not in node:
            raise ProtocolError(ProtocolError.UNEXPECTED_SHAPE, f"missing key {seg!r}", walked)
        node = node[seg]
    return node


def walk_json_str(doc: Any, path: Sequence) -> str:
    value = walk_json(doc, path)
    if not isinstance(value, str):
        raise ProtocolError(ProtocolError.UNEXPECTED_SHAPE,
                            f"expected a string, got {type(value).__name__}", list(path))
    return value


def load_json(text: str, what: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as e:
        raise ProtocolError(ProtocolError.MALFORMED_JSON, f"{what}: {e}") from e


def extract_session_id(html: str) -> str:
    """Pull `sessionid` out of the JSON blob the embed page stores in #tsConfigContainer."""
    soup = BeautifulSoup(html, "html.parser")
    el = soup.find(id=config.CONFIG_ELEMENT_ID)
    if el is None:
        raise ProtocolError(ProtocolError.MISSING_ELEMENT, f"#{config.CONFIG_ELEMENT_ID} not found on embed page")

    # textarea in the live page; fall back to the value attribute
    blob = el.get_text() or el.get("value") or ""
    cfg = load_json(blob, f"#{config.CONFIG_ELEMENT_ID}")

    session_id = cfg.get("sessionid") if isinstance(cfg, dict) else None
    if not isinstance(session_id, str) or not session_id:
        raise ProtocolError(ProtocolError.MISSING_FIELD, "sessionid missing from dashboard config")
    return session_id


def global_field_name(field: str) -> str:
    return f"{config.DATASOURCE}.[none:{field}:nk]"


def visual_id() -> str:
    return json.dumps({"worksheet": config.WORKSHEET, "dashboard": config.SHEET_ID}, separators=(",", ":"))


def multipart(**fields) -> dict:
    """Plain text fields encoded as multipart/form-data by requests."""
    return {name: (None, str(value)) for name, value in fields.items()}


# ---------- client ----------
class DashboardClient:
    def __init__(self, http: Optional[requests.Session] = None,
                 base_url: str = config.VIZQL_BASE,
                 embed_url: str = config.EMBED_URL,
                 timeout: float = config.REQUEST_TIMEOUT):
        if http is None:
            http = requests.Session()
            http.headers.update({"User-Agent": config.USER_AGENT})
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.embed_url = embed_url
        self.timeout = timeout

    def _command_url(self, session_id: str, command: str) -> str:
        return f"{self.base_url}/sessions/{session_id}/commands/{command}"

    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            resp = getattr(self.http, method)(url, timeout=self.timeout, **kwargs)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise TransportError(url, str(e)) from e
        return resp

    # 1
    def acquire_session(self) -> str:
        resp = self._send("get", self.embed_url)
        return extract_session_id(resp.text)

    # 2
    def bootstrap(self, session_id: str) -> None:
        self._send(
            "post",
            f"{self.base_url}/bootstrapSession/sessions/{session_id}",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            data={"sheet_id": config.SHEET_ID},
        )

    # 3
    def apply_filter_all(self, session_id: str, field: str) -> None:
        self._send(
            "post",
            self._command_url(session_id, "tabdoc/categorical-filter"),
            files=multipart(
                visualIdPresModel=visual_id(),
                membershipTarget="filter",
                globalFieldName=global_field_name(field),
                filterValues="[]",
                filterUpdateType="filter-all",
            ),
        )

    # 4
    def apply_filter_index(self, session_id: str, field: str, index: int) -> None:
        if index < 0:
            raise ValueError(f"period index must be >= 0, got {index}")
        self._send(
            "post",
            self._command_url(session_id, "tabdoc/categorical-filter-by-index"),
            files=multipart(
                visualIdPresModel=visual_id(),
                membershipTarget="filter",
                globalFieldName=global_field_name(field),
                filterIndices=f"[{index}]",
                filterUpdateType="filter-replace",
            ),
        )

    # 5
    def set_expanded(self, session_id: str) -> None:
        self._send(
            "post",
            self._command_url(session_id, "tabdoc/set-parameter-value"),
            files=multipart(
                globalFieldName=config.EXPANDED_PARAMETER,
                valueString=config.EXPANDED_VALUE,
                useUsLocale="false",
            ),
        )

    # 6
    def request_export(self, session_id: str) -> str:
        resp = self._send(
            "post",
            self._command_url(session_id, "tabsrv/export-crosstab-server-dialog"),
            files=multipart(thumbnailUris=config.THUMBNAIL_URIS),
        )
        return walk_json_str(load_json(resp.text, "export dialog response"), SHEET_DOC_ID_PATH)

    # 7
    def start_export(self, session_id: str, sheet_doc_id: str) -> str:
        resp = self._send(
            "post",
            self._command_url(session_id, "tabsrv/export-crosstab-to-csvserver"),
            files=multipart(sheetdocId=sheet_doc_id, useTabs="false", sendNotifications="false"),
        )
        return walk_json_str(load_json(resp.text, "export response"), RESULT_KEY_PATH)

    # 8
    def download(self, session_id: str, result_key: str) -> bytes:
        resp = self._send(
            "get",
            f"{self.base_url}/tempfile/sessions/{session_id}/",
            params={"key": result_key},
        )
        return resp.content
