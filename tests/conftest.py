"""Shared fixtures for the ags2sql test suite.

HTTP is faked by patching ``requests.post`` in the source module with a
``ScriptedService`` that answers service-info and query requests from
canned payloads and records every call it receives.
"""

from __future__ import annotations

import json
import os
from collections.abc import Iterator, Sequence
from typing import Any, Optional
from unittest.mock import Mock, patch

import pytest

from ags2sql.types import ServiceSession

SERVICE_URL = "https://gis.example.com/arcgis/rest/services/Kadaster/MapServer"
TOKEN_URL = "https://gis.example.com/arcgis/tokens/generateToken"

ENV_VARS = (
    "AGS_USERNAME", "AGS_PASSWORD", "AGSUSER", "AGSPASSWORD",
    "DB_USERNAME", "DB_PASSWORD", "PGUSER", "PGPASSWORD",
    "AGS_REQUEST_TIMEOUT", "ENVIRONMENT",
)


# ---------------------------------------------------------------------------
# Payload builders
# ---------------------------------------------------------------------------


def oid_field(name: str = "objectid") -> dict[str, str]:
    return {"name": name, "type": "esriFieldTypeOID"}


def string_field(name: str) -> dict[str, str]:
    return {"name": name, "type": "esriFieldTypeString"}


def query_page(
    rows: Sequence[dict[str, Any]],
    fields: Optional[Sequence[dict[str, str]]] = None,
    exceeded: Optional[bool] = None,
) -> dict[str, Any]:
    """Build a /query response body."""
    page: dict[str, Any] = {
        "fields": list(fields) if fields is not None else [oid_field(), string_field("naam")],
        "features": [{"attributes": row} for row in rows],
    }
    if exceeded is not None:
        page["exceededTransferLimit"] = exceeded
    return page


def numbered_rows(start: int, count: int) -> list[dict[str, Any]]:
    return [{"objectid": i, "naam": f"perceel {i}"} for i in range(start, start + count)]


def make_response(body: Any) -> Mock:
    """Fake requests.Response; dict bodies are JSON encoded, strings sent as-is."""
    text = body if isinstance(body, str) else json.dumps(body)
    return Mock(text=text, status_code=200)


# ---------------------------------------------------------------------------
# Fake service
# ---------------------------------------------------------------------------


class ScriptedService:
    """Callable stand-in for ``requests.post`` against one feature service."""

    def __init__(
        self,
        tables: Sequence[dict[str, Any]] = (),
        pages: Optional[dict[int, list[Any]]] = None,
        service_url: str = SERVICE_URL,
        token_body: Any = None,
    ):
        self.service_url = service_url
        self.service_info: Any = {"currentVersion": 10.91, "tables": list(tables)}
        self.pages = {table_id: list(bodies) for table_id, bodies in (pages or {}).items()}
        self.token_body = token_body if token_body is not None else {"token": "tok-123", "expires": 0}
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def __call__(self, url: str, data: Optional[dict[str, Any]] = None, **kwargs: Any) -> Mock:
        self.calls.append((url, dict(data or {})))
        if url == TOKEN_URL:
            return make_response(self.token_body)
        if url == self.service_url:
            return make_response(self.service_info)
        prefix = f"{self.service_url}/"
        if url.startswith(prefix) and url.endswith("/query"):
            table_id = int(url[len(prefix):-len("/query")])
            return make_response(self.pages[table_id].pop(0))
        raise AssertionError(f"Unexpected request to {url}")

    def query_calls(self, table_id: Optional[int] = None) -> list[dict[str, Any]]:
        suffix = f"/{table_id}/query" if table_id is not None else "/query"
        return [data for url, data in self.calls if url.endswith(suffix)]

    def offsets(self, table_id: int) -> list[int]:
        return [int(data["resultOffset"]) for data in self.query_calls(table_id)]


class RecordingExecutor:
    """Executor that records statements instead of running them."""

    paramstyle = "qmark"

    def __init__(self) -> None:
        self.statements: list[tuple[str, tuple[Any, ...]]] = []
        self.closed = False

    def execute(self, statement: str, parameters: Sequence[Any] = ()) -> None:
        self.statements.append((statement, tuple(parameters)))

    def close(self) -> None:
        self.closed = True

    @property
    def inserts(self) -> list[tuple[Any, ...]]:
        return [params for sql, params in self.statements if sql.startswith("insert")]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Clear credential variables; undo anything .env loading adds."""
    with patch.dict(os.environ):
        for name in ENV_VARS:
            monkeypatch.delenv(name, raising=False)
        yield


@pytest.fixture()
def env_file(tmp_path) -> Any:
    """Empty .env file so Config never picks up a developer's real one."""
    path = tmp_path / ".env"
    path.write_text("", encoding="utf-8")
    return path


@pytest.fixture()
def session() -> ServiceSession:
    return ServiceSession(base_url=SERVICE_URL)


@pytest.fixture()
def recording_executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture()
def patch_post():
    """Install a ScriptedService as requests.post for the source module."""
    def _install(service: ScriptedService):
        patcher = patch("ags2sql.pipeline.source.requests.post", side_effect=service)
        mocked = patcher.start()
        installed.append(patcher)
        return mocked

    installed: list[Any] = []
    yield _install
    for patcher in installed:
        patcher.stop()
