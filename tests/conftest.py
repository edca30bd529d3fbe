"""Shared fixtures: a scripted stand-in for the FileMaker Data API."""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from fm_browser.core.config import Config
from fm_browser.services.filemaker_service import FileMakerService, create_service


def make_config(**overrides: Any) -> Config:
    values: Dict[str, Any] = {
        "FM_HOST": "fm.example.com",
        "FM_DATABASE": "Sales",
        "FM_USER": "admin",
        "FM_PASSWORD": "secret",
        "FM_API_VERSION": "vLatest",
        "FM_VERIFY_SSL": True,
        "FM_TIMEOUT_SECONDS": 5.0,
        "FM_PROXY_INJECT_AUTH": False,
        "ENVIRONMENT": "production",
        "CORS_ALLOWED_ORIGINS_ENV": "http://localhost:5173",
    }
    values.update(overrides)
    return Config(**values)


def envelope(records: List[Dict[str, Any]], total: Optional[int] = None, found: Optional[int] = None) -> Dict[str, Any]:
    data_info: Dict[str, Any] = {}
    if total is not None:
        data_info["totalRecordCount"] = total
    if found is not None:
        data_info["foundCount"] = found
    return {
        "response": {"data": records, "dataInfo": data_info},
        "messages": [{"code": "0", "message": "OK"}],
    }


def record(record_id: str, **fields: Any) -> Dict[str, Any]:
    return {"recordId": record_id, "modId": "1", "fieldData": fields, "portalData": {}}


NO_MATCH_BODY = {"response": {}, "messages": [{"code": "401", "message": "No records match the request"}]}

Responder = Callable[[httpx.Request], httpx.Response]


class FakeFileMaker:
    """Answers Data API requests from a small route table and records them."""

    TOKEN = "token-abc"

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.routes: List[Tuple[str, str, Responder]] = []
        self.session_calls = 0

    def on(self, method: str, path_suffix: str, status: int = 200, body: Any = None) -> "FakeFileMaker":
        def _respond(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, json=body)

        self.routes.insert(0, (method, path_suffix, _respond))
        return self

    def on_call(self, method: str, path_suffix: str, responder: Responder) -> "FakeFileMaker":
        self.routes.insert(0, (method, path_suffix, responder))
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.endswith("/sessions"):
            self.session_calls += 1
        for method, suffix, responder in self.routes:
            if request.method == method and path.endswith(suffix):
                return responder(request)
        if path.endswith("/sessions") and request.method == "POST":
            return httpx.Response(200, json={"response": {"token": self.TOKEN}, "messages": [{"code": "0"}]})
        return httpx.Response(500, json={"response": {}, "messages": [{"code": "105", "message": "Layout is missing"}]})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def data_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if not r.url.path.endswith("/sessions")]

    def last_json(self) -> Any:
        return json.loads(self.data_requests()[-1].content)


@pytest.fixture
def config() -> Config:
    return make_config()


@pytest.fixture
def fake_fm() -> FakeFileMaker:
    return FakeFileMaker()


@pytest.fixture
def service(config: Config, fake_fm: FakeFileMaker) -> FileMakerService:
    svc = create_service(config, transport=fake_fm.transport)
    yield svc
    svc.close()
