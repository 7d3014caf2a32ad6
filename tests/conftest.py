from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

import httpx
import pytest

from fragmentctl.client import FragmentsClient

API_URL = "http://fragments.test"


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("FRAGMENTS_CONFIG", str(tmp_path / "config.json"))
    for name in (
        "FRAGMENTS_API_URL",
        "FRAGMENTS_USERNAME",
        "FRAGMENTS_PASSWORD",
        "FRAGMENTS_TOKEN",
        "FRAGMENTS_TIMEOUT_S",
        "FRAGMENTS_LOG_LEVEL",
        "FRAGMENTS_LOG_FILE",
    ):
        monkeypatch.delenv(name, raising=False)


@dataclass
class StoredFragment:
    type: str
    data: bytes


@dataclass
class FakeFragmentsServer:
    """In-memory stand-in for the fragments API, served through MockTransport."""

    fragments: dict[str, StoredFragment] = field(default_factory=dict)
    requests: list[tuple[str, str]] = field(default_factory=list)
    bare_ids: bool = False
    unsupported: set[str] = field(default_factory=set)
    fail_status: dict[str, int] = field(default_factory=dict)
    _next_id: int = 0

    def add(self, content_type: str, data: str | bytes) -> str:
        self._next_id += 1
        fragment_id = f"frag-{self._next_id}"
        raw = data.encode("utf-8") if isinstance(data, str) else data
        self.fragments[fragment_id] = StoredFragment(content_type, raw)
        return fragment_id

    def count(self, method: str, path: str | None = None) -> int:
        return sum(
            1 for m, p in self.requests if m == method and (path is None or p == path)
        )

    def _meta(self, fragment_id: str) -> dict[str, object]:
        stored = self.fragments[fragment_id]
        return {
            "id": fragment_id,
            "ownerId": "owner",
            "type": stored.type,
            "size": len(stored.data),
            "created": "2026-01-01T00:00:00.000Z",
            "updated": "2026-01-01T00:00:00.000Z",
        }

    def _listing(self) -> list[object]:
        if self.bare_ids:
            return list(self.fragments)
        return [self._meta(fragment_id) for fragment_id in self.fragments]

    def _content(self, stored: StoredFragment) -> httpx.Response:
        header = stored.type
        if header.startswith("text/") or header == "application/json":
            header = f"{header}; charset=utf-8"
        return httpx.Response(200, headers={"Content-Type": header}, content=stored.data)

    def _convert(self, fragment_id: str, extension: str) -> httpx.Response:
        stored = self.fragments[fragment_id]
        if extension in self.unsupported:
            return httpx.Response(415)
        if stored.type == "text/markdown" and extension == "html":
            html = f"<p>{stored.data.decode('utf-8').lstrip('# ')}</p>"
            return httpx.Response(
                200, headers={"Content-Type": "text/html; charset=utf-8"}, content=html
            )
        if stored.type.startswith("image/") and extension == "jpg":
            return httpx.Response(
                200, headers={"Content-Type": "image/jpeg"}, content=b"\xff\xd8jpeg"
            )
        return httpx.Response(415)

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append((request.method, path))
        if "authorization" not in request.headers:
            return httpx.Response(401)
        forced = self.fail_status.get(f"{request.method} {path}")
        if forced is not None:
            return httpx.Response(forced)

        if path == "/v1/fragments":
            if request.method == "GET":
                return httpx.Response(200, json={"status": "ok", "fragments": self._listing()})
            if request.method == "POST":
                content_type = request.headers.get("content-type", "")
                fragment_id = self.add(content_type, request.content)
                return httpx.Response(
                    201,
                    json={"status": "ok", "fragment": self._meta(fragment_id)},
                    headers={"Location": f"{API_URL}/v1/fragments/{fragment_id}"},
                )
            return httpx.Response(405)

        name = path.removeprefix("/v1/fragments/")
        fragment_id, _, extension = name.partition(".")
        if fragment_id not in self.fragments:
            return httpx.Response(404, json={"status": "error"})
        if request.method == "GET":
            if extension:
                return self._convert(fragment_id, extension)
            return self._content(self.fragments[fragment_id])
        if request.method == "PUT":
            stored = self.fragments[fragment_id]
            if request.headers.get("content-type") != stored.type:
                return httpx.Response(400)
            stored.data = request.content
            return httpx.Response(200, json={"status": "ok", "fragment": self._meta(fragment_id)})
        if request.method == "DELETE":
            del self.fragments[fragment_id]
            return httpx.Response(200, json={"status": "ok"})
        return httpx.Response(405)

    def listing_ids(self) -> list[str]:
        return list(self.fragments)

    def stored_json(self, fragment_id: str) -> object:
        return json.loads(self.fragments[fragment_id].data)


@pytest.fixture
def server() -> FakeFragmentsServer:
    return FakeFragmentsServer()


@pytest.fixture
def client(server: FakeFragmentsServer) -> FragmentsClient:
    return FragmentsClient(API_URL, transport=httpx.MockTransport(server.handle))
