from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote

import httpx

from .media import is_textual, strip_parameters
from .results import (
    Content,
    ConvertResult,
    DeleteResult,
    Deleted,
    ListResult,
    NotFound,
    RawResult,
    Stored,
    StoreResult,
    TransportError,
    UnsupportedConversion,
)
from .types import Credentials, FragmentMeta, normalize_listing, parse_listing_entry, to_meta

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8080"


def build_base_url(address: str) -> str:
    trimmed = address.strip().rstrip("/")
    if not trimmed:
        return ""
    if "://" in trimmed:
        return trimmed
    return f"http://{trimmed}"


def _fragment_path(fragment_id: str, extension: str | None = None) -> str:
    path = f"/v1/fragments/{quote(fragment_id, safe='')}"
    if extension:
        path = f"{path}.{quote(extension.lstrip('.'), safe='')}"
    return path


def _error_from_response(response: httpx.Response) -> TransportError:
    return TransportError(status=response.status_code, reason=response.reason_phrase or "")


def _read_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


def _content_from_response(response: httpx.Response) -> Content:
    header = response.headers.get("content-type", "")
    if is_textual(header):
        body: str | bytes = response.text
    else:
        body = response.content
    return Content(content_type=header, body=body)


def _stored_from_response(response: httpx.Response) -> Stored:
    payload = _read_json(response)
    fragment: FragmentMeta | None = None
    if isinstance(payload, dict):
        entry = parse_listing_entry(payload.get("fragment"))
        if entry is not None:
            fragment = to_meta(entry)
    return Stored(fragment=fragment, location=response.headers.get("location"))


class FragmentsClient:
    """Async client for the fragments HTTP API.

    Every call returns a result value; HTTP and network failures never raise
    past this class. No local state is touched here.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        *,
        timeout_s: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = build_base_url(base_url) or DEFAULT_API_URL
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout_s,
            transport=transport,
        )

    async def __aenter__(self) -> FragmentsClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _send(
        self,
        method: str,
        path: str,
        credentials: Credentials,
        *,
        params: dict[str, str] | None = None,
        content_type: str | None = None,
        body: str | bytes | None = None,
    ) -> httpx.Response | TransportError:
        headers = credentials.auth_headers()
        if content_type is not None:
            headers["Content-Type"] = content_type
        if isinstance(body, str):
            body = body.encode("utf-8")
        try:
            response = await self._http.request(
                method, path, params=params, headers=headers, content=body
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "fragments request failed",
                extra={"method": method, "path": path, "error": str(exc)},
            )
            return TransportError(status=None, reason=f"{exc.__class__.__name__}: {exc}")
        logger.debug(
            "fragments response",
            extra={"method": method, "path": path, "status": response.status_code},
        )
        return response

    def _unexpected(self, method: str, path: str, response: httpx.Response) -> TransportError:
        error = _error_from_response(response)
        logger.warning(
            "fragments request returned an error status",
            extra={"method": method, "path": path, "status": error.status, "reason": error.reason},
        )
        return error

    async def list(self, credentials: Credentials) -> ListResult:
        path = "/v1/fragments"
        response = await self._send("GET", path, credentials, params={"expand": "1"})
        if isinstance(response, TransportError):
            return response
        if not response.is_success:
            return self._unexpected("GET", path, response)
        fragments = normalize_listing(_read_json(response))
        if fragments is None:
            logger.warning("malformed fragment list", extra={"status": response.status_code})
            return TransportError(status=response.status_code, reason="malformed fragment list")
        return fragments

    async def get_raw(self, credentials: Credentials, fragment_id: str) -> RawResult:
        path = _fragment_path(fragment_id)
        response = await self._send("GET", path, credentials)
        if isinstance(response, TransportError):
            return response
        if response.status_code == 404:
            return NotFound(fragment_id)
        if not response.is_success:
            return self._unexpected("GET", path, response)
        return _content_from_response(response)

    async def get_converted(
        self, credentials: Credentials, fragment_id: str, extension: str
    ) -> ConvertResult:
        path = _fragment_path(fragment_id, extension)
        response = await self._send("GET", path, credentials)
        if isinstance(response, TransportError):
            return response
        if response.status_code == 404:
            return NotFound(fragment_id)
        if response.status_code == 415:
            return UnsupportedConversion(fragment_id, extension)
        if not response.is_success:
            return self._unexpected("GET", path, response)
        return _content_from_response(response)

    async def create(
        self, credentials: Credentials, content_type: str, body: str | bytes
    ) -> StoreResult:
        path = "/v1/fragments"
        response = await self._send(
            "POST", path, credentials, content_type=content_type, body=body
        )
        if isinstance(response, TransportError):
            return response
        if not response.is_success:
            return self._unexpected("POST", path, response)
        stored = _stored_from_response(response)
        logger.info(
            "fragment created",
            extra={
                "fragment_id": stored.fragment.id if stored.fragment else None,
                "content_type": strip_parameters(content_type),
            },
        )
        return stored

    async def update(
        self, credentials: Credentials, fragment_id: str, content_type: str, body: str | bytes
    ) -> StoreResult:
        path = _fragment_path(fragment_id)
        response = await self._send(
            "PUT", path, credentials, content_type=content_type, body=body
        )
        if isinstance(response, TransportError):
            return response
        if not response.is_success:
            return self._unexpected("PUT", path, response)
        logger.info("fragment updated", extra={"fragment_id": fragment_id})
        return _stored_from_response(response)

    async def delete(self, credentials: Credentials, fragment_id: str) -> DeleteResult:
        path = _fragment_path(fragment_id)
        response = await self._send("DELETE", path, credentials)
        if isinstance(response, TransportError):
            return response
        if response.status_code == 404:
            return NotFound(fragment_id)
        if not response.is_success:
            return self._unexpected("DELETE", path, response)
        logger.info("fragment deleted", extra={"fragment_id": fragment_id})
        return Deleted(fragment_id)
