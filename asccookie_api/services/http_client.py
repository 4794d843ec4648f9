"""``requests`` session bound to one account's persistent cookie namespace."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlencode

import requests

from . import constants
from .cookie_store import CookieStore
from .models import Cookie

logger = logging.getLogger(__name__)

ResponseFormatJSON = "json"
ResponseFormatRaw = "raw"


class HTTPClientResponseError(RuntimeError):
    """Raised when a response body does not match the requested format."""

    def __init__(self, message: str, *, status_code: int, body: bytes) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class Payload:
    content_type = "application/octet-stream"

    def __init__(self, content: Mapping[str, Any]) -> None:
        self._content = dict(content)

    def serialize(self) -> bytes:
        raise NotImplementedError


class JSONPayload(Payload):
    content_type = "application/json"

    def serialize(self) -> bytes:
        return json.dumps(self._content).encode("utf-8")


class FormURLEncodedPayload(Payload):
    content_type = "application/x-www-form-urlencoded"

    def serialize(self) -> bytes:
        return urlencode(list(self._content.items()), doseq=True).encode("utf-8")


@dataclass(slots=True)
class HTTPRequest:
    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    payload: Optional[Payload] = None
    response_format: str = ResponseFormatJSON
    follow_redirects: bool = True

    def prepare(self) -> Tuple[Dict[str, str], Optional[bytes]]:
        headers = dict(self.headers)
        if self.payload is None:
            return headers, None
        if not any(key.lower() == "content-type" for key in headers):
            headers["Content-Type"] = self.payload.content_type
        return headers, self.payload.serialize()


@dataclass(slots=True)
class HTTPResult:
    status_code: int
    data: Any
    cookies: List[Cookie] = field(default_factory=list)


class HTTPClient:
    """Sends requests with one account's cookies and writes new ones back.

    Cookies set by a response are persisted before :meth:`send` returns, so
    another process opening the same account sees them immediately.
    """

    def __init__(
        self,
        cookie_store: CookieStore,
        verify: bool | str = True,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._cookie_store = cookie_store
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", constants.DEFAULT_USER_AGENT)
        self.session.verify = verify
        cookie_store.attach_to(self.session)

    def send(self, request: HTTPRequest) -> HTTPResult:
        headers, body = request.prepare()
        response = self.raw_request(
            request.method,
            request.url,
            headers=headers,
            data=body,
            allow_redirects=request.follow_redirects,
        )
        return HTTPResult(
            status_code=response.status_code,
            data=self._parse(response, request.response_format),
            cookies=self._cookie_store.storage.cookies(request.url),
        )

    def raw_request(self, method: str, url: str, **kwargs) -> requests.Response:
        response = self.session.request(method=method, url=url, **kwargs)
        logger.debug("HTTP %s %s %s", response.status_code, method, url)
        self._cookie_store.save()
        return response

    def _parse(self, response: requests.Response, response_format: str) -> Any:
        if 300 <= response.status_code < 400:
            return {}
        if response_format == ResponseFormatRaw:
            return response.content
        if response_format != ResponseFormatJSON:
            raise HTTPClientResponseError(
                f"Unsupported response format: {response_format}",
                status_code=response.status_code,
                body=response.content,
            )
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise HTTPClientResponseError(
                "Failed to parse server response",
                status_code=response.status_code,
                body=response.content,
            ) from exc
