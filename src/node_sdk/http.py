"""
Outbound HTTP for nodes and proxies.

All vendor traffic is sent through ``requests.request`` with a bounded
timeout. Nothing is retried: a timeout becomes NodeTimeoutError, any other
transport failure becomes HttpApiError.
"""

from __future__ import annotations

import json as jsonlib
import logging
from typing import Any, Dict, Optional, Tuple, Union

import requests
from requests.exceptions import RequestException, Timeout


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30

Params = Dict[str, Any]
Body = Union[Dict[str, Any], str, bytes]


class NodeTimeoutError(Exception):
    """The remote side did not answer within ``timeout`` seconds."""

    def __init__(self, message: str, timeout: float, url: str):
        super().__init__(message)
        self.timeout = timeout
        self.url = url


class HttpApiError(Exception):
    """A request that could not be sent, or a non-2xx status the caller rejected."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        url: Optional[str] = None,
        method: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body
        self.url = url
        self.method = method


def _is_absolute(url: str) -> bool:
    return url.startswith(("http://", "https://"))


def _compact(params: Params) -> Params:
    return {key: value for key, value in params.items() if value is not None}


class HttpResponse:
    """Read-only view of a ``requests.Response``."""

    def __init__(self, response: requests.Response):
        self.raw = response
        self.status_code: int = response.status_code
        self.reason: str = response.reason or ""
        self.headers: Dict[str, str] = dict(response.headers)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.raw.text

    def json(self) -> Any:
        return self.raw.json()

    def json_or_text(self) -> Any:
        """Decoded JSON, the raw text for non-JSON bodies, None for an empty body."""
        if not self.text:
            return None
        try:
            return jsonlib.loads(self.text)
        except ValueError:
            return self.text

    def raise_for_status(self) -> None:
        if self.ok:
            return
        request = self.raw.request
        raise HttpApiError(
            f"HTTP {self.status_code}: {self.reason}",
            status_code=self.status_code,
            response_body=self.text[:1000] or None,
            url=str(self.raw.url),
            method=request.method if request is not None else None,
        )


class HttpClient:
    """
    Small requests wrapper bound to one API.

    ``default_params`` is for credentials passed in the query string
    (Trello key/token); ``auth`` is a basic-auth pair; ``bearer_token``
    fills the Authorization header.

        client = HttpClient("https://api.clickup.com/api/v2",
                            default_headers={"Authorization": token})
        teams = client.get("/team").json()
    """

    def __init__(
        self,
        base_url: str = "",
        default_headers: Optional[Dict[str, str]] = None,
        timeout: float = DEFAULT_TIMEOUT,
        auth: Optional[Tuple[str, str]] = None,
        bearer_token: Optional[str] = None,
        default_params: Optional[Params] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.auth = auth
        self.params: Params = dict(default_params or {})
        self.headers: Dict[str, str] = dict(default_headers or {})
        if bearer_token:
            self.headers["Authorization"] = f"Bearer {bearer_token}"

    def url_for(self, endpoint: str) -> str:
        if not self.base_url or _is_absolute(endpoint):
            return endpoint
        return self.base_url + endpoint

    def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Params] = None,
        json: Any = None,
        data: Optional[Body] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> HttpResponse:
        """
        Send one request.

        ``endpoint`` is appended to base_url unless it is already absolute.
        Query params with a None value are left out.

        Raises:
            NodeTimeoutError: No answer within the timeout
            HttpApiError: The request could not be sent
        """
        method = method.upper()
        url = self.url_for(endpoint)
        limit = timeout or self.timeout
        query = _compact({**self.params, **(params or {})})

        logger.debug("HTTP %s %s", method, url)
        try:
            response = requests.request(
                method=method,
                url=url,
                params=query or None,
                json=json,
                data=data,
                headers={**self.headers, **(headers or {})},
                auth=self.auth,
                timeout=limit,
            )
        except Timeout as e:
            raise NodeTimeoutError(f"Request timed out after {limit}s", limit, url) from e
        except RequestException as e:
            raise HttpApiError(f"Request failed: {e}", url=url, method=method) from e
        return HttpResponse(response)

    def get(self, endpoint: str, params: Optional[Params] = None, **kwargs: Any) -> HttpResponse:
        return self.request("GET", endpoint, params=params, **kwargs)

    def post(self, endpoint: str, json: Any = None, **kwargs: Any) -> HttpResponse:
        return self.request("POST", endpoint, json=json, **kwargs)

    def put(self, endpoint: str, json: Any = None, **kwargs: Any) -> HttpResponse:
        return self.request("PUT", endpoint, json=json, **kwargs)

    def delete(self, endpoint: str, **kwargs: Any) -> HttpResponse:
        return self.request("DELETE", endpoint, **kwargs)
