"""Invoker for proxies hosted behind ``{base_url}/functions/v1/{name}``."""

from typing import Any

import httpx

from node_sdk import NodeTimeoutError, ProxyInvocationError, ProxyNotFoundError

from flowhub.observability import get_logger


logger = get_logger(__name__)


class HttpProxyInvoker:
    """
    POSTs proxy bodies to a remote function host.

    A 404 means the proxy does not exist there; any other non-2xx answer
    raises ProxyInvocationError carrying the decoded payload. Calls are not
    retried because vendor writes are not idempotent.
    """

    def __init__(
        self,
        base_url: str,
        service_key: str | None = None,
        timeout_s: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        self.timeout = httpx.Timeout(connect=5.0, read=timeout_s, write=5.0, pool=5.0)
        self.transport = transport

    def url_for(self, name: str) -> str:
        return f"{self.base_url}/functions/v1/{name}"

    def invoke(self, name: str, body: dict[str, Any]) -> Any:
        headers = {"Content-Type": "application/json"}
        if self.service_key:
            headers["Authorization"] = f"Bearer {self.service_key}"

        url = self.url_for(name)
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(url, json=body, headers=headers)
        except httpx.TimeoutException as e:
            raise NodeTimeoutError(f"Proxy {name} timed out", self.timeout.read, url) from e
        except httpx.HTTPError as e:
            raise ProxyInvocationError(name, 502, {"error": f"HTTP error: {e}"}) from e

        if response.status_code == 404:
            raise ProxyNotFoundError(name)

        try:
            payload = response.json()
        except ValueError:
            payload = {"error": response.text[:200]} if response.text else None

        if not response.is_success:
            logger.warning(f"Proxy {name} returned {response.status_code}", extra={"proxy": name})
            raise ProxyInvocationError(name, response.status_code, payload)

        return payload
