"""
Proxy functions - server-side handlers for vendor API calls.

A proxy receives ``{action, ...credentials, ...params}`` and answers with a
``ProxyResponse(status_code, payload)``. ``RestProxy`` implements the common
shape: check credentials, map the action to one HTTP request, call the
vendor once and map the answer onto ``{success, data|error}``.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from node_sdk import (
    HttpClient,
    HttpResponse,
    NodeValidationError,
    ProxyInvocationError,
    ProxyNotFoundError,
    parse_json_input,
)


logger = logging.getLogger(__name__)


@dataclass
class ProxyResponse:
    """HTTP status plus JSON payload returned by a proxy."""
    status_code: int
    payload: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class ProxyRequestError(Exception):
    """The request itself is unusable (missing credentials, unknown action, bad params)."""

    def __init__(self, message: str, status_code: int = 400, details: Any = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class ProxyFunction(ABC):
    """Base class for all proxy functions."""

    name: str = ""

    @abstractmethod
    def handle(self, body: Dict[str, Any]) -> ProxyResponse:
        """Serve one request body."""
        raise NotImplementedError

    def failure(self, status_code: int, error: str, details: Any = None) -> ProxyResponse:
        payload: Dict[str, Any] = {"success": False, "error": error}
        if details is not None:
            payload["details"] = details
        return ProxyResponse(status_code, payload)

    def __call__(self, body: Dict[str, Any]) -> ProxyResponse:
        """Serve a request, turning any unexpected exception into a 500."""
        try:
            return self.handle(body or {})
        except ProxyRequestError as e:
            return self.failure(e.status_code, e.message, e.details)
        except NodeValidationError as e:
            return self.failure(400, e.message)
        except Exception as e:
            logger.exception(f"{self.name} proxy error")
            return self.failure(500, str(e) or e.__class__.__name__)


# ==============================================================================
# REST proxies
# ==============================================================================

PathSpec = Union[str, Callable[[Dict[str, Any]], str]]
ParamsBuilder = Callable[[Dict[str, Any]], Any]


class _PathParams(dict):
    def __missing__(self, key: str) -> str:
        raise ProxyRequestError(f"{key} is required")


@dataclass
class ActionSpec:
    """
    How one action maps to a vendor request.

    ``path`` is a format string over the params (``/task/{taskId}``) or a
    callable. ``query`` and ``body`` are callables over the params.
    """
    method: Union[str, Callable[[Dict[str, Any]], str]]
    path: PathSpec
    query: Optional[ParamsBuilder] = None
    body: Optional[ParamsBuilder] = None
    base_url: Optional[str] = None


@dataclass
class ApiRequest:
    """A concrete vendor request."""
    method: str
    path: str
    query: Optional[Any] = None
    body: Any = None
    base_url: Optional[str] = None


def compact(values: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is None."""
    return {k: v for k, v in values.items() if v is not None}


def to_int(value: Any) -> Optional[int]:
    """Lenient integer parse of an id input; None when empty or not numeric."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return None


def parse_json_field(value: Any, field: str, default: Any = None) -> Any:
    """JSON-valued param; raises a 400 on bad JSON."""
    try:
        return parse_json_input(value, field, default)
    except NodeValidationError as e:
        raise ProxyRequestError(e.message) from e


def custom_call(endpoint_field: str = "endpoint", body_field: str = "body") -> ActionSpec:
    """Free-form call: method, endpoint and JSON body come from the params."""
    return ActionSpec(
        method=lambda p: str(p.get("method") or "GET").upper(),
        path=lambda p: p.get(endpoint_field) or "/",
        body=lambda p: parse_json_field(p.get(body_field), body_field),
    )


def split_csv(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    return [part.strip() for part in str(value or "").split(",") if part.strip()]


class RestProxy(ProxyFunction):
    """
    Proxy for a JSON REST API.

    Subclasses set ``base_url``, ``credential_fields``,
    ``missing_credentials`` and an ``actions`` table, and may override
    ``headers``, ``auth_params``, ``error_message`` and ``shape``.
    """

    base_url: str = ""
    credential_fields: Tuple[str, ...] = ()
    missing_credentials: str = "Credentials are required"
    actions: Dict[str, ActionSpec] = {}
    non_json_error: str = "API returned non-JSON response"
    timeout: float = 30

    def __init__(self, timeout: Optional[float] = None):
        if timeout is not None:
            self.timeout = timeout

    # ==== Hooks ====

    def check_credentials(self, body: Dict[str, Any]) -> None:
        if any(not body.get(name) for name in self.credential_fields):
            raise ProxyRequestError(self.missing_credentials)

    def params(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Action params: the body without credentials and action."""
        skip = {"action", *self.credential_fields}
        return {k: v for k, v in body.items() if k not in skip}

    def headers(self, body: Dict[str, Any]) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    def auth_params(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Query parameters carrying credentials."""
        return {}

    def resolve_base_url(self, body: Dict[str, Any]) -> str:
        return self.base_url

    def unknown_action(self, action: Any) -> ProxyRequestError:
        return ProxyRequestError(f"Unknown action: {action}")

    def build_request(self, action: str, params: Dict[str, Any], body: Dict[str, Any]) -> ApiRequest:
        spec = self.actions.get(action)
        if spec is None:
            raise self.unknown_action(action)

        if callable(spec.path):
            path = spec.path(params)
        else:
            path = spec.path.format_map(_PathParams({k: v for k, v in params.items() if v not in (None, "")}))

        return ApiRequest(
            method=spec.method(params) if callable(spec.method) else spec.method,
            path=path,
            query=spec.query(params) if spec.query else None,
            body=spec.body(params) if spec.body else None,
            base_url=spec.base_url,
        )

    def error_message(self, data: Any) -> Optional[str]:
        """Vendor error text from a non-2xx JSON body."""
        if isinstance(data, dict):
            return data.get("message") or data.get("error")
        return None

    def shape(self, action: str, params: Dict[str, Any], data: Any) -> Dict[str, Any]:
        """Success payload."""
        return {"success": True, "data": data}

    def non_json_response(self, response: HttpResponse) -> ProxyResponse:
        return self.failure(200, self.non_json_error, response.text[:200])

    def api_failure(self, data: Any, response: HttpResponse) -> ProxyResponse:
        logger.warning(f"{self.name} API error {response.status_code}")
        return self.failure(200, self.error_message(data) or "API request failed", data)

    # ==== Request cycle ====

    def client(self, body: Dict[str, Any], base_url: Optional[str] = None) -> HttpClient:
        return HttpClient(
            base_url=base_url or self.resolve_base_url(body),
            default_headers=self.headers(body),
            default_params=self.auth_params(body),
            timeout=self.timeout,
        )

    def send(self, client: HttpClient, request: ApiRequest) -> HttpResponse:
        payload = request.body if request.method.upper() != "GET" else None
        if isinstance(payload, str):
            return client.request(request.method, request.path, params=request.query, data=payload)
        return client.request(request.method, request.path, params=request.query, json=payload)

    def handle(self, body: Dict[str, Any]) -> ProxyResponse:
        self.check_credentials(body)

        action = body.get("action")
        params = self.params(body)
        request = self.build_request(action, params, body)

        logger.info(f"{self.name}: {request.method} {request.path}")
        response = self.send(self.client(body, request.base_url), request)

        data = self.decode(response)
        if data is _NOT_JSON:
            return self.non_json_response(response)

        if not response.ok:
            return self.api_failure(data, response)

        return self.success(action, params, data, response)

    def success(self, action: str, params: Dict[str, Any], data: Any, response: HttpResponse) -> ProxyResponse:
        return ProxyResponse(200, self.shape(action, params, data))

    @staticmethod
    def decode(response: HttpResponse) -> Any:
        text = response.text
        if not text or not text.strip():
            return {}
        try:
            return json.loads(text)
        except ValueError:
            return _NOT_JSON


_NOT_JSON = object()


# ==============================================================================
# Registry and invokers
# ==============================================================================

class ProxyRegistry:
    """Proxy functions by name."""

    def __init__(self, proxies: Optional[Iterable[ProxyFunction]] = None):
        self._proxies: Dict[str, ProxyFunction] = {}
        for proxy in proxies or []:
            self.register(proxy)

    def register(self, proxy: ProxyFunction, name: Optional[str] = None) -> None:
        self._proxies[name or proxy.name] = proxy

    def get(self, name: str) -> ProxyFunction:
        """
        Raises:
            ProxyNotFoundError: If no proxy has that name
        """
        proxy = self._proxies.get(name)
        if proxy is None:
            raise ProxyNotFoundError(name)
        return proxy

    def names(self) -> List[str]:
        return sorted(self._proxies)

    def invoke(self, name: str, body: Dict[str, Any]) -> ProxyResponse:
        return self.get(name)(body)

    def __contains__(self, name: str) -> bool:
        return name in self._proxies

    def __len__(self) -> int:
        return len(self._proxies)


class LocalProxyInvoker:
    """Runs proxies in-process; non-2xx answers raise ProxyInvocationError."""

    def __init__(self, registry: Optional[ProxyRegistry] = None):
        if registry is None:
            from .catalog import get_proxy_registry
            registry = get_proxy_registry()
        self.registry = registry

    def invoke(self, name: str, body: Dict[str, Any]) -> Dict[str, Any]:
        response = self.registry.invoke(name, body)
        if not response.ok:
            raise ProxyInvocationError(name, response.status_code, response.payload)
        return response.payload


__all__ = [
    "ActionSpec",
    "ApiRequest",
    "LocalProxyInvoker",
    "ProxyFunction",
    "ProxyRegistry",
    "ProxyRequestError",
    "ProxyResponse",
    "RestProxy",
    "compact",
    "custom_call",
    "parse_json_field",
    "split_csv",
    "to_int",
]
