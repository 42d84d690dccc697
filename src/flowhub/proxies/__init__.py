"""Proxy functions: server-side vendor API calls invoked by nodes."""
from flowhub.proxies.base import (
    ActionSpec,
    LocalProxyInvoker,
    ProxyFunction,
    ProxyRegistry,
    ProxyRequestError,
    ProxyResponse,
    RestProxy,
)
from flowhub.proxies.catalog import (
    build_proxy_registry,
    get_proxy_invoker,
    get_proxy_registry,
    reset_proxy_registry,
)
from flowhub.proxies.remote import HttpProxyInvoker

__all__ = [
    "ActionSpec",
    "HttpProxyInvoker",
    "LocalProxyInvoker",
    "ProxyFunction",
    "ProxyRegistry",
    "ProxyRequestError",
    "ProxyResponse",
    "RestProxy",
    "build_proxy_registry",
    "get_proxy_invoker",
    "get_proxy_registry",
    "reset_proxy_registry",
]
