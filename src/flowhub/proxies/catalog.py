"""Built-in proxy catalog and invoker selection."""

from flowhub.config import Settings, get_settings
from flowhub.proxies.aws import AmazonSesProxy, AmazonSqsProxy
from flowhub.proxies.base import LocalProxyInvoker, ProxyRegistry
from flowhub.proxies.clickup import ClickUpProxy
from flowhub.proxies.clockodo import ClockodoProxy
from flowhub.proxies.convertkit import ConvertKitProxy
from flowhub.proxies.copper import CopperProxy
from flowhub.proxies.local import DataMapperProxy, DateHelperProxy
from flowhub.proxies.remote import HttpProxyInvoker
from flowhub.proxies.shopify import ShopifyProxy
from flowhub.proxies.trello import TrelloProxy


_registry: ProxyRegistry | None = None


def build_proxy_registry(settings: Settings | None = None) -> ProxyRegistry:
    """Instantiate every built-in proxy with the configured timeouts."""
    settings = settings or get_settings()
    timeout = settings.http_timeout_s

    return ProxyRegistry([
        ClockodoProxy(application=settings.clockodo_application, timeout=timeout),
        ConvertKitProxy(timeout=timeout),
        ClickUpProxy(timeout=timeout),
        CopperProxy(timeout=timeout),
        ShopifyProxy(timeout=timeout),
        TrelloProxy(timeout=timeout),
        AmazonSesProxy(default_region=settings.aws_default_region),
        AmazonSqsProxy(default_region=settings.aws_default_region),
        DateHelperProxy(),
        DataMapperProxy(),
    ])


def get_proxy_registry() -> ProxyRegistry:
    """Process-wide registry, built on first use."""
    global _registry
    if _registry is None:
        _registry = build_proxy_registry()
    return _registry


def reset_proxy_registry() -> None:
    """Reset the process-wide registry (for testing)."""
    global _registry
    _registry = None


def get_proxy_invoker(settings: Settings | None = None) -> LocalProxyInvoker | HttpProxyInvoker:
    """Remote invoker when a proxy host is configured, in-process otherwise."""
    settings = settings or get_settings()
    if settings.proxy_base_url:
        key = settings.proxy_service_key.get_secret_value() if settings.proxy_service_key else None
        return HttpProxyInvoker(settings.proxy_base_url, key, timeout_s=settings.http_timeout_s)
    return LocalProxyInvoker(get_proxy_registry())
