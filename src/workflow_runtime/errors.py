"""Flow runtime errors."""

from node_sdk.errors import ProxyInvocationError, ProxyNotFoundError


class FlowValidationError(ValueError):
    """The flow definition cannot be executed (cycle, dangling edge, ...)."""


__all__ = ["FlowValidationError", "ProxyInvocationError", "ProxyNotFoundError"]
