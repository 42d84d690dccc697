"""
Node errors.

Every failure a node can report maps to one of these. Credential errors are
raised before any network call; API errors carry the vendor's raw body as
``details``; validation errors cover malformed JSON inputs.
"""

from __future__ import annotations

import json
from typing import Any, List, Optional


class NodeOperationError(Exception):
    """Error during node operation."""

    def __init__(
        self,
        message: str,
        node: Optional[Any] = None,
        details: Any = None,
    ) -> None:
        self.message = message
        self.node = node
        self.details = details
        super().__init__(message)


class NodeApiError(NodeOperationError):
    """Error from an external API call."""

    def __init__(
        self,
        message: str = "API request failed",
        node: Optional[Any] = None,
        status_code: Optional[int] = None,
        details: Any = None,
    ) -> None:
        super().__init__(message, node, details)
        self.status_code = status_code


class CredentialsMissingError(NodeOperationError):
    """Required credential inputs are empty."""

    def __init__(
        self,
        message: str,
        node: Optional[Any] = None,
        missing: Optional[List[str]] = None,
    ) -> None:
        super().__init__(message, node)
        self.missing = missing or []


class NodeValidationError(NodeOperationError):
    """User-supplied input could not be parsed or is out of range."""


class ProxyNotFoundError(LookupError):
    """No proxy function is registered under the requested name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Proxy function '{name}' not found")


class ProxyInvocationError(RuntimeError):
    """A proxy answered with a non-2xx status."""

    def __init__(self, name: str, status_code: int, payload: Any = None):
        self.name = name
        self.status_code = status_code
        self.payload = payload
        error = payload.get("error") if isinstance(payload, dict) else None
        super().__init__(error or "Edge Function returned a non-2xx status code")


def parse_json_input(value: Any, field: str, default: Any = None) -> Any:
    """
    Parse a JSON-valued input.

    Non-string values are returned unchanged, empty strings give ``default``.

    Raises:
        NodeValidationError: If the string is not valid JSON
    """
    if value is None or value == "":
        return default
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise NodeValidationError(f"{field} must be valid JSON: {e.msg}") from e


__all__ = [
    "NodeOperationError",
    "NodeApiError",
    "CredentialsMissingError",
    "NodeValidationError",
    "ProxyNotFoundError",
    "ProxyInvocationError",
    "parse_json_input",
]
