"""
Node SDK - Node plugin contract.

This package provides what every node plugin needs:
- BaseNode: descriptor + execute(inputs, context)
- InputField / OutputField: node schemas
- NodeExecutionContext: runtime context for a node
- Errors with the uniform credential / API / validation taxonomy
- HttpClient: timeout-bounded requests wrapper

All nodes execute synchronously (sync-Celery safe).
"""

from .basenode import (
    BaseNode,
    NodeCategory,
    NodeExecutionContext,
    InputField,
    OutputField,
    ProxyInvoker,
    TableStoreProtocol,
    text,
    select,
)
from .errors import (
    NodeOperationError,
    NodeApiError,
    CredentialsMissingError,
    NodeValidationError,
    ProxyNotFoundError,
    ProxyInvocationError,
    parse_json_input,
)
from .http import HttpClient, HttpResponse, HttpApiError, NodeTimeoutError

__all__ = [
    # Base class
    "BaseNode",
    "NodeCategory",
    "InputField",
    "OutputField",
    "text",
    "select",
    # Context
    "NodeExecutionContext",
    "ProxyInvoker",
    "TableStoreProtocol",
    # Errors
    "NodeOperationError",
    "NodeApiError",
    "CredentialsMissingError",
    "NodeValidationError",
    "ProxyNotFoundError",
    "ProxyInvocationError",
    "parse_json_input",
    # HTTP
    "HttpClient",
    "HttpResponse",
    "HttpApiError",
    "NodeTimeoutError",
]
