"""
ProxyNode - Base class for vendor nodes backed by a proxy function.

A vendor node declares its credential inputs, an ``action`` select and the
inputs each action needs. ``execute`` sends the inputs to ``<vendor>-proxy``
and maps the proxy's ``{success, data, error, details}`` answer onto the
node contract.
"""

from __future__ import annotations

from typing import Any, Dict, List

from node_sdk import (
    BaseNode,
    InputField,
    NodeApiError,
    NodeCategory,
    NodeExecutionContext,
    NodeOperationError,
    OutputField,
    ProxyInvocationError,
    ProxyNotFoundError,
    select,
)


STANDARD_OUTPUTS = [
    OutputField(name="success", type="boolean", description="Whether the operation was successful"),
    OutputField(name="data", description="Response data"),
    OutputField(name="error", type="string", description="Error message if operation failed"),
]


def action_select(actions: List[str], default: str = None) -> InputField:
    return select("action", "Action", actions, required=True, default=default or actions[0],
                  description="The action to perform")


class ProxyNode(BaseNode):
    """
    Vendor node forwarding to a proxy function.

    Subclasses set ``proxy_name``, ``inputs`` (credentials + action select),
    ``required_credentials`` / ``credentials_error`` and ``ACTION_FIELDS``.
    """

    category = NodeCategory.ACTION
    proxy_name: str = ""
    outputs = STANDARD_OUTPUTS

    # action -> extra inputs shown for that action
    ACTION_FIELDS: Dict[str, List[InputField]] = {}

    def get_dynamic_inputs(self, current_inputs: Dict[str, Any]) -> List[InputField]:
        return list(self.ACTION_FIELDS.get(current_inputs.get("action") or "", []))

    def build_body(self, inputs: Dict[str, Any]) -> Dict[str, Any]:
        """JSON body sent to the proxy."""
        return dict(inputs)

    def shape_output(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Node output from a successful proxy payload."""
        return {**payload, "success": True, "error": None}

    def execute(self, inputs: Dict[str, Any], context: NodeExecutionContext) -> Dict[str, Any]:
        body = self.build_body(inputs)

        try:
            payload = context.invoke_proxy(self.proxy_name, body)
        except ProxyNotFoundError:
            raise NodeOperationError(f'Proxy function "{self.proxy_name}" not found', node=self)
        except ProxyInvocationError as e:
            details = e.payload.get("details") if isinstance(e.payload, dict) else None
            raise NodeApiError(str(e), node=self, status_code=e.status_code, details=details)

        if not isinstance(payload, dict):
            payload = {"data": payload}

        if payload.get("success") is False or payload.get("error"):
            raise NodeApiError(
                payload.get("error") or "API request failed",
                node=self,
                status_code=payload.get("status_code"),
                details=payload.get("details"),
            )

        return self.shape_output(payload)


__all__ = ["ProxyNode", "STANDARD_OUTPUTS", "action_select"]
