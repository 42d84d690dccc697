"""
Node Runner - Executes one flow node.

Registered node plugins run in-process through BaseNode.run(). Node types
without a plugin are forwarded to a proxy function named after the type
(``<type>-proxy``, then ``<first-segment>-proxy``).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

from node_sdk import NodeExecutionContext, NodeOperationError
from node_registry import NodeRegistry

from .errors import ProxyInvocationError, ProxyNotFoundError
from .models import FlowNode


logger = logging.getLogger(__name__)


@dataclass
class NodeResult:
    """Outcome of running a single node."""
    success: bool
    output: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class NodeRunnerProtocol(Protocol):
    """Protocol for node runners."""

    def run_node(
        self,
        node: FlowNode,
        inputs: Dict[str, Any],
        context: NodeExecutionContext,
    ) -> NodeResult:
        ...


def proxy_candidates(node_type: str) -> List[str]:
    """Proxy names tried for a node type without a plugin."""
    names = [f"{node_type}-proxy"]
    if "-" in node_type:
        short = f"{node_type.split('-')[0]}-proxy"
        if short not in names:
            names.append(short)
    return names


def clean_proxy_error(message: str) -> str:
    """Strip transport wording from proxy errors shown to users."""
    message = re.sub(r"Edge Function returned a non-2xx status code", "Request failed", message, flags=re.I)
    message = re.sub(r"proxy error:\s*", "", message, flags=re.I)
    return message


class DefaultNodeRunner:
    """
    Node runner backed by a NodeRegistry with a proxy fallback.
    """

    def __init__(self, registry: Optional[NodeRegistry] = None):
        """
        Args:
            registry: Node plugins by type (defaults to the global registry)
        """
        if registry is None:
            from node_registry import get_global_registry
            registry = get_global_registry()
        self._registry = registry

    def run_node(
        self,
        node: FlowNode,
        inputs: Dict[str, Any],
        context: NodeExecutionContext,
    ) -> NodeResult:
        """Run a node and normalize its outcome to a NodeResult."""
        plugin = self._registry.create(node.type)
        if plugin is None:
            return self._run_via_proxy(node.type, inputs, context)

        try:
            output = plugin.run(inputs, context)
        except NodeOperationError as e:
            return NodeResult(success=False, error=e.message)
        except Exception as e:
            logger.exception(f"Node {node.id} ({node.type}) raised")
            return NodeResult(success=False, error=str(e) or e.__class__.__name__)

        if output.get("success") is False:
            return NodeResult(success=False, output=output, error=output.get("error") or "Unknown error")
        return NodeResult(success=True, output=output)

    def _run_via_proxy(
        self,
        node_type: str,
        inputs: Dict[str, Any],
        context: NodeExecutionContext,
    ) -> NodeResult:
        body = {**inputs, "action": inputs.get("action") or "execute"}
        candidates = proxy_candidates(node_type)

        for proxy_name in candidates:
            try:
                data = context.invoke_proxy(proxy_name, body)
            except ProxyNotFoundError:
                continue
            except ProxyInvocationError as e:
                return NodeResult(success=False, error=f"{node_type}: {clean_proxy_error(str(e))}")
            except Exception as e:
                return NodeResult(success=False, error=f"Failed to invoke {proxy_name}: {e}")

            if isinstance(data, dict) and data.get("error"):
                return NodeResult(success=False, error=f"{node_type}: {data['error']}")
            payload = data if isinstance(data, dict) else {"data": data}
            return NodeResult(success=True, output={**payload, "success": True})

        return NodeResult(
            success=False,
            error=(
                f'Proxy function "{candidates[-1]}" not found. '
                f'Node type "{node_type}" is not implemented server-side.'
            ),
        )


__all__ = [
    "NodeResult",
    "NodeRunnerProtocol",
    "DefaultNodeRunner",
    "proxy_candidates",
    "clean_proxy_error",
]
