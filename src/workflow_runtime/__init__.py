"""
Workflow Runtime - Sync execution of node/edge flows.

This package provides:
- FlowDefinition: JSON structure describing a flow
- FlowGraph: Compiled flow with execution order and branch routing
- Bindings: {{nodeId.field}} resolution against the run context
- FlowExecutor: Queue-driven execution engine

All execution is synchronous (sync-Celery safe).
"""

from .models import FlowDefinition, FlowNode, FlowEdge, FlowLogEntry, PartialError, parse_flow
from .errors import FlowValidationError, ProxyInvocationError, ProxyNotFoundError
from .graph import FlowGraph
from .bindings import resolve_inputs, resolve_value
from .node_runner import DefaultNodeRunner, NodeResult
from .executor import FlowExecutor, FlowRunResult, FlowStatus
from .monitoring import build_monitoring_rows

__all__ = [
    # Models
    "FlowDefinition",
    "FlowNode",
    "FlowEdge",
    "FlowLogEntry",
    "PartialError",
    "parse_flow",
    # Errors
    "FlowValidationError",
    "ProxyInvocationError",
    "ProxyNotFoundError",
    # Graph
    "FlowGraph",
    "resolve_inputs",
    "resolve_value",
    # Executor
    "DefaultNodeRunner",
    "NodeResult",
    "FlowExecutor",
    "FlowRunResult",
    "FlowStatus",
    "build_monitoring_rows",
]
