"""
Flow Executor - Queue-driven execution of a flow graph.

Starts from the nodes without incoming edges and walks the edges breadth
first. Each node runs at most once. A failing node stops the run unless its
errorBehavior is 'continue', in which case the failure is recorded and the
walk goes on. Condition nodes only release the branch matching their result.

SYNC-CELERY SAFE: All execution is synchronous.
"""

from __future__ import annotations

import copy
import json
import logging
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, Dict, List, Optional, Set

from pydantic import ValidationError

from node_sdk import NodeExecutionContext
from node_sdk.basenode import LogSink, ProxyInvoker, TableStoreProtocol

from .bindings import resolve_inputs
from .errors import FlowValidationError
from .graph import FlowGraph
from .models import FlowDefinition, FlowLogEntry, FlowNode, PartialError, parse_flow
from .node_runner import DefaultNodeRunner, NodeResult, NodeRunnerProtocol


logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 1000


def _is_blank(body: Any) -> bool:
    """None, False, "" and 0 mean "no body"; empty dicts and lists are real bodies."""
    if body is None or body is False or body == "":
        return True
    return isinstance(body, (int, float)) and not isinstance(body, bool) and body == 0


class FlowStatus(str, Enum):
    """Overall flow execution status."""
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class FlowRunResult:
    """
    Result of a flow execution.
    """
    execution_id: str
    status: FlowStatus
    logs: List[FlowLogEntry] = field(default_factory=list)
    final_output: Optional[Dict[str, Any]] = None
    partial_errors: List[PartialError] = field(default_factory=list)
    error_message: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)
    node_types: Dict[str, str] = field(default_factory=dict)
    execution_time_ms: int = 0

    @property
    def is_success(self) -> bool:
        return self.status == FlowStatus.SUCCESS

    @property
    def has_response_node(self) -> bool:
        return self.final_output is not None

    @property
    def status_code(self) -> int:
        """HTTP status for the webhook response."""
        if self.status == FlowStatus.ERROR:
            return 500
        if self.final_output and self.final_output.get("statusCode"):
            return int(self.final_output["statusCode"])
        return 200

    def response_body(self) -> Any:
        """Response node body, or a generic execution summary."""
        if self.has_response_node:
            body = self.final_output.get("body")
            return self.final_output if _is_blank(body) else body

        if self.status == FlowStatus.ERROR:
            message = self.error_message
        elif self.partial_errors:
            message = f"Flow completed with {len(self.partial_errors)} node error(s)"
        else:
            message = "Flow executed successfully"

        body: Dict[str, Any] = {
            "success": self.status != FlowStatus.ERROR,
            "message": message,
            "executionId": self.execution_id,
            "executionTime": self.execution_time_ms,
        }
        if self.partial_errors:
            body["partialErrors"] = [e.model_dump(by_alias=True) for e in self.partial_errors]
        return body

    def response_headers(self) -> Dict[str, str]:
        headers = {
            "X-Execution-Id": self.execution_id,
            "X-Execution-Time": str(self.execution_time_ms),
        }
        if self.final_output:
            custom = self.final_output.get("headers")
            if isinstance(custom, dict):
                headers.update({str(k): str(v) for k, v in custom.items()})
        return headers

    def logs_as_dicts(self) -> List[Dict[str, Any]]:
        return [entry.model_dump(by_alias=True) for entry in self.logs]


class FlowExecutor:
    """
    Sync flow executor.

    Usage:
        executor = FlowExecutor(proxy_invoker=LocalProxyInvoker())
        result = executor.execute(flow_definition, request={"body": {...}})
        result.status_code, result.response_body()
    """

    def __init__(
        self,
        node_runner: Optional[NodeRunnerProtocol] = None,
        proxy_invoker: Optional[ProxyInvoker] = None,
        table_store: Optional[TableStoreProtocol] = None,
        log_sink: Optional[LogSink] = None,
        max_steps: int = DEFAULT_MAX_STEPS,
    ):
        """
        Initialize executor.

        Args:
            node_runner: Runs individual nodes (defaults to the global registry)
            proxy_invoker: Used by integration nodes and the proxy fallback
            table_store: Backing store for data-table nodes
            log_sink: Receives logger-node monitoring rows
            max_steps: Safety limit for dequeued nodes
        """
        self._node_runner = node_runner or DefaultNodeRunner()
        self._proxy_invoker = proxy_invoker
        self._table_store = table_store
        self._log_sink = log_sink
        self._max_steps = max_steps

    def execute(
        self,
        flow: FlowDefinition | Dict[str, Any],
        request: Optional[Dict[str, Any]] = None,
        env: Optional[Dict[str, Any]] = None,
        flow_id: Optional[str] = None,
        execution_id: Optional[str] = None,
    ) -> FlowRunResult:
        """
        Execute a flow.

        Args:
            flow: Flow definition or JSON dict
            request: Triggering request {method, headers, body, query}
            env: Flow variables and secrets
            flow_id: Owning flow project id
            execution_id: Execution record id (generated when omitted)

        Returns:
            FlowRunResult with logs, outputs and the response to send
        """
        start_time = time.perf_counter()
        execution_id = execution_id or str(uuid.uuid4())

        request = request or {}
        state: Dict[str, Any] = {
            "request": {
                "method": request.get("method", "POST"),
                "headers": request.get("headers") or {},
                "body": request.get("body") if request.get("body") is not None else {},
                "query": request.get("query") or {},
            },
            "env": dict(env or {}),
            "variables": {},
            "_flowProjectId": flow_id,
            "_executionId": execution_id,
        }
        result = FlowRunResult(execution_id=execution_id, status=FlowStatus.RUNNING, context=state)

        try:
            if isinstance(flow, dict):
                flow = parse_flow(flow)
            graph = FlowGraph.compile(flow)
        except (FlowValidationError, ValidationError) as e:
            result.status = FlowStatus.ERROR
            result.error_message = f"Flow validation failed: {e}"
            result.execution_time_ms = int((time.perf_counter() - start_time) * 1000)
            return result

        result.node_types = {node.id: node.type for node in flow.nodes}
        self._run_graph(graph, state, result, flow_id, execution_id)

        if result.status == FlowStatus.RUNNING:
            result.status = FlowStatus.SUCCESS
        result.execution_time_ms = int((time.perf_counter() - start_time) * 1000)

        logger.info(
            f"Flow execution {execution_id} finished: {result.status.value}",
            extra={
                "execution_id": execution_id,
                "flow_id": flow_id,
                "duration_ms": result.execution_time_ms,
                "partial_errors": len(result.partial_errors),
            },
        )
        return result

    def _run_graph(
        self,
        graph: FlowGraph,
        state: Dict[str, Any],
        result: FlowRunResult,
        flow_id: Optional[str],
        execution_id: str,
    ) -> None:
        queue: Deque[str] = deque(graph.entry_nodes())
        executed: Set[str] = set()
        steps = 0

        while queue:
            node_id = queue.popleft()
            if node_id in executed:
                continue
            executed.add(node_id)

            steps += 1
            if steps > self._max_steps:
                result.status = FlowStatus.ERROR
                result.error_message = f"Flow exceeded the maximum of {self._max_steps} steps"
                return

            node = graph.get_node(node_id)
            if node is None or node.data.disabled:
                queue.extend(graph.next_nodes(node_id))
                continue

            self._log(result, node, "info", f"Executing {node.data.label or node.type}")

            node_result = self._run_node(node, state, flow_id, execution_id)

            if not node_result.success:
                error = node_result.error or "Unknown error"
                self._log(result, node, "error", error)
                logger.warning(
                    f"Node {node_id} failed: {error}",
                    extra={"execution_id": execution_id, "node_id": node_id},
                )

                if node.data.error_behavior != "continue":
                    result.status = FlowStatus.ERROR
                    result.error_message = error
                    return

                result.partial_errors.append(
                    PartialError(node_id=node_id, node_name=node.display_name, error=error)
                )
                state[node_id] = {"error": error, "success": False, "_failedNode": True}
                queue.extend(n for n in graph.next_nodes(node_id) if n not in executed)
                continue

            output = node_result.output
            if output:
                state[node_id] = copy.deepcopy({**output, "success": True})
                if node.type == "response":
                    result.final_output = copy.deepcopy(output)
            else:
                state[node_id] = {"success": True}

            self._log(result, node, "success", "Execution completed", copy.deepcopy(output))

            condition_result = (output or {}).get("result") if node.type == "condition" else None
            queue.extend(n for n in graph.next_nodes(node_id, condition_result) if n not in executed)

    def _run_node(
        self,
        node: FlowNode,
        state: Dict[str, Any],
        flow_id: Optional[str],
        execution_id: str,
    ) -> NodeResult:
        inputs = resolve_inputs(node.data.inputs, state)
        context = NodeExecutionContext(
            variables=state["variables"],
            env=state["env"],
            request=state["request"],
            outputs=state,
            flow_id=flow_id,
            execution_id=execution_id,
            node_id=node.id,
            proxy_invoker=self._proxy_invoker,
            table_store=self._table_store,
            log_sink=self._log_sink,
        )
        logger.debug(f"Executing node: {node.id} ({node.type})")
        return self._node_runner.run_node(node, inputs, context)

    @staticmethod
    def _log(
        result: FlowRunResult,
        node: FlowNode,
        level: str,
        message: str,
        data: Any = None,
    ) -> None:
        result.logs.append(
            FlowLogEntry(
                node_id=node.id,
                node_name=node.display_name,
                type=level,
                message=message,
                data=data,
                timestamp=_now_ms(),
            )
        )


def safe_json(value: Any) -> str:
    """JSON text for sizes and storage; unknown objects become strings."""
    return json.dumps(value, default=str)


__all__ = [
    "FlowExecutor",
    "FlowRunResult",
    "FlowStatus",
    "DEFAULT_MAX_STEPS",
    "safe_json",
]
