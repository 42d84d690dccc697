"""
Core Nodes - Built-in node implementations.

These nodes run in-process and never need a proxy function.
All are SYNC-CELERY SAFE.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List
from urllib.parse import urlparse

from node_sdk import (
    BaseNode,
    HttpApiError,
    HttpClient,
    InputField,
    NodeCategory,
    NodeExecutionContext,
    NodeOperationError,
    NodeTimeoutError,
    NodeValidationError,
    OutputField,
    parse_json_input,
    select,
    text,
)

from .utils import get_path, run_user_code, to_text


logger = logging.getLogger(__name__)


class WebhookTriggerNode(BaseNode):
    """
    Webhook Trigger - Entry point fed by the flow endpoint.

    Exposes the triggering request. With ``transformPayload`` set, the
    ``transformCode`` body runs with ``data`` = {headers, body, query, method}
    and its return value is published as ``transformed``.
    """

    type = "webhook-trigger"
    name = "Webhook Trigger"
    description = "Start the flow when its endpoint receives a request"
    category = NodeCategory.TRIGGER

    inputs = [
        InputField(name="transformPayload", label="Transform Payload", type="boolean", default=False),
        InputField(
            name="transformCode",
            label="Transform Code",
            type="code",
            language="python",
            description="Function body; `data` holds the request, `return` the new payload",
        ),
    ]
    outputs = [
        OutputField(name="body"),
        OutputField(name="payload"),
        OutputField(name="headers"),
        OutputField(name="query"),
        OutputField(name="method", type="string"),
        OutputField(name="transformed"),
    ]

    def execute(self, inputs: Dict[str, Any], context: NodeExecutionContext) -> Dict[str, Any]:
        request = context.request
        request_data = {
            "headers": request.get("headers") or {},
            "body": request.get("body") if request.get("body") is not None else {},
            "query": request.get("query") or {},
            "method": request.get("method") or "POST",
        }

        transformed = None
        if inputs.get("transformPayload") and inputs.get("transformCode"):
            try:
                transformed = run_user_code(inputs["transformCode"], data=request_data)
            except Exception as e:
                raise NodeOperationError(f"Transform code error: {e}", node=self)

        return {
            "body": request_data["body"],
            "payload": request_data["body"],
            "headers": request_data["headers"],
            "query": request_data["query"],
            "method": request_data["method"],
            "transformed": transformed,
        }


class HttpRequestNode(BaseNode):
    """
    HTTP Request Node - Call any URL.

    Success is a 2xx status. Non-2xx answers still return the full output
    with ``success`` False so downstream nodes can inspect it.
    """

    type = "http-request"
    name = "HTTP Request"
    description = "Make an HTTP request"
    category = NodeCategory.ACTION

    inputs = [
        select("method", "Method", ["GET", "POST", "PUT", "PATCH", "DELETE"], default="GET"),
        text("url", "URL", required=True),
        InputField(name="headers", label="Headers (JSON)", type="json"),
        InputField(name="body", label="Body", type="json"),
        text("apiKey", "API Key", isApiKey=True, description="Sent as a Bearer token"),
        InputField(name="timeout", label="Timeout (s)", type="number", default=30),
    ]
    outputs = [
        OutputField(name="status", type="number"),
        OutputField(name="statusText", type="string"),
        OutputField(name="data"),
        OutputField(name="headers"),
        OutputField(name="error", type="string"),
    ]

    def execute(self, inputs: Dict[str, Any], context: NodeExecutionContext) -> Dict[str, Any]:
        url = str(inputs.get("url") or "").strip()
        if not url:
            raise NodeValidationError("HTTP Request failed: URL is empty or not configured.", node=self)

        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise NodeValidationError(f'HTTP Request failed: Invalid URL format "{url}".', node=self)

        headers = parse_json_input(inputs.get("headers"), "headers", default={}) or {}
        if not isinstance(headers, dict):
            raise NodeValidationError("headers must be a JSON object", node=self)
        headers = {str(k): str(v) for k, v in headers.items()}
        if inputs.get("apiKey"):
            headers["Authorization"] = f"Bearer {inputs['apiKey']}"

        method = str(inputs.get("method") or "GET").upper()
        body = inputs.get("body")
        request_kwargs: Dict[str, Any] = {"headers": headers}
        if method != "GET" and body not in (None, ""):
            if isinstance(body, (dict, list)):
                request_kwargs["json"] = body
            else:
                request_kwargs["data"] = str(body).encode("utf-8")

        client = HttpClient(timeout=float(inputs.get("timeout") or 30))
        try:
            response = client.request(method, url, **request_kwargs)
        except (NodeTimeoutError, HttpApiError) as e:
            raise NodeOperationError(f"HTTP Request failed: {e}", node=self)

        ok = response.ok
        return {
            "success": ok,
            "status": response.status_code,
            "statusText": response.reason,
            "data": response.json_or_text(),
            "headers": response.headers,
            "error": None if ok else (response.reason or f"HTTP {response.status_code}"),
        }


def _number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return float("nan")


def _loose_equals(left: Any, right: Any) -> bool:
    if left == right:
        return True
    if left is None or right is None:
        return False
    return to_text(left) == to_text(right)


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


CONDITION_OPERATORS = {
    "eq": lambda d, c: _loose_equals(d, c),
    "neq": lambda d, c: not _loose_equals(d, c),
    "gt": lambda d, c: _number(d) > _number(c),
    "lt": lambda d, c: _number(d) < _number(c),
    "gte": lambda d, c: _number(d) >= _number(c),
    "lte": lambda d, c: _number(d) <= _number(c),
    "contains": lambda d, c: to_text(c) in to_text(d),
    "not_contains": lambda d, c: to_text(c) not in to_text(d),
    "exists": lambda d, c: d is not None,
    "not_exists": lambda d, c: d is None,
    # Named operators used by older flows
    "equals": lambda d, c: _loose_equals(d, c),
    "notEquals": lambda d, c: not _loose_equals(d, c),
    "greaterThan": lambda d, c: _number(d) > _number(c),
    "greaterThanOrEqual": lambda d, c: _number(d) >= _number(c),
    "lessThan": lambda d, c: _number(d) < _number(c),
    "lessThanOrEqual": lambda d, c: _number(d) <= _number(c),
    "notContains": lambda d, c: to_text(c).lower() not in to_text(d).lower(),
    "startsWith": lambda d, c: to_text(d).startswith(to_text(c)),
    "endsWith": lambda d, c: to_text(d).endswith(to_text(c)),
    "isEmpty": lambda d, c: _is_empty(d),
    "isNotEmpty": lambda d, c: not _is_empty(d),
    "isTrue": lambda d, c: d is True or to_text(d).lower() == "true",
    "isFalse": lambda d, c: d is False or to_text(d).lower() == "false",
}


class ConditionNode(BaseNode):
    """
    Condition Node - Branch on a value.

    The value is ``context[sourceNodeId][outputField]`` or, without a
    source node, the ``value`` input. The boolean ``result`` selects the
    outgoing edges whose handle is "true" or "false".
    """

    type = "condition"
    name = "Condition"
    description = "Route the flow based on a comparison"
    category = NodeCategory.CONDITION

    inputs = [
        text("sourceNodeId", "Source Node"),
        text("outputField", "Output Field", description="Dotted path inside the source output"),
        InputField(name="value", label="Value", type="variable"),
        select("operation", "Operation", list(CONDITION_OPERATORS), required=True, default="eq"),
        text("compareValue", "Compare Value"),
    ]
    outputs = [
        OutputField(name="result", type="boolean"),
        OutputField(name="data"),
    ]

    def execute(self, inputs: Dict[str, Any], context: NodeExecutionContext) -> Dict[str, Any]:
        source = inputs.get("sourceNodeId")
        if source:
            data = get_path(context.get_node_output(source) or {}, inputs.get("outputField") or "")
        else:
            data = inputs.get("value")

        operation = inputs.get("operation") or inputs.get("operator") or "eq"
        compare = CONDITION_OPERATORS.get(operation)
        if compare is None:
            raise NodeValidationError(f"Unknown condition operator: {operation}", node=self)

        return {"result": bool(compare(data, inputs.get("compareValue"))), "data": data}


class SetVariableNode(BaseNode):
    """Set Variable - Publish a value under a name."""

    type = "set-variable"
    name = "Set Variable"
    category = NodeCategory.TRANSFORMER

    inputs = [
        text("variableName", "Variable Name"),
        InputField(name="value", label="Value", type="variable"),
    ]
    outputs = [OutputField(name="value")]

    def execute(self, inputs: Dict[str, Any], context: NodeExecutionContext) -> Dict[str, Any]:
        name = inputs.get("variableName") or "value"
        context.variables[name] = inputs.get("value")
        return {name: inputs.get("value")}


class DataFilterNode(BaseNode):
    """Data Filter - Keep list items whose field matches."""

    type = "data-filter"
    name = "Data Filter"
    category = NodeCategory.TRANSFORMER

    inputs = [
        text("sourceNodeId", "Source Node", required=True),
        text("outputField", "Output Field", required=True),
        text("filterField", "Filter Field"),
        text("filterValue", "Filter Value"),
        select("filterOperation", "Operation", ["eq", "neq", "contains"], default="eq"),
    ]
    outputs = [
        OutputField(name="filtered", type="array"),
        OutputField(name="count", type="number"),
        OutputField(name="error", type="string"),
    ]

    def execute(self, inputs: Dict[str, Any], context: NodeExecutionContext) -> Dict[str, Any]:
        source = context.get_node_output(inputs.get("sourceNodeId") or "") or {}
        data = get_path(source, inputs.get("outputField") or "")

        if not isinstance(data, list):
            return {"filtered": data, "error": None}

        filtered: List[Any] = list(data)
        field = inputs.get("filterField")
        value = inputs.get("filterValue")
        if field and value not in (None, ""):
            operation = inputs.get("filterOperation") or "eq"

            def keep(item: Any) -> bool:
                field_value = item.get(field) if isinstance(item, dict) else None
                if operation == "eq":
                    return _loose_equals(field_value, value)
                if operation == "neq":
                    return not _loose_equals(field_value, value)
                if operation == "contains":
                    return to_text(value) in to_text(field_value)
                return True

            filtered = [item for item in filtered if keep(item)]

        return {"filtered": filtered, "count": len(filtered), "error": None}


class CodeExecutionNode(BaseNode):
    """
    Code Execution - Run custom Python code.

    The code is a function body with ``inputs`` and ``context`` in scope;
    its return value becomes ``result``.

    SECURITY: This executes arbitrary code - use with caution.
    """

    type = "code-execution"
    name = "Code"
    category = NodeCategory.TRANSFORMER

    inputs = [
        InputField(
            name="code",
            label="Python Code",
            type="code",
            language="python",
            required=True,
            default="return inputs",
        ),
    ]
    outputs = [OutputField(name="result"), OutputField(name="error", type="string")]

    def execute(self, inputs: Dict[str, Any], context: NodeExecutionContext) -> Dict[str, Any]:
        try:
            result = run_user_code(inputs.get("code") or "", inputs=inputs, context=context.as_dict())
        except Exception as e:
            raise NodeOperationError(f"Code execution error: {e}", node=self)
        return {"result": result, "error": None}


class ResponseNode(BaseNode):
    """Response - Shape the HTTP answer of the flow endpoint."""

    type = "response"
    name = "Response"
    category = NodeCategory.ACTION

    inputs = [
        InputField(name="statusCode", label="Status Code", type="number", default=200),
        InputField(name="body", label="Body", type="json"),
        text("contentType", "Content Type", default="application/json"),
        InputField(name="customHeaders", label="Headers (JSON)", type="json"),
    ]
    outputs = [
        OutputField(name="statusCode", type="number"),
        OutputField(name="body"),
        OutputField(name="contentType", type="string"),
        OutputField(name="headers"),
    ]

    def execute(self, inputs: Dict[str, Any], context: NodeExecutionContext) -> Dict[str, Any]:
        try:
            status_code = int(inputs.get("statusCode") or 200)
        except (TypeError, ValueError):
            status_code = 200

        body = inputs.get("body")
        if isinstance(body, str):
            try:
                body = json.loads(body)
            except json.JSONDecodeError:
                pass
        elif body is None:
            body = {}

        headers = inputs.get("customHeaders") or {}
        if isinstance(headers, str):
            try:
                headers = json.loads(headers)
            except json.JSONDecodeError:
                headers = {}

        return {
            "statusCode": status_code,
            "body": body,
            "contentType": inputs.get("contentType") or "application/json",
            "headers": headers if isinstance(headers, dict) else {},
        }


LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class LoggerNode(BaseNode):
    """
    Logger - Record a message for the monitoring dashboard and/or the
    debugger panel.
    """

    type = "logger"
    name = "Logger"
    category = NodeCategory.ACTION

    inputs = [
        InputField(name="enabled", label="Enabled", type="boolean", default=True),
        select("destination", "Destination", ["dashboard", "debugger", "both"], default="dashboard"),
        select("logLevel", "Level", ["debug", "info", "warning", "error"], default="info"),
        text("message", "Message"),
        InputField(name="customData", label="Custom Data (JSON)", type="json"),
        InputField(name="dataSource", label="Data Source", type="variable"),
    ]
    outputs = [
        OutputField(name="logged", type="boolean"),
        OutputField(name="logId", type="string"),
        OutputField(name="message", type="string"),
        OutputField(name="destination", type="string"),
        OutputField(name="data"),
        OutputField(name="_debugLog"),
    ]

    def execute(self, inputs: Dict[str, Any], context: NodeExecutionContext) -> Dict[str, Any]:
        if inputs.get("enabled") in (False, "false"):
            return {"logged": False, "logId": None, "message": "Logging disabled"}

        message = inputs.get("message") or "Logger node executed"
        level = inputs.get("logLevel") or "info"
        destination = inputs.get("destination") or "dashboard"

        data = inputs.get("dataSource")
        if data == "__none__":
            data = None

        custom_data = inputs.get("customData")
        if isinstance(custom_data, str) and custom_data:
            try:
                custom_data = json.loads(custom_data)
            except json.JSONDecodeError:
                custom_data = {"raw": custom_data}

        metadata: Dict[str, Any] = {
            "nodeId": context.node_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if data is not None:
            metadata["data"] = data
        if custom_data:
            metadata["customData"] = custom_data

        self.logger.log(
            LOG_LEVELS.get(level, logging.INFO),
            message,
            extra={"execution_id": context.execution_id, "node_id": context.node_id},
        )

        log_id = None
        if (
            destination in ("dashboard", "both")
            and context.flow_id
            and context.execution_id
            and context.log_sink is not None
        ):
            try:
                log_id = context.log_sink({
                    "flow_id": context.flow_id,
                    "execution_id": context.execution_id,
                    "node_id": context.node_id,
                    "level": level,
                    "message": message,
                    "metadata": metadata,
                })
            except Exception as e:
                self.logger.error(f"Failed to insert log: {e}")

        debug_log = None
        if destination in ("debugger", "both"):
            debug_log = {"level": level, "message": message, "metadata": metadata}

        return {
            "logged": True,
            "logId": log_id,
            "message": message,
            "destination": destination,
            "data": data,
            "_debugLog": debug_log,
        }


__all__ = [
    "WebhookTriggerNode",
    "HttpRequestNode",
    "ConditionNode",
    "SetVariableNode",
    "DataFilterNode",
    "CodeExecutionNode",
    "ResponseNode",
    "LoggerNode",
    "CONDITION_OPERATORS",
]
