"""
Monitoring rows derived from a finished flow run.

Rows are plain dicts ``{flow_id, execution_id, node_id, level, message,
metadata}`` ready for the monitoring store.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from .executor import FlowRunResult, FlowStatus

SUSPICIOUS_MARKERS = ("not implemented", "not deployed", "skipped")


def build_monitoring_rows(result: FlowRunResult, flow_id: Optional[str]) -> List[Dict[str, Any]]:
    """
    Rows for the monitoring dashboard.

    - every error log line
    - successful nodes whose output reports a nested failure (error) or
      a "not implemented" / "not deployed" / "skipped" message (warning)
    - a summary row when the run failed
    """
    execution_id = result.execution_id or "unknown"
    rows: List[Dict[str, Any]] = []

    for entry in result.logs:
        if entry.type != "error":
            continue
        rows.append({
            "flow_id": flow_id,
            "execution_id": execution_id,
            "node_id": entry.node_id,
            "level": "error",
            "message": f"[{entry.node_name}] {entry.message}",
            "metadata": {
                "nodeType": result.node_types.get(entry.node_id),
                "timestamp": entry.timestamp,
                "data": entry.data,
            },
        })

    for entry in result.logs:
        if entry.type != "success" or not isinstance(entry.data, dict):
            continue
        message = str(entry.data.get("message") or "")
        unimplemented = any(marker in message for marker in SUSPICIOUS_MARKERS)
        nested_error = bool(entry.data.get("error")) or entry.data.get("success") is False
        if not (unimplemented or nested_error):
            continue
        rows.append({
            "flow_id": flow_id,
            "execution_id": execution_id,
            "node_id": entry.node_id,
            "level": "error" if nested_error else "warning",
            "message": f"[{entry.node_name}] "
                       + (str(entry.data.get("error") or "Node returned failure") if nested_error else message),
            "metadata": {
                "nodeType": result.node_types.get(entry.node_id),
                "timestamp": entry.timestamp,
                "output": entry.data,
            },
        })

    if result.status == FlowStatus.ERROR and result.error_message:
        rows.append({
            "flow_id": flow_id,
            "execution_id": execution_id,
            "node_id": None,
            "level": "error",
            "message": f"[Flow Execution] {result.error_message}",
            "metadata": {
                "executionTime": result.execution_time_ms,
                "partialErrors": [e.model_dump(by_alias=True) for e in result.partial_errors],
            },
        })

    return rows


__all__ = ["build_monitoring_rows", "SUSPICIOUS_MARKERS"]
