"""
Core Node Pack - Built-in nodes.

- webhook-trigger, response: flow endpoint in/out
- http-request: call any URL
- condition, data-filter, set-variable: routing and shaping
- code-execution: custom Python
- logger: monitoring rows and debugger entries
- data-table, date-helper, data-mapper: local data helpers

All nodes are SYNC-CELERY SAFE.
"""

from .nodes import (
    WebhookTriggerNode,
    HttpRequestNode,
    ConditionNode,
    SetVariableNode,
    DataFilterNode,
    CodeExecutionNode,
    ResponseNode,
    LoggerNode,
)
from .data_table import DataTableNode
from .dates import DateHelperNode
from .mapping import DataMapperNode
from .manifest import MANIFEST, NODE_CLASSES, register_nodes

__all__ = [
    "WebhookTriggerNode",
    "HttpRequestNode",
    "ConditionNode",
    "SetVariableNode",
    "DataFilterNode",
    "CodeExecutionNode",
    "ResponseNode",
    "LoggerNode",
    "DataTableNode",
    "DateHelperNode",
    "DataMapperNode",
    "MANIFEST",
    "NODE_CLASSES",
    "register_nodes",
]
