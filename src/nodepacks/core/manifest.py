"""
Core Node Pack Manifest - Registration function for entry-points.
"""

from node_registry.models import NodePackManifest

from .data_table import DataTableNode
from .dates import DateHelperNode
from .mapping import DataMapperNode
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


# Node classes by type
NODE_CLASSES = {
    node_class.type: node_class
    for node_class in (
        WebhookTriggerNode,
        HttpRequestNode,
        ConditionNode,
        SetVariableNode,
        DataFilterNode,
        CodeExecutionNode,
        ResponseNode,
        LoggerNode,
        DataTableNode,
        DateHelperNode,
        DataMapperNode,
    )
}


MANIFEST = NodePackManifest(
    name="core",
    version="1.0.0",
    description="Built-in nodes that run in-process",
    author="flowhub",
    nodes=list(NODE_CLASSES),
)


def register_nodes():
    """
    Entry point function for node pack discovery.

    Returns tuple of (manifest, node_classes).
    """
    return MANIFEST, NODE_CLASSES


__all__ = [
    "MANIFEST",
    "NODE_CLASSES",
    "register_nodes",
]
