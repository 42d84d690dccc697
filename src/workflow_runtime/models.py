"""
Flow Models - JSON structures for flow definitions and run records.

A flow is a list of nodes plus the edges between them, as saved by the
flow editor:

    {
        "nodes": [{"id": "n1", "data": {"type": "webhook-trigger", "label": "Hook",
                                        "inputs": {...}}}],
        "edges": [{"source": "n1", "target": "n2", "sourceHandle": "true"}]
    }
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class FlowNodeData(BaseModel):
    """Node payload: what the node is and how it is configured."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: str = Field(..., description="Node type (e.g., 'http-request')")
    label: Optional[str] = Field(None, description="Display label")
    inputs: Dict[str, Any] = Field(default_factory=dict)
    disabled: bool = Field(False, description="If true, node is skipped")
    error_behavior: Optional[str] = Field(
        "stop",
        alias="errorBehavior",
        description="'continue' records the failure and keeps going; anything else stops",
    )


class FlowNode(BaseModel):
    """A node in a flow."""
    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Node ID (unique within flow)")
    data: FlowNodeData

    @property
    def type(self) -> str:
        return self.data.type

    @property
    def display_name(self) -> str:
        """Label used in logs."""
        return self.data.label or self.id


class FlowEdge(BaseModel):
    """Directed connection between two nodes."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[str] = None
    source: str
    target: str
    source_handle: Optional[str] = Field(None, alias="sourceHandle")


class FlowDefinition(BaseModel):
    """
    Complete flow definition.
    """
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = Field(None, description="Flow ID")
    name: str = Field("Unnamed Flow", description="Flow name")
    nodes: List[FlowNode] = Field(default_factory=list)
    edges: List[FlowEdge] = Field(default_factory=list)

    def get_node(self, node_id: str) -> Optional[FlowNode]:
        """Get node by id."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None


class FlowLogEntry(BaseModel):
    """One line of the per-execution log."""
    model_config = ConfigDict(populate_by_name=True)

    node_id: str = Field(..., alias="nodeId")
    node_name: str = Field(..., alias="nodeName")
    type: Literal["info", "success", "error"]
    message: str
    data: Any = None
    timestamp: int = Field(..., description="Epoch milliseconds")


class PartialError(BaseModel):
    """Failure of a node whose errorBehavior is 'continue'."""
    model_config = ConfigDict(populate_by_name=True)

    node_id: str = Field(..., alias="nodeId")
    node_name: str = Field(..., alias="nodeName")
    error: str


def parse_flow(data: Dict[str, Any]) -> FlowDefinition:
    """Parse flow JSON into FlowDefinition."""
    return FlowDefinition.model_validate(data)


__all__ = [
    "FlowDefinition",
    "FlowNode",
    "FlowNodeData",
    "FlowEdge",
    "FlowLogEntry",
    "PartialError",
    "parse_flow",
]
