"""Node catalog routes."""
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from node_registry import get_global_registry

router = APIRouter()


class DynamicInputsRequest(BaseModel):
    """Current input values of a node being edited."""

    inputs: dict[str, Any] = Field(default_factory=dict)


@router.get("/v1/nodes")
def list_nodes() -> list[dict[str, Any]]:
    """Definitions of every registered node type."""
    registry = get_global_registry()
    return [definition.model_dump() for definition in registry.list_nodes()]


@router.get("/v1/nodes/{node_type}")
def get_node(node_type: str) -> dict[str, Any]:
    definition = get_global_registry().get(node_type)
    if definition is None:
        raise HTTPException(status_code=404, detail=f"Unknown node type: {node_type}")
    return definition.model_dump()


@router.post("/v1/nodes/{node_type}/inputs")
def dynamic_inputs(node_type: str, request: DynamicInputsRequest) -> list[dict[str, Any]]:
    """
    Input fields for the given current values.

    Vendor nodes add action-specific fields once ``action`` is chosen.
    """
    node = get_global_registry().create(node_type)
    if node is None:
        raise HTTPException(status_code=404, detail=f"Unknown node type: {node_type}")
    return [
        field.model_dump(by_alias=True, exclude_none=True)
        for field in node.get_input_fields(request.inputs)
    ]
