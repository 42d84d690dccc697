"""
Node Registry Models - Metadata structures for nodes and node packs.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field


class NodeDefinition(BaseModel):
    """
    Metadata about a registered node.

    Serializable view of a node class, used by the listing API and CLI.
    """
    model_config = ConfigDict(extra="allow")

    # Identity
    node_type: str = Field(..., description="Unique node type identifier")
    version: int = Field(1, description="Node version")

    # Display
    display_name: str = Field(..., description="Human-readable name")
    description: str = Field("", description="Node description")
    category: str = Field("action", description="trigger, action, transformer or condition")

    # Technical
    node_class: Optional[str] = Field(None, description="Fully qualified class name")
    node_pack: Optional[str] = Field(None, description="Source node pack")
    proxy_name: Optional[str] = Field(None, description="Proxy function the node forwards to")

    # Schema
    inputs: List[Dict[str, Any]] = Field(default_factory=list)
    outputs: List[Dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_node_class(cls, node_class: Type) -> "NodeDefinition":
        """Create definition from a BaseNode class."""
        descriptor = node_class.get_definition()
        return cls(
            node_type=descriptor["type"],
            version=descriptor.get("version", 1),
            display_name=descriptor.get("name") or descriptor["type"],
            description=descriptor.get("description", ""),
            category=descriptor.get("category", "action"),
            node_class=f"{node_class.__module__}.{node_class.__name__}",
            proxy_name=getattr(node_class, "proxy_name", None),
            inputs=descriptor.get("inputs", []),
            outputs=descriptor.get("outputs", []),
        )


class NodePackManifest(BaseModel):
    """
    Manifest for a node pack (collection of nodes).

    Used for discovery and registration of bundled nodes.
    """
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="Pack name (e.g., 'flowhub-core')")
    version: str = Field("1.0.0", description="Pack version")
    description: str = Field("", description="Pack description")
    author: str = Field("", description="Author name")

    nodes: List[str] = Field(
        default_factory=list,
        description="List of node types in this pack",
    )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NodePackManifest":
        """Create from dictionary."""
        return cls.model_validate(data)


__all__ = [
    "NodeDefinition",
    "NodePackManifest",
]
