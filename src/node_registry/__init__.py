"""
Node Registry - Discovery and registration of node plugins.

This package provides:
- NodeDefinition: Metadata about a registered node
- NodePackManifest: Package metadata for a node pack
- NodeRegistry: Central registry for discovering nodes

Supports entry-points based discovery for third-party node packs.
"""

from .models import NodeDefinition, NodePackManifest
from .registry import NodeRegistry, get_global_registry, reset_global_registry

__all__ = [
    "NodeDefinition",
    "NodePackManifest",
    "NodeRegistry",
    "get_global_registry",
    "reset_global_registry",
]
