"""
Node registry: node type -> plugin class.

Packs are registered from an importable module (``load_pack``), from
installed distributions advertising the ``flowhub.nodepacks`` entry point,
or by scanning a module for concrete ``BaseNode`` subclasses.
"""

from __future__ import annotations

import importlib
import logging
from importlib.metadata import entry_points
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Tuple, Type, TYPE_CHECKING

from .models import NodeDefinition, NodePackManifest


if TYPE_CHECKING:
    from node_sdk.basenode import BaseNode


logger = logging.getLogger(__name__)

NODE_PACK_ENTRY_POINT = "flowhub.nodepacks"

BUILTIN_PACKS = ("nodepacks.core", "nodepacks.integrations")

NodeClasses = Dict[str, Type["BaseNode"]]


class RegisteredNode(NamedTuple):
    definition: NodeDefinition
    node_class: Type["BaseNode"]


def _pack_contents(result: Any, fallback_name: str) -> Tuple[NodePackManifest, NodeClasses]:
    """Normalize what a ``register_nodes()`` hook returns."""
    if isinstance(result, tuple):
        return result
    return NodePackManifest(name=fallback_name, nodes=sorted(result)), result


def _is_concrete_node(obj: Any, base: type) -> bool:
    return (
        isinstance(obj, type)
        and issubclass(obj, base)
        and obj is not base
        and not getattr(obj, "__abstractmethods__", None)
        and obj.type != base.type
    )


class NodeRegistry:
    """
    Node plugins by type.

    Usage:
        registry = NodeRegistry()
        registry.load_pack("nodepacks.core")
        node = registry.create("http-request")
    """

    def __init__(self):
        self._entries: Dict[str, RegisteredNode] = {}
        self._packs: Dict[str, NodePackManifest] = {}
        self._entry_points_loaded = False

    # ==== Registration ====

    def register_node(
        self,
        node_class: Type["BaseNode"],
        node_type: Optional[str] = None,
        replace: bool = False,
    ) -> NodeDefinition:
        """
        Register one node class under ``node_type`` (defaults to ``node_class.type``).

        Raises:
            ValueError: If another class already owns the type and replace is False
        """
        node_type = node_type or node_class.type

        current = self._entries.get(node_type)
        if current is not None and current.node_class is not node_class and not replace:
            owner = f"{current.node_class.__module__}.{current.node_class.__name__}"
            raise ValueError(f"Node type '{node_type}' already registered by {owner}")

        definition = NodeDefinition.from_node_class(node_class)
        definition.node_type = node_type
        self._entries[node_type] = RegisteredNode(definition, node_class)

        logger.debug("Registered node: %s", node_type)
        return definition

    def register_pack(
        self,
        manifest: NodePackManifest,
        node_classes: NodeClasses,
        replace: bool = False,
    ) -> None:
        """Register every class of a pack and tag its definitions with the pack name."""
        self._packs[manifest.name] = manifest
        for node_type, node_class in node_classes.items():
            self.register_node(node_class, node_type, replace=replace).node_pack = manifest.name

        logger.info("Registered pack '%s' with %d nodes", manifest.name, len(node_classes))

    def load_pack(self, module_path: str) -> NodePackManifest:
        """Import ``module_path`` and register the pack its ``register_nodes()`` returns."""
        module = importlib.import_module(module_path)
        manifest, node_classes = _pack_contents(module.register_nodes(), module_path)
        self.register_pack(manifest, node_classes)
        return manifest

    def discover_entry_points(self, force: bool = False) -> int:
        """
        Register packs published by installed distributions.

        A distribution advertises a pack in its pyproject.toml:

            [project.entry-points."flowhub.nodepacks"]
            mypack = "mypack:register_nodes"

        The hook returns ``(manifest, node_classes)`` or just ``node_classes``.
        A pack that fails to load is logged and skipped; a pack name that is
        already registered is left alone.

        Returns:
            Number of packs registered by this call
        """
        if self._entry_points_loaded and not force:
            return 0

        count = 0
        for ep in entry_points(group=NODE_PACK_ENTRY_POINT):
            try:
                manifest, node_classes = _pack_contents(ep.load()(), ep.name)
            except Exception as e:
                logger.error("Failed to load node pack '%s': %s", ep.name, e)
                continue
            if manifest.name in self._packs:
                continue
            self.register_pack(manifest, node_classes)
            count += 1

        self._entry_points_loaded = True
        return count

    def discover_module(self, module_path: str) -> int:
        """
        Register every concrete BaseNode subclass defined in or imported by a module.

        Returns:
            Number of classes registered (0 when the module cannot be imported)
        """
        from node_sdk.basenode import BaseNode

        try:
            module = importlib.import_module(module_path)
        except ImportError as e:
            logger.error("Failed to import module '%s': %s", module_path, e)
            return 0

        found = [obj for obj in vars(module).values() if _is_concrete_node(obj, BaseNode)]
        for node_class in found:
            self.register_node(node_class, replace=True)
        return len(found)

    # ==== Lookup ====

    def get(self, node_type: str) -> Optional[NodeDefinition]:
        entry = self._entries.get(node_type)
        return entry.definition if entry else None

    def get_node_class(self, node_type: str) -> Optional[Type["BaseNode"]]:
        entry = self._entries.get(node_type)
        return entry.node_class if entry else None

    def create(self, node_type: str) -> Optional["BaseNode"]:
        """New instance of the node class, or None for an unknown type."""
        node_class = self.get_node_class(node_type)
        return node_class() if node_class else None

    def list_nodes(self) -> List[NodeDefinition]:
        return [entry.definition for entry in self._entries.values()]

    def list_packs(self) -> List[NodePackManifest]:
        return list(self._packs.values())

    def list_types(self) -> List[str]:
        return sorted(self._entries)

    def has(self, node_type: str) -> bool:
        return node_type in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[NodeDefinition]:
        return iter(self.list_nodes())

    def __contains__(self, node_type: str) -> bool:
        return self.has(node_type)


_global_registry: Optional[NodeRegistry] = None


def get_global_registry() -> NodeRegistry:
    """Registry holding the built-in packs plus any installed entry-point packs."""
    global _global_registry
    if _global_registry is None:
        registry = NodeRegistry()
        for module_path in BUILTIN_PACKS:
            registry.load_pack(module_path)
        registry.discover_entry_points()
        _global_registry = registry
    return _global_registry


def reset_global_registry() -> None:
    global _global_registry
    _global_registry = None


__all__ = [
    "BUILTIN_PACKS",
    "NODE_PACK_ENTRY_POINT",
    "NodeRegistry",
    "RegisteredNode",
    "get_global_registry",
    "reset_global_registry",
]
