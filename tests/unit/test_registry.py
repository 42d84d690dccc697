"""Tests for node registration and discovery."""
import pytest

from node_registry import NodeDefinition, NodePackManifest, NodeRegistry, get_global_registry
from node_sdk import BaseNode, NodeCategory, OutputField, text


class PingNode(BaseNode):
    type = "ping"
    name = "Ping"
    description = "Answers pong"
    category = NodeCategory.ACTION
    inputs = [text("target", "Target")]
    outputs = [OutputField(name="pong")]

    def execute(self, inputs, context):
        return {"pong": True}


class OtherPingNode(PingNode):
    pass


class TestNodeRegistry:
    """Test NodeRegistry."""

    def test_register_and_create(self):
        """Registered classes can be looked up and instantiated."""
        registry = NodeRegistry()
        definition = registry.register_node(PingNode)

        assert definition.node_type == "ping"
        assert definition.display_name == "Ping"
        assert definition.node_class.endswith("PingNode")
        assert "ping" in registry
        assert isinstance(registry.create("ping"), PingNode)
        assert registry.create("missing") is None

    def test_duplicate_type_rejected(self):
        """A second class cannot take an existing type unless replace is set."""
        registry = NodeRegistry()
        registry.register_node(PingNode)

        with pytest.raises(ValueError) as exc_info:
            registry.register_node(OtherPingNode)
        assert "already registered" in str(exc_info.value)

        registry.register_node(OtherPingNode, replace=True)
        assert registry.get_node_class("ping") is OtherPingNode

    def test_register_pack_tags_definitions(self):
        registry = NodeRegistry()
        manifest = NodePackManifest(name="test-pack", nodes=["ping"])

        registry.register_pack(manifest, {"ping": PingNode})

        assert registry.get("ping").node_pack == "test-pack"
        assert registry.list_packs() == [manifest]

    def test_discover_module(self):
        """Module scanning registers concrete node classes only."""
        registry = NodeRegistry()

        count = registry.discover_module("nodepacks.core.nodes")

        assert count >= 8
        assert "condition" in registry
        assert "base" not in registry

    def test_discover_module_import_error(self):
        assert NodeRegistry().discover_module("nodepacks.does_not_exist") == 0


class TestGlobalRegistry:
    """Test the global registry with the built-in packs."""

    def test_builtin_packs_loaded(self):
        registry = get_global_registry()

        core_types = {
            "webhook-trigger", "http-request", "condition", "set-variable", "data-filter",
            "code-execution", "response", "logger", "data-table", "date-helper", "data-mapper",
        }
        integration_types = {
            "clockodo", "convertkit", "clickup", "copper", "shopify", "trello",
            "amazon-ses", "amazon-sqs",
        }
        assert core_types | integration_types <= set(registry.list_types())
        assert {pack.name for pack in registry.list_packs()} == {"core", "integrations"}

    def test_singleton(self):
        assert get_global_registry() is get_global_registry()

    def test_definition_metadata(self):
        """Definitions expose category, pack and proxy name."""
        definition = get_global_registry().get("clockodo")

        assert isinstance(definition, NodeDefinition)
        assert definition.display_name == "Clockodo"
        assert definition.category == "action"
        assert definition.node_pack == "integrations"
        assert definition.proxy_name == "clockodo-proxy"

        trigger = get_global_registry().get("webhook-trigger")
        assert trigger.category == "trigger"
        assert trigger.proxy_name is None
