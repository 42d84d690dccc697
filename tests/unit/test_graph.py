"""Tests for flow parsing and graph compilation."""
import pytest

from workflow_runtime import FlowGraph, FlowValidationError, parse_flow
from workflow_runtime.graph import handle_for


def _node(node_id, node_type="set-variable", **data):
    return {"id": node_id, "data": {"type": node_type, **data}}


class TestParseFlow:
    """Test flow JSON parsing."""

    def test_camel_case_fields(self):
        flow = parse_flow({
            "nodes": [_node("a", label="First", errorBehavior="continue", disabled=True)],
            "edges": [{"source": "a", "target": "a", "sourceHandle": "true"}],
        })

        node = flow.nodes[0]
        assert node.type == "set-variable"
        assert node.display_name == "First"
        assert node.data.error_behavior == "continue"
        assert node.data.disabled is True
        assert flow.edges[0].source_handle == "true"

    def test_display_name_falls_back_to_id(self):
        flow = parse_flow({"nodes": [_node("n1")]})

        assert flow.nodes[0].display_name == "n1"
        assert flow.get_node("n1") is flow.nodes[0]
        assert flow.get_node("n2") is None


class TestFlowGraph:
    """Test FlowGraph compilation and routing."""

    def test_execution_order_is_topological_and_stable(self):
        flow = parse_flow({
            "nodes": [_node("c"), _node("a"), _node("b"), _node("d")],
            "edges": [
                {"source": "a", "target": "b"},
                {"source": "b", "target": "d"},
                {"source": "c", "target": "d"},
            ],
        })

        graph = FlowGraph.compile(flow)

        assert graph.execution_order == ["c", "a", "b", "d"]
        assert graph.entry_nodes() == ["c", "a"]
        assert len(graph) == 4

    def test_cycle_rejected(self):
        flow = parse_flow({
            "nodes": [_node("a"), _node("b")],
            "edges": [{"source": "a", "target": "b"}, {"source": "b", "target": "a"}],
        })

        with pytest.raises(FlowValidationError) as exc_info:
            FlowGraph.compile(flow)
        assert "cycles" in str(exc_info.value)

    def test_dangling_edge_rejected(self):
        flow = parse_flow({"nodes": [_node("a")], "edges": [{"source": "a", "target": "ghost"}]})

        with pytest.raises(FlowValidationError) as exc_info:
            FlowGraph.compile(flow)
        assert "unknown node" in str(exc_info.value)

    def test_duplicate_ids_rejected(self):
        flow = parse_flow({"nodes": [_node("a"), _node("a")]})

        with pytest.raises(FlowValidationError):
            FlowGraph.compile(flow)

    def test_condition_branches(self):
        """Handled edges follow the result; unhandled edges always run."""
        flow = parse_flow({
            "nodes": [_node("check", "condition"), _node("yes"), _node("no"), _node("always")],
            "edges": [
                {"source": "check", "target": "yes", "sourceHandle": "true"},
                {"source": "check", "target": "no", "sourceHandle": "false"},
                {"source": "check", "target": "always"},
            ],
        })
        graph = FlowGraph.compile(flow)

        assert graph.next_nodes("check", True) == ["yes", "always"]
        assert graph.next_nodes("check", False) == ["no", "always"]
        assert graph.next_nodes("check") == ["yes", "no", "always"]

    def test_handle_for(self):
        assert handle_for(True) == "true"
        assert handle_for(False) == "false"
        assert handle_for("maybe") == "maybe"
