"""Tests for {{...}} binding resolution."""
from workflow_runtime.bindings import MISSING, lookup, resolve_inputs, resolve_value


CONTEXT = {
    "fetch": {"data": {"items": [{"id": 7, "tags": ["a", "b"]}], "count": 1}, "success": True},
    "request": {"body": {"email": "ada@example.com", "age": 36}, "query": {"page": "2"}},
    "env": {"API_TOKEN": "secret-token"},
    "variables": {"greeting": "hello"},
}


class TestLookup:
    """Test dotted path lookup."""

    def test_nested_path(self):
        assert lookup("request.body.email", CONTEXT) == "ada@example.com"

    def test_list_indexing(self):
        assert lookup("fetch.data.items[0].id", CONTEXT) == 7
        assert lookup("fetch.data.items[0].tags[1]", CONTEXT) == "b"

    def test_numeric_segment_on_list(self):
        assert lookup("fetch.data.items.0.id", CONTEXT) == 7

    def test_missing_paths(self):
        assert lookup("fetch.data.nope", CONTEXT) is MISSING
        assert lookup("fetch.data.items[5].id", CONTEXT) is MISSING
        assert lookup("unknown.node", CONTEXT) is MISSING


class TestResolveValue:
    """Test binding resolution inside inputs."""

    def test_whole_binding_keeps_type(self):
        """A value that is exactly one binding is not stringified."""
        assert resolve_value("{{fetch.data.count}}", CONTEXT) == 1
        assert resolve_value("{{ fetch.data.items }}", CONTEXT) == [{"id": 7, "tags": ["a", "b"]}]
        assert resolve_value("{{fetch.success}}", CONTEXT) is True

    def test_missing_whole_binding_is_none(self):
        assert resolve_value("{{fetch.data.nope}}", CONTEXT) is None

    def test_embedded_bindings_render_text(self):
        value = resolve_value("Bearer {{env.API_TOKEN}} for {{request.body.email}}", CONTEXT)

        assert value == "Bearer secret-token for ada@example.com"

    def test_embedded_objects_render_json(self):
        value = resolve_value("tags={{fetch.data.items[0].tags}} ok={{fetch.success}}", CONTEXT)

        assert value == 'tags=["a", "b"] ok=true'

    def test_embedded_missing_renders_empty(self):
        assert resolve_value("x{{nothing.here}}y", CONTEXT) == "xy"

    def test_variables_and_query(self):
        assert resolve_value("{{variables.greeting}} page {{request.query.page}}", CONTEXT) == "hello page 2"

    def test_plain_values_untouched(self):
        assert resolve_value("no bindings", CONTEXT) == "no bindings"
        assert resolve_value(42, CONTEXT) == 42
        assert resolve_value(None, CONTEXT) is None

    def test_resolve_inputs_recurses(self):
        inputs = {
            "to": "{{request.body.email}}",
            "meta": {"age": "{{request.body.age}}", "list": ["{{fetch.data.count}}", "static"]},
        }

        resolved = resolve_inputs(inputs, CONTEXT)

        assert resolved == {
            "to": "ada@example.com",
            "meta": {"age": 36, "list": [1, "static"]},
        }

    def test_resolve_inputs_none(self):
        assert resolve_inputs(None, CONTEXT) == {}
