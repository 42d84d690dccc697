"""Tests for data mapper actions and node."""
import pytest

from node_sdk import NodeExecutionContext
from nodepacks.core.mapping import (
    DataMapperError,
    DataMapperNode,
    flatten,
    normalize_rules,
    run_mapper_action,
    unflatten,
)


PEOPLE = [
    {"user": {"first": "Ada", "last": "Lovelace"}, "team": "core", "age": 36},
    {"user": {"first": "Grace", "last": "Hopper"}, "team": "infra", "age": 85},
    {"user": {"first": "Linus", "last": None}, "age": 54},
]


class TestMappingRules:
    """Test rule normalization and mapFields."""

    def test_simple_object_rules(self):
        assert normalize_rules({"user.first": "name"}) == [{"source": "user.first", "target": "name"}]

    def test_single_rule_object(self):
        rule = {"source": "a", "target": "b"}
        assert normalize_rules(rule) == [rule]

    def test_invalid_json(self):
        with pytest.raises(DataMapperError) as exc_info:
            normalize_rules("[oops")

        assert str(exc_info.value) == "Invalid mapping rules JSON"

    def test_map_fields_with_transform_and_default(self):
        rules = [
            {"source": "user.first", "target": "profile.name", "transform": "value.upper()"},
            {"source": "user.last", "target": "profile.surname", "defaultValue": "n/a"},
            {"source": "", "target": "ignored"},
        ]

        result = run_mapper_action("mapFields", {"inputData": PEOPLE, "mappingRules": rules})

        assert result["success"] is True
        assert result["error"] is None
        assert result["data"][0] == {"profile": {"name": "ADA", "surname": "Lovelace"}}
        assert result["data"][2] == {"profile": {"name": "LINUS", "surname": "n/a"}}

    def test_map_fields_accepts_json_strings(self):
        result = run_mapper_action(
            "mapFields", {"inputData": '{"id": 3, "title": "x"}', "mappingRules": '{"id": "recordId"}'},
        )

        assert result["data"] == {"recordId": 3}

    def test_map_fields_requires_rules(self):
        with pytest.raises(DataMapperError) as exc_info:
            run_mapper_action("mapFields", {"inputData": PEOPLE})

        assert str(exc_info.value) == "Mapping rules are required"


class TestMapperActions:
    """Test the remaining mapper actions."""

    def test_group_by_with_missing_key(self):
        data = run_mapper_action("groupBy", {"inputData": PEOPLE, "groupByKey": "team"})["data"]

        assert sorted(data) == ["core", "infra", "undefined"]
        assert data["undefined"][0]["user"]["first"] == "Linus"

    def test_group_by_requires_list(self):
        with pytest.raises(DataMapperError) as exc_info:
            run_mapper_action("groupBy", {"inputData": {"a": 1}, "groupByKey": "a"})

        assert str(exc_info.value) == "Input array is required"

    def test_sort(self):
        ascending = run_mapper_action("sort", {"inputData": PEOPLE, "sortByKey": "age"})["data"]
        descending = run_mapper_action(
            "sort", {"inputData": PEOPLE, "sortByKey": "user.first", "sortDirection": "desc"},
        )["data"]

        assert [p["age"] for p in ascending] == [36, 54, 85]
        assert [p["user"]["first"] for p in descending] == ["Linus", "Grace", "Ada"]

    def test_sort_requires_key(self):
        with pytest.raises(DataMapperError) as exc_info:
            run_mapper_action("sort", {"inputData": PEOPLE})

        assert str(exc_info.value) == "Sort key is required"

    def test_pick_and_omit(self):
        picked = run_mapper_action("pick", {"inputData": PEOPLE[0], "pickKeys": "team, age"})["data"]
        omitted = run_mapper_action("omit", {"inputData": PEOPLE, "omitKeys": ["user"]})["data"]

        assert picked == {"team": "core", "age": 36}
        assert omitted[1] == {"team": "infra", "age": 85}

    def test_pick_requires_keys(self):
        with pytest.raises(DataMapperError) as exc_info:
            run_mapper_action("pick", {"inputData": PEOPLE})

        assert str(exc_info.value) == "Pick keys array is required"

    def test_rename_and_defaults(self):
        renamed = run_mapper_action("rename", {"inputData": {"a": 1, "b": 2}, "renameKeys": {"a": "alpha"}})["data"]
        defaulted = run_mapper_action(
            "applyDefaults", {"inputData": [{"a": None}, {"a": 5}], "defaultValues": '{"a": 0, "b": true}'},
        )["data"]

        assert renamed == {"alpha": 1, "b": 2}
        assert defaulted == [{"a": 0, "b": True}, {"a": 5, "b": True}]

    def test_custom_transform(self):
        result = run_mapper_action(
            "customTransform", {"inputData": PEOPLE, "transformCode": "sum(p['age'] for p in data)"},
        )

        assert result["data"] == 175

    def test_advanced_mapping_pipeline(self):
        rules = [
            {"type": "concat", "sourceFields": ["user.first", "user.last"], "target": "fullName"},
            {"type": "direct", "source": "age", "target": "age"},
            {"source": "team", "target": "team", "defaultValue": "none"},
        ]

        data = run_mapper_action("advancedMapping", {
            "inputData": PEOPLE,
            "mappingRules": rules,
            "targetData": {"fullName": "", "age": 0, "active": True},
            "sortByKey": "age",
            "sortDirection": "desc",
        })["data"]

        assert data[0] == {"fullName": "Grace Hopper", "age": 85, "active": True, "team": "infra"}
        assert data[1]["fullName"] == "Linus"
        assert data[1]["team"] == "none"

    def test_advanced_mapping_date_format(self):
        rules = [{"type": "date_format", "source": "created", "target": "day"}]

        data = run_mapper_action(
            "advancedMapping", {"inputData": {"created": "2024-01-15T23:30:00-02:00"}, "mappingRules": rules},
        )["data"]

        assert data == {"day": "2024-01-16"}

    def test_input_required(self):
        with pytest.raises(DataMapperError) as exc_info:
            run_mapper_action("flatten", {"inputData": ""})

        assert str(exc_info.value) == "Input data is required"

    def test_unknown_action(self):
        with pytest.raises(DataMapperError) as exc_info:
            run_mapper_action("explode", {"inputData": 1})

        assert str(exc_info.value) == "Unknown action: explode"


class TestFlatten:
    """Test flatten / unflatten."""

    NESTED = {"a": {"b": {"c": 1}, "d": 2}, "e": 3}

    def test_flatten(self):
        assert flatten(self.NESTED) == {"a.b.c": 1, "a.d": 2, "e": 3}

    def test_flatten_depth(self):
        assert flatten(self.NESTED, depth=1) == {"a.b": {"c": 1}, "a.d": 2, "e": 3}

    def test_unflatten_restores(self):
        assert unflatten({"a.b.c": 1, "a.d": 2, "e": 3}) == self.NESTED


class TestDataMapperNode:
    """Test DataMapperNode."""

    def test_run(self):
        output = DataMapperNode().run(
            {"action": "pick", "inputData": PEOPLE, "pickKeys": ["age"]}, NodeExecutionContext(),
        )

        assert output["success"] is True
        assert output["data"] == [{"age": 36}, {"age": 85}, {"age": 54}]

    def test_expression_error_becomes_failed_output(self):
        output = DataMapperNode().run(
            {"action": "customTransform", "inputData": [1], "transformCode": "data[5]"}, NodeExecutionContext(),
        )

        assert output["success"] is False
        assert output["error"] == "list index out of range"
