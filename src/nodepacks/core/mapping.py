"""
Data Mapper - Local data transformations.

Mapping rules come in two shapes:
    [{"source": "user.name", "target": "name", "transform": "value.upper()",
      "defaultValue": "n/a"}]
    {"user.name": "name"}

``transform`` and ``transformCode`` are Python expressions evaluated with
``value``/``item`` and ``data`` in scope respectively.

Used both by the ``data-mapper`` node and the ``data-mapper-proxy`` function.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from dateutil import parser as date_parser

from node_sdk import (
    BaseNode,
    InputField,
    NodeCategory,
    NodeExecutionContext,
    NodeOperationError,
    OutputField,
    select,
    text,
)

from .utils import eval_expression, get_path, set_path, sort_records


logger = logging.getLogger(__name__)


class DataMapperError(ValueError):
    """Bad mapper input or unknown action."""


def _parse(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value
    return value


def _parse_strict(value: Any, what: str) -> Any:
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            raise DataMapperError(f"Invalid {what} JSON")
    return value


def _key_list(value: Any) -> Optional[List[str]]:
    """Keys given as a list, a JSON list or a comma separated string."""
    value = _parse(value)
    if isinstance(value, list):
        return [str(k) for k in value]
    if isinstance(value, str) and value.strip():
        return [k.strip() for k in value.split(",") if k.strip()]
    return None


def _each(data: Any, fn: Callable[[Any], Any]) -> Any:
    return [fn(item) for item in data] if isinstance(data, list) else fn(data)


def normalize_rules(rules: Any) -> List[Dict[str, Any]]:
    """Turn the accepted rule shapes into a list of rule dicts."""
    rules = _parse_strict(rules, "mapping rules")
    if isinstance(rules, list):
        return rules
    if isinstance(rules, dict):
        is_simple = (
            rules
            and not ("source" in rules and "target" in rules)
            and all(isinstance(v, str) for v in rules.values())
        )
        if is_simple:
            return [{"source": src, "target": tgt} for src, tgt in rules.items()]
        return [rules]
    raise DataMapperError(f"Mapping rules must be an array or object, got: {type(rules).__name__}")


def map_fields(data: Any, rules: Any) -> Any:
    """Build new objects from ``source`` paths into ``target`` paths."""
    parsed_rules = normalize_rules(rules)

    def map_single(item: Any) -> Dict[str, Any]:
        mapped: Dict[str, Any] = {}
        for rule in parsed_rules:
            source, target = (rule or {}).get("source"), (rule or {}).get("target")
            if not isinstance(source, str) or not source or not isinstance(target, str) or not target:
                logger.warning(f"Skipping invalid mapping rule: {json.dumps(rule, default=str)}")
                continue
            value = get_path(item, source)
            if value is None and "defaultValue" in rule:
                value = rule["defaultValue"]
            if rule.get("transform"):
                value = eval_expression(rule["transform"], value=value, item=item)
            set_path(mapped, target, value)
        return mapped

    return _each(data, map_single)


def _age(raw: Any) -> Optional[int]:
    born = date_parser.parse(str(raw))
    today = datetime.now(timezone.utc).date()
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age


def _date_only(raw: Any) -> str:
    parsed = date_parser.parse(str(raw))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return date(parsed.year, parsed.month, parsed.day).isoformat()


def apply_advanced_rules(data: Any, rules: List[Dict[str, Any]]) -> Any:
    """Rules with ``type``: direct, concat, calculate_age, date_format."""

    def apply(item: Any) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for rule in rules:
            target = rule.get("target") or rule.get("targetField")
            source = rule.get("source") or rule.get("sourceField")
            rule_type = rule.get("type") or "direct"
            if not target:
                continue

            value = None
            if rule_type == "concat" and isinstance(rule.get("sourceFields"), list):
                parts = [get_path(item, key) for key in rule["sourceFields"]]
                value = (rule.get("separator") or " ").join(str(p) for p in parts if p is not None)
            elif rule_type == "calculate_age" and source:
                raw = get_path(item, source)
                value = _age(raw) if raw else None
            elif rule_type == "date_format" and source:
                raw = get_path(item, source)
                value = _date_only(raw) if raw else None
            elif source:
                value = get_path(item, source)

            if value is None and "defaultValue" in rule:
                value = rule["defaultValue"]
            if rule.get("transform"):
                value = eval_expression(rule["transform"], value=value, item=item)
            result[target] = value
        return result

    return _each(data, apply)


def fill_template(mapped: Any, template: Dict[str, Any]) -> Dict[str, Any]:
    """Template keys take mapped values when present; extra mapped keys are kept."""
    mapped = mapped if isinstance(mapped, dict) else {}
    result = {key: mapped.get(key, default) for key, default in template.items()}
    for key, value in mapped.items():
        result.setdefault(key, value)
    return result


def group_by(items: List[Any], key: str) -> Dict[str, List[Any]]:
    grouped: Dict[str, List[Any]] = {}
    for item in items:
        value = get_path(item, key)
        grouped.setdefault("undefined" if value is None else str(value), []).append(item)
    return grouped


def flatten(data: Any, depth: Optional[int] = None) -> Any:
    limit = depth or float("inf")

    def flatten_obj(obj: Dict[str, Any], prefix: str = "", level: int = 0) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for key, value in obj.items():
            full_key = f"{prefix}.{key}" if prefix else key
            if isinstance(value, dict) and value and level < limit:
                out.update(flatten_obj(value, full_key, level + 1))
            else:
                out[full_key] = value
        return out

    return _each(data, flatten_obj)


def unflatten(data: Any) -> Any:
    def unflatten_obj(obj: Dict[str, Any]) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for key, value in obj.items():
            set_path(out, key, value)
        return out

    return _each(data, unflatten_obj)


# =============================================================================
# Actions
# =============================================================================

def _require_input(params: Dict[str, Any]) -> Any:
    data = _parse(params.get("inputData"))
    if data is None or data == "":
        raise DataMapperError("Input data is required")
    return data


def _require_list(params: Dict[str, Any]) -> List[Any]:
    data = _parse(params.get("inputData"))
    if not isinstance(data, list):
        raise DataMapperError("Input array is required")
    return data


def advanced_mapping(params: Dict[str, Any]) -> Any:
    data = _require_input(params)

    template = _parse_strict(params.get("targetData"), "target data") if params.get("targetData") else None

    rules = params.get("mappingRules")
    if rules:
        rules = _parse_strict(rules, "mapping rules")
        if isinstance(rules, dict) and rules.get("mappingRules"):
            rules = rules["mappingRules"]
        if isinstance(rules, list):
            data = apply_advanced_rules(data, rules)
        else:
            data = map_fields(data, rules)

    if isinstance(template, dict):
        data = _each(data, lambda item: fill_template(item, template))

    if params.get("sortByKey") and isinstance(data, list):
        data = sort_records(data, params["sortByKey"], descending=params.get("sortDirection") == "desc")

    if params.get("groupByKey") and isinstance(data, list):
        data = group_by(data, params["groupByKey"])

    if params.get("transformCode"):
        data = eval_expression(params["transformCode"], data=data)

    return data


def map_fields_action(params: Dict[str, Any]) -> Any:
    data = _require_input(params)
    if not params.get("mappingRules"):
        raise DataMapperError("Mapping rules are required")
    return map_fields(data, params["mappingRules"])


def flatten_action(params: Dict[str, Any]) -> Any:
    depth = params.get("flattenDepth")
    return flatten(_require_input(params), int(depth) if depth not in (None, "") else None)


def unflatten_action(params: Dict[str, Any]) -> Any:
    return unflatten(_require_input(params))


def group_by_action(params: Dict[str, Any]) -> Any:
    data = _require_list(params)
    if not params.get("groupByKey"):
        raise DataMapperError("Group by key is required")
    return group_by(data, params["groupByKey"])


def sort_action(params: Dict[str, Any]) -> Any:
    data = _require_list(params)
    if not params.get("sortByKey"):
        raise DataMapperError("Sort key is required")
    return sort_records(data, params["sortByKey"], descending=params.get("sortDirection") == "desc")


def pick_action(params: Dict[str, Any]) -> Any:
    data = _require_input(params)
    keys = _key_list(params.get("pickKeys"))
    if keys is None:
        raise DataMapperError("Pick keys array is required")
    return _each(data, lambda obj: {k: obj[k] for k in keys if k in obj})


def omit_action(params: Dict[str, Any]) -> Any:
    data = _require_input(params)
    keys = _key_list(params.get("omitKeys"))
    if keys is None:
        raise DataMapperError("Omit keys array is required")
    return _each(data, lambda obj: {k: v for k, v in obj.items() if k not in keys})


def rename_action(params: Dict[str, Any]) -> Any:
    data = _require_input(params)
    if not params.get("renameKeys"):
        raise DataMapperError("Rename keys mapping is required")
    renames = _parse_strict(params["renameKeys"], "rename keys")
    return _each(data, lambda obj: {renames.get(k) or k: v for k, v in obj.items()})


def apply_defaults_action(params: Dict[str, Any]) -> Any:
    data = _require_input(params)
    if not params.get("defaultValues"):
        raise DataMapperError("Default values are required")
    defaults = _parse_strict(params["defaultValues"], "default values")

    def apply(obj: Dict[str, Any]) -> Dict[str, Any]:
        out = dict(obj)
        for key, value in defaults.items():
            if out.get(key) is None:
                out[key] = value
        return out

    return _each(data, apply)


def custom_transform_action(params: Dict[str, Any]) -> Any:
    data = _require_input(params)
    if not params.get("transformCode"):
        raise DataMapperError("Transform code is required")
    return eval_expression(params["transformCode"], data=data)


MAPPER_ACTIONS: Dict[str, Callable[[Dict[str, Any]], Any]] = {
    "advancedMapping": advanced_mapping,
    "mapFields": map_fields_action,
    "flatten": flatten_action,
    "unflatten": unflatten_action,
    "groupBy": group_by_action,
    "sort": sort_action,
    "pick": pick_action,
    "omit": omit_action,
    "rename": rename_action,
    "applyDefaults": apply_defaults_action,
    "customTransform": custom_transform_action,
}


def run_mapper_action(action: Optional[str], params: Dict[str, Any]) -> Dict[str, Any]:
    """
    Dispatch a data mapper action.

    Returns ``{success: True, error: None, data}``. Bad input raises
    DataMapperError; errors raised by user expressions propagate as is.
    """
    handler = MAPPER_ACTIONS.get(action or "")
    if handler is None:
        raise DataMapperError(f"Unknown action: {action}")
    return {"success": True, "error": None, "data": handler(params)}


# =============================================================================
# Node
# =============================================================================

class DataMapperNode(BaseNode):
    type = "data-mapper"
    name = "Data Mapper"
    description = "Map, reshape, sort and group data"
    category = NodeCategory.TRANSFORMER

    inputs = [
        select("action", "Action", list(MAPPER_ACTIONS), required=True, default="mapFields"),
        InputField(name="inputData", label="Input Data", type="json", required=True),
    ]
    outputs = [OutputField(name="data"), OutputField(name="error", type="string")]

    ACTION_FIELDS = {
        "advancedMapping": [
            InputField(name="mappingRules", label="Mapping Rules", type="json"),
            InputField(name="targetData", label="Target Template", type="json"),
            text("sortByKey", "Sort By"),
            select("sortDirection", "Sort Direction", ["asc", "desc"], default="asc"),
            text("groupByKey", "Group By"),
            InputField(name="transformCode", label="Transform Expression", type="code", language="python"),
        ],
        "mapFields": [InputField(name="mappingRules", label="Mapping Rules", type="json", required=True)],
        "flatten": [InputField(name="flattenDepth", label="Depth", type="number")],
        "groupBy": [text("groupByKey", "Group By", required=True)],
        "sort": [
            text("sortByKey", "Sort By", required=True),
            select("sortDirection", "Sort Direction", ["asc", "desc"], default="asc"),
        ],
        "pick": [InputField(name="pickKeys", label="Keys", type="json", required=True)],
        "omit": [InputField(name="omitKeys", label="Keys", type="json", required=True)],
        "rename": [InputField(name="renameKeys", label="Renames", type="json", required=True)],
        "applyDefaults": [InputField(name="defaultValues", label="Defaults", type="json", required=True)],
        "customTransform": [
            InputField(name="transformCode", label="Transform Expression", type="code",
                       language="python", required=True),
        ],
    }

    def get_dynamic_inputs(self, current_inputs):
        return list(self.ACTION_FIELDS.get(current_inputs.get("action") or "mapFields", []))

    def execute(self, inputs: Dict[str, Any], context: NodeExecutionContext) -> Dict[str, Any]:
        try:
            return run_mapper_action(inputs.get("action"), inputs)
        except Exception as e:
            raise NodeOperationError(str(e), node=self)


__all__ = [
    "DataMapperNode",
    "DataMapperError",
    "MAPPER_ACTIONS",
    "run_mapper_action",
    "map_fields",
    "flatten",
    "unflatten",
    "group_by",
]
