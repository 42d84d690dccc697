"""
Data Table Node - CRUD on the records of a project data table.

Tables are ``{records: [...], schema: {fields: [...]}}`` documents served by
the table store attached to the execution context.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List

from node_sdk import (
    BaseNode,
    InputField,
    NodeCategory,
    NodeExecutionContext,
    NodeOperationError,
    NodeValidationError,
    OutputField,
    select,
    text,
)

from .utils import sort_records, to_text


FIELD_MAP_PREFIX = "fieldMap."


def _load_json(value: Any, default: Any) -> Any:
    """Table inputs tolerate malformed JSON and fall back to ``default``."""
    if value in (None, ""):
        return default
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return default
    return value


def compose_record_data(inputs: Dict[str, Any]) -> Dict[str, Any]:
    """``fieldMap.<name>`` inputs win over the ``data`` JSON input."""
    field_map = {
        key[len(FIELD_MAP_PREFIX):]: value
        for key, value in inputs.items()
        if key.startswith(FIELD_MAP_PREFIX) and value not in (None, "")
    }
    if field_map:
        return field_map
    data = _load_json(inputs.get("data"), {})
    return data if isinstance(data, dict) else {}


def _matches(record: Dict[str, Any], criterion: Dict[str, Any]) -> bool:
    value = record.get(criterion.get("field"))
    operator = criterion.get("operator")
    if operator == "equals":
        return value == criterion.get("value")
    if operator == "notEquals":
        return value != criterion.get("value")
    if operator == "contains":
        return to_text(criterion.get("value")).lower() in to_text(value).lower()
    return True


class DataTableNode(BaseNode):
    """Data Table - get/create/update/delete records."""

    type = "data-table"
    name = "Data Table"
    description = "Read and write records of a data table"
    category = NodeCategory.ACTION

    inputs = [
        text("tableId", "Table", required=True),
        select("operation", "Operation", ["get", "create", "update", "delete"], default="get"),
        InputField(name="data", label="Record Data (JSON)", type="json"),
        text("recordId", "Record ID"),
        InputField(name="filter", label="Filter (JSON)", type="json",
                   description='[{"field": "status", "operator": "equals", "value": "open"}]'),
        InputField(name="sort", label="Sort (JSON)", type="json",
                   description='{"field": "createdAt", "direction": "desc"}'),
        InputField(name="limit", label="Limit", type="number"),
    ]
    outputs = [
        OutputField(name="result"),
        OutputField(name="count", type="number"),
    ]

    def execute(self, inputs: Dict[str, Any], context: NodeExecutionContext) -> Dict[str, Any]:
        operation = inputs.get("operation") or "get"
        table_id = inputs.get("tableId")
        if not table_id:
            raise NodeValidationError("Data Table: tableId is required", node=self)
        if context.table_store is None:
            raise NodeOperationError("Data Table: no table store configured", node=self)

        table = context.table_store.get_table(table_id)
        if table is None:
            raise NodeOperationError(f"Data Table: Table {table_id} not found", node=self)

        records: List[Dict[str, Any]] = list(table.get("records") or [])

        if operation == "get":
            return self._get(records, inputs)
        if operation == "create":
            return self._create(context, table_id, table, records, inputs)
        if operation == "update":
            return self._update(context, table_id, records, inputs)
        if operation == "delete":
            return self._delete(context, table_id, records, inputs)
        raise NodeValidationError(f'Data Table: Unknown operation "{operation}"', node=self)

    def _get(self, records: List[Dict[str, Any]], inputs: Dict[str, Any]) -> Dict[str, Any]:
        filtered = records

        criteria = _load_json(inputs.get("filter"), None)
        if isinstance(criteria, list):
            filtered = [
                r for r in filtered
                if isinstance(r, dict) and all(_matches(r, c) for c in criteria if isinstance(c, dict))
            ]

        sort = _load_json(inputs.get("sort"), None)
        if isinstance(sort, dict) and sort.get("field"):
            filtered = sort_records(filtered, str(sort["field"]), descending=sort.get("direction") == "desc")

        limit = inputs.get("limit")
        if limit not in (None, ""):
            try:
                filtered = filtered[: int(float(limit))]
            except (TypeError, ValueError):
                pass

        return {"result": filtered, "count": len(filtered)}

    def _create(
        self,
        context: NodeExecutionContext,
        table_id: str,
        table: Dict[str, Any],
        records: List[Dict[str, Any]],
        inputs: Dict[str, Any],
    ) -> Dict[str, Any]:
        record_data = compose_record_data(inputs)

        # Fill timestamp columns the caller left empty
        schema_fields = (table.get("schema") or {}).get("fields") or []
        now = datetime.now(timezone.utc).isoformat()
        for schema_field in schema_fields:
            if schema_field.get("type") != "timestamp":
                continue
            name = schema_field.get("name")
            key = schema_field.get("id") or name
            if name and not record_data.get(key) and not record_data.get(name):
                record_data[name] = now

        new_record = {"id": str(uuid.uuid4()), **record_data}
        records.append(new_record)
        context.table_store.save_records(table_id, records)
        return {"result": new_record, "count": len(records)}

    def _update(
        self,
        context: NodeExecutionContext,
        table_id: str,
        records: List[Dict[str, Any]],
        inputs: Dict[str, Any],
    ) -> Dict[str, Any]:
        record_id = inputs.get("recordId")
        if not record_id:
            raise NodeValidationError("Data Table update: recordId is required", node=self)

        for index, record in enumerate(records):
            if isinstance(record, dict) and record.get("id") == record_id:
                records[index] = {**record, **compose_record_data(inputs)}
                context.table_store.save_records(table_id, records)
                return {"result": records[index], "count": 1}

        raise NodeOperationError(f"Data Table: Record {record_id} not found", node=self)

    def _delete(
        self,
        context: NodeExecutionContext,
        table_id: str,
        records: List[Dict[str, Any]],
        inputs: Dict[str, Any],
    ) -> Dict[str, Any]:
        record_id = inputs.get("recordId")
        if not record_id:
            raise NodeValidationError("Data Table delete: recordId is required", node=self)

        remaining = [r for r in records if not (isinstance(r, dict) and r.get("id") == record_id)]
        context.table_store.save_records(table_id, remaining)
        return {"result": None, "count": len(remaining)}


__all__ = ["DataTableNode", "compose_record_data"]
