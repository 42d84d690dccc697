"""
Variable bindings - ``{{...}}`` references inside node inputs.

Supported paths:
- ``{{nodeId.field.sub}}``     output of a node that already ran
- ``{{env.API_TOKEN}}``        flow variables and secrets
- ``{{variables.name}}``       values written by set-variable nodes
- ``{{request.body.email}}``   the triggering request
- ``{{nodeId.items[0].id}}``   list indexing

An input that is exactly one binding keeps the referenced value's type.
Bindings embedded in longer text are rendered as text.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Tuple

BINDING_PATTERN = re.compile(r"\{\{\s*([^{}]+?)\s*\}\}")
_SEGMENT_PATTERN = re.compile(r"^([^\[\]]*)((?:\[\d+\])*)$")
_INDEX_PATTERN = re.compile(r"\[(\d+)\]")


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


def _split_path(path: str) -> List[Tuple[str, List[int]]]:
    segments = []
    for part in path.split("."):
        match = _SEGMENT_PATTERN.match(part.strip())
        if not match:
            segments.append((part, []))
            continue
        key, indexes = match.groups()
        segments.append((key, [int(i) for i in _INDEX_PATTERN.findall(indexes)]))
    return segments


def _step(current: Any, key: str) -> Any:
    if isinstance(current, dict):
        return current.get(key, MISSING)
    if isinstance(current, list) and key.isdigit():
        index = int(key)
        return current[index] if index < len(current) else MISSING
    return MISSING


def lookup(path: str, context: Dict[str, Any]) -> Any:
    """Walk a dotted path through the context. Returns MISSING if absent."""
    current: Any = context
    for key, indexes in _split_path(path):
        if key:
            current = _step(current, key)
        for index in indexes:
            if not isinstance(current, list) or index >= len(current):
                return MISSING
            current = current[index]
        if current is MISSING:
            return MISSING
    return current


def _render(value: Any) -> str:
    if value is MISSING or value is None:
        return ""
    if isinstance(value, (dict, list, bool)):
        return json.dumps(value, default=str)
    return str(value)


def resolve_string(template: str, context: Dict[str, Any]) -> Any:
    """Resolve bindings in one string."""
    whole = BINDING_PATTERN.fullmatch(template.strip())
    if whole:
        value = lookup(whole.group(1), context)
        return None if value is MISSING else value

    return BINDING_PATTERN.sub(lambda m: _render(lookup(m.group(1), context)), template)


def resolve_value(value: Any, context: Dict[str, Any]) -> Any:
    """Resolve bindings recursively through dicts and lists."""
    if isinstance(value, str):
        if "{{" not in value:
            return value
        return resolve_string(value, context)
    if isinstance(value, dict):
        return {key: resolve_value(item, context) for key, item in value.items()}
    if isinstance(value, list):
        return [resolve_value(item, context) for item in value]
    return value


def resolve_inputs(inputs: Dict[str, Any], context: Dict[str, Any]) -> Dict[str, Any]:
    """Resolve every binding in a node's inputs."""
    return resolve_value(inputs or {}, context)


__all__ = [
    "BINDING_PATTERN",
    "MISSING",
    "lookup",
    "resolve_string",
    "resolve_value",
    "resolve_inputs",
]
