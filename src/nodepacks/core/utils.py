"""
Shared helpers for core nodes: dotted paths, user code, sorting.
"""

from __future__ import annotations

import textwrap
from typing import Any, Dict, List


def get_path(data: Any, path: str) -> Any:
    """Read ``a.b.0.c`` from nested dicts/lists. Missing -> None."""
    current = data
    for key in path.split("."):
        if isinstance(current, dict):
            current = current.get(key)
        elif isinstance(current, list) and key.isdigit() and int(key) < len(current):
            current = current[int(key)]
        else:
            return None
    return current


def set_path(target: Dict[str, Any], path: str, value: Any) -> None:
    """Write ``a.b.c`` into a dict, creating intermediate dicts."""
    keys = path.split(".")
    current = target
    for key in keys[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]
    current[keys[-1]] = value


def run_user_code(code: str, **names: Any) -> Any:
    """
    Run user code as the body of a function.

    ``names`` become the function's parameters; a ``return`` statement
    gives the result.
    """
    body = textwrap.indent(textwrap.dedent(code or ""), "    ") or "    pass"
    source = f"def __user_code__({', '.join(names)}):\n{body}\n"
    namespace: Dict[str, Any] = {"__builtins__": __builtins__}
    exec(compile(source, "<user code>", "exec"), namespace)
    return namespace["__user_code__"](**names)


def eval_expression(expression: str, **names: Any) -> Any:
    """Evaluate a single Python expression with ``names`` in scope."""
    return eval(compile(expression, "<expression>", "eval"), {"__builtins__": __builtins__}, names)


def sort_key(value: Any) -> tuple:
    """Total order over mixed values: numbers, then text, then None."""
    if value is None:
        return (2, "")
    if isinstance(value, bool):
        return (1, str(value).lower())
    if isinstance(value, (int, float)):
        return (0, value)
    return (1, str(value))


def sort_records(records: List[Any], path: str, descending: bool = False) -> List[Any]:
    return sorted(records, key=lambda item: sort_key(get_path(item, path)), reverse=descending)


def to_text(value: Any) -> str:
    """String form used by text comparisons (booleans lower-case)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
