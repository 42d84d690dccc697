"""
BaseNode - Abstract base class for node plugins.

A node plugin is a declarative descriptor (type, name, category, inputs,
outputs) paired with an execute() function that turns resolved inputs into
an output dict. Integration nodes validate credentials, shape a payload and
forward it to a proxy function; built-in nodes compute locally.

All execution is synchronous (sync-Celery safe).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, List, Literal, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field

from .errors import CredentialsMissingError, NodeOperationError


logger = logging.getLogger(__name__)


# ==============================================================================
# Field types
# ==============================================================================

InputFieldType = Literal[
    "text", "textarea", "number", "boolean", "select",
    "code", "json", "variable",
]


class NodeCategory(str, Enum):
    """Where a node sits in a flow."""
    TRIGGER = "trigger"
    ACTION = "action"
    TRANSFORMER = "transformer"
    CONDITION = "condition"


# ==============================================================================
# InputField / OutputField - Pydantic models for node schemas
# ==============================================================================

class InputField(BaseModel):
    """
    A single input of a node.

    Accepts both snake_case and the camelCase keys used by flow documents
    (``isApiKey``).
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str = Field(..., description="Input key")
    label: str = Field("", description="Human-readable label")
    type: InputFieldType = Field("text", description="Input type")
    required: bool = Field(False, description="Is input required?")
    default: Any = Field(None, description="Default value")
    description: Optional[str] = Field(None, description="Help text")
    placeholder: Optional[str] = Field(None, description="Input placeholder")
    options: Optional[List[Dict[str, Any]]] = Field(
        None,
        description="Options for select inputs",
    )
    is_api_key: bool = Field(
        False,
        alias="isApiKey",
        description="Credential input, never echoed to logs",
    )
    language: Optional[str] = Field(None, description="Editor language for code inputs")


class OutputField(BaseModel):
    """A single output key of a node."""
    model_config = ConfigDict(extra="allow")

    name: str
    type: str = "object"
    description: Optional[str] = None


def text(name: str, label: str = "", required: bool = False, **kwargs: Any) -> InputField:
    """Shorthand for a text input."""
    return InputField(name=name, label=label or name, type="text", required=required, **kwargs)


def select(
    name: str,
    label: str,
    values: List[str],
    required: bool = False,
    **kwargs: Any,
) -> InputField:
    """Shorthand for a select input whose labels equal its values."""
    options = [{"label": value, "value": value} for value in values]
    return InputField(name=name, label=label, type="select", required=required, options=options, **kwargs)


# ==============================================================================
# Context collaborators
# ==============================================================================

class ProxyInvoker(Protocol):
    """Anything that can call a proxy function by name."""

    def invoke(self, name: str, body: Dict[str, Any]) -> Dict[str, Any]:
        ...


class TableStoreProtocol(Protocol):
    """Storage used by the data-table node."""

    def get_table(self, table_id: str) -> Optional[Dict[str, Any]]:
        ...

    def save_records(self, table_id: str, records: List[Dict[str, Any]]) -> None:
        ...


LogSink = Callable[[Dict[str, Any]], Optional[str]]


# ==============================================================================
# NodeExecutionContext - Runtime context for node execution
# ==============================================================================

class NodeExecutionContext:
    """
    Runtime context provided to nodes during execution.

    Provides access to:
    - Flow variables and environment
    - The triggering request
    - Outputs of nodes that already ran
    - Proxy invocation, table storage and the monitoring log sink
    """

    def __init__(
        self,
        variables: Optional[Dict[str, Any]] = None,
        env: Optional[Dict[str, Any]] = None,
        request: Optional[Dict[str, Any]] = None,
        outputs: Optional[Dict[str, Any]] = None,
        flow_id: Optional[str] = None,
        execution_id: Optional[str] = None,
        node_id: Optional[str] = None,
        proxy_invoker: Optional[ProxyInvoker] = None,
        table_store: Optional[TableStoreProtocol] = None,
        log_sink: Optional[LogSink] = None,
    ) -> None:
        self.variables = variables if variables is not None else {}
        self.env = env or {}
        self.request = request or {}
        self.outputs = outputs if outputs is not None else {}
        self.flow_id = flow_id
        self.execution_id = execution_id
        self.node_id = node_id
        self.proxy_invoker = proxy_invoker
        self.table_store = table_store
        self.log_sink = log_sink

    def invoke_proxy(self, name: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """Call a proxy function and return its JSON payload."""
        if self.proxy_invoker is None:
            raise NodeOperationError(f"No proxy invoker configured for '{name}'")
        return self.proxy_invoker.invoke(name, body)

    def get_node_output(self, node_id: str) -> Optional[Dict[str, Any]]:
        """Output of a node that already ran, if any."""
        return self.outputs.get(node_id)

    def as_dict(self) -> Dict[str, Any]:
        """Flat view used by user code and bindings."""
        return {
            **self.outputs,
            "request": self.request,
            "env": self.env,
            "variables": self.variables,
            "_flowProjectId": self.flow_id,
            "_executionId": self.execution_id,
        }


# ==============================================================================
# BaseNode - Abstract base class
# ==============================================================================

class BaseNode(ABC):
    """
    Abstract base class for all node plugins.

    Nodes define:
    - type: Unique identifier (e.g., "clockodo")
    - name: Display name
    - category: trigger, action, transformer or condition
    - inputs / outputs: static schema
    - get_dynamic_inputs(): extra inputs that depend on current values

    And implement execute() which maps resolved inputs to an output dict.

    Example:

        class ClockodoNode(BaseNode):
            type = "clockodo"
            name = "Clockodo"
            category = NodeCategory.ACTION

            inputs = [
                text("email", "Email", required=True, isApiKey=True),
                text("apiKey", "API Key", required=True, isApiKey=True),
                select("action", "Action", ["getUsers", "getEntries"], required=True),
            ]
            outputs = [OutputField(name="data")]
            required_credentials = ["email", "apiKey"]

            def execute(self, inputs, context):
                return context.invoke_proxy("clockodo-proxy", inputs)
    """

    # Required class attributes (override in subclasses)
    type: str = "base"
    name: str = "Base Node"
    description: str = ""
    category: NodeCategory = NodeCategory.ACTION
    version: int = 1

    inputs: List[InputField] = []
    outputs: List[OutputField] = []

    # Inputs that must be non-empty before execute() is reached
    required_credentials: List[str] = []
    credentials_error: Optional[str] = None

    def __init__(self) -> None:
        """Initialize node instance."""
        self.logger = logging.getLogger(f"node.{self.type}")

    @abstractmethod
    def execute(self, inputs: Dict[str, Any], context: NodeExecutionContext) -> Dict[str, Any]:
        """
        Execute node operation.

        Returns:
            Output dict. Keys should match the declared outputs.

        Raises:
            NodeOperationError: On operation failure
            NodeApiError: On API call failure
        """
        raise NotImplementedError

    # ==== Schema ====

    def get_dynamic_inputs(self, current_inputs: Dict[str, Any]) -> List[InputField]:
        """Inputs that appear depending on current values (usually ``action``)."""
        return []

    def get_input_fields(self, current_inputs: Optional[Dict[str, Any]] = None) -> List[InputField]:
        """Static inputs followed by the dynamic ones, first name wins."""
        fields: List[InputField] = []
        seen = set()
        for field in [*self.inputs, *self.get_dynamic_inputs(current_inputs or {})]:
            if field.name in seen:
                continue
            seen.add(field.name)
            fields.append(field)
        return fields

    # ==== Execution ====

    def apply_defaults(self, inputs: Dict[str, Any]) -> Dict[str, Any]:
        """Fill unset inputs from field defaults."""
        merged = dict(inputs)
        for field in self.get_input_fields(inputs):
            if field.default is not None and merged.get(field.name) in (None, ""):
                merged[field.name] = field.default
        return merged

    def check_credentials(self, inputs: Dict[str, Any]) -> None:
        """
        Raise before any network call when a credential input is empty.

        Raises:
            CredentialsMissingError
        """
        missing = [name for name in self.required_credentials if not inputs.get(name)]
        if missing:
            message = self.credentials_error or f"{self.name}: missing credentials: {', '.join(missing)}"
            raise CredentialsMissingError(message, node=self, missing=missing)

    def run(self, inputs: Dict[str, Any], context: NodeExecutionContext) -> Dict[str, Any]:
        """
        Execute with the uniform error contract.

        Credential errors propagate. Operation errors are caught and
        returned as ``{"success": False, "error": ...}`` with every declared
        output key present.
        """
        inputs = self.apply_defaults(inputs)
        self.check_credentials(inputs)

        try:
            output = self.execute(inputs, context) or {}
        except CredentialsMissingError:
            raise
        except NodeOperationError as e:
            self.logger.warning("Node %s failed: %s", self.type, e.message)
            failed = {field.name: None for field in self.outputs}
            failed.update({"success": False, "error": e.message})
            if getattr(e, "details", None) is not None:
                failed["details"] = e.details
            return failed

        if "success" not in output:
            output = {**output, "success": True}
        return output

    @classmethod
    def get_definition(cls) -> Dict[str, Any]:
        """Serializable node descriptor."""
        category = cls.category.value if isinstance(cls.category, NodeCategory) else str(cls.category)
        return {
            "type": cls.type,
            "name": cls.name,
            "description": cls.description,
            "category": category,
            "version": cls.version,
            "inputs": [field.model_dump(by_alias=True, exclude_none=True) for field in cls.inputs],
            "outputs": [field.model_dump(exclude_none=True) for field in cls.outputs],
        }


# ==============================================================================
# Exports
# ==============================================================================

__all__ = [
    "BaseNode",
    "NodeCategory",
    "NodeExecutionContext",
    "InputField",
    "InputFieldType",
    "OutputField",
    "ProxyInvoker",
    "TableStoreProtocol",
    "LogSink",
    "text",
    "select",
]
