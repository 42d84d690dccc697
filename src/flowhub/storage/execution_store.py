"""Redis-backed store for flow execution records."""
import uuid
from enum import Enum
from typing import Any

import redis
from pydantic import BaseModel, Field

from flowhub.observability import get_logger
from flowhub.storage.base import get_redis_client, redis_errors, utc_now

logger = get_logger(__name__)

# Most recent executions kept in each flow's index
MAX_EXECUTIONS_PER_FLOW = 500


class ExecutionStatus(str, Enum):
    """Execution record status."""

    QUEUED = "queued"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"


class ExecutionRecord(BaseModel):
    """One run of a flow version."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Execution ID")
    flow_id: str = Field(..., description="Flow project ID")
    flow_version: int | None = Field(default=None, description="Version that ran")
    status: ExecutionStatus = Field(default=ExecutionStatus.RUNNING)
    request: dict[str, Any] | None = Field(
        default=None,
        description="Triggering request {method, headers, body, query}",
    )
    logs: list[dict[str, Any]] = Field(default_factory=list)
    error_message: str | None = None
    status_code: int | None = Field(default=None, description="HTTP status of the flow response")
    response: Any = Field(default=None, description="Flow response body")
    started_at: str = Field(default_factory=utc_now)
    completed_at: str | None = None
    execution_time_ms: int | None = None

    @property
    def is_finished(self) -> bool:
        return self.status in (ExecutionStatus.SUCCESS, ExecutionStatus.ERROR)


class ExecutionStore:
    """Execution records by id, indexed per flow (newest first)."""

    def __init__(self, redis_client: redis.Redis | None = None):
        self.redis_client = redis_client if redis_client is not None else get_redis_client()
        self._execution_prefix = "execution:"
        self._flow_index_prefix = "flow:executions:"

    def _execution_key(self, execution_id: str) -> str:
        return f"{self._execution_prefix}{execution_id}"

    def _flow_index_key(self, flow_id: str) -> str:
        return f"{self._flow_index_prefix}{flow_id}"

    def _save(self, record: ExecutionRecord) -> None:
        self.redis_client.set(self._execution_key(record.id), record.model_dump_json())

    def create(
        self,
        flow_id: str,
        flow_version: int | None = None,
        request: dict[str, Any] | None = None,
        status: ExecutionStatus = ExecutionStatus.RUNNING,
    ) -> ExecutionRecord:
        """
        Create an execution record.

        Args:
            flow_id: Flow project ID
            flow_version: Version being executed
            request: Triggering request, kept for queued runs
            status: RUNNING for webhook runs, QUEUED for background runs
        """
        record = ExecutionRecord(flow_id=flow_id, flow_version=flow_version, request=request, status=status)

        with redis_errors("create execution"):
            self._save(record)
            index = self._flow_index_key(flow_id)
            self.redis_client.lpush(index, record.id)
            self.redis_client.ltrim(index, 0, MAX_EXECUTIONS_PER_FLOW - 1)

        logger.info(
            "Execution created",
            extra={"execution_id": record.id, "flow_id": flow_id, "status": status.value},
        )
        return record

    def get(self, execution_id: str) -> ExecutionRecord | None:
        data = self.redis_client.get(self._execution_key(execution_id))
        if data is None:
            return None
        return ExecutionRecord.model_validate_json(data)

    def mark_running(self, execution_id: str) -> ExecutionRecord | None:
        record = self.get(execution_id)
        if record is None:
            logger.error("Execution not found", extra={"execution_id": execution_id})
            return None
        record.status = ExecutionStatus.RUNNING
        record.started_at = utc_now()
        with redis_errors("update execution"):
            self._save(record)
        return record

    def complete(
        self,
        execution_id: str,
        success: bool,
        execution_time_ms: int,
        logs: list[dict[str, Any]] | None = None,
        error_message: str | None = None,
        status_code: int | None = None,
        response: Any = None,
    ) -> ExecutionRecord | None:
        """
        Mark an execution as finished.

        Returns:
            The updated record, or None if it does not exist
        """
        record = self.get(execution_id)
        if record is None:
            logger.error("Execution not found", extra={"execution_id": execution_id})
            return None

        record.status = ExecutionStatus.SUCCESS if success else ExecutionStatus.ERROR
        record.completed_at = utc_now()
        record.execution_time_ms = execution_time_ms
        record.error_message = error_message or None
        record.logs = logs or []
        record.status_code = status_code
        record.response = response

        with redis_errors("complete execution"):
            self._save(record)

        logger.info(
            "Execution completed",
            extra={
                "execution_id": execution_id,
                "flow_id": record.flow_id,
                "status": record.status.value,
                "duration_ms": execution_time_ms,
            },
        )
        return record

    def list_for_flow(self, flow_id: str, limit: int = 50) -> list[ExecutionRecord]:
        """Most recent executions of a flow, newest first."""
        ids = self.redis_client.lrange(self._flow_index_key(flow_id), 0, max(limit, 1) - 1)
        records = [self.get(execution_id) for execution_id in ids]
        return [r for r in records if r is not None]


def get_execution_store() -> ExecutionStore:
    """Get or create execution store instance."""
    return ExecutionStore()
