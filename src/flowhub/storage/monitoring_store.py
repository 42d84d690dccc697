"""Redis-backed monitoring logs and endpoint analytics."""
import uuid
from typing import Any

import redis
from pydantic import BaseModel, Field

from flowhub.observability import get_logger
from flowhub.storage.base import get_redis_client, redis_errors, utc_now

logger = get_logger(__name__)

MAX_ROWS_PER_FLOW = 1000


class MonitoringRow(BaseModel):
    """A dashboard log line for one flow execution."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    flow_id: str | None = None
    execution_id: str | None = None
    node_id: str | None = None
    level: str = "info"
    message: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: str = Field(default_factory=utc_now)


class AnalyticsRow(BaseModel):
    """One webhook request as seen by the endpoint."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    flow_project_id: str
    method: str
    status_code: int
    response_time_ms: int
    ip_address: str = "0.0.0.0"
    user_agent: str = ""
    request_params: dict[str, Any] = Field(default_factory=dict)
    request_size_bytes: int = 0
    response_size_bytes: int = 0
    error_message: str | None = None
    created_at: str = Field(default_factory=utc_now)


class MonitoringStore:
    """Capped per-flow lists of monitoring and analytics rows, newest first."""

    def __init__(self, redis_client: redis.Redis | None = None):
        self.redis_client = redis_client if redis_client is not None else get_redis_client()
        self._monitoring_prefix = "monitoring:"
        self._analytics_prefix = "analytics:"

    def _push(self, key: str, payload: str) -> None:
        self.redis_client.lpush(key, payload)
        self.redis_client.ltrim(key, 0, MAX_ROWS_PER_FLOW - 1)

    def add_row(self, row: dict[str, Any]) -> str:
        """Store one monitoring row and return its id. Usable as a node log sink."""
        model = MonitoringRow.model_validate(row)
        with redis_errors("add monitoring row"):
            self._push(f"{self._monitoring_prefix}{model.flow_id or 'unknown'}", model.model_dump_json())
        return model.id

    def add_rows(self, rows: list[dict[str, Any]]) -> list[str]:
        ids = [self.add_row(row) for row in rows]
        if ids:
            logger.info(f"Stored {len(ids)} monitoring rows")
        return ids

    def list_rows(self, flow_id: str, limit: int = 100) -> list[MonitoringRow]:
        data = self.redis_client.lrange(f"{self._monitoring_prefix}{flow_id}", 0, max(limit, 1) - 1)
        return [MonitoringRow.model_validate_json(item) for item in data]

    def add_analytics(self, row: AnalyticsRow) -> str:
        with redis_errors("add analytics row"):
            self._push(f"{self._analytics_prefix}{row.flow_project_id}", row.model_dump_json())
        return row.id

    def list_analytics(self, flow_id: str, limit: int = 100) -> list[AnalyticsRow]:
        data = self.redis_client.lrange(f"{self._analytics_prefix}{flow_id}", 0, max(limit, 1) - 1)
        return [AnalyticsRow.model_validate_json(item) for item in data]


def get_monitoring_store() -> MonitoringStore:
    """Get or create monitoring store instance."""
    return MonitoringStore()
