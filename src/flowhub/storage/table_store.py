"""Redis-backed data tables for the data-table node."""
import uuid
from typing import Any

import redis
from pydantic import BaseModel, Field

from flowhub.observability import get_logger
from flowhub.storage.base import StoreError, get_redis_client, redis_errors, utc_now

logger = get_logger(__name__)


class DataTable(BaseModel):
    """A user table: a column schema plus JSON records."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    table_schema: Any = Field(default=None, alias="schema", description="Column definitions")
    records: list[dict[str, Any]] = Field(default_factory=list)
    updated_at: str = Field(default_factory=utc_now)

    model_config = {"populate_by_name": True}


class TableStore:
    """Implements the data-table node's storage contract."""

    def __init__(self, redis_client: redis.Redis | None = None):
        self.redis_client = redis_client if redis_client is not None else get_redis_client()
        self._table_prefix = "table:"

    def _table_key(self, table_id: str) -> str:
        return f"{self._table_prefix}{table_id}"

    def _load(self, table_id: str) -> DataTable | None:
        data = self.redis_client.get(self._table_key(table_id))
        if data is None:
            return None
        return DataTable.model_validate_json(data)

    def save_table(self, table: DataTable) -> DataTable:
        table.updated_at = utc_now()
        with redis_errors("save table"):
            self.redis_client.set(self._table_key(table.id), table.model_dump_json(by_alias=True))
        return table

    def get_table(self, table_id: str) -> dict[str, Any] | None:
        """``{id, name, schema, records}`` or None."""
        table = self._load(table_id)
        if table is None:
            return None
        return table.model_dump(by_alias=True)

    def save_records(self, table_id: str, records: list[dict[str, Any]]) -> None:
        """
        Replace a table's records.

        Raises:
            StoreError: If the table does not exist
        """
        table = self._load(table_id)
        if table is None:
            raise StoreError(f"Table not found: {table_id}")
        table.records = list(records)
        self.save_table(table)
        logger.info("Table records saved", extra={"table_id": table_id, "count": len(records)})


def get_table_store() -> TableStore:
    """Get or create table store instance."""
    return TableStore()
