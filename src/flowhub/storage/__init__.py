"""Storage package."""
from flowhub.storage.base import StoreError, get_redis_client
from flowhub.storage.execution_store import (
    ExecutionRecord,
    ExecutionStatus,
    ExecutionStore,
    get_execution_store,
)
from flowhub.storage.flow_store import FlowProject, FlowStore, FlowVersion, get_flow_store
from flowhub.storage.monitoring_store import (
    AnalyticsRow,
    MonitoringRow,
    MonitoringStore,
    get_monitoring_store,
)
from flowhub.storage.table_store import DataTable, TableStore, get_table_store

__all__ = [
    "AnalyticsRow",
    "DataTable",
    "ExecutionRecord",
    "ExecutionStatus",
    "ExecutionStore",
    "FlowProject",
    "FlowStore",
    "FlowVersion",
    "MonitoringRow",
    "MonitoringStore",
    "StoreError",
    "TableStore",
    "get_execution_store",
    "get_flow_store",
    "get_monitoring_store",
    "get_redis_client",
    "get_table_store",
]
