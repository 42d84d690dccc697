"""Running stored flows: executor wiring plus record keeping."""
from typing import Any

from workflow_runtime import FlowExecutor, FlowRunResult, build_monitoring_rows

from flowhub.config import Settings, get_settings
from flowhub.observability import get_logger, with_flow_context
from flowhub.proxies import get_proxy_invoker
from flowhub.storage import (
    ExecutionStore,
    FlowProject,
    FlowVersion,
    MonitoringStore,
    StoreError,
    TableStore,
    get_execution_store,
    get_monitoring_store,
    get_table_store,
)

logger = get_logger(__name__)


def build_executor(
    settings: Settings | None = None,
    table_store: TableStore | None = None,
    monitoring_store: MonitoringStore | None = None,
) -> FlowExecutor:
    """
    Executor backed by the configured proxy invoker and Redis stores.

    Logger nodes write straight into the monitoring store.
    """
    settings = settings or get_settings()
    monitoring_store = monitoring_store or get_monitoring_store()
    return FlowExecutor(
        proxy_invoker=get_proxy_invoker(settings),
        table_store=table_store or get_table_store(),
        log_sink=monitoring_store.add_row,
        max_steps=settings.max_flow_steps,
    )


def run_flow_version(
    project: FlowProject,
    version: FlowVersion,
    request: dict[str, Any],
    execution_id: str,
    executor: FlowExecutor | None = None,
    execution_store: ExecutionStore | None = None,
    monitoring_store: MonitoringStore | None = None,
) -> FlowRunResult:
    """
    Run a flow version for an existing execution record and store the outcome.

    Args:
        project: Owning project (its variables and secrets become env)
        version: Graph to run
        request: {method, headers, body, query}
        execution_id: Record created by the caller

    Returns:
        The run result; the execution record and monitoring rows are updated
    """
    execution_store = execution_store or get_execution_store()
    monitoring_store = monitoring_store or get_monitoring_store()
    executor = executor or build_executor(monitoring_store=monitoring_store)

    logger.info(
        "Running flow",
        extra=with_flow_context(execution_id=execution_id, flow_id=project.id, version=version.version),
    )

    result = executor.execute(
        version.definition(),
        request=request,
        env={**project.variables, **project.secrets},
        flow_id=project.id,
        execution_id=execution_id,
    )

    try:
        execution_store.complete(
            execution_id,
            success=result.is_success,
            execution_time_ms=result.execution_time_ms,
            logs=result.logs_as_dicts(),
            error_message=result.error_message,
            status_code=result.status_code,
            response=result.response_body(),
        )
    except StoreError as e:
        logger.error(
            f"Execution record not updated: {e}",
            extra=with_flow_context(execution_id=execution_id, flow_id=project.id),
        )

    rows = build_monitoring_rows(result, project.id)
    if rows:
        try:
            monitoring_store.add_rows(rows)
        except StoreError as e:
            logger.warning(
                f"Monitoring rows not stored: {e}",
                extra=with_flow_context(execution_id=execution_id, flow_id=project.id),
            )

    return result
