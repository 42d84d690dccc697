"""Celery tasks for background flow execution."""
import time

from flowhub.execution import run_flow_version
from flowhub.integrations.celery_app import celery_app
from flowhub.observability import get_logger, setup_logging
from flowhub.storage import StoreError, get_execution_store, get_flow_store

# Setup logging
setup_logging()
logger = get_logger(__name__)


@celery_app.task(name="run_flow_execution", bind=True)
def run_flow_execution(self, execution_id: str) -> dict:
    """
    Run a queued execution.

    Loads the execution record, its flow project and the version it was
    queued for, then runs the flow with the stored request.

    Args:
        execution_id: Execution ID created by the API

    Returns:
        Result dict
    """
    execution_store = get_execution_store()
    flow_store = get_flow_store()

    record = execution_store.get(execution_id)
    if record is None:
        logger.error(f"Execution not found: {execution_id}")
        return {"error": "Execution not found"}

    logger.info(
        "Starting flow execution",
        extra={"execution_id": execution_id, "flow_id": record.flow_id},
    )
    started = time.perf_counter()

    try:
        execution_store.mark_running(execution_id)

        project = flow_store.get_project(record.flow_id)
        if project is None:
            raise ValueError(f"Flow not found: {record.flow_id}")

        version = None
        if record.flow_version is not None:
            version = flow_store.get_version(project.id, record.flow_version)
        version = version or flow_store.get_published_version(project.id)
        if version is None:
            raise ValueError("No published flow version found")

        result = run_flow_version(project, version, record.request or {}, execution_id)

        logger.info(
            "Flow execution finished",
            extra={
                "execution_id": execution_id,
                "flow_id": project.id,
                "status": result.status.value,
            },
        )
        return {
            "execution_id": execution_id,
            "status": result.status.value,
            "status_code": result.status_code,
        }

    except Exception as e:
        logger.error(
            "Flow execution failed",
            extra={
                "execution_id": execution_id,
                "flow_id": record.flow_id,
                "error": str(e),
            },
            exc_info=True,
        )
        try:
            execution_store.complete(
                execution_id,
                success=False,
                execution_time_ms=int((time.perf_counter() - started) * 1000),
                error_message=str(e),
                status_code=500,
            )
        except StoreError as store_error:
            logger.error(
                f"Execution record not updated: {store_error}",
                extra={"execution_id": execution_id, "flow_id": record.flow_id},
            )
        raise
