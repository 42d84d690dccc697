"""Flow project, version and execution management routes."""
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field, ValidationError

from workflow_runtime import FlowGraph, FlowValidationError, parse_flow

from flowhub.integrations.tasks import run_flow_execution
from flowhub.observability import get_logger
from flowhub.storage import (
    ExecutionRecord,
    ExecutionStatus,
    FlowProject,
    StoreError,
    get_execution_store,
    get_flow_store,
)

logger = get_logger(__name__)
router = APIRouter()


class SaveFlowRequest(BaseModel):
    """Request model for creating or updating a flow project."""

    id: str | None = Field(default=None, description="Existing project ID to update")
    name: str = Field(..., description="Display name")
    endpoint_slug: str = Field(..., min_length=1, description="Path segment under /flows/")
    user_id: str | None = None
    is_deployed: bool = False
    deployment_status: str = "draft"
    webhook_secret: str | None = None
    signature_provider: str | None = None
    signature_header_name: str | None = None
    signature_algorithm: str | None = None
    external_webhook_secret: str | None = None
    signature_timestamp_tolerance: int | None = None
    variables: dict[str, Any] = Field(default_factory=dict)
    secrets: dict[str, str] = Field(default_factory=dict)


class FlowResponse(BaseModel):
    """Response model for flow projects. Secret values are never returned."""

    id: str
    name: str
    endpoint_slug: str
    is_deployed: bool
    deployment_status: str
    signature_provider: str | None = None
    variables: dict[str, Any]
    secret_names: list[str]
    created_at: str
    updated_at: str

    @classmethod
    def from_project(cls, project: FlowProject) -> "FlowResponse":
        return cls(
            id=project.id,
            name=project.name,
            endpoint_slug=project.endpoint_slug,
            is_deployed=project.is_deployed,
            deployment_status=project.deployment_status,
            signature_provider=project.signature_provider,
            variables=project.variables,
            secret_names=sorted(project.secrets),
            created_at=project.created_at,
            updated_at=project.updated_at,
        )


class PublishVersionRequest(BaseModel):
    """Request model for storing a flow graph."""

    nodes: list[dict[str, Any]] = Field(..., description="Flow nodes")
    edges: list[dict[str, Any]] = Field(default_factory=list, description="Flow edges")
    publish: bool = Field(default=True, description="Make this the live version")


class VersionResponse(BaseModel):
    """Response model for flow versions."""

    flow_id: str
    version: int
    is_published: bool
    created_at: str


class QueueExecutionRequest(BaseModel):
    """Request model for a background flow run."""

    method: str = "POST"
    body: Any = Field(default_factory=dict)
    query: dict[str, str] = Field(default_factory=dict)
    headers: dict[str, str] = Field(default_factory=dict)


class ExecutionResponse(BaseModel):
    """Response model for execution records."""

    execution_id: str
    flow_id: str
    flow_version: int | None = None
    status: str
    status_code: int | None = None
    response: Any = None
    error_message: str | None = None
    logs: list[dict[str, Any]] = Field(default_factory=list)
    started_at: str
    completed_at: str | None = None
    execution_time_ms: int | None = None

    @classmethod
    def from_record(cls, record: ExecutionRecord) -> "ExecutionResponse":
        return cls(
            execution_id=record.id,
            flow_id=record.flow_id,
            flow_version=record.flow_version,
            status=record.status.value,
            status_code=record.status_code,
            response=record.response,
            error_message=record.error_message,
            logs=record.logs,
            started_at=record.started_at,
            completed_at=record.completed_at,
            execution_time_ms=record.execution_time_ms,
        )


@router.post("/v1/flows", response_model=FlowResponse)
def save_flow(request: SaveFlowRequest) -> FlowResponse:
    """
    Create a flow project, or update it when ``id`` names an existing one.

    Raises:
        HTTPException: 404 for an unknown id, 409 when the slug is taken
    """
    store = get_flow_store()
    fields = request.model_dump(exclude={"id"})

    if request.id:
        existing = store.get_project(request.id)
        if existing is None:
            raise HTTPException(status_code=404, detail="Flow not found")
        project = existing.model_copy(update=fields)
    else:
        project = FlowProject(**fields)

    try:
        project = store.save_project(project)
    except StoreError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    return FlowResponse.from_project(project)


@router.get("/v1/flows/{flow_id}", response_model=FlowResponse)
def get_flow(flow_id: str) -> FlowResponse:
    project = get_flow_store().get_project(flow_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Flow not found")
    return FlowResponse.from_project(project)


@router.post("/v1/flows/{flow_id}/versions", response_model=VersionResponse, status_code=201)
def publish_version(flow_id: str, request: PublishVersionRequest) -> VersionResponse:
    """
    Validate and store a new version of a flow graph.

    Raises:
        HTTPException: 404 for an unknown flow, 422 for a graph that cannot run
    """
    store = get_flow_store()
    if store.get_project(flow_id) is None:
        raise HTTPException(status_code=404, detail="Flow not found")

    try:
        FlowGraph.compile(parse_flow({"nodes": request.nodes, "edges": request.edges}))
    except (FlowValidationError, ValidationError) as e:
        raise HTTPException(status_code=422, detail=f"Invalid flow: {e}") from e

    version = store.publish_version(flow_id, request.nodes, request.edges, publish=request.publish)
    return VersionResponse(
        flow_id=flow_id,
        version=version.version,
        is_published=version.is_published,
        created_at=version.created_at,
    )


@router.post("/v1/flows/{endpoint_slug}/executions", response_model=ExecutionResponse, status_code=202)
def queue_execution(endpoint_slug: str, request: QueueExecutionRequest) -> ExecutionResponse:
    """
    Queue a background run of the published flow version.

    Raises:
        HTTPException: 404 for an unknown flow or a flow without a published version
    """
    store = get_flow_store()
    project = store.get_project_by_slug(endpoint_slug)
    if project is None:
        raise HTTPException(status_code=404, detail="Flow not found")

    version = store.get_published_version(project.id)
    if version is None:
        raise HTTPException(status_code=404, detail="No published flow version found")

    flow_request = {
        "method": request.method.upper(),
        "headers": {key.lower(): value for key, value in request.headers.items()},
        "body": request.body,
        "query": request.query,
    }
    record = get_execution_store().create(
        project.id,
        version.version,
        request=flow_request,
        status=ExecutionStatus.QUEUED,
    )

    logger.info(
        "Execution queued via API",
        extra={"execution_id": record.id, "flow_id": project.id},
    )

    run_flow_execution.delay(record.id)

    return ExecutionResponse.from_record(record)


@router.get("/v1/flows/{flow_id}/executions", response_model=list[ExecutionResponse])
def list_executions(flow_id: str, limit: int = 50) -> list[ExecutionResponse]:
    """Most recent executions of a flow, newest first."""
    records = get_execution_store().list_for_flow(flow_id, limit=limit)
    return [ExecutionResponse.from_record(record) for record in records]


@router.get("/v1/executions/{execution_id}", response_model=ExecutionResponse)
def get_execution(execution_id: str) -> ExecutionResponse:
    """
    Get execution status, logs and response.

    Raises:
        HTTPException: If execution not found
    """
    record = get_execution_store().get(execution_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Execution not found")
    return ExecutionResponse.from_record(record)
