"""Webhook route: ANY /flows/{endpoint_slug} runs the published flow."""
import json
import time
import uuid
from typing import Any

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from workflow_runtime.executor import safe_json

from flowhub.config import get_settings
from flowhub.execution import run_flow_version
from flowhub.observability import get_logger, with_flow_context
from flowhub.security import verify_hmac_signature, verify_provider_signature
from flowhub.storage import (
    AnalyticsRow,
    FlowProject,
    StoreError,
    get_execution_store,
    get_flow_store,
    get_monitoring_store,
)

logger = get_logger(__name__)
router = APIRouter()

INTERNAL_SIGNATURE_HEADER = "x-webhook-signature"
API_KEY_HEADER = "x-api-key"


def _error(status_code: int, error: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, **extra})


def client_ip(headers: dict[str, str]) -> str:
    """First x-forwarded-for hop, then x-real-ip."""
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return headers.get("x-real-ip") or "0.0.0.0"


def parse_body(raw: str) -> Any:
    """JSON body, ``{}`` when empty, ``{"raw": text}`` when not JSON."""
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        return {"raw": raw}


def check_signatures(project: FlowProject, raw: str, headers: dict[str, str]) -> JSONResponse | None:
    """The 401 response for a rejected request, or None."""
    provider = project.signature_provider
    if provider and provider != "none":
        result = verify_provider_signature(
            provider,
            raw,
            headers,
            secret=project.external_webhook_secret or "",
            header_name=project.signature_header_name,
            algorithm=project.signature_algorithm,
            timestamp_tolerance=project.signature_timestamp_tolerance or get_settings().signature_tolerance_s,
        )
        if not result.valid and not result.skipped:
            return _error(401, "Signature verification failed", details=result.error, provider=provider)

    signature = headers.get(INTERNAL_SIGNATURE_HEADER)
    if project.webhook_secret and signature:
        if not verify_hmac_signature(raw, signature, project.webhook_secret):
            return _error(401, "Invalid internal webhook signature")

    return None


def handle_webhook(
    endpoint_slug: str,
    method: str,
    headers: dict[str, str],
    query: dict[str, str],
    raw: str,
) -> JSONResponse:
    """
    Run the published version of the flow behind a slug.

    Steps: lookup, deployment check, signatures, API key, body parsing,
    execution record, run, analytics.
    """
    started = time.perf_counter()
    flow_store = get_flow_store()

    project = flow_store.get_project_by_slug(endpoint_slug)
    if project is None:
        return _error(404, "Flow not found")
    if not project.accepts_requests:
        return _error(503, "Flow is not deployed")

    rejected = check_signatures(project, raw, headers)
    if rejected is not None:
        logger.warning("Webhook signature rejected", extra=with_flow_context(flow_id=project.id))
        return rejected

    api_key = flow_store.get_api_key(project.id)
    if api_key:
        provided = headers.get(API_KEY_HEADER)
        if not provided:
            return _error(401, "Missing API key", details="Include X-API-Key header")
        if provided != api_key:
            return _error(401, "Invalid API key")

    body = parse_body(raw)

    version = flow_store.get_published_version(project.id)
    if version is None:
        return _error(404, "No published flow version found")

    flow_request = {"method": method, "headers": headers, "body": body, "query": query}
    try:
        execution_id = get_execution_store().create(project.id, version.version).id
    except StoreError as e:
        execution_id = str(uuid.uuid4())
        logger.error(
            f"Execution record not created: {e}",
            extra=with_flow_context(execution_id=execution_id, flow_id=project.id),
        )

    result = run_flow_version(project, version, flow_request, execution_id)

    response_body = result.response_body()
    status_code = result.status_code
    record_analytics(
        project,
        method,
        headers,
        body,
        query,
        raw,
        status_code=status_code,
        response_time_ms=int((time.perf_counter() - started) * 1000),
        response_size=len(safe_json(response_body)),
        error_message=result.error_message,
    )

    return JSONResponse(status_code=status_code, content=response_body, headers=result.response_headers())


def record_analytics(
    project: FlowProject,
    method: str,
    headers: dict[str, str],
    body: Any,
    query: dict[str, str],
    raw: str,
    status_code: int,
    response_time_ms: int,
    response_size: int,
    error_message: str | None,
) -> None:
    row = AnalyticsRow(
        flow_project_id=project.id,
        method=method,
        status_code=status_code,
        response_time_ms=response_time_ms,
        ip_address=client_ip(headers),
        user_agent=headers.get("user-agent", ""),
        request_params={"body": body, "query": query, "headers": list(headers)},
        request_size_bytes=len(raw.encode("utf-8")),
        response_size_bytes=response_size,
        error_message=error_message,
    )
    try:
        get_monitoring_store().add_analytics(row)
    except StoreError as e:
        logger.warning(f"Analytics row not stored: {e}", extra=with_flow_context(flow_id=project.id))


@router.api_route("/flows/{endpoint_slug}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
async def flow_webhook(endpoint_slug: str, request: Request) -> JSONResponse:
    """Webhook entry point of a deployed flow."""
    raw = (await request.body()).decode("utf-8", errors="replace")
    headers = {key.lower(): value for key, value in request.headers.items()}

    try:
        return await run_in_threadpool(
            handle_webhook,
            endpoint_slug,
            request.method,
            headers,
            dict(request.query_params),
            raw,
        )
    except Exception as e:
        logger.exception(f"Flow webhook failed: {endpoint_slug}")
        return _error(500, str(e) or e.__class__.__name__)
