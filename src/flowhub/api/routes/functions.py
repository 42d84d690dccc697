"""Proxy function routes: POST /functions/v1/{proxy_name}."""
import json

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from node_sdk import ProxyNotFoundError

from flowhub.observability import get_logger
from flowhub.proxies import get_proxy_registry

logger = get_logger(__name__)
router = APIRouter()


@router.post("/functions/v1/{proxy_name}")
async def invoke_function(proxy_name: str, request: Request) -> JSONResponse:
    """
    Invoke a proxy function with the JSON request body.

    The proxy's own status code and payload are returned unchanged.
    """
    registry = get_proxy_registry()
    try:
        proxy = registry.get(proxy_name)
    except ProxyNotFoundError:
        return JSONResponse(status_code=404, content={"success": False, "error": f"Function not found: {proxy_name}"})

    raw = await request.body()
    try:
        body = json.loads(raw) if raw else {}
    except ValueError:
        return JSONResponse(status_code=400, content={"success": False, "error": "Request body must be valid JSON"})
    if not isinstance(body, dict):
        return JSONResponse(status_code=400, content={"success": False, "error": "Request body must be a JSON object"})

    response = await run_in_threadpool(proxy, body)

    logger.info(
        "Proxy invoked",
        extra={"proxy": proxy_name, "action": body.get("action"), "status_code": response.status_code},
    )
    return JSONResponse(status_code=response.status_code, content=response.payload)
