"""FastAPI application."""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from workflow_runtime import FlowValidationError

from flowhub import __version__
from flowhub.api.routes import flows, functions, health, management, nodes
from flowhub.observability import get_logger, setup_logging
from flowhub.storage import StoreError

# Setup logging
setup_logging()
logger = get_logger(__name__)

# Create FastAPI app
app = FastAPI(
    title="flowhub",
    description="Webhook-triggered node flows and the proxy functions behind them",
    version=__version__,
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FlowValidationError)
async def flow_validation_handler(request: Request, exc: FlowValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error(f"Store error on {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})


# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(functions.router, tags=["functions"])
app.include_router(flows.router, tags=["flows"])
app.include_router(management.router, tags=["management"])
app.include_router(nodes.router, tags=["nodes"])


@app.get("/")
def root() -> dict:
    """Root endpoint."""
    return {
        "service": "flowhub",
        "version": __version__,
        "docs": "/docs",
    }


# Run with: uvicorn flowhub.api.main:app --reload
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("flowhub.api.main:app", host="0.0.0.0", port=8000)
