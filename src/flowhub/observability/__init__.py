"""Observability package."""
from flowhub.observability.logging import (
    get_logger,
    setup_logging,
    with_flow_context,
)

__all__ = ["get_logger", "setup_logging", "with_flow_context"]
