"""Proxies computed in-process: date helper and data mapper."""

import logging
from typing import Any, Dict

from nodepacks.core.dates import run_date_action
from nodepacks.core.mapping import run_mapper_action

from .base import ProxyFunction, ProxyResponse


logger = logging.getLogger(__name__)


class DateHelperProxy(ProxyFunction):
    """Answers ``{...result, status: "ok"}``; failures are 500 ``{error}``."""

    name = "date-helper-proxy"

    def failure(self, status_code: int, error: str, details: Any = None) -> ProxyResponse:
        return ProxyResponse(status_code, {"error": error})

    def handle(self, body: Dict[str, Any]) -> ProxyResponse:
        params = {k: v for k, v in body.items() if k != "action"}
        try:
            return ProxyResponse(200, run_date_action(body.get("action"), params))
        except ValueError as e:
            logger.warning(f"date helper {body.get('action')}: {e}")
            return self.failure(500, str(e))


class DataMapperProxy(ProxyFunction):
    """Answers ``{success: true, error: null, data}``; failures are 500."""

    name = "data-mapper-proxy"

    def handle(self, body: Dict[str, Any]) -> ProxyResponse:
        try:
            return ProxyResponse(200, run_mapper_action(body.get("action"), body))
        except Exception as e:
            logger.warning(f"data mapper {body.get('action')}: {e}")
            return self.failure(500, str(e) or e.__class__.__name__)
