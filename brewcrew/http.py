"""HTTP client for the Places web service and request counters."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from .errors import InvalidResponse

logger = logging.getLogger(__name__)


@dataclass
class RequestMetrics:
    network_nearby: int = 0
    network_text: int = 0
    page_token_waits: int = 0

    @property
    def total(self) -> int:
        return self.network_nearby + self.network_text

    def inc_network(self, kind: str) -> None:
        if kind == "nearby":
            self.network_nearby += 1
        elif kind == "text":
            self.network_text += 1
        else:
            raise ValueError(f"Unknown request kind: {kind}")


class HttpClient:
    def __init__(self, timeout: int = 20) -> None:
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def get_json(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """GET a JSON object; every failure surfaces as InvalidResponse."""
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("Request to %s failed: %s", url, exc.__class__.__name__)
            raise InvalidResponse(f"Request to Google Places failed: {exc.__class__.__name__}") from exc

        status = resp.status_code
        if not 200 <= status < 300:
            logger.error("HTTP %s from %s", status, url)
            raise InvalidResponse(f"HTTP {status} from Google Places", status_code=status)

        try:
            payload = resp.json()
        except ValueError as exc:
            logger.error("Non-JSON response from %s", url)
            raise InvalidResponse("Invalid response from Google Places API") from exc
        if not isinstance(payload, dict):
            logger.error("Unexpected JSON shape from %s", url)
            raise InvalidResponse("Invalid response from Google Places API")
        return payload

    def close(self) -> None:
        self.session.close()
