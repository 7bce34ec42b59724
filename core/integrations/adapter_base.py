"""
Upstream HTTP adapter base.

Every outbound integration (ILS connector, Solr) inherits from AdapterBase.
Provides:
- Bearer token forwarding
- Standardized request envelope
- Mapping of transport failures to HTTP status codes
- Elapsed-time logging with sanitized URLs
- One OpenTelemetry client span per call

No retries happen here; a failed call surfaces as UpstreamError and the
caller decides what the user sees.
"""
from __future__ import annotations
from abc import ABC
from dataclasses import dataclass, field
from typing import Any, Optional
import logging
import time

import httpx

from core.observability.otel_setup import upstream_span

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """A failed upstream call, carrying the status code to pass through."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


# ---------------------------------------------------------------------------
# Request envelope
# ---------------------------------------------------------------------------

@dataclass
class AdapterRequest:
    """Standardized outbound request."""
    method: str  # GET, POST, DELETE
    path: str
    params: dict[str, Any] = field(default_factory=dict)
    body: Any = None
    token: str = ""
    timeout: Optional[float] = None


def sanitize_url(url: str) -> str:
    """Hide a patron PIN before a URL is logged."""
    idx = url.find("pin=")
    if idx >= 0:
        return url[:idx] + "pin=SECRET"
    return url


def should_log_as_error(status_code: int) -> bool:
    """404 is an expected answer from the ILS, not a failure worth an ERROR line."""
    return status_code not in (200, 404)


# ---------------------------------------------------------------------------
# AdapterBase
# ---------------------------------------------------------------------------

class AdapterBase(ABC):
    """
    Base class for upstream API adapters.

    Subclasses set ``name``; ``base_url`` and ``timeout`` come from config.
    A shared httpx.AsyncClient may be injected (tests pass one built on
    httpx.MockTransport).
    """

    name: str = ""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def request(self, req: AdapterRequest) -> bytes:
        """Execute *req* and return the raw body of a 200/201 response."""
        url = self.url_for(req.path)
        log_url = sanitize_url(url)
        headers = {}
        if req.token:
            headers["Authorization"] = f"Bearer {req.token}"

        logger.info("%s %s request: %s", self.name, req.method, log_url)
        start = time.monotonic()
        with upstream_span(self.name, req.method, log_url) as span:
            try:
                resp = await self._client.request(
                    method=req.method,
                    url=url,
                    params=req.params or None,
                    json=req.body,
                    headers=headers,
                    timeout=req.timeout or self.timeout,
                )
            except httpx.TimeoutException:
                err = UpstreamError(408, f"{log_url} timed out")
            except httpx.ConnectError:
                err = UpstreamError(503, f"{log_url} refused connection")
            except httpx.HTTPError as exc:
                err = UpstreamError(400, str(exc))
            else:
                span.set_attribute("http.response.status_code", resp.status_code)
                if resp.status_code in (200, 201):
                    logger.info(
                        "Successful response from %s %s %s. Elapsed Time: %d (ms)",
                        self.name, req.method, log_url, _elapsed_ms(start),
                    )
                    return resp.content
                err = UpstreamError(resp.status_code, resp.text)

            log = logger.error if should_log_as_error(err.status_code) else logger.info
            log(
                "Failed response from %s %s %s - %d:%s. Elapsed Time: %d (ms)",
                self.name, req.method, log_url, err.status_code, err.message, _elapsed_ms(start),
            )
            raise err

    async def get(self, path: str, token: str = "", **params: Any) -> bytes:
        return await self.request(AdapterRequest("GET", path, params=params, token=token))

    async def post(self, path: str, body: Any, token: str = "") -> bytes:
        return await self.request(AdapterRequest("POST", path, body=body, token=token))


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
