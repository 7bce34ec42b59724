"""ILS connector client (circulation backend)."""
from __future__ import annotations
import logging

import httpx

from core.integrations.adapter_base import AdapterBase, UpstreamError

logger = logging.getLogger(__name__)


class ILSConnector(AdapterBase):
    """Availability snapshots and course reserve checks from the ILS connector."""

    name = "ILS Connector"

    async def get_availability(self, title_id: str, token: str) -> bytes | None:
        """Raw availability snapshot, or None when the title is not in the ILS."""
        try:
            return await self.get(f"/v4/availability/{title_id}", token=token)
        except UpstreamError as err:
            if err.status_code == 404:
                return None
            raise

    async def get_reserve_summary(self, catalog_key: str, token: str) -> bytes:
        return await self.get(f"/availability/{catalog_key}", token=token)

    async def validate_reserves(self, ids: list[str], token: str) -> bytes:
        return await self.post("/course_reserves/validate", {"items": ids}, token=token)

    async def ping(self) -> None:
        """Raise UpstreamError unless the connector answers its version endpoint."""
        try:
            await self._client.get(self.url_for("/version"), timeout=5.0)
        except httpx.HTTPError as exc:
            logger.error("Failed response from ILS Connector PING: %s - %s", exc, self.base_url)
            raise UpstreamError(503, str(exc)) from exc
