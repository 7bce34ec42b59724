"""Solr catalog index client."""
from __future__ import annotations
from typing import Any
import json
import logging

from core.integrations.adapter_base import AdapterBase

logger = logging.getLogger(__name__)


class SolrClient(AdapterBase):
    """Read-only access to one Solr core's select handler."""

    name = "Solr"

    def __init__(self, base_url: str, core: str, timeout: float = 5.0, client=None):
        super().__init__(f"{base_url.rstrip('/')}/{core}", timeout=timeout, client=client)

    async def select(self, q: str, fields: list[str], rows: int | None = None) -> dict[str, Any]:
        """Run a select query and return the decoded ``response`` block.

        An unparseable body is logged and reported as no matches.
        """
        params: dict[str, Any] = {"fl": ",".join(fields), "q": q}
        if rows is not None:
            params["rows"] = rows
        raw = await self.get("select", **params)
        try:
            payload = json.loads(raw)
        except ValueError as exc:
            logger.error("Unable to parse solr response: %s", exc)
            return {"numFound": 0, "docs": []}
        return payload.get("response") or {"numFound": 0, "docs": []}
