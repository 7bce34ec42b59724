"""Catalog record lookup by title id."""

import logging
from typing import Optional

from pydantic import ValidationError

from core.integrations.adapter_base import UpstreamError
from core.integrations.solr import SolrClient
from verticals.availability.models.schemas import CatalogRecord, SolrResponseBody

logger = logging.getLogger(__name__)


def _escape(value: str) -> str:
    return value.replace(":", "\\:").replace(" ", "\\ ")


async def fetch_catalog_record(solr: SolrClient, title_id: str) -> Optional[CatalogRecord]:
    """Return the catalog record for *title_id*, or None.

    A lookup that fails, matches nothing, or matches more than one record
    is logged; when there are matches the first one is used.
    """
    try:
        raw = await solr.select(f"id:{_escape(title_id)}", CatalogRecord.field_list())
    except UpstreamError as err:
        logger.error("Solr request for %s failed: %s", title_id, err.message)
        return None

    try:
        body = SolrResponseBody.model_validate(raw)
        if body.num_found != 1:
            logger.error("%d catalog records found for %s", body.num_found, title_id)
        if not body.docs:
            return None
        return CatalogRecord.model_validate(body.docs[0])
    except ValidationError as exc:
        logger.error("Unable to parse catalog record for %s: %s", title_id, exc)
        return None
